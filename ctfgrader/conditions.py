"""
Condition Semantics Primitives.

Pure functions that inspect the surface text of a condition or an
error message. Nothing here evaluates an expression.

Known limitation:
    The self-reference marker is matched anywhere in the text, including
    inside string literals and comments. `"self.id"` quoted inside a
    condition still counts as a self-reference. Stricter parsing would
    change which submissions pass, so the scan stays textual.
"""

from __future__ import annotations

import re
from typing import Iterable


# =============================================================================
# CONFIGURATION CONSTANTS
# =============================================================================

SELF_REFERENCE_MARKER = "self"

# Marker, accessor dot, then an attribute name running up to the next
# delimiter: whitespace, comparison or logical operator, parenthesis,
# bracket, comma, semicolon, quote, ternary punctuation, or a closing
# interpolation brace.
SELF_REFERENCE_PATTERN = re.compile(r"self\.([A-Za-z_][^\s=!<>()\[\],;&|?:}\"']*)")

LOGICAL_AND = "&&"
LOGICAL_OR = "||"
LOGICAL_NOT = "!"

# `!` only counts as negation when it is not part of `!=`
_NOT_PATTERN = re.compile(r"!(?!=)")

# Helper functions a learner may call inside a condition
CONDITION_FUNCTIONS = (
    "length", "can", "try", "contains", "alltrue", "anytrue",
    "regex", "startswith", "endswith",
)

FUNCTION_CALL_PATTERN = re.compile(
    r"\b(" + "|".join(CONDITION_FUNCTIONS) + r")\s*\("
)

INTERPOLATION_PATTERN = re.compile(r"\$\{[^}]*\}")

CONTEXT_KEYWORDS = (
    "must", "should", "expected", "required", "invalid", "failed",
)

# Message length floors, by how much context a message has to carry
MIN_MESSAGE_LENGTH = 10
MIN_DATA_SOURCE_MESSAGE_LENGTH = 15
MIN_CONTRACT_MESSAGE_LENGTH = 20


# =============================================================================
# SELF-REFERENCE
# =============================================================================

def uses_self_reference(condition: str) -> bool:
    """True iff the condition contains `self.` followed by an attribute name."""
    return SELF_REFERENCE_PATTERN.search(condition or "") is not None


def extract_self_references(condition: str) -> list[str]:
    """
    Return the attribute named by every self-reference, in order.

    Duplicates are kept. Callers that need the distinct attributes
    de-duplicate themselves.

    Example:
        "self.port > 0 && self.port < 65536" -> ["port", "port"]
    """
    return SELF_REFERENCE_PATTERN.findall(condition or "")


def distinct_self_references(conditions: Iterable[str]) -> list[str]:
    """Distinct self-referenced attributes across conditions, first-seen order."""
    seen: dict[str, None] = {}
    for condition in conditions:
        for attribute in extract_self_references(condition):
            seen.setdefault(attribute, None)
    return list(seen)


# =============================================================================
# MESSAGES
# =============================================================================

def is_descriptive_message(message: str, min_length: int = MIN_MESSAGE_LENGTH) -> bool:
    """True iff the trimmed message is at least `min_length` characters."""
    return len((message or "").strip()) >= min_length


def has_interpolation(message: str) -> bool:
    """True iff the message contains a `${...}` interpolation."""
    return INTERPOLATION_PATTERN.search(message or "") is not None


def find_context_keywords(message: str) -> list[str]:
    """Context keywords present in the message, case-insensitive."""
    lowered = (message or "").lower()
    return [kw for kw in CONTEXT_KEYWORDS if kw in lowered]


# =============================================================================
# OPERATORS AND FUNCTIONS
# =============================================================================

def count_operators(condition: str, operators: Iterable[str]) -> dict[str, int]:
    """
    Frequency of each requested operator within a condition.

    `!` is counted as logical negation only, so `!=` does not inflate it.
    """
    text = condition or ""
    counts: dict[str, int] = {}
    for op in operators:
        if op == LOGICAL_NOT:
            counts[op] = len(_NOT_PATTERN.findall(text))
        else:
            counts[op] = text.count(op)
    return counts


def logical_complexity(condition: str) -> int:
    """Number of logical operators (AND + OR + NOT) in one condition."""
    counts = count_operators(condition, (LOGICAL_AND, LOGICAL_OR, LOGICAL_NOT))
    return sum(counts.values())


def find_function_calls(condition: str) -> list[str]:
    """Allow-listed helper functions called in the condition, in order."""
    return FUNCTION_CALL_PATTERN.findall(condition or "")
