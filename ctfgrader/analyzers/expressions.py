"""
Expression Analyzers.

Scan the text of every condition and message in a proof:

    - Self-Reference Master: distinct attributes validated through self
    - Conditional Validation: boolean operators, helper functions, complexity
    - Error Message Designer: length, interpolation, context keywords
"""

from __future__ import annotations

from ..conditions import (
    LOGICAL_AND,
    LOGICAL_OR,
    MIN_CONTRACT_MESSAGE_LENGTH,
    distinct_self_references,
    find_context_keywords,
    find_function_calls,
    has_interpolation,
    is_descriptive_message,
    logical_complexity,
)
from ..domain import FailureRule, GateFailure
from ..proof import ProofData
from ..verdict import DiagnosticTrail


MIN_DISTINCT_SELF_ATTRIBUTES = 3
MIN_SELF_POSTCONDITIONS = 2
MIN_LOGICAL_COMPLEXITY = 2
MAX_COMPLEXITY_SCORE = 10
COMPLEXITY_SCORE_OFFSET = 3
MIN_ERROR_MESSAGES = 3


# =============================================================================
# SELF-REFERENCE MASTER
# =============================================================================

def analyze_self_reference_mastery(proof: ProofData, trail: DiagnosticTrail) -> str:
    """
    Validate that postconditions check several distinct attributes via self.

    Walks every postcondition of every resource. Requires at least 3
    distinct self-referenced attributes across at least 2 postconditions.
    """
    if not proof.resources:
        raise GateFailure(
            FailureRule.NO_STRUCTURED_PROOF,
            "No structured proof: supply at least one resource with postconditions",
        )

    conditions = [
        block.condition
        for resource in proof.resources
        for block in resource.postconditions
    ]
    attributes = distinct_self_references(conditions)

    trail.info(f"Scanned {len(conditions)} postcondition(s)")
    trail.info(
        "Distinct self attributes: "
        + (", ".join(f"self.{a}" for a in attributes) or "none")
    )
    if any(LOGICAL_AND in c or LOGICAL_OR in c for c in conditions):
        trail.info("Boolean operators (&&, ||) combine checks in these conditions")

    if len(conditions) < MIN_SELF_POSTCONDITIONS:
        raise GateFailure(
            FailureRule.INSUFFICIENT_COUNT,
            f"Use at least {MIN_SELF_POSTCONDITIONS} postconditions "
            f"(found {len(conditions)})",
        )
    if len(attributes) < MIN_DISTINCT_SELF_ATTRIBUTES:
        raise GateFailure(
            FailureRule.INSUFFICIENT_COUNT,
            f"Postconditions must reference at least {MIN_DISTINCT_SELF_ATTRIBUTES} "
            f"different attributes through self (found {len(attributes)})",
        )
    trail.passed(
        f"{len(attributes)} distinct attributes validated across "
        f"{len(conditions)} postconditions"
    )

    return f"Validated {len(attributes)} attributes through self"


# =============================================================================
# CONDITIONAL VALIDATION
# =============================================================================

def complexity_score(max_complexity: int) -> int:
    """Learner-facing complexity out of 10."""
    return min(max_complexity + COMPLEXITY_SCORE_OFFSET, MAX_COMPLEXITY_SCORE)


def analyze_conditional_logic(proof: ProofData, trail: DiagnosticTrail) -> str:
    """
    Validate boolean logic and helper function usage in conditions.

    Scans every precondition and postcondition of every resource. AND,
    OR and a helper function call must all appear, and at least one
    condition must combine 2 or more logical operators.
    """
    conditions = [
        block.condition
        for resource in proof.resources
        for _, block in (resource.lifecycle.all_conditions() if resource.lifecycle else ())
    ]
    if not conditions:
        raise GateFailure(
            FailureRule.NO_STRUCTURED_PROOF,
            "No structured proof: no resource declares any condition to analyze",
        )

    has_and = any(LOGICAL_AND in c for c in conditions)
    has_or = any(LOGICAL_OR in c for c in conditions)
    functions: dict[str, None] = {}
    for condition in conditions:
        for name in find_function_calls(condition):
            functions.setdefault(name, None)
    max_complexity = max(logical_complexity(c) for c in conditions)

    trail.info(f"Scanned {len(conditions)} condition(s)")
    trail.info(f"Logical AND present: {has_and}; logical OR present: {has_or}")
    trail.info("Functions used: " + (", ".join(functions) or "none"))
    trail.info(f"Maximum operators in one condition: {max_complexity}")
    trail.info(f"Complexity: {complexity_score(max_complexity)}/{MAX_COMPLEXITY_SCORE}")

    if not has_and:
        raise GateFailure(
            FailureRule.MISSING_OPERATOR,
            f"Conditions must use the logical AND operator ({LOGICAL_AND})",
        )
    if not has_or:
        raise GateFailure(
            FailureRule.MISSING_OPERATOR,
            f"Conditions must use the logical OR operator ({LOGICAL_OR})",
        )
    if not functions:
        raise GateFailure(
            FailureRule.MISSING_FUNCTION,
            "Conditions must call a helper function (length, can, try, contains, ...)",
        )
    if max_complexity < MIN_LOGICAL_COMPLEXITY:
        raise GateFailure(
            FailureRule.LOW_COMPLEXITY,
            f"At least one condition must combine {MIN_LOGICAL_COMPLEXITY} or more "
            f"logical operators (max found {max_complexity})",
        )
    trail.passed("Conditions combine &&, || and helper functions")

    return f"Conditional logic scored {complexity_score(max_complexity)}/{MAX_COMPLEXITY_SCORE}"


# =============================================================================
# ERROR MESSAGE DESIGNER
# =============================================================================

def analyze_error_messages(proof: ProofData, trail: DiagnosticTrail) -> str:
    """
    Validate the quality of every error message in the proof.

    Gates, in order: at least 3 messages, each at least 20 characters,
    one with a ${...} interpolation, one with a context keyword.
    """
    messages = [
        (artifact.address, block.error_message)
        for artifact in proof.artifacts()
        for block in artifact.preconditions + artifact.postconditions
    ]
    trail.info(f"Collected {len(messages)} error message(s)")

    if len(messages) < MIN_ERROR_MESSAGES:
        raise GateFailure(
            FailureRule.INSUFFICIENT_COUNT,
            f"Write at least {MIN_ERROR_MESSAGES} error messages (found {len(messages)})",
        )

    for i, (address, message) in enumerate(messages, start=1):
        if not is_descriptive_message(message, MIN_CONTRACT_MESSAGE_LENGTH):
            raise GateFailure(
                FailureRule.MESSAGE_TOO_SHORT,
                f"Error message {i} on {address} is too short "
                f"(min {MIN_CONTRACT_MESSAGE_LENGTH} chars): {message!r}",
            )
    trail.passed(f"All messages are at least {MIN_CONTRACT_MESSAGE_LENGTH} characters")

    interpolated = [m for _, m in messages if has_interpolation(m)]
    if not interpolated:
        raise GateFailure(
            FailureRule.MISSING_INTERPOLATION,
            "Use ${...} interpolation in at least one message to show the actual value",
        )
    trail.passed(f"{len(interpolated)} message(s) interpolate actual values")

    keywords: dict[str, None] = {}
    for _, message in messages:
        for kw in find_context_keywords(message):
            keywords.setdefault(kw, None)
    if not keywords:
        raise GateFailure(
            FailureRule.MISSING_CONTEXT,
            "At least one message must explain what was expected "
            "(must, should, expected, required, invalid, failed)",
        )
    trail.passed("Messages explain context: " + ", ".join(keywords))

    return f"{len(messages)} error messages are descriptive and actionable"
