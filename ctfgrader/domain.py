"""
Core Domain Objects for the Challenge Grader.

Domain Objects:
    Challenge         - A registered exercise with its reward token
    ValidationResult  - The verdict handed back to the caller
    GateFailure       - Raised by an analyzer gate that did not hold

The feature space is closed: every challenge names one Feature, and the
dispatcher maps each Feature to exactly one analyzer.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


# =============================================================================
# CHALLENGE
# =============================================================================

class Difficulty(Enum):
    """Difficulty tiers shown to learners."""
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class Category(Enum):
    """
    Category tags. The category picks the analyzer family:

    VALIDATION      - structured analyzers, flat fallback
    META_ARGUMENTS  - flat validators only
    """
    VALIDATION = "validation"
    META_ARGUMENTS = "meta-arguments"


class Feature(Enum):
    """The language feature a challenge asks the learner to demonstrate."""
    # Validation conditions
    PRECONDITION = "precondition"
    POSTCONDITION = "postcondition"
    COMBINED_CONDITIONS = "combined_conditions"
    DATA_SOURCE_POSTCONDITION = "data_source_postcondition"
    OUTPUT_CONTRACT = "output_contract"
    VALIDATION_CHAIN = "validation_chain"
    MODULE_CONTRACT = "module_contract"
    SELF_REFERENCE = "self_reference"
    CONDITIONAL_LOGIC = "conditional_logic"
    ERROR_MESSAGES = "error_messages"

    # Meta-arguments
    COUNT = "count"
    FOR_EACH = "for_each"
    DEPENDS_ON = "depends_on"
    LIFECYCLE = "lifecycle"
    META_GRANDMASTER = "meta_grandmaster"
    DYNAMIC_BLOCKS = "dynamic_blocks"
    LOCALS_COUNT = "locals_count"
    CONDITIONAL_CREATION = "conditional_creation"


@dataclass(frozen=True)
class Challenge:
    """
    A registered challenge.

    Immutable once loaded. The reward token is revealed only on a
    successful verdict.
    """
    challenge_id: str
    name: str
    description: str
    points: int
    difficulty: Difficulty
    category: Category
    feature: Feature
    reward_token: str


# =============================================================================
# FAILURE SYSTEM
# =============================================================================

class FailureRule(Enum):
    """
    Why a submission was not accepted.

    Every failed verdict carries exactly one rule so callers can react
    to the kind of failure without parsing the message.
    """
    NO_PROOF = "no_proof"
    NO_STRUCTURED_PROOF = "no_structured_proof"
    EMPTY_CONDITION = "empty_condition"
    SELF_REFERENCE_IN_PRECONDITION = "self_reference_in_precondition"
    MISSING_SELF_REFERENCE = "missing_self_reference"
    MISPLACED_CONDITION = "misplaced_condition"
    MESSAGE_TOO_SHORT = "message_too_short"
    MISSING_TARGET = "missing_target"
    INSUFFICIENT_COUNT = "insufficient_count"
    MISSING_ORDERING = "missing_ordering"
    MISSING_OPERATOR = "missing_operator"
    MISSING_FUNCTION = "missing_function"
    LOW_COMPLEXITY = "low_complexity"
    MISSING_INTERPOLATION = "missing_interpolation"
    MISSING_CONTEXT = "missing_context"
    MISSING_FIELD = "missing_field"
    INVALID_VALUE = "invalid_value"
    UNSUPPORTED_PROOF = "unsupported_proof"


class GateFailure(Exception):
    """Raised by an analyzer when one of its gates does not hold."""

    def __init__(self, rule: FailureRule, reason: str):
        self.rule = rule
        self.reason = reason
        super().__init__(f"[{rule.value}] {reason}")


# =============================================================================
# VALIDATION RESULT
# =============================================================================

@dataclass(frozen=True)
class ValidationResult:
    """
    The verdict for one submission.

    Produced fresh per call and never persisted. `reward_token` and
    `points` are only populated when `success` is true.
    """
    success: bool
    message: str
    diagnostics: tuple[str, ...] = ()
    reward_token: str = ""
    points: int = 0
    rule: Optional[FailureRule] = None
    proof_source: str = ""
