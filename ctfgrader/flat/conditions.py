"""
Validation-Condition Flat Validators.

Fallback for validation challenges submitted as a flat proof_of_work map
instead of a structured proof. The learner declares what they built
(flags, counts, message text) and each validator checks the declaration.
"""

from __future__ import annotations

from typing import Any, Mapping

from ..conditions import (
    LOGICAL_AND,
    LOGICAL_OR,
    MIN_CONTRACT_MESSAGE_LENGTH,
    MIN_DATA_SOURCE_MESSAGE_LENGTH,
    MIN_MESSAGE_LENGTH,
    is_descriptive_message,
)
from ..domain import FailureRule, GateFailure
from ..verdict import DiagnosticTrail
from .facts import (
    fact_list,
    fact_text,
    require_flag,
    require_int,
    require_present,
    require_text,
)


MIN_FLOW_DOCUMENTATION = 30
MIN_MODULE_DOCUMENTATION = 50
MIN_HELPFUL_MESSAGES = 4
MIN_CHECKS_IN_CONDITION = 3
MIN_COMPLEXITY_RATING = 7
MESSAGE_SEPARATOR = "|"


# =============================================================================
# PLACEMENT
# =============================================================================

def validate_precondition_facts(facts: Mapping[str, Any], trail: DiagnosticTrail) -> str:
    require_flag(facts, "uses_precondition",
                 "you must use a precondition block in lifecycle", trail)
    require_present(facts, "condition_expression",
                    "missing 'condition_expression' - provide your condition logic",
                    trail, allow_empty=False)
    require_flag(facts, "checks_input",
                 "precondition must validate input values before resource creation", trail)
    require_text(facts, "error_message", MIN_MESSAGE_LENGTH,
                 f"provide a descriptive error_message (min {MIN_MESSAGE_LENGTH} characters)",
                 trail)
    require_flag(facts, "in_lifecycle_block",
                 "precondition must be placed in a lifecycle block", trail)
    validates = require_present(
        facts, "validates",
        "specify what you're validating (e.g., 'variable', 'input', 'parameter')", trail,
    )
    return f"Precondition validates {validates or 'input'} before creation"


def validate_postcondition_facts(facts: Mapping[str, Any], trail: DiagnosticTrail) -> str:
    require_flag(facts, "uses_postcondition",
                 "you must use a postcondition block in lifecycle", trail)
    require_flag(facts, "uses_self",
                 "postcondition must use 'self' to reference the resource", trail)
    attribute = require_present(
        facts, "validated_attribute",
        "specify which attribute you validated with 'self' (e.g., 'self.solved')",
        trail, allow_empty=False,
    )
    require_flag(facts, "validates_after_creation",
                 "postcondition validates the resource state AFTER creation", trail)
    require_text(facts, "error_message", MIN_MESSAGE_LENGTH,
                 f"provide a descriptive error_message (min {MIN_MESSAGE_LENGTH} characters)",
                 trail)
    require_flag(facts, "in_lifecycle_block",
                 "postcondition must be placed in a lifecycle block", trail)
    return f"Postcondition validates {attribute} after creation"


def validate_combined_facts(facts: Mapping[str, Any], trail: DiagnosticTrail) -> str:
    uses_pre = (fact_text(facts, "uses_precondition") or "").lower() == "true"
    uses_post = (fact_text(facts, "uses_postcondition") or "").lower() == "true"
    if not (uses_pre and uses_post):
        raise GateFailure(
            FailureRule.MISPLACED_CONDITION,
            "you must use BOTH precondition and postcondition in the same resource",
        )
    trail.passed("precondition and postcondition declared together")

    require_flag(facts, "postcondition_uses_self",
                 "postcondition must use 'self' to reference resource attributes", trail)
    if (fact_text(facts, "precondition_uses_self") or "").lower() == "true":
        raise GateFailure(
            FailureRule.SELF_REFERENCE_IN_PRECONDITION,
            "precondition should NOT use 'self' (resource doesn't exist yet)",
        )
    trail.passed("precondition does not use self")

    pre_validates = fact_text(facts, "precondition_validates")
    post_validates = fact_text(facts, "postcondition_validates")
    if pre_validates is None or post_validates is None:
        raise GateFailure(FailureRule.MISSING_FIELD, "specify what each condition validates")
    if pre_validates == post_validates:
        raise GateFailure(
            FailureRule.INVALID_VALUE,
            "precondition and postcondition should validate different aspects",
        )
    trail.passed(f"precondition validates {pre_validates}; postcondition validates {post_validates}")

    pre_error = fact_text(facts, "precondition_error")
    post_error = fact_text(facts, "postcondition_error")
    if pre_error is None or post_error is None:
        raise GateFailure(FailureRule.MISSING_FIELD,
                          "provide error messages for both conditions")
    if not (is_descriptive_message(pre_error) and is_descriptive_message(post_error)):
        raise GateFailure(
            FailureRule.MESSAGE_TOO_SHORT,
            f"both error messages must be descriptive (min {MIN_MESSAGE_LENGTH} characters)",
        )
    trail.passed("both error messages are descriptive")
    return "Precondition and postcondition combined in one resource"


def validate_data_source_facts(facts: Mapping[str, Any], trail: DiagnosticTrail) -> str:
    require_flag(facts, "uses_data_source", "you must use a data source block", trail)
    require_flag(facts, "uses_postcondition",
                 "data sources should use postconditions to validate fetched data", trail)
    require_flag(facts, "uses_self", "use 'self' to reference data source attributes", trail)
    attribute = require_present(facts, "validated_data_attribute",
                                "specify which data attribute you validated",
                                trail, allow_empty=False)
    require_text(
        facts, "validation_purpose", MIN_DATA_SOURCE_MESSAGE_LENGTH,
        f"explain why this data validation is important "
        f"(min {MIN_DATA_SOURCE_MESSAGE_LENGTH} chars)",
        trail,
    )
    return f"Data source validates {attribute} after reading"


def validate_output_contract_facts(facts: Mapping[str, Any], trail: DiagnosticTrail) -> str:
    require_flag(facts, "uses_output_block",
                 "you must use an output block with conditions", trail)
    require_flag(facts, "uses_precondition",
                 "output blocks typically use preconditions to validate before output", trail)
    target = require_present(facts, "validates_before_output",
                             "specify what you're validating before output",
                             trail, allow_empty=False)
    require_flag(facts, "enforces_module_contract",
                 "output conditions should enforce module contracts", trail)
    require_text(
        facts, "consumer_friendly_error", MIN_CONTRACT_MESSAGE_LENGTH,
        f"provide a consumer-friendly error message (min {MIN_CONTRACT_MESSAGE_LENGTH} chars)",
        trail,
    )
    return f"Output contract validates {target} before output"


# =============================================================================
# STRUCTURE
# =============================================================================

def validate_chain_facts(facts: Mapping[str, Any], trail: DiagnosticTrail) -> str:
    resources = require_int(
        facts, "resource_count",
        "specify how many resources are in your validation chain",
        trail, minimum=3,
        invalid_reason="validation chain must have at least 3 resources",
    )
    require_int(
        facts, "total_conditions",
        "specify total number of conditions (pre + post)",
        trail, minimum=4,
        invalid_reason="must have at least 4 total conditions in the chain",
    )
    require_flag(facts, "conditions_interconnected",
                 "conditions must validate outputs from previous resources", trail)
    require_text(facts, "validation_flow", MIN_FLOW_DOCUMENTATION,
                 f"document your validation flow (min {MIN_FLOW_DOCUMENTATION} chars)", trail)
    require_flag(facts, "uses_depends_on",
                 "use depends_on to ensure proper validation order", trail)
    return f"Validation chain across {resources} resources"


def validate_module_contract_facts(facts: Mapping[str, Any], trail: DiagnosticTrail) -> str:
    require_flag(facts, "created_module", "you must create a reusable module", trail)
    inputs = require_int(
        facts, "input_validations",
        "specify number of input validations (variable preconditions)",
        trail, minimum=2, invalid_reason="module must validate at least 2 inputs",
    )
    outputs = require_int(
        facts, "output_guarantees",
        "specify number of output guarantees (postconditions)",
        trail, minimum=2,
        invalid_reason="module must guarantee at least 2 outputs with postconditions",
    )
    require_text(
        facts, "module_documentation", MIN_MODULE_DOCUMENTATION,
        f"provide comprehensive module documentation (min {MIN_MODULE_DOCUMENTATION} chars)",
        trail,
    )
    require_flag(facts, "contract_clearly_defined",
                 "module contract must be clearly defined with conditions", trail)
    require_int(
        facts, "helpful_error_messages",
        "specify number of helpful error messages",
        trail, minimum=MIN_HELPFUL_MESSAGES,
        invalid_reason=(
            f"provide at least {MIN_HELPFUL_MESSAGES} helpful error messages for consumers"
        ),
    )
    return f"Module contract with {inputs} input validations and {outputs} output guarantees"


# =============================================================================
# EXPRESSIONS
# =============================================================================

def validate_self_reference_facts(facts: Mapping[str, Any], trail: DiagnosticTrail) -> str:
    require_int(
        facts, "self_references", "specify how many 'self' references you used",
        trail, minimum=3,
        invalid_reason="must use 'self' to reference at least 3 different attributes",
    )
    attributes = fact_list(require_present(
        facts, "validated_attributes", "list the attributes you validated with 'self'", trail,
    ))
    if len(attributes) < 3:
        raise GateFailure(FailureRule.INSUFFICIENT_COUNT,
                          "must validate at least 3 attributes")
    trail.passed(f"validated attributes: {', '.join(attributes)}")
    require_flag(facts, "uses_complex_logic",
                 "use complex boolean logic (&&, ||, !) in your conditions", trail)
    require_int(
        facts, "postcondition_count", "specify number of postconditions",
        trail, minimum=2,
        invalid_reason="use at least 2 postconditions with different 'self' validations",
    )
    return f"Validated {len(attributes)} attributes through self"


def validate_conditional_logic_facts(facts: Mapping[str, Any], trail: DiagnosticTrail) -> str:
    require_flag(facts, "uses_complex_boolean",
                 "use complex boolean expressions with multiple operators", trail)
    operators = fact_list(require_present(
        facts, "boolean_operators", "list boolean operators used (&&, ||, !)", trail,
    ))
    for op in (LOGICAL_AND, LOGICAL_OR):
        if op not in operators:
            raise GateFailure(FailureRule.MISSING_OPERATOR, f"must use operator: {op}")
    trail.passed(f"operators used: {', '.join(operators)}")
    require_int(
        facts, "multiple_checks_in_condition",
        "specify number of checks in your condition expression",
        trail, minimum=MIN_CHECKS_IN_CONDITION,
        invalid_reason=f"condition must check at least {MIN_CHECKS_IN_CONDITION} things",
    )
    require_flag(facts, "uses_functions",
                 "use functions in your conditions (length, can, try, etc.)", trail)
    score = require_int(
        facts, "complexity_score", "rate complexity of your validation (1-10)",
        trail, minimum=MIN_COMPLEXITY_RATING,
        invalid_reason=(
            f"validation must be sufficiently complex (score >= {MIN_COMPLEXITY_RATING})"
        ),
    )
    return f"Conditional validation rated {score}/10"


def validate_error_message_facts(facts: Mapping[str, Any], trail: DiagnosticTrail) -> str:
    require_int(
        facts, "error_message_count", "specify number of error messages created",
        trail, minimum=3, invalid_reason="must create at least 3 error messages",
    )
    raw = require_present(facts, "error_messages",
                          "provide your error messages (separated by |)", trail)
    messages = raw.split(MESSAGE_SEPARATOR)
    if len(messages) < 3:
        raise GateFailure(FailureRule.INSUFFICIENT_COUNT,
                          "must provide at least 3 error messages")
    for i, message in enumerate(messages, start=1):
        if not is_descriptive_message(message, MIN_CONTRACT_MESSAGE_LENGTH):
            raise GateFailure(
                FailureRule.MESSAGE_TOO_SHORT,
                f"error message {i} is too short (min {MIN_CONTRACT_MESSAGE_LENGTH} chars)",
            )
    trail.passed(f"{len(messages)} messages are at least {MIN_CONTRACT_MESSAGE_LENGTH} chars")
    require_flag(facts, "includes_context",
                 "error messages must include context about what failed", trail)
    require_flag(facts, "includes_solution_hint",
                 "error messages should hint at how to fix the issue", trail)
    require_flag(facts, "uses_interpolation",
                 "use string interpolation in error messages to show actual values", trail)
    return f"{len(messages)} helpful error messages"
