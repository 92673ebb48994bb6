"""
Meta-Argument Flat Validators.

Each validator reads the facts a learner declared about their
configuration (counts, flags, lists) and checks them against the
feature's thresholds:

    count                 - exactly 3 instances addressed by count.index
    for_each              - one instance per difficulty tier via each.key/value
    depends_on            - an explicit chain of 3+ resources
    lifecycle             - create_before_destroy plus ignore_changes
    meta grandmaster      - all four meta-arguments across 5+ resources
    dynamic blocks        - a dynamic block iterating 2+ times
    locals + count        - names computed from locals and count.index
    conditional creation  - count = condition ? 1 : 0
"""

from __future__ import annotations

from typing import Any, Mapping

from ..domain import FailureRule, GateFailure
from ..verdict import DiagnosticTrail
from .facts import (
    fact_list,
    require_flag,
    require_int,
    require_members,
    require_present,
    require_text,
)


# =============================================================================
# CONFIGURATION CONSTANTS
# =============================================================================

REQUIRED_COUNT = 3
REQUIRED_TIERS = ("beginner", "intermediate", "advanced")
FOREACH_TYPES = ("map", "set")
MIN_DEPENDENCY_CHAIN = 3
MIN_LIFECYCLE_RULES = 2
MIN_JUSTIFICATION_LENGTH = 10
REQUIRED_META_ARGUMENTS = ("count", "for_each", "depends_on", "lifecycle")
MIN_GRANDMASTER_RESOURCES = 5
MIN_CONFIG_LINES = 50
MIN_ARCHITECTURE_LENGTH = 50
MIN_DYNAMIC_ITERATIONS = 2
MIN_LOCALS_COUNT = 2


# =============================================================================
# VALIDATORS
# =============================================================================

def validate_count(facts: Mapping[str, Any], trail: DiagnosticTrail) -> str:
    """Exactly 3 resources created with count, addressed by count.index."""
    require_int(
        facts, "count_value",
        "missing 'count_value' in proof - use the count meta-argument",
        trail, exactly=REQUIRED_COUNT,
        invalid_reason=(
            f"count must be exactly {REQUIRED_COUNT}, got: {facts.get('count_value')}"
        ),
    )

    ids = fact_list(require_present(
        facts, "resource_ids",
        "missing 'resource_ids' - provide a comma-separated list of created resource IDs",
        trail,
    ))
    if len(ids) != REQUIRED_COUNT:
        raise GateFailure(
            FailureRule.INVALID_VALUE,
            f"expected {REQUIRED_COUNT} resource IDs, got {len(ids)}",
        )
    trail.passed(f"sequential resource IDs: {', '.join(ids)}")

    require_flag(
        facts, "uses_count_index",
        "you must use count.index in your resource configuration", trail,
    )
    return f"Created {REQUIRED_COUNT} resources addressed by count.index"


def validate_for_each(facts: Mapping[str, Any], trail: DiagnosticTrail) -> str:
    """One resource per difficulty tier, iterated with each.key / each.value."""
    foreach_type = require_present(
        facts, "foreach_type", "missing 'foreach_type' - specify 'map' or 'set'", trail,
    )
    if foreach_type not in FOREACH_TYPES:
        raise GateFailure(
            FailureRule.INVALID_VALUE,
            f"foreach_type must be 'map' or 'set', got: {foreach_type}",
        )

    tiers = fact_list(require_present(
        facts, "difficulties",
        "missing 'difficulties' - provide a comma-separated list", trail,
    ))
    require_members(tiers, REQUIRED_TIERS, "difficulty level(s)", trail)

    require_flag(
        facts, "uses_each",
        "you must use each.key or each.value in your configuration", trail,
    )
    return f"for_each over a {foreach_type} covers every difficulty tier"


def validate_depends_on(facts: Mapping[str, Any], trail: DiagnosticTrail) -> str:
    """An explicit depends_on chain of at least 3 resources, with its order documented."""
    length = require_int(
        facts, "dependency_chain_length",
        "specify how many resources are in your dependency chain",
        trail, minimum=MIN_DEPENDENCY_CHAIN,
        invalid_reason=(
            f"dependency chain must have at least {MIN_DEPENDENCY_CHAIN} resources, "
            f"got: {facts.get('dependency_chain_length')}"
        ),
    )
    require_flag(
        facts, "uses_depends_on", "you must use the explicit depends_on meta-argument", trail,
    )

    chain = fact_list(require_present(
        facts, "resource_chain",
        "missing 'resource_chain' - provide comma-separated resource names", trail,
    ))
    if len(chain) < MIN_DEPENDENCY_CHAIN:
        raise GateFailure(
            FailureRule.INSUFFICIENT_COUNT,
            f"resource chain must include at least {MIN_DEPENDENCY_CHAIN} resources",
        )
    trail.passed(f"chain: {' -> '.join(chain)}")

    require_present(
        facts, "dependency_order",
        "missing 'dependency_order' - document your dependency sequence", trail,
    )
    return f"Dependency chain of {length} resources with documented order"


def validate_lifecycle(facts: Mapping[str, Any], trail: DiagnosticTrail) -> str:
    """create_before_destroy and ignore_changes, with a justification."""
    require_flag(
        facts, "uses_create_before_destroy",
        "you must use lifecycle.create_before_destroy", trail,
    )
    ignored = require_present(
        facts, "ignore_changes",
        "you must specify lifecycle.ignore_changes with at least one attribute",
        trail, allow_empty=False,
    )
    require_int(
        facts, "lifecycle_rules_count",
        "missing 'lifecycle_rules_count' - how many lifecycle rules did you use?",
        trail, minimum=MIN_LIFECYCLE_RULES,
        invalid_reason=f"you must use at least {MIN_LIFECYCLE_RULES} lifecycle rules",
    )
    require_text(
        facts, "lifecycle_justification", MIN_JUSTIFICATION_LENGTH,
        "provide 'lifecycle_justification' explaining why you used these lifecycle rules",
        trail,
    )
    return f"Lifecycle rules applied, ignoring changes to: {ignored}"


def validate_meta_grandmaster(facts: Mapping[str, Any], trail: DiagnosticTrail) -> str:
    """All four meta-arguments combined in one sizeable, documented configuration."""
    used = fact_list(require_present(
        facts, "meta_arguments_used",
        "missing 'meta_arguments_used' - provide a comma-separated list", trail,
    ))
    require_members(used, REQUIRED_META_ARGUMENTS, "meta-arguments", trail)

    total = require_int(
        facts, "total_resources", "missing 'total_resources' count",
        trail, minimum=MIN_GRANDMASTER_RESOURCES,
        invalid_reason=(
            f"you must create at least {MIN_GRANDMASTER_RESOURCES} resources, "
            f"got: {facts.get('total_resources')}"
        ),
    )
    require_int(
        facts, "config_lines",
        "missing 'config_lines' - how many lines is your configuration?",
        trail, minimum=MIN_CONFIG_LINES,
        invalid_reason=(
            f"configuration must be at least {MIN_CONFIG_LINES} lines to "
            f"demonstrate complexity"
        ),
    )
    require_text(
        facts, "architecture_description", MIN_ARCHITECTURE_LENGTH,
        f"provide a detailed 'architecture_description' (min {MIN_ARCHITECTURE_LENGTH} "
        f"chars) of your infrastructure",
        trail,
    )
    return f"All four meta-arguments combined across {total} resources"


def validate_dynamic_blocks(facts: Mapping[str, Any], trail: DiagnosticTrail) -> str:
    """A dynamic block generating at least 2 nested blocks."""
    require_flag(
        facts, "uses_dynamic_blocks",
        "you must use dynamic blocks in your configuration", trail,
    )
    iterations = require_int(
        facts, "dynamic_iterations",
        "missing 'dynamic_iterations' - how many iterations in your dynamic block?",
        trail, minimum=MIN_DYNAMIC_ITERATIONS,
        invalid_reason=(
            f"dynamic block must iterate at least {MIN_DYNAMIC_ITERATIONS} times, "
            f"got: {facts.get('dynamic_iterations')}"
        ),
    )
    return f"Dynamic block generated {iterations} nested blocks"


def validate_locals_count(facts: Mapping[str, Any], trail: DiagnosticTrail) -> str:
    """Resource names computed from locals and count.index."""
    require_flag(facts, "uses_locals", "you must define and use locals", trail)
    count = require_int(
        facts, "count_value", "missing 'count_value'",
        trail, minimum=MIN_LOCALS_COUNT,
        invalid_reason=(
            f"count must be at least {MIN_LOCALS_COUNT}, got: {facts.get('count_value')}"
        ),
    )

    names = fact_list(require_present(
        facts, "resource_names",
        "missing 'resource_names' - provide a comma-separated list of generated names",
        trail,
    ))
    if len(names) != count:
        raise GateFailure(
            FailureRule.INVALID_VALUE,
            f"expected {count} resource names, got {len(names)}",
        )
    trail.passed(f"generated names: {', '.join(names)}")

    require_flag(
        facts, "uses_count_index_in_locals",
        "you must use count.index with locals to compute names", trail,
    )
    return f"{count} resource names computed from locals and count.index"


def validate_conditional_creation(facts: Mapping[str, Any], trail: DiagnosticTrail) -> str:
    """count = var.condition ? 1 : 0, demonstrated for both outcomes."""
    require_flag(
        facts, "uses_conditional_count",
        "you must use conditional count (count = condition ? 1 : 0)", trail,
    )
    require_flag(
        facts, "uses_variable_condition", "condition must be based on a variable", trail,
    )

    if "condition_true_result" not in facts or "condition_false_result" not in facts:
        raise GateFailure(
            FailureRule.MISSING_FIELD,
            "you must demonstrate both true and false conditions",
        )
    trail.passed("both true and false outcomes demonstrated")

    pattern = require_present(
        facts, "conditional_pattern",
        "missing 'conditional_pattern' - document your ternary pattern", trail,
    )
    if "?" not in pattern or ":" not in pattern:
        raise GateFailure(
            FailureRule.INVALID_VALUE,
            "conditional_pattern must show the ternary operator (? :)",
        )
    trail.passed(f"ternary pattern: {pattern}")
    return "Resource is created conditionally with a ternary count"
