"""
Structural Analyzers.

These analyzers check the structural prerequisites of a feature (how
many artifacts, how many rules, whether ordering is explicit) rather
than the text of any single condition.
"""

from __future__ import annotations

from ..conditions import MIN_CONTRACT_MESSAGE_LENGTH, is_descriptive_message
from ..domain import FailureRule, GateFailure
from ..proof import ProofData
from ..verdict import DiagnosticTrail


MIN_CHAIN_RESOURCES = 3
MIN_CHAIN_CONDITIONS = 4
MIN_MODULE_INPUT_RULES = 2
MIN_MODULE_OUTPUT_RULES = 2


# =============================================================================
# VALIDATION CHAIN
# =============================================================================

def analyze_validation_chain(proof: ProofData, trail: DiagnosticTrail) -> str:
    """
    Validate the prerequisites of a chain of validated resources.

    Requires at least 3 resources, at least 4 conditions across them,
    and an explicit depends_on somewhere in the chain. Whether the
    conditions reference each other's outputs is not checked.
    """
    resources = proof.resources
    if len(resources) < MIN_CHAIN_RESOURCES:
        raise GateFailure(
            FailureRule.INSUFFICIENT_COUNT,
            f"Validation chain must have at least {MIN_CHAIN_RESOURCES} resources "
            f"(found {len(resources)})",
        )
    trail.passed(f"Chain has {len(resources)} resources")

    total = 0
    for resource in resources:
        pre, post = len(resource.preconditions), len(resource.postconditions)
        trail.info(f"{resource.address}: {pre} precondition(s), {post} postcondition(s)")
        total += pre + post

    if total < MIN_CHAIN_CONDITIONS:
        raise GateFailure(
            FailureRule.INSUFFICIENT_COUNT,
            f"Validation chain must declare at least {MIN_CHAIN_CONDITIONS} conditions "
            f"in total (found {total})",
        )
    trail.passed(f"Chain declares {total} conditions")

    ordered = [r for r in resources if r.depends_on]
    if not ordered:
        raise GateFailure(
            FailureRule.MISSING_ORDERING,
            "No resource declares depends_on; use depends_on to make the "
            "validation order explicit",
        )
    for resource in ordered:
        trail.passed(f"{resource.address} depends_on {', '.join(resource.depends_on)}")

    return (
        f"Chain of {len(resources)} resources with {total} conditions "
        f"and explicit ordering"
    )


# =============================================================================
# MODULE CONTRACT
# =============================================================================

def analyze_module_contract(proof: ProofData, trail: DiagnosticTrail) -> str:
    """
    Validate a module's input and output contract.

    At least 2 input rules and 2 output rules, and every rule must carry
    an error message a module consumer can act on.
    """
    module = proof.module
    if module is None:
        raise GateFailure(
            FailureRule.NO_STRUCTURED_PROOF,
            "No structured proof: supply a module proof with input and output validations",
        )
    trail.info(f"Found module {module.name} managing {module.resource_count} resource(s)")

    if len(module.inputs) < MIN_MODULE_INPUT_RULES:
        raise GateFailure(
            FailureRule.INSUFFICIENT_COUNT,
            f"Module must validate at least {MIN_MODULE_INPUT_RULES} inputs "
            f"(found {len(module.inputs)})",
        )
    trail.passed(f"Module validates {len(module.inputs)} input(s)")

    if len(module.outputs) < MIN_MODULE_OUTPUT_RULES:
        raise GateFailure(
            FailureRule.INSUFFICIENT_COUNT,
            f"Module must guarantee at least {MIN_MODULE_OUTPUT_RULES} outputs "
            f"(found {len(module.outputs)})",
        )
    trail.passed(f"Module guarantees {len(module.outputs)} output(s)")

    rules = module.rules
    inadequate = [
        r for r in rules
        if not is_descriptive_message(r.error_message, MIN_CONTRACT_MESSAGE_LENGTH)
    ]
    for rule in inadequate:
        trail.info(f"Rule on '{rule.target or 'unnamed'}' has a short message: {rule.error_message!r}")
    if inadequate:
        raise GateFailure(
            FailureRule.MESSAGE_TOO_SHORT,
            f"{len(inadequate)} of {len(rules)} contract error message(s) are shorter "
            f"than {MIN_CONTRACT_MESSAGE_LENGTH} characters",
        )
    trail.passed(f"All {len(rules)} contract error messages are helpful")

    return (
        f"Module {module.name} validates {len(module.inputs)} inputs and "
        f"guarantees {len(module.outputs)} outputs"
    )
