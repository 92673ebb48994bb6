"""
Condition Placement Analyzers.

Core rule:
    A precondition runs before the artifact exists, so it must not
    reference `self`. A postcondition runs against the created artifact,
    so it must reference `self` at least once.

Analyzers:
    - Precondition Guardian: preconditions validate external inputs only
    - Postcondition Validator: postconditions validate computed state
    - Condition Master: both kinds declared on the same resource
    - Data Source Validator: postconditions on fetched data
    - Output Contract: output preconditions guard module consumers
"""

from __future__ import annotations

from typing import Optional, Sequence

from ..conditions import (
    MIN_CONTRACT_MESSAGE_LENGTH,
    MIN_DATA_SOURCE_MESSAGE_LENGTH,
    MIN_MESSAGE_LENGTH,
    extract_self_references,
    distinct_self_references,
    is_descriptive_message,
    uses_self_reference,
)
from ..domain import FailureRule, GateFailure
from ..proof import ArtifactProof, ConditionBlock, ConditionKind, ProofData
from ..verdict import DiagnosticTrail


# =============================================================================
# SHARED GATES
# =============================================================================

def require_condition_text(label: str, condition: str) -> None:
    """
    Raises:
        GateFailure: If the condition is blank (EMPTY_CONDITION)
    """
    if not (condition or "").strip():
        raise GateFailure(
            FailureRule.EMPTY_CONDITION,
            f"{label} has an empty condition",
        )


def require_no_self_reference(label: str, condition: str, trail: DiagnosticTrail) -> None:
    """
    Raises:
        GateFailure: If a precondition references self
            (SELF_REFERENCE_IN_PRECONDITION)
    """
    if uses_self_reference(condition):
        attrs = ", ".join(f"self.{a}" for a in extract_self_references(condition))
        trail.info(f"{label} condition: {condition}")
        raise GateFailure(
            FailureRule.SELF_REFERENCE_IN_PRECONDITION,
            f"{label} references {attrs}; preconditions run before the resource "
            f"exists and must validate external inputs only",
        )


def require_self_reference(label: str, condition: str, trail: DiagnosticTrail) -> None:
    """
    Raises:
        GateFailure: If a postcondition never references self
            (MISSING_SELF_REFERENCE)
    """
    if not uses_self_reference(condition):
        trail.info(f"{label} condition: {condition}")
        raise GateFailure(
            FailureRule.MISSING_SELF_REFERENCE,
            f"{label} does not reference self; postconditions must validate "
            f"the artifact's computed attributes (e.g. self.id)",
        )


def require_descriptive(label: str, message: str, min_length: int) -> None:
    """
    Raises:
        GateFailure: If the error message is under min_length (MESSAGE_TOO_SHORT)
    """
    if not is_descriptive_message(message, min_length):
        length = len((message or "").strip())
        raise GateFailure(
            FailureRule.MESSAGE_TOO_SHORT,
            f"{label} error_message must be at least {min_length} characters "
            f"(got {length})",
        )


def _count_short(blocks: Sequence[ConditionBlock], min_length: int) -> int:
    return sum(1 for b in blocks if not is_descriptive_message(b.error_message, min_length))


# =============================================================================
# PRECONDITION GUARDIAN
# =============================================================================

def analyze_preconditions(proof: ProofData, trail: DiagnosticTrail) -> str:
    """
    Validate precondition placement on the first resource that declares one.

    Every precondition must have a condition, must not reference self,
    and must carry a descriptive error message.
    """
    candidates = [r for r in proof.resources if r.preconditions]
    if not candidates:
        raise GateFailure(
            FailureRule.NO_STRUCTURED_PROOF,
            "No structured proof: no resource declares a precondition in its lifecycle block",
        )

    resource = candidates[0]
    trail.info(
        f"Found resource {resource.address} with "
        f"{len(resource.preconditions)} precondition(s)"
    )

    for i, block in enumerate(resource.preconditions, start=1):
        label = f"Precondition {i} on {resource.address}"
        require_condition_text(label, block.condition)
        require_no_self_reference(label, block.condition, trail)
        trail.passed(f"{label} validates external inputs: {block.condition}")
        require_descriptive(label, block.error_message, MIN_MESSAGE_LENGTH)
        trail.passed(f"{label} has a descriptive error message")

    return (
        f"{resource.address} guards its creation with "
        f"{len(resource.preconditions)} precondition(s)"
    )


# =============================================================================
# POSTCONDITION VALIDATOR
# =============================================================================

def _first_with_postconditions(proof: ProofData) -> Optional[ArtifactProof]:
    for artifact in proof.artifacts():
        if artifact.postconditions:
            return artifact
    return None


def analyze_postconditions(proof: ProofData, trail: DiagnosticTrail) -> str:
    """
    Validate postconditions on the first resource (then data source)
    that declares them.
    """
    artifact = _first_with_postconditions(proof)
    if artifact is None:
        raise GateFailure(
            FailureRule.NO_STRUCTURED_PROOF,
            "No postconditions found on any resource or data source",
        )

    trail.info(
        f"Found {artifact.address} with {len(artifact.postconditions)} postcondition(s)"
    )

    for i, block in enumerate(artifact.postconditions, start=1):
        label = f"Postcondition {i} on {artifact.address}"
        require_condition_text(label, block.condition)
        require_self_reference(label, block.condition, trail)
        attrs = distinct_self_references([block.condition])
        trail.passed(
            f"{label} validates computed state: "
            + ", ".join(f"self.{a}" for a in attrs)
        )
        require_descriptive(label, block.error_message, MIN_MESSAGE_LENGTH)
        trail.passed(f"{label} has a descriptive error message")

    return (
        f"{artifact.address} verifies its own state with "
        f"{len(artifact.postconditions)} postcondition(s)"
    )


# =============================================================================
# CONDITION MASTER (COMBINED)
# =============================================================================

def _explain_split_placement(proof: ProofData, trail: DiagnosticTrail) -> None:
    """Raise a differentiated failure when pre/post live on different resources."""
    with_pre = [r for r in proof.resources if r.preconditions]
    with_post = [r for r in proof.resources if r.postconditions]

    if with_pre and with_post:
        post_addrs = ", ".join(r.address for r in with_post)
        pre_addrs = ", ".join(r.address for r in with_pre)
        for r in with_pre:
            trail.info(
                f"{r.address} has a precondition but is missing a postcondition here "
                f"(postconditions declared elsewhere: {post_addrs})"
            )
        for r in with_post:
            trail.info(
                f"{r.address} has a postcondition but is missing a precondition here "
                f"(preconditions declared elsewhere: {pre_addrs})"
            )
        raise GateFailure(
            FailureRule.MISPLACED_CONDITION,
            "Preconditions and postconditions are declared on different resources; "
            "declare both in the same lifecycle block",
        )
    if with_pre:
        raise GateFailure(
            FailureRule.MISPLACED_CONDITION,
            f"{with_pre[0].address} has a precondition but is missing a postcondition",
        )
    if with_post:
        raise GateFailure(
            FailureRule.MISPLACED_CONDITION,
            f"{with_post[0].address} has a postcondition but is missing a precondition",
        )
    raise GateFailure(
        FailureRule.NO_STRUCTURED_PROOF,
        "No structured proof: no resource declares preconditions or postconditions",
    )


def analyze_combined_conditions(proof: ProofData, trail: DiagnosticTrail) -> str:
    """
    Validate a single resource carrying both preconditions and postconditions.

    All preconditions must be free of self-references, at least one
    postcondition must reference self, and every error message across
    both lists must be descriptive.
    """
    both = [r for r in proof.resources if r.preconditions and r.postconditions]
    if not both:
        _explain_split_placement(proof, trail)

    resource = both[0]
    trail.info(
        f"Found {resource.address} with {len(resource.preconditions)} precondition(s) "
        f"and {len(resource.postconditions)} postcondition(s)"
    )

    for i, block in enumerate(resource.preconditions, start=1):
        label = f"Precondition {i} on {resource.address}"
        require_condition_text(label, block.condition)
        require_no_self_reference(label, block.condition, trail)
        trail.passed(f"{label} does not reference self")

    self_checked = [b for b in resource.postconditions if uses_self_reference(b.condition)]
    if not self_checked:
        raise GateFailure(
            FailureRule.MISSING_SELF_REFERENCE,
            f"No postcondition on {resource.address} references self; at least one "
            f"must validate the created resource",
        )
    trail.passed(
        f"{len(self_checked)} of {len(resource.postconditions)} postcondition(s) "
        f"reference self"
    )

    blocks = resource.preconditions + resource.postconditions
    short = _count_short(blocks, MIN_MESSAGE_LENGTH)
    if short:
        raise GateFailure(
            FailureRule.MESSAGE_TOO_SHORT,
            f"{short} of {len(blocks)} error message(s) on {resource.address} are "
            f"shorter than {MIN_MESSAGE_LENGTH} characters",
        )
    trail.passed(f"All {len(blocks)} error messages are descriptive")

    return f"{resource.address} validates inputs before and state after creation"


# =============================================================================
# DATA SOURCE VALIDATOR
# =============================================================================

def analyze_data_source_postconditions(proof: ProofData, trail: DiagnosticTrail) -> str:
    """
    Validate postconditions on data sources.

    Data sources exist at read time, so every postcondition must reference
    self, and messages must explain why the fetched data was rejected.
    """
    candidates = [d for d in proof.data_sources if d.postconditions]
    if not candidates:
        raise GateFailure(
            FailureRule.NO_STRUCTURED_PROOF,
            "No structured proof: no data source declares a postcondition",
        )

    total = 0
    for data_source in candidates:
        trail.info(
            f"Found {data_source.address} with "
            f"{len(data_source.postconditions)} postcondition(s)"
        )
        for i, block in enumerate(data_source.postconditions, start=1):
            label = f"Postcondition {i} on {data_source.address}"
            require_condition_text(label, block.condition)
            require_self_reference(label, block.condition, trail)
            trail.passed(f"{label} validates fetched data")
            require_descriptive(label, block.error_message, MIN_DATA_SOURCE_MESSAGE_LENGTH)
            trail.passed(f"{label} explains the failure")
            total += 1

    return f"{len(candidates)} data source(s) validate fetched data with {total} postcondition(s)"


# =============================================================================
# OUTPUT CONTRACT
# =============================================================================

def analyze_output_contract(proof: ProofData, trail: DiagnosticTrail) -> str:
    """
    Validate output preconditions that enforce a module's contract.

    Output values are checked before they are published, so the rules
    are preconditions, cannot reference self, must name what they
    validate, and need consumer-friendly messages.
    """
    module = proof.module
    if module is None:
        raise GateFailure(
            FailureRule.NO_STRUCTURED_PROOF,
            "No structured proof: supply a module proof with output validations",
        )

    guards = [r for r in module.outputs if r.kind == ConditionKind.PRECONDITION]
    trail.info(
        f"Module {module.name} declares {len(module.outputs)} output rule(s), "
        f"{len(guards)} of them preconditions"
    )
    if not guards:
        raise GateFailure(
            FailureRule.MISPLACED_CONDITION,
            f"Module {module.name} has no output precondition; output blocks "
            f"validate before the value is published",
        )

    for i, rule in enumerate(guards, start=1):
        label = f"Output precondition {i} on module {module.name}"
        require_condition_text(label, rule.condition)
        if not rule.target.strip():
            raise GateFailure(
                FailureRule.MISSING_TARGET,
                f"{label} does not say which output it validates",
            )
        require_no_self_reference(label, rule.condition, trail)
        trail.passed(f"{label} guards output '{rule.target}'")
        require_descriptive(label, rule.error_message, MIN_CONTRACT_MESSAGE_LENGTH)
        trail.passed(f"{label} has a consumer-friendly error message")

    return f"Module {module.name} enforces its output contract with {len(guards)} precondition(s)"
