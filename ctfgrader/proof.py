"""
Proof Model: the normalized submission contract for the grader.

A learner never hands the engine raw configuration text. The caller
assembles a ProofData value describing what was declared:

    ResourceProof    - A managed resource with its lifecycle and meta-arguments
    DataSourceProof  - A data source read at plan time
    ModuleProof      - A reusable module with input/output validation rules
    manual           - A flat map of declared facts ("proof_of_work")

Exactly one form drives dispatch. Structured proofs win over the flat
map when both are supplied.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Mapping, Optional


class ProofFormatError(Exception):
    """Raised when a proof object is constructed without its identity."""
    pass


class ConditionKind(Enum):
    """Where a condition runs relative to the artifact's creation."""
    PRECONDITION = "precondition"
    POSTCONDITION = "postcondition"


class ProofKind(Enum):
    """The two input shapes the dispatcher understands."""
    STRUCTURED = "structured"
    FLAT = "flat"


# =============================================================================
# CONDITION BLOCKS
# =============================================================================

@dataclass(frozen=True)
class ConditionBlock:
    """
    A single precondition or postcondition block.

    Only the surface text is kept. Correctness is decided by inspecting
    the text, never by evaluating it.
    """
    condition: str
    error_message: str


@dataclass(frozen=True)
class LifecycleConfig:
    """The lifecycle block of a resource or data source."""
    create_before_destroy: bool = False
    prevent_destroy: bool = False
    ignore_changes: tuple[str, ...] = ()
    preconditions: tuple[ConditionBlock, ...] = ()
    postconditions: tuple[ConditionBlock, ...] = ()

    def all_conditions(self) -> Iterator[tuple[ConditionKind, ConditionBlock]]:
        """Yield every condition block tagged with its kind, preconditions first."""
        for block in self.preconditions:
            yield ConditionKind.PRECONDITION, block
        for block in self.postconditions:
            yield ConditionKind.POSTCONDITION, block


# =============================================================================
# ARTIFACT PROOFS
# =============================================================================

@dataclass(frozen=True)
class ArtifactProof:
    """Identity, attributes and lifecycle shared by every declared artifact."""
    resource_type: str
    name: str
    attributes: Mapping[str, Any] = field(default_factory=dict)
    lifecycle: Optional[LifecycleConfig] = None

    # Label used in construction errors
    KIND = "artifact"

    def __post_init__(self):
        if not self.resource_type:
            raise ProofFormatError(f"{self.KIND} proof requires a type")
        if not self.name:
            raise ProofFormatError(
                f"{self.KIND} proof of type '{self.resource_type}' requires a name"
            )

    @property
    def address(self) -> str:
        return f"{self.resource_type}.{self.name}"

    @property
    def preconditions(self) -> tuple[ConditionBlock, ...]:
        return self.lifecycle.preconditions if self.lifecycle else ()

    @property
    def postconditions(self) -> tuple[ConditionBlock, ...]:
        return self.lifecycle.postconditions if self.lifecycle else ()


@dataclass(frozen=True)
class DataSourceProof(ArtifactProof):
    """
    A declared data source.

    Data sources exist at read time, so only postconditions are
    meaningful for them.
    """
    KIND = "data source"

    @property
    def address(self) -> str:
        return f"data.{self.resource_type}.{self.name}"


@dataclass(frozen=True)
class ResourceProof(ArtifactProof):
    """A declared managed resource, including its meta-arguments."""
    meta_arguments: Mapping[str, Any] = field(default_factory=dict)

    KIND = "resource"

    @property
    def depends_on(self) -> tuple[str, ...]:
        """
        The explicit dependencies declared through depends_on.

        Accepts a list or a comma-separated string. Any other value
        declares no dependency.
        """
        value = self.meta_arguments.get("depends_on")
        if isinstance(value, str):
            items = value.split(",")
        elif isinstance(value, (list, tuple)):
            items = [str(item) for item in value if item is not None]
        else:
            return ()
        return tuple(item.strip() for item in items if item.strip())


# =============================================================================
# MODULE PROOF
# =============================================================================

@dataclass(frozen=True)
class ValidationRule:
    """A validation rule on a module input or output."""
    kind: ConditionKind
    condition: str
    error_message: str
    target: str = ""


@dataclass(frozen=True)
class ModuleProof:
    """A reusable module and its contract."""
    name: str
    inputs: tuple[ValidationRule, ...] = ()
    outputs: tuple[ValidationRule, ...] = ()
    resource_count: int = 0

    def __post_init__(self):
        if not self.name:
            raise ProofFormatError("module proof requires a name")

    @property
    def rules(self) -> tuple[ValidationRule, ...]:
        return self.inputs + self.outputs


# =============================================================================
# PROOF DATA
# =============================================================================

@dataclass(frozen=True)
class ProofData:
    """
    The normalized submission handed to the engine.

    `notes` records sub-structures the boundary had to drop (for example
    a lifecycle block that was not valid JSON). They are surfaced at the
    top of every diagnostic trail.
    """
    resources: tuple[ResourceProof, ...] = ()
    data_sources: tuple[DataSourceProof, ...] = ()
    module: Optional[ModuleProof] = None
    manual: Optional[Mapping[str, Any]] = None
    source: str = "manual"
    notes: tuple[str, ...] = ()

    @property
    def has_structured_proof(self) -> bool:
        return bool(self.resources or self.data_sources or self.module is not None)

    @property
    def has_manual_proof(self) -> bool:
        return self.manual is not None

    @property
    def kind(self) -> Optional[ProofKind]:
        """Which input shape drives dispatch, or None when nothing was supplied."""
        if self.has_structured_proof:
            return ProofKind.STRUCTURED
        if self.has_manual_proof:
            return ProofKind.FLAT
        return None

    def artifacts(self) -> Iterator[ArtifactProof]:
        """Resources first, then data sources."""
        yield from self.resources
        yield from self.data_sources
