"""
Submission Payload Normalization.

Converts a raw submission mapping (as decoded from JSON or handed over by
a host tool) into a ProofData value the engine can grade.

Design principles:
- Accept the heterogeneous shapes learners send (lists or single
  entries, embedded JSON strings, flat string maps)
- A sub-structure that cannot be read is dropped, never fatal; the drop
  is recorded as a note that appears in the verdict's trail
- No grading decisions are made here

Recognized keys:
    proof_of_work      - flat map of declared facts
    resource_proof     - list of resource entries
    data_source_proof  - list of data source entries
    module_proof       - a single module entry
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from ..proof import (
    ConditionBlock,
    ConditionKind,
    DataSourceProof,
    LifecycleConfig,
    ModuleProof,
    ProofData,
    ProofFormatError,
    ResourceProof,
    ValidationRule,
)


logger = logging.getLogger(__name__)


class PayloadError(Exception):
    """Raised when the submission itself is not a mapping."""
    pass


# =============================================================================
# NOTES
# =============================================================================

@dataclass
class _Notes:
    """Degradations recorded while normalizing one payload."""
    lines: list[str] = field(default_factory=list)

    def add(self, line: str) -> None:
        logger.warning("Submission degraded: %s", line)
        self.lines.append(line)


def _decode(value: Any, label: str, notes: _Notes) -> Any:
    """Decode an embedded JSON string; other values pass through."""
    if not isinstance(value, str):
        return value
    if not value.strip():
        return None
    try:
        return json.loads(value)
    except json.JSONDecodeError as e:
        notes.add(f"{label} is not valid JSON ({e.msg}); treated as absent")
        return None


def _as_list(value: Any) -> list:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


# =============================================================================
# CONDITIONS AND LIFECYCLE
# =============================================================================

def parse_condition_blocks(value: Any, label: str, notes: _Notes) -> tuple[ConditionBlock, ...]:
    """
    Parse a list of {condition, error_message} entries.

    Entries that are not mappings are dropped with a note.
    """
    blocks = []
    for i, entry in enumerate(_as_list(_decode(value, label, notes)), start=1):
        if not isinstance(entry, Mapping):
            notes.add(f"{label} entry {i} is not an object; ignored")
            continue
        blocks.append(ConditionBlock(
            condition=str(entry.get("condition") or ""),
            error_message=str(entry.get("error_message") or ""),
        ))
    return tuple(blocks)


def parse_lifecycle(value: Any, owner: str, notes: _Notes) -> Optional[LifecycleConfig]:
    """
    Parse a lifecycle block given as a mapping or an embedded JSON string.

    Both singular (`precondition`, as written in configuration) and
    plural keys are accepted.
    """
    label = f"lifecycle of {owner}"
    data = _decode(value, label, notes)
    if data is None:
        return None
    if isinstance(data, list) and len(data) == 1:
        data = data[0]
    if not isinstance(data, Mapping):
        notes.add(f"{label} is not an object; treated as absent")
        return None

    pre = data.get("preconditions", data.get("precondition"))
    post = data.get("postconditions", data.get("postcondition"))
    ignore = data.get("ignore_changes")
    if isinstance(ignore, str):
        ignore = [item.strip() for item in ignore.split(",") if item.strip()]

    return LifecycleConfig(
        create_before_destroy=_as_bool(data.get("create_before_destroy", False)),
        prevent_destroy=_as_bool(data.get("prevent_destroy", False)),
        ignore_changes=tuple(str(item) for item in _as_list(ignore)),
        preconditions=parse_condition_blocks(pre, f"preconditions of {owner}", notes),
        postconditions=parse_condition_blocks(post, f"postconditions of {owner}", notes),
    )


# =============================================================================
# ARTIFACTS
# =============================================================================

def _artifact_fields(entry: Mapping, type_key: str, name_key: str) -> tuple[str, str]:
    resource_type = str(entry.get(type_key) or "")
    name = str(entry.get(name_key) or entry.get("name") or "")
    return resource_type, name


def _object(value: Any, label: str, notes: _Notes) -> dict:
    """Decode an object-valued sub-structure; anything else is dropped with a note."""
    data = _decode(value, label, notes)
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        notes.add(f"{label} is not an object; treated as absent")
        return {}
    return dict(data)


def _meta_arguments(value: Any, owner: str, notes: _Notes) -> dict:
    meta = _object(value, f"meta_arguments of {owner}", notes)
    depends_on = meta.get("depends_on")
    if depends_on is not None and not isinstance(depends_on, (str, list, tuple)):
        notes.add(
            f"depends_on of {owner} must be a list or a comma-separated string, "
            f"got {depends_on!r}; treated as absent"
        )
        del meta["depends_on"]
    return meta


def parse_resource(entry: Mapping, notes: _Notes) -> ResourceProof:
    """
    Raises:
        ProofFormatError: If the entry has no type or name
    """
    resource_type, name = _artifact_fields(entry, "resource_type", "resource_name")
    owner = f"{resource_type or '?'}.{name or '?'}"

    return ResourceProof(
        resource_type=resource_type,
        name=name,
        attributes=_object(entry.get("attributes"), f"attributes of {owner}", notes),
        lifecycle=parse_lifecycle(entry.get("lifecycle"), owner, notes),
        meta_arguments=_meta_arguments(entry.get("meta_arguments"), owner, notes),
    )


def parse_data_source(entry: Mapping, notes: _Notes) -> DataSourceProof:
    """
    Raises:
        ProofFormatError: If the entry has no type or name
    """
    resource_type, name = _artifact_fields(entry, "data_source_type", "data_source_name")
    owner = f"data.{resource_type or '?'}.{name or '?'}"
    return DataSourceProof(
        resource_type=resource_type,
        name=name,
        attributes=_object(entry.get("attributes"), f"attributes of {owner}", notes),
        lifecycle=parse_lifecycle(entry.get("lifecycle"), owner, notes),
    )


def parse_validation_rules(value: Any, label: str, default_kind: ConditionKind,
                           notes: _Notes) -> tuple[ValidationRule, ...]:
    rules = []
    for i, entry in enumerate(_as_list(_decode(value, label, notes)), start=1):
        if not isinstance(entry, Mapping):
            notes.add(f"{label} entry {i} is not an object; ignored")
            continue
        try:
            kind = ConditionKind(entry.get("kind") or default_kind.value)
        except ValueError:
            notes.add(f"{label} entry {i} has unknown kind {entry.get('kind')!r}; "
                      f"assumed {default_kind.value}")
            kind = default_kind
        rules.append(ValidationRule(
            kind=kind,
            condition=str(entry.get("condition") or ""),
            error_message=str(entry.get("error_message") or ""),
            target=str(entry.get("target") or ""),
        ))
    return tuple(rules)


def parse_module(entry: Mapping, notes: _Notes) -> ModuleProof:
    """
    Raises:
        ProofFormatError: If the entry has no module name
    """
    name = str(entry.get("module_name") or entry.get("name") or "")
    label = f"module {name or '?'}"
    try:
        resource_count = int(entry.get("resource_count") or 0)
    except (TypeError, ValueError):
        notes.add(f"resource_count of {label} is not a number; assumed 0")
        resource_count = 0

    return ModuleProof(
        name=name,
        inputs=parse_validation_rules(
            entry.get("input_validations"), f"input_validations of {label}",
            ConditionKind.PRECONDITION, notes,
        ),
        outputs=parse_validation_rules(
            entry.get("output_validations"), f"output_validations of {label}",
            ConditionKind.POSTCONDITION, notes,
        ),
        resource_count=resource_count,
    )


# =============================================================================
# SUBMISSION
# =============================================================================

def _parse_entries(value: Any, label: str, parser, notes: _Notes) -> list:
    parsed = []
    for i, entry in enumerate(_as_list(_decode(value, label, notes)), start=1):
        if not isinstance(entry, Mapping):
            notes.add(f"{label} entry {i} is not an object; ignored")
            continue
        try:
            parsed.append(parser(entry, notes))
        except ProofFormatError as e:
            notes.add(f"{label} entry {i} skipped: {e}")
    return parsed


def _source_tag(resources: list, data_sources: list,
                module: Optional[ModuleProof]) -> str:
    if resources:
        return f"resource:{resources[0].resource_type}"
    if data_sources:
        return f"data:{data_sources[0].resource_type}"
    if module is not None:
        return f"module:{module.name}"
    return "manual"


def normalize_submission(payload: Mapping[str, Any]) -> ProofData:
    """
    Normalize a raw submission into ProofData.

    Raises:
        PayloadError: If the payload is not a mapping
    """
    if not isinstance(payload, Mapping):
        raise PayloadError(
            f"submission must be an object, got {type(payload).__name__}"
        )

    notes = _Notes()

    resources = _parse_entries(
        payload.get("resource_proof"), "resource_proof", parse_resource, notes,
    )
    data_sources = _parse_entries(
        payload.get("data_source_proof"), "data_source_proof", parse_data_source, notes,
    )

    module = None
    raw_module = _decode(payload.get("module_proof"), "module_proof", notes)
    if isinstance(raw_module, list) and len(raw_module) == 1:
        raw_module = raw_module[0]
    if raw_module is not None:
        if not isinstance(raw_module, Mapping):
            notes.add("module_proof is not an object; treated as absent")
        else:
            try:
                module = parse_module(raw_module, notes)
            except ProofFormatError as e:
                notes.add(f"module_proof skipped: {e}")

    manual = payload.get("proof_of_work")
    if manual is not None and not isinstance(manual, Mapping):
        notes.add("proof_of_work is not an object; treated as absent")
        manual = None

    proof = ProofData(
        resources=tuple(resources),
        data_sources=tuple(data_sources),
        module=module,
        manual=dict(manual) if manual is not None else None,
        source=_source_tag(resources, data_sources, module),
        notes=tuple(notes.lines),
    )
    logger.debug(
        "Normalized submission from %s: %d resource(s), %d data source(s), module=%s, manual=%s",
        proof.source, len(resources), len(data_sources),
        module.name if module else None, proof.has_manual_proof,
    )
    return proof
