"""
Readers for flat proof facts.

Facts arrive as strings (a map of strings on the wire), but a JSON
submission may carry real booleans and numbers. Every reader coerces
to text first, so both shapes behave the same.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from ..domain import FailureRule, GateFailure
from ..verdict import DiagnosticTrail


def fact_text(facts: Mapping[str, Any], key: str) -> Optional[str]:
    """The fact as stripped text, or None when the key is absent."""
    if key not in facts or facts[key] is None:
        return None
    return str(facts[key]).strip()


def fact_list(value: str, separator: str = ",") -> list[str]:
    """Split a list fact, dropping blanks."""
    return [item.strip() for item in value.split(separator) if item.strip()]


def require_flag(facts: Mapping[str, Any], key: str, reason: str,
                 trail: DiagnosticTrail) -> None:
    """
    Raises:
        GateFailure: If the fact is not the literal `true` (MISSING_FIELD)
    """
    value = fact_text(facts, key)
    if value is None or value.lower() != "true":
        raise GateFailure(FailureRule.MISSING_FIELD, reason)
    trail.passed(f"{key} = true")


def require_present(facts: Mapping[str, Any], key: str, reason: str,
                    trail: DiagnosticTrail, allow_empty: bool = True) -> str:
    """
    Raises:
        GateFailure: If the fact is absent, or empty when not allowed (MISSING_FIELD)
    """
    value = fact_text(facts, key)
    if value is None or (not allow_empty and not value):
        raise GateFailure(FailureRule.MISSING_FIELD, reason)
    trail.passed(f"{key} provided")
    return value


def require_text(facts: Mapping[str, Any], key: str, min_length: int, reason: str,
                 trail: DiagnosticTrail) -> str:
    """
    Raises:
        GateFailure: If the fact is absent or shorter than min_length
            (MISSING_FIELD / MESSAGE_TOO_SHORT)
    """
    value = fact_text(facts, key)
    if value is None:
        raise GateFailure(FailureRule.MISSING_FIELD, reason)
    if len(value) < min_length:
        raise GateFailure(FailureRule.MESSAGE_TOO_SHORT, reason)
    trail.passed(f"{key} has {len(value)} characters")
    return value


def require_int(facts: Mapping[str, Any], key: str, missing_reason: str,
                trail: DiagnosticTrail, minimum: Optional[int] = None,
                exactly: Optional[int] = None, invalid_reason: str = "") -> int:
    """
    Parse an integer fact and check it against a floor or an exact value.

    Raises:
        GateFailure: If absent (MISSING_FIELD), or not an integer or out
            of range (INVALID_VALUE)
    """
    value = fact_text(facts, key)
    if value is None:
        raise GateFailure(FailureRule.MISSING_FIELD, missing_reason)

    try:
        number = int(value)
    except ValueError:
        raise GateFailure(
            FailureRule.INVALID_VALUE,
            invalid_reason or f"{key} must be a number, got: {value}",
        )

    if exactly is not None and number != exactly:
        raise GateFailure(
            FailureRule.INVALID_VALUE,
            invalid_reason or f"{key} must be exactly {exactly}, got: {value}",
        )
    if minimum is not None and number < minimum:
        raise GateFailure(
            FailureRule.INVALID_VALUE,
            invalid_reason or f"{key} must be at least {minimum}, got: {value}",
        )

    trail.passed(f"{key} = {number}")
    return number


def require_members(values: list[str], required: tuple[str, ...], label: str,
                    trail: DiagnosticTrail) -> None:
    """
    Raises:
        GateFailure: Naming every required member that is missing (MISSING_FIELD)
    """
    missing = [item for item in required if item not in values]
    if missing:
        raise GateFailure(
            FailureRule.MISSING_FIELD,
            f"missing {label}: {', '.join(missing)}",
        )
    trail.passed(f"all {label} present: {', '.join(required)}")
