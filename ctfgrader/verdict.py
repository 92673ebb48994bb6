"""
Verdict and Diagnostic Assembly.

Every analyzer writes to a DiagnosticTrail as it goes and raises
GateFailure at the first gate that does not hold. `run_checks` turns
either outcome into a Verdict; `assemble_result` attaches the
challenge's reward token and points.

A failed trail always ends with the failing check, so a learner can see
exactly which step stopped the submission.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

from .domain import Challenge, FailureRule, GateFailure, ValidationResult


PASS_PREFIX = "[PASS]"
FAIL_PREFIX = "[FAIL]"
INFO_PREFIX = "[INFO]"

# An analyzer inspects its subject, writes to the trail, and returns a
# one-line summary of what was demonstrated. It raises GateFailure otherwise.
Analyzer = Callable[[Any, "DiagnosticTrail"], str]


# =============================================================================
# DIAGNOSTIC TRAIL
# =============================================================================

class DiagnosticTrail:
    """Ordered diagnostic lines for one validation call."""

    def __init__(self, notes: tuple[str, ...] = ()):
        self._lines: list[str] = [f"{INFO_PREFIX} {note}" for note in notes]

    def info(self, line: str) -> None:
        self._lines.append(f"{INFO_PREFIX} {line}")

    def passed(self, line: str) -> None:
        self._lines.append(f"{PASS_PREFIX} {line}")

    def failed(self, line: str) -> None:
        self._lines.append(f"{FAIL_PREFIX} {line}")

    @property
    def lines(self) -> tuple[str, ...]:
        return tuple(self._lines)

    def __len__(self) -> int:
        return len(self._lines)


# =============================================================================
# VERDICT
# =============================================================================

@dataclass(frozen=True)
class Verdict:
    """Outcome of one analyzer run, before a challenge is attached."""
    passed: bool
    message: str
    diagnostics: tuple[str, ...]
    rule: Optional[FailureRule] = None


def run_checks(
    analyzer: Analyzer,
    subject: Any,
    notes: tuple[str, ...] = (),
) -> Verdict:
    """
    Run an analyzer against its subject and capture the trail.

    This is the binary pass/fail gate. There is no partial credit.
    """
    trail = DiagnosticTrail(notes)

    try:
        summary = analyzer(subject, trail)
    except GateFailure as e:
        trail.failed(e.reason)
        return Verdict(
            passed=False,
            message=e.reason,
            diagnostics=trail.lines,
            rule=e.rule,
        )

    return Verdict(
        passed=True,
        message=summary,
        diagnostics=trail.lines,
    )


def assemble_result(
    challenge: Challenge,
    verdict: Verdict,
    proof_source: str = "",
) -> ValidationResult:
    """Normalize a Verdict into the caller-facing ValidationResult."""
    if not verdict.passed:
        return ValidationResult(
            success=False,
            message=verdict.message,
            diagnostics=verdict.diagnostics,
            rule=verdict.rule,
            proof_source=proof_source,
        )

    return ValidationResult(
        success=True,
        message=f"Solved '{challenge.name}' for {challenge.points} points: {verdict.message}",
        diagnostics=verdict.diagnostics,
        reward_token=challenge.reward_token,
        points=challenge.points,
        proof_source=proof_source,
    )


def reject(challenge: Challenge, rule: FailureRule, reason: str, proof_source: str = "",
           notes: tuple[str, ...] = ()) -> ValidationResult:
    """A failed result for a submission no analyzer could run on."""
    trail = DiagnosticTrail(notes)
    trail.failed(reason)
    return assemble_result(
        challenge,
        Verdict(passed=False, message=reason, diagnostics=trail.lines, rule=rule),
        proof_source,
    )
