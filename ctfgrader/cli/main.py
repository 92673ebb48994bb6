"""
Challenge Grader CLI.

Commands:
    ctfgrader challenges [--difficulty D] [--category C]
    ctfgrader show <id>
    ctfgrader validate <id> <submission.json>

Exit codes:
    0 - command succeeded (submission passed)
    1 - submission failed validation
    2 - unknown challenge, unreadable submission or broken registry

The reward token is printed only for a passing submission.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from ..dispatcher import check_registry_coverage, grade
from ..domain import Category, Challenge, Difficulty, ValidationResult
from ..ingestion.payload import PayloadError, normalize_submission
from ..registry import ChallengeRegistry, RegistryError, UnknownChallengeError, load_registry


logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2


# =============================================================================
# OUTPUT FORMATTING
# =============================================================================

def format_challenge_row(challenge: Challenge) -> str:
    """Format a single challenge for the listing."""
    return (
        f"[{challenge.difficulty.value:<12}] {challenge.points:>4} pts | "
        f"{challenge.challenge_id:<24} | {challenge.name}"
    )


def format_challenge_detail(challenge: Challenge) -> str:
    lines = [
        challenge.name,
        "=" * 50,
        f"ID:         {challenge.challenge_id}",
        f"Category:   {challenge.category.value}",
        f"Difficulty: {challenge.difficulty.value}",
        f"Points:     {challenge.points}",
        "",
        challenge.description,
    ]
    return "\n".join(lines)


def format_result(result: ValidationResult) -> str:
    """Format a ValidationResult: trail first, then the outcome."""
    lines = ["DIAGNOSTICS:"]
    lines.extend(f"  {line}" for line in result.diagnostics)
    lines.append("")

    if result.success:
        lines.append(f"PASSED: {result.message}")
        lines.append(f"Points: {result.points}")
        lines.append(f"Token:  {result.reward_token}")
    else:
        rule = f" [{result.rule.value}]" if result.rule else ""
        lines.append(f"FAILED{rule}: {result.message}")

    return "\n".join(lines)


# =============================================================================
# CLI COMMANDS
# =============================================================================

def cmd_challenges(args: argparse.Namespace, registry: ChallengeRegistry) -> int:
    """List challenges, optionally filtered."""
    difficulty = Difficulty(args.difficulty) if args.difficulty else None
    category = Category(args.category) if args.category else None
    challenges = registry.listing(difficulty, category)

    if not challenges:
        print("No challenges match the given filters.")
        return EXIT_OK

    for challenge in challenges:
        print(format_challenge_row(challenge))

    print()
    print(f"Total: {len(challenges)} challenges, "
          f"{registry.total_points(difficulty, category)} points")
    return EXIT_OK


def cmd_show(args: argparse.Namespace, registry: ChallengeRegistry) -> int:
    """Show one challenge."""
    try:
        challenge = registry.get(args.challenge_id)
    except UnknownChallengeError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_USAGE

    print(format_challenge_detail(challenge))
    return EXIT_OK


def cmd_validate(args: argparse.Namespace, registry: ChallengeRegistry) -> int:
    """Grade a submission file against a challenge."""
    path = Path(args.submission)
    try:
        with open(path, "r", encoding="utf-8") as f:
            payload = json.load(f)
    except OSError as e:
        print(f"ERROR: Cannot read submission {path}: {e.strerror}", file=sys.stderr)
        return EXIT_USAGE
    except json.JSONDecodeError as e:
        print(f"ERROR: Submission {path} is not valid JSON: {e.msg}", file=sys.stderr)
        return EXIT_USAGE
    except UnicodeDecodeError as e:
        print(f"ERROR: Submission {path} is not valid UTF-8: {e.reason}", file=sys.stderr)
        return EXIT_USAGE

    try:
        proof = normalize_submission(payload)
        result = grade(registry, args.challenge_id, proof)
    except PayloadError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_USAGE
    except UnknownChallengeError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_USAGE

    print(format_result(result))
    return EXIT_OK if result.success else EXIT_FAILED


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================

def create_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="ctfgrader",
        description="Challenge Grader - Structured Proof Validation Engine",
    )
    parser.add_argument(
        "--registry",
        help="Path to a challenge registry YAML file (defaults to the bundled one)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log routing and grading decisions",
    )

    subparsers = parser.add_subparsers(
        title="commands",
        description="Available commands",
        dest="command",
    )

    # Challenges command
    list_parser = subparsers.add_parser(
        "challenges",
        help="List registered challenges",
    )
    list_parser.add_argument(
        "--difficulty",
        choices=[d.value for d in Difficulty],
        help="Only list challenges of this difficulty",
    )
    list_parser.add_argument(
        "--category",
        choices=[c.value for c in Category],
        help="Only list challenges of this category",
    )
    list_parser.set_defaults(func=cmd_challenges)

    # Show command
    show_parser = subparsers.add_parser(
        "show",
        help="Show one challenge",
    )
    show_parser.add_argument(
        "challenge_id",
        help="Challenge ID to show",
    )
    show_parser.set_defaults(func=cmd_show)

    # Validate command
    validate_parser = subparsers.add_parser(
        "validate",
        help="Grade a submission file",
    )
    validate_parser.add_argument(
        "challenge_id",
        help="Challenge ID to grade against",
    )
    validate_parser.add_argument(
        "submission",
        help="Path to a JSON submission",
    )
    validate_parser.set_defaults(func=cmd_validate)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return EXIT_OK

    try:
        registry = load_registry(args.registry)
        check_registry_coverage(registry)
    except RegistryError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_USAGE

    return args.func(args, registry)


if __name__ == "__main__":
    sys.exit(main())
