"""
Tests for the command-line interface.

These tests verify:
1. Listing and showing challenges
2. Validate exit codes: 0 passed, 1 failed, 2 unusable input
3. The reward token is printed only for a passing submission
"""

import json

import pytest

from ctfgrader.cli.main import create_parser, format_result, main
from ctfgrader.domain import FailureRule, ValidationResult
from ctfgrader.registry import load_registry


COUNT_SUBMISSION = {
    "proof_of_work": {"count_value": "3", "resource_ids": "a,b,c", "uses_count_index": "true"},
}


def write_submission(tmp_path, payload) -> str:
    path = tmp_path / "submission.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return str(path)


# =============================================================================
# LISTING TESTS
# =============================================================================

class TestChallengeCommands:

    def test_list_all(self, capsys):
        assert main(["challenges"]) == 0
        out = capsys.readouterr().out

        registry = load_registry()
        assert "precondition_guardian" in out
        assert f"Total: 18 challenges, {registry.total_points()} points" in out

    def test_list_by_category(self, capsys):
        assert main(["challenges", "--category", "meta-arguments"]) == 0
        out = capsys.readouterr().out

        assert "count_master" in out
        assert "precondition_guardian" not in out
        assert "Total: 8 challenges" in out

    def test_list_never_prints_tokens(self, capsys):
        main(["challenges"])
        assert "flag{" not in capsys.readouterr().out

    def test_show(self, capsys):
        assert main(["show", "lifecycle_expert"]) == 0
        out = capsys.readouterr().out
        assert "Lifecycle" in out
        assert "flag{" not in out

    def test_show_unknown(self, capsys):
        assert main(["show", "nope"]) == 2
        assert "Unknown challenge: nope" in capsys.readouterr().err

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "usage" in capsys.readouterr().out.lower()


# =============================================================================
# VALIDATE TESTS
# =============================================================================

class TestValidateCommand:

    def test_passing_submission(self, tmp_path, capsys):
        path = write_submission(tmp_path, COUNT_SUBMISSION)

        assert main(["validate", "count_master", path]) == 0
        out = capsys.readouterr().out
        token = load_registry().get("count_master").reward_token
        assert "PASSED" in out
        assert token in out

    def test_failing_submission(self, tmp_path, capsys):
        payload = {"proof_of_work": {**COUNT_SUBMISSION["proof_of_work"], "count_value": "2"}}
        path = write_submission(tmp_path, payload)

        assert main(["validate", "count_master", path]) == 1
        out = capsys.readouterr().out
        assert "FAILED [invalid_value]" in out
        assert "flag{" not in out

    def test_unknown_challenge(self, tmp_path, capsys):
        path = write_submission(tmp_path, COUNT_SUBMISSION)
        assert main(["validate", "nope", path]) == 2

    def test_missing_file(self, tmp_path, capsys):
        assert main(["validate", "count_master", str(tmp_path / "missing.json")]) == 2
        assert "Cannot read submission" in capsys.readouterr().err

    def test_invalid_json(self, tmp_path, capsys):
        path = tmp_path / "submission.json"
        path.write_text("{not json", encoding="utf-8")

        assert main(["validate", "count_master", str(path)]) == 2
        assert "not valid JSON" in capsys.readouterr().err

    def test_non_utf8_submission(self, tmp_path, capsys):
        path = tmp_path / "submission.json"
        path.write_bytes(b'{"proof_of_work": {"x": "\xff\xfe"}}')

        assert main(["validate", "count_master", str(path)]) == 2
        assert "not valid UTF-8" in capsys.readouterr().err

    def test_non_object_submission(self, tmp_path, capsys):
        path = write_submission(tmp_path, [1, 2, 3])
        assert main(["validate", "count_master", path]) == 2

    def test_broken_registry(self, tmp_path, capsys):
        registry = tmp_path / "broken.yaml"
        registry.write_text("challenges: 3\n", encoding="utf-8")

        assert main(["--registry", str(registry), "challenges"]) == 2
        assert "Malformed registry file" in capsys.readouterr().err


# =============================================================================
# FORMATTING AND PARSER TESTS
# =============================================================================

class TestFormatting:

    def test_failed_result_shows_rule_and_trail(self):
        result = ValidationResult(
            success=False,
            message="count must be exactly 3, got: 2",
            diagnostics=("[FAIL] count must be exactly 3, got: 2",),
            rule=FailureRule.INVALID_VALUE,
        )
        text = format_result(result)

        assert "  [FAIL] count must be exactly 3, got: 2" in text
        assert text.endswith("FAILED [invalid_value]: count must be exactly 3, got: 2")


class TestArgparse:

    def test_validate_requires_both_arguments(self):
        parser = create_parser()
        with pytest.raises(SystemExit):
            parser.parse_args(["validate", "count_master"])

    def test_unknown_difficulty_is_rejected(self):
        parser = create_parser()
        with pytest.raises(SystemExit):
            parser.parse_args(["challenges", "--difficulty", "impossible"])
