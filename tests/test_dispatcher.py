"""
Tests for dispatch and verdict assembly.

These tests verify:
1. Routing by category and feature, structured proofs first
2. Reward tokens and points are released only on success
3. Degradation notes open the diagnostic trail
4. Grading is idempotent
"""

import logging

import pytest

from ctfgrader.dispatcher import (
    FLAT_VALIDATORS,
    STRUCTURED_ANALYZERS,
    grade,
    structured_analyzer_for,
    validate_submission,
)
from ctfgrader.domain import Category, FailureRule, Feature
from ctfgrader.ingestion.payload import normalize_submission
from ctfgrader.proof import ConditionBlock, LifecycleConfig, ProofData, ResourceProof
from ctfgrader.registry import UnknownChallengeError, load_registry
from ctfgrader.verdict import FAIL_PREFIX, INFO_PREFIX


@pytest.fixture(scope="module")
def registry():
    return load_registry()


def guarded_resource(condition: str = "var.x > 0",
                     message: str = "x must be positive") -> ResourceProof:
    return ResourceProof(
        resource_type="ctf_challenge",
        name="r1",
        lifecycle=LifecycleConfig(preconditions=(ConditionBlock(condition, message),)),
    )


COUNT_FACTS = {"count_value": "3", "resource_ids": "a,b,c", "uses_count_index": "true"}


# =============================================================================
# ROUTING TABLE TESTS
# =============================================================================

class TestRoutingTables:

    def test_every_feature_has_a_flat_validator(self):
        assert set(FLAT_VALIDATORS) == set(Feature)

    def test_tables_are_read_only(self):
        with pytest.raises(TypeError):
            STRUCTURED_ANALYZERS[Feature.COUNT] = None

    def test_meta_arguments_are_flat_only(self, registry):
        for challenge in registry.listing(category=Category.META_ARGUMENTS):
            assert structured_analyzer_for(challenge) is None

    def test_validation_challenges_have_structured_analyzers(self, registry):
        for challenge in registry.listing(category=Category.VALIDATION):
            assert structured_analyzer_for(challenge) is not None


# =============================================================================
# VERDICT TESTS
# =============================================================================

class TestValidateSubmission:

    def test_success_releases_token_and_points(self, registry):
        challenge = registry.get("precondition_guardian")
        result = validate_submission(challenge, ProofData(resources=(guarded_resource(),)))

        assert result.success
        assert result.reward_token == challenge.reward_token
        assert result.points == challenge.points
        assert result.rule is None
        assert result.message.startswith(f"Solved '{challenge.name}'")

    def test_failure_withholds_token(self, registry):
        challenge = registry.get("precondition_guardian")
        result = validate_submission(
            challenge, ProofData(resources=(guarded_resource("self.id != \"\""),)),
        )

        assert not result.success
        assert result.reward_token == ""
        assert result.points == 0
        assert result.rule == FailureRule.SELF_REFERENCE_IN_PRECONDITION
        assert result.diagnostics[-1].startswith(FAIL_PREFIX)

    def test_empty_proof_is_no_proof(self, registry):
        result = grade(registry, "count_master", ProofData())

        assert result.rule == FailureRule.NO_PROOF
        assert "No proof provided" in result.message

    def test_flat_count_challenge(self, registry):
        result = grade(registry, "count_master", ProofData(manual=COUNT_FACTS))

        assert result.success
        assert result.proof_source == "manual"

    def test_flat_count_wrong_value(self, registry):
        result = grade(registry, "count_master", ProofData(manual={**COUNT_FACTS, "count_value": "2"}))

        assert not result.success
        assert "3" in result.message

    def test_structured_proof_wins_over_flat(self, registry):
        proof = ProofData(
            resources=(guarded_resource("self.id != \"\""),),
            manual={
                "uses_precondition": "true",
                "condition_expression": "var.x > 0",
                "checks_input": "true",
                "error_message": "x must be positive",
                "in_lifecycle_block": "true",
                "validates": "variable",
            },
        )
        result = grade(registry, "precondition_guardian", proof)
        assert result.rule == FailureRule.SELF_REFERENCE_IN_PRECONDITION

    def test_validation_challenge_falls_back_to_flat(self, registry):
        proof = ProofData(manual={
            "uses_precondition": "true",
            "condition_expression": "var.x > 0",
            "checks_input": "true",
            "error_message": "x must be positive",
            "in_lifecycle_block": "true",
            "validates": "variable",
        })
        assert grade(registry, "precondition_guardian", proof).success

    def test_meta_challenge_with_only_structured_proof(self, registry):
        result = grade(registry, "count_master", ProofData(resources=(guarded_resource(),)))

        assert result.rule == FailureRule.UNSUPPORTED_PROOF
        assert "proof_of_work" in result.message

    def test_meta_challenge_uses_manual_alongside_structured(self, registry):
        proof = ProofData(resources=(guarded_resource(),), manual=COUNT_FACTS)
        assert grade(registry, "count_master", proof).success

    def test_unknown_challenge(self, registry):
        with pytest.raises(UnknownChallengeError):
            grade(registry, "no_such_challenge", ProofData(manual={}))


# =============================================================================
# NOTES AND LOGGING TESTS
# =============================================================================

class TestDiagnostics:

    def test_degradation_notes_open_the_trail(self, registry):
        proof = normalize_submission({
            "resource_proof": [{
                "resource_type": "ctf_challenge",
                "resource_name": "r1",
                "lifecycle": "{not json",
            }],
        })
        result = grade(registry, "precondition_guardian", proof)

        assert not result.success
        assert result.diagnostics[0].startswith(INFO_PREFIX)
        assert "not valid JSON" in result.diagnostics[0]
        assert result.rule == FailureRule.NO_STRUCTURED_PROOF

    def test_scalar_depends_on_is_graded_not_raised(self, registry):
        def entry(name, depends_on=None):
            meta = {"depends_on": depends_on} if depends_on is not None else {}
            return {
                "resource_type": "ctf_challenge",
                "resource_name": name,
                "lifecycle": {
                    "precondition": [{"condition": "var.x > 0", "error_message": "x must be positive"}],
                    "postcondition": [{"condition": "self.id != \"\"", "error_message": "id must be set"}],
                },
                "meta_arguments": meta,
            }

        proof = normalize_submission({
            "resource_proof": [entry("a"), entry("b"), entry("c", depends_on=True)],
        })
        result = grade(registry, "validation_chain", proof)

        assert not result.success
        assert result.rule == FailureRule.MISSING_ORDERING
        assert "depends_on of ctf_challenge.c" in result.diagnostics[0]

    def test_verdict_is_logged(self, registry, caplog):
        with caplog.at_level(logging.INFO, logger="ctfgrader.dispatcher"):
            grade(registry, "count_master", ProofData(manual=COUNT_FACTS))
        assert "Graded count_master from manual: passed" in caplog.text


# =============================================================================
# DETERMINISM TESTS
# =============================================================================

class TestIdempotence:

    @pytest.mark.parametrize("challenge_id,proof", [
        ("precondition_guardian", ProofData(resources=(guarded_resource(),))),
        ("postcondition_validator", ProofData(resources=(guarded_resource(),))),
        ("count_master", ProofData(manual=COUNT_FACTS)),
        ("lifecycle_expert", ProofData(manual={})),
    ])
    def test_same_proof_same_result(self, registry, challenge_id, proof):
        first = grade(registry, challenge_id, proof)
        second = grade(registry, challenge_id, proof)
        assert first == second
