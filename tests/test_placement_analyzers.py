"""
Tests for the condition placement analyzers.

These tests verify:
1. Preconditions never reference self
2. Postconditions always reference self
3. Combined placement is explained when conditions are split
4. Data source and output contract rules
5. Every failure ends the trail with a [FAIL] line
"""

import pytest

from ctfgrader.analyzers.placement import (
    analyze_combined_conditions,
    analyze_data_source_postconditions,
    analyze_output_contract,
    analyze_postconditions,
    analyze_preconditions,
)
from ctfgrader.domain import FailureRule
from ctfgrader.proof import (
    ArtifactProof,
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
from ctfgrader.verdict import FAIL_PREFIX, PASS_PREFIX, run_checks


# =============================================================================
# TEST HELPERS
# =============================================================================

def block(condition: str, error_message: str = "This value must be valid") -> ConditionBlock:
    return ConditionBlock(condition=condition, error_message=error_message)


def resource(name: str = "r1", pre=(), post=(), **meta) -> ResourceProof:
    return ResourceProof(
        resource_type="ctf_challenge",
        name=name,
        lifecycle=LifecycleConfig(preconditions=tuple(pre), postconditions=tuple(post)),
        meta_arguments=meta,
    )


def data_source(name: str = "d1", post=()) -> DataSourceProof:
    return DataSourceProof(
        resource_type="ctf_flag",
        name=name,
        lifecycle=LifecycleConfig(postconditions=tuple(post)),
    )


# =============================================================================
# PRECONDITION TESTS
# =============================================================================

class TestPreconditionAnalyzer:

    def test_input_validation_passes(self):
        proof = ProofData(resources=(
            resource(pre=[block("var.x > 0", "x must be positive")]),
        ))
        verdict = run_checks(analyze_preconditions, proof)

        assert verdict.passed
        assert verdict.rule is None
        assert all(not line.startswith(FAIL_PREFIX) for line in verdict.diagnostics)

    @pytest.mark.parametrize("conditions", [
        ["var.x > 0"],
        ["var.x > 0", "length(var.name) > 3"],
        ["contains([\"a\", \"b\"], var.tier)", "var.count != 0 && var.enabled"],
    ])
    def test_any_self_free_preconditions_pass(self, conditions):
        proof = ProofData(resources=(resource(pre=[block(c) for c in conditions]),))
        assert run_checks(analyze_preconditions, proof).passed

    def test_self_reference_is_rejected(self):
        proof = ProofData(resources=(
            resource(pre=[block("self.id != \"\"", "id must be set")]),
        ))
        verdict = run_checks(analyze_preconditions, proof)

        assert not verdict.passed
        assert verdict.rule == FailureRule.SELF_REFERENCE_IN_PRECONDITION
        assert "self.id" in verdict.message
        assert verdict.diagnostics[-1].startswith(FAIL_PREFIX)

    def test_short_message_is_rejected(self):
        proof = ProofData(resources=(resource(pre=[block("var.x > 0", "bad x")]),))
        verdict = run_checks(analyze_preconditions, proof)

        assert verdict.rule == FailureRule.MESSAGE_TOO_SHORT
        assert "at least 10 characters" in verdict.message

    def test_empty_condition_is_rejected(self):
        proof = ProofData(resources=(resource(pre=[block("   ")]),))
        assert run_checks(analyze_preconditions, proof).rule == FailureRule.EMPTY_CONDITION

    def test_no_preconditions_is_no_structured_proof(self):
        proof = ProofData(resources=(resource(post=[block("self.id != \"\"")]),))
        verdict = run_checks(analyze_preconditions, proof)

        assert verdict.rule == FailureRule.NO_STRUCTURED_PROOF
        assert "No structured proof" in verdict.message

    def test_first_resource_with_preconditions_is_used(self):
        proof = ProofData(resources=(
            resource("plain"),
            resource("guarded", pre=[block("var.x > 0")]),
            resource("bad", pre=[block("self.x > 0")]),
        ))
        verdict = run_checks(analyze_preconditions, proof)

        assert verdict.passed
        assert "ctf_challenge.guarded" in verdict.message


# =============================================================================
# POSTCONDITION TESTS
# =============================================================================

class TestPostconditionAnalyzer:

    def test_self_reference_passes(self):
        proof = ProofData(resources=(
            resource(post=[block("self.status == \"ok\"", "status must be ok")]),
        ))
        verdict = run_checks(analyze_postconditions, proof)

        assert verdict.passed
        assert any("self.status" in line for line in verdict.diagnostics)

    @pytest.mark.parametrize("conditions", [
        ["var.x > 0"],
        ["var.x > 0", "var.y != \"\""],
        ["myself > 0"],
    ])
    def test_never_passes_without_self(self, conditions):
        proof = ProofData(resources=(resource(post=[block(c) for c in conditions]),))
        verdict = run_checks(analyze_postconditions, proof)

        assert not verdict.passed
        assert verdict.rule == FailureRule.MISSING_SELF_REFERENCE

    def test_preconditions_only_fails_with_no_postconditions_found(self):
        proof = ProofData(resources=(
            resource(pre=[block("var.x > 0", "x must be positive")]),
        ))

        assert run_checks(analyze_preconditions, proof).passed
        verdict = run_checks(analyze_postconditions, proof)
        assert not verdict.passed
        assert "No postconditions found" in verdict.message

    def test_short_message_fails_after_self_reference_passes(self):
        proof = ProofData(resources=(
            resource(post=[block("self.status == \"ok\"", "bad state")]),
        ))
        verdict = run_checks(analyze_postconditions, proof)

        assert verdict.rule == FailureRule.MESSAGE_TOO_SHORT
        assert any(
            line.startswith(PASS_PREFIX) and "self.status" in line
            for line in verdict.diagnostics
        )

    def test_data_source_is_searched_after_resources(self):
        proof = ProofData(data_sources=(
            data_source(post=[block("self.value != \"\"", "value must not be empty")]),
        ))
        verdict = run_checks(analyze_postconditions, proof)

        assert verdict.passed
        assert "data.ctf_flag.d1" in verdict.message


# =============================================================================
# COMBINED TESTS
# =============================================================================

class TestCombinedAnalyzer:

    def test_both_on_one_resource_passes(self):
        proof = ProofData(resources=(
            resource(
                pre=[block("var.x > 0", "x must be positive")],
                post=[block("self.id != \"\"", "id must be assigned")],
            ),
        ))
        assert run_checks(analyze_combined_conditions, proof).passed

    def test_split_across_resources_is_explained(self):
        proof = ProofData(resources=(
            resource("a", pre=[block("var.x > 0")]),
            resource("b", post=[block("self.id != \"\"")]),
        ))
        verdict = run_checks(analyze_combined_conditions, proof)

        assert verdict.rule == FailureRule.MISPLACED_CONDITION
        assert any(
            "ctf_challenge.a has a precondition but is missing a postcondition" in line
            for line in verdict.diagnostics
        )
        assert any(
            "ctf_challenge.b has a postcondition but is missing a precondition" in line
            for line in verdict.diagnostics
        )

    def test_only_preconditions_is_misplaced(self):
        proof = ProofData(resources=(resource(pre=[block("var.x > 0")]),))
        verdict = run_checks(analyze_combined_conditions, proof)

        assert verdict.rule == FailureRule.MISPLACED_CONDITION
        assert "missing a postcondition" in verdict.message

    def test_no_conditions_is_no_structured_proof(self):
        proof = ProofData(resources=(resource(),))
        verdict = run_checks(analyze_combined_conditions, proof)
        assert verdict.rule == FailureRule.NO_STRUCTURED_PROOF

    def test_self_in_precondition_fails(self):
        proof = ProofData(resources=(
            resource(
                pre=[block("self.x > 0")],
                post=[block("self.id != \"\"")],
            ),
        ))
        verdict = run_checks(analyze_combined_conditions, proof)
        assert verdict.rule == FailureRule.SELF_REFERENCE_IN_PRECONDITION

    def test_one_self_postcondition_is_enough(self):
        proof = ProofData(resources=(
            resource(
                pre=[block("var.x > 0")],
                post=[block("var.y > 0"), block("self.id != \"\"")],
            ),
        ))
        assert run_checks(analyze_combined_conditions, proof).passed

    def test_postconditions_without_self_fail(self):
        proof = ProofData(resources=(
            resource(pre=[block("var.x > 0")], post=[block("var.y > 0")]),
        ))
        verdict = run_checks(analyze_combined_conditions, proof)
        assert verdict.rule == FailureRule.MISSING_SELF_REFERENCE

    def test_short_messages_are_counted(self):
        proof = ProofData(resources=(
            resource(
                pre=[block("var.x > 0", "bad x")],
                post=[block("self.id != \"\"", "no id")],
            ),
        ))
        verdict = run_checks(analyze_combined_conditions, proof)

        assert verdict.rule == FailureRule.MESSAGE_TOO_SHORT
        assert verdict.message.startswith("2 of 2")


# =============================================================================
# DATA SOURCE TESTS
# =============================================================================

class TestDataSourceAnalyzer:

    def test_self_postcondition_passes(self):
        proof = ProofData(data_sources=(
            data_source(post=[block("self.value != \"\"", "fetched flag must not be empty")]),
        ))
        assert run_checks(analyze_data_source_postconditions, proof).passed

    def test_message_floor_is_fifteen(self):
        proof = ProofData(data_sources=(
            data_source(post=[block("self.value != \"\"", "value is empty")]),
        ))
        verdict = run_checks(analyze_data_source_postconditions, proof)

        assert verdict.rule == FailureRule.MESSAGE_TOO_SHORT
        assert "15" in verdict.message

    def test_every_data_source_is_checked(self):
        proof = ProofData(data_sources=(
            data_source("good", post=[block("self.value != \"\"", "fetched flag must not be empty")]),
            data_source("bad", post=[block("var.x > 0", "fetched flag must not be empty")]),
        ))
        verdict = run_checks(analyze_data_source_postconditions, proof)

        assert verdict.rule == FailureRule.MISSING_SELF_REFERENCE
        assert "data.ctf_flag.bad" in verdict.message

    def test_resources_do_not_count(self):
        proof = ProofData(resources=(resource(post=[block("self.id != \"\"")]),))
        verdict = run_checks(analyze_data_source_postconditions, proof)
        assert verdict.rule == FailureRule.NO_STRUCTURED_PROOF


# =============================================================================
# OUTPUT CONTRACT TESTS
# =============================================================================

def output_rule(condition: str = "length(var.endpoint) > 0", target: str = "endpoint",
                message: str = "The endpoint output must never be empty",
                kind: ConditionKind = ConditionKind.PRECONDITION) -> ValidationRule:
    return ValidationRule(kind=kind, condition=condition, error_message=message, target=target)


class TestOutputContractAnalyzer:

    def test_output_precondition_passes(self):
        proof = ProofData(module=ModuleProof(name="api", outputs=(output_rule(),)))
        verdict = run_checks(analyze_output_contract, proof)

        assert verdict.passed
        assert "api" in verdict.message

    def test_missing_module_is_no_structured_proof(self):
        proof = ProofData(resources=(resource(),))
        verdict = run_checks(analyze_output_contract, proof)
        assert verdict.rule == FailureRule.NO_STRUCTURED_PROOF

    def test_postcondition_outputs_are_misplaced(self):
        proof = ProofData(module=ModuleProof(
            name="api", outputs=(output_rule(kind=ConditionKind.POSTCONDITION),),
        ))
        verdict = run_checks(analyze_output_contract, proof)
        assert verdict.rule == FailureRule.MISPLACED_CONDITION

    def test_missing_target(self):
        proof = ProofData(module=ModuleProof(name="api", outputs=(output_rule(target=" "),)))
        verdict = run_checks(analyze_output_contract, proof)
        assert verdict.rule == FailureRule.MISSING_TARGET

    def test_self_reference_is_rejected(self):
        proof = ProofData(module=ModuleProof(
            name="api", outputs=(output_rule(condition="self.endpoint != \"\""),),
        ))
        verdict = run_checks(analyze_output_contract, proof)
        assert verdict.rule == FailureRule.SELF_REFERENCE_IN_PRECONDITION

    def test_consumer_message_floor_is_twenty(self):
        proof = ProofData(module=ModuleProof(
            name="api", outputs=(output_rule(message="endpoint is empty"),),
        ))
        verdict = run_checks(analyze_output_contract, proof)
        assert verdict.rule == FailureRule.MESSAGE_TOO_SHORT


# =============================================================================
# ARTIFACT MODEL TESTS
# =============================================================================

class TestArtifactProofs:

    def test_resources_and_data_sources_are_siblings(self):
        assert not isinstance(resource(), DataSourceProof)
        assert not isinstance(data_source(), ResourceProof)
        assert isinstance(resource(), ArtifactProof)
        assert isinstance(data_source(), ArtifactProof)

    def test_addresses(self):
        assert resource().address == "ctf_challenge.r1"
        assert data_source().address == "data.ctf_flag.d1"

    @pytest.mark.parametrize("cls,label", [
        (ResourceProof, "resource proof"),
        (DataSourceProof, "data source proof"),
    ])
    def test_identity_is_required(self, cls, label):
        with pytest.raises(ProofFormatError, match=f"^{label} of type 'ctf_flag' requires a name"):
            cls(resource_type="ctf_flag", name="")
        with pytest.raises(ProofFormatError, match=f"^{label} requires a type"):
            cls(resource_type="", name="x")
