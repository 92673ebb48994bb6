"""
Dispatcher for the Challenge Grader.

Ties the registry, the analyzers and verdict assembly together:

    1. Resolve the proof kind once (structured or flat)
    2. Pick the analyzer for the challenge's category and feature
    3. Run it and assemble the ValidationResult

Each call is a pure function of (Challenge, ProofData). The routing
tables are built at import time and never change.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Mapping, Optional

from .analyzers.expressions import (
    analyze_conditional_logic,
    analyze_error_messages,
    analyze_self_reference_mastery,
)
from .analyzers.placement import (
    analyze_combined_conditions,
    analyze_data_source_postconditions,
    analyze_output_contract,
    analyze_postconditions,
    analyze_preconditions,
)
from .analyzers.structure import analyze_module_contract, analyze_validation_chain
from .domain import Category, Challenge, FailureRule, Feature, ValidationResult
from .flat import conditions as flat_conditions
from .flat import meta_arguments as flat_meta
from .proof import ProofData, ProofKind
from .registry import ChallengeRegistry, RegistryError
from .verdict import Analyzer, assemble_result, reject, run_checks


logger = logging.getLogger(__name__)


# =============================================================================
# ROUTING TABLES
# =============================================================================

STRUCTURED_ANALYZERS: Mapping[Feature, Analyzer] = MappingProxyType({
    Feature.PRECONDITION: analyze_preconditions,
    Feature.POSTCONDITION: analyze_postconditions,
    Feature.COMBINED_CONDITIONS: analyze_combined_conditions,
    Feature.DATA_SOURCE_POSTCONDITION: analyze_data_source_postconditions,
    Feature.OUTPUT_CONTRACT: analyze_output_contract,
    Feature.VALIDATION_CHAIN: analyze_validation_chain,
    Feature.MODULE_CONTRACT: analyze_module_contract,
    Feature.SELF_REFERENCE: analyze_self_reference_mastery,
    Feature.CONDITIONAL_LOGIC: analyze_conditional_logic,
    Feature.ERROR_MESSAGES: analyze_error_messages,
})

FLAT_VALIDATORS: Mapping[Feature, Analyzer] = MappingProxyType({
    # Validation conditions (fallback when no structured proof is supplied)
    Feature.PRECONDITION: flat_conditions.validate_precondition_facts,
    Feature.POSTCONDITION: flat_conditions.validate_postcondition_facts,
    Feature.COMBINED_CONDITIONS: flat_conditions.validate_combined_facts,
    Feature.DATA_SOURCE_POSTCONDITION: flat_conditions.validate_data_source_facts,
    Feature.OUTPUT_CONTRACT: flat_conditions.validate_output_contract_facts,
    Feature.VALIDATION_CHAIN: flat_conditions.validate_chain_facts,
    Feature.MODULE_CONTRACT: flat_conditions.validate_module_contract_facts,
    Feature.SELF_REFERENCE: flat_conditions.validate_self_reference_facts,
    Feature.CONDITIONAL_LOGIC: flat_conditions.validate_conditional_logic_facts,
    Feature.ERROR_MESSAGES: flat_conditions.validate_error_message_facts,

    # Meta-arguments
    Feature.COUNT: flat_meta.validate_count,
    Feature.FOR_EACH: flat_meta.validate_for_each,
    Feature.DEPENDS_ON: flat_meta.validate_depends_on,
    Feature.LIFECYCLE: flat_meta.validate_lifecycle,
    Feature.META_GRANDMASTER: flat_meta.validate_meta_grandmaster,
    Feature.DYNAMIC_BLOCKS: flat_meta.validate_dynamic_blocks,
    Feature.LOCALS_COUNT: flat_meta.validate_locals_count,
    Feature.CONDITIONAL_CREATION: flat_meta.validate_conditional_creation,
})

# Categories whose challenges are graded from structured proofs
STRUCTURED_CATEGORIES = frozenset({Category.VALIDATION})


def structured_analyzer_for(challenge: Challenge) -> Optional[Analyzer]:
    """The structured analyzer for a challenge, or None if its family is flat-only."""
    if challenge.category not in STRUCTURED_CATEGORIES:
        return None
    return STRUCTURED_ANALYZERS.get(challenge.feature)


def check_registry_coverage(registry: ChallengeRegistry) -> None:
    """
    Verify every registered challenge has an analyzer.

    Raises:
        RegistryError: Naming the challenges no analyzer can grade
    """
    uncovered = [
        c.challenge_id
        for c in registry.listing()
        if structured_analyzer_for(c) is None and c.feature not in FLAT_VALIDATORS
    ]
    if uncovered:
        raise RegistryError(
            f"No analyzer registered for challenge(s): {', '.join(uncovered)}"
        )


# =============================================================================
# VALIDATION
# =============================================================================

def validate_submission(challenge: Challenge, proof: ProofData) -> ValidationResult:
    """
    Grade one submission against one challenge.

    Structured proofs go to the category's structured analyzer. A
    category without one, or a submission without structured proof,
    falls back to the flat validator over the manual map.
    """
    kind = proof.kind
    if kind is None:
        logger.info("Rejected %s: no proof supplied", challenge.challenge_id)
        return reject(
            challenge,
            FailureRule.NO_PROOF,
            "No proof provided: supply proof_of_work, resource_proof, "
            "data_source_proof or module_proof",
            proof.source,
            proof.notes,
        )

    analyzer = structured_analyzer_for(challenge) if kind == ProofKind.STRUCTURED else None
    if analyzer is not None:
        logger.debug("Routing %s to structured analyzer %s",
                     challenge.challenge_id, analyzer.__name__)
        verdict = run_checks(analyzer, proof, proof.notes)
    else:
        validator = FLAT_VALIDATORS.get(challenge.feature)
        if validator is None or not proof.has_manual_proof:
            logger.info("Rejected %s: no analyzer accepts a %s proof",
                        challenge.challenge_id, kind.value)
            return reject(
                challenge,
                FailureRule.UNSUPPORTED_PROOF,
                f"Challenge '{challenge.challenge_id}' is validated from proof_of_work "
                f"facts; supply a proof_of_work map",
                proof.source,
                proof.notes,
            )
        logger.debug("Routing %s to flat validator %s",
                     challenge.challenge_id, validator.__name__)
        verdict = run_checks(validator, proof.manual, proof.notes)

    result = assemble_result(challenge, verdict, proof.source)
    logger.info(
        "Graded %s from %s: %s",
        challenge.challenge_id, proof.source, "passed" if result.success else "failed",
    )
    return result


def grade(registry: ChallengeRegistry, challenge_id: str, proof: ProofData) -> ValidationResult:
    """
    Look up a challenge and grade the submission.

    Raises:
        UnknownChallengeError: If challenge_id is not registered
    """
    challenge = registry.get(challenge_id)
    return validate_submission(challenge, proof)
