"""
Challenge Registry.

Loads the challenge definitions from YAML once, validates every entry,
and returns an immutable ChallengeRegistry. The registry is passed to
the dispatcher explicitly; nothing reads it from module state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional

import yaml

from .domain import Category, Challenge, Difficulty, Feature


logger = logging.getLogger(__name__)

DEFAULT_REGISTRY_PATH = Path(__file__).parent / "data" / "challenges.yaml"

REQUIRED_KEYS = (
    "id", "name", "description", "points",
    "difficulty", "category", "feature", "reward_token",
)


class RegistryError(Exception):
    """Raised when the registry file is missing, malformed, or incomplete."""
    pass


class UnknownChallengeError(KeyError):
    """Raised when a challenge identifier is not registered."""

    def __init__(self, challenge_id: str):
        self.challenge_id = challenge_id
        super().__init__(challenge_id)

    def __str__(self) -> str:
        return f"Unknown challenge: {self.challenge_id}"


# =============================================================================
# REGISTRY
# =============================================================================

@dataclass(frozen=True)
class ChallengeRegistry:
    """Read-only lookup of challenges by identifier."""
    challenges: Mapping[str, Challenge]

    def get(self, challenge_id: str) -> Challenge:
        """
        Raises:
            UnknownChallengeError: If the identifier is not registered
        """
        try:
            return self.challenges[challenge_id]
        except KeyError:
            raise UnknownChallengeError(challenge_id)

    def __contains__(self, challenge_id: str) -> bool:
        return challenge_id in self.challenges

    def __len__(self) -> int:
        return len(self.challenges)

    def ids(self) -> list[str]:
        return sorted(self.challenges)

    def listing(
        self,
        difficulty: Optional[Difficulty] = None,
        category: Optional[Category] = None,
    ) -> list[Challenge]:
        """Challenges sorted by identifier, optionally filtered."""
        listed = []
        for challenge_id in self.ids():
            challenge = self.challenges[challenge_id]
            if difficulty is not None and challenge.difficulty != difficulty:
                continue
            if category is not None and challenge.category != category:
                continue
            listed.append(challenge)
        return listed

    def total_points(
        self,
        difficulty: Optional[Difficulty] = None,
        category: Optional[Category] = None,
    ) -> int:
        return sum(c.points for c in self.listing(difficulty, category))


# =============================================================================
# LOADING
# =============================================================================

def _parse_entry(entry: object, index: int, path: Path) -> Challenge:
    if not isinstance(entry, dict):
        raise RegistryError(f"Malformed challenge entry at index {index} in {path}")

    missing = [key for key in REQUIRED_KEYS if key not in entry]
    if missing:
        raise RegistryError(
            f"Challenge entry at index {index} in {path} is missing: {', '.join(missing)}"
        )

    challenge_id = str(entry["id"])
    try:
        return Challenge(
            challenge_id=challenge_id,
            name=str(entry["name"]),
            description=str(entry["description"]),
            points=int(entry["points"]),
            difficulty=Difficulty(entry["difficulty"]),
            category=Category(entry["category"]),
            feature=Feature(entry["feature"]),
            reward_token=str(entry["reward_token"]),
        )
    except (TypeError, ValueError) as e:
        raise RegistryError(f"Invalid challenge '{challenge_id}' in {path}: {e}") from e


def load_registry(path: Optional[Path] = None) -> ChallengeRegistry:
    """
    Load and validate the challenge registry.

    Args:
        path: Registry YAML file. Defaults to the packaged challenges.yaml.

    Raises:
        RegistryError: If the file is missing, not valid YAML, or holds an
            invalid or duplicate challenge
    """
    registry_path = Path(path) if path is not None else DEFAULT_REGISTRY_PATH
    if not registry_path.exists():
        raise RegistryError(f"Challenge registry not found at: {registry_path}")

    try:
        with open(registry_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise RegistryError(f"Error parsing YAML file: {registry_path}") from e

    if not isinstance(data, dict) or not isinstance(data.get("challenges"), list):
        raise RegistryError(
            f"Malformed registry file: expected a top-level 'challenges' list in {registry_path}"
        )

    challenges: dict[str, Challenge] = {}
    for index, entry in enumerate(data["challenges"]):
        challenge = _parse_entry(entry, index, registry_path)
        if challenge.challenge_id in challenges:
            raise RegistryError(
                f"Duplicate challenge id '{challenge.challenge_id}' in {registry_path}"
            )
        challenges[challenge.challenge_id] = challenge

    logger.info("Loaded %d challenges from %s", len(challenges), registry_path)
    return ChallengeRegistry(challenges=MappingProxyType(challenges))
