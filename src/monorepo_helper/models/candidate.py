"""Version candidate model."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from collections.abc import Iterable


class CandidateSource(str, Enum):
    """Heuristic that proposed a version."""

    VCS_PRETTY = "vcs-pretty"
    VCS_FEATURE_BRANCH = "vcs-feature-branch"
    BRANCH_ALIAS = "branch-alias"
    MONOREPO_CONVENTION = "monorepo-convention"
    ROOT_PACKAGE_FALLBACK = "root-package-fallback"


@dataclass(frozen=True)
class VersionCandidate:
    """A proposed version string for a package."""

    version: str
    source: CandidateSource

    def __post_init__(self) -> None:
        if not self.version:
            raise ValueError("Candidate version must be non-empty")

    def to_dict(self) -> dict[str, str]:
        return {"version": self.version, "source": self.source.value}


def merge_candidates(candidates: Iterable[VersionCandidate]) -> list[VersionCandidate]:
    """Drop candidates whose version string was already proposed, keeping order."""
    seen: set[str] = set()
    merged: list[VersionCandidate] = []
    for candidate in candidates:
        if candidate.version in seen:
            continue
        seen.add(candidate.version)
        merged.append(candidate)
    return merged
