"""Data models for monorepo package discovery."""

from __future__ import annotations

from .candidate import CandidateSource, VersionCandidate, merge_candidates
from .package import Dist, Package
from .package_root import ManifestError, PackageRoot

__all__ = [
    "CandidateSource",
    "Dist",
    "ManifestError",
    "Package",
    "PackageRoot",
    "VersionCandidate",
    "merge_candidates",
]
