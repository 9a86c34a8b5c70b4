from __future__ import annotations

from hashlib import sha1
from pathlib import Path

import pytest

from monorepo_helper.models import (
    CandidateSource,
    ManifestError,
    PackageRoot,
    VersionCandidate,
    merge_candidates,
)

from .helpers import write_manifest


def test_merge_candidates_keeps_first_occurrence() -> None:
    candidates = [
        VersionCandidate("1.0.0", CandidateSource.ROOT_PACKAGE_FALLBACK),
        VersionCandidate("2.x-dev", CandidateSource.VCS_PRETTY),
        VersionCandidate("2.0.x-dev", CandidateSource.BRANCH_ALIAS),
        VersionCandidate("2.x-dev", CandidateSource.MONOREPO_CONVENTION),
    ]

    merged = merge_candidates(candidates)

    assert [c.version for c in merged] == ["1.0.0", "2.x-dev", "2.0.x-dev"]
    assert merged[1].source is CandidateSource.VCS_PRETTY


def test_candidate_requires_a_version() -> None:
    with pytest.raises(ValueError):
        VersionCandidate("", CandidateSource.VCS_PRETTY)


def test_candidate_to_dict() -> None:
    candidate = VersionCandidate("2.0.x-dev", CandidateSource.BRANCH_ALIAS)

    assert candidate.to_dict() == {"version": "2.0.x-dev", "source": "branch-alias"}


def test_package_root_from_directory(tmp_path: Path) -> None:
    directory = write_manifest(tmp_path, "packages/a", {"name": "acme/a", "extra": {"x": 1}})
    content = (directory / "composer.json").read_bytes()

    root = PackageRoot.from_directory(directory)

    assert root.manifest["name"] == "acme/a"
    assert root.content_hash == sha1(content).hexdigest()
    assert root.manifest_path == directory / "composer.json"


@pytest.mark.parametrize("content", ["{not json", "[1, 2]"])
def test_package_root_rejects_bad_manifests(tmp_path: Path, content: str) -> None:
    directory = write_manifest(tmp_path, "bad", content)

    with pytest.raises(ManifestError):
        PackageRoot.from_directory(directory)


def test_package_root_missing_manifest(tmp_path: Path) -> None:
    with pytest.raises(ManifestError):
        PackageRoot.from_directory(tmp_path)
