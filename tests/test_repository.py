from __future__ import annotations

import logging
from hashlib import sha1
from pathlib import Path

import pytest

from monorepo_helper.config import PluginConfiguration
from monorepo_helper.loader import ArrayLoader
from monorepo_helper.models import CandidateSource, PackageRoot
from monorepo_helper.repository import (
    ArrayRepository,
    DuplicatePackageError,
    MonorepoRepository,
    RepositoryManager,
    RepositoryState,
)
from monorepo_helper.versioning import MonorepoVersionGuesser, VcsVersionGuesser

from .helpers import write_manifest

COMMIT = "c0ffee0000000000000000000000000000000000"

BRANCH_2X = {
    "git log -n1 --pretty=%H": (0, f"{COMMIT}\n"),
    "git rev-parse HEAD": (0, f"{COMMIT}\n"),
    "git rev-parse --abbrev-ref HEAD": (0, "2.x\n"),
}


def _repository(
    root: Path,
    process,
    configuration: PluginConfiguration | None = None,
    environ: dict[str, str] | None = None,
    root_version: str = "1.0.0",
) -> MonorepoRepository:
    configuration = configuration or PluginConfiguration(offline_mode=True)
    vcs = VcsVersionGuesser(process)
    return MonorepoRepository(
        root,
        configuration,
        ArrayLoader(),
        process,
        MonorepoVersionGuesser(root, vcs, process, configuration),
        vcs,
        root_version,
        environ={} if environ is None else environ,
    )


def _versions(repository: ArrayRepository, name: str) -> list[str]:
    return [package.pretty_version for package in repository.find_packages(name)]


def test_every_discovered_package_is_registered_without_git(tmp_path: Path, fake_process) -> None:
    write_manifest(tmp_path, "packages/a", {"name": "acme/a"})
    write_manifest(tmp_path, "packages/b", {"name": "acme/b"})

    repository = _repository(tmp_path, fake_process())

    assert _versions(repository, "acme/a") == ["1.0.0", "dev-master"]
    assert _versions(repository, "acme/b") == ["1.0.0", "dev-master"]


def test_branch_alias_adds_a_distinct_version(tmp_path: Path, fake_process) -> None:
    write_manifest(
        tmp_path,
        "packages/a",
        {"name": "acme/a", "extra": {"branch-alias": {"2.x-dev": "2.0.x-dev"}}},
    )
    write_manifest(tmp_path, "packages/b", {"name": "acme/b"})

    repository = _repository(tmp_path, fake_process(BRANCH_2X))

    assert _versions(repository, "acme/a") == ["1.0.0", "2.x-dev", "2.0.x-dev"]
    assert _versions(repository, "acme/b") == ["1.0.0", "2.x-dev"]


def test_branch_alias_is_ignored_for_dev_branches(tmp_path: Path, fake_process) -> None:
    write_manifest(
        tmp_path,
        "packages/a",
        {"name": "acme/a", "extra": {"branch-alias": {"dev-master": "3.x-dev"}}},
    )
    process = fake_process(
        {
            "git rev-parse HEAD": (0, COMMIT),
            "git rev-parse --abbrev-ref HEAD": (0, "master"),
        }
    )

    repository = _repository(tmp_path, process)

    assert _versions(repository, "acme/a") == ["1.0.0", "dev-master"]


def test_candidate_sources(tmp_path: Path, fake_process) -> None:
    directory = write_manifest(
        tmp_path, "a", {"name": "acme/a", "extra": {"branch-alias": {"2.x-dev": "2.0.x-dev"}}}
    )
    repository = _repository(tmp_path, fake_process(BRANCH_2X))

    candidates = repository.version_candidates(PackageRoot.from_directory(directory))

    assert [(c.version, c.source) for c in candidates] == [
        ("1.0.0", CandidateSource.ROOT_PACKAGE_FALLBACK),
        ("2.x-dev", CandidateSource.VCS_PRETTY),
        ("2.0.x-dev", CandidateSource.BRANCH_ALIAS),
    ]


def test_feature_branch_version_is_preferred(tmp_path: Path, fake_process) -> None:
    write_manifest(tmp_path, "a", {"name": "acme/a"})
    process = fake_process(
        {
            "git rev-parse HEAD": (0, COMMIT),
            "git rev-parse --abbrev-ref HEAD": (0, "feature/login"),
            "git for-each-ref --format=%(refname) refs/heads refs/remotes": (0, "refs/heads/2.x\n"),
            "git rev-list --count refs/heads/2.x..HEAD": (0, "1\n"),
        }
    )

    repository = _repository(tmp_path, process)

    # The monorepo convention falls back to the base branch of the feature branch.
    assert _versions(repository, "acme/a") == ["1.0.0", "dev-feature/login", "2.x-dev"]


def test_reference_is_content_hash_without_commit(tmp_path: Path, fake_process) -> None:
    directory = write_manifest(tmp_path, "a", {"name": "acme/a"})
    expected = sha1((directory / "composer.json").read_bytes()).hexdigest()

    repository = _repository(tmp_path, fake_process())

    assert {p.dist.reference for p in repository.get_packages()} == {expected}


def test_reference_hashes_raw_manifest_bytes(tmp_path: Path, fake_process) -> None:
    directory = tmp_path / "a"
    directory.mkdir()
    raw = b'{\r\n    "name": "acme/a"\r\n}\r\n'
    (directory / "composer.json").write_bytes(raw)

    repository = _repository(tmp_path, fake_process())

    assert {p.dist.reference for p in repository.get_packages()} == {sha1(raw).hexdigest()}


def test_reference_is_commit_for_every_version(tmp_path: Path, fake_process) -> None:
    write_manifest(
        tmp_path, "a", {"name": "acme/a", "extra": {"branch-alias": {"2.x-dev": "2.0.x-dev"}}}
    )

    repository = _repository(tmp_path, fake_process(BRANCH_2X))

    packages = repository.get_packages()
    assert len(packages) == 3
    assert {p.dist.reference for p in packages} == {COMMIT}
    assert {p.dist.type for p in packages} == {"path"}
    assert {p.dist.url for p in packages} == {str(tmp_path.resolve() / "a")}


@pytest.mark.parametrize(
    ("environ", "symlink"),
    [
        ({}, True),
        ({"COMPOSER_MIRROR_PATH_REPOS": "0"}, True),
        ({"COMPOSER_MIRROR_PATH_REPOS": ""}, True),
        ({"COMPOSER_MIRROR_PATH_REPOS": "1"}, False),
        ({"COMPOSER_MIRROR_PATH_REPOS": "true"}, False),
    ],
)
def test_transport_mode(tmp_path: Path, fake_process, environ, symlink) -> None:
    write_manifest(tmp_path, "a", {"name": "acme/a"})
    write_manifest(tmp_path, "b", {"name": "acme/b"})

    repository = _repository(tmp_path, fake_process(), environ=environ)

    assert {p.transport_options["symlink"] for p in repository.get_packages()} == {symlink}


def test_mirroring_is_warned_about(tmp_path: Path, fake_process, caplog) -> None:
    write_manifest(tmp_path, "a", {"name": "acme/a"})

    with caplog.at_level(logging.WARNING):
        _repository(tmp_path, fake_process(), environ={"COMPOSER_MIRROR_PATH_REPOS": "1"}).count()

    assert "copied instead of symlinked" in caplog.text


def test_excluded_directory_only_removes_its_packages(tmp_path: Path, fake_process) -> None:
    write_manifest(tmp_path, "packages/a", {"name": "acme/a"})
    write_manifest(tmp_path, "legacy/old", {"name": "acme/old"})
    configuration = PluginConfiguration(offline_mode=True, excluded_directories=("legacy",))

    repository = _repository(tmp_path, fake_process(), configuration)

    names = {p.name for p in repository.get_packages()}
    assert names == {"acme/a"}


def test_malformed_manifest_is_skipped_with_one_error(tmp_path: Path, fake_process, caplog) -> None:
    write_manifest(tmp_path, "packages/a", {"name": "acme/a"})
    write_manifest(tmp_path, "packages/broken", "{not json")

    with caplog.at_level(logging.DEBUG):
        repository = _repository(tmp_path, fake_process())
        packages = repository.get_packages()

    errors = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert len(errors) == 1
    assert "broken" in errors[0].getMessage()
    assert {p.name for p in packages} == {"acme/a"}


def test_invalid_candidate_is_skipped_alone(tmp_path: Path, fake_process, caplog) -> None:
    write_manifest(tmp_path, "a", {"name": "acme/a"})

    with caplog.at_level(logging.ERROR):
        repository = _repository(tmp_path, fake_process(), root_version="not a version!")
        versions = _versions(repository, "acme/a")

    assert versions == ["dev-master"]
    assert "Unable to load package data" in caplog.text


def test_equivalent_versions_are_registered_once(tmp_path: Path, fake_process) -> None:
    write_manifest(tmp_path, "a", {"name": "acme/a"})
    process = fake_process(
        {
            "git describe --tags --abbrev=0 HEAD": (0, "v1.0.0\n"),
            "git rev-list --count v1.0.0..HEAD": (0, "0\n"),
        }
    )

    repository = _repository(tmp_path, process, root_version="v1.0.0")

    assert _versions(repository, "acme/a") == ["v1.0.0"]


def test_discovery_is_deterministic(tmp_path: Path, fake_process) -> None:
    write_manifest(
        tmp_path, "a", {"name": "acme/a", "extra": {"branch-alias": {"2.x-dev": "2.0.x-dev"}}}
    )
    write_manifest(tmp_path, "b/c", {"name": "acme/c"})

    first = _repository(tmp_path, fake_process(BRANCH_2X)).get_packages()
    second = _repository(tmp_path, fake_process(BRANCH_2X)).get_packages()

    assert [(p.name, p.pretty_version) for p in first] == [
        (p.name, p.pretty_version) for p in second
    ]


def test_population_happens_once(tmp_path: Path, fake_process) -> None:
    write_manifest(tmp_path, "a", {"name": "acme/a"})
    process = fake_process()
    repository = _repository(tmp_path, process)

    assert repository.state is RepositoryState.UNINITIALIZED
    repository.get_packages()
    calls = len(process.calls)
    write_manifest(tmp_path, "b", {"name": "acme/b"})
    repository.find_packages("acme/b")
    len(repository)

    assert repository.state is RepositoryState.POPULATED
    assert len(process.calls) == calls
    assert repository.find_packages("acme/b") == []


def test_disable_before_first_query(tmp_path: Path, fake_process) -> None:
    write_manifest(tmp_path, "a", {"name": "acme/a"})
    process = fake_process(BRANCH_2X)
    repository = _repository(tmp_path, process)

    repository.disable("Plugin is disabled on prefer-lowest installs.")
    repository.disable("second reason is ignored")

    assert repository.get_packages() == []
    assert process.calls == []
    assert repository.disabled_reason == "Plugin is disabled on prefer-lowest installs."


def test_disable_after_population_keeps_packages(tmp_path: Path, fake_process) -> None:
    write_manifest(tmp_path, "a", {"name": "acme/a"})
    repository = _repository(tmp_path, fake_process())
    registered = repository.count()

    repository.disable("late")

    assert registered > 0
    assert repository.count() == registered


def test_find_packages_by_name_and_version(tmp_path: Path, fake_process) -> None:
    write_manifest(tmp_path, "a", {"name": "Acme/A"})
    repository = _repository(tmp_path, fake_process(BRANCH_2X))

    assert _versions(repository, "ACME/a") == ["1.0.0", "2.x-dev"]
    assert repository.find_package("acme/a", "2.x-dev") is not None
    assert repository.find_package("acme/a", "1.0.0.0") is not None
    assert repository.find_package("acme/a", "9.9.9") is None


def test_array_repository_rejects_duplicates() -> None:
    package = ArrayLoader().load(
        {"name": "acme/a", "version": "1.0.0", "dist": {"type": "path", "url": "/a"}}
    )
    repository = ArrayRepository([package])

    assert repository.has_package(package)
    with pytest.raises(DuplicatePackageError):
        repository.add_package(package)


def test_repository_manager_precedence(tmp_path: Path, fake_process) -> None:
    write_manifest(tmp_path, "a", {"name": "acme/a"})
    published = ArrayLoader().load(
        {
            "name": "acme/a",
            "version": "1.0.0",
            "dist": {"type": "zip", "url": "https://example.com/a.zip"},
        }
    )
    remote = ArrayRepository([published])
    manager = RepositoryManager()
    manager.add_repository(remote)
    monorepo = _repository(tmp_path, fake_process())
    manager.prepend_repository(monorepo)

    found = manager.find_packages("acme/a", "1.0.0")

    assert manager.get_repositories() == [monorepo, remote]
    assert [p.dist.type for p in found] == ["path", "zip"]


@pytest.mark.parametrize("patterns", [5, ["["]])
def test_bad_non_feature_branches_do_not_break_other_packages(
    tmp_path: Path, fake_process, patterns
) -> None:
    write_manifest(tmp_path, "good", {"name": "acme/good"})
    write_manifest(tmp_path, "bad", {"name": "acme/bad", "non-feature-branches": patterns})
    process = fake_process(
        {
            "git log -n1 --pretty=%H": (0, f"{COMMIT}\n"),
            "git rev-parse HEAD": (0, f"{COMMIT}\n"),
            "git rev-parse --abbrev-ref HEAD": (0, "feature/x\n"),
        }
    )

    repository = _repository(tmp_path, process)

    assert _versions(repository, "acme/good") == ["1.0.0", "dev-feature/x"]
    assert _versions(repository, "acme/bad") == ["1.0.0", "dev-feature/x"]
    assert repository.state is RepositoryState.POPULATED


def test_failed_version_guess_skips_only_that_package(
    tmp_path: Path, fake_process, monkeypatch, caplog
) -> None:
    write_manifest(tmp_path, "good", {"name": "acme/good"})
    write_manifest(tmp_path, "bad", {"name": "acme/bad"})
    original = VcsVersionGuesser.guess_version

    def guess_version(self, manifest, path):
        if manifest.get("name") == "acme/bad":
            raise ValueError("unreadable branch")
        return original(self, manifest, path)

    monkeypatch.setattr(VcsVersionGuesser, "guess_version", guess_version)

    with caplog.at_level(logging.ERROR):
        repository = _repository(tmp_path, fake_process())
        names = {p.name for p in repository.get_packages()}

    assert names == {"acme/good"}
    assert "Unable to guess versions" in caplog.text
    assert str(tmp_path.resolve() / "bad") in caplog.text
