"""Repository exposing the packages of a monorepo."""

from __future__ import annotations

import copy
import logging
import os
import re
from enum import Enum
from pathlib import Path
from typing import Any
from collections.abc import Iterator, Mapping

from ..config import PluginConfiguration, is_truthy
from ..discovery import discover_package_roots
from ..loader import ArrayLoader, PackageLoadError
from ..models import (
    CandidateSource,
    ManifestError,
    Package,
    PackageRoot,
    VersionCandidate,
    merge_candidates,
)
from ..process import ProcessRunner
from ..versioning import MonorepoVersionGuesser, VcsVersionGuesser
from .array import ArrayRepository

logger = logging.getLogger(__name__)

MIRROR_ENV_VAR = "COMPOSER_MIRROR_PATH_REPOS"


class RepositoryState(Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    POPULATED = "populated"


class MonorepoRepository(ArrayRepository):
    """Repository of every package found inside a monorepo.

    The tree is scanned once, on first access. Each package is registered
    once per distinct candidate version: the root package version, the
    version guessed from git (plus its branch alias) and the monorepo
    convention version.
    """

    def __init__(
        self,
        monorepo_root: Path | str,
        configuration: PluginConfiguration,
        loader: ArrayLoader,
        process: ProcessRunner,
        monorepo_version_guesser: MonorepoVersionGuesser,
        vcs_version_guesser: VcsVersionGuesser,
        root_package_version: str,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self.monorepo_root = Path(monorepo_root)
        self.configuration = configuration
        self.loader = loader
        self.process = process
        self.monorepo_version_guesser = monorepo_version_guesser
        self.vcs_version_guesser = vcs_version_guesser
        self.root_package_version = root_package_version
        self.environ = os.environ if environ is None else environ
        self.enabled = True
        self.disabled_reason: str | None = None
        self.state = RepositoryState.UNINITIALIZED
        super().__init__()

    def disable(self, reason: str) -> None:
        """Stop the repository from scanning; packages already registered stay."""
        if not self.enabled:
            return
        self.enabled = False
        self.disabled_reason = reason
        logger.info(reason)

    def _ensure_initialized(self) -> list[Package]:
        if self.state is RepositoryState.UNINITIALIZED:
            self.state = RepositoryState.INITIALIZING
            try:
                self.initialize()
            finally:
                self.state = RepositoryState.POPULATED
        return super()._ensure_initialized()

    def initialize(self) -> None:
        super().initialize()
        if not self.enabled:
            return

        if self.configuration.offline_mode:
            logger.warning("Offline mode is active.")

        commit = self._current_commit()

        # Symlink unless mirroring is explicitly requested.
        transport_as_symlink = not is_truthy(self.environ.get(MIRROR_ENV_VAR))
        if not transport_as_symlink:
            logger.warning("Packages are going to be copied instead of symlinked.")

        for path in self._package_roots():
            try:
                package_root = PackageRoot.from_directory(path)
            except ManifestError as exc:
                logger.error("Unable to load package data from %s file. Error: %s.", path, exc)
                continue

            try:
                records = list(self._build_records(package_root, commit, transport_as_symlink))
            except (ValueError, re.error) as exc:
                logger.error(
                    "Unable to guess versions of the package at %s. Error: %s.",
                    package_root.path,
                    exc,
                )
                continue

            for data in records:
                try:
                    package = self.loader.load(data)
                except PackageLoadError as exc:
                    logger.error(
                        "Unable to load package data from %s file. Error: %s.",
                        package_root.manifest_path,
                        exc,
                    )
                    continue

                if self.has_package(package):
                    logger.debug("%s is already registered from the monorepo.", package)
                    continue

                self.add_package(package)
                logger.info(
                    "Added %s %s as %s version from the monorepo.",
                    package.pretty_name,
                    package.type,
                    package.pretty_version,
                )

    def _current_commit(self) -> str | None:
        code, output = self.process.execute(
            ["git", "log", "-n1", "--pretty=%H"], cwd=self.monorepo_root
        )
        if code != 0 or not output.strip():
            logger.debug("Unable to resolve the current commit of %s", self.monorepo_root)
            return None
        return output.strip()

    def _package_roots(self) -> Iterator[Path]:
        return discover_package_roots(
            self.monorepo_root,
            self.configuration.max_discovery_depth,
            self.configuration.excluded_directories,
        )

    def version_candidates(self, package_root: PackageRoot) -> list[VersionCandidate]:
        """Return the de-duplicated versions a package root is registered as."""
        manifest = package_root.manifest
        # The root package version is always offered: the latest tag can be
        # one or more major versions ahead of it.
        candidates = [
            VersionCandidate(self.root_package_version, CandidateSource.ROOT_PACKAGE_FALLBACK)
        ]

        guess = self.vcs_version_guesser.guess_version(manifest, package_root.path)
        if guess is not None:
            if guess.feature_pretty_version:
                guessed = VersionCandidate(
                    guess.feature_pretty_version, CandidateSource.VCS_FEATURE_BRANCH
                )
            else:
                guessed = VersionCandidate(guess.pretty_version, CandidateSource.VCS_PRETTY)
            candidates.append(guessed)

            # Mainline branches like master are never feature branches, so
            # only concrete branch versions are looked up in branch-alias.
            alias = _branch_alias(manifest, guessed.version)
            if "dev-" not in guessed.version and alias:
                candidates.append(VersionCandidate(alias, CandidateSource.BRANCH_ALIAS))

        monorepo_version = self.monorepo_version_guesser.get_package_version(
            manifest, package_root.path
        )
        candidates.append(VersionCandidate(monorepo_version, CandidateSource.MONOREPO_CONVENTION))

        return merge_candidates(candidates)

    def _build_records(
        self, package_root: PackageRoot, commit: str | None, transport_as_symlink: bool
    ) -> Iterator[dict[str, Any]]:
        dist = {
            "type": "path",
            "url": str(package_root.path),
            "reference": commit or package_root.content_hash,
        }
        for candidate in self.version_candidates(package_root):
            data = copy.deepcopy(package_root.manifest)
            data["dist"] = dict(dist)
            data["transport-options"] = {"symlink": transport_as_symlink}
            data["version"] = candidate.version
            yield data


def _branch_alias(manifest: Mapping[str, Any], version: str) -> str | None:
    extra = manifest.get("extra")
    if not isinstance(extra, dict):
        return None
    aliases = extra.get("branch-alias")
    if not isinstance(aliases, dict):
        return None
    alias = aliases.get(version)
    return alias if isinstance(alias, str) and alias else None
