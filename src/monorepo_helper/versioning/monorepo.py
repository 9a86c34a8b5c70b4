"""Version convention shared by every package of the monorepo."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Any
from collections.abc import Mapping

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_fixed

from ..config import PluginConfiguration
from ..process import ProcessRunner
from . import parser
from .vcs import VcsVersionGuesser

logger = logging.getLogger(__name__)

DEFAULT_DEV_VERSION = "dev-master"


class MonorepoVersionGuesser:
    """Derive a package version from the lineage of the monorepo itself.

    Sub-packages have no tag history of their own, so every package gets the
    version of the monorepo: the tag HEAD sits on, a ``<major>.<minor>.x-dev``
    version when HEAD is ahead of the nearest tag, the base branch version
    when there are no tags, and ``dev-master`` when git knows nothing.
    """

    def __init__(
        self,
        monorepo_root: Path | str,
        vcs_guesser: VcsVersionGuesser,
        process: ProcessRunner,
        configuration: PluginConfiguration,
    ) -> None:
        self.monorepo_root = Path(monorepo_root)
        self.vcs_guesser = vcs_guesser
        self.process = process
        self.configuration = configuration
        self._version: str | None = None

    def get_package_version(self, manifest: Mapping[str, Any], package_root: Path | str) -> str:
        if self._version is None:
            self._version = self._guess()
            logger.debug("Monorepo version is %s", self._version)
        return self._version

    def _git(self, *args: str) -> str | None:
        code, output = self.process.execute(["git", *args], cwd=self.monorepo_root)
        if code != 0:
            return None
        return output.strip()

    @retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_fixed(1),
        retry=retry_if_exception_type(subprocess.SubprocessError),
    )
    def _fetch_tags(self) -> None:
        code, _ = self.process.execute(
            ["git", "fetch", "--tags", "--quiet"], cwd=self.monorepo_root
        )
        if code != 0:
            raise subprocess.SubprocessError(f"git fetch exited with {code}")

    def _guess(self) -> str:
        if self.configuration.offline_mode:
            logger.debug("Offline mode, tags of the monorepo are not fetched")
        elif not self._git("remote"):
            logger.debug("The monorepo has no remote to fetch tags from")
        else:
            try:
                self._fetch_tags()
            except subprocess.SubprocessError as exc:
                logger.warning("Unable to fetch tags of the monorepo: %s", exc)

        version = self._version_from_tags()
        if version is not None:
            return version

        guess = self.vcs_guesser.guess_version({}, self.monorepo_root)
        if guess is not None:
            return guess.pretty_version

        return DEFAULT_DEV_VERSION

    def _version_from_tags(self) -> str | None:
        tag = self._git("describe", "--tags", "--abbrev=0", "HEAD")
        if not tag:
            return None

        prefix = parser.release_prefix(tag)
        if prefix is None:
            logger.debug("Nearest tag %s is not a release version", tag)
            return None

        count = self._git("rev-list", "--count", f"{tag}..HEAD")
        if count is None or not count.isdigit():
            return None

        if int(count) == 0:
            return tag[1:] if tag[:1] in {"v", "V"} else tag

        major, minor = prefix
        logger.debug("HEAD is %s commit(s) ahead of %s", count, tag)
        return f"{major}.{minor}.x-dev"
