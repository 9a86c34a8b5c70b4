"""Version guessing from git branches and tags."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from collections.abc import Mapping

from ..process import ProcessRunner
from . import parser

logger = logging.getLogger(__name__)

NON_FEATURE_BRANCHES = r"master|main|latest|next|current|support|tip|trunk|default|develop"
_NON_FEATURE_PATTERN = re.compile(rf"^({NON_FEATURE_BRANCHES}|\d+\..+|\d+)$")


@dataclass(frozen=True)
class VersionGuess:
    """Best-effort version information for a working tree."""

    version: str
    pretty_version: str
    commit: str | None = None
    feature_version: str | None = None
    feature_pretty_version: str | None = None


def is_feature_branch(manifest: Mapping[str, Any], branch: str) -> bool:
    """Return True unless branch is a mainline or numeric branch.

    The manifest's ``non-feature-branches`` list of patterns extends the
    default mainline names.
    """
    if _NON_FEATURE_PATTERN.match(branch):
        return False
    patterns = manifest.get("non-feature-branches")
    if not isinstance(patterns, list):
        return True
    for pattern in patterns:
        if not isinstance(pattern, str):
            continue
        try:
            if re.match(rf"^({pattern})$", branch):
                return False
        except re.error as exc:
            logger.debug("Ignoring invalid non-feature branch pattern %r: %s", pattern, exc)
    return True


class VcsVersionGuesser:
    """Guess a package version from the git state of its directory."""

    def __init__(self, process: ProcessRunner) -> None:
        self.process = process

    def _git(self, path: Path | str, *args: str) -> str | None:
        code, output = self.process.execute(["git", *args], cwd=path)
        if code != 0:
            return None
        return output.strip()

    def guess_version(self, manifest: Mapping[str, Any], path: Path | str) -> VersionGuess | None:
        commit = self._git(path, "rev-parse", "HEAD")
        if not commit:
            logger.debug("No git commit found for %s", path)
            return None

        branch = self._git(path, "rev-parse", "--abbrev-ref", "HEAD")
        if not branch or branch == "HEAD":
            return self._guess_detached(path, commit)

        version = parser.normalize_branch(branch)
        pretty_version = parser.pretty_branch_version(branch)

        if not is_feature_branch(manifest, branch):
            return VersionGuess(version=version, pretty_version=pretty_version, commit=commit)

        base = self._find_base_branch(manifest, path, branch)
        if base is None:
            return VersionGuess(
                version=version,
                pretty_version=pretty_version,
                commit=commit,
                feature_version=version,
                feature_pretty_version=pretty_version,
            )

        return VersionGuess(
            version=parser.normalize_branch(base),
            pretty_version=parser.pretty_branch_version(base),
            commit=commit,
            feature_version=version,
            feature_pretty_version=pretty_version,
        )

    def _guess_detached(self, path: Path | str, commit: str) -> VersionGuess:
        tag = self._git(path, "describe", "--exact-match", "--tags", "HEAD")
        if tag:
            try:
                return VersionGuess(
                    version=parser.normalize(tag), pretty_version=tag, commit=commit
                )
            except parser.UnexpectedVersionError:
                logger.debug("Tag %s is not a valid version", tag)
        return VersionGuess(version=f"dev-{commit}", pretty_version=f"dev-{commit}", commit=commit)

    def _find_base_branch(
        self, manifest: Mapping[str, Any], path: Path | str, branch: str
    ) -> str | None:
        """Return the closest mainline branch HEAD was forked from."""
        refs = self._git(path, "for-each-ref", "--format=%(refname)", "refs/heads", "refs/remotes")
        if not refs:
            return None

        candidates: dict[str, str] = {}
        for ref in refs.splitlines():
            ref = ref.strip()
            if ref.startswith("refs/heads/"):
                name = ref[len("refs/heads/") :]
            elif ref.startswith("refs/remotes/") and ref.count("/") >= 3:
                name = ref.split("/", 3)[3]
            else:
                continue
            if not name or name in {branch, "HEAD"} or is_feature_branch(manifest, name):
                continue
            candidates.setdefault(name, ref)

        best: tuple[int, str] | None = None
        for name, ref in candidates.items():
            count = self._git(path, "rev-list", "--count", f"{ref}..HEAD")
            if count is None or not count.isdigit():
                continue
            distance = int(count)
            if best is None or distance < best[0]:
                best = (distance, name)

        return best[1] if best else None
