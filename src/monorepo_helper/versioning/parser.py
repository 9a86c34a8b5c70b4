"""Composer-style version normalisation built atop packaging.version.

Supported inputs:
- releases and pre-releases ("1.2.3", "v2.0.0-alpha1", "1.0-RC2")
- numeric dev branches ("2.x-dev", "2.0.x-dev", "3.1.*-dev")
- named dev branches ("dev-master", "dev-feature/foo")
"""

from __future__ import annotations

import re

from packaging.version import InvalidVersion, Version

# Placeholder used for wildcard segments of numeric branch versions.
BRANCH_WILDCARD = "9999999"
SPECIAL_BRANCHES = ("master", "trunk", "default")

_NUMERIC_BRANCH = re.compile(r"^v?(\d+)(\.(?:\d+|[xX*]))?(\.(?:\d+|[xX*]))?(\.(?:\d+|[xX*]))?$")
_BRANCH_NAME = re.compile(r"^[^\s~^:?*\[\\]+$")


class UnexpectedVersionError(ValueError):
    """Raised when a version string cannot be normalised."""


def is_dev(version: str) -> bool:
    return version.startswith("dev-") or version.endswith("-dev")


def is_numeric_branch(name: str) -> bool:
    return _NUMERIC_BRANCH.match(name) is not None


def normalize_branch(name: str) -> str:
    """Normalise a branch name into a dev version.

    ``2.x`` becomes ``2.9999999.9999999.9999999-dev``; non-numeric branch
    names become ``dev-<name>``.
    """
    name = name.strip()
    if name in SPECIAL_BRANCHES:
        return f"dev-{name}"

    match = _NUMERIC_BRANCH.match(name)
    if match is None:
        return f"dev-{name}"

    parts = []
    for index in range(1, 5):
        segment = (match.group(index) or ".x").lstrip(".")
        parts.append(BRANCH_WILDCARD if segment in {"x", "X", "*"} else segment)
    return ".".join(parts) + "-dev"


def pretty_branch_version(name: str) -> str:
    """Return the human readable version of a branch, e.g. ``2.0`` -> ``2.0.x-dev``."""
    normalized = normalize_branch(name)
    if normalized.startswith("dev-"):
        return normalized
    return re.sub(r"(\.9{7})+", ".x", normalized)


def _normalize_release(text: str) -> str:
    try:
        parsed = Version(text)
    except InvalidVersion as exc:
        raise UnexpectedVersionError(f"Invalid version string '{text}'") from exc

    if parsed.epoch or parsed.local:
        raise UnexpectedVersionError(f"Invalid version string '{text}'")

    release = (list(parsed.release) + [0, 0, 0, 0])[:4]
    if len(parsed.release) > 4:
        raise UnexpectedVersionError(f"Invalid version string '{text}'")
    normalized = ".".join(str(part) for part in release)

    if parsed.pre is not None:
        label, number = parsed.pre
        stability = {"a": "alpha", "b": "beta", "rc": "RC"}[label]
        normalized += f"-{stability}{number}"
    elif parsed.post is not None:
        normalized += f"-patch{parsed.post}"

    if parsed.dev is not None:
        normalized += "-dev"
    return normalized


def normalize(version: str) -> str:
    """Normalise a pretty version into its canonical Composer form."""
    version = version.strip()
    if not version:
        raise UnexpectedVersionError("Version string must be non-empty")

    if version.startswith("dev-"):
        branch = version[4:]
        if not branch or _BRANCH_NAME.match(branch) is None:
            raise UnexpectedVersionError(f"Invalid version string '{version}'")
        return version

    if version in SPECIAL_BRANCHES:
        return f"dev-{version}"

    if version.lower().endswith("-dev"):
        stem = version[: -len("-dev")]
        if is_numeric_branch(stem) and re.search(r"[xX*]", stem):
            return normalize_branch(stem)

    text = version[1:] if version[:1] in {"v", "V"} else version
    return _normalize_release(text)


def release_prefix(version: str) -> tuple[int, int] | None:
    """Return (major, minor) of a release version, or None when not a release."""
    text = version[1:] if version[:1] in {"v", "V"} else version
    try:
        parsed = Version(text)
    except InvalidVersion:
        return None
    major = parsed.release[0]
    minor = parsed.release[1] if len(parsed.release) > 1 else 0
    return major, minor
