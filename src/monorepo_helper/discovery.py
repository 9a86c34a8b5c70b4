"""Package root discovery inside a monorepo tree."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from collections.abc import Iterable, Iterator

logger = logging.getLogger(__name__)

MANIFEST_NAME = "composer.json"
VENDOR_DIR = "vendor"
VCS_DIRS = {".git", ".svn", ".hg", ".bzr", "CVS", "_darcs", ".arch-params", ".monotone"}


def _is_excluded(relative: str, name: str, fragments: Iterable[str]) -> bool:
    if name == VENDOR_DIR or name in VCS_DIRS or name.startswith("."):
        return True
    for fragment in fragments:
        if "/" in fragment:
            if relative == fragment or relative.startswith(fragment + "/"):
                return True
        elif name == fragment:
            return True
    return False


def discover_package_roots(
    root: Path,
    max_depth: int,
    excluded_directories: Iterable[str] = (),
    manifest_name: str = MANIFEST_NAME,
) -> Iterator[Path]:
    """Yield every directory under root that holds a package manifest.

    A manifest directly inside ``root`` has depth 0. Directories deeper than
    ``max_depth`` are not entered. The vendor directory, VCS metadata and
    dot-directories are always skipped; a fragment in ``excluded_directories``
    without a slash matches a directory name at any depth, one with a slash
    matches a path relative to ``root``.
    """
    root = Path(root).resolve()
    fragments = tuple(f.strip("/") for f in excluded_directories if f and f.strip("/"))

    def on_error(exc: OSError) -> None:
        logger.debug("Skipping unreadable directory %s: %s", exc.filename, exc.strerror)

    for dirpath, dirnames, filenames in os.walk(root, onerror=on_error):
        current = Path(dirpath)
        relative_dir = current.relative_to(root).as_posix()
        depth = 0 if relative_dir == "." else relative_dir.count("/") + 1

        if manifest_name in filenames:
            yield current

        if depth >= max_depth:
            dirnames[:] = []
            continue

        kept = []
        for name in sorted(dirnames):
            relative = name if depth == 0 else f"{relative_dir}/{name}"
            if not _is_excluded(relative, name, fragments):
                kept.append(name)
        dirnames[:] = kept
