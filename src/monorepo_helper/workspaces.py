"""Keep the root package.json workspace list in sync with installed packages.

A package carrying a ``frontend/package.json`` is registered as a JavaScript
workspace (``<package path>/frontend``) when installed or updated, and removed
from the list before it is uninstalled.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

WORKSPACE_MANIFEST = "package.json"
FRONTEND_DIR = "frontend"
DEFAULT_WORKSPACE_MANIFEST: dict[str, Any] = {
    "name": "monorepo",
    "private": True,
    "workspaces": [],
}


def has_frontend_assets(package_path: Path) -> bool:
    return (Path(package_path) / FRONTEND_DIR / WORKSPACE_MANIFEST).is_file()


def _dump(path: Path, data: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=4, ensure_ascii=False), encoding="utf-8")


def _load(path: Path) -> dict[str, Any]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("the document root must be an object")
    return data


def _workspace_list(document: dict[str, Any]) -> list[Any] | None:
    """Return the editable workspace list, creating it when missing.

    Both the plain list form and the object form
    (``{"packages": [...], "nohoist": [...]}``) are supported.
    """
    workspaces = document.get("workspaces")
    if isinstance(workspaces, list):
        return workspaces
    if isinstance(workspaces, dict):
        packages = workspaces.setdefault("packages", [])
        return packages if isinstance(packages, list) else None
    if workspaces is None:
        document["workspaces"] = []
        return document["workspaces"]
    return None


def workspace_entry(monorepo_root: Path, package_path: Path) -> str:
    """Return the workspace path of a package's frontend, relative to the monorepo."""
    resolved = Path(os.path.realpath(package_path))
    relative = Path(os.path.relpath(resolved, Path(monorepo_root).resolve())).as_posix()
    return f"{relative}/{FRONTEND_DIR}"


def register_workspace(monorepo_root: Path, package_path: Path, package_name: str) -> bool:
    """Add the package's frontend to the workspace list; return True when written."""
    manifest_path = Path(monorepo_root) / WORKSPACE_MANIFEST

    if not manifest_path.exists():
        _dump(manifest_path, dict(DEFAULT_WORKSPACE_MANIFEST, workspaces=[]))
        logger.info("Created package.json file at %s path", manifest_path)

    try:
        document = _load(manifest_path)
    except (OSError, ValueError) as exc:
        logger.error(
            "The package.json at %s path could not be decoded. Reason: %s", manifest_path, exc
        )
        return False

    workspaces = _workspace_list(document)
    if workspaces is None:
        logger.error(
            "The workspaces of the package.json at %s path are neither a list nor an object.",
            manifest_path,
        )
        return False

    entry = workspace_entry(monorepo_root, package_path)
    if entry not in workspaces:
        workspaces.append(entry)

    _dump(manifest_path, document)
    logger.info(
        "Registered %s package as workspace in package.json at %s path.",
        package_name,
        manifest_path,
    )
    return True


def deregister_workspace(monorepo_root: Path, package_path: Path, package_name: str) -> bool:
    """Remove the package's frontend from the workspace list; return True when written."""
    manifest_path = Path(monorepo_root) / WORKSPACE_MANIFEST

    if not manifest_path.exists():
        logger.info("No package.json file at %s path to deregister workspace from.", manifest_path)
        return False

    try:
        document = _load(manifest_path)
    except (OSError, ValueError) as exc:
        logger.error(
            "Failed to deregister %s package from package.json at %s path. Reason: %s",
            package_name,
            manifest_path,
            exc,
        )
        return False

    workspaces = _workspace_list(document)
    if workspaces is None:
        return False

    entry = workspace_entry(monorepo_root, package_path)
    if entry not in workspaces:
        logger.debug(
            "The %s package as workspace was not registered in package.json at %s path.",
            package_name,
            manifest_path,
        )
        return False

    workspaces[:] = [item for item in workspaces if item != entry]
    _dump(manifest_path, document)
    logger.info(
        "Deregistered %s package as workspace from package.json at %s path.",
        package_name,
        manifest_path,
    )
    return True
