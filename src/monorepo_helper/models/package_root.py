"""Package root model."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from hashlib import sha1
from pathlib import Path
from typing import Any

from ..discovery import MANIFEST_NAME


class ManifestError(ValueError):
    """Raised when a package manifest cannot be read or parsed."""


@dataclass(frozen=True)
class PackageRoot:
    """A directory holding one package manifest."""

    path: Path
    content: bytes
    manifest: dict[str, Any] = field(compare=False)
    manifest_name: str = MANIFEST_NAME

    @property
    def manifest_path(self) -> Path:
        return self.path / self.manifest_name

    @property
    def content_hash(self) -> str:
        return sha1(self.content).hexdigest()

    @classmethod
    def from_directory(cls, path: Path, manifest_name: str = MANIFEST_NAME) -> PackageRoot:
        manifest_path = Path(path) / manifest_name
        try:
            content = manifest_path.read_bytes()
            text = content.decode("utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ManifestError(f"Unable to read {manifest_path}: {exc}") from exc

        try:
            manifest = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ManifestError(
                f"{manifest_path} does not contain valid JSON "
                f"(line {exc.lineno}, column {exc.colno}): {exc.msg}"
            ) from exc

        if not isinstance(manifest, dict):
            raise ManifestError(f"{manifest_path} must contain a JSON object")

        return cls(path=Path(path), content=content, manifest=manifest, manifest_name=manifest_name)
