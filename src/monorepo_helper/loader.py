"""Load package records into resolver-consumable packages."""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any
from collections.abc import Iterable, Mapping

from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError

from .models import Dist, Package
from .versioning import parser

SCHEMA_PATH = Path(__file__).resolve().with_name("package.schema.json")


class PackageLoadError(ValueError):
    """Raised when a package record is invalid."""


@lru_cache(maxsize=1)
def _validator() -> Draft202012Validator:
    schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
    return Draft202012Validator(schema)


def _format_errors(errors: Iterable[ValidationError]) -> str:
    messages = []
    for error in errors:
        pointer = "/".join(str(p) for p in error.path)
        messages.append(f"{pointer or '<root>'}: {error.message}")
    return "; ".join(messages)


class ArrayLoader:
    """Turn a package record mapping into a Package.

    When ``load_options`` is false the record's ``transport-options`` are
    dropped.
    """

    def __init__(self, load_options: bool = True) -> None:
        self.load_options = load_options

    def load(self, data: Mapping[str, Any]) -> Package:
        errors = sorted(_validator().iter_errors(data), key=lambda e: [str(p) for p in e.path])
        if errors:
            name = data.get("name") if isinstance(data.get("name"), str) else "Unknown package"
            raise PackageLoadError(f"{name} is invalid: {_format_errors(errors)}")

        pretty_version = data["version"]
        try:
            version = parser.normalize(pretty_version)
        except parser.UnexpectedVersionError as exc:
            raise PackageLoadError(f"{data['name']}: {exc}") from exc

        raw_dist = data["dist"]
        dist = Dist(type=raw_dist["type"], url=raw_dist["url"], reference=raw_dist.get("reference"))

        extra = data.get("extra") or {}
        transport_options = data.get("transport-options") or {}

        return Package(
            name=data["name"].lower(),
            pretty_name=data["name"],
            version=version,
            pretty_version=pretty_version,
            type=(data.get("type") or "library").lower(),
            dist=dist,
            transport_options=dict(transport_options) if self.load_options else {},
            extra=dict(extra) if isinstance(extra, dict) else {},
            data=dict(data),
        )
