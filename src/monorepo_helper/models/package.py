"""Loaded package model handed to the resolver."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..versioning.parser import is_dev


@dataclass(frozen=True)
class Dist:
    """Where and how the resolver materialises a package."""

    type: str
    url: str
    reference: str | None = None

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {"type": self.type, "url": self.url}
        if self.reference is not None:
            data["reference"] = self.reference
        return data


@dataclass(frozen=True, eq=False)
class Package:
    """A package version registered in a repository."""

    name: str
    pretty_name: str
    version: str
    pretty_version: str
    type: str
    dist: Dist | None
    transport_options: dict[str, Any] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)
    data: dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def is_dev(self) -> bool:
        return is_dev(self.version)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Package):
            return NotImplemented
        return (self.name, self.version) == (other.name, other.version)

    def __hash__(self) -> int:
        return hash((self.name, self.version))

    def __str__(self) -> str:
        return f"{self.pretty_name} {self.pretty_version}"

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {
            "name": self.pretty_name,
            "version": self.pretty_version,
            "version_normalized": self.version,
            "type": self.type,
        }
        if self.dist is not None:
            data["dist"] = self.dist.to_dict()
        if self.transport_options:
            data["transport-options"] = dict(self.transport_options)
        return data
