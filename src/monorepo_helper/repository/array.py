"""In-memory package repository."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from ..models import Package


class DuplicatePackageError(ValueError):
    """Raised when the same (name, version) pair is added twice."""


class ArrayRepository:
    """A queryable collection of packages.

    Subclasses populate themselves lazily by overriding ``initialize``; every
    query goes through ``_ensure_initialized`` first.
    """

    def __init__(self, packages: Iterable[Package] | None = None) -> None:
        self._packages: list[Package] | None = None
        self._index: dict[tuple[str, str], Package] = {}
        if packages is not None:
            for package in packages:
                self.add_package(package)

    def initialize(self) -> None:
        self._packages = []
        self._index = {}

    def _ensure_initialized(self) -> list[Package]:
        if self._packages is None:
            self.initialize()
        assert self._packages is not None
        return self._packages

    def add_package(self, package: Package) -> None:
        packages = self._ensure_initialized()
        key = (package.name, package.version)
        if key in self._index:
            raise DuplicatePackageError(f"{package} is already registered")
        self._index[key] = package
        packages.append(package)

    def get_packages(self) -> list[Package]:
        return list(self._ensure_initialized())

    def find_packages(self, name: str, version: str | None = None) -> list[Package]:
        """Return every package called ``name``, optionally of one exact version."""
        name = name.lower()
        matches = []
        for package in self._ensure_initialized():
            if package.name != name:
                continue
            if version is not None and version not in {package.version, package.pretty_version}:
                continue
            matches.append(package)
        return matches

    def find_package(self, name: str, version: str) -> Package | None:
        found = self.find_packages(name, version)
        return found[0] if found else None

    def has_package(self, package: Package) -> bool:
        self._ensure_initialized()
        return (package.name, package.version) in self._index

    def count(self) -> int:
        return len(self._ensure_initialized())

    def __len__(self) -> int:
        return self.count()

    def __iter__(self) -> Iterator[Package]:
        return iter(self.get_packages())
