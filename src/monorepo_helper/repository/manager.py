"""Ordered chain of repositories consulted by the resolver."""

from __future__ import annotations

from ..models import Package
from .array import ArrayRepository


class RepositoryManager:
    """Keep repositories in precedence order, highest first."""

    def __init__(self) -> None:
        self._repositories: list[ArrayRepository] = []

    def add_repository(self, repository: ArrayRepository) -> None:
        self._repositories.append(repository)

    def prepend_repository(self, repository: ArrayRepository) -> None:
        self._repositories.insert(0, repository)

    def get_repositories(self) -> list[ArrayRepository]:
        return list(self._repositories)

    def find_packages(self, name: str, version: str | None = None) -> list[Package]:
        """Return matches from every repository, in precedence order."""
        found: list[Package] = []
        for repository in self._repositories:
            found.extend(repository.find_packages(name, version))
        return found
