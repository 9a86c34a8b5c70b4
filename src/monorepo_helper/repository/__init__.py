"""Package repositories."""

from .array import ArrayRepository, DuplicatePackageError
from .manager import RepositoryManager
from .monorepo import MIRROR_ENV_VAR, MonorepoRepository, RepositoryState

__all__ = [
    "ArrayRepository",
    "DuplicatePackageError",
    "MIRROR_ENV_VAR",
    "MonorepoRepository",
    "RepositoryManager",
    "RepositoryState",
]
