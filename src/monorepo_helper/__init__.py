"""monorepo-helper core package.

Exposes the packages living inside a git monorepo to a dependency resolver as
a path repository, and keeps the JavaScript workspace list in sync.
"""

__all__ = [
    "config",
    "discovery",
    "plugin",
    "repository",
    "versioning",
]
