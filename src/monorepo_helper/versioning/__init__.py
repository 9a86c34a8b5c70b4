"""Version normalisation and guessing."""

from .monorepo import DEFAULT_DEV_VERSION, MonorepoVersionGuesser
from .parser import UnexpectedVersionError, is_dev, normalize, normalize_branch
from .vcs import VcsVersionGuesser, VersionGuess, is_feature_branch

__all__ = [
    "DEFAULT_DEV_VERSION",
    "MonorepoVersionGuesser",
    "UnexpectedVersionError",
    "VcsVersionGuesser",
    "VersionGuess",
    "is_dev",
    "is_feature_branch",
    "normalize",
    "normalize_branch",
]
