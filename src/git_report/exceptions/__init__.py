"""Exception hierarchy for git-report."""

from .base import GitReportError
from .config import (
    ConfigFileError,
    ConfigurationError,
    InvalidConfigError,
    InvalidPathError,
)
from .git import GitCommandError, GitError, GitNotFoundError
from .persistence import PersistenceError

__all__ = [
    "GitReportError",
    "ConfigurationError",
    "ConfigFileError",
    "InvalidConfigError",
    "InvalidPathError",
    "GitError",
    "GitNotFoundError",
    "GitCommandError",
    "PersistenceError",
]
