"""Configuration exceptions: config files, settings, repository paths."""

from pathlib import Path
from typing import Any

from .base import GitReportError


class ConfigurationError(GitReportError):
    """Base class for configuration-related errors."""

    pass


class ConfigFileError(ConfigurationError):
    """Raised when a config file is missing or cannot be parsed."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Cannot load config file: {path}", details={"reason": reason})
        self.path = path
        self.reason = reason


class InvalidPathError(ConfigurationError):
    """Raised when a configured repository path is not a git repository."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Invalid path: {path}", details={"path": str(path), "reason": reason})
        self.path = path
        self.reason = reason


class InvalidConfigError(ConfigurationError):
    """Raised when configuration values are invalid."""

    def __init__(self, key: str, value: Any, reason: str):
        super().__init__(
            f"Invalid configuration for {key}: {value}",
            details={"reason": reason},
        )
        self.key = key
        self.value = value
        self.reason = reason
