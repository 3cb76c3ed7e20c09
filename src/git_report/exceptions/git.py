"""Errors raised while running the external git log command."""

from pathlib import Path

from .base import GitReportError


class GitError(GitReportError):
    """Base class for git subprocess failures."""

    pass


class GitNotFoundError(GitError):
    """Raised when the git executable is not on PATH."""

    def __init__(self, executable: str = "git"):
        super().__init__(
            f"git executable not found: {executable}", details={"executable": executable}
        )
        self.executable = executable


class GitCommandError(GitError):
    """Raised when git exits with a non-zero status."""

    def __init__(self, repo_path: Path, returncode: int, stderr: str = ""):
        details = {"repository": str(repo_path), "exit_code": str(returncode)}
        stderr = stderr.strip()
        if stderr:
            details["stderr"] = stderr
        super().__init__("git log failed", details=details)
        self.repo_path = repo_path
        self.returncode = returncode
        self.stderr = stderr
