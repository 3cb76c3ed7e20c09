"""Run ``git log`` for a repository and return its raw + numstat output."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Optional

from ..config import FilterConfig
from ..exceptions import GitCommandError, GitNotFoundError, InvalidPathError
from ..logging_config import get_logger

logger = get_logger(__name__)

# hash, author name, author email, author date (ISO-like), subject
PRETTY_FORMAT = "%H%x00%an%x00%ae%x00%ai%x00%s%x00"


def build_log_command(filters: Optional[FilterConfig] = None, executable: str = "git") -> list[str]:
    """Assemble the git log argv, with filters appended positionally.

    ``core.quotepath=off`` keeps non-ASCII paths unescaped in numstat lines;
    ``--raw`` adds the status letter git reports for each path.
    """
    cmd = [
        executable,
        "-c",
        "core.quotepath=off",
        "log",
        "--raw",
        "--numstat",
        f"--pretty=format:{PRETTY_FORMAT}",
    ]
    if filters is None:
        return cmd

    if filters.since:
        cmd.append(f"--since={filters.since}")
    if filters.until:
        cmd.append(f"--until={filters.until}")
    for author in filters.authors:
        cmd.append(f"--author={author}")
    if filters.branch:
        cmd.append(filters.branch)
    return cmd


class GitLogRunner:
    """Invoke git log in a repository directory.

    The command is expected to terminate on its own; no timeout is applied.
    """

    def __init__(self, executable: str = "git"):
        self.executable = executable

    def run(self, repo_path: str | Path, filters: Optional[FilterConfig] = None) -> str:
        """Return git log output as text.

        Raises:
            GitNotFoundError: If the git executable cannot be started
            GitCommandError: If git exits with a non-zero status
        """
        cmd = build_log_command(filters, self.executable)
        logger.debug("Running %s in %s", " ".join(cmd), repo_path)

        try:
            result = subprocess.run(
                cmd,
                cwd=str(repo_path),
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                check=False,
            )
        except FileNotFoundError:
            # raised for a missing cwd as well as a missing executable
            if not Path(repo_path).is_dir():
                raise InvalidPathError(Path(repo_path), "directory does not exist")
            raise GitNotFoundError(self.executable)

        if result.returncode != 0:
            raise GitCommandError(Path(repo_path), result.returncode, result.stderr or "")

        return result.stdout
