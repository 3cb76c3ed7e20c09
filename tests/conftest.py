"""Shared test fixtures for git-report tests."""

import os
import shutil
import subprocess
from pathlib import Path
from typing import Optional

import pytest

from git_report.config import FilterConfig
from git_report.history import GitLogRunner
from git_report.persistence import ReportDB

DEFAULT_DATE = "2024-03-01 14:02:11 +0100"

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git executable not available")


def make_header(
    sha: str,
    name: str = "Alice",
    email: str = "alice@example.com",
    date: str = DEFAULT_DATE,
    subject: str = "change things",
) -> str:
    """Build one NUL-delimited header line as produced by PRETTY_FORMAT."""
    return "\x00".join([sha, name, email, date, subject, ""])


def make_log(*commits: tuple) -> str:
    """Build git log text from (header_kwargs, [stat lines]) pairs."""
    chunks = []
    for header, stats in commits:
        chunks.append("\n".join([make_header(**header), ""] + list(stats)))
    return "\n\n".join(chunks) + "\n"


class FakeRunner(GitLogRunner):
    """GitLogRunner that returns canned log text per repository path."""

    def __init__(self, logs: dict, failures: Optional[dict] = None):
        super().__init__()
        self.logs = logs
        self.failures = failures or {}
        self.calls: list = []

    def run(self, repo_path, filters: Optional[FilterConfig] = None) -> str:
        self.calls.append((str(repo_path), filters))
        if str(repo_path) in self.failures:
            raise self.failures[str(repo_path)]
        return self.logs.get(str(repo_path), "")


@pytest.fixture
def report_db(tmp_path):
    """An open, empty report database."""
    with ReportDB(tmp_path / "report.db") as db:
        yield db


@pytest.fixture
def git_repo(tmp_path):
    """A small real git repository with three commits."""
    if shutil.which("git") is None:
        pytest.skip("git executable not available")

    repo = tmp_path / "repo"
    repo.mkdir()

    def git(*args, env_date: str = "2024-01-01T10:00:00+00:00"):
        env = {
            **os.environ,
            "GIT_AUTHOR_DATE": env_date,
            "GIT_COMMITTER_DATE": env_date,
            "HOME": str(tmp_path),
            "GIT_CONFIG_NOSYSTEM": "1",
        }
        subprocess.run(["git", *args], cwd=repo, check=True, capture_output=True, env=env)

    git("-c", "init.defaultBranch=main", "init", "-q")
    git("config", "user.name", "Alice")
    git("config", "user.email", "alice@example.com")
    git("config", "commit.gpgsign", "false")

    _write(repo / "src" / "api" / "users.go", "package api\n\nfunc Users() {}\n")
    _write(repo / "README.md", "# demo\n")
    git("add", ".")
    git("commit", "-q", "-m", "initial import")

    _write(repo / "src" / "api" / "users.go", "package api\n\nfunc Users() {}\nfunc More() {}\n")
    git("add", ".")
    git("commit", "-q", "-m", "extend users", env_date="2024-01-02T10:00:00+00:00")

    git("config", "user.name", "Bob")
    git("config", "user.email", "bob@example.com")
    (repo / "logo.bin").write_bytes(b"\x00\x01\x02\x03" * 16)
    _write(repo / "docs" / "guide.md", "guide\n")
    git("add", ".")
    git("commit", "-q", "-m", "docs and logo", env_date="2024-01-03T10:00:00+00:00")

    return repo


def _write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
