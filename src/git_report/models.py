"""Data models for repositories, commits, components and contribution totals."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import NamedTuple


class ChangeType(str, Enum):
    """Kind of change a commit made to one file (git status letters)."""

    ADDED = "A"
    MODIFIED = "M"
    DELETED = "D"
    RENAMED = "R"


@dataclass(frozen=True)
class Repository:
    id: int
    name: str
    path: str


@dataclass(frozen=True)
class Commit:
    hash: str
    repository_id: int
    author_name: str
    author_email: str
    timestamp: datetime  # timezone-aware, author date
    message: str  # subject line only


@dataclass(frozen=True)
class FileChange:
    commit_hash: str
    filepath: str  # destination path for renames
    additions: int
    deletions: int
    change_type: ChangeType


@dataclass(frozen=True)
class Component:
    """A named set of ``"<repository_name>:<glob>"`` path patterns."""

    id: int
    name: str
    patterns: tuple[str, ...] = ()


class ChangeRow(NamedTuple):
    """One stored file change joined with its commit."""

    commit_hash: str
    author_name: str
    author_email: str
    filepath: str
    additions: int
    deletions: int


class ContributionKey(NamedTuple):
    component_id: int
    repository_id: int
    author_email: str


@dataclass
class ContributionAccumulator:
    """Running totals for one aggregation key."""

    author_name: str = ""
    commits: set[str] = field(default_factory=set)
    additions: int = 0
    deletions: int = 0

    def add(self, row: ChangeRow) -> None:
        self.author_name = row.author_name  # last seen wins
        self.commits.add(row.commit_hash)
        self.additions += row.additions
        self.deletions += row.deletions


@dataclass(frozen=True)
class ContributionRecord:
    component_id: int
    repository_id: int
    author_email: str
    author_name: str
    commit_count: int  # distinct commits with at least one matched file
    total_additions: int
    total_deletions: int

    @classmethod
    def from_accumulator(
        cls, key: ContributionKey, acc: ContributionAccumulator
    ) -> ContributionRecord:
        return cls(
            component_id=key.component_id,
            repository_id=key.repository_id,
            author_email=key.author_email,
            author_name=acc.author_name,
            commit_count=len(acc.commits),
            total_additions=acc.additions,
            total_deletions=acc.deletions,
        )
