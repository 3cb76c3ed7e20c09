"""SQLite report database consumed by external viewers."""

import sqlite3
from pathlib import Path
from typing import Optional

from ..logging_config import get_logger

logger = get_logger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS repositories (
    id   INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT    UNIQUE NOT NULL,
    path TEXT    NOT NULL
);

CREATE TABLE IF NOT EXISTS commits (
    hash          TEXT     PRIMARY KEY,
    repository_id INTEGER  NOT NULL REFERENCES repositories(id),
    author        TEXT     NOT NULL,
    email         TEXT     NOT NULL,
    date          DATETIME NOT NULL,
    message       TEXT     NOT NULL
);

CREATE TABLE IF NOT EXISTS file_changes (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    commit_hash TEXT    NOT NULL REFERENCES commits(hash),
    filepath    TEXT    NOT NULL,
    additions   INTEGER NOT NULL,
    deletions   INTEGER NOT NULL,
    change_type TEXT    NOT NULL
);

CREATE TABLE IF NOT EXISTS components (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    name          TEXT    UNIQUE NOT NULL,
    path_patterns TEXT    NOT NULL
);

CREATE TABLE IF NOT EXISTS component_contributions (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    component_id    INTEGER NOT NULL REFERENCES components(id),
    repository_id   INTEGER NOT NULL REFERENCES repositories(id),
    author          TEXT    NOT NULL,
    email           TEXT    NOT NULL,
    commit_count    INTEGER NOT NULL,
    total_additions INTEGER NOT NULL,
    total_deletions INTEGER NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_commits_repo ON commits(repository_id);
CREATE INDEX IF NOT EXISTS idx_file_changes_commit ON file_changes(commit_hash);
CREATE INDEX IF NOT EXISTS idx_component_contributions_component
    ON component_contributions(component_id);
"""

TABLES = (
    "repositories",
    "commits",
    "file_changes",
    "components",
    "component_contributions",
)


class ReportDB:
    """Manages the report SQLite file.

    With ``reset=True`` (the default) any existing file at ``path`` is
    removed on connect, so each run starts from an empty store.

    Usage::

        with ReportDB("report.db") as db:
            insert_repositories(db.conn, config.repositories)
    """

    def __init__(self, path: "str | Path", reset: bool = True) -> None:
        self.db_path: Path = Path(path)
        self.reset = reset
        self._conn: Optional[sqlite3.Connection] = None

    @property
    def conn(self) -> sqlite3.Connection:
        """Return the active connection. Raises if not connected."""
        if self._conn is None:
            raise RuntimeError("ReportDB is not connected. Use as context manager or call connect().")
        return self._conn

    # ── lifecycle ─────────────────────────────────────────────────

    def connect(self) -> sqlite3.Connection:
        """Open (or recreate) the database and create the schema."""
        if self.reset:
            self._remove_existing()
        if self.db_path.parent != Path(""):
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(str(self.db_path))
        conn.execute("PRAGMA foreign_keys=ON")
        conn.row_factory = sqlite3.Row
        self._conn = conn
        self._create_schema()
        logger.debug("Report DB connected at %s", self.db_path)
        return conn

    def close(self) -> None:
        """Close the connection if open."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "ReportDB":
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _remove_existing(self) -> None:
        # journal files from an interrupted run would be replayed into the new file
        for suffix in ("", "-journal", "-wal", "-shm"):
            candidate = self.db_path.with_name(self.db_path.name + suffix)
            if candidate.exists():
                candidate.unlink()
                logger.debug("Removed %s", candidate)

    def _create_schema(self) -> None:
        """Idempotently create all tables and indexes."""
        self.conn.executescript(_SCHEMA)
        self.conn.commit()
