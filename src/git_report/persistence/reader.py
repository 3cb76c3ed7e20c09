"""Read report data back from the database."""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Iterator

from ..models import ChangeRow, Component, ContributionRecord, Repository
from .database import TABLES


def load_repositories(conn: sqlite3.Connection) -> dict[str, Repository]:
    """Return all repositories keyed by name."""
    rows = conn.execute("SELECT id, name, path FROM repositories ORDER BY id").fetchall()
    return {r["name"]: Repository(id=r["id"], name=r["name"], path=r["path"]) for r in rows}


def load_components(conn: sqlite3.Connection) -> list[Component]:
    """Return all components in insertion order.

    Raises
    ------
    ValueError
        If a stored ``path_patterns`` value is not a JSON array.
    """
    components = []
    for row in conn.execute("SELECT id, name, path_patterns FROM components ORDER BY id"):
        patterns = json.loads(row["path_patterns"])
        if not isinstance(patterns, list):
            raise ValueError(f"component {row['name']!r}: path_patterns is not a JSON array")
        components.append(
            Component(id=row["id"], name=row["name"], patterns=tuple(str(p) for p in patterns))
        )
    return components


def iter_repository_changes(conn: sqlite3.Connection, repository_id: int) -> Iterator[ChangeRow]:
    """Stream every file change of one repository joined with its commit.

    Rows come back in insertion order, i.e. git log order.
    """
    cursor = conn.execute(
        """
        SELECT c.hash, c.author, c.email, fc.filepath, fc.additions, fc.deletions
        FROM commits c
        JOIN file_changes fc ON c.hash = fc.commit_hash
        WHERE c.repository_id = ?
        ORDER BY fc.id
        """,
        (repository_id,),
    )
    try:
        for row in cursor:
            yield ChangeRow(
                commit_hash=row["hash"],
                author_name=row["author"],
                author_email=row["email"],
                filepath=row["filepath"],
                additions=row["additions"],
                deletions=row["deletions"],
            )
    finally:
        cursor.close()


def load_contributions(
    conn: sqlite3.Connection, component_id: int | None = None
) -> list[ContributionRecord]:
    """Load contribution rows, optionally for a single component.

    Ordered by (component_id, repository_id, email) so results are stable.
    """
    query = """
        SELECT component_id, repository_id, author, email,
               commit_count, total_additions, total_deletions
        FROM component_contributions
    """
    params: tuple = ()
    if component_id is not None:
        query += " WHERE component_id = ?"
        params = (component_id,)
    query += " ORDER BY component_id, repository_id, email"

    return [
        ContributionRecord(
            component_id=r["component_id"],
            repository_id=r["repository_id"],
            author_email=r["email"],
            author_name=r["author"],
            commit_count=r["commit_count"],
            total_additions=r["total_additions"],
            total_deletions=r["total_deletions"],
        )
        for r in conn.execute(query, params)
    ]


def count_rows(conn: sqlite3.Connection) -> dict[str, int]:
    """Row count per report table."""
    # table names come from a fixed tuple, not user input
    return {
        table: conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0] for table in TABLES
    }
