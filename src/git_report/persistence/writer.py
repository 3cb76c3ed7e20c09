"""Write repositories, commit logs, components and contributions.

Every write group runs inside one transaction: it either commits fully or
is rolled back and re-raised as :class:`PersistenceError`.
"""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Iterable, Iterator
from contextlib import contextmanager

from ..config import ComponentConfig, RepositoryConfig
from ..exceptions import PersistenceError
from ..logging_config import get_logger
from ..models import Commit, ContributionRecord, FileChange, Repository

logger = get_logger(__name__)

_INSERT_COMMIT = """
    INSERT INTO commits (hash, repository_id, author, email, date, message)
    VALUES (?, ?, ?, ?, ?, ?)
"""

_INSERT_FILE_CHANGE = """
    INSERT INTO file_changes (commit_hash, filepath, additions, deletions, change_type)
    VALUES (?, ?, ?, ?, ?)
"""

_INSERT_CONTRIBUTION = """
    INSERT INTO component_contributions (
        component_id, repository_id, author, email,
        commit_count, total_additions, total_deletions
    ) VALUES (?, ?, ?, ?, ?, ?, ?)
"""

# file_changes rows are flushed in batches of this size
_BATCH_SIZE = 1000


@contextmanager
def transaction(conn: sqlite3.Connection, operation: str) -> Iterator[sqlite3.Cursor]:
    """Run a block in one explicit transaction.

    Any exception inside the block rolls back. ``sqlite3.Error`` is
    wrapped in PersistenceError; other exceptions propagate unchanged.
    """
    cur = conn.cursor()
    try:
        cur.execute("BEGIN")
        yield cur
        conn.commit()
    except sqlite3.Error as e:
        conn.rollback()
        raise PersistenceError(operation, str(e)) from e
    except BaseException:
        conn.rollback()
        raise
    finally:
        cur.close()


def insert_repositories(
    conn: sqlite3.Connection, repositories: Iterable[RepositoryConfig]
) -> dict[str, Repository]:
    """Insert configured repositories, returning them keyed by name."""
    result: dict[str, Repository] = {}
    with transaction(conn, "insert repositories") as cur:
        for repo in repositories:
            cur.execute(
                "INSERT INTO repositories (name, path) VALUES (?, ?)",
                (repo.name, repo.path),
            )
            repo_id = cur.lastrowid
            assert repo_id is not None
            result[repo.name] = Repository(id=repo_id, name=repo.name, path=repo.path)
    return result


def insert_components(
    conn: sqlite3.Connection, components: Iterable[ComponentConfig]
) -> list[int]:
    """Insert components with their raw path entries stored as a JSON array."""
    ids: list[int] = []
    with transaction(conn, "insert components") as cur:
        for component in components:
            patterns = json.dumps(list(component.paths))
            cur.execute(
                "INSERT INTO components (name, path_patterns) VALUES (?, ?)",
                (component.name, patterns),
            )
            assert cur.lastrowid is not None
            ids.append(cur.lastrowid)
    return ids


def save_repository_log(
    conn: sqlite3.Connection, records: Iterable[Commit | FileChange], repository_name: str = ""
) -> tuple[int, int]:
    """Persist one repository's parsed log atomically.

    ``records`` is consumed lazily; each Commit must precede its changes.
    If anything fails (including the iterator itself) nothing from this
    repository is kept.

    Returns:
        (commits_written, file_changes_written)
    """
    commit_count = 0
    change_count = 0
    pending: list[tuple] = []

    label = f"save commits for {repository_name}" if repository_name else "save commits"
    with transaction(conn, label) as cur:
        for record in records:
            if isinstance(record, Commit):
                # flush so every change row lands after its commit row
                if pending:
                    cur.executemany(_INSERT_FILE_CHANGE, pending)
                    pending.clear()
                cur.execute(
                    _INSERT_COMMIT,
                    (
                        record.hash,
                        record.repository_id,
                        record.author_name,
                        record.author_email,
                        record.timestamp.isoformat(sep=" "),
                        record.message,
                    ),
                )
                commit_count += 1
            else:
                pending.append(
                    (
                        record.commit_hash,
                        record.filepath,
                        record.additions,
                        record.deletions,
                        record.change_type.value,
                    )
                )
                change_count += 1
                if len(pending) >= _BATCH_SIZE:
                    cur.executemany(_INSERT_FILE_CHANGE, pending)
                    pending.clear()

        if pending:
            cur.executemany(_INSERT_FILE_CHANGE, pending)

    logger.debug(
        "Stored %d commits / %d file changes%s",
        commit_count,
        change_count,
        f" for {repository_name}" if repository_name else "",
    )
    return commit_count, change_count


def save_contributions(
    conn: sqlite3.Connection, records: Iterable[ContributionRecord]
) -> int:
    """Replace all component contribution rows in a single transaction."""
    rows = [
        (
            r.component_id,
            r.repository_id,
            r.author_name,
            r.author_email,
            r.commit_count,
            r.total_additions,
            r.total_deletions,
        )
        for r in records
    ]
    with transaction(conn, "save component contributions") as cur:
        cur.execute("DELETE FROM component_contributions")
        if rows:
            cur.executemany(_INSERT_CONTRIBUTION, rows)
    return len(rows)
