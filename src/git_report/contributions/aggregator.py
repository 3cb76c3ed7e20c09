"""Fold stored file changes into per-component, per-author contribution totals.

For every component the ``"<repository>:<glob>"`` entries are grouped by
repository. Each group scans that repository's file changes once; a row
counts toward the component when any of the group's globs matches its path.
Totals are keyed by (component, repository, author email):

    commit_count     distinct commit hashes with at least one matched file
    total_additions  sum over matched rows
    total_deletions  sum over matched rows

When one email appears with several author names, the name of the last
matched row is kept.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Callable, Iterable, Mapping, Sequence

from ..config import PATTERN_SEPARATOR
from ..logging_config import get_logger
from ..matcher import matches_any
from ..models import (
    ChangeRow,
    Component,
    ContributionAccumulator,
    ContributionKey,
    ContributionRecord,
)
from ..persistence.reader import iter_repository_changes, load_components, load_repositories
from ..persistence.writer import save_contributions

logger = get_logger(__name__)

RowSource = Callable[[int], Iterable[ChangeRow]]


def group_patterns(entries: Iterable[str]) -> dict[str, list[str]]:
    """Group ``"<repository>:<glob>"`` entries by repository name.

    Entries without a separator are dropped. Order within a group follows
    the input.
    """
    groups: dict[str, list[str]] = {}
    for entry in entries:
        repo_name, sep, pattern = entry.partition(PATTERN_SEPARATOR)
        if not sep:
            logger.debug("Ignoring path entry without repository prefix: %r", entry)
            continue
        groups.setdefault(repo_name, []).append(pattern)
    return groups


def aggregate_contributions(
    components: Sequence[Component],
    repository_ids: Mapping[str, int],
    fetch_rows: RowSource,
) -> list[ContributionRecord]:
    """Compute contribution records for every component.

    Args:
        components: Components with database ids
        repository_ids: Repository name -> repository id
        fetch_rows: Returns all change rows of a repository id

    Returns:
        One record per (component, repository, email) with at least one
        matched row, sorted by that key
    """
    totals: dict[ContributionKey, ContributionAccumulator] = {}

    for component in components:
        for repo_name, patterns in group_patterns(component.patterns).items():
            repo_id = repository_ids.get(repo_name)
            if repo_id is None:
                logger.debug(
                    "Component %s references unknown repository %r", component.name, repo_name
                )
                continue

            matched = 0
            for row in fetch_rows(repo_id):
                if not matches_any(row.filepath, patterns):
                    continue
                key = ContributionKey(component.id, repo_id, row.author_email)
                acc = totals.get(key)
                if acc is None:
                    acc = totals[key] = ContributionAccumulator()
                acc.add(row)
                matched += 1

            logger.debug(
                "Component %s / %s: %d matching file changes", component.name, repo_name, matched
            )

    return [ContributionRecord.from_accumulator(key, totals[key]) for key in sorted(totals)]


class ContributionAggregator:
    """Runs aggregation against a report database and stores the result."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def compute(self) -> list[ContributionRecord]:
        """Aggregate over everything currently stored, without writing."""
        components = load_components(self.conn)
        repository_ids = {name: repo.id for name, repo in load_repositories(self.conn).items()}
        return aggregate_contributions(
            components,
            repository_ids,
            lambda repo_id: iter_repository_changes(self.conn, repo_id),
        )

    def run(self) -> list[ContributionRecord]:
        """Aggregate and persist in one transaction.

        Raises:
            PersistenceError: If the write fails (nothing is written)
        """
        records = self.compute()
        save_contributions(self.conn, records)
        logger.info("Stored %d component contribution rows", len(records))
        return records
