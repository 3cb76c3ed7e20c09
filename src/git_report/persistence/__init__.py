"""Report store: SQLite schema plus transactional writers and readers."""

from .database import TABLES, ReportDB
from .reader import (
    count_rows,
    iter_repository_changes,
    load_components,
    load_contributions,
    load_repositories,
)
from .writer import (
    insert_components,
    insert_repositories,
    save_contributions,
    save_repository_log,
    transaction,
)

__all__ = [
    "TABLES",
    "ReportDB",
    "count_rows",
    "insert_components",
    "insert_repositories",
    "iter_repository_changes",
    "load_components",
    "load_contributions",
    "load_repositories",
    "save_contributions",
    "save_repository_log",
    "transaction",
]
