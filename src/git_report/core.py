"""Report generation pipeline.

Sequence for one run:

    1. recreate the report database and insert repositories and components
    2. per repository: run git log, parse it, store it in one transaction
    3. once every repository has committed, aggregate component
       contributions from the stored rows and store them in one transaction

git log can run for several repositories at once (``jobs > 1``); parsing
and writing always happen on the calling thread, one repository at a time.
Any failure aborts the run.
"""

from __future__ import annotations

import sqlite3
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .config import ReportConfig
from .contributions import ContributionAggregator
from .history import GitLogRunner, LogParser
from .logging_config import get_logger
from .models import Repository
from .persistence import ReportDB, insert_components, insert_repositories, save_repository_log

logger = get_logger(__name__)


@dataclass
class RepositoryResult:
    name: str
    commits: int = 0
    file_changes: int = 0
    skipped_headers: int = 0
    skipped_binary: int = 0


@dataclass
class ReportSummary:
    output: Path
    repositories: list[RepositoryResult] = field(default_factory=list)
    contribution_rows: int = 0

    @property
    def total_commits(self) -> int:
        return sum(r.commits for r in self.repositories)

    @property
    def total_file_changes(self) -> int:
        return sum(r.file_changes for r in self.repositories)


class ReportGenerator:
    """Runs the full ingest + aggregate pipeline for one configuration.

    The configuration is expected to be validated already
    (see :func:`~git_report.config.validate_config`).
    """

    def __init__(
        self,
        config: ReportConfig,
        runner: Optional[GitLogRunner] = None,
        jobs: int = 1,
    ):
        if jobs < 1:
            raise ValueError("jobs must be at least 1")
        self.config = config
        self.runner = runner or GitLogRunner()
        self.jobs = jobs

    def generate(self) -> ReportSummary:
        """Build the report database.

        Returns:
            ReportSummary with per-repository counts

        Raises:
            GitError: git log failed for a repository
            PersistenceError: a write transaction failed
        """
        logger.info("Generating report: %s", self.config.output)
        summary = ReportSummary(output=self.config.output_path)

        with ReportDB(self.config.output) as db:
            repos = insert_repositories(db.conn, self.config.repositories)
            insert_components(db.conn, self.config.components)

            summary.repositories = self._ingest(db.conn, list(repos.values()))

            records = ContributionAggregator(db.conn).run()
            summary.contribution_rows = len(records)

        logger.info(
            "Report generated: %d commits, %d file changes, %d contribution rows",
            summary.total_commits,
            summary.total_file_changes,
            summary.contribution_rows,
        )
        return summary

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def _ingest(self, conn: sqlite3.Connection, repos: list[Repository]) -> list[RepositoryResult]:
        if self.jobs == 1 or len(repos) <= 1:
            return [self._store(conn, repo, self._fetch(repo)) for repo in repos]

        results: dict[str, RepositoryResult] = {}
        with ThreadPoolExecutor(max_workers=self.jobs) as ex:
            futures: dict[Future[str], Repository] = {
                ex.submit(self._fetch, repo): repo for repo in repos
            }
            try:
                for fut in as_completed(futures):
                    repo = futures[fut]
                    results[repo.name] = self._store(conn, repo, fut.result())
            except BaseException:
                for pending in futures:
                    pending.cancel()
                raise

        return [results[repo.name] for repo in repos]

    def _fetch(self, repo: Repository) -> str:
        logger.info("Processing repository: %s", repo.name)
        return self.runner.run(repo.path, self.config.filters)

    def _store(self, conn: sqlite3.Connection, repo: Repository, log_text: str) -> RepositoryResult:
        parser = LogParser(repo.id)
        commits, changes = save_repository_log(conn, parser.parse(log_text), repo.name)

        stats = parser.stats
        if stats.skipped_headers or stats.skipped_binary:
            logger.debug(
                "%s: skipped %d malformed headers, %d binary stat lines",
                repo.name,
                stats.skipped_headers,
                stats.skipped_binary,
            )
        logger.info("Processed %d commits for %s", commits, repo.name)

        return RepositoryResult(
            name=repo.name,
            commits=commits,
            file_changes=changes,
            skipped_headers=stats.skipped_headers,
            skipped_binary=stats.skipped_binary,
        )
