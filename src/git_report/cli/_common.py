"""Shared CLI helpers."""

from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.table import Table

from ..config import DEFAULT_CONFIG_PATH
from ..core import ReportSummary

console = Console()
err_console = Console(stderr=True)


def resolve_config_path(positional: Optional[Path], option: Optional[Path]) -> Path:
    """Positional argument wins over --config, which wins over the default."""
    if positional is not None:
        return positional
    if option is not None:
        return option
    return DEFAULT_CONFIG_PATH


def print_summary(summary: ReportSummary) -> None:
    table = Table(title="Repositories", show_lines=False)
    table.add_column("Repository", style="cyan")
    table.add_column("Commits", justify="right")
    table.add_column("File changes", justify="right")
    table.add_column("Skipped", justify="right", style="dim")

    for repo in summary.repositories:
        table.add_row(
            repo.name,
            f"{repo.commits:,}",
            f"{repo.file_changes:,}",
            f"{repo.skipped_headers + repo.skipped_binary:,}",
        )

    console.print(table)
    console.print(
        f"[green]Report written to {summary.output}[/green] "
        f"({summary.total_commits:,} commits, {summary.contribution_rows:,} contribution rows)"
    )
