"""CLI entry point: builds the typer app and registers the report command."""

import typer

app = typer.Typer(
    name="git-report",
    help="git-report - per-component contribution reports from git history",
    add_completion=False,
    rich_markup_mode="rich",
)


# Import command modules to register them
from .report import report as _report  # noqa: F401, E402
