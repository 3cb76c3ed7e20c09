"""Report command: validate the configuration and build the database."""

from contextlib import nullcontext
from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape

from . import app
from ._common import console, err_console, print_summary, resolve_config_path
from ..config import load_config, validate_config
from ..core import ReportGenerator
from ..exceptions import GitReportError
from ..logging_config import setup_logging


@app.command()
def report(
    config_file: Optional[Path] = typer.Argument(
        None,
        help="Configuration file (YAML or TOML, default: report.yaml)",
        show_default=False,
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Configuration file path (alternative to the positional argument)",
        dir_okay=False,
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Override the output database path",
        dir_okay=False,
    ),
    jobs: int = typer.Option(
        1,
        "--jobs",
        "-j",
        help="Run git log for this many repositories in parallel",
        min=1,
        max=32,
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Validate the configuration and exit without writing",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose (DEBUG) logging",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Suppress all but ERROR logging and the summary table",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Also append log records to this file",
        dir_okay=False,
    ),
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit",
    ),
):
    """
    Build a SQLite contribution report from one or more git repositories.

    [bold cyan]Examples:[/bold cyan]

      git-report

      git-report team.yaml --verbose

      git-report -c report.toml --dry-run

      git-report -o /tmp/report.db -j 4

      git-report -v --log-file report.log
    """
    from .. import __version__

    if version:
        console.print(f"[bold cyan]git-report[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit(0)

    logger = setup_logging(
        verbose=verbose, quiet=quiet, log_file=str(log_file) if log_file else None
    )
    config_path = resolve_config_path(config_file, config)

    try:
        settings = load_config(config_path, output=str(output) if output else None)
        validate_config(settings)

        if dry_run:
            console.print("Configuration is valid")
            raise typer.Exit(0)

        generator = ReportGenerator(settings, jobs=jobs)
        with console.status("Generating report...", spinner="dots") if not quiet else nullcontext():
            summary = generator.generate()

        if not quiet:
            print_summary(summary)

    except typer.Exit:
        raise

    except GitReportError as e:
        logger.debug("%s: %s", e.__class__.__name__, e)
        err_console.print(f"[red]Error:[/red] {escape(str(e))}", highlight=False)
        raise typer.Exit(1)

    except KeyboardInterrupt:
        err_console.print("\n[yellow]Report generation interrupted[/yellow]")
        raise typer.Exit(130)

    except Exception as e:
        logger.exception("Unexpected error during report generation")
        err_console.print(f"[red]Unexpected error:[/red] {escape(str(e))}", highlight=False)
        raise typer.Exit(1)
