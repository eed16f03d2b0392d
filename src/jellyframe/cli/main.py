"""
Main CLI entry point for jellyframe.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel

from jellyframe import __version__
from jellyframe.cli.commands import images, pages

console = Console()

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

app = typer.Typer(
    name="jellyframe",
    help="Image resolution and caching pipeline for Jellyfin TV front-ends",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Image pipeline commands
app.command(name="resolve")(images.resolve)
app.command(name="probe")(images.probe)
app.command(name="load")(images.load)
app.command(name="warm")(images.warm)
app.command(name="pages")(pages.show_page)


def configure_logging(level: str, log_file: Optional[Path] = None) -> None:
    """Configure the ``jellyframe`` logger for command line use.

    Replaces any handlers installed by a previous call, so repeated
    invocations in one process do not duplicate output.

    Parameters
    ----------
    level : str
        Standard level name.
    log_file : Path | None
        Also write log records to this file when given.
    """
    logger = logging.getLogger("jellyframe")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT)
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.setLevel(level)


@app.command()
def version() -> None:
    """Show version information."""
    console.print(
        Panel(
            f"[bold blue]jellyframe[/bold blue] v{__version__}",
            title="Version",
            border_style="blue",
        )
    )


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False, "--version", "-v", help="Show version and exit"
    ),
    log_level: str = typer.Option(
        "WARNING", "--log-level", help="Log level for pipeline output"
    ),
    log_file: Optional[Path] = typer.Option(
        None, "--log-file", help="Also write logs to this file"
    ),
) -> None:
    """
    jellyframe - image pipeline for Jellyfin TV front-ends.

    Resolve, fetch, cache and prefetch catalog artwork the way a TV client
    does, from a catalog export on disk.
    """
    if version:
        console.print(f"jellyframe v{__version__}")
        raise typer.Exit(code=0)

    if log_level.upper() not in _VALID_LOG_LEVELS:
        console.print(
            f'[red]Error: Invalid --log-level "{log_level}". '
            f"Must be one of: {', '.join(_VALID_LOG_LEVELS)}[/red]"
        )
        raise typer.Exit(code=2)
    configure_logging(log_level.upper(), log_file)

    if ctx.invoked_subcommand is None:
        console.print("[yellow]Use 'jellyframe --help' for available commands[/yellow]")
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
