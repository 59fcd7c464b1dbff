"""
Command-line interface for selpg.

selpg copies a contiguous range of pages from a file or standard input to
standard output, or hands them to a print command for a printer destination.
"""

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from selpg.config import get_settings
from selpg.models import PageSelection
from selpg.pipeline import run_selection
from selpg.utils.errors import InputError, PageRangeError, SelpgException, UsageError
from selpg.utils.logging import get_logger, setup_logging

EXIT_FAILURE = 2
USAGE = "Usage: selpg -s <start-page> -e <end-page> [-l <lines> | -f] [-d <destination>] [file_path]"

app = typer.Typer(
    name="selpg",
    help="Select a range of pages from a text file or standard input.",
    add_completion=False,
)
console = Console(stderr=True)
logger = get_logger(__name__)


def _report(error: SelpgException, show_usage: bool = False) -> None:
    """Print an error, and optionally the usage line, to stderr."""
    console.print(f"[red]Error:[/red] {escape(error.message)}", soft_wrap=True)
    if show_usage:
        console.print(USAGE, markup=False, highlight=False, soft_wrap=True)
        console.print("Try 'selpg --help' for more information.", markup=False, highlight=False)
    if error.details:
        logger.debug("Error details", extra=error.details)


@app.command()
def select(
    start_page: Optional[int] = typer.Option(
        None,
        "--start",
        "-s",
        help="Page number to start printing from (must be positive).",
    ),
    end_page: Optional[int] = typer.Option(
        None,
        "--end",
        "-e",
        help="Page number to stop printing at, inclusive (must be positive).",
    ),
    limit: Optional[int] = typer.Option(
        None,
        "--limit",
        "-l",
        help="Lines per page [default: 72].",
    ),
    pbflag: bool = typer.Option(
        False,
        "--pbflag",
        "-f",
        help="Pages are delimited by form feeds instead of a line count.",
    ),
    destination: Optional[str] = typer.Option(
        None,
        "--destination",
        "-d",
        help="Printer destination; pages are sent to the print command instead of stdout.",
    ),
    file_path: Optional[Path] = typer.Argument(
        None,
        help="Input file (standard input when omitted).",
    ),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
):
    """Print pages START through END of the input."""
    try:
        settings = get_settings()
        setup_logging(log_level="DEBUG" if debug else None)

        selection = PageSelection.from_options(
            start_page,
            end_page,
            limit=limit,
            use_form_feed=pbflag,
            default_page_length=settings.default_page_length,
        )
        asyncio.run(run_selection(selection, file_path, destination or None))

    except (UsageError, InputError, PageRangeError) as e:
        _report(e, show_usage=True)
        raise typer.Exit(EXIT_FAILURE)
    except SelpgException as e:
        _report(e)
        raise typer.Exit(EXIT_FAILURE)


if __name__ == "__main__":
    app()
