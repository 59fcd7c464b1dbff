"""
End-to-end page selection run.

This module wires the input stream, the page scanner and the output router
together. The scanner runs in a worker thread so that, when output goes to a
print command, the event loop keeps relaying the command's output while the
scanner is blocked on a full pipe.
"""

import asyncio
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator, Optional, Union

from selpg.models import PageSelection, SelectionReport
from selpg.output.printer import PrintPipeBridge
from selpg.output.router import open_output
from selpg.scanner.page_scanner import PageScanner
from selpg.utils.errors import InputError, PageRangeError
from selpg.utils.logging import LogContext, get_logger

logger = get_logger(__name__)


@contextmanager
def open_input(
    path: Optional[Union[str, Path]] = None,
    stdin: Optional[BinaryIO] = None,
) -> Iterator[BinaryIO]:
    """
    Open the input stream for a run.

    Args:
        path: Input file, or None to read standard input
        stdin: Standard input replacement (defaults to sys.stdin)

    Yields:
        Binary stream positioned at the start of the input

    Raises:
        InputError: If the file cannot be opened or stdin is a terminal
    """
    if path is None:
        stream = stdin if stdin is not None else sys.stdin
        if stream is None or stream.isatty():
            raise InputError("invalid standard input: refusing to read pages from a terminal")
        yield getattr(stream, "buffer", stream)
        return

    path = Path(path)
    try:
        handle = open(path, "rb")
    except OSError as e:
        raise InputError(f"cannot open '{path}': {e.strerror or e}", {"path": str(path)}) from e

    with handle:
        yield handle


async def run_selection(
    selection: PageSelection,
    path: Optional[Union[str, Path]] = None,
    destination: Optional[str] = None,
    *,
    stdin: Optional[BinaryIO] = None,
    stdout: Optional[BinaryIO] = None,
    chunk_size: Optional[int] = None,
    bridge: Optional[PrintPipeBridge] = None,
) -> SelectionReport:
    """
    Copy the selected pages from the input to the chosen output.

    Args:
        selection: Pages to extract
        path: Input file, or None for standard input
        destination: Printer destination, or None for standard output
        stdin: Standard input replacement
        stdout: Standard output replacement
        chunk_size: Scanner read size (defaults to settings)
        bridge: Print bridge used when a destination is given

    Returns:
        SelectionReport with the final scan cursor and print result

    Raises:
        InputError: If the input cannot be opened or read
        PageRangeError: If no bytes fell inside the requested pages
        OutputError: If the output was closed early
        PrinterError: If the print command failed
    """
    scanner = PageScanner(selection, chunk_size=chunk_size)

    with LogContext(start_page=selection.start_page, end_page=selection.end_page, destination=destination):
        with open_input(path, stdin=stdin) as stream:
            async with open_output(destination, stdout=stdout, bridge=bridge) as sink:
                cursor = await asyncio.to_thread(scanner.scan, stream, sink.writer)
                if not cursor.emitted_any:
                    raise PageRangeError(selection.start_page, selection.end_page)

    logger.info(
        "Selection complete",
        extra={"bytes_emitted": cursor.bytes_emitted, "pages_seen": cursor.current_page},
    )
    return SelectionReport(selection=selection, cursor=cursor, bridge_result=sink.bridge_result)
