"""
Output routing for selected pages.

Selected bytes go either straight to the caller's stdout or into a pipe read
by a print command. Either way the scanner receives one binary writer, and
leaving the context closes that writer and, for a print destination, waits
for the print command to finish.
"""

import os
import sys
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, BinaryIO, Optional

from selpg.models import BridgeResult
from selpg.output.printer import PrintPipeBridge
from selpg.utils.errors import OutputError, PrinterError
from selpg.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class OutputSink:
    """Writer handed to the scanner, plus the print bridge behind it if any."""

    writer: BinaryIO
    destination: Optional[str] = None
    bridge_result: Optional[BridgeResult] = None

    @property
    def is_direct(self) -> bool:
        return self.destination is None


@asynccontextmanager
async def open_output(
    destination: Optional[str] = None,
    stdout: Optional[BinaryIO] = None,
    bridge: Optional[PrintPipeBridge] = None,
) -> AsyncIterator[OutputSink]:
    """
    Provide the writer for selected pages.

    Args:
        destination: Printer destination, or None for direct output
        stdout: Direct output target (defaults to sys.stdout)
        bridge: Print bridge to use for a destination (defaults to settings)

    Yields:
        OutputSink whose ``writer`` receives the selected bytes

    Raises:
        OutputError: If the output was closed before everything was written
        PrinterError: If the print command failed
    """
    if not destination:
        writer = stdout if stdout is not None else sys.stdout.buffer
        try:
            yield OutputSink(writer=writer)
            writer.flush()
        except BrokenPipeError as e:
            raise OutputError("standard output closed before all pages were written") from e
        return

    bridge = bridge or PrintPipeBridge(stdout=stdout)
    read_fd, write_fd = os.pipe()
    try:
        task = bridge.launch(destination, read_fd)
    except BaseException:
        os.close(read_fd)
        os.close(write_fd)
        raise

    logger.debug("Routing output to print destination", extra={"destination": destination})
    writer = os.fdopen(write_fd, "wb")
    sink = OutputSink(writer=writer, destination=destination)
    write_error: Optional[BrokenPipeError] = None
    try:
        yield sink
    except BrokenPipeError as e:
        write_error = e
    except Exception:
        # The scan error is the one to report; a printer failure is only logged.
        _close_writer(writer)
        try:
            sink.bridge_result = await task
        except PrinterError as printer_error:
            logger.error(f"Print command also failed: {printer_error.message}", extra=printer_error.details)
        raise

    # Closing the write end is what lets the print command see end-of-input.
    write_error = _close_writer(writer) or write_error
    sink.bridge_result = await task

    if write_error is not None:
        raise OutputError(
            f"print command for '{destination}' stopped reading before all pages were written"
        ) from write_error


def _close_writer(writer: BinaryIO) -> Optional[BrokenPipeError]:
    """Close the pipe's write end, returning the broken pipe error if the flush hit one."""
    try:
        writer.close()
    except BrokenPipeError as e:
        return e
    return None
