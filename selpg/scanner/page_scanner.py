"""
Page boundary scanning over a byte stream.

The scanner reads fixed-size chunks, counts page-break bytes with state that
carries across chunk reads, and forwards only the slice of each chunk that
falls inside the requested page interval. Input is never buffered beyond one
chunk and reading stops as soon as the interval has been passed.
"""

from typing import BinaryIO, Optional

from selpg.config import get_settings
from selpg.models import PageSelection, ScanCursor, ScanState
from selpg.utils.errors import InputError
from selpg.utils.logging import get_logger, log_performance

logger = get_logger(__name__)


class PageScanner:
    """Copy a contiguous range of pages from an input stream to a sink."""

    def __init__(self, selection: PageSelection, chunk_size: Optional[int] = None) -> None:
        """
        Initialize the scanner.

        Args:
            selection: Pages to extract and the page-break convention
            chunk_size: Bytes per read (defaults to settings)
        """
        self.selection = selection
        self.chunk_size = chunk_size or get_settings().chunk_size
        if self.chunk_size < 1:
            raise ValueError("chunk_size must be positive")

        self._delimiter = bytes([selection.delimiter])
        # A newline belongs to the line it ends; a marker only separates pages.
        self._closing_width = 0 if selection.use_form_feed else 1

    @log_performance
    def scan(self, stream: BinaryIO, sink: BinaryIO) -> ScanCursor:
        """
        Scan the stream and write the selected pages to the sink.

        Args:
            stream: Binary input, read sequentially
            sink: Binary writer receiving the selected bytes

        Returns:
            Final cursor; ``emitted_any`` is False when nothing was selected

        Raises:
            InputError: If reading the stream fails
        """
        cursor = ScanCursor(selection=self.selection)

        while cursor.state is not ScanState.DONE:
            chunk = self._read_chunk(stream)
            if not chunk:
                break
            cursor.chunks_read += 1
            cursor.bytes_read += len(chunk)

            begin, end = self._advance(cursor, chunk)

            if cursor.current_page >= self.selection.start_page:
                selected = chunk[begin:end]
                if selected:
                    if not cursor.emitted_any:
                        logger.debug(
                            "Reached start page",
                            extra={"page": self.selection.start_page, "offset": cursor.bytes_read - len(chunk) + begin},
                        )
                    sink.write(selected)
                    cursor.emitted_any = True
                    cursor.bytes_emitted += len(selected)

        logger.debug(
            "Scan finished",
            extra={
                "state": cursor.state.value,
                "pages_seen": cursor.current_page,
                "bytes_read": cursor.bytes_read,
                "bytes_emitted": cursor.bytes_emitted,
            },
        )
        return cursor

    def _advance(self, cursor: ScanCursor, chunk: bytes) -> tuple[int, int]:
        """Count page breaks in one chunk and return the selected slice bounds."""
        start_page = self.selection.start_page
        end_page = self.selection.end_page
        unit_size = self.selection.unit_size

        begin, end = 0, len(chunk)
        pos = chunk.find(self._delimiter)
        while pos != -1:
            cursor.unit_counter = (cursor.unit_counter + 1) % unit_size
            if cursor.unit_counter == 0:
                cursor.current_page += 1
                if cursor.current_page == start_page:
                    begin = pos + 1
                elif cursor.current_page == end_page + 1:
                    end = pos + self._closing_width
                    break
            pos = chunk.find(self._delimiter, pos + 1)
        return begin, end

    def _read_chunk(self, stream: BinaryIO) -> bytes:
        try:
            return stream.read(self.chunk_size)
        except OSError as e:
            raise InputError(f"failed to read input: {e}", {"errno": e.errno}) from e
