"""
Core data models for selpg.

This module defines the run configuration (validated with Pydantic), the
scanner's mutable cursor and the results handed back to the caller.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from selpg.utils.errors import UsageError

FORM_FEED = 0x0C
NEWLINE = 0x0A


# =============================================================================
# Enums
# =============================================================================


class ScanState(str, Enum):
    """Position of the scan relative to the requested interval."""

    SEARCHING = "searching"
    EMITTING = "emitting"
    DONE = "done"


# =============================================================================
# Selection
# =============================================================================


class PageSelection(BaseModel):
    """Immutable description of which pages to extract and how pages are delimited."""

    model_config = ConfigDict(frozen=True)

    start_page: int = Field(..., ge=1, description="First page to emit (1-based)")
    end_page: int = Field(..., ge=1, description="Last page to emit, inclusive")
    page_length: int = Field(default=72, ge=1, description="Lines per page in line-count mode")
    use_form_feed: bool = Field(default=False, description="Delimit pages with a marker byte")
    page_marker: int = Field(default=FORM_FEED, ge=0, le=255, description="Marker byte value")

    @model_validator(mode="after")
    def check_interval(self) -> "PageSelection":
        """Reject inverted intervals."""
        if self.end_page < self.start_page:
            raise ValueError("end_page must be equal to or greater than start_page")
        return self

    @property
    def delimiter(self) -> int:
        """Byte value that counts toward a page break."""
        return self.page_marker if self.use_form_feed else NEWLINE

    @property
    def unit_size(self) -> int:
        """Number of delimiters that close one page."""
        return 1 if self.use_form_feed else self.page_length

    @classmethod
    def from_options(
        cls,
        start_page: Optional[int],
        end_page: Optional[int],
        limit: Optional[int] = None,
        use_form_feed: bool = False,
        default_page_length: int = 72,
    ) -> "PageSelection":
        """
        Build a selection from raw command line values.

        Args:
            start_page: Value of -s, or None when absent
            end_page: Value of -e, or None when absent
            limit: Value of -l, or None when absent
            use_form_feed: Whether -f was given
            default_page_length: Lines per page when -l is absent

        Returns:
            Validated selection

        Raises:
            UsageError: For conflicting, missing or out-of-range options
        """
        if limit is not None and use_form_feed:
            raise UsageError("arguments -l and -f can not be set at the same time")
        if start_page is None or end_page is None:
            raise UsageError("arguments -s and -e are required")
        if start_page <= 0 or end_page <= 0 or start_page > end_page:
            raise UsageError(
                "arguments -s and -e must be positive, and -e must be equal to or greater than -s",
                {"start_page": start_page, "end_page": end_page},
            )
        if limit is not None and limit <= 0:
            raise UsageError("argument -l must be positive", {"limit": limit})

        try:
            return cls(
                start_page=start_page,
                end_page=end_page,
                page_length=limit if limit is not None else default_page_length,
                use_form_feed=use_form_feed,
            )
        except ValidationError as e:
            raise UsageError(f"invalid page selection: {e}")


# =============================================================================
# Scan State
# =============================================================================


@dataclass
class ScanCursor:
    """Mutable page-counting state owned by one scan."""

    selection: PageSelection
    current_page: int = 1
    unit_counter: int = 0
    emitted_any: bool = False
    bytes_read: int = 0
    bytes_emitted: int = 0
    chunks_read: int = 0

    @property
    def state(self) -> ScanState:
        if self.current_page > self.selection.end_page:
            return ScanState.DONE
        if self.current_page >= self.selection.start_page:
            return ScanState.EMITTING
        return ScanState.SEARCHING


# =============================================================================
# Results
# =============================================================================


class BridgeResult(BaseModel):
    """Outcome of a print consumer run that exited successfully."""

    command: List[str] = Field(..., description="Argument vector that was executed")
    destination: str = Field(..., description="Printer destination")
    returncode: int = Field(default=0, description="Consumer exit status")
    stdout_bytes: int = Field(default=0, ge=0, description="Bytes relayed from consumer stdout")
    stderr_bytes: int = Field(default=0, ge=0, description="Bytes relayed from consumer stderr")


@dataclass
class SelectionReport:
    """Summary of a completed run."""

    selection: PageSelection
    cursor: ScanCursor
    bridge_result: Optional[BridgeResult] = None
