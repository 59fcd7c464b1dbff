"""Page boundary scanning."""

from selpg.scanner.page_scanner import PageScanner

__all__ = ["PageScanner"]
