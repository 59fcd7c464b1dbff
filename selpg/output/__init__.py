"""Output routing and the print command bridge."""

from selpg.output.printer import PrintPipeBridge
from selpg.output.router import OutputSink, open_output

__all__ = ["OutputSink", "PrintPipeBridge", "open_output"]
