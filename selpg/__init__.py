"""
selpg - select a range of pages from a text stream.

Pages are either a fixed number of lines or delimited by form feeds. The
selected pages go to standard output or to a print command.
"""

__version__ = "1.0.0"
