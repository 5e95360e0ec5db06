"""senja: local-first record cache with background spreadsheet sync."""

__version__ = "0.1.0"
