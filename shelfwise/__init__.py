"""Shelfwise: reader library client for a book-recommendation service."""

__version__ = "1.0.0"
