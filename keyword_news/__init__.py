"""Keyword news feed: sheet ingestion, grouped views and social side-channels."""

__version__ = "0.1.0"
