"""Sync Google Sheets rows to GitHub issues."""

__version__ = "0.1.0"
