"""CLI commands module."""

from . import import_export, search

__all__ = ["import_export", "search"]
