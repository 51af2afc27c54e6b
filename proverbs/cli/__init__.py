"""Proverb store CLI.

Command-line interface for importing and searching proverbs.
Built with Click and Rich.
"""

from proverbs.cli.main import cli

__all__ = ["cli"]
