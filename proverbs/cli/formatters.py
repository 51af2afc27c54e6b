"""Output formatters for query results.

Plain output prints one line per proverb: the text, two spaces, then its
tags in brackets::

    Cgo is not Go.  [cgo]
"""

import msgspec
from rich.console import Console
from rich.table import Table

from proverbs.core.models import Proverb

FORMATS = ["plain", "table", "json"]


def format_proverb(proverb: Proverb) -> str:
    """Format one proverb as a single line of plain text."""
    text = " ".join(proverb.text.splitlines())
    return f"{text}  [{', '.join(proverb.tags)}]"


def format_proverbs_plain(proverbs: list[Proverb]) -> str:
    """Format proverbs as plain lines."""
    return "\n".join(format_proverb(proverb) for proverb in proverbs)


def format_proverbs_json(proverbs: list[Proverb]) -> str:
    """Format proverbs as a JSON array."""
    encoded = msgspec.json.encode([proverb.to_dict() for proverb in proverbs])
    return msgspec.json.format(encoded, indent=2).decode()


def create_proverbs_table(proverbs: list[Proverb], title: str | None = None) -> Table:
    """Create a Rich table of proverbs."""
    table = Table(title=title, show_lines=False)
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Proverb", style="bold")
    table.add_column("Tags", style="cyan")

    for proverb in proverbs:
        table.add_row(proverb.id or "", proverb.text, ", ".join(proverb.tags))

    return table


def create_tags_table(counts: list[tuple[str, int]]) -> Table:
    """Create a Rich table of tag usage counts."""
    table = Table(title="Tags")
    table.add_column("Tag", style="cyan")
    table.add_column("Proverbs", justify="right")

    for tag, count in counts:
        table.add_row(tag, str(count))

    return table


def print_proverbs(
    console: Console,
    proverbs: list[Proverb],
    format: str = "plain",
    title: str | None = None,
) -> None:
    """Print proverbs in the requested format.

    Plain and JSON output bypass Rich markup and wrapping so each proverb
    stays on one line.
    """
    if format == "table":
        console.print(create_proverbs_table(proverbs, title=title))
    elif format == "json":
        console.out(format_proverbs_json(proverbs), highlight=False)
    elif proverbs:
        console.out(format_proverbs_plain(proverbs), highlight=False)
