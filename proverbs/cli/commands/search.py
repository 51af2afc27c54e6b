"""Listing and search CLI commands."""

import click
from rich.markup import escape

from proverbs.cli.formatters import FORMATS, create_tags_table, print_proverbs
from proverbs.search import QueryEngine


def get_query_engine(ctx: click.Context) -> QueryEngine:
    """Get a query engine over the context's backend."""
    return QueryEngine(ctx.obj.open_backend())


format_option = click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(FORMATS),
    default="plain",
    show_default=True,
    help="Output format",
)


@click.command("all")
@format_option
@click.pass_context
def all_command(ctx: click.Context, output_format: str) -> None:
    """List every stored proverb."""
    proverbs = get_query_engine(ctx).all()
    print_proverbs(ctx.obj.console, proverbs, output_format, title="All proverbs")


@click.command()
@click.argument("text")
@format_option
@click.pass_context
def contains(ctx: click.Context, text: str, output_format: str) -> None:
    """Find proverbs containing TEXT (case-insensitive)."""
    proverbs = get_query_engine(ctx).contains(text)
    print_proverbs(
        ctx.obj.console, proverbs, output_format, title=f"Proverbs containing {text!r}"
    )


@click.command()
@click.argument("tag")
@format_option
@click.pass_context
def tagged(ctx: click.Context, tag: str, output_format: str) -> None:
    """Find proverbs tagged exactly TAG (case-sensitive)."""
    proverbs = get_query_engine(ctx).tagged(tag)
    print_proverbs(
        ctx.obj.console, proverbs, output_format, title=f"Proverbs tagged {tag!r}"
    )


@click.command()
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["plain", "table"]),
    default="plain",
    show_default=True,
    help="Output format",
)
@click.pass_context
def tags(ctx: click.Context, output_format: str) -> None:
    """List tags with the number of proverbs carrying each."""
    console = ctx.obj.console
    counts = get_query_engine(ctx).tags()

    if output_format == "table":
        console.print(create_tags_table(counts))
        return

    for tag, count in counts:
        console.print(f"{escape(tag)}  {count}", highlight=False, soft_wrap=True)
