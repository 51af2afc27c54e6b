"""Import command for proverb corpora."""

from pathlib import Path

import click
from rich.markup import escape

from proverbs.operations import ProverbImporter


@click.command("import")
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--dry-run", is_flag=True, help="Validate the file without storing anything"
)
@click.pass_context
def import_command(ctx: click.Context, source: Path, dry_run: bool) -> None:
    """Import proverbs from a CSV file with 'tags' and 'proverb' columns.

    Multiple tags in one row are separated by '|'. The import is atomic:
    if any row fails, nothing is stored.
    """
    console = ctx.obj.console
    backend = None if dry_run else ctx.obj.open_backend()
    result = ProverbImporter(backend).import_file(source, dry_run=dry_run)

    console.print(f"[green]✓[/green] {escape(result.get_summary())}")
