"""Main CLI entry point and application setup."""

import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path

import click
from click.exceptions import Exit
from rich.console import Console
from rich.markup import escape

from proverbs import __version__
from proverbs.cli.commands import import_export, search
from proverbs.cli.config import build_settings, load_config
from proverbs.core.exceptions import ConfigError, ProverbsError
from proverbs.storage.backends import BACKENDS, BaseBackend, create_backend
from proverbs.storage.config import StoreSettings

EXIT_USAGE = ConfigError.exit_code

logger = logging.getLogger(__name__)


@dataclass
class Context:
    """CLI context that holds shared resources.

    The backend is opened on first use and closed when the click context
    tears down, on success and on failure alike.
    """

    settings: StoreSettings
    console: Console
    error_console: Console
    config: dict = field(default_factory=dict)
    debug: bool = False
    backend: BaseBackend | None = None

    def open_backend(self) -> BaseBackend:
        """Get the backend, opening it on first use."""
        if self.backend is None:
            backend = create_backend(self.settings)
            backend.open()
            self.backend = backend
        return self.backend

    def close(self) -> None:
        """Release the backend handle, if one was opened."""
        if self.backend is not None:
            self.backend.close()
            self.backend = None


def setup_logging(
    verbose: bool = False, quiet: bool = False, debug: bool = False
) -> None:
    """Configure logging based on CLI flags."""
    if quiet:
        level = logging.WARNING
    elif verbose or debug:
        level = logging.DEBUG
    else:
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s"
        if not debug
        else "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def create_console(
    no_color: bool = False, width: int | None = None, stderr: bool = False
) -> Console:
    """Create Rich console with appropriate settings."""
    return Console(
        no_color=no_color,
        width=width or 120,
        highlight=not no_color,
        color_system=None if no_color else "auto",
        stderr=stderr,
    )


class ProverbsGroup(click.Group):
    """Custom group that maps errors to exit codes.

    Usage errors exit with 1, backend errors with 2 and failed imports
    with 3.
    """

    def make_context(self, info_name, args, parent=None, **extra):
        try:
            return super().make_context(info_name, args, parent=parent, **extra)
        except click.UsageError as e:
            e.exit_code = EXIT_USAGE
            raise

    def invoke(self, ctx):
        try:
            return super().invoke(ctx)
        except click.UsageError as e:
            e.exit_code = EXIT_USAGE
            raise
        except KeyboardInterrupt:
            click.echo("Interrupted", err=True)
            ctx.exit(130)
        except (click.ClickException, click.Abort, Exit, SystemExit):
            raise
        except ProverbsError as e:
            debug = getattr(ctx.obj, "debug", False) if ctx.obj else False
            if debug:
                raise
            logger.debug(f"{type(e).__name__}: {e}")
            error_console = getattr(ctx.obj, "error_console", None)
            if error_console:
                error_console.print(f"[red]Error:[/red] {escape(str(e))}")
            else:
                click.echo(f"Error: {e}", err=True)
            ctx.exit(e.exit_code)


@click.group(cls=ProverbsGroup)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-error output")
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.option("--debug", is_flag=True, help="Enable debug mode with full tracebacks")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file",
)
@click.option(
    "--backend",
    "-b",
    type=click.Choice(sorted(BACKENDS)),
    help="Storage backend (overrides configuration)",
)
@click.option(
    "--data-dir",
    "-d",
    type=click.Path(file_okay=False, path_type=Path),
    help="Override data directory for embedded databases",
)
@click.version_option(
    version=__version__, prog_name="proverbs", message="proverbs version %(version)s"
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    no_color: bool,
    debug: bool,
    config: Path | None,
    backend: str | None,
    data_dir: Path | None,
) -> None:
    """Proverb store.

    Imports tagged proverbs from a CSV file into a SQLite, MongoDB or LMDB
    store and searches them by text or by tag.
    """
    setup_logging(verbose=verbose, quiet=quiet, debug=debug)

    config_data = load_config(config)
    settings = build_settings(config_data, backend=backend, data_dir=data_dir)
    logger.debug(f"Using {settings.backend} backend")

    ctx.obj = Context(
        settings=settings,
        console=create_console(no_color=no_color),
        error_console=create_console(no_color=no_color, stderr=True),
        config=config_data,
        debug=debug,
    )
    ctx.call_on_close(ctx.obj.close)


# Command: status
@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show the configured backend and how many proverbs it holds."""
    console = ctx.obj.console
    backend = ctx.obj.open_backend()

    console.print("\n[bold]Store Status[/bold]\n")
    console.print(f"Backend: {backend.name}")
    console.print(f"Location: {escape(backend.location)}")
    console.print(f"Total proverbs: {backend.count()}")


cli.add_command(import_export.import_command)
cli.add_command(search.all_command)
cli.add_command(search.contains)
cli.add_command(search.tagged)
cli.add_command(search.tags)


def main() -> None:
    """Main entry point for the CLI application."""
    try:
        cli()
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    main()
