"""
CLI interface for ftag.

Usage:
    ftag tag notes.txt work draft
    ftag filter work
    ftag list notes.txt
"""

import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import typer
from typing_extensions import Annotated

from .config import FilterStrategy, FtagConfig, load_config
from .cursor import ResultCursor
from .errors import FtagError
from .logging_config import configure_quiet_mode, enable_debug_mode, verbosity_level
from .store import TagStore

PROGRAM_NAME = "ftag"

# Quiet by default; FTAG_VERBOSE=1 turns on debug output from the start
if os.environ.get("FTAG_VERBOSE") == "1":
    enable_debug_mode()
else:
    configure_quiet_mode(quiet=True)


def _version_callback(value: bool):
    if value:
        from . import __version__
        typer.echo(f"{PROGRAM_NAME} {__version__}")
        raise typer.Exit()


app = typer.Typer(
    name=PROGRAM_NAME,
    help="Tag your files, then filter them by tag.",
    no_args_is_help=True,
    rich_markup_mode=None,
    epilog="This software is licensed under the GNU General Public License.",
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    database: Annotated[Optional[str], typer.Option(
        "--database", "-d",
        help="Store file name to look for (':memory:' for a throwaway store)",
    )] = None,
    directory: Annotated[Optional[Path], typer.Option(
        "--directory", "-C",
        help="Use the store in DIR, creating it there if needed (skips the upward search)",
        file_okay=False,
    )] = None,
    show_all: Annotated[bool, typer.Option(
        "--all", "-a",
        help="Include hidden entries (names starting with '.')",
    )] = False,
    strategy: Annotated[Optional[FilterStrategy], typer.Option(
        "--strategy",
        help="How to filter on several tags: 'resolve' (A-Z) or 'in-list' (Z-A)",
        case_sensitive=False,
    )] = None,
    verbose: Annotated[int, typer.Option(
        "--verbose", "-v",
        help="Increase output verbosity (repeatable)",
        count=True,
    )] = 0,
    version: Annotated[Optional[bool], typer.Option(
        "--version",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    )] = None,
):
    """Tag your files, then filter them by tag."""
    if verbose:
        enable_debug_mode(verbosity_level(verbose))

    try:
        config = load_config()
    except (OSError, ValueError) as e:
        typer.echo(f"{PROGRAM_NAME}: error: {e}", err=True)
        raise typer.Exit(1)

    if database is not None:
        config.database = database
    if directory is not None:
        config.directory = directory
    if show_all:
        config.show_hidden = True
    if strategy is not None:
        config.strategy = strategy
    ctx.obj = config


@contextmanager
def _open_store(ctx: typer.Context) -> Iterator[TagStore]:
    """Open the configured store for one command; it is closed on every exit path."""
    config: FtagConfig = ctx.obj
    try:
        store = TagStore.from_config(config)
    except FtagError as e:
        typer.echo(f"{PROGRAM_NAME}: error: failed to initialize database: {e}", err=True)
        raise typer.Exit(1)
    with store:
        yield store


def _echo_all(results: ResultCursor) -> int:
    """Print each value on its own line; returns the number printed."""
    count = 0
    with results:
        for value in results:
            typer.echo(value)
            count += 1
    return count


# -----------------------------------------------------------------------------
# Commands
# -----------------------------------------------------------------------------

@app.command("tag")
def tag_file(
    ctx: typer.Context,
    file: Annotated[str, typer.Argument(help="File to tag (stored as given)")],
    tags: Annotated[list[str], typer.Argument(help="One or more tags to attach")],
):
    """
    Attach tags to a file.

    \b
    Examples:
        ftag tag notes.txt work          # One tag
        ftag tag notes.txt work draft    # Several tags
    """
    with _open_store(ctx) as store:
        for tag in tags:
            try:
                store.tag(file, tag)
            except FtagError as e:
                typer.echo(f"{PROGRAM_NAME}: error tagging file: {e}", err=True)
                raise typer.Exit(1)


# The original command name
app.command("file", hidden=True)(tag_file)


@app.command("filter")
def filter_files(
    ctx: typer.Context,
    tags: Annotated[Optional[list[str]], typer.Argument(
        help="Show files with any of these tags (all tagged files if none)",
    )] = None,
):
    """
    List files carrying any of the given tags.

    \b
    Examples:
        ftag filter              # Every tagged file
        ftag filter work         # Files tagged 'work'
        ftag filter work draft   # Files tagged 'work' or 'draft'
    """
    with _open_store(ctx) as store:
        try:
            _echo_all(store.filter(tags or []))
        except FtagError as e:
            typer.echo(f"{PROGRAM_NAME}: error while filtering tag: {e}", err=True)
            raise typer.Exit(1)


@app.command("list")
def list_tags(
    ctx: typer.Context,
    file: Annotated[Optional[str], typer.Argument(
        help="File whose tags to list (all tags if omitted)",
    )] = None,
):
    """
    List the tags on a file, or every tag in use.

    \b
    Examples:
        ftag list                # Every tag
        ftag list notes.txt      # Tags on notes.txt
    """
    with _open_store(ctx) as store:
        try:
            _echo_all(store.list(file))
        except FtagError as e:
            typer.echo(f"{PROGRAM_NAME}: error while listing tags: {e}", err=True)
            raise typer.Exit(1)


# -----------------------------------------------------------------------------

def main():
    try:
        app()
    except SystemExit:
        raise  # Let typer handle exit codes
    except KeyboardInterrupt:
        raise SystemExit(130)  # Standard exit code for Ctrl+C
    except Exception as e:
        # Log full traceback to file, show clean message to user
        from .errors import log_exception
        log_path = log_exception(e, context=f"{PROGRAM_NAME} CLI")
        typer.echo(f"Error: {e}", err=True)
        typer.echo(f"Details logged to {log_path}", err=True)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
