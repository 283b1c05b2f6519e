"""
Command-line interface for histree.

Intended to be called from shell hooks:
    echo "$cmd" | histree add --hostname "$HOST" --pid $$ --exit $status
    histree get --dir "$PWD" --limit 20 -V
    histree update-path --old-path ./old --new-path ./new
"""

import logging
import os
import socket
import sys

import click
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from .database import open_db
from .entry import HistoryEntry, utc_now
from .errors import HistreeError
from .formatter import OutputFormat, write_entries

logger = logging.getLogger(__name__)

console = Console()
err_console = Console(stderr=True)


def _get_config_manager():
    """Get the current config manager instance."""
    from . import config_manager

    return config_manager.config_manager


def _clean_text(value: str) -> str:
    """Replace undecodable bytes (surrogate escapes from argv or cwd) with \\x escapes."""
    try:
        raw = value.encode("utf-8", "surrogateescape")
    except UnicodeEncodeError:
        return value.encode("utf-8", "backslashreplace").decode("utf-8")
    return raw.decode("utf-8", "backslashreplace")


def _fail(ctx, message: str, error: Exception):
    """Report an error on stderr and exit non-zero."""
    err_console.print(f"{message}: {error}", style="red", markup=False, soft_wrap=True)
    ctx.exit(1)


@click.group(invoke_without_command=True)
@click.option(
    "--db",
    "db_path",
    envvar="HISTREE_DB",
    type=click.Path(dir_okay=False),
    help="Path to the SQLite history database",
)
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="Increase log verbosity (-v, -vv, -vvv)",
)
@click.option("--version", is_flag=True, help="Show version and exit")
@click.pass_context
def histree(ctx, db_path, verbose, version):
    """
    histree - directory-aware shell history

    Record a command (command text is read from stdin):
        echo "make test" | histree add --hostname myhost --pid 1234 --exit 0

    Show the last commands run in or below a directory:
        histree get --dir "$PWD" --limit 20 --format verbose
    """
    if version:
        from . import __version__

        click.echo(f"histree {__version__}")
        ctx.exit()

    from .config_manager import setup_logging

    setup_logging(verbose or None)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit(0)

    ctx.ensure_object(dict)
    ctx.obj["db_path"] = _get_config_manager().get_db_path(db_path)
    logger.debug("Using history database %s", ctx.obj["db_path"])


@histree.command()
@click.option("--dir", "directory", default=None, help="Directory the command ran in (default: cwd)")
@click.option("--hostname", default=None, help="Hostname (default: this machine)")
@click.option("--pid", "process_id", type=int, default=None, help="Shell process ID (default: parent PID)")
@click.option("--exit", "exit_code", type=int, default=0, show_default=True, help="Exit code of the command")
@click.pass_context
def add(ctx, directory, hostname, process_id, exit_code):
    """Record a command read from stdin."""
    stdin = click.get_binary_stream("stdin")
    command = stdin.read().decode("utf-8", "backslashreplace").rstrip("\n")

    entry = HistoryEntry(
        command=command,
        directory=_clean_text(directory or os.getcwd()),
        timestamp=utc_now(),
        exit_code=exit_code,
        hostname=_clean_text(hostname or socket.gethostname()),
        process_id=process_id if process_id is not None else os.getppid(),
    )

    try:
        with open_db(ctx.obj["db_path"]) as db:
            db.add_entry(entry)
    except HistreeError as e:
        _fail(ctx, "Failed to add entry", e)


@histree.command()
@click.option("--limit", type=int, default=None, help="Number of entries to retrieve (default: 100)")
@click.option("--dir", "directory", default="", help="Only show entries in or below this directory")
@click.option(
    "--format",
    "output_format",
    default=None,
    help=f"Output format: {', '.join(OutputFormat.names())} (default: simple)",
)
@click.option("-V", "--verbose-format", is_flag=True, help="Same as --format verbose")
@click.pass_context
def get(ctx, limit, directory, output_format, verbose_format):
    """Show recent commands, oldest first."""
    defaults = _get_config_manager().get_defaults()
    if limit is None:
        limit = defaults.get("limit", 100)
    if verbose_format:
        output_format = OutputFormat.VERBOSE
    elif output_format is None:
        output_format = defaults.get("format", OutputFormat.SIMPLE.value)

    try:
        with open_db(ctx.obj["db_path"]) as db:
            entries = db.get_entries(limit, _clean_text(directory))
        write_entries(entries, sys.stdout, output_format)
    except HistreeError as e:
        _fail(ctx, "Failed to get entries", e)


@histree.command(name="update-path")
@click.option("--old-path", required=True, help="Directory that was moved")
@click.option("--new-path", required=True, help="Where it was moved to")
@click.pass_context
def update_path(ctx, old_path, new_path):
    """Rewrite recorded directories after a directory was moved."""
    old_path = _clean_text(os.path.abspath(old_path))
    new_path = _clean_text(os.path.abspath(new_path))

    try:
        with open_db(ctx.obj["db_path"]) as db:
            count = db.update_paths(old_path, new_path)
    except HistreeError as e:
        _fail(ctx, "Failed to update paths", e)
        return

    click.echo(f"Updated {count} entries: {old_path} -> {new_path}")


@histree.command(name="config")
@click.pass_context
def show_config(ctx):
    """Show the effective configuration and where it is loaded from."""
    config_mgr = _get_config_manager()

    table = Table(title="Configuration Files")
    table.add_column("Scope", style="cyan", no_wrap=True)
    table.add_column("Path", style="green")
    table.add_column("Exists", style="blue")
    for scope, path in config_mgr.get_config_files().items():
        table.add_row(scope, str(path), "yes" if path.exists() else "no")
    console.print(table)

    console.print(f"\nDatabase: {ctx.obj['db_path']}", markup=False, soft_wrap=True)

    console.print("\nEffective configuration:", style="bold")
    syntax = Syntax(config_mgr.to_yaml(), "yaml", theme="github-dark")
    console.print(syntax)
