"""rawstore CLI: upload CSV files and browse the local store."""

from __future__ import annotations

from typing import Optional

import typer

from rawstore.cli import files, info, init_cmd, upload_cmd
from rawstore.config import StoreConfig
from rawstore.logging_config import setup_logging

app = typer.Typer(
    name="rawstore",
    help="rawstore CLI: upload CSV files and browse the local store.",
    no_args_is_help=True,
)


class _State:
    """Global CLI state shared across subcommands."""

    # None means "not given on the command line"; see _storage.resolve_config.
    db: Optional[str] = None
    store: Optional[str] = None
    schema_version: Optional[int] = None
    json_output: bool = False


state = _State()


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError, version

        try:
            v = version("rawstore")
        except PackageNotFoundError:
            v = "unknown"
        print(f"rawstore {v}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    db: Optional[str] = typer.Option(
        None,
        "--db",
        envvar="RAWSTORE_DB",
        help=f"SQLite database file path (default: {StoreConfig.db_path})",
    ),
    store: Optional[str] = typer.Option(
        None,
        "--store",
        envvar="RAWSTORE_STORE",
        help=f"Object store name (default: {StoreConfig.store_name})",
    ),
    schema_version: Optional[int] = typer.Option(
        None,
        "--schema-version",
        envvar="RAWSTORE_SCHEMA_VERSION",
        help=f"Store schema version (default: {StoreConfig.schema_version})",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output when supported"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output to stderr"),
    version: bool = typer.Option(
        False, "--version", help="Show version", is_eager=True, callback=_version_callback
    ),
) -> None:
    """Global options for all rawstore commands."""
    setup_logging(verbose)

    if schema_version is not None and schema_version < 1:
        raise typer.BadParameter("--schema-version must be >= 1")

    state.db = db
    state.store = store
    state.schema_version = schema_version
    state.json_output = json_output
    if ctx.invoked_subcommand is None and not version:
        print(ctx.get_help())
        raise typer.Exit()


app.command(name="init")(init_cmd.init_cmd)
app.command(name="upload")(upload_cmd.upload_cmd)
app.command(name="list")(files.list_cmd)
app.command(name="keys")(files.keys_cmd)
app.command(name="show")(files.show_cmd)
app.command(name="columns")(files.columns_cmd)
app.command(name="info")(info.info_cmd)


def main() -> None:
    """Entry point for the rawstore CLI."""
    app()
