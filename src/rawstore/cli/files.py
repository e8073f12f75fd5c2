"""rawstore list/keys/show/columns: read stored files."""

from __future__ import annotations

from typing import Optional

import typer

from rawstore.cli import _exitcodes as ec
from rawstore.cli._output import print_error, print_object, print_records, print_table
from rawstore.cli._storage import fail, resolve_config
from rawstore.errors import RawStoreError
from rawstore.lookup import fetch_file_by_name, get_keys
from rawstore.parsing import header_fields, parse_csv
from rawstore.query import fetch_files
from rawstore.types import StoredFileRecord


def list_cmd(
    search: str = typer.Option("", "--search", "-s", help="Case-insensitive name substring"),
    sort: Optional[str] = typer.Option(None, "--sort", help="Field to sort by"),
    order: str = typer.Option("asc", "--order", help="Sort order: asc or desc"),
    offset: int = typer.Option(0, "--offset", help="Skip first N results"),
    limit: Optional[int] = typer.Option(None, "--limit", help="Max results"),
) -> None:
    """List stored files with search, sort and pagination."""
    from rawstore.cli import state

    config = resolve_config()
    try:
        records = fetch_files(
            config,
            search_query=search,
            sort_field=sort,
            sort_order=order,
            offset=offset,
            limit=limit,
        )
    except (RawStoreError, ValueError) as e:
        raise fail(e)

    print_records(records, json_mode=state.json_output)


def keys_cmd() -> None:
    """List every primary key in store order."""
    from rawstore.cli import state

    try:
        keys = get_keys(resolve_config())
    except RawStoreError as e:
        raise fail(e)
    print_object(keys, json_mode=state.json_output)


def _require_record(name: str) -> StoredFileRecord:
    try:
        record = fetch_file_by_name(name, resolve_config())
    except RawStoreError as e:
        raise fail(e)
    if record is None:
        print_error(f"No file named '{name}'")
        raise typer.Exit(ec.NOT_FOUND)
    return record


def show_cmd(
    name: str = typer.Argument(..., help="Exact stored file name"),
    output: Optional[str] = typer.Option(
        None, "--output", "-o", help="Write the stored payload to this path"
    ),
) -> None:
    """Show metadata for one stored file."""
    from rawstore.cli import state

    record = _require_record(name)
    if output:
        try:
            with open(output, "wb") as f:
                f.write(record.raw_data)
        except OSError as e:
            print_error(f"Cannot write {output}: {e}")
            raise typer.Exit(ec.GENERAL_ERROR)
    print_object(record.summary(), json_mode=state.json_output)


def columns_cmd(
    name: str = typer.Argument(..., help="Exact stored file name"),
    fields: list[str] = typer.Option(..., "--field", "-f", help="Column to extract (repeatable)"),
) -> None:
    """Print selected columns of a stored CSV file."""
    from rawstore.cli import state

    record = _require_record(name)
    text = record.text()
    wanted = set(fields)
    headers = [f for f in header_fields(text) if f in wanted]
    print_table(headers, parse_csv(text, fields), json_mode=state.json_output)
