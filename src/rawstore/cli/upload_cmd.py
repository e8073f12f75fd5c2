"""rawstore upload: validate and store CSV files."""

from __future__ import annotations

from typing import Any

import typer

from rawstore.cli import _exitcodes as ec
from rawstore.cli._output import print_error, print_table
from rawstore.cli._storage import fail, resolve_config
from rawstore.errors import RawStoreError
from rawstore.types import IncomingFile
from rawstore.upload import upload_file


def upload_cmd(
    paths: list[str] = typer.Argument(..., help="CSV files to upload"),
) -> None:
    """Upload one or more CSV files. Stops at the first rejected file."""
    from rawstore.cli import state

    json_mode = state.json_output
    config = resolve_config()

    rows: list[list[Any]] = []
    for path in paths:
        try:
            incoming = IncomingFile.from_path(path)
        except OSError as e:
            _flush(rows, json_mode)
            print_error(f"Cannot read {path}: {e}")
            raise typer.Exit(ec.GENERAL_ERROR)

        try:
            record = upload_file(incoming, config)
        except RawStoreError as e:
            _flush(rows, json_mode)
            raise fail(e)
        rows.append([path, record.name, record.size, record.mime_type])

    _flush(rows, json_mode)


def _flush(rows: list[list[Any]], json_mode: bool) -> None:
    print_table(["source", "name", "size", "mimeType"], rows, json_mode=json_mode)
