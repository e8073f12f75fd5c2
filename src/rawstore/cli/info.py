"""rawstore info: show store status."""

from __future__ import annotations

import os
from typing import Any

import typer

from rawstore.cli import _exitcodes as ec
from rawstore.cli._output import print_error, print_object
from rawstore.cli._storage import fail, resolve_config
from rawstore.errors import RawStoreError, StoreNotFoundError
from rawstore.storage import open_store


def info_cmd() -> None:
    """Show database path, store name, schema version and record count."""
    from rawstore.cli import state

    json_mode = state.json_output
    config = resolve_config()

    if not os.path.exists(config.db_path):
        print_error(f"Database not found: {config.db_path}")
        raise typer.Exit(ec.NOT_FOUND)

    try:
        with open_store(config, create=False) as handle:
            data: dict[str, Any] = handle.info()
    except StoreNotFoundError as e:
        print_error(str(e))
        raise typer.Exit(ec.NOT_FOUND)
    except RawStoreError as e:
        raise fail(e)

    data["file_size_bytes"] = os.path.getsize(config.db_path)
    print_object(data, json_mode=json_mode)
