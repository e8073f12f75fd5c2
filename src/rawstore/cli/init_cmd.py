"""rawstore init: create or upgrade the selected object store."""

from __future__ import annotations

import typer

from rawstore.cli._output import print_object
from rawstore.cli._storage import fail, resolve_config
from rawstore.errors import RawStoreError
from rawstore.storage import open_store


def init_cmd(
    dry_run: bool = typer.Option(False, "--dry-run", help="Preview initialization only"),
) -> None:
    """Create the object store and its name index, or upgrade it to --schema-version."""
    from rawstore.cli import state

    json_mode = state.json_output
    config = resolve_config()

    if dry_run:
        data = {
            "backend": "sqlite",
            "db_path": config.db_path,
            "store_name": config.store_name,
            "schema_version": config.schema_version,
            "status": "dry_run",
            "message": "Stores are also created lazily on first upload or query.",
        }
        print_object(data, json_mode=json_mode)
        return

    try:
        with open_store(config) as handle:
            data = handle.info()
    except RawStoreError as e:
        raise fail(e)

    data["status"] = "initialized"
    print_object(data, json_mode=json_mode)
