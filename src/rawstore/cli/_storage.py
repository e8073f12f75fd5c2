"""CLI helpers for building the store configuration from global options."""

from __future__ import annotations

import typer

from rawstore.cli import _exitcodes as ec
from rawstore.cli._output import print_error
from rawstore.config import StoreConfig
from rawstore.errors import (
    RawStoreError,
    StorageUnavailableError,
    UnknownSortFieldError,
    ValidationError,
)


def resolve_config() -> StoreConfig:
    """Return the StoreConfig from RAWSTORE_* variables, overridden by global CLI options."""
    from rawstore.cli import state

    return StoreConfig.from_env().with_overrides(
        db_path=state.db,
        store_name=state.store,
        schema_version=state.schema_version,
    )


def fail(e: Exception) -> typer.Exit:
    """Report ``e`` on stderr and return the matching typer.Exit."""
    print_error(str(e))
    if isinstance(e, ValidationError):
        return typer.Exit(ec.VALIDATION_ERROR)
    if isinstance(e, StorageUnavailableError):
        return typer.Exit(ec.STORAGE_ERROR)
    if isinstance(e, (UnknownSortFieldError, ValueError)):
        return typer.Exit(ec.USAGE_ERROR)
    if isinstance(e, RawStoreError):
        return typer.Exit(ec.EXECUTION_FAILURE)
    return typer.Exit(ec.GENERAL_ERROR)
