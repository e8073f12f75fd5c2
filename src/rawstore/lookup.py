"""Key listing and exact name lookup."""

from __future__ import annotations

import logging

from rawstore.config import StoreConfig
from rawstore.errors import StoreNotFoundError
from rawstore.storage import READONLY, open_store
from rawstore.types import StoredFileRecord

logger = logging.getLogger(__name__)


def get_keys(config: StoreConfig) -> list[str]:
    """Return every primary key in store order.

    A database or object store that was never created yields an empty list and
    is left uncreated.
    """
    try:
        handle = open_store(config, create=False)
    except StoreNotFoundError:
        logger.debug("Store '%s' not initialized; no keys", config.store_name)
        return []
    with handle:
        with handle.transaction(READONLY):
            return handle.get_all_keys()


def fetch_file_by_name(name: str | None, config: StoreConfig) -> StoredFileRecord | None:
    """Fetch the record whose ``name`` matches exactly, or None."""
    if not name:
        return None
    with open_store(config) as handle:
        with handle.transaction(READONLY):
            record = handle.get_by_index("name", name)
    if record is None:
        logger.debug("No record named '%s' in store '%s'", name, config.store_name)
    return record
