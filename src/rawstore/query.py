"""Query engine: bounded filter, sort and pagination over a forward cursor.

The three stages are independent functions and are composed by
:func:`fetch_files`. The filter stage stops reading once ``offset + limit``
records have matched, and sorting only sees that window. On a store holding
more matches than the window, results are therefore ordered within the first
``offset + limit`` matches in key order, not across the whole store.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Iterable, Sequence

from rawstore.config import StoreConfig
from rawstore.errors import UnknownSortFieldError
from rawstore.storage import READONLY, open_store
from rawstore.types import StoredFileRecord

logger = logging.getLogger(__name__)

SORT_ORDERS = ("asc", "desc")

SORT_FIELDS: dict[str, Callable[[StoredFileRecord], Any]] = {
    "name": lambda r: r.name,
    "size": lambda r: r.size,
    "mime_type": lambda r: r.mime_type,
    "last_modified": lambda r: r.last_modified_at,
    "annotation_count": lambda r: r.annotation_count,
}

_SORT_ALIASES = {
    "mimeType": "mime_type",
    "lastModified": "last_modified",
    "lastModifiedTimestamp": "last_modified",
    "annotationCount": "annotation_count",
}


def resolve_sort_field(sort_field: str) -> Callable[[StoredFileRecord], Any]:
    """Return the accessor for a sort field name (snake_case or export alias)."""
    accessor = SORT_FIELDS.get(_SORT_ALIASES.get(sort_field, sort_field))
    if accessor is None:
        raise UnknownSortFieldError(sort_field, list(SORT_FIELDS) + list(_SORT_ALIASES))
    return accessor


def _normalize_order(sort_order: str) -> str:
    order = (sort_order or "asc").lower()
    if order not in SORT_ORDERS:
        raise ValueError(f"Unknown sort order '{sort_order}'. Valid orders: asc, desc")
    return order


def _comparable(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.timestamp()
    return value


def filter_files(
    records: Iterable[StoredFileRecord],
    search_query: str | None,
    max_matches: int,
) -> list[StoredFileRecord]:
    """Collect up to ``max_matches`` records whose name contains ``search_query``.

    Matching is a case-insensitive substring test; an empty query matches
    everything. Reading stops as soon as enough records have matched.
    """
    matches: list[StoredFileRecord] = []
    if max_matches <= 0:
        return matches
    needle = (search_query or "").lower()
    for record in records:
        if not needle or needle in record.name.lower():
            matches.append(record)
            if len(matches) >= max_matches:
                break
    return matches


def sort_files(
    records: Sequence[StoredFileRecord],
    sort_field: str,
    sort_order: str = "asc",
) -> list[StoredFileRecord]:
    """Stable sort on one field. Datetime values compare as timestamps."""
    accessor = resolve_sort_field(sort_field)
    order = _normalize_order(sort_order)
    return sorted(records, key=lambda r: _comparable(accessor(r)), reverse=order == "desc")


def paginate_files(
    records: Sequence[StoredFileRecord],
    offset: int,
    limit: int,
) -> list[StoredFileRecord]:
    """Slice ``[offset, offset + limit)``; negative offsets count as 0."""
    start = max(offset, 0)
    end = min(start + max(limit, 0), len(records))
    return list(records[start:end])


def fetch_files(
    config: StoreConfig,
    search_query: str | None = "",
    sort_field: str | None = None,
    sort_order: str = "asc",
    offset: int = 0,
    limit: int | None = None,
) -> list[StoredFileRecord]:
    """Search, sort and paginate stored files with a fresh cursor."""
    if sort_field is not None:
        resolve_sort_field(sort_field)
    _normalize_order(sort_order)
    if limit is None:
        limit = config.default_limit
    offset = max(offset, 0)

    with open_store(config) as handle:
        with handle.transaction(READONLY):
            cursor = handle.open_forward_cursor()
            try:
                files = filter_files(cursor, search_query, offset + limit)
            finally:
                cursor.close()
            scanned = cursor.position

    logger.debug(
        "Scanned %d record(s) in '%s', %d matched %r",
        scanned,
        config.store_name,
        len(files),
        search_query,
    )
    if sort_field:
        files = sort_files(files, sort_field, sort_order)
    return paginate_files(files, offset, limit)


class FileQuery:
    """Chainable builder over :func:`fetch_files`.

    Usage::

        FileQuery(config).search("speed").order_by("size", desc=True).limit(10).collect()
    """

    def __init__(self, config: StoreConfig) -> None:
        self._config = config
        self._search: str = ""
        self._sort_field: str | None = None
        self._sort_order: str = "asc"
        self._offset: int = 0
        self._limit: int | None = None

    def search(self, query: str) -> FileQuery:
        self._search = query
        return self

    def order_by(self, sort_field: str, *, desc: bool = False) -> FileQuery:
        resolve_sort_field(sort_field)
        self._sort_field = sort_field
        self._sort_order = "desc" if desc else "asc"
        return self

    def offset(self, n: int) -> FileQuery:
        self._offset = n
        return self

    def limit(self, n: int) -> FileQuery:
        self._limit = n
        return self

    def collect(self) -> list[StoredFileRecord]:
        return fetch_files(
            self._config,
            search_query=self._search,
            sort_field=self._sort_field,
            sort_order=self._sort_order,
            offset=self._offset,
            limit=self._limit,
        )

    def first(self) -> StoredFileRecord | None:
        results = fetch_files(
            self._config,
            search_query=self._search,
            sort_field=self._sort_field,
            sort_order=self._sort_order,
            offset=self._offset,
            limit=1,
        )
        return results[0] if results else None
