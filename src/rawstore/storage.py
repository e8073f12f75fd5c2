"""Store gateway: opens a SQLite-backed object store and exposes its primitives."""

from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import contextmanager
from typing import Any, Iterator

from rawstore.config import StoreConfig
from rawstore.errors import (
    DuplicateNameError,
    MigrationError,
    StorageUnavailableError,
    StoreNotFoundError,
    TransactionError,
)
from rawstore.migration import (
    apply_migrations,
    get_store_version,
    index_identifier,
    table_identifier,
)
from rawstore.types import StoredFileRecord

logger = logging.getLogger(__name__)

READONLY = "readonly"
READWRITE = "readwrite"

_COLUMNS = "key, name, size, mime_type, last_modified, raw_data, annotation_count"

# Logical index name -> indexed column.
INDEXES: dict[str, str] = {"name": "name"}


@contextmanager
def _engine_errors(operation: str) -> Iterator[None]:
    """Re-raise SQLite failures (locked or busy database, I/O errors) as StorageUnavailableError."""
    try:
        yield
    except sqlite3.Error as e:
        raise StorageUnavailableError(operation, str(e)) from e


def _row_to_record(row: tuple[Any, ...]) -> StoredFileRecord:
    return StoredFileRecord(
        name=row[1],
        size=int(row[2]),
        mime_type=row[3],
        last_modified=int(row[4]),
        raw_data=bytes(row[5]),
        annotation_count=int(row[6]),
    )


class Transaction:
    """A read-only or read-write transaction on one store handle.

    Commits on normal exit and rolls back when the block raises.
    """

    def __init__(self, handle: StoreHandle, mode: str) -> None:
        if mode not in (READONLY, READWRITE):
            raise ValueError(f"Unknown transaction mode '{mode}'")
        self._handle = handle
        self.mode = mode

    def __enter__(self) -> Transaction:
        conn = self._handle._conn
        if self._handle._tx is not None:
            raise TransactionError("transaction", "new", self._handle._tx.mode)
        with _engine_errors(f"begin {self.mode} transaction"):
            if self.mode == READONLY:
                conn.execute("PRAGMA query_only = ON")
                try:
                    conn.execute("BEGIN DEFERRED")
                except sqlite3.Error:
                    conn.execute("PRAGMA query_only = OFF")
                    raise
            else:
                conn.execute("BEGIN IMMEDIATE")
        self._handle._tx = self
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        conn = self._handle._conn
        try:
            if conn.in_transaction:
                if exc_type is not None:
                    conn.execute("ROLLBACK")
                else:
                    with _engine_errors("commit"):
                        try:
                            conn.execute("COMMIT")
                        except sqlite3.Error:
                            if conn.in_transaction:
                                conn.execute("ROLLBACK")
                            raise
        finally:
            self._handle._tx = None
            if self.mode == READONLY:
                conn.execute("PRAGMA query_only = OFF")


class RecordCursor:
    """Forward-only cursor over a store in primary-key order.

    Each step fetches a single row. Once exhausted (or closed) it stays
    exhausted; open a new cursor to read the store again.
    """

    def __init__(self, cursor: sqlite3.Cursor) -> None:
        self._cursor: sqlite3.Cursor | None = cursor
        self.position = 0

    def __iter__(self) -> Iterator[StoredFileRecord]:
        return self

    def __next__(self) -> StoredFileRecord:
        if self._cursor is None:
            raise StopIteration
        with _engine_errors("cursor step"):
            row = self._cursor.fetchone()
        if row is None:
            self.close()
            raise StopIteration
        self.position += 1
        return _row_to_record(row)

    @property
    def exhausted(self) -> bool:
        return self._cursor is None

    def close(self) -> None:
        if self._cursor is not None:
            self._cursor.close()
            self._cursor = None


class StoreHandle:
    """A live connection to one object store.

    Every data operation must run inside ``handle.transaction(...)``.
    """

    def __init__(self, conn: sqlite3.Connection, config: StoreConfig, schema_version: int) -> None:
        self._conn = conn
        self.config = config
        self.store_name = config.store_name
        self.schema_version = schema_version
        self._table = table_identifier(config.store_name)
        self._tx: Transaction | None = None

    def __enter__(self) -> StoreHandle:
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.close()

    def close(self) -> None:
        self._conn.close()

    def transaction(self, mode: str = READONLY) -> Transaction:
        return Transaction(self, mode)

    def _require(self, operation: str, mode: str = READONLY) -> None:
        active = self._tx.mode if self._tx is not None else None
        if active is None or (mode == READWRITE and active != READWRITE):
            raise TransactionError(operation, mode, active)

    # --- Reads ---

    def get_by_key(self, key: str) -> StoredFileRecord | None:
        self._require("get_by_key")
        with _engine_errors("get_by_key"):
            row = self._conn.execute(
                f"SELECT {_COLUMNS} FROM {self._table} WHERE key = ?",
                (key,),
            ).fetchone()
        return _row_to_record(row) if row is not None else None

    def get_by_index(self, index_name: str, value: Any) -> StoredFileRecord | None:
        self._require("get_by_index")
        column = INDEXES.get(index_name)
        if column is None:
            raise ValueError(
                f"Unknown index '{index_name}'. Valid indexes: {', '.join(sorted(INDEXES))}"
            )
        with _engine_errors("get_by_index"):
            row = self._conn.execute(
                f"SELECT {_COLUMNS} FROM {self._table} "
                f"INDEXED BY {index_identifier(self.store_name, index_name)} "
                f"WHERE {column} = ?",
                (value,),
            ).fetchone()
        return _row_to_record(row) if row is not None else None

    def open_forward_cursor(self) -> RecordCursor:
        self._require("open_forward_cursor")
        with _engine_errors("open_forward_cursor"):
            cursor = self._conn.execute(f"SELECT {_COLUMNS} FROM {self._table} ORDER BY key")
        return RecordCursor(cursor)

    def get_all_keys(self) -> list[str]:
        self._require("get_all_keys")
        with _engine_errors("get_all_keys"):
            rows = self._conn.execute(f"SELECT key FROM {self._table} ORDER BY key").fetchall()
        return [r[0] for r in rows]

    def count(self) -> int:
        self._require("count")
        with _engine_errors("count"):
            row = self._conn.execute(f"SELECT COUNT(*) FROM {self._table}").fetchone()
        return int(row[0]) if row else 0

    # --- Writes ---

    def put(self, key: str, record: StoredFileRecord) -> None:
        """Insert ``record`` under ``key``.

        Raises DuplicateNameError when the key or the record name is already taken.
        """
        self._require("put", READWRITE)
        with _engine_errors("put"):
            try:
                self._conn.execute(
                    f"INSERT INTO {self._table} ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?)",
                    (
                        key,
                        record.name,
                        record.size,
                        record.mime_type,
                        record.last_modified,
                        sqlite3.Binary(record.raw_data),
                        record.annotation_count,
                    ),
                )
            except sqlite3.IntegrityError as e:
                raise DuplicateNameError(record.name) from e

    def info(self) -> dict[str, Any]:
        """Return store info for operator commands."""
        with self.transaction(READONLY):
            count = self.count()
        return {
            "backend": "sqlite",
            "db_path": self.config.db_path,
            "store_name": self.store_name,
            "schema_version": self.schema_version,
            "record_count": count,
        }


def _connect(config: StoreConfig) -> sqlite3.Connection:
    conn = sqlite3.connect(config.db_path, timeout=config.busy_timeout_s, isolation_level=None)
    try:
        conn.execute("PRAGMA journal_mode=WAL")
    except sqlite3.Error:
        conn.close()
        raise
    return conn


def open_store(config: StoreConfig, *, create: bool = True) -> StoreHandle:
    """Open the object store named by ``config``, migrating it to ``config.schema_version``.

    With ``create=False`` nothing is created: a missing database or store raises
    StoreNotFoundError. Any other failure to open raises StorageUnavailableError.
    """
    if not create and config.db_path != ":memory:" and not os.path.exists(config.db_path):
        raise StoreNotFoundError(config.store_name)

    try:
        conn = _connect(config)
    except sqlite3.Error as e:
        raise StorageUnavailableError("open_store", str(e)) from e

    try:
        if create:
            applied = apply_migrations(conn, config.store_name, config.schema_version)
            if applied:
                logger.debug("Created or upgraded store '%s': %s", config.store_name, applied)
            version = config.schema_version
        else:
            stored = get_store_version(conn, config.store_name)
            if stored is None:
                raise StoreNotFoundError(config.store_name)
            if stored > config.schema_version:
                raise MigrationError(
                    f"Requested schema version {config.schema_version} is lower than "
                    f"stored version {stored}"
                )
            version = stored
    except StoreNotFoundError:
        conn.close()
        raise
    except MigrationError as e:
        conn.close()
        raise StorageUnavailableError("open_store", str(e)) from e
    except sqlite3.Error as e:
        conn.close()
        raise StorageUnavailableError("open_store", str(e)) from e

    return StoreHandle(conn, config, version)


__all__ = [
    "READONLY",
    "READWRITE",
    "INDEXES",
    "Transaction",
    "RecordCursor",
    "StoreHandle",
    "open_store",
]
