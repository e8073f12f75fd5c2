"""Versioned schema migrations for object stores.

Every object store is a table in the SQLite database. The schema of a store is
described by a single migration table keyed by schema version; opening a store
at a newer version applies each missing step exactly once and records it in
``schema_meta``. Versions without a registered step are recorded as plain
version bumps.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone
from typing import Callable

from rawstore.errors import MigrationError

__all__ = [
    "MIGRATIONS",
    "migration",
    "quote_identifier",
    "table_identifier",
    "index_identifier",
    "get_store_version",
    "plan_migrations",
    "apply_migrations",
]

logger = logging.getLogger(__name__)

MigrationStep = Callable[[sqlite3.Connection, str], None]

MIGRATIONS: dict[int, MigrationStep] = {}


def migration(version: int) -> Callable[[MigrationStep], MigrationStep]:
    """Decorator registering a schema step that brings a store up to ``version``.

    The decorated function receives the connection and the store name.
    """

    def decorator(func: MigrationStep) -> MigrationStep:
        if version < 1:
            raise MigrationError(f"Migration version must be >= 1, got {version}")
        if version in MIGRATIONS:
            raise MigrationError(
                f"Duplicate migration for version {version}: "
                f"{MIGRATIONS[version].__qualname__} and {func.__qualname__}"
            )
        MIGRATIONS[version] = func
        return func

    return decorator


def quote_identifier(name: str) -> str:
    """Quote a store name for use as an SQL identifier."""
    if not name:
        raise ValueError("Store name must not be empty")
    return '"' + name.replace('"', '""') + '"'


def table_identifier(store_name: str) -> str:
    """SQL identifier of the table backing ``store_name``.

    Tables and indexes share one namespace in SQLite, so store tables carry a
    ``store__`` prefix and indexes an ``index__`` prefix. No store name can then
    collide with another store or with ``schema_meta``.
    """
    if not store_name:
        raise ValueError("Store name must not be empty")
    return quote_identifier(f"store__{store_name}")


def index_identifier(store_name: str, index_name: str) -> str:
    return quote_identifier(f"index__{store_name}__{index_name}")


@migration(1)
def _create_object_store(conn: sqlite3.Connection, store_name: str) -> None:
    table = table_identifier(store_name)
    conn.execute(
        f"CREATE TABLE IF NOT EXISTS {table} ("
        "  key              TEXT PRIMARY KEY,"
        "  name             TEXT NOT NULL,"
        "  size             INTEGER NOT NULL,"
        "  mime_type        TEXT NOT NULL,"
        "  last_modified    INTEGER NOT NULL,"
        "  raw_data         BLOB NOT NULL,"
        "  annotation_count INTEGER NOT NULL DEFAULT 0"
        ")"
    )
    conn.execute(
        f"CREATE UNIQUE INDEX IF NOT EXISTS {index_identifier(store_name, 'name')} "
        f"ON {table}(name)"
    )


def _ensure_meta_table(conn: sqlite3.Connection) -> None:
    conn.execute(
        "CREATE TABLE IF NOT EXISTS schema_meta ("
        "  store_name TEXT NOT NULL,"
        "  version    INTEGER NOT NULL,"
        "  applied_at TEXT NOT NULL,"
        "  PRIMARY KEY (store_name, version)"
        ")"
    )


def get_store_version(conn: sqlite3.Connection, store_name: str) -> int | None:
    """Return the highest applied schema version of a store, or None if it was never created."""
    row = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name='schema_meta'"
    ).fetchone()
    if row is None:
        return None
    row = conn.execute(
        "SELECT MAX(version) FROM schema_meta WHERE store_name = ?",
        (store_name,),
    ).fetchone()
    return int(row[0]) if row and row[0] is not None else None


def plan_migrations(current: int | None, target: int) -> list[int]:
    """Versions that must be applied to go from ``current`` to ``target``.

    Raises MigrationError when ``target`` is below the stored version.
    """
    if target < 1:
        raise MigrationError(f"Schema version must be >= 1, got {target}")
    start = current or 0
    if target < start:
        raise MigrationError(
            f"Requested schema version {target} is lower than stored version {start}"
        )
    return list(range(start + 1, target + 1))


def apply_migrations(conn: sqlite3.Connection, store_name: str, target: int) -> list[int]:
    """Bring ``store_name`` up to ``target`` inside one write transaction.

    Returns the list of versions applied; empty when the store is already current.
    The connection must be in autocommit mode (isolation_level=None).
    """
    current = get_store_version(conn, store_name)
    pending = plan_migrations(current, target)
    if not pending:
        return []

    conn.execute("BEGIN IMMEDIATE")
    try:
        _ensure_meta_table(conn)
        # Another connection may have migrated between the read above and the lock.
        current = get_store_version(conn, store_name)
        pending = plan_migrations(current, target)
        now = datetime.now(timezone.utc).isoformat()
        for version in pending:
            step = MIGRATIONS.get(version)
            if step is not None:
                step(conn, store_name)
            conn.execute(
                "INSERT INTO schema_meta (store_name, version, applied_at) VALUES (?, ?, ?)",
                (store_name, version, now),
            )
        conn.execute("COMMIT")
    except Exception:
        if conn.in_transaction:
            conn.execute("ROLLBACK")
        raise

    logger.info("Migrated store '%s' to schema version %d (applied %s)", store_name, target, pending)
    return pending
