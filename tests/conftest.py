"""Shared test fixtures for rawstore tests."""

from __future__ import annotations

import pytest

from rawstore import IncomingFile, StoreConfig
from rawstore.storage import open_store

SPEED_CSV = b"timestamp,speedometer_x,speedometer_y\n1,2,3\n"


def csv_file(name: str, data: bytes = SPEED_CSV, last_modified: int = 1_700_000_000_000) -> IncomingFile:
    """Build an upload with a fixed mtime."""
    return IncomingFile(name=name, data=data, mime_type="text/csv", last_modified=last_modified)


def csv_of_size(name: str, size: int, last_modified: int = 1_700_000_000_000) -> IncomingFile:
    """Build a valid single-line CSV upload of exactly ``size`` bytes (size >= 4)."""
    data = b"a," + b"b" * (size - 3) + b"\n"
    return csv_file(name, data, last_modified)


# --- Fixtures ---


@pytest.fixture
def tmp_db(tmp_path):
    """Create a temporary SQLite database path."""
    return str(tmp_path / "test.db")


@pytest.fixture
def config(tmp_db):
    """StoreConfig pointing at the temporary database."""
    return StoreConfig(db_path=tmp_db, store_name="csv-store", schema_version=1)


@pytest.fixture
def handle(config):
    """An open StoreHandle on a freshly created store."""
    h = open_store(config)
    yield h
    h.close()
