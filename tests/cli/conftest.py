"""Shared fixtures for CLI tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from typer.testing import CliRunner

from rawstore import StoreConfig, upload_file
from rawstore.cli import app
from tests.conftest import csv_file, csv_of_size

if TYPE_CHECKING:
    from click.testing import Result


@pytest.fixture
def runner():
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def cli_db(tmp_path):
    """Temp DB path for the CLI."""
    return str(tmp_path / "cli_test.db")


@pytest.fixture
def seeded_db(cli_db):
    """A DB whose default store holds three files."""
    config = StoreConfig(db_path=cli_db)
    upload_file(csv_file("speed.csv"), config)
    upload_file(csv_of_size("alpha.csv", 55), config)
    upload_file(csv_of_size("gamma.csv", 12), config)
    return cli_db


@pytest.fixture
def csv_path(tmp_path):
    """A CSV file on disk ready for upload."""
    path = tmp_path / "speed.csv"
    path.write_bytes(b"timestamp,speedometer_x,speedometer_y\n1,2,3\n4,5,6\n")
    return str(path)


def invoke(runner: CliRunner, args: list[str], db_path: str | None = None) -> "Result":
    """Invoke CLI with proper state setup."""
    if db_path:
        args = ["--db", db_path] + args
    return runner.invoke(app, args, catch_exceptions=False)
