"""Output formatting helpers for the CLI."""

from __future__ import annotations

import json
import sys
from typing import Any, Iterable

from rawstore.types import StoredFileRecord

RECORD_HEADERS = ["name", "size", "mimeType", "lastModifiedTimestamp", "annotationCount"]

# Shown in text tables for cells a short CSV row does not reach.
MISSING_CELL = "-"


def record_rows(records: Iterable[StoredFileRecord]) -> list[list[Any]]:
    """Flatten records into rows matching RECORD_HEADERS."""
    return [
        [r.name, r.size, r.mime_type, r.last_modified, r.annotation_count] for r in records
    ]


def _dump(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


def print_table(headers: list[str], rows: list[list[Any]], *, json_mode: bool = False) -> None:
    """Print rows as an aligned text table, or as a JSON array of objects."""
    if json_mode:
        _dump([dict(zip(headers, row)) for row in rows])
        return
    if not rows:
        return

    cells = [[MISSING_CELL if v is None else str(v) for v in row] for row in rows]
    widths = [
        max([len(h)] + [len(row[i]) for row in cells if i < len(row)])
        for i, h in enumerate(headers)
    ]

    def line(values: list[str]) -> str:
        padded = [v.ljust(widths[i]) if i < len(widths) else v for i, v in enumerate(values)]
        return "  ".join(padded).rstrip()

    print(line(headers))
    print(line(["-" * w for w in widths]))
    for row in cells:
        print(line(row))


def print_records(records: Iterable[StoredFileRecord], *, json_mode: bool = False) -> None:
    print_table(RECORD_HEADERS, record_rows(records), json_mode=json_mode)


def print_object(data: dict[str, Any] | list[Any], *, json_mode: bool = False) -> None:
    """Print a mapping as ``key: value`` lines, or a list one item per line."""
    if json_mode:
        _dump(data)
    elif isinstance(data, list):
        for item in data:
            print(item)
    else:
        for k, v in data.items():
            print(f"{k}: {v}")


def print_error(msg: str) -> None:
    """Print an error message to stderr."""
    print(f"Error: {msg}", file=sys.stderr)
