"""CSV column extraction for stored files."""

from __future__ import annotations

import csv
import io
from typing import Iterable


def parse_csv(text: str, selected_fields: Iterable[str]) -> list[list[str | None]]:
    """Extract the selected columns from CSV text.

    The first row is the header. Columns are returned in header order, one
    list per data row. Short rows yield None for the missing cells.
    """
    rows = list(csv.reader(io.StringIO(text.strip())))
    if not rows:
        return []
    wanted = set(selected_fields)
    keep = [i for i, field in enumerate(rows[0]) if field in wanted]

    result: list[list[str | None]] = []
    for row in rows[1:]:
        if not row:
            continue
        result.append([row[i] if i < len(row) else None for i in keep])
    return result


def header_fields(text: str) -> list[str]:
    """Return the header row of CSV text."""
    for row in csv.reader(io.StringIO(text.strip())):
        return row
    return []
