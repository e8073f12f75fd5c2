"""Tests for the query engine: bounded filter, sort, pagination, FileQuery."""

from __future__ import annotations

import os
from datetime import datetime, timezone

import pytest

from rawstore.errors import UnknownSortFieldError
from rawstore.query import (
    FileQuery,
    fetch_files,
    filter_files,
    paginate_files,
    resolve_sort_field,
    sort_files,
)
from rawstore.types import StoredFileRecord
from rawstore.upload import upload_file
from tests.conftest import csv_file, csv_of_size


def _rec(name: str, size: int = 4, last_modified: int = 0) -> StoredFileRecord:
    return StoredFileRecord(
        name=name,
        size=size,
        mime_type="text/csv",
        last_modified=last_modified,
        raw_data=b"a,b\n",
    )


@pytest.fixture
def seeded(config):
    """Store with four files; key order is alpha, beta, gamma, speed."""
    upload_file(csv_of_size("speed.csv", 41, last_modified=3000), config)
    upload_file(csv_of_size("alpha.csv", 55, last_modified=1000), config)
    upload_file(csv_of_size("Beta.csv", 12, last_modified=4000), config)
    upload_file(csv_of_size("gamma.csv", 30, last_modified=2000), config)
    return config


class TestFilterStage:
    def test_empty_query_matches_all(self):
        recs = [_rec("a.csv"), _rec("b.csv")]
        assert filter_files(iter(recs), "", 10) == recs
        assert filter_files(iter(recs), None, 10) == recs

    def test_case_insensitive_substring(self):
        recs = [_rec("Speed.csv"), _rec("other.csv"), _rec("SPEEDY.csv")]
        assert [r.name for r in filter_files(iter(recs), "spEEd", 10)] == [
            "Speed.csv",
            "SPEEDY.csv",
        ]

    def test_stops_after_enough_matches(self):
        recs = iter([_rec("a1.csv"), _rec("b.csv"), _rec("a2.csv"), _rec("a3.csv")])
        assert [r.name for r in filter_files(recs, "a", 2)] == ["a1.csv", "a2.csv"]
        # The remaining record was never read.
        assert next(recs).name == "a3.csv"

    def test_zero_window_reads_nothing(self):
        recs = iter([_rec("a.csv")])
        assert filter_files(recs, "", 0) == []
        assert next(recs).name == "a.csv"


class TestSortStage:
    def test_numeric_asc_desc_are_reversals(self):
        recs = [_rec("a", size=3), _rec("b", size=1), _rec("c", size=2)]
        asc = sort_files(recs, "size", "asc")
        desc = sort_files(recs, "size", "desc")
        assert [r.size for r in asc] == [1, 2, 3]
        assert desc == list(reversed(asc))

    def test_string_field(self):
        recs = [_rec("b.csv"), _rec("a.csv")]
        assert [r.name for r in sort_files(recs, "name")] == ["a.csv", "b.csv"]

    def test_stable_for_equal_values(self):
        recs = [_rec("x", size=1), _rec("y", size=1), _rec("z", size=0)]
        assert [r.name for r in sort_files(recs, "size")] == ["z", "x", "y"]

    def test_dates_compare_as_timestamps(self):
        recs = [_rec("late", last_modified=2000), _rec("early", last_modified=1000)]
        assert [r.name for r in sort_files(recs, "last_modified")] == ["early", "late"]

    def test_camel_case_alias(self):
        recs = [_rec("late", last_modified=2000), _rec("early", last_modified=1000)]
        assert [r.name for r in sort_files(recs, "lastModifiedTimestamp", "desc")] == [
            "late",
            "early",
        ]

    def test_accessor_returns_datetime_for_last_modified(self):
        value = resolve_sort_field("last_modified")(_rec("a", last_modified=1000))
        assert value == datetime.fromtimestamp(1, tz=timezone.utc)

    def test_unknown_field(self):
        with pytest.raises(UnknownSortFieldError) as exc:
            sort_files([_rec("a")], "colour")
        assert exc.value.field == "colour"
        assert "size" in exc.value.valid

    def test_unknown_order(self):
        with pytest.raises(ValueError, match="Unknown sort order"):
            sort_files([_rec("a")], "size", "sideways")

    def test_order_case_insensitive(self):
        recs = [_rec("a", size=1), _rec("b", size=2)]
        assert [r.size for r in sort_files(recs, "size", "DESC")] == [2, 1]


class TestPaginateStage:
    def test_slice(self):
        recs = [_rec(str(i)) for i in range(5)]
        assert [r.name for r in paginate_files(recs, 1, 2)] == ["1", "2"]

    def test_negative_offset_same_as_zero(self):
        recs = [_rec(str(i)) for i in range(5)]
        assert paginate_files(recs, -3, 2) == paginate_files(recs, 0, 2)

    def test_clipped_to_length(self):
        recs = [_rec(str(i)) for i in range(3)]
        assert [r.name for r in paginate_files(recs, 2, 10)] == ["2"]
        assert paginate_files(recs, 5, 10) == []

    def test_negative_limit(self):
        assert paginate_files([_rec("a")], 0, -1) == []


class TestFetchFiles:
    def test_empty_query_returns_window(self, seeded):
        names = [r.name for r in fetch_files(seeded, "")]
        assert names == ["Beta.csv", "alpha.csv", "gamma.csv", "speed.csv"]

    def test_search_matches_renamed_duplicates(self, config):
        upload_file(csv_file("speed.csv"), config)
        upload_file(csv_file("speed.csv"), config)
        results = fetch_files(config, search_query="spe", limit=10, offset=0)
        assert len(results) == 2
        assert all(r.name.startswith("speed.csv") for r in results)

    def test_no_match(self, seeded):
        assert fetch_files(seeded, search_query="zzz") == []

    def test_sort_desc_by_size(self, config):
        upload_file(csv_of_size("small.csv", 41), config)
        upload_file(csv_of_size("large.csv", 55), config)
        results = fetch_files(config, sort_field="size", sort_order="desc")
        assert [r.size for r in results] == [55, 41]
        assert results[0].name == "large.csv"

    def test_asc_desc_reversal_over_store(self, seeded):
        asc = fetch_files(seeded, sort_field="size", sort_order="asc")
        desc = fetch_files(seeded, sort_field="size", sort_order="desc")
        assert [r.name for r in desc] == [r.name for r in reversed(asc)]

    def test_pagination(self, seeded):
        page = fetch_files(seeded, offset=1, limit=2)
        assert [r.name for r in page] == ["alpha.csv", "gamma.csv"]

    def test_negative_offset(self, seeded):
        assert fetch_files(seeded, offset=-5, limit=2) == fetch_files(seeded, offset=0, limit=2)

    def test_default_limit_from_config(self, seeded):
        from dataclasses import replace

        assert len(fetch_files(replace(seeded, default_limit=3))) == 3

    def test_sort_applies_only_to_scanned_window(self, seeded):
        # Only the first match in key order ("Beta.csv", size 12) is scanned,
        # so the largest file in the store does not come back first.
        first = fetch_files(seeded, sort_field="size", sort_order="desc", limit=1)
        assert [r.name for r in first] == ["Beta.csv"]
        everything = fetch_files(seeded, sort_field="size", sort_order="desc", limit=10)
        assert everything[0].name == "alpha.csv"

    def test_unknown_sort_field_does_not_touch_storage(self, config):
        with pytest.raises(UnknownSortFieldError):
            fetch_files(config, sort_field="colour")
        assert not os.path.exists(config.db_path)

    def test_fresh_cursor_each_call(self, seeded):
        assert fetch_files(seeded, limit=2) == fetch_files(seeded, limit=2)


class TestFileQuery:
    def test_chain(self, seeded):
        results = FileQuery(seeded).search(".csv").order_by("size", desc=True).limit(10).collect()
        assert [r.name for r in results] == ["alpha.csv", "speed.csv", "gamma.csv", "Beta.csv"]

    def test_offset(self, seeded):
        results = FileQuery(seeded).offset(3).limit(5).collect()
        assert [r.name for r in results] == ["speed.csv"]

    def test_first(self, seeded):
        first = FileQuery(seeded).search("gamma").first()
        assert first is not None
        assert first.name == "gamma.csv"

    def test_first_empty(self, seeded):
        assert FileQuery(seeded).search("nothing").first() is None

    def test_first_leaves_builder_limit_alone(self, seeded):
        query = FileQuery(seeded).limit(10)
        assert query.first() is not None
        assert len(query.collect()) == 4

    def test_order_by_validates(self, config):
        with pytest.raises(UnknownSortFieldError):
            FileQuery(config).order_by("colour")
