"""Tests for the dynamic query builders."""

import sqlite3

import pytest

from ftag import queries
from ftag.errors import AllocationError


class TestPlaceholders:

    @pytest.mark.parametrize("count, expected", [
        (1, "?"),
        (3, "?, ?, ?"),
    ])
    def test_exact_count(self, count, expected):
        assert queries.placeholders(count) == expected

    def test_large_count(self):
        assert queries.placeholders(5000).count("?") == 5000

    def test_zero_rejected(self):
        with pytest.raises(ValueError):
            queries.placeholders(0)

    def test_memory_error_becomes_allocation_error(self):
        # Too many markers to allocate; fails up front without using memory
        with pytest.raises(AllocationError):
            queries.placeholders(2 ** 62)


class TestFilesForTagNames:

    def test_one_marker_per_name(self):
        sql, params = queries.files_for_tag_names(["a", "b", "c"])
        assert "IN (?, ?, ?)" in sql
        assert params == ("a", "b", "c")

    def test_names_never_in_query_text(self):
        sql, params = queries.files_for_tag_names(["x'); DROP TABLE tag; --"])
        assert "DROP" not in sql
        assert params == ("x'); DROP TABLE tag; --",)

    def test_sorted_descending(self):
        sql, _ = queries.files_for_tag_names(["a"])
        assert sql.rstrip().endswith("DESC")

    def test_empty_rejected(self):
        with pytest.raises(ValueError):
            queries.files_for_tag_names([])


class TestFilesForTagIds:

    def test_one_row_per_id(self):
        sql, params = queries.files_for_tag_ids([4, 7, queries.MISSING_ID])
        assert "VALUES (?), (?), (?)" in sql
        assert params == (4, 7, queries.MISSING_ID)

    def test_sorted_ascending(self):
        sql, _ = queries.files_for_tag_ids([1])
        assert sql.rstrip().endswith("ASC")

    def test_empty_rejected(self):
        with pytest.raises(ValueError):
            queries.files_for_tag_ids([])


class TestQueriesCompile:
    """Every query text is valid against the real schema."""

    @pytest.fixture
    def conn(self):
        from ftag.schema import migrate
        conn = sqlite3.connect(":memory:", isolation_level=None)
        migrate(conn)
        yield conn
        conn.close()

    @pytest.mark.parametrize("sql, params", [
        (queries.INSERT_TAG, ("t",)),
        (queries.INSERT_FILE, ("f",)),
        (queries.INSERT_FILE_TAG, ("f", "t")),
        (queries.SELECT_TAG_ID, ("t",)),
        (queries.SELECT_FILES_FOR_TAG, ("t",)),
        (queries.SELECT_TAGS_FOR_FILE, ("f",)),
        (queries.SELECT_ALL_FILES, ()),
        (queries.SELECT_ALL_TAGS, ()),
    ])
    def test_fixed_queries(self, conn, sql, params):
        conn.execute(sql, params)

    def test_dynamic_queries(self, conn):
        conn.execute(*queries.files_for_tag_ids([1, 2]))
        conn.execute(*queries.files_for_tag_names(["a", "b"]))
