"""Tests for ResultCursor and the hidden-value filter."""

import sqlite3

import pytest

from ftag.cursor import HiddenFilter, ResultCursor
from ftag.errors import StepError


@pytest.fixture
def conn():
    conn = sqlite3.connect(":memory:", isolation_level=None)
    conn.execute("CREATE TABLE t (v TEXT)")
    for v in ("a", ".hidden", "b", ".also", "c"):
        conn.execute("INSERT INTO t VALUES (?)", (v,))
    yield conn
    conn.close()


def _rows(conn):
    return conn.execute("SELECT v FROM t ORDER BY rowid")


class TestHiddenFilter:

    def test_hides_marker_prefix_by_default(self):
        assert HiddenFilter().hides(".bashrc")
        assert not HiddenFilter().hides("bashrc")

    def test_show_hidden(self):
        assert not HiddenFilter(show_hidden=True).hides(".bashrc")

    def test_marker_only_counts_as_first_character(self):
        assert not HiddenFilter().hides("notes.txt")

    def test_empty_value_not_hidden(self):
        assert not HiddenFilter().hides("")


class TestResultCursor:

    def test_skips_hidden_values(self, conn):
        with ResultCursor(_rows(conn)) as cursor:
            assert list(cursor) == ["a", "b", "c"]

    def test_shows_hidden_values_in_place(self, conn):
        with ResultCursor(_rows(conn), HiddenFilter(show_hidden=True)) as cursor:
            assert list(cursor) == ["a", ".hidden", "b", ".also", "c"]

    def test_next_value_returns_none_at_end(self, conn):
        cursor = ResultCursor(conn.execute("SELECT v FROM t WHERE v = 'a'"))
        assert cursor.next_value() == "a"
        assert cursor.next_value() is None
        assert cursor.next_value() is None
        cursor.release()

    def test_one_shot(self, conn):
        with ResultCursor(_rows(conn)) as cursor:
            assert len(list(cursor)) == 3
            assert list(cursor) == []

    def test_release_runs_callback_once(self, conn):
        calls = []
        cursor = ResultCursor(_rows(conn), on_release=lambda: calls.append(1))
        cursor.release()
        cursor.release()
        assert calls == [1]
        assert cursor.released

    def test_released_cursor_yields_nothing(self, conn):
        cursor = ResultCursor(_rows(conn))
        assert cursor.next_value() == "a"
        cursor.release()
        assert cursor.next_value() is None

    def test_released_on_early_exit(self, conn):
        """Leaving the with block early still releases the cursor."""
        calls = []
        with ResultCursor(_rows(conn), on_release=lambda: calls.append(1)) as cursor:
            for value in cursor:
                break
        assert calls == [1]

    def test_step_failure_is_fatal(self, conn):
        """A store error mid-iteration raises instead of ending quietly."""
        rows = _rows(conn)
        cursor = ResultCursor(rows)
        assert cursor.next_value() == "a"
        rows.close()
        with pytest.raises(StepError, match="Failed reading"):
            cursor.next_value()
        cursor.release()
