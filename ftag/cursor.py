"""
Lazy single-column results.

A ResultCursor streams the first column of a query's rows and skips hidden
values (dotfiles, dot-tags) unless its HiddenFilter says to show them.
"""

import sqlite3
from dataclasses import dataclass
from typing import Callable, Iterator, Optional

from .config import HIDDEN_MARKER
from .errors import StepError


@dataclass(frozen=True)
class HiddenFilter:
    """Which values count as hidden, and whether to show them anyway."""
    show_hidden: bool = False
    marker: str = HIDDEN_MARKER

    def hides(self, value: str) -> bool:
        return not self.show_hidden and value.startswith(self.marker)


class ResultCursor:
    """
    One-shot iterator over single string values.

    Use as a context manager so release() runs even when iteration stops
    early:

        with store.files_for_tag("work") as files:
            for path in files:
                print(path)
    """

    def __init__(
        self,
        rows: sqlite3.Cursor,
        hidden: HiddenFilter = HiddenFilter(),
        on_release: Optional[Callable[[], None]] = None,
    ):
        self._rows: Optional[sqlite3.Cursor] = rows
        self._hidden = hidden
        self._on_release = on_release

    @property
    def released(self) -> bool:
        return self._rows is None

    def next_value(self) -> Optional[str]:
        """
        Return the next visible value, or None at the end of the rows.

        Raises:
            StepError: If the store fails while producing rows
        """
        while self._rows is not None:
            try:
                row = self._rows.fetchone()
            except sqlite3.Error as e:
                raise StepError(f"Failed reading query results: {e}") from e
            if row is None:
                return None
            value = row[0]
            if self._hidden.hides(value):
                continue
            return value
        return None

    def __iter__(self) -> Iterator[str]:
        return self

    def __next__(self) -> str:
        value = self.next_value()
        if value is None:
            raise StopIteration
        return value

    def release(self) -> None:
        """Give the underlying statement back. Later calls do nothing."""
        if self._rows is None:
            return
        self._rows = None
        if self._on_release is not None:
            callback, self._on_release = self._on_release, None
            callback()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
        return False
