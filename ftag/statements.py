"""
Statement cache.

Tagging one file with many tags runs the same three inserts over and over.
Each query text gets one Statement holding its own cursor; reusing it
resets and rebinds that cursor instead of setting up a new one. The cache
is owned by TagStore and released in one pass when the store closes.
"""

import logging
import sqlite3
from typing import Iterator, Optional, Sequence

from .errors import BindError, StepError

logger = logging.getLogger(__name__)


class Statement:
    """A reusable query handle bound to one query text."""

    def __init__(self, conn: sqlite3.Connection, sql: str):
        self.sql = sql
        self.uses = 0
        self.busy = False
        self._conn = conn
        self._handle: Optional[sqlite3.Cursor] = conn.cursor()

    @property
    def closed(self) -> bool:
        return self._handle is None

    def run(self, params: Sequence = ()) -> sqlite3.Cursor:
        """
        Reset the handle, bind `params` and execute.

        Raises:
            BindError: If a parameter has a type the store can't hold
            StepError: If execution fails, or the handle was released
        """
        if self._handle is None:
            raise StepError(f"Statement already released: {self.sql.strip()}")
        self.uses += 1
        try:
            return self._handle.execute(self.sql, params)
        except (sqlite3.InterfaceError, sqlite3.ProgrammingError) as e:
            raise BindError(f"Cannot bind parameters {tuple(params)!r}: {e}") from e
        except sqlite3.Error as e:
            raise StepError(f"Query failed: {e}") from e

    def reset(self) -> None:
        """Drop any unread rows so the statement no longer holds a read lock."""
        if self._handle is not None:
            self._handle.close()
            self._handle = self._conn.cursor()

    def release(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None


class StatementCache:
    """
    Registry of prepared statements keyed by query text.

    Iteration and release follow registration order.
    """

    def __init__(self, conn: sqlite3.Connection):
        self._conn = conn
        self._statements: Optional[dict[str, Statement]] = {}

    @property
    def closed(self) -> bool:
        return self._statements is None

    def __len__(self) -> int:
        return 0 if self._statements is None else len(self._statements)

    def __iter__(self) -> Iterator[Statement]:
        return iter(() if self._statements is None else list(self._statements.values()))

    def get(self, sql: str) -> Statement:
        """
        Return the statement for `sql`, preparing it on first use.

        Raises:
            StepError: If the cache was closed, or the statement is still
                held by an unreleased result cursor
        """
        if self._statements is None:
            raise StepError("Statement cache is closed")
        statement = self._statements.get(sql)
        if statement is None:
            statement = Statement(self._conn, sql)
            self._statements[sql] = statement
            logger.debug("Prepared statement #%d: %s", len(self._statements), " ".join(sql.split()))
        elif statement.busy:
            raise StepError(f"Statement is in use by an open cursor: {' '.join(sql.split())}")
        return statement

    def execute(self, sql: str, params: Sequence = ()) -> sqlite3.Cursor:
        """Run a write or lookup through the cached statement for `sql`."""
        return self.get(sql).run(params)

    def close_all(self) -> int:
        """
        Release every cached statement in registration order.

        Safe to call more than once.

        Returns:
            Number of statements released
        """
        if self._statements is None:
            return 0
        statements = list(self._statements.values())
        for statement in statements:
            statement.release()
        self._statements = None
        logger.debug("Released %d cached statements", len(statements))
        return len(statements)
