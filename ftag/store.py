"""
Tag store backed by SQLite.

TagStore owns the connection and its statement cache for one process run:

    with TagStore.open() as store:
        store.tag("notes.txt", "work")
        with store.filter(["work"]) as files:
            for path in files:
                print(path)

Only one store may be open at a time. Opening finds the store file by
walking up from the current directory (or uses a forced directory), and
creates the file with its schema when it doesn't exist yet.
"""

import logging
import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator, Optional, Sequence

from . import queries
from .config import DEFAULT_DATABASE, MEMORY_DATABASE, FilterStrategy, FtagConfig
from .cursor import HiddenFilter, ResultCursor
from .discovery import enter_directory, locate_store
from .errors import BindError, FtagError, OpenError, StepError
from .schema import migrate, schema_version
from .statements import StatementCache

logger = logging.getLogger(__name__)


def _require_text(value, what: str) -> str:
    """Reject missing or empty arguments before they reach the store."""
    if value is None or value == "":
        raise BindError(f"A {what} is required")
    if not isinstance(value, str):
        raise BindError(f"The {what} must be a string, not {type(value).__name__}")
    return value


def _connect(path: Path) -> sqlite3.Connection:
    """
    Open an existing store read-write, or create it if the file is absent.

    Raises:
        OpenError: If the file exists but can't be opened, or can't be created
    """
    uri = path.as_uri()
    try:
        return sqlite3.connect(f"{uri}?mode=rw", uri=True, isolation_level=None)
    except sqlite3.Error as e:
        if path.exists():
            raise OpenError(f"Cannot open tag store {path}: {e}") from e

    try:
        conn = sqlite3.connect(f"{uri}?mode=rwc", uri=True, isolation_level=None)
    except sqlite3.Error as e:
        raise OpenError(f"Cannot create tag store {path}: {e}") from e
    logger.info("Created tag store %s", path)
    return conn


class TagStore:
    """
    Files, tags, and the links between them.

    Read operations return ResultCursor objects; release them (or use them
    as context managers) before running the same query again.
    """

    _active: Optional["TagStore"] = None

    def __init__(
        self,
        conn: sqlite3.Connection,
        path: Optional[Path] = None,
        *,
        hidden: HiddenFilter = HiddenFilter(),
        strategy: FilterStrategy = FilterStrategy.RESOLVE,
    ):
        """
        Args:
            conn: Connection in autocommit mode, schema already migrated
            path: Store file, or None for a transient store
            hidden: Default hidden-value policy for result cursors
            strategy: Default strategy for filters on several tags
        """
        self._conn: Optional[sqlite3.Connection] = conn
        self._statements = StatementCache(conn)
        self.path = path
        self.hidden = hidden
        self.strategy = strategy

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @classmethod
    def open(
        cls,
        filename: str = DEFAULT_DATABASE,
        directory: Optional[Path] = None,
        *,
        show_hidden: bool = False,
        strategy: FilterStrategy = FilterStrategy.RESOLVE,
    ) -> "TagStore":
        """
        Locate, open or create the store.

        Args:
            filename: Store file name, or ":memory:" for a transient store
            directory: Forced directory; skips discovery and creates the
                store there if needed
            show_hidden: Yield dot-prefixed values from read operations
            strategy: Default multi-tag filter strategy

        Raises:
            OpenError: If a store is already open, or the file can't be
                opened or created
            SchemaError: If a new store's schema can't be built
        """
        if cls._active is not None:
            raise OpenError(f"A tag store is already open: {cls._active.location}")

        if filename == MEMORY_DATABASE:
            path = None
            conn = sqlite3.connect(MEMORY_DATABASE, isolation_level=None)
        else:
            if not filename or os.sep in filename:
                raise OpenError(f"Store name must be a plain file name: {filename!r}")
            if directory is not None:
                home = enter_directory(directory)
            else:
                home = locate_store(filename) or Path(os.getcwd())
            path = home / filename
            conn = _connect(path)

        try:
            try:
                schema_version(conn)
                conn.execute("PRAGMA foreign_keys = ON")
            except sqlite3.Error as e:
                raise OpenError(f"Cannot read tag store {path}: {e}") from e
            migrate(conn)
        except FtagError:
            conn.close()
            raise

        store = cls(
            conn, path,
            hidden=HiddenFilter(show_hidden=show_hidden),
            strategy=strategy,
        )
        cls._active = store
        logger.info("choosing db '%s'", store.location)
        return store

    @classmethod
    def from_config(cls, config: FtagConfig) -> "TagStore":
        """Open the store described by a loaded FtagConfig."""
        return cls.open(
            config.database,
            config.directory,
            show_hidden=config.show_hidden,
            strategy=config.strategy,
        )

    @property
    def location(self) -> str:
        return str(self.path) if self.path is not None else MEMORY_DATABASE

    @property
    def closed(self) -> bool:
        return self._conn is None

    def close(self) -> None:
        """Release cached statements, then the connection. Safe to repeat."""
        if self._conn is None:
            return
        self._statements.close_all()
        self._conn.close()
        self._conn = None
        if TagStore._active is self:
            TagStore._active = None
        logger.debug("Closed tag store %s", self.location)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _check_open(self) -> None:
        if self._conn is None:
            raise StepError("Tag store is closed")

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        """BEGIN IMMEDIATE ... COMMIT, rolling back on any failure."""
        self._check_open()
        try:
            self._conn.execute("BEGIN IMMEDIATE")
        except sqlite3.Error as e:
            raise StepError(f"Cannot start transaction: {e}") from e
        try:
            yield
            self._conn.execute("COMMIT")
        except BaseException as e:
            if self._conn.in_transaction:
                self._conn.execute("ROLLBACK")
            if isinstance(e, sqlite3.Error):
                raise StepError(f"Transaction failed: {e}") from e
            raise

    def _results(
        self,
        sql: str,
        params: Sequence = (),
        hidden: Optional[HiddenFilter] = None,
    ) -> ResultCursor:
        """Run a cached query and wrap its rows in a ResultCursor."""
        self._check_open()
        statement = self._statements.get(sql)
        rows = statement.run(params)
        statement.busy = True

        def _done() -> None:
            statement.reset()
            statement.busy = False

        return ResultCursor(rows, hidden or self.hidden, on_release=_done)

    # -------------------------------------------------------------------------
    # Write Operations
    # -------------------------------------------------------------------------

    def tag(self, file_path: str, tag_name: str) -> None:
        """
        Attach `tag_name` to `file_path`, creating either as needed.

        Tagging a file with a tag it already has changes nothing.

        Raises:
            BindError: If either argument is missing or not a string
            StepError: If the insert fails; nothing is committed
        """
        file_path = _require_text(file_path, "file path")
        tag_name = _require_text(tag_name, "tag name")

        with self._transaction():
            self._statements.execute(queries.INSERT_TAG, (tag_name,))
            self._statements.execute(queries.INSERT_FILE, (file_path,))
            self._statements.execute(queries.INSERT_FILE_TAG, (file_path, tag_name))
        logger.debug("Tagged %s with %s", file_path, tag_name)

    def tag_many(self, file_path: str, tag_names: Iterable[str]) -> int:
        """
        Tag one file with several tags, stopping at the first failure.

        Tags applied before a failure stay applied.

        Returns:
            Number of tags applied
        """
        count = 0
        for tag_name in tag_names:
            self.tag(file_path, tag_name)
            count += 1
        return count

    # -------------------------------------------------------------------------
    # Read Operations
    # -------------------------------------------------------------------------

    def files_for_tag(self, tag_name: str, hidden: Optional[HiddenFilter] = None) -> ResultCursor:
        """Files carrying `tag_name`, by path ascending."""
        tag_name = _require_text(tag_name, "tag name")
        return self._results(queries.SELECT_FILES_FOR_TAG, (tag_name,), hidden)

    def tags_for_file(self, file_path: str, hidden: Optional[HiddenFilter] = None) -> ResultCursor:
        """Tags on `file_path`, by name ascending."""
        file_path = _require_text(file_path, "file path")
        return self._results(queries.SELECT_TAGS_FOR_FILE, (file_path,), hidden)

    def all_files(self, hidden: Optional[HiddenFilter] = None) -> ResultCursor:
        """Every tagged file once, by path ascending."""
        return self._results(queries.SELECT_ALL_FILES, (), hidden)

    def all_tags(self, hidden: Optional[HiddenFilter] = None) -> ResultCursor:
        """Every tag in use once, by name ascending."""
        return self._results(queries.SELECT_ALL_TAGS, (), hidden)

    def resolve_tag_ids(self, tag_names: Sequence[str]) -> list[int]:
        """
        Map tag names to ids, in order.

        Unknown names map to queries.MISSING_ID, which matches no rows.
        """
        ids = []
        for name in tag_names:
            name = _require_text(name, "tag name")
            statement = self._statements.get(queries.SELECT_TAG_ID)
            row = statement.run((name,)).fetchone()
            statement.reset()
            ids.append(row[0] if row is not None else queries.MISSING_ID)
        return ids

    def files_for_tags(
        self,
        tag_names: Sequence[str],
        strategy: Optional[FilterStrategy] = None,
        hidden: Optional[HiddenFilter] = None,
    ) -> ResultCursor:
        """
        Files carrying any of `tag_names`, each once.

        FilterStrategy.RESOLVE sorts by path ascending; FilterStrategy.IN_LIST
        sorts descending.

        Raises:
            BindError: If no names are given, or one is empty
        """
        tag_names = list(tag_names)
        if not tag_names:
            raise BindError("At least one tag name is required")
        strategy = strategy or self.strategy

        if strategy is FilterStrategy.IN_LIST:
            for name in tag_names:
                _require_text(name, "tag name")
            sql, params = queries.files_for_tag_names(tag_names)
        else:
            sql, params = queries.files_for_tag_ids(self.resolve_tag_ids(tag_names))
        return self._results(sql, params, hidden)

    def filter(
        self,
        tag_names: Sequence[str] = (),
        strategy: Optional[FilterStrategy] = None,
        hidden: Optional[HiddenFilter] = None,
    ) -> ResultCursor:
        """Files for zero (all files), one, or several tags."""
        tag_names = list(tag_names)
        if not tag_names:
            return self.all_files(hidden)
        if len(tag_names) == 1:
            return self.files_for_tag(tag_names[0], hidden)
        return self.files_for_tags(tag_names, strategy, hidden)

    def list(self, file_path: Optional[str] = None, hidden: Optional[HiddenFilter] = None) -> ResultCursor:
        """Tags on `file_path`, or every tag when no file is given."""
        if file_path is None:
            return self.all_tags(hidden)
        return self.tags_for_file(file_path, hidden)
