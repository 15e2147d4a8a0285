"""
Schema for the tag store.

Three tables: file and tag hold the user-visible strings, file_tag links
them. The store's `user_version` pragma records the schema version so an
existing store is left alone and a new one is built exactly once.
"""

import logging
import sqlite3

from .errors import SchemaError

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

# Only run against a version-0 store; a foreign table with one of these
# names fails the migration instead of being adopted
SCHEMA_STATEMENTS = (
    """
    CREATE TABLE file (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        relative_path TEXT NOT NULL,
        CONSTRAINT uq_file_relative_path UNIQUE (relative_path)
    )
    """,
    """
    CREATE TABLE tag (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        CONSTRAINT uq_tag_name UNIQUE (name)
    )
    """,
    """
    CREATE TABLE file_tag (
        file_id INTEGER NOT NULL REFERENCES file(id),
        tag_id INTEGER NOT NULL REFERENCES tag(id),
        CONSTRAINT uq_file_tag UNIQUE (file_id, tag_id)
    )
    """,
    # Reverse lookups (files for a tag) go through tag_id first
    """
    CREATE INDEX idx_file_tag_tag
    ON file_tag(tag_id, file_id)
    """,
)


def schema_version(conn: sqlite3.Connection) -> int:
    """Read the schema version stamped on the store."""
    return conn.execute("PRAGMA user_version").fetchone()[0]


def migrate(conn: sqlite3.Connection) -> bool:
    """
    Bring the store up to SCHEMA_VERSION in a single transaction.

    The connection must be in autocommit mode (isolation_level=None) so the
    explicit BEGIN covers every statement.

    Returns:
        True if the schema was created, False if it was already current

    Raises:
        SchemaError: If any statement fails; nothing is left half-built
    """
    try:
        version = schema_version(conn)
    except sqlite3.Error as e:
        raise SchemaError(f"Cannot read schema version: {e}") from e

    if version > SCHEMA_VERSION:
        raise SchemaError(
            f"Store schema version {version} is newer than supported ({SCHEMA_VERSION})"
        )
    if version == SCHEMA_VERSION:
        return False

    try:
        conn.execute("BEGIN IMMEDIATE")
        for statement in SCHEMA_STATEMENTS:
            conn.execute(statement)
        # PRAGMA does not take parameters; the value is our own constant
        conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
        conn.execute("COMMIT")
    except sqlite3.Error as e:
        if conn.in_transaction:
            conn.execute("ROLLBACK")
        raise SchemaError(f"Schema migration failed: {e}") from e

    logger.info("Created tag store schema v%d", SCHEMA_VERSION)
    return True
