"""
Query text for the tag store.

Fixed queries are module constants so the statement cache can key on them.
Queries whose shape depends on the number of tags are built here from a
placeholder list; tag values are always bound, never spliced into the text.
"""

from typing import Sequence

from .errors import AllocationError

# Id that no row can have; stands in for tag names that don't exist
MISSING_ID = -1

INSERT_TAG = "INSERT OR IGNORE INTO tag (name) VALUES (?)"

INSERT_FILE = "INSERT OR IGNORE INTO file (relative_path) VALUES (?)"

INSERT_FILE_TAG = """
    INSERT OR IGNORE INTO file_tag (file_id, tag_id)
    SELECT file.id, tag.id FROM file, tag
    WHERE file.relative_path = ? AND tag.name = ?
"""

SELECT_TAG_ID = "SELECT id FROM tag WHERE name = ?"

SELECT_FILES_FOR_TAG = """
    SELECT DISTINCT file.relative_path
    FROM file
    JOIN file_tag ON file_tag.file_id = file.id
    JOIN tag ON tag.id = file_tag.tag_id
    WHERE tag.name = ?
    ORDER BY file.relative_path ASC
"""

SELECT_TAGS_FOR_FILE = """
    SELECT DISTINCT tag.name
    FROM tag
    JOIN file_tag ON file_tag.tag_id = tag.id
    JOIN file ON file.id = file_tag.file_id
    WHERE file.relative_path = ?
    ORDER BY tag.name ASC
"""

# Files and tags exist only through a tagging, so these never list orphans
SELECT_ALL_FILES = """
    SELECT DISTINCT file.relative_path
    FROM file
    JOIN file_tag ON file_tag.file_id = file.id
    ORDER BY file.relative_path ASC
"""

SELECT_ALL_TAGS = """
    SELECT DISTINCT tag.name
    FROM tag
    JOIN file_tag ON file_tag.tag_id = tag.id
    ORDER BY tag.name ASC
"""


def placeholders(count: int) -> str:
    """Comma-separated list of `count` parameter markers."""
    if count < 1:
        raise ValueError("At least one placeholder is required")
    try:
        return ", ".join(["?"] * count)
    except MemoryError as e:
        raise AllocationError(f"Cannot build a list of {count} placeholders") from e


def files_for_tag_ids(tag_ids: Sequence[int]) -> tuple[str, tuple[int, ...]]:
    """
    Build the union query for files carrying any of `tag_ids`.

    Each id is one row of a VALUES list, looked up on its own and merged
    with the others; duplicates are dropped and paths sorted ascending.
    Multi-row VALUES is not subject to SQLite's compound-select limit, so
    the id count is bounded only by the store's parameter limit.

    Returns:
        (query text, parameters)
    """
    if not tag_ids:
        raise ValueError("At least one tag id is required")
    try:
        rows = ", ".join(["(?)"] * len(tag_ids))
    except MemoryError as e:
        raise AllocationError(f"Cannot build a query for {len(tag_ids)} tags") from e
    sql = (
        f"WITH wanted(tag_id) AS (VALUES {rows}) "
        "SELECT DISTINCT file.relative_path FROM wanted "
        "JOIN file_tag ON file_tag.tag_id = wanted.tag_id "
        "JOIN file ON file.id = file_tag.file_id "
        "ORDER BY file.relative_path ASC"
    )
    return sql, tuple(tag_ids)


def files_for_tag_names(names: Sequence[str]) -> tuple[str, tuple[str, ...]]:
    """
    Build the IN-list query for files carrying any of `names`.

    The list holds exactly one marker per name. Results are distinct and
    sorted by path descending.

    Returns:
        (query text, parameters)
    """
    if not names:
        raise ValueError("At least one tag name is required")
    sql = (
        "SELECT DISTINCT file.relative_path FROM file "
        "JOIN file_tag ON file_tag.file_id = file.id "
        "JOIN tag ON tag.id = file_tag.tag_id "
        f"WHERE tag.name IN ({placeholders(len(names))}) "
        "ORDER BY file.relative_path DESC"
    )
    return sql, tuple(names)
