"""
ftag: tag files, then find them by tag.

Tags live in a small SQLite store (`.ftagdb`) found by walking up from the
current directory.

Quick Start:
    from ftag import TagStore

    with TagStore.open() as store:
        store.tag("notes.txt", "work")
        with store.filter(["work"]) as files:
            print(list(files))
"""

from .config import DEFAULT_DATABASE, MEMORY_DATABASE, FilterStrategy, FtagConfig, load_config
from .cursor import HiddenFilter, ResultCursor
from .discovery import locate_store
from .errors import AllocationError, BindError, FtagError, OpenError, SchemaError, StepError
from .store import TagStore

__version__ = "0.2.0"
__all__ = [
    "TagStore",
    "ResultCursor",
    "HiddenFilter",
    "FilterStrategy",
    "FtagConfig",
    "load_config",
    "locate_store",
    "DEFAULT_DATABASE",
    "MEMORY_DATABASE",
    "FtagError",
    "OpenError",
    "SchemaError",
    "BindError",
    "StepError",
    "AllocationError",
]
