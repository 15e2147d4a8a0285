"""
Store discovery.

A store lives in some directory as a plain file (`.ftagdb` by default). Like
git, ftag looks for it in the current directory and then in each parent,
so tagging works from anywhere below the directory holding the store.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from .errors import OpenError

logger = logging.getLogger(__name__)


def _at_root(cwd: str) -> bool:
    """True when cwd is the filesystem root (its own parent)."""
    return os.path.dirname(cwd) == cwd


def locate_store(filename: str) -> Optional[Path]:
    """
    Walk up from the current directory looking for a readable `filename`.

    On success the process is left in the directory holding the store and
    that directory is returned. On failure the process is returned to the
    directory it started in and None is returned.
    """
    start = os.open(".", os.O_RDONLY)
    try:
        while True:
            cwd = os.getcwd()
            if os.access(filename, os.R_OK):
                logger.debug("Found %s in %s", filename, cwd)
                return Path(cwd)
            if _at_root(cwd):
                break
            os.chdir("..")

        os.fchdir(start)
        logger.debug("No %s found above %s", filename, os.getcwd())
        return None
    finally:
        os.close(start)


def enter_directory(directory: Path) -> Path:
    """Change into a forced store directory, skipping discovery."""
    try:
        os.chdir(directory)
    except OSError as e:
        raise OpenError(f"Cannot use directory {directory}: {e.strerror}") from e
    return Path(os.getcwd())
