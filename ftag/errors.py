"""
Error types and error logging for ftag.

Store failures are raised as FtagError subclasses so the CLI can print a
short message; unexpected exceptions get their full traceback logged.
"""

import os
import traceback
from datetime import datetime, timezone
from pathlib import Path


class FtagError(Exception):
    """Base class for tag store failures."""


class OpenError(FtagError):
    """The store could not be opened or created, or one is already open."""


class SchemaError(FtagError):
    """Schema migration failed; the store is unusable."""


class BindError(FtagError):
    """A query parameter was missing or could not be bound."""


class StepError(FtagError):
    """A query failed while executing or while reading its rows."""


class AllocationError(FtagError):
    """A dynamic query could not be built."""


def _error_log_path() -> Path:
    """Resolve error log path, respecting FTAG_ERROR_LOG."""
    override = os.environ.get("FTAG_ERROR_LOG")
    if override:
        return Path(override)
    return Path.home() / ".ftag" / "ftag-errors.log"


def log_exception(exc: Exception, context: str = "") -> Path:
    """
    Log exception with full traceback to file.

    Args:
        exc: The exception that occurred
        context: Optional context string (e.g., command name)

    Returns:
        Path to the error log file
    """
    log_path = _error_log_path()
    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(log_path, os.O_WRONLY | os.O_CREAT | os.O_APPEND, 0o600)
        with os.fdopen(fd, "a") as f:
            f.write(f"\n{'='*60}\n")
            f.write(f"[{timestamp}]")
            if context:
                f.write(f" {context}")
            f.write(f" {type(exc).__name__}: {exc}\n")
            f.write("".join(traceback.format_exception(exc)))
    except OSError:
        pass  # Can't write error log, don't crash over it
    return log_path
