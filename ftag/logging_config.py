"""
Logging configuration for ftag.

Quiet by default: only warnings reach stderr unless -v is given.
"""

import logging
import sys
import warnings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_quiet_mode(quiet: bool = True):
    """
    Keep the ftag logger at WARNING and silence Python warnings.

    Args:
        quiet: If True, suppress verbose output. If False, show everything.
    """
    logger = logging.getLogger("ftag")
    if quiet:
        warnings.filterwarnings("ignore")
        logger.setLevel(logging.WARNING)
    else:
        warnings.filterwarnings("default")
        logger.setLevel(logging.NOTSET)


def verbosity_level(verbosity: int) -> int:
    """Map a -v count to a logging level."""
    if verbosity <= 0:
        return logging.WARNING
    if verbosity == 1:
        return logging.INFO
    return logging.DEBUG


def enable_debug_mode(level: int = logging.DEBUG):
    """Enable logging to stderr at the given level."""
    warnings.filterwarnings("default")

    logger = logging.getLogger("ftag")
    logger.setLevel(level)

    # Add stderr handler if not already present
    if not any(isinstance(h, logging.StreamHandler) and h.stream == sys.stderr
               for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S"))
        logger.addHandler(handler)

    for handler in logger.handlers:
        handler.setLevel(level)
