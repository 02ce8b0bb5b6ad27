"""Logging configuration for dayplan with semantic verbosity levels."""

from __future__ import annotations

import logging
import sys
from typing import Any, TextIO

# Custom levels sit between the standard ones
CHANGES_LEVEL = 25  # Placements and deferrals - verbosity 1
CHECKS_LEVEL = 15  # Candidate windows and decisions - verbosity 2

logging.addLevelName(CHANGES_LEVEL, "CHANGES")
logging.addLevelName(CHECKS_LEVEL, "CHECKS")

VERBOSITY_SILENT = 0
VERBOSITY_CHANGES = 1
VERBOSITY_CHECKS = 2
VERBOSITY_DEBUG = 3

_LEVEL_MAP = {
    VERBOSITY_SILENT: logging.ERROR,
    VERBOSITY_CHANGES: CHANGES_LEVEL,
    VERBOSITY_CHECKS: CHECKS_LEVEL,
    VERBOSITY_DEBUG: logging.DEBUG,
}


class DayplanLogger(logging.Logger):
    """Logger with one method per verbosity level.

    - changes(): what the engine placed, crunched or deferred
    - checks(): which windows and constraints were considered
    - debug(): slot-by-slot scanning detail
    """

    def changes(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log at verbosity level 1."""
        if self.isEnabledFor(CHANGES_LEVEL):
            self._log(CHANGES_LEVEL, msg, args, **kwargs)

    def checks(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log at verbosity level 2."""
        if self.isEnabledFor(CHECKS_LEVEL):
            self._log(CHECKS_LEVEL, msg, args, **kwargs)


def get_logger() -> DayplanLogger:
    """Return the shared ``dayplan`` logger.

    Call setup_logger() first to choose a verbosity; until then only
    errors reach the default handlers.
    """
    logging.setLoggerClass(DayplanLogger)
    logger = logging.getLogger("dayplan")
    assert isinstance(logger, DayplanLogger)
    return logger


def setup_logger(verbosity: int, stream: TextIO | None = None) -> None:
    """Configure the dayplan logger.

    Safe to call repeatedly; existing handlers are replaced.

    Args:
        verbosity: 0=errors only, 1=changes, 2=checks, 3=debug
        stream: Output stream (defaults to sys.stderr)
    """
    logger = get_logger()
    logger.handlers.clear()
    logger.setLevel(_LEVEL_MAP.get(verbosity, logging.ERROR))

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False


def reset_logger() -> None:
    """Drop handlers and return to errors-only (used between tests)."""
    logger = get_logger()
    logger.handlers.clear()
    logger.setLevel(logging.ERROR)


def changes_enabled() -> bool:
    """True when verbosity >= 1."""
    return get_logger().isEnabledFor(CHANGES_LEVEL)


def checks_enabled() -> bool:
    """True when verbosity >= 2."""
    return get_logger().isEnabledFor(CHECKS_LEVEL)


def debug_enabled() -> bool:
    """True when verbosity >= 3."""
    return get_logger().isEnabledFor(logging.DEBUG)
