"""Process-wide CLI state: config path and the as-of date."""

from __future__ import annotations

from datetime import date
from pathlib import Path


class _Context:
    """Holds values set by the CLI callback for use by subcommands."""

    def __init__(self) -> None:
        self.config_path: Path | None = None
        self.today: date | None = None


_context = _Context()


def get_config_path() -> Path | None:
    """Get the config path given on the command line, if any."""
    return _context.config_path


def set_config_path(path: Path | None) -> None:
    """Set the config path given on the command line."""
    _context.config_path = path


def get_today() -> date:
    """Return the as-of date, falling back to the system date."""
    return _context.today or date.today()  # noqa: DTZ011


def set_today(value: date | None) -> None:
    """Pin the as-of date (None restores the system date)."""
    _context.today = value
