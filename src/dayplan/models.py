"""Data models for dayplan task definitions."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Literal

MINUTES_PER_DAY = 24 * 60
LAST_DAY = "last"

DayOfMonth = int | Literal["last"]

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


def parse_time(time_str: str) -> int:
    """Parse "HH:MM" into minutes since midnight.

    "24:00" is accepted as the end of the day.
    """
    match = _TIME_RE.match(time_str.strip())
    if not match:
        raise ValueError(f"Invalid time '{time_str}': expected HH:MM")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if minutes >= 60 or hours > 24 or (hours == 24 and minutes != 0):
        raise ValueError(f"Invalid time '{time_str}': out of range")
    return hours * 60 + minutes


def coerce_time_value(value: object) -> object:
    """Turn an unquoted YAML time back into "HH:MM".

    YAML 1.1 reads `12:30` as the sexagesimal integer 750, which is also the
    minute-of-day value. Other values pass through for normal validation.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return f"{value // 60:02d}:{value % 60:02d}"
    return value


def format_time(minutes: int) -> str:
    """Format minutes since midnight as "HH:MM".

    Values past midnight wrap (1470 -> "00:30").
    """
    minutes %= MINUTES_PER_DAY
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


class SchedulingType(str, Enum):
    """Whether a task sits at a fixed time or floats in a window."""

    FIXED = "fixed"
    FLEXIBLE = "flexible"


class TimeWindow(str, Enum):
    """Preferred part of the day for a flexible task."""

    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    ANYTIME = "anytime"


class Frequency(str, Enum):
    """Recurrence frequencies."""

    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    CUSTOM = "custom"


class CustomPattern(str, Enum):
    """Patterns available to the custom frequency."""

    WEEKDAYS = "weekdays"
    WEEKENDS = "weekends"
    NTH_WEEKDAY = "nth-weekday"


class OccurrenceStatus(str, Enum):
    """Completion state recorded for a task on a specific date."""

    PENDING = "pending"
    COMPLETED = "completed"
    SKIPPED = "skipped"


def weekday_index(day: date) -> int:
    """Weekday index with 0 = Sunday ... 6 = Saturday."""
    return (day.weekday() + 1) % 7


@dataclass(frozen=True)
class RecurrenceRule:
    """When a task definition produces occurrences.

    Weekday indices use 0 = Sunday ... 6 = Saturday.
    """

    frequency: Frequency = Frequency.NONE
    interval: int = 1
    days_of_week: frozenset[int] = frozenset()
    day_of_month: DayOfMonth | None = None
    month: int | None = None
    custom_pattern: CustomPattern | None = None
    nth_week: int | None = None  # 1-5, for nth-weekday
    weekday: int | None = None  # 0-6, for nth-weekday
    start_date: date | None = None
    end_date: date | None = None
    end_after_occurrences: int | None = None


@dataclass(frozen=True)
class TaskDefinition:
    """A long-lived task template.

    Times are minutes since midnight. The engine reads definitions but never
    mutates them.
    """

    id: str
    name: str
    duration_minutes: int
    min_duration_minutes: int
    description: str = ""
    is_mandatory: bool = False
    priority: int = 3
    is_active: bool = True
    scheduling_type: SchedulingType = SchedulingType.FLEXIBLE
    default_time: int | None = None
    time_window: TimeWindow = TimeWindow.ANYTIME
    depends_on: tuple[str, ...] = ()
    recurrence: RecurrenceRule = field(default_factory=RecurrenceRule)

    @property
    def is_fixed(self) -> bool:
        return self.scheduling_type == SchedulingType.FIXED


@dataclass(frozen=True)
class OccurrenceOverride:
    """A per-date record for one task: completion status and edits."""

    task_id: str
    date: date
    status: OccurrenceStatus = OccurrenceStatus.PENDING
    scheduled_time: int | None = None  # Pins the occurrence at this time
    duration_minutes: int | None = None

    @property
    def removes_occurrence(self) -> bool:
        return self.status in (OccurrenceStatus.COMPLETED, OccurrenceStatus.SKIPPED)


@dataclass(frozen=True)
class SleepWindow:
    """Wake and sleep times for a date.

    A sleep time at or before the wake time means the waking window runs
    past midnight; equal times give an empty window.
    """

    wake_time: int
    sleep_time: int

    @classmethod
    def parse(cls, wake: str, sleep: str) -> SleepWindow:
        """Build from "HH:MM" strings."""
        return cls(wake_time=parse_time(wake), sleep_time=parse_time(sleep))

    def waking_range(self) -> tuple[int, int]:
        """Half-open [start, end) waking range in minutes; end may exceed 1440."""
        if self.sleep_time == self.wake_time:
            return (self.wake_time, self.wake_time)
        if self.sleep_time < self.wake_time:
            return (self.wake_time, self.sleep_time + MINUTES_PER_DAY)
        return (self.wake_time, self.sleep_time)

    def on_waking_timeline(self, minute: int) -> int:
        """Map a clock time onto the waking range.

        When the window runs past midnight, times after midnight that fall
        inside it move to the next day (00:30 becomes 1470). Everything else
        is returned unchanged.
        """
        wake_start, wake_end = self.waking_range()
        if minute < wake_start and minute + MINUTES_PER_DAY < wake_end:
            return minute + MINUTES_PER_DAY
        return minute

    @property
    def length_minutes(self) -> int:
        start, end = self.waking_range()
        return end - start

    def __str__(self) -> str:
        return f"{format_time(self.wake_time)}-{format_time(self.sleep_time)}"


@dataclass
class TaskFile:
    """Parsed contents of a task file."""

    definitions: list[TaskDefinition] = field(default_factory=list)
    overrides: list[OccurrenceOverride] = field(default_factory=list)

    def get_definition(self, task_id: str) -> TaskDefinition | None:
        for definition in self.definitions:
            if definition.id == task_id:
                return definition
        return None

    def get_all_ids(self) -> set[str]:
        return {definition.id for definition in self.definitions}

    def overrides_for(self, day: date) -> list[OccurrenceOverride]:
        """Overrides recorded for ``day``."""
        return [override for override in self.overrides if override.date == day]
