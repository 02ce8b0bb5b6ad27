"""Core dataclasses for the scheduling engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Literal

from dayplan.models import TaskDefinition, TimeWindow, format_time


class Severity(str, Enum):
    """How serious an overlap between two scheduled tasks is."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class FailureReason(str, Enum):
    """Why a scheduling run produced no schedule."""

    CAPACITY_EXCEEDED = "capacity_exceeded"
    CYCLE_DETECTED = "cycle_detected"
    MALFORMED_INPUT = "malformed_input"


class DeferralReason(str, Enum):
    """Why an occurrence was left out of a successful schedule."""

    NO_ROOM = "no_room"  # Optional task did not fit
    PREREQUISITE_DEFERRED = "prerequisite_deferred"
    MISSING_DEPENDENCY = "missing_dependency"  # Under the blocking policy


@dataclass(frozen=True)
class Occurrence:
    """A task definition materialized for one date."""

    definition: TaskDefinition
    date: date
    duration_override: int | None = None
    pinned_time: int | None = None

    @property
    def id(self) -> str:
        return self.definition.id

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def priority(self) -> int:
        return self.definition.priority

    @property
    def is_mandatory(self) -> bool:
        return self.definition.is_mandatory

    @property
    def depends_on(self) -> tuple[str, ...]:
        return self.definition.depends_on

    @property
    def time_window(self) -> TimeWindow:
        return self.definition.time_window

    @property
    def duration_minutes(self) -> int:
        if self.duration_override is not None:
            return self.duration_override
        return self.definition.duration_minutes

    @property
    def min_duration_minutes(self) -> int:
        return min(self.definition.min_duration_minutes, self.duration_minutes)

    @property
    def anchor_time(self) -> int | None:
        """Time this occurrence is pinned to, or None if it floats."""
        if self.pinned_time is not None:
            return self.pinned_time
        if self.definition.is_fixed:
            return self.definition.default_time
        return None


@dataclass(frozen=True)
class Conflict:
    """An overlap with another scheduled task."""

    with_id: str
    severity: Severity
    overlap_minutes: int


@dataclass
class ScheduledTask:
    """An occurrence placed at a time of day."""

    occurrence: Occurrence
    scheduled_time: int
    effective_duration_minutes: int
    is_anchor: bool = False
    conflicts: list[Conflict] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.occurrence.id

    @property
    def end_time(self) -> int:
        return self.scheduled_time + self.effective_duration_minutes

    @property
    def was_crunched(self) -> bool:
        return self.effective_duration_minutes < self.occurrence.duration_minutes

    def overlaps(self, start: int, end: int) -> bool:
        """Half-open interval intersection with [start, end)."""
        return self.scheduled_time < end and start < self.end_time

    def __str__(self) -> str:
        return (
            f"{self.id} {format_time(self.scheduled_time)}-{format_time(self.end_time)} "
            f"({self.effective_duration_minutes}m)"
        )


@dataclass
class DependencyResolution:
    """Evaluation order and dependency bookkeeping for one day's occurrences.

    ``earliest_start`` is filled in lazily as prerequisites are placed.
    """

    order: list[Occurrence]
    cycle_detected: bool
    cycle_members: list[str]
    prerequisites: dict[str, list[str]]
    dependents: dict[str, list[str]]
    missing: dict[str, list[str]]
    buffer_minutes: int
    earliest_start: dict[str, int | None] = field(default_factory=dict)
    cycle_blocked: list[str] = field(default_factory=list)  # Downstream of a cycle only

    def earliest_start_for(self, task_id: str, placed: dict[str, ScheduledTask]) -> int | None:
        """Earliest start allowed by already-placed prerequisites (end + buffer).

        Returns None when no placed prerequisite constrains the task.
        """
        ends = [
            placed[dep_id].end_time + self.buffer_minutes
            for dep_id in self.prerequisites.get(task_id, [])
            if dep_id in placed
        ]
        earliest = max(ends) if ends else None
        if task_id in self.earliest_start:
            self.earliest_start[task_id] = earliest
        return earliest

    def latest_end_for(self, task_id: str, placed: dict[str, ScheduledTask]) -> int | None:
        """Latest end allowed by placed anchors that depend on this task."""
        starts = [
            placed[dependent_id].scheduled_time - self.buffer_minutes
            for dependent_id in self.dependents.get(task_id, [])
            if dependent_id in placed and placed[dependent_id].is_anchor
        ]
        return min(starts) if starts else None


@dataclass
class ScheduleSuccess:
    """A placed schedule for the date."""

    schedule: list[ScheduledTask]
    deferred: list[Occurrence] = field(default_factory=list)
    deferral_reasons: dict[str, DeferralReason] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)
    crunched: bool = False
    success: Literal[True] = True

    def get(self, task_id: str) -> ScheduledTask | None:
        """Look up a scheduled task by id."""
        return next((task for task in self.schedule if task.id == task_id), None)


@dataclass
class ScheduleFailure:
    """An infeasibility report in place of a schedule."""

    reason: FailureReason
    message: str
    suggestions: list[str] = field(default_factory=list)
    shortfall_minutes: int | None = None
    offending_ids: list[str] = field(default_factory=list)
    success: Literal[False] = False


ScheduleResult = ScheduleSuccess | ScheduleFailure
