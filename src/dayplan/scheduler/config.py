"""Configuration classes for the scheduling engine."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from dayplan.models import TimeWindow, coerce_time_value, parse_time


class MissingDependencyPolicy(str, Enum):
    """How a dependency on a task with no occurrence today is treated."""

    SATISFIED = "satisfied"  # Ignore the edge
    BLOCKING = "blocking"  # Defer the dependent task


class SeverityPolicyType(str, Enum):
    """Built-in conflict severity policies."""

    MANDATORY = "mandatory"  # high/medium/low by mandatory count
    PRIORITY = "priority"  # mandatory first, then average priority


class TimeWindowRange(BaseModel):
    """Minute range of a time window, written as "HH:MM" strings."""

    start: str
    end: str

    @field_validator("start", "end", mode="before")
    @classmethod
    def coerce_time(cls, v: Any) -> Any:
        return coerce_time_value(v)

    @field_validator("start", "end")
    @classmethod
    def check_time(cls, v: str) -> str:
        parse_time(v)
        return v

    @model_validator(mode="after")
    def check_order(self) -> "TimeWindowRange":
        if parse_time(self.end) <= parse_time(self.start):
            raise ValueError(f"Time window end {self.end} must be after start {self.start}")
        return self

    def minutes(self) -> tuple[int, int]:
        """Return the half-open [start, end) range in minutes."""
        return (parse_time(self.start), parse_time(self.end))


def _default_time_windows() -> dict[TimeWindow, TimeWindowRange]:
    return {
        TimeWindow.MORNING: TimeWindowRange(start="06:00", end="12:00"),
        TimeWindow.AFTERNOON: TimeWindowRange(start="12:00", end="18:00"),
        TimeWindow.EVENING: TimeWindowRange(start="18:00", end="23:00"),
        TimeWindow.ANYTIME: TimeWindowRange(start="06:00", end="23:00"),
    }


class SchedulingConfig(BaseModel):
    """Tuning knobs for a scheduling run."""

    slot_granularity_minutes: int = Field(default=15, ge=1)
    dependency_buffer_minutes: int = Field(default=5, ge=0)
    missing_dependency_policy: MissingDependencyPolicy = MissingDependencyPolicy.SATISFIED
    severity_policy: SeverityPolicyType = SeverityPolicyType.MANDATORY
    crunch_enabled: bool = True
    time_windows: dict[TimeWindow, TimeWindowRange] = Field(
        default_factory=_default_time_windows
    )

    @field_validator("time_windows")
    @classmethod
    def fill_missing_windows(
        cls, v: dict[TimeWindow, TimeWindowRange]
    ) -> dict[TimeWindow, TimeWindowRange]:
        """Windows left out of a config file keep their defaults."""
        merged = _default_time_windows()
        merged.update(v)
        return merged

    def window_range(self, window: TimeWindow) -> tuple[int, int]:
        """Minute range for a time window."""
        return self.time_windows[window].minutes()
