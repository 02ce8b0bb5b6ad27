"""Pydantic schemas for task file YAML data."""

from __future__ import annotations

import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from .models import (
    CustomPattern,
    Frequency,
    OccurrenceStatus,
    SchedulingType,
    TimeWindow,
    coerce_time_value,
)

DEFAULT_DURATION = 30
DEFAULT_PRIORITY = 3


class RecurrenceSchema(BaseModel):
    """Schema for a task's recurrence block."""

    frequency: Frequency = Frequency.NONE
    interval: int = 1
    days_of_week: list[int] = Field(default_factory=list)  # 0 = Sunday
    day_of_month: int | Literal["last"] | None = None
    month: int | None = None
    custom_pattern: CustomPattern | None = None
    nth_week: int | None = None
    weekday: int | None = None
    start_date: datetime.date | None = None
    end_date: datetime.date | None = None
    end_after_occurrences: int | None = None

    @field_validator("days_of_week", mode="before")
    @classmethod
    def ensure_list(cls, v: Any) -> Any:
        """Allow a single weekday instead of a list."""
        if v is None:
            return []
        if isinstance(v, list):
            return v
        return [v]


class TaskSchema(BaseModel):
    """Schema for one task definition."""

    name: str
    description: str = ""
    duration: int = DEFAULT_DURATION
    min_duration: int | None = None
    mandatory: bool = False
    priority: int = DEFAULT_PRIORITY
    active: bool = True
    scheduling: SchedulingType = SchedulingType.FLEXIBLE
    time: str | None = None
    window: TimeWindow = TimeWindow.ANYTIME
    depends_on: list[str] = Field(default_factory=list)
    recurrence: RecurrenceSchema = Field(default_factory=RecurrenceSchema)

    @field_validator("time", mode="before")
    @classmethod
    def coerce_time(cls, v: Any) -> Any:
        return coerce_time_value(v)

    @field_validator("depends_on", mode="before")
    @classmethod
    def ensure_list(cls, v: Any) -> list[str]:
        """Ensure value is a list."""
        if v is None:
            return []
        if isinstance(v, list):
            return [str(item) for item in v]  # type: ignore[misc]
        return [str(v)]


class OverrideSchema(BaseModel):
    """Schema for a per-date override entry."""

    task: str
    date: datetime.date
    status: OccurrenceStatus = OccurrenceStatus.PENDING
    time: str | None = None
    duration: int | None = None

    @field_validator("time", mode="before")
    @classmethod
    def coerce_time(cls, v: Any) -> Any:
        return coerce_time_value(v)


class TaskFileSchema(BaseModel):
    """Schema for the entire task file."""

    tasks: dict[str, TaskSchema] = Field(default_factory=dict)
    overrides: list[OverrideSchema] = Field(default_factory=list)
