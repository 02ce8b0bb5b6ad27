"""Pytest configuration and fixtures for dayplan tests."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import date

import pytest

from dayplan import context
from dayplan.logger import reset_logger
from dayplan.models import (
    RecurrenceRule,
    SchedulingType,
    SleepWindow,
    TaskDefinition,
    TimeWindow,
    parse_time,
)
from dayplan.scheduler import Occurrence

# A Monday
MONDAY = date(2025, 1, 6)


@pytest.fixture(autouse=True)
def isolate_global_state() -> Iterator[None]:
    """Reset logger and CLI context around each test."""
    yield
    reset_logger()
    context.set_config_path(None)
    context.set_today(None)


@pytest.fixture
def make_definition() -> Callable[..., TaskDefinition]:
    """Factory for task definitions with test-friendly defaults.

    ``at`` makes the task fixed at that "HH:MM" time; durations are minutes.
    """

    def _make(  # noqa: PLR0913 - mirrors TaskDefinition fields
        task_id: str,
        *,
        duration: int = 30,
        min_duration: int | None = None,
        mandatory: bool = False,
        priority: int = 3,
        at: str | None = None,
        window: TimeWindow = TimeWindow.ANYTIME,
        depends_on: tuple[str, ...] = (),
        recurrence: RecurrenceRule | None = None,
        active: bool = True,
    ) -> TaskDefinition:
        return TaskDefinition(
            id=task_id,
            name=task_id.replace("_", " ").title(),
            duration_minutes=duration,
            min_duration_minutes=min_duration if min_duration is not None else duration,
            is_mandatory=mandatory,
            priority=priority,
            is_active=active,
            scheduling_type=SchedulingType.FIXED if at else SchedulingType.FLEXIBLE,
            default_time=parse_time(at) if at else None,
            time_window=window,
            depends_on=depends_on,
            recurrence=recurrence or RecurrenceRule(),
        )

    return _make


@pytest.fixture
def make_occurrence(
    make_definition: Callable[..., TaskDefinition],
) -> Callable[..., Occurrence]:
    """Factory for occurrences on MONDAY; accepts make_definition's arguments."""

    def _make(task_id: str, **kwargs: object) -> Occurrence:
        return Occurrence(definition=make_definition(task_id, **kwargs), date=MONDAY)

    return _make


@pytest.fixture
def day_window() -> SleepWindow:
    """Waking hours 06:00-23:00, matching the 'anytime' window."""
    return SleepWindow.parse("06:00", "23:00")
