"""YAML parser for dayplan task files."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ParseError, ValidationError
from .models import (
    OccurrenceOverride,
    RecurrenceRule,
    TaskDefinition,
    TaskFile,
    parse_time,
)
from .schemas import OverrideSchema, RecurrenceSchema, TaskFileSchema, TaskSchema

MIN_DURATION_FLOOR = 15


def default_min_duration(duration: int) -> int:
    """Half the nominal duration, at least 15 minutes, never above nominal."""
    return min(max(MIN_DURATION_FLOOR, duration // 2), duration)


def _parse_optional_time(value: str | None, where: str) -> int | None:
    if value is None:
        return None
    try:
        return parse_time(value)
    except ValueError as e:
        raise ValidationError(f"{where}: {e}") from e


class TaskFileParser:
    """Parser for task file YAML.

    This parser only handles YAML parsing and model creation. For loading
    with validation, use load_task_file() from dayplan.loader.
    """

    def parse_file(self, file_path: Path | str) -> TaskFile:
        """Parse a YAML file into a TaskFile."""
        path = Path(file_path)
        if not path.exists():
            raise ParseError(f"File not found: {file_path}")

        try:
            with path.open(encoding="utf-8") as f:
                data: Any = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ParseError(f"Failed to parse YAML: {e}") from e

        if not isinstance(data, dict):
            raise ParseError("YAML must contain a dictionary at the root level")

        return self.parse_data(data)  # type: ignore[arg-type]

    def parse_data(self, data: dict[str, Any]) -> TaskFile:
        """Parse already-loaded YAML data into a TaskFile."""
        try:
            schema = TaskFileSchema(**data)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid YAML structure: {e}") from e

        definitions = [
            self._to_definition(task_id, task_data) for task_id, task_data in schema.tasks.items()
        ]
        overrides = [self._to_override(entry) for entry in schema.overrides]
        return TaskFile(definitions=definitions, overrides=overrides)

    def _to_definition(self, task_id: str, task_data: TaskSchema) -> TaskDefinition:
        min_duration = task_data.min_duration
        if min_duration is None:
            min_duration = default_min_duration(task_data.duration)

        return TaskDefinition(
            id=task_id,
            name=task_data.name,
            description=task_data.description,
            duration_minutes=task_data.duration,
            min_duration_minutes=min_duration,
            is_mandatory=task_data.mandatory,
            priority=task_data.priority,
            is_active=task_data.active,
            scheduling_type=task_data.scheduling,
            default_time=_parse_optional_time(task_data.time, f"Task '{task_id}' time"),
            time_window=task_data.window,
            depends_on=tuple(task_data.depends_on),
            recurrence=self._to_rule(task_data.recurrence),
        )

    def _to_rule(self, rec: RecurrenceSchema) -> RecurrenceRule:
        return RecurrenceRule(
            frequency=rec.frequency,
            interval=rec.interval,
            days_of_week=frozenset(rec.days_of_week),
            day_of_month=rec.day_of_month,
            month=rec.month,
            custom_pattern=rec.custom_pattern,
            nth_week=rec.nth_week,
            weekday=rec.weekday,
            start_date=rec.start_date,
            end_date=rec.end_date,
            end_after_occurrences=rec.end_after_occurrences,
        )

    def _to_override(self, entry: OverrideSchema) -> OccurrenceOverride:
        return OccurrenceOverride(
            task_id=entry.task,
            date=entry.date,
            status=entry.status,
            scheduled_time=_parse_optional_time(
                entry.time, f"Override for '{entry.task}' on {entry.date}"
            ),
            duration_minutes=entry.duration,
        )
