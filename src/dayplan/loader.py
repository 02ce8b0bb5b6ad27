"""Task file loading with validation."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from . import context
from .exceptions import CircularDependencyError, MissingReferenceError, ValidationError
from .models import (
    LAST_DAY,
    CustomPattern,
    Frequency,
    OccurrenceOverride,
    TaskDefinition,
    TaskFile,
)
from .parser import TaskFileParser
from .unified_config import UnifiedConfig, load_unified_config

CONFIG_FILENAME = "dayplan_config.yaml"

MIN_PRIORITY = 1
MAX_PRIORITY = 5


def discover_config(
    task_file_path: Path | str,
    config_path: Path | None = None,
) -> UnifiedConfig | None:
    """Discover unified config from various locations.

    Search order:
    1. Explicit config_path argument
    2. Global context (set via CLI --config)
    3. task file directory / dayplan_config.yaml
    4. Current directory / dayplan_config.yaml
    """
    # 1. Explicit argument
    if config_path and config_path.exists():
        return load_unified_config(config_path)

    # 2. Global context
    ctx_config = context.get_config_path()
    if ctx_config and ctx_config.exists():
        return load_unified_config(ctx_config)

    # 3. Task file directory
    dir_config = Path(task_file_path).parent / CONFIG_FILENAME
    if dir_config.exists():
        return load_unified_config(dir_config)

    # 4. Current directory
    cwd_config = Path(CONFIG_FILENAME)
    if cwd_config.exists():
        return load_unified_config(cwd_config)

    return None


def load_task_file(path: Path | str) -> TaskFile:
    """Parse and validate a task file.

    Raises:
        ParseError: If the file is missing or not valid YAML
        ValidationError: If any definition or override is invalid
    """
    task_file = TaskFileParser().parse_file(path)
    validate_definitions(task_file.definitions, task_file.overrides)
    return task_file


def validate_definitions(
    definitions: list[TaskDefinition],
    overrides: Iterable[OccurrenceOverride] = (),
) -> None:
    """Validate field ranges, references and declared cycles."""
    all_ids = {definition.id for definition in definitions}

    for definition in definitions:
        _validate_fields(definition)
        _validate_recurrence(definition)

    for definition in definitions:
        for dep_id in definition.depends_on:
            if dep_id not in all_ids:
                raise MissingReferenceError(
                    f"Task {definition.id} depends on unknown task: {dep_id}"
                )

    for override in overrides:
        if override.task_id not in all_ids:
            raise MissingReferenceError(
                f"Override on {override.date} refers to unknown task: {override.task_id}"
            )
        if override.duration_minutes is not None and override.duration_minutes <= 0:
            raise ValidationError(
                f"Override for '{override.task_id}' on {override.date} has non-positive duration"
            )

    _check_circular_dependencies(definitions)


def _validate_fields(definition: TaskDefinition) -> None:
    task_id = definition.id
    if definition.duration_minutes <= 0:
        raise ValidationError(f"Task '{task_id}' must have a positive duration")
    if definition.min_duration_minutes <= 0:
        raise ValidationError(f"Task '{task_id}' must have a positive minimum duration")
    if definition.min_duration_minutes > definition.duration_minutes:
        raise ValidationError(
            f"Task '{task_id}' minimum duration {definition.min_duration_minutes} exceeds "
            f"its duration {definition.duration_minutes}"
        )
    if not MIN_PRIORITY <= definition.priority <= MAX_PRIORITY:
        raise ValidationError(
            f"Task '{task_id}' priority {definition.priority} must be between "
            f"{MIN_PRIORITY} and {MAX_PRIORITY}"
        )
    if definition.is_fixed and definition.default_time is None:
        raise ValidationError(f"Fixed task '{task_id}' must have a time")


def _validate_recurrence(definition: TaskDefinition) -> None:  # noqa: PLR0912
    task_id = definition.id
    rule = definition.recurrence

    if rule.interval < 1:
        raise ValidationError(f"Task '{task_id}' recurrence interval must be at least 1")
    for weekday in rule.days_of_week:
        if not 0 <= weekday <= 6:
            raise ValidationError(
                f"Task '{task_id}' has invalid weekday {weekday} (0 = Sunday ... 6 = Saturday)"
            )
    if rule.day_of_month is not None and rule.day_of_month != LAST_DAY:
        if not 1 <= rule.day_of_month <= 31:
            raise ValidationError(
                f"Task '{task_id}' day_of_month must be 1-31 or 'last', got {rule.day_of_month}"
            )
    if rule.month is not None and not 1 <= rule.month <= 12:
        raise ValidationError(f"Task '{task_id}' month must be 1-12, got {rule.month}")
    if rule.end_after_occurrences is not None and rule.end_after_occurrences < 1:
        raise ValidationError(f"Task '{task_id}' end_after_occurrences must be at least 1")
    if rule.start_date and rule.end_date and rule.end_date < rule.start_date:
        raise ValidationError(f"Task '{task_id}' recurrence ends before it starts")

    if rule.frequency == Frequency.CUSTOM:
        if rule.custom_pattern is None:
            raise ValidationError(f"Task '{task_id}' custom recurrence needs a custom_pattern")
        if rule.custom_pattern == CustomPattern.NTH_WEEKDAY:
            if rule.nth_week is None or not 1 <= rule.nth_week <= 5:
                raise ValidationError(f"Task '{task_id}' nth-weekday needs nth_week 1-5")
            if rule.weekday is None or not 0 <= rule.weekday <= 6:
                raise ValidationError(f"Task '{task_id}' nth-weekday needs weekday 0-6")


def _check_circular_dependencies(definitions: list[TaskDefinition]) -> None:
    """Check for circular dependencies among all definitions."""
    by_id = {definition.id: definition for definition in definitions}
    visited: set[str] = set()
    for definition in definitions:
        path: list[str] = []
        if _has_circular_dependency(by_id, definition.id, visited, path):
            start = path[-1]
            cycle = " -> ".join(path[path.index(start) :])
            raise CircularDependencyError(f"Circular dependency detected: {cycle}")


def _has_circular_dependency(
    by_id: dict[str, TaskDefinition],
    task_id: str,
    visited: set[str],
    path: list[str],
) -> bool:
    """Recursively check for circular dependencies.

    On success ``path`` ends with the task that closed the cycle.
    """
    if task_id in path:
        path.append(task_id)
        return True

    if task_id in visited:
        return False

    visited.add(task_id)
    path.append(task_id)

    definition = by_id.get(task_id)
    if definition:
        for dep_id in definition.depends_on:
            if _has_circular_dependency(by_id, dep_id, visited, path):
                return True

    path.pop()
    return False
