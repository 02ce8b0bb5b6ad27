"""Example custom conflict severity policy.

Any object with a ``classify(first, second) -> Severity`` method can replace
the built-in policies. This one treats every overlap with a task whose id
starts with ``meeting_`` as critical, since other people are waiting.

Usage:
    python examples/custom_severity.py examples/tasks.yaml 2025-01-06
"""

import sys
from datetime import date

from dayplan.loader import discover_config, load_task_file
from dayplan.models import format_time
from dayplan.scheduler import (
    MandatorySeverityPolicy,
    ScheduledTask,
    ScheduleFailure,
    SchedulingService,
    Severity,
)
from dayplan.unified_config import UnifiedConfig


class MeetingsFirstPolicy:
    """Critical for meetings, otherwise the default mandatory-based policy."""

    def __init__(self) -> None:
        self.fallback = MandatorySeverityPolicy()

    def classify(self, first: ScheduledTask, second: ScheduledTask) -> Severity:
        if first.id.startswith("meeting_") or second.id.startswith("meeting_"):
            return Severity.CRITICAL
        return self.fallback.classify(first, second)


def main(task_path: str, day: str) -> int:
    target = date.fromisoformat(day)
    task_file = load_task_file(task_path)
    config = discover_config(task_path) or UnifiedConfig()

    service = SchedulingService(config.scheduler, MeetingsFirstPolicy())
    result = service.schedule_for_date(
        target,
        task_file.definitions,
        config.sleep.window_for(target),
        task_file.overrides_for(target),
    )
    if isinstance(result, ScheduleFailure):
        print(result.message)
        return 1

    for task in result.schedule:
        conflicts = ", ".join(f"{c.with_id} ({c.severity.value})" for c in task.conflicts)
        print(f"{format_time(task.scheduled_time)}  {task.id}  {conflicts}")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1], sys.argv[2]))
