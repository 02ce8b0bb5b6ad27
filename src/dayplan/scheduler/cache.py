"""Caller-side memoization of scheduling runs.

The engine itself keeps no state. Callers that redraw often can wrap it in a
ScheduleCache, keyed by date plus a fingerprint of everything that feeds the
run, so any edit to a contributing definition or override yields a new key.
"""

import hashlib
import json
from collections import OrderedDict
from collections.abc import Iterable
from dataclasses import asdict
from datetime import date
from enum import Enum
from typing import Any

from dayplan.logger import get_logger
from dayplan.models import OccurrenceOverride, SleepWindow, TaskDefinition

from .config import SchedulingConfig
from .core import ScheduleResult
from .recurrence import RecurrenceExpander
from .service import SchedulingService

logger = get_logger()


def _json_default(value: Any) -> Any:
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    raise TypeError(f"Cannot fingerprint {type(value).__name__}")


def fingerprint_inputs(
    day: date,
    definitions: Iterable[TaskDefinition],
    sleep_window: SleepWindow,
    overrides: Iterable[OccurrenceOverride] = (),
    config: SchedulingConfig | None = None,
) -> str:
    """Hash the inputs that contribute to ``day``'s schedule.

    Only definitions with an occurrence on ``day`` are included, so editing
    a task that does not occur that day keeps the key stable.
    """
    occurrences = RecurrenceExpander().expand(definitions, day, overrides)
    payload = {
        "date": day.isoformat(),
        "sleep": [sleep_window.wake_time, sleep_window.sleep_time],
        "config": (config or SchedulingConfig()).model_dump(mode="json"),
        "occurrences": [
            {
                "definition": asdict(occ.definition),
                "duration_override": occ.duration_override,
                "pinned_time": occ.pinned_time,
            }
            for occ in occurrences
        ],
    }
    raw = json.dumps(payload, sort_keys=True, default=_json_default)
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


class ScheduleCache:
    """Least-recently-used cache of ScheduleResults keyed by (date, fingerprint)."""

    def __init__(self, max_entries: int = 32):
        self.max_entries = max_entries
        self._entries: OrderedDict[tuple[date, str], ScheduleResult] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def get_or_compute(
        self,
        day: date,
        definitions: Iterable[TaskDefinition],
        sleep_window: SleepWindow,
        *,
        overrides: Iterable[OccurrenceOverride] = (),
        config: SchedulingConfig | None = None,
    ) -> ScheduleResult:
        """Return the cached result for these inputs, scheduling on a miss."""
        definitions = list(definitions)
        overrides = list(overrides)
        key = (day, fingerprint_inputs(day, definitions, sleep_window, overrides, config))

        if key in self._entries:
            self._entries.move_to_end(key)
            logger.debug(f"Schedule cache hit for {day}")
            return self._entries[key]

        result = SchedulingService(config).schedule_for_date(
            day, definitions, sleep_window, overrides
        )
        self._entries[key] = result
        if len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)
        return result

    def invalidate(self, day: date | None = None) -> None:
        """Drop cached results for ``day``, or everything when day is None."""
        if day is None:
            self._entries.clear()
            return
        for key in [key for key in self._entries if key[0] == day]:
            del self._entries[key]
