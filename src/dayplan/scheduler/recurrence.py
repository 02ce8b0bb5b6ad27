"""Recurrence expansion: which task definitions occur on a given date."""

import calendar
import math
from collections.abc import Callable, Iterable
from datetime import date, timedelta

from dayplan.logger import get_logger
from dayplan.models import (
    LAST_DAY,
    CustomPattern,
    Frequency,
    OccurrenceOverride,
    RecurrenceRule,
    TaskDefinition,
    weekday_index,
)

from .core import Occurrence

logger = get_logger()


def _last_day_of_month(day: date) -> int:
    return calendar.monthrange(day.year, day.month)[1]


def _months_between(start: date, day: date) -> int:
    return (day.year - start.year) * 12 + (day.month - start.month)


class RecurrenceExpander:
    """Decides whether a definition produces an occurrence on a date.

    Interval stepping and occurrence limits are anchored on the rule's
    start_date; rules without one match every date their pattern allows.
    """

    def __init__(self) -> None:
        self._matchers: dict[Frequency, Callable[[RecurrenceRule, date], bool]] = {
            Frequency.DAILY: self._matches_daily,
            Frequency.WEEKLY: self._matches_weekly,
            Frequency.MONTHLY: self._matches_monthly,
            Frequency.YEARLY: self._matches_yearly,
            Frequency.CUSTOM: self._matches_custom,
        }

    def applies_on(self, definition: TaskDefinition, day: date) -> bool:
        """Return True if the definition has an occurrence on ``day``."""
        rule = definition.recurrence

        if rule.frequency == Frequency.NONE:
            # One-time task: only on the date it was created for
            return rule.start_date is None or rule.start_date == day

        if rule.start_date is not None and day < rule.start_date:
            return False
        if rule.end_date is not None and day > rule.end_date:
            return False

        if not self._matchers[rule.frequency](rule, day):
            return False

        if rule.end_after_occurrences is not None and rule.start_date is not None:
            ordinal = self.occurrence_ordinal(rule, day)
            if ordinal > rule.end_after_occurrences:
                logger.debug(
                    f"    {definition.id}: occurrence #{ordinal} on {day} exceeds "
                    f"limit of {rule.end_after_occurrences}"
                )
                return False

        return True

    def occurrence_ordinal(self, rule: RecurrenceRule, day: date) -> int:
        """1-based position of ``day`` among the rule's occurrences since start_date.

        Assumes ``day`` itself matches the rule.
        """
        assert rule.start_date is not None
        if rule.frequency == Frequency.DAILY:
            return (day - rule.start_date).days // rule.interval + 1

        matcher = self._matchers[rule.frequency]
        count = 0
        current = rule.start_date
        while current <= day:
            if matcher(rule, current):
                count += 1
            current += timedelta(days=1)
        return count

    def expand(
        self,
        definitions: Iterable[TaskDefinition],
        day: date,
        overrides: Iterable[OccurrenceOverride] = (),
    ) -> list[Occurrence]:
        """Materialize the occurrences for ``day``.

        Inactive definitions are dropped, as are occurrences whose override
        marks them completed or skipped. Remaining overrides adjust duration
        or pin the occurrence to a time.
        """
        todays_overrides = {o.task_id: o for o in overrides if o.date == day}
        occurrences: list[Occurrence] = []

        for definition in definitions:
            if not definition.is_active:
                logger.checks(f"  {definition.id}: inactive, skipped")
                continue
            if not self.applies_on(definition, day):
                continue

            override = todays_overrides.get(definition.id)
            if override is None:
                occurrences.append(Occurrence(definition=definition, date=day))
                continue
            if override.removes_occurrence:
                logger.checks(f"  {definition.id}: {override.status.value} on {day}, skipped")
                continue
            occurrences.append(
                Occurrence(
                    definition=definition,
                    date=day,
                    duration_override=override.duration_minutes,
                    pinned_time=override.scheduled_time,
                )
            )

        logger.checks(f"Expanded {len(occurrences)} occurrence(s) for {day}")
        return occurrences

    def _matches_daily(self, rule: RecurrenceRule, day: date) -> bool:
        if rule.start_date is None:
            return True
        return (day - rule.start_date).days % rule.interval == 0

    def _matches_weekly(self, rule: RecurrenceRule, day: date) -> bool:
        days_of_week = rule.days_of_week
        if not days_of_week:
            if rule.start_date is None:
                return False
            days_of_week = frozenset({weekday_index(rule.start_date)})
        if weekday_index(day) not in days_of_week:
            return False
        if rule.start_date is None:
            return True
        return ((day - rule.start_date).days // 7) % rule.interval == 0

    def _matches_day_of_month(self, rule: RecurrenceRule, day: date) -> bool:
        target = rule.day_of_month
        if target is None:
            if rule.start_date is None:
                return False
            target = rule.start_date.day
        if target == LAST_DAY:
            return day.day == _last_day_of_month(day)
        # Months too short for the target day never match
        return day.day == target

    def _matches_monthly(self, rule: RecurrenceRule, day: date) -> bool:
        if not self._matches_day_of_month(rule, day):
            return False
        if rule.start_date is None:
            return True
        return _months_between(rule.start_date, day) % rule.interval == 0

    def _matches_yearly(self, rule: RecurrenceRule, day: date) -> bool:
        month = rule.month
        if month is None:
            if rule.start_date is None:
                return False
            month = rule.start_date.month
        if day.month != month or not self._matches_day_of_month(rule, day):
            return False
        if rule.start_date is None:
            return True
        return (day.year - rule.start_date.year) % rule.interval == 0

    def _matches_custom(self, rule: RecurrenceRule, day: date) -> bool:
        index = weekday_index(day)
        if rule.custom_pattern == CustomPattern.WEEKDAYS:
            return 1 <= index <= 5
        if rule.custom_pattern == CustomPattern.WEEKENDS:
            return index in (0, 6)
        if rule.custom_pattern == CustomPattern.NTH_WEEKDAY:
            return index == rule.weekday and math.ceil(day.day / 7) == rule.nth_week
        return False
