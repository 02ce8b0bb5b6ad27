"""Crunch-time fallback: retry placement at minimum durations."""

from dataclasses import dataclass

from dayplan.logger import get_logger
from dayplan.models import SleepWindow

from .core import (
    DeferralReason,
    DependencyResolution,
    FailureReason,
    Occurrence,
    ScheduledTask,
    ScheduleFailure,
)
from .slotter import SlotterOutcome, WindowSlotter

logger = get_logger()

CAPACITY_SUGGESTIONS = [
    "Adjust wake time or sleep time to widen the waking window",
    "Make some tasks skippable instead of mandatory",
    "Reduce the minimum duration of mandatory tasks",
    "Reschedule some tasks to another day",
]


@dataclass
class PlacementContext:
    """Everything a flexible placement pass needs besides durations."""

    flexible: list[Occurrence]
    anchors: list[ScheduledTask]
    resolution: DependencyResolution
    sleep_window: SleepWindow


def free_capacity_minutes(anchors: list[ScheduledTask], sleep_window: SleepWindow) -> int:
    """Waking minutes not covered by any anchor (overlapping anchors count once)."""
    wake_start, wake_end = sleep_window.waking_range()
    intervals = sorted(
        (max(task.scheduled_time, wake_start), min(task.end_time, wake_end))
        for task in anchors
    )
    covered = 0
    current_start: int | None = None
    current_end = 0
    for start, end in intervals:
        if start >= end:
            continue
        if current_start is None or start > current_end:
            if current_start is not None:
                covered += current_end - current_start
            current_start, current_end = start, end
        else:
            current_end = max(current_end, end)
    if current_start is not None:
        covered += current_end - current_start
    return sleep_window.length_minutes - covered


def mandatory_minutes(flexible: list[Occurrence], *, at_minimum: bool = True) -> int:
    """Total duration of the mandatory flexible occurrences."""
    return sum(
        occ.min_duration_minutes if at_minimum else occ.duration_minutes
        for occ in flexible
        if occ.is_mandatory
    )


def capacity_failure(
    failed: list[Occurrence],
    flexible: list[Occurrence],
    anchors: list[ScheduledTask],
    sleep_window: SleepWindow,
    *,
    at_minimum: bool = True,
) -> ScheduleFailure:
    """Build the capacity_exceeded report for mandatory tasks that cannot fit."""
    needed = mandatory_minutes(flexible, at_minimum=at_minimum)
    qualifier = "even at minimum durations" if at_minimum else "at full duration"
    free = free_capacity_minutes(anchors, sleep_window)
    shortfall = needed - free
    failed_ids = [occ.id for occ in failed]

    if shortfall > 0:
        message = (
            f"Mandatory tasks need {needed} minutes {qualifier}, but only "
            f"{free} free minutes remain in the waking window {sleep_window}"
        )
    else:
        # Enough total time, but windows, anchors or dependencies leave no slot
        shortfall = sum(
            occ.min_duration_minutes if at_minimum else occ.duration_minutes for occ in failed
        )
        message = (
            f"Could not fit mandatory task(s) {', '.join(failed_ids)} into their time windows "
            f"{qualifier}"
        )

    suggestions = list(CAPACITY_SUGGESTIONS)
    if failed_ids:
        suggestions.append(f"Widen the time window of: {', '.join(failed_ids)}")

    return ScheduleFailure(
        reason=FailureReason.CAPACITY_EXCEEDED,
        message=message,
        suggestions=suggestions,
        shortfall_minutes=shortfall,
        offending_ids=failed_ids,
    )


def mandatory_failures(outcome: SlotterOutcome, context: PlacementContext) -> list[Occurrence]:
    """Mandatory occurrences left out because something did not fit.

    Mandatory tasks blocked only by a missing dependency (blocking policy)
    are deferred instead, since more room would not help them.
    """
    unplaced_ids = {occ.id for occ in outcome.unplaced}

    def blocked_by_capacity(task_id: str, seen: set[str]) -> bool:
        for dep_id in context.resolution.prerequisites.get(task_id, []):
            if dep_id in seen:
                continue
            seen.add(dep_id)
            if dep_id in unplaced_ids or blocked_by_capacity(dep_id, seen):
                return True
        return False

    failed: list[Occurrence] = []
    for occ in context.flexible:
        if not occ.is_mandatory:
            continue
        if occ.id in unplaced_ids:
            failed.append(occ)
        elif outcome.blocked.get(occ.id) == DeferralReason.PREREQUISITE_DEFERRED:
            if blocked_by_capacity(occ.id, set()):
                failed.append(occ)
    return failed


class CrunchAdjuster:
    """Retries flexible placement with mandatory tasks at minimum duration.

    Mandatory tasks (with their prerequisites) are placed before optional ones,
    so an optional task never takes the room a mandatory one needs. Optional
    tasks keep their nominal duration and are deferred if they no longer fit.
    Only mandatory tasks that cannot fit make the day infeasible.
    """

    def __init__(self, slotter: WindowSlotter):
        self.slotter = slotter

    def retry_with_minimums(
        self, unplaceable: list[Occurrence], context: PlacementContext
    ) -> SlotterOutcome | ScheduleFailure:
        """Re-run placement from the anchor skeleton, mandatory first, at minimum durations.

        Args:
            unplaceable: Mandatory occurrences that failed at nominal duration
            context: Occurrences, anchors and dependency state for the day

        Returns:
            The crunched SlotterOutcome, or a capacity_exceeded ScheduleFailure
        """
        durations = {
            occ.id: occ.min_duration_minutes for occ in context.flexible if occ.is_mandatory
        }
        logger.changes(
            f"Crunch time: {', '.join(occ.id for occ in unplaceable)} did not fit; "
            f"retrying {len(durations)} mandatory task(s) at minimum duration"
        )

        outcome = self.slotter.place_flexible(
            context.flexible,
            context.anchors,
            context.resolution,
            context.sleep_window,
            durations=durations,
            mandatory_first=True,
        )

        failed = mandatory_failures(outcome, context)
        if failed:
            logger.changes(
                f"Still infeasible at minimum durations: {', '.join(occ.id for occ in failed)}"
            )
            return capacity_failure(
                failed, context.flexible, context.anchors, context.sleep_window
            )
        return outcome
