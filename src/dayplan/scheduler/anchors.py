"""Placement of fixed-time occurrences."""

from dayplan.exceptions import SchedulingInvariantError
from dayplan.logger import get_logger
from dayplan.models import SleepWindow, format_time

from .core import Occurrence, ScheduledTask

logger = get_logger()


class AnchorPlacer:
    """Places fixed occurrences at their declared times.

    No conflict avoidance happens here: overlapping anchors are legitimate
    and left for the ConflictDetector to flag.
    """

    def place_anchors(
        self,
        fixed_occurrences: list[Occurrence],
        sleep_window: SleepWindow | None = None,
    ) -> list[ScheduledTask]:
        """Place each anchor verbatim, returned in time order.

        With a ``sleep_window`` that crosses midnight, anchors after midnight
        are placed on the next-day side of the timeline (00:30 -> 1470) so
        they sort, overlap and constrain dependents like any other task.
        """
        anchors: list[ScheduledTask] = []
        for occ in fixed_occurrences:
            anchor_time = occ.anchor_time
            if anchor_time is None:
                raise SchedulingInvariantError(f"Occurrence '{occ.id}' has no anchor time")
            if sleep_window is not None:
                anchor_time = sleep_window.on_waking_timeline(anchor_time)
            anchors.append(
                ScheduledTask(
                    occurrence=occ,
                    scheduled_time=anchor_time,
                    effective_duration_minutes=occ.duration_minutes,
                    is_anchor=True,
                )
            )
            logger.changes(
                f"Anchored {occ.id} at {format_time(anchor_time)} ({occ.duration_minutes}m)"
            )

        anchors.sort(key=lambda task: (task.scheduled_time, task.id))
        return anchors
