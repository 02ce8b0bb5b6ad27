"""Greedy placement of flexible occurrences into their time windows."""

from dataclasses import dataclass, field

from dayplan.logger import debug_enabled, get_logger
from dayplan.models import SleepWindow, format_time

from .config import MissingDependencyPolicy, SchedulingConfig
from .core import DeferralReason, DependencyResolution, Occurrence, ScheduledTask

logger = get_logger()


@dataclass
class SlotterOutcome:
    """Result of one flexible placement pass."""

    placed: list[ScheduledTask]
    unplaced: list[Occurrence] = field(default_factory=list)  # Attempted, no room
    blocked: dict[str, DeferralReason] = field(default_factory=dict)  # Never attempted

    def unplaced_mandatory(self) -> list[Occurrence]:
        return [occ for occ in self.unplaced if occ.is_mandatory]


class WindowSlotter:
    """Places flexible occurrences at the earliest free slot in their window.

    Occurrences are taken in dependency order (priority within ties) and each
    placement is visible to the ones after it, so the result is greedy and
    deterministic rather than globally optimal.
    """

    def __init__(self, config: SchedulingConfig | None = None):
        self.config = config or SchedulingConfig()

    def candidate_window(
        self,
        occ: Occurrence,
        sleep_window: SleepWindow,
        earliest_start: int | None = None,
        latest_end: int | None = None,
    ) -> tuple[int, int]:
        """Time window clipped to waking hours and dependency bounds.

        The returned range may be empty (start >= end).
        """
        window_start, window_end = self.config.window_range(occ.time_window)
        wake_start, wake_end = sleep_window.waking_range()
        start = max(window_start, wake_start)
        end = min(window_end, wake_end)
        if earliest_start is not None:
            start = max(start, earliest_start)
        if latest_end is not None:
            end = min(end, latest_end)
        return (start, end)

    def find_slot(
        self,
        duration: int,
        window: tuple[int, int],
        occupied: list[ScheduledTask],
    ) -> int | None:
        """First start t, stepping from the window start, with [t, t+duration) free."""
        start, end = window
        step = self.config.slot_granularity_minutes
        candidate = start
        while candidate + duration <= end:
            blocker = next(
                (task for task in occupied if task.overlaps(candidate, candidate + duration)),
                None,
            )
            if blocker is None:
                return candidate
            if debug_enabled():
                logger.debug(f"      {format_time(candidate)} blocked by {blocker.id}")
            candidate += step
        return None

    def place_flexible(
        self,
        flexible: list[Occurrence],
        already_placed: list[ScheduledTask],
        resolution: DependencyResolution,
        sleep_window: SleepWindow,
        durations: dict[str, int] | None = None,
        mandatory_first: bool = False,
    ) -> SlotterOutcome:
        """Place flexible occurrences around ``already_placed``.

        Args:
            flexible: Occurrences to place
            already_placed: Anchors (and anything else) already on the timeline
            resolution: Dependency order and earliest-start bookkeeping
            sleep_window: Waking hours for the date
            durations: Per-occurrence duration overrides (crunch pass)
            mandatory_first: Place mandatory occurrences and their prerequisites
                before any optional occurrence (crunch pass)

        Returns:
            SlotterOutcome with placed, unplaced and blocked occurrences
        """
        durations = durations or {}
        flexible_ids = {occ.id for occ in flexible}
        ordered = [occ for occ in resolution.order if occ.id in flexible_ids]
        ordered_ids = {occ.id for occ in ordered}
        ordered.extend(occ for occ in flexible if occ.id not in ordered_ids)
        if mandatory_first:
            ordered = self._mandatory_first(ordered, resolution)

        placed_by_id = {task.id: task for task in already_placed}
        occupied = list(already_placed)
        outcome = SlotterOutcome(placed=[])

        for occ in ordered:
            reason = self._blocked_reason(occ, resolution, placed_by_id)
            if reason is not None:
                logger.changes(f"Cannot place {occ.id}: {reason.value}")
                outcome.blocked[occ.id] = reason
                continue

            duration = durations.get(occ.id, occ.duration_minutes)
            earliest = resolution.earliest_start_for(occ.id, placed_by_id)
            latest_end = resolution.latest_end_for(occ.id, placed_by_id)
            window = self.candidate_window(occ, sleep_window, earliest, latest_end)
            logger.checks(
                f"  {occ.id} ({duration}m, priority {occ.priority}): window "
                f"{format_time(window[0])}-{format_time(window[1])}"
            )

            slot = self.find_slot(duration, window, occupied)
            if slot is None:
                logger.changes(f"No slot for {occ.id} ({duration}m) in its window")
                outcome.unplaced.append(occ)
                continue

            task = ScheduledTask(
                occurrence=occ,
                scheduled_time=slot,
                effective_duration_minutes=duration,
            )
            occupied.append(task)
            placed_by_id[occ.id] = task
            outcome.placed.append(task)
            logger.changes(f"Placed {task}")

        return outcome

    def _mandatory_first(
        self, ordered: list[Occurrence], resolution: DependencyResolution
    ) -> list[Occurrence]:
        """Stable reorder: mandatory occurrences and everything they depend on go first.

        Prerequisites of a mandatory occurrence come along with it, so the
        dependency order within each group still holds.
        """
        required: set[str] = set()
        stack = [occ.id for occ in ordered if occ.is_mandatory]
        while stack:
            task_id = stack.pop()
            if task_id in required:
                continue
            required.add(task_id)
            stack.extend(resolution.prerequisites.get(task_id, []))
        first = [occ for occ in ordered if occ.id in required]
        rest = [occ for occ in ordered if occ.id not in required]
        return first + rest

    def _blocked_reason(
        self,
        occ: Occurrence,
        resolution: DependencyResolution,
        placed_by_id: dict[str, ScheduledTask],
    ) -> DeferralReason | None:
        if (
            self.config.missing_dependency_policy == MissingDependencyPolicy.BLOCKING
            and resolution.missing.get(occ.id)
        ):
            return DeferralReason.MISSING_DEPENDENCY
        if any(dep_id not in placed_by_id for dep_id in resolution.prerequisites.get(occ.id, [])):
            return DeferralReason.PREREQUISITE_DEFERRED
        return None
