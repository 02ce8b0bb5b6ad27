"""High-level scheduling service."""

from collections.abc import Iterable
from datetime import date

from dayplan.exceptions import SchedulingInvariantError
from dayplan.logger import get_logger
from dayplan.models import (
    MINUTES_PER_DAY,
    OccurrenceOverride,
    SleepWindow,
    TaskDefinition,
    format_time,
)

from .anchors import AnchorPlacer
from .config import MissingDependencyPolicy, SchedulingConfig
from .conflicts import ConflictDetector, create_severity_policy
from .core import (
    DeferralReason,
    DependencyResolution,
    FailureReason,
    Occurrence,
    ScheduledTask,
    ScheduleFailure,
    ScheduleResult,
    ScheduleSuccess,
)
from .crunch import (
    CrunchAdjuster,
    PlacementContext,
    capacity_failure,
    free_capacity_minutes,
    mandatory_failures,
    mandatory_minutes,
)
from .dependencies import DependencyResolver
from .protocols import SeverityPolicy
from .recurrence import RecurrenceExpander
from .slotter import WindowSlotter

logger = get_logger()


class SchedulingService:
    """Produces the timetable for one date.

    The service holds configuration only, so a fresh instance can be made
    per call and runs never share state. It coordinates:
    - RecurrenceExpander (which tasks occur today)
    - DependencyResolver (evaluation order, cycle detection)
    - AnchorPlacer, WindowSlotter and CrunchAdjuster (placement)
    - ConflictDetector (overlap annotation)
    """

    def __init__(
        self,
        config: SchedulingConfig | None = None,
        severity_policy: SeverityPolicy | None = None,
    ):
        """Initialize the service.

        Args:
            config: Engine tuning; defaults to SchedulingConfig()
            severity_policy: Overrides the policy named in ``config``
        """
        self.config = config or SchedulingConfig()
        self.severity_policy = severity_policy or create_severity_policy(
            self.config.severity_policy
        )

    def schedule_for_date(
        self,
        day: date,
        definitions: Iterable[TaskDefinition],
        sleep_window: SleepWindow,
        overrides: Iterable[OccurrenceOverride] = (),
    ) -> ScheduleResult:
        """Schedule the occurrences of ``definitions`` on ``day``.

        Domain-level infeasibility is returned as a ScheduleFailure, never
        raised. Input the engine cannot interpret also comes back as a
        ScheduleFailure (malformed_input); SchedulingInvariantError marks an
        engine defect and propagates.
        """
        try:
            return self._schedule(day, list(definitions), sleep_window, list(overrides))
        except (TypeError, ValueError, AttributeError, KeyError) as e:
            logger.error(f"Scheduling {day} failed on malformed input: {e!r}")
            return ScheduleFailure(
                reason=FailureReason.MALFORMED_INPUT,
                message=f"Could not schedule {day}: malformed task input ({e})",
                suggestions=["Re-validate the task definitions for this date"],
            )

    def _schedule(
        self,
        day: date,
        definitions: list[TaskDefinition],
        sleep_window: SleepWindow,
        overrides: list[OccurrenceOverride],
    ) -> ScheduleResult:
        logger.changes(f"Scheduling {day} (waking {sleep_window})")
        warnings: list[str] = []

        occurrences = RecurrenceExpander().expand(definitions, day, overrides)

        resolution = DependencyResolver(self.config.dependency_buffer_minutes).resolve(
            occurrences
        )
        if resolution.cycle_detected:
            return self._cycle_failure(resolution)
        warnings.extend(self._missing_dependency_warnings(resolution))

        fixed: list[Occurrence] = []
        flexible: list[Occurrence] = []
        for occ in occurrences:
            if occ.anchor_time is not None:
                fixed.append(occ)
                continue
            if occ.definition.is_fixed:
                warnings.append(f"'{occ.id}' is fixed but has no time; scheduled as flexible")
            flexible.append(occ)

        anchors = AnchorPlacer().place_anchors(fixed, sleep_window)
        warnings.extend(self._anchor_warnings(anchors, sleep_window))

        # Fast capacity check before any slot scanning
        free = free_capacity_minutes(anchors, sleep_window)
        at_minimum = self.config.crunch_enabled
        if mandatory_minutes(flexible, at_minimum=at_minimum) > free:
            logger.changes(f"Mandatory workload exceeds {free} free waking minutes")
            return capacity_failure(
                [occ for occ in flexible if occ.is_mandatory],
                flexible,
                anchors,
                sleep_window,
                at_minimum=at_minimum,
            )

        slotter = WindowSlotter(self.config)
        context = PlacementContext(flexible, anchors, resolution, sleep_window)
        outcome = slotter.place_flexible(flexible, anchors, resolution, sleep_window)

        crunched = False
        failed = mandatory_failures(outcome, context)
        if failed:
            # Optional tasks give way before anything is shortened
            logger.changes(
                f"{', '.join(occ.id for occ in failed)} did not fit; "
                "retrying with mandatory tasks first"
            )
            outcome = slotter.place_flexible(
                flexible, anchors, resolution, sleep_window, mandatory_first=True
            )
            failed = mandatory_failures(outcome, context)
        if failed:
            if not self.config.crunch_enabled:
                return capacity_failure(failed, flexible, anchors, sleep_window, at_minimum=False)
            retried = CrunchAdjuster(slotter).retry_with_minimums(failed, context)
            if isinstance(retried, ScheduleFailure):
                return retried
            outcome = retried
            crunched = True

        schedule = sorted(anchors + outcome.placed, key=lambda t: (t.scheduled_time, t.id))
        self._check_anchors(schedule)

        detector = ConflictDetector(self.severity_policy)
        detector.annotate(schedule)
        warnings.extend(detector.dependency_violations(schedule, resolution))

        deferral_reasons: dict[str, DeferralReason] = {}
        for occ in outcome.unplaced:
            deferral_reasons[occ.id] = DeferralReason.NO_ROOM
        deferral_reasons.update(outcome.blocked)
        deferred = [occ for occ in resolution.order if occ.id in deferral_reasons]
        for occ in deferred:
            logger.changes(f"Deferred {occ.id}: {deferral_reasons[occ.id].value}")

        return ScheduleSuccess(
            schedule=schedule,
            deferred=deferred,
            deferral_reasons=deferral_reasons,
            warnings=warnings,
            crunched=crunched,
        )

    def _cycle_failure(self, resolution: DependencyResolution) -> ScheduleFailure:
        members = resolution.cycle_members
        message = f"Dependency cycle among today's tasks: {', '.join(members)}"
        if resolution.cycle_blocked:
            message += f"; blocked behind it: {', '.join(resolution.cycle_blocked)}"
        return ScheduleFailure(
            reason=FailureReason.CYCLE_DETECTED,
            message=message,
            suggestions=[
                f"Remove one of the dependencies between: {', '.join(members)}",
            ],
            offending_ids=list(members),
        )

    def _missing_dependency_warnings(self, resolution: DependencyResolution) -> list[str]:
        if self.config.missing_dependency_policy == MissingDependencyPolicy.BLOCKING:
            treatment = "deferred"
        else:
            treatment = "treated as satisfied"
        return [
            f"'{task_id}' depends on '{dep_id}', which has no occurrence today; {treatment}"
            for task_id, dep_ids in resolution.missing.items()
            for dep_id in dep_ids
        ]

    def _anchor_warnings(
        self, anchors: list[ScheduledTask], sleep_window: SleepWindow
    ) -> list[str]:
        wake_start, wake_end = sleep_window.waking_range()
        warnings: list[str] = []
        for anchor in anchors:
            if anchor.scheduled_time < wake_start or anchor.end_time > wake_end:
                warnings.append(
                    f"'{anchor.id}' at {format_time(anchor.scheduled_time)} falls outside "
                    f"waking hours {sleep_window}"
                )
        return warnings

    def _check_anchors(self, schedule: list[ScheduledTask]) -> None:
        for task in schedule:
            if not task.is_anchor:
                continue
            anchor_time = task.occurrence.anchor_time
            if anchor_time is None or (task.scheduled_time - anchor_time) % MINUTES_PER_DAY:
                raise SchedulingInvariantError(f"Anchor '{task.id}' was moved")


def schedule_for_date(
    day: date,
    definitions: Iterable[TaskDefinition],
    sleep_window: SleepWindow,
    *,
    overrides: Iterable[OccurrenceOverride] = (),
    config: SchedulingConfig | None = None,
    severity_policy: SeverityPolicy | None = None,
) -> ScheduleResult:
    """Schedule one date with a fresh SchedulingService."""
    service = SchedulingService(config, severity_policy)
    return service.schedule_for_date(day, definitions, sleep_window, overrides)
