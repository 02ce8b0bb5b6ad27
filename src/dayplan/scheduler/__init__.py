"""Scheduler package - conflict-aware daily timetable generation.

Pipeline for one date:
- RecurrenceExpander: which task definitions occur today
- DependencyResolver: topological order, cycle detection, earliest starts
- AnchorPlacer: fixed-time occurrences at their declared times
- WindowSlotter: flexible occurrences into the earliest free slot of their window
- CrunchAdjuster: retry at minimum durations before declaring infeasibility
- ConflictDetector: overlap annotation with a pluggable severity policy

Main entry points:
- schedule_for_date(): one-shot scheduling with a fresh service
- SchedulingService: the same, with reusable configuration
- ScheduleCache: caller-side memoization keyed by input fingerprint
"""

from .anchors import AnchorPlacer
from .cache import ScheduleCache, fingerprint_inputs
from .config import (
    MissingDependencyPolicy,
    SchedulingConfig,
    SeverityPolicyType,
    TimeWindowRange,
)
from .conflicts import (
    ConflictDetector,
    MandatorySeverityPolicy,
    PrioritySeverityPolicy,
    create_severity_policy,
)
from .core import (
    Conflict,
    DeferralReason,
    DependencyResolution,
    FailureReason,
    Occurrence,
    ScheduledTask,
    ScheduleFailure,
    ScheduleResult,
    ScheduleSuccess,
    Severity,
)
from .crunch import CrunchAdjuster, PlacementContext
from .dependencies import DependencyResolver
from .protocols import SeverityPolicy
from .recurrence import RecurrenceExpander
from .service import SchedulingService, schedule_for_date
from .slotter import SlotterOutcome, WindowSlotter

__all__ = [
    # Core dataclasses
    "Occurrence",
    "ScheduledTask",
    "Conflict",
    "Severity",
    "DependencyResolution",
    "ScheduleSuccess",
    "ScheduleFailure",
    "ScheduleResult",
    "FailureReason",
    "DeferralReason",
    # Configuration
    "SchedulingConfig",
    "TimeWindowRange",
    "MissingDependencyPolicy",
    "SeverityPolicyType",
    # Protocols
    "SeverityPolicy",
    # Pipeline components
    "RecurrenceExpander",
    "DependencyResolver",
    "AnchorPlacer",
    "WindowSlotter",
    "SlotterOutcome",
    "CrunchAdjuster",
    "PlacementContext",
    "ConflictDetector",
    "MandatorySeverityPolicy",
    "PrioritySeverityPolicy",
    "create_severity_policy",
    # High-level service
    "SchedulingService",
    "schedule_for_date",
    "ScheduleCache",
    "fingerprint_inputs",
]
