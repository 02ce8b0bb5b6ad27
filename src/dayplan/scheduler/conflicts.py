"""Post-placement overlap detection and severity classification."""

from dayplan.logger import get_logger
from dayplan.models import format_time

from .config import SeverityPolicyType
from .core import Conflict, DependencyResolution, ScheduledTask, Severity
from .protocols import SeverityPolicy

logger = get_logger()


class MandatorySeverityPolicy:
    """High if both tasks are mandatory, medium if one is, low if neither."""

    def classify(self, first: ScheduledTask, second: ScheduledTask) -> Severity:
        mandatory_count = int(first.occurrence.is_mandatory) + int(second.occurrence.is_mandatory)
        if mandatory_count == 2:
            return Severity.HIGH
        if mandatory_count == 1:
            return Severity.MEDIUM
        return Severity.LOW


class PrioritySeverityPolicy:
    """Mandatory status first, then the pair's average priority.

    Critical if both are mandatory, high if one is; otherwise high for an
    average priority of 4 or more, medium for 3 or more, low below that.
    """

    def classify(self, first: ScheduledTask, second: ScheduledTask) -> Severity:
        if first.occurrence.is_mandatory and second.occurrence.is_mandatory:
            return Severity.CRITICAL
        if first.occurrence.is_mandatory or second.occurrence.is_mandatory:
            return Severity.HIGH
        average = (first.occurrence.priority + second.occurrence.priority) / 2
        if average >= 4:
            return Severity.HIGH
        if average >= 3:
            return Severity.MEDIUM
        return Severity.LOW


def create_severity_policy(policy_type: SeverityPolicyType) -> SeverityPolicy:
    """Instantiate a built-in severity policy."""
    if policy_type == SeverityPolicyType.MANDATORY:
        return MandatorySeverityPolicy()
    if policy_type == SeverityPolicyType.PRIORITY:
        return PrioritySeverityPolicy()
    msg = f"Unknown severity policy: {policy_type}"
    raise ValueError(msg)


class ConflictDetector:
    """Finds overlapping tasks in a placed schedule.

    All pairs are compared; a day holds few enough tasks for that.
    """

    def __init__(self, policy: SeverityPolicy | None = None):
        self.policy = policy or MandatorySeverityPolicy()

    def annotate(self, schedule: list[ScheduledTask]) -> list[ScheduledTask]:
        """Populate ``conflicts`` on every overlapping pair; returns the same list."""
        for task in schedule:
            task.conflicts.clear()

        for i, first in enumerate(schedule):
            for second in schedule[i + 1 :]:
                overlap = min(first.end_time, second.end_time) - max(
                    first.scheduled_time, second.scheduled_time
                )
                if overlap <= 0:
                    continue
                severity = self.policy.classify(first, second)
                first.conflicts.append(Conflict(second.id, severity, overlap))
                second.conflicts.append(Conflict(first.id, severity, overlap))
                start = max(first.scheduled_time, second.scheduled_time)
                logger.changes(
                    f"Conflict ({severity.value}): {first.id} and {second.id} overlap "
                    f"{overlap}m from {format_time(start)}"
                )

        return schedule

    def dependency_violations(
        self, schedule: list[ScheduledTask], resolution: DependencyResolution
    ) -> list[str]:
        """Describe dependents that start before a prerequisite's end plus buffer.

        Only anchors can end up like this, since they are never moved.
        """
        by_id = {task.id: task for task in schedule}
        warnings: list[str] = []
        for task in schedule:
            for dep_id in resolution.prerequisites.get(task.id, []):
                prerequisite = by_id.get(dep_id)
                if prerequisite is None:
                    continue
                required = prerequisite.end_time + resolution.buffer_minutes
                if task.scheduled_time < required:
                    warnings.append(
                        f"'{task.id}' is fixed at {format_time(task.scheduled_time)} but its "
                        f"prerequisite '{dep_id}' ends at {format_time(prerequisite.end_time)}"
                    )
        return warnings
