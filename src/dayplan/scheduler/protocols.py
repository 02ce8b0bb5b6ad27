"""Protocol definitions for the scheduling engine."""

from typing import Protocol

from .core import ScheduledTask, Severity


class SeverityPolicy(Protocol):
    """Classifies how serious an overlap between two tasks is."""

    def classify(self, first: ScheduledTask, second: ScheduledTask) -> Severity:
        """Return the severity of ``first`` overlapping ``second``.

        Implementations must be symmetric in their arguments.
        """
        ...
