"""Custom exceptions for dayplan."""


class DayplanError(Exception):
    """Base exception for all dayplan errors."""

    pass


class ValidationError(DayplanError):
    """Raised when task definitions fail validation."""

    pass


class CircularDependencyError(ValidationError):
    """Raised when a circular dependency is detected."""

    pass


class MissingReferenceError(ValidationError):
    """Raised when a referenced task ID does not exist."""

    pass


class ParseError(DayplanError):
    """Raised when YAML parsing fails."""

    pass


class SchedulingInvariantError(DayplanError):
    """Raised when the engine breaks one of its own invariants.

    This indicates a defect, not a user-facing state.
    """

    pass
