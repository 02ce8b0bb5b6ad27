"""Tests for scheduler debug output at different verbosity levels."""

from datetime import date
from io import StringIO

from dayplan.logger import reset_logger, setup_logger
from dayplan.models import SchedulingType, SleepWindow, TaskDefinition, parse_time
from dayplan.scheduler import SchedulingService

DAY = date(2025, 1, 6)
SLEEP = SleepWindow.parse("06:30", "23:00")


def _tasks() -> list[TaskDefinition]:
    return [
        TaskDefinition(
            id="coffee",
            name="Coffee",
            duration_minutes=30,
            min_duration_minutes=30,
            scheduling_type=SchedulingType.FIXED,
            default_time=parse_time("06:30"),
        ),
        TaskDefinition(id="email", name="Email", duration_minutes=20, min_duration_minutes=15),
    ]


def _run(verbosity: int) -> str:
    output_stream = StringIO()
    setup_logger(verbosity, stream=output_stream)
    try:
        SchedulingService().schedule_for_date(DAY, _tasks(), SLEEP)
        return output_stream.getvalue()
    finally:
        reset_logger()


def test_verbosity_0_silent():
    """Test that verbosity 0 produces no output."""
    assert _run(0) == ""


def test_verbosity_1_shows_placements():
    """Test that verbosity 1 shows the date and each placement."""
    output = _run(1)

    assert "Scheduling 2025-01-06" in output
    assert "Placed" in output
    assert "email" in output
    # Window checks are level 2
    assert "priority 3): window" not in output


def test_verbosity_2_shows_windows():
    """Test that verbosity 2 adds the candidate window for each task."""
    output = _run(2)

    assert "email (20m, priority 3): window 06:30-23:00" in output
    assert "blocked by" not in output


def test_verbosity_3_shows_slot_scanning():
    """Test that verbosity 3 shows each rejected slot."""
    output = _run(3)

    assert "06:30 blocked by coffee" in output
