"""dayplan - conflict-aware daily timetable generation for recurring tasks."""

__version__ = "0.1.0"
