"""Tests for CLI commands."""

import csv
from pathlib import Path
from textwrap import dedent

import pytest
from typer.testing import CliRunner

from dayplan.cli import app

runner = CliRunner()

TASKS_YAML = """
tasks:
  breakfast:
    name: Breakfast
    scheduling: fixed
    time: "07:00"
    mandatory: true
  standup:
    name: Standup
    scheduling: fixed
    time: "09:00"
    duration: 15
    recurrence:
      frequency: custom
      custom_pattern: weekdays
  focus:
    name: Focus block
    duration: 90
    priority: 5
    depends_on: [standup]
  jog:
    name: Jog
    window: morning
    recurrence:
      frequency: weekly
      days_of_week: [0, 6]
overrides:
  - task: breakfast
    date: 2025-01-07
    status: completed
"""


@pytest.fixture
def task_path(tmp_path: Path) -> Path:
    path = tmp_path / "tasks.yaml"
    path.write_text(dedent(TASKS_YAML), encoding="utf-8")
    return path


class TestScheduleCommand:
    """The schedule command."""

    def test_prints_timetable(self, task_path: Path) -> None:
        result = runner.invoke(app, ["schedule", str(task_path), "--date", "2025-01-06"])

        assert result.exit_code == 0, result.output
        assert "Schedule for 2025-01-06 (awake 06:30-23:00)" in result.output
        assert "07:00-07:30  Breakfast [fixed, mandatory]" in result.output
        assert "09:00-09:15  Standup [fixed]" in result.output
        # 09:15 end + 5 minute buffer
        assert "09:20-10:50  Focus block" in result.output
        assert "Jog" not in result.output

    def test_wake_and_sleep_options(self, task_path: Path) -> None:
        result = runner.invoke(
            app,
            [
                "schedule",
                str(task_path),
                "--date",
                "2025-01-06",
                "--wake",
                "08:00",
                "--sleep",
                "22:00",
            ],
        )

        assert result.exit_code == 0, result.output
        assert "(awake 08:00-22:00)" in result.output
        assert "outside waking hours" in result.output

    def test_config_sleep_window_is_used(self, task_path: Path) -> None:
        (task_path.parent / "dayplan_config.yaml").write_text(
            "sleep:\n  wake_time: '06:00'\n  sleep_time: '22:00'\n", encoding="utf-8"
        )

        result = runner.invoke(app, ["schedule", str(task_path), "--date", "2025-01-06"])

        assert result.exit_code == 0, result.output
        assert "(awake 06:00-22:00)" in result.output

    def test_explicit_config_option(self, task_path: Path, tmp_path: Path) -> None:
        config_path = tmp_path / "custom.yaml"
        config_path.write_text("sleep:\n  wake_time: '05:00'\n", encoding="utf-8")

        result = runner.invoke(
            app, ["--config", str(config_path), "schedule", str(task_path), "--date", "2025-01-06"]
        )

        assert result.exit_code == 0, result.output
        assert "(awake 05:00-23:00)" in result.output

    def test_completed_override_hides_task(self, task_path: Path) -> None:
        result = runner.invoke(app, ["schedule", str(task_path), "--date", "2025-01-07"])

        assert result.exit_code == 0, result.output
        assert "Breakfast" not in result.output

    def test_failure_prints_suggestions_and_exits_1(self, tmp_path: Path) -> None:
        path = tmp_path / "tasks.yaml"
        path.write_text(
            "tasks:\n  marathon: {name: Marathon, duration: 1200, min_duration: 1100, "
            "mandatory: true}\n",
            encoding="utf-8",
        )

        result = runner.invoke(app, ["schedule", str(path), "--date", "2025-01-06"])

        assert result.exit_code == 1
        assert "Short by 110 minutes" in result.output
        assert "Adjust wake time or sleep time" in result.output

    def test_csv_export(self, task_path: Path, tmp_path: Path) -> None:
        csv_path = tmp_path / "out.csv"

        result = runner.invoke(
            app,
            ["schedule", str(task_path), "--date", "2025-01-06", "--output-csv", str(csv_path)],
        )

        assert result.exit_code == 0, result.output
        with csv_path.open(newline="") as f:
            rows = list(csv.DictReader(f))
        assert [row["task_id"] for row in rows] == ["breakfast", "standup", "focus"]
        assert rows[2]["start"] == "09:20"
        assert rows[2]["duration"] == "90"

    def test_invalid_date(self, task_path: Path) -> None:
        result = runner.invoke(app, ["schedule", str(task_path), "--date", "06/01/2025"])

        assert result.exit_code == 1
        assert "Invalid date format" in result.output

    def test_invalid_task_file(self, tmp_path: Path) -> None:
        path = tmp_path / "tasks.yaml"
        path.write_text("tasks:\n  x: {name: X, depends_on: [ghost]}\n", encoding="utf-8")

        result = runner.invoke(app, ["schedule", str(path), "--date", "2025-01-06"])

        assert result.exit_code == 1
        assert "Error: Task x depends on unknown task: ghost" in result.output

    def test_invalid_config(self, task_path: Path) -> None:
        (task_path.parent / "dayplan_config.yaml").write_text(
            "scheduler:\n  slot_granularity_minutes: 0\n", encoding="utf-8"
        )

        result = runner.invoke(app, ["schedule", str(task_path), "--date", "2025-01-06"])

        assert result.exit_code == 1
        assert "Invalid config" in result.output


class TestOccurrencesCommand:
    """The occurrences command."""

    def test_weekday(self, task_path: Path) -> None:
        result = runner.invoke(app, ["occurrences", str(task_path), "--date", "2025-01-06"])

        assert result.exit_code == 0, result.output
        assert "breakfast: Breakfast (30m, 07:00)" in result.output
        assert "focus: Focus block (90m, anytime)" in result.output
        assert "jog" not in result.output

    def test_weekend(self, task_path: Path) -> None:
        result = runner.invoke(app, ["occurrences", str(task_path), "--date", "2025-01-11"])

        assert result.exit_code == 0, result.output
        assert "jog: Jog (30m, morning)" in result.output
        assert "standup" not in result.output


class TestValidateCommand:
    """The validate command."""

    def test_valid_file(self, task_path: Path) -> None:
        result = runner.invoke(app, ["validate", str(task_path)])

        assert result.exit_code == 0, result.output
        assert "is valid: 4 task(s), 1 override(s)" in result.output

    def test_cycle(self, tmp_path: Path) -> None:
        path = tmp_path / "tasks.yaml"
        path.write_text(
            "tasks:\n  a: {name: A, depends_on: [b]}\n  b: {name: B, depends_on: [a]}\n",
            encoding="utf-8",
        )

        result = runner.invoke(app, ["validate", str(path)])

        assert result.exit_code == 1
        assert "Circular dependency detected: a -> b -> a" in result.output

    def test_missing_file(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["validate", str(tmp_path / "nope.yaml")])

        assert result.exit_code == 1
        assert "File not found" in result.output
