"""Command-line interface for dayplan."""

from __future__ import annotations

import csv
from datetime import date
from pathlib import Path
from typing import Annotated

import typer

from . import context
from .exceptions import DayplanError
from .loader import discover_config, load_task_file
from .logger import setup_logger
from .models import SleepWindow, TaskFile, format_time, parse_time
from .scheduler import (
    RecurrenceExpander,
    ScheduledTask,
    ScheduleFailure,
    ScheduleSuccess,
    SchedulingService,
)
from .unified_config import UnifiedConfig

app = typer.Typer(
    name="dayplan",
    help="Daily planner - builds a conflict-aware timetable from recurring tasks",
    add_completion=False,
)


@app.callback()
def main_callback(
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            help="Verbosity level: 0=silent (default), 1=show changes, 2=show all checks, 3=debug",
            min=0,
            max=3,
        ),
    ] = 0,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to unified config file (default: dayplan_config.yaml)",
        ),
    ] = None,
) -> None:
    """Global options for dayplan commands."""
    setup_logger(verbose)
    context.set_config_path(config)


def _parse_date_option(value: str | None) -> date:
    if value is None:
        return context.get_today()
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        typer.echo(f"Error: Invalid date format '{value}'. Use YYYY-MM-DD", err=True)
        raise typer.Exit(1) from e


def _parse_time_option(value: str, option: str) -> int:
    try:
        return parse_time(value)
    except ValueError as e:
        typer.echo(f"Error: Invalid {option} '{value}'. Use HH:MM", err=True)
        raise typer.Exit(1) from e


def _load_inputs(file: Path) -> tuple[TaskFile, UnifiedConfig]:
    """Load the task file and its config, exiting with a message on error."""
    try:
        task_file = load_task_file(file)
    except DayplanError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e

    try:
        config = discover_config(file)
    except (FileNotFoundError, ValueError) as e:
        typer.echo(f"Error: Invalid config: {e}", err=True)
        raise typer.Exit(1) from e

    return task_file, config or UnifiedConfig()


@app.command()
def schedule(
    file: Annotated[Path, typer.Argument(help="Path to the task YAML file")] = Path("tasks.yaml"),
    *,
    day: Annotated[
        str | None,
        typer.Option("--date", "-d", help="Date to schedule (YYYY-MM-DD, default: today)"),
    ] = None,
    wake: Annotated[
        str | None, typer.Option("--wake", help="Wake time for this run (HH:MM)")
    ] = None,
    sleep: Annotated[
        str | None, typer.Option("--sleep", help="Sleep time for this run (HH:MM)")
    ] = None,
    output_csv: Annotated[
        Path | None,
        typer.Option("--output-csv", help="Also write the timetable to this CSV file"),
    ] = None,
) -> None:
    """Build the timetable for one date."""
    target = _parse_date_option(day)
    task_file, config = _load_inputs(file)

    sleep_window = config.sleep.window_for(target)
    if wake is not None or sleep is not None:
        sleep_window = SleepWindow(
            wake_time=(
                _parse_time_option(wake, "wake time") if wake else sleep_window.wake_time
            ),
            sleep_time=(
                _parse_time_option(sleep, "sleep time") if sleep else sleep_window.sleep_time
            ),
        )

    service = SchedulingService(config.scheduler)
    try:
        result = service.schedule_for_date(
            target, task_file.definitions, sleep_window, task_file.overrides_for(target)
        )
    except DayplanError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e

    if isinstance(result, ScheduleFailure):
        _print_failure(result)
        raise typer.Exit(1)

    _print_schedule(target, sleep_window, result)
    if output_csv:
        _export_schedule_csv(result, output_csv)
        typer.echo(f"\nSchedule written to {output_csv}")


def _format_task(task: ScheduledTask) -> str:
    span = f"{format_time(task.scheduled_time)}-{format_time(task.end_time)}"
    line = f"  {span}  {task.occurrence.name}"
    flags: list[str] = []
    if task.is_anchor:
        flags.append("fixed")
    if task.occurrence.is_mandatory:
        flags.append("mandatory")
    if task.was_crunched:
        flags.append(f"crunched from {task.occurrence.duration_minutes}m")
    if flags:
        line += f" [{', '.join(flags)}]"
    return line


def _print_schedule(target: date, sleep_window: SleepWindow, result: ScheduleSuccess) -> None:
    typer.echo(f"Schedule for {target.isoformat()} (awake {sleep_window})")
    if result.crunched:
        typer.echo("Crunch time: mandatory tasks shortened to fit")
    typer.echo("")

    if not result.schedule:
        typer.echo("  (nothing scheduled)")
    for task in result.schedule:
        typer.echo(_format_task(task))
        for conflict in task.conflicts:
            typer.echo(
                f"      ! overlaps {conflict.with_id} by {conflict.overlap_minutes}m "
                f"({conflict.severity.value})"
            )

    if result.deferred:
        typer.echo("\nDeferred:")
        for occ in result.deferred:
            reason = result.deferral_reasons[occ.id]
            typer.echo(f"  - {occ.id}: {reason.value}")

    if result.warnings:
        typer.echo("\nWarnings:")
        for warning in result.warnings:
            typer.echo(f"  - {warning}")


def _print_failure(result: ScheduleFailure) -> None:
    typer.echo(f"Error: {result.message}", err=True)
    if result.shortfall_minutes is not None:
        typer.echo(f"Short by {result.shortfall_minutes} minutes", err=True)
    if result.suggestions:
        typer.echo("Suggestions:", err=True)
        for suggestion in result.suggestions:
            typer.echo(f"  - {suggestion}", err=True)


def _export_schedule_csv(result: ScheduleSuccess, output_path: Path) -> None:
    """Export the timetable to CSV, one row per placed task."""
    with output_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(
            ["task_id", "task_name", "start", "end", "duration", "mandatory", "fixed", "conflicts"]
        )
        for task in result.schedule:
            writer.writerow(
                [
                    task.id,
                    task.occurrence.name,
                    format_time(task.scheduled_time),
                    format_time(task.end_time),
                    task.effective_duration_minutes,
                    task.occurrence.is_mandatory,
                    task.is_anchor,
                    ";".join(c.with_id for c in task.conflicts),
                ]
            )


@app.command()
def occurrences(
    file: Annotated[Path, typer.Argument(help="Path to the task YAML file")] = Path("tasks.yaml"),
    *,
    day: Annotated[
        str | None,
        typer.Option("--date", "-d", help="Date to expand (YYYY-MM-DD, default: today)"),
    ] = None,
) -> None:
    """List the tasks that occur on a date."""
    target = _parse_date_option(day)
    task_file, _ = _load_inputs(file)

    found = RecurrenceExpander().expand(
        task_file.definitions, target, task_file.overrides_for(target)
    )
    if not found:
        typer.echo(f"No tasks occur on {target.isoformat()}")
        return

    typer.echo(f"Tasks on {target.isoformat()}:")
    for occ in found:
        anchor = occ.anchor_time
        when = format_time(anchor) if anchor is not None else occ.time_window.value
        typer.echo(f"  {occ.id}: {occ.name} ({occ.duration_minutes}m, {when})")


@app.command()
def validate(
    file: Annotated[Path, typer.Argument(help="Path to the task YAML file")] = Path("tasks.yaml"),
) -> None:
    """Validate a task file."""
    task_file, _ = _load_inputs(file)
    typer.echo(
        f"{file} is valid: {len(task_file.definitions)} task(s), "
        f"{len(task_file.overrides)} override(s)"
    )


def main() -> int:
    """Main entry point."""
    # Typer handles sys.exit() internally
    app()
    return 0


if __name__ == "__main__":
    main()
