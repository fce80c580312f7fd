"""Calendar commands: show, schedule one-off workouts, record execution."""

import json
from typing import Annotated, Optional

import typer

from ...core.dates import add_days, validate_iso_date
from ...io.serializers import ValidationError, scheduled_workout_to_dict
from .. import views
from ..app import DataDirOption, JsonOption, calendar_app, get_scheduler


def _check_date(value: str) -> str:
    try:
        return validate_iso_date(value)
    except ValueError as e:
        views.print_error(str(e))
        raise typer.Exit(1)


@calendar_app.command("show")
def show_calendar(
    from_date: Annotated[
        Optional[str], typer.Option("--from", help="First date to show (YYYY-MM-DD)")
    ] = None,
    to_date: Annotated[
        Optional[str], typer.Option("--to", help="Last date to show, inclusive (YYYY-MM-DD)")
    ] = None,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """Show scheduled workouts, optionally limited to a date range."""
    scheduler = get_scheduler(data_dir)
    if from_date is not None:
        _check_date(from_date)
    if to_date is not None:
        _check_date(to_date)

    try:
        if from_date is None and to_date is None:
            workouts = scheduler.calendar.list_all()
        else:
            workouts = scheduler.calendar.list_range(
                from_date or "0000-01-01",
                add_days(to_date, 1) if to_date else "9999-12-31",
            )
    except ValidationError as e:
        views.print_error(f"Invalid data: {e}")
        raise typer.Exit(1)

    if json_out:
        print(json.dumps([scheduled_workout_to_dict(w) for w in workouts], indent=2))
        return
    views.print_calendar(workouts)


@calendar_app.command("schedule")
def schedule_workout(
    date: Annotated[str, typer.Argument(help="Date YYYY-MM-DD")],
    template_id: Annotated[str, typer.Argument(help="Template id")],
    replace: Annotated[
        bool, typer.Option("--replace", help="Replace an existing (unlocked) workout on DATE")
    ] = False,
    data_dir: DataDirOption = None,
) -> None:
    """Schedule a single manual workout."""
    result = get_scheduler(data_dir).schedule_workout(
        date, template_id, "replace" if replace else None
    )
    if not result.success:
        if result.conflicts:
            views.console.print(views.format_conflict_table(result.conflicts))
        views.print_error(result.message)
        raise typer.Exit(1)
    views.print_success(result.message)


def _record(date: str, status: str, data_dir) -> None:
    _check_date(date)
    scheduler = get_scheduler(data_dir)
    try:
        workout = scheduler.calendar.record_execution(date, status, scheduler.now())  # type: ignore[arg-type]
    except KeyError:
        views.print_error(f"No workout scheduled on {date}")
        raise typer.Exit(1)
    except (ValidationError, OSError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)
    views.print_success(f"'{workout.title_snapshot}' on {date} is {workout.status} (locked)")


@calendar_app.command("start")
def start_workout(
    date: Annotated[str, typer.Argument(help="Date YYYY-MM-DD")],
    data_dir: DataDirOption = None,
) -> None:
    """Mark a workout in progress.  It is locked from then on."""
    _record(date, "in_progress", data_dir)


@calendar_app.command("complete")
def complete_workout(
    date: Annotated[str, typer.Argument(help="Date YYYY-MM-DD")],
    data_dir: DataDirOption = None,
) -> None:
    """Mark a workout completed.  It is locked from then on."""
    _record(date, "completed", data_dir)
