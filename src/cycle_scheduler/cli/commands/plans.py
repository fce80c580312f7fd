"""Plan commands: create, list, preview, apply, resolve and lifecycle controls."""

import json
from typing import Annotated, Optional

import typer

from ...core.scheduler import OperationResult
from ...io.serializers import (
    ValidationError,
    cycle_plan_to_dict,
    parse_decisions,
    parse_weekday,
    parse_weekday_assignments,
    scheduled_workout_to_dict,
)
from .. import views
from ..app import DataDirOption, JsonOption, get_scheduler, plan_app

PlanIdArg = Annotated[str, typer.Argument(help="Plan id (see 'plan list')")]
StartOption = Annotated[
    Optional[str],
    typer.Option("--start", "-s", help="Start date YYYY-MM-DD (default: the plan's start date)"),
]
ReplaceOption = Annotated[
    Optional[list[str]],
    typer.Option("--replace", help="Conflicting date to overwrite; repeat for more"),
]
KeepOption = Annotated[
    Optional[list[str]],
    typer.Option("--keep", help="Conflicting date to leave as it is; repeat for more"),
]


def _exit_on_failure(result: OperationResult) -> None:
    """Print a failed result (with its conflicts, if any) and exit 1."""
    if result.success:
        return
    if result.conflicts:
        views.console.print(views.format_conflict_table(result.conflicts))
        views.print_warning(result.message)
        views.print_info(
            "Re-run with --policy replace|keep|cancel, or decide per date with "
            "'plan resolve PLAN_ID --replace DATE --keep DATE'."
        )
    else:
        views.print_error(result.message)
    raise typer.Exit(1)


def _report_apply(result: OperationResult) -> None:
    _exit_on_failure(result)
    views.print_success(result.message)
    if result.apply is not None:
        views.print_apply_result(result.apply)
    if result.program_id:
        views.print_info(f"Program id: {result.program_id}")


@plan_app.command("create")
def create_plan(
    name: Annotated[str, typer.Argument(help="Plan name")],
    days: Annotated[
        list[str],
        typer.Option("--day", help="DAY=TEMPLATE_ID, e.g. mon=push; repeat for each training day"),
    ],
    weeks: Annotated[int, typer.Option("--weeks", "-w", help="Plan length in weeks")],
    start: Annotated[str, typer.Option("--start", "-s", help="Start date YYYY-MM-DD")],
    plan_id: Annotated[Optional[str], typer.Option("--id", help="Plan id (default: generated)")] = None,
    data_dir: DataDirOption = None,
) -> None:
    """Create a cycle plan from weekday → template assignments."""
    scheduler = get_scheduler(data_dir)
    try:
        mapping = parse_weekday_assignments(days)
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    result = scheduler.create_plan(name, mapping, weeks, start, plan_id=plan_id)
    _exit_on_failure(result)
    views.print_success(f"{result.message} ({result.plan.id})")  # type: ignore[union-attr]


@plan_app.command("list")
def list_plans(
    all_plans: Annotated[
        bool, typer.Option("--all", "-a", help="Include ended and archived plans")
    ] = False,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """List cycle plans."""
    scheduler = get_scheduler(data_dir)
    try:
        plans = scheduler.plans.list_all() if all_plans else scheduler.plans.list_available()
    except ValidationError as e:
        views.print_error(f"Invalid data: {e}")
        raise typer.Exit(1)

    if json_out:
        print(json.dumps([cycle_plan_to_dict(p) for p in plans], indent=2))
        return
    if not plans:
        views.print_info("No plans yet. Create one with 'plan create'.")
        return
    views.console.print(
        views.format_plan_table(plans, scheduler.today(), scheduler.settings.week_starts_on)
    )


@plan_app.command("preview")
def preview_plan(
    plan_id: PlanIdArg,
    start: StartOption = None,
    weeks: Annotated[
        Optional[int], typer.Option("--weeks", "-w", help="Only project the first N weeks")
    ] = None,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """Show the dates a plan would fill and which of them conflict. Writes nothing."""
    scheduler = get_scheduler(data_dir)
    result = scheduler.project_and_preview(plan_id, start, weeks)
    _exit_on_failure(result)

    if json_out:
        print(json.dumps({
            "proposals": [
                {
                    "date": p.date,
                    "template_id": p.template_id,
                    "week_index": p.week_index,
                    "day_index": p.day_index,
                }
                for p in result.proposals
            ],
            "conflicts": [
                {
                    "date": c.date,
                    "existing": scheduled_workout_to_dict(c.existing),
                    "proposed_template_id": c.proposed_template_id,
                    "is_locked": c.is_locked,
                }
                for c in result.conflicts
            ],
        }, indent=2))
        return

    views.console.print(views.format_proposal_table(result.proposals, result.conflicts))
    views.print_info(result.message)


@plan_app.command("apply")
def apply_plan(
    plan_id: PlanIdArg,
    start: StartOption = None,
    policy: Annotated[
        Optional[str],
        typer.Option("--policy", "-p", help="Conflict policy for all dates: replace, keep or cancel"),
    ] = None,
    replace: ReplaceOption = None,
    keep: KeepOption = None,
    data_dir: DataDirOption = None,
) -> None:
    """
    Put a plan on the calendar.

    Without --policy, conflicts are listed and nothing is written (unless a
    default policy is set in settings.yaml).  Locked and completed workouts
    are never replaced.
    """
    scheduler = get_scheduler(data_dir)
    try:
        decisions = parse_decisions(replace or [], keep or [])
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)
    if decisions and policy is not None:
        views.print_error("Use either --policy or --replace/--keep, not both")
        raise typer.Exit(1)

    result = scheduler.apply_plan(plan_id, start, decisions or policy)
    _report_apply(result)


@plan_app.command("resolve")
def resolve_plan(
    plan_id: PlanIdArg,
    start: StartOption = None,
    replace: ReplaceOption = None,
    keep: KeepOption = None,
    data_dir: DataDirOption = None,
) -> None:
    """
    Apply a plan deciding conflicts date by date.

    Conflicting dates not listed are kept.
    """
    scheduler = get_scheduler(data_dir)
    try:
        decisions = parse_decisions(replace or [], keep or [])
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    preview = scheduler.apply_plan(plan_id, start, use_default_policy=False)
    if preview.success:
        _report_apply(preview)
        return
    if not preview.conflicts or preview.program_id is None:
        _exit_on_failure(preview)

    result = scheduler.resolve_conflicts(preview.program_id, decisions)  # type: ignore[arg-type]
    _report_apply(result)


@plan_app.command("pause")
def pause_plan(
    plan_id: PlanIdArg,
    until: Annotated[str, typer.Option("--until", "-u", help="Resume date YYYY-MM-DD (after today)")],
    data_dir: DataDirOption = None,
) -> None:
    """Pause a plan; paused days are added to its end date."""
    result = get_scheduler(data_dir).pause(plan_id, until)
    _exit_on_failure(result)
    views.print_success(result.message)


@plan_app.command("resume")
def resume_plan(plan_id: PlanIdArg, data_dir: DataDirOption = None) -> None:
    """Resume a paused plan."""
    result = get_scheduler(data_dir).resume(plan_id)
    _exit_on_failure(result)
    views.print_success(result.message)


@plan_app.command("end")
def end_plan(plan_id: PlanIdArg, data_dir: DataDirOption = None) -> None:
    """End a plan.  Scheduled workouts stay on the calendar."""
    result = get_scheduler(data_dir).end(plan_id)
    _exit_on_failure(result)
    views.print_success(result.message)


@plan_app.command("archive")
def archive_plan(plan_id: PlanIdArg, data_dir: DataDirOption = None) -> None:
    """Archive a plan so it can no longer be applied."""
    result = get_scheduler(data_dir).archive(plan_id)
    _exit_on_failure(result)
    views.print_success(result.message)


@plan_app.command("delete")
def delete_plan(
    plan_id: PlanIdArg,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Do not ask for confirmation")] = False,
    data_dir: DataDirOption = None,
) -> None:
    """Delete a plan record.  Its workouts remain in the calendar history."""
    scheduler = get_scheduler(data_dir)
    plan = scheduler.plans.get(plan_id)
    if plan is None:
        views.print_error(f"Unknown plan: {plan_id}")
        raise typer.Exit(1)
    if not yes and not views.confirm_action(f"Delete plan '{plan.name}'?"):
        views.print_info("Cancelled.")
        return

    result = scheduler.delete(plan_id)
    _exit_on_failure(result)
    views.print_success(result.message)


@plan_app.command("repeat")
def repeat_plan(
    plan_id: PlanIdArg,
    start: Annotated[
        Optional[str], typer.Option("--start", "-s", help="Start date YYYY-MM-DD (default: today)")
    ] = None,
    policy: Annotated[
        Optional[str],
        typer.Option("--policy", "-p", help="Conflict policy: replace, keep or cancel"),
    ] = None,
    data_dir: DataDirOption = None,
) -> None:
    """Run a plan again as a new plan starting on --start."""
    result = get_scheduler(data_dir).repeat(plan_id, start, policy)
    if result.plan is not None and not result.success:
        views.print_info(f"Created plan {result.plan.id}; apply it once conflicts are settled.")
    _report_apply(result)


@plan_app.command("extract-day")
def extract_day(
    plan_id: PlanIdArg,
    weekday: Annotated[str, typer.Argument(help="Weekday: 0-6 (0=Sunday) or a name like 'mon'")],
    date: Annotated[
        Optional[str],
        typer.Option("--date", help="Schedule the day's workout on this date as a one-off"),
    ] = None,
    replace: Annotated[
        bool, typer.Option("--replace", help="Replace an existing (unlocked) workout on --date")
    ] = False,
    data_dir: DataDirOption = None,
) -> None:
    """Show, or schedule as a one-off, the workout a plan has on one weekday."""
    scheduler = get_scheduler(data_dir)
    try:
        day = parse_weekday(weekday)
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if date is None:
        result = scheduler.extract_day(plan_id, day)
        _exit_on_failure(result)
        views.console.print(f"{views.weekday_name(day)}: [bold]{result.template_id}[/bold]")
        return

    result = scheduler.schedule_extracted_day(
        plan_id, day, date, "replace" if replace else None
    )
    _exit_on_failure(result)
    views.print_success(result.message)


@plan_app.command("status")
def plan_status(
    plan_id: PlanIdArg,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """Show a plan's state, current week and effective end date."""
    result = get_scheduler(data_dir).plan_status(plan_id)
    _exit_on_failure(result)
    plan, summary = result.plan, result.summary

    if json_out:
        print(json.dumps({
            "plan_id": plan.id,  # type: ignore[union-attr]
            "state": summary.state,  # type: ignore[union-attr]
            "current_week": summary.progress.current_week,  # type: ignore[union-attr]
            "total_weeks": summary.progress.total_weeks,  # type: ignore[union-attr]
            "nominal_end_date": summary.nominal_end_date,  # type: ignore[union-attr]
            "effective_end_date": summary.effective_end_date,  # type: ignore[union-attr]
            "total_paused_days": summary.total_paused_days,  # type: ignore[union-attr]
            "program_id": plan.program_id,  # type: ignore[union-attr]
        }, indent=2))
        return
    views.print_timeline_summary(plan, summary)  # type: ignore[arg-type]


@plan_app.command("history")
def program_history(
    program_id: Annotated[str, typer.Argument(help="Program id stamped on the plan's workouts")],
    data_dir: DataDirOption = None,
) -> None:
    """List the workouts written by one plan application (even if the plan was deleted)."""
    workouts = get_scheduler(data_dir).history_for_program(program_id)
    views.print_calendar(workouts, title=f"Program {program_id}")
