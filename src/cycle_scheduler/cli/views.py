"""
CLI view formatters using Rich for pretty console output.

Handles table formatting for templates, plans, proposals, conflicts and
the calendar.  Weekdays are stored Sunday-first; tables reorder them
according to ``display.week_starts_on`` only when listing a mapping.
"""

from rich.console import Console
from rich.table import Table

from ..core.config import WEEKDAY_NAMES, WEEKDAY_SHORT
from ..core.dates import display_weekday_order, sunday_weekday
from ..core.models import (
    ApplyResult,
    ConflictItem,
    CyclePlan,
    ProposedAssignment,
    ScheduledWorkout,
    TemplateExercise,
    WorkoutTemplate,
)
from ..core.timeline import TimelineSummary, plan_state

console = Console()
err_console = Console(stderr=True)

_STATE_STYLES = {
    "none": "dim",
    "active": "green",
    "paused": "yellow",
    "ended": "blue",
}


def format_exercise(exercise: TemplateExercise) -> str:
    """Compact one-line prescription, e.g. ``squat 5x5 +100kg / 180s``."""
    text = f"{exercise.exercise_id} {exercise.sets}x{exercise.reps}"
    if exercise.weight_kg:
        text += f" +{exercise.weight_kg:g}kg"
    if exercise.rest_seconds is not None:
        text += f" / {exercise.rest_seconds}s"
    return text


def format_mapping(plan: CyclePlan, week_starts_on: str = "monday") -> str:
    parts = [
        f"{WEEKDAY_SHORT[d]}={plan.template_ids_by_weekday[d]}"
        for d in display_weekday_order(week_starts_on)
        if d in plan.template_ids_by_weekday
    ]
    return ", ".join(parts) if parts else "-"


def format_template_table(templates: list[WorkoutTemplate]) -> Table:
    """
    Create a Rich table listing workout templates.

    Args:
        templates: Templates to display

    Returns:
        Rich Table object
    """
    table = Table(title="Workout Templates")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="bold")
    table.add_column("Exercises")
    table.add_column("Used", justify="right")
    table.add_column("Last used", style="dim")

    for t in templates:
        table.add_row(
            t.id,
            t.name,
            "\n".join(format_exercise(e) for e in t.exercises) or "-",
            str(t.usage_count),
            t.last_used_at or "-",
        )
    return table


def format_plan_table(
    plans: list[CyclePlan], today: str, week_starts_on: str = "monday"
) -> Table:
    """
    Create a Rich table listing cycle plans with their lifecycle state.

    Args:
        plans: Plans to display
        today: ISO date used to derive each plan's state
        week_starts_on: "monday" or "sunday" ordering of the day column

    Returns:
        Rich Table object
    """
    table = Table(title="Cycle Plans")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="bold")
    table.add_column("Days")
    table.add_column("Weeks", justify="right")
    table.add_column("Start", style="cyan")
    table.add_column("State")

    for p in plans:
        state = "archived" if p.archived_at else plan_state(p, today)
        style = _STATE_STYLES.get(state, "dim")
        table.add_row(
            p.id,
            p.name,
            format_mapping(p, week_starts_on),
            str(p.weeks),
            p.start_date,
            f"[{style}]{state}[/{style}]",
        )
    return table


def format_proposal_table(
    proposals: list[ProposedAssignment], conflicts: list[ConflictItem]
) -> Table:
    """Projected dates, marking the ones that collide with existing workouts."""
    conflict_by_date = {c.date: c for c in conflicts}
    table = Table(title="Projected Workouts")
    table.add_column("Date", style="cyan")
    table.add_column("Day")
    table.add_column("Week", justify="right")
    table.add_column("Template", style="bold")
    table.add_column("Conflict")

    for p in proposals:
        conflict = conflict_by_date.get(p.date)
        if conflict is None:
            note = ""
        elif conflict.is_locked:
            note = f"[red]locked: {conflict.existing.title_snapshot}[/red]"
        else:
            note = f"[yellow]{conflict.existing.title_snapshot}[/yellow]"
        table.add_row(p.date, WEEKDAY_SHORT[p.day_index], str(p.week_index), p.template_id, note)
    return table


def format_conflict_table(conflicts: list[ConflictItem]) -> Table:
    table = Table(title="Conflicts")
    table.add_column("Date", style="cyan")
    table.add_column("Existing", style="bold")
    table.add_column("Source")
    table.add_column("Status")
    table.add_column("Proposed")

    for c in conflicts:
        existing = c.existing
        source = existing.program_name or existing.source
        status = f"[red]{existing.status} (locked)[/red]" if c.is_locked else existing.status
        table.add_row(c.date, existing.title_snapshot, source, status, c.proposed_template_id)
    return table


def format_calendar_table(workouts: list[ScheduledWorkout], title: str = "Calendar") -> Table:
    """
    Create a Rich table of calendar rows.

    Args:
        workouts: Rows to display, already sorted by date
        title: Table title

    Returns:
        Rich Table object
    """
    table = Table(title=title)
    table.add_column("Date", style="cyan")
    table.add_column("Day")
    table.add_column("Workout", style="bold")
    table.add_column("Source")
    table.add_column("Program")
    table.add_column("Wk", justify="right")
    table.add_column("Status")

    for w in workouts:
        status = w.status + (" 🔒" if w.is_locked else "")
        table.add_row(
            w.date,
            WEEKDAY_SHORT[sunday_weekday(w.date)],
            w.title_snapshot,
            w.source,
            w.program_name or "-",
            str(w.week_index) if w.week_index is not None else "-",
            status,
        )
    return table


def print_calendar(workouts: list[ScheduledWorkout], title: str = "Calendar") -> None:
    if not workouts:
        console.print("[yellow]No workouts scheduled.[/yellow]")
        return
    console.print(format_calendar_table(workouts, title))


def print_apply_result(result: ApplyResult) -> None:
    """Summarise an applier run: what was written and why dates were skipped."""
    console.print(f"  Written:  [green]{result.applied}[/green]")
    if result.replaced:
        console.print(f"  Replaced: [yellow]{', '.join(result.replaced)}[/yellow]")
    kept = [d for d in result.skipped if d not in result.locked]
    if kept:
        console.print(f"  Kept:     {', '.join(kept)}")
    if result.locked:
        console.print(f"  Locked (never replaced): [red]{', '.join(result.locked)}[/red]")


def print_timeline_summary(plan: CyclePlan, summary: TimelineSummary) -> None:
    style = _STATE_STYLES.get(summary.state, "dim")
    console.print(f"[bold]{plan.name}[/bold] ({plan.id})")
    console.print(f"  State:          [{style}]{summary.state}[/{style}]")
    console.print(
        f"  Week:           {summary.progress.current_week} / {summary.progress.total_weeks}"
    )
    console.print(f"  Start:          {summary.start_date}")
    console.print(f"  Nominal end:    {summary.nominal_end_date}")
    console.print(f"  Effective end:  {summary.effective_end_date}")
    if summary.total_paused_days:
        console.print(f"  Paused so far:  {summary.total_paused_days} day(s)")
    if plan.is_paused:
        console.print(f"  Paused:         {plan.paused_at} → {plan.paused_until}")
    if plan.program_id:
        console.print(f"  Program:        {plan.program_id}")


def weekday_name(weekday: int) -> str:
    return WEEKDAY_NAMES[weekday]


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {message}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning: {message}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{message}[/blue]")


def confirm_action(message: str) -> bool:
    """
    Prompt user for confirmation.

    Args:
        message: Confirmation message

    Returns:
        True if confirmed, False otherwise
    """
    response = console.input(f"{message} [y/N]: ")
    return response.lower() in ("y", "yes")
