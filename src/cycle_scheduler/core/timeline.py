"""
Plan lifecycle and derived timeline facts.

State machine over one plan application::

    none -> active <-> paused -> ended

``deleted`` is terminal and is represented by the plan no longer being in
the plan store.  Transitions return an updated copy of the plan and never
touch calendar rows; the caller persists the copy.

Pause accounting is cumulative: every completed pause is kept in
``pause_history`` and its gap is added to the plan's effective end date, so
time spent paused never counts against the plan's duration.
"""

import dataclasses
import logging
from dataclasses import dataclass

from .config import DAYS_PER_WEEK
from .dates import add_days, days_between, validate_iso_date
from .errors import PlanStateError, ValidationError
from .models import CyclePlan, PauseInterval, PlanState, WeekProgress

logger = logging.getLogger(__name__)


@dataclass
class TimelineSummary:
    """Display facts for one plan as of a given day."""

    state: PlanState
    start_date: str
    nominal_end_date: str
    effective_end_date: str
    total_paused_days: int
    progress: WeekProgress


# ---------------------------------------------------------------------------
# Derived facts
# ---------------------------------------------------------------------------


def plan_state(plan: CyclePlan, today: str) -> PlanState:
    """
    Return the lifecycle state of a plan as of ``today``.

    A recorded pause whose ``paused_until`` has passed counts as active
    again even if ``resume`` was never called.
    """
    if plan.ended_at is not None:
        return "ended"
    if plan.program_id is None:
        return "none"
    if not plan.active:
        return "ended"
    if plan.is_paused and today < plan.paused_until:  # type: ignore[operator]
        return "paused"
    return "active"


def nominal_end_date(plan: CyclePlan) -> str:
    """Exclusive end date ignoring pauses: start + weeks*7 days."""
    return add_days(plan.start_date, plan.weeks * DAYS_PER_WEEK)


def completed_pause_days(plan: CyclePlan) -> int:
    return sum(days_between(p.paused_at, p.resumed_at) for p in plan.pause_history)


def effective_end_date(plan: CyclePlan) -> str:
    """
    Nominal end date pushed forward by every pause gap.

    Completed pauses contribute their actual length; a pause still on record
    contributes its full planned length (``paused_until - paused_at``).
    """
    shift = completed_pause_days(plan)
    if plan.is_paused:
        shift += days_between(plan.paused_at, plan.paused_until)  # type: ignore[arg-type]
    return add_days(nominal_end_date(plan), shift)


def total_paused_days(plan: CyclePlan, today: str) -> int:
    """Days of pause elapsed by ``today``: all completed gaps plus the current one so far."""
    total = completed_pause_days(plan)
    if plan.is_paused and today > plan.paused_at:  # type: ignore[operator]
        current_end = min(today, plan.paused_until)  # type: ignore[type-var]
        total += days_between(plan.paused_at, current_end)  # type: ignore[arg-type]
    return total


def week_progress(plan: CyclePlan, today: str) -> WeekProgress:
    """
    Current week of the plan, clamped to ``1..weeks``.

    Paused days are subtracted from the elapsed time, so the week number
    stays frozen while the plan is paused.
    """
    elapsed = days_between(plan.start_date, today) - total_paused_days(plan, today)
    current = elapsed // DAYS_PER_WEEK + 1
    current = max(1, min(current, plan.weeks))
    return WeekProgress(current_week=current, total_weeks=plan.weeks)


def summarize(plan: CyclePlan, today: str) -> TimelineSummary:
    return TimelineSummary(
        state=plan_state(plan, today),
        start_date=plan.start_date,
        nominal_end_date=nominal_end_date(plan),
        effective_end_date=effective_end_date(plan),
        total_paused_days=total_paused_days(plan, today),
        progress=week_progress(plan, today),
    )


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------


def _closed_pause_history(plan: CyclePlan, today: str) -> list[PauseInterval]:
    """pause_history with the currently recorded pause (if any) closed at ``today``."""
    history = list(plan.pause_history)
    if plan.is_paused:
        resumed_at = max(plan.paused_at, min(today, plan.paused_until))  # type: ignore[type-var]
        history.append(PauseInterval(paused_at=plan.paused_at, resumed_at=resumed_at))  # type: ignore[arg-type]
    return history


def mark_applied(plan: CyclePlan, program_id: str, now: str) -> CyclePlan:
    """
    Record a successful application (none/ended -> active, or a re-apply).

    Re-applying under the same program id keeps its pause record.  A new
    program id starts a new run, so pauses of the previous run are dropped.

    Raises:
        PlanStateError: If the plan is archived
    """
    if plan.archived_at is not None:
        raise PlanStateError(f"Plan '{plan.name}' is archived and cannot be applied")
    pause_fields = {}
    if program_id != plan.program_id:
        pause_fields = dict(paused_at=None, paused_until=None, pause_history=[])
    return dataclasses.replace(
        plan,
        program_id=program_id,
        active=True,
        ended_at=None,
        **pause_fields,
        last_used_at=now,
        usage_count=plan.usage_count + 1,
        updated_at=now,
    )


def pause(plan: CyclePlan, resume_date: str, today: str, now: str) -> CyclePlan:
    """
    Pause an active plan until ``resume_date``.

    Calendar rows are left as they are; only derived facts shift.

    Raises:
        ValidationError: If ``resume_date`` is malformed or not after today
        PlanStateError: If the plan is not active
    """
    try:
        validate_iso_date(resume_date)
    except ValueError as e:
        raise ValidationError(str(e)) from e
    if resume_date <= today:
        raise ValidationError(f"Resume date {resume_date} must be after today ({today})")

    state = plan_state(plan, today)
    if state != "active":
        raise PlanStateError(f"Only an active plan can be paused (plan '{plan.name}' is {state})")

    # An expired pause that was never resumed is folded into history first
    history = _closed_pause_history(plan, today)
    logger.info("Pausing plan %s from %s until %s", plan.id, today, resume_date)
    return dataclasses.replace(
        plan,
        paused_at=today,
        paused_until=resume_date,
        pause_history=history,
        updated_at=now,
    )


def resume(plan: CyclePlan, today: str, now: str) -> CyclePlan:
    """
    Clear the current pause, keeping the elapsed gap in ``pause_history``.

    Raises:
        PlanStateError: If the plan has no pause recorded or has ended
    """
    if plan_state(plan, today) == "ended":
        raise PlanStateError(f"Plan '{plan.name}' has ended")
    if not plan.is_paused:
        raise PlanStateError(f"Plan '{plan.name}' is not paused")

    logger.info("Resuming plan %s on %s", plan.id, today)
    return dataclasses.replace(
        plan,
        paused_at=None,
        paused_until=None,
        pause_history=_closed_pause_history(plan, today),
        updated_at=now,
    )


def end(plan: CyclePlan, today: str, now: str) -> CyclePlan:
    """
    End an active or paused plan.  Calendar rows are not touched.

    Raises:
        PlanStateError: If the plan was never applied or already ended
    """
    state = plan_state(plan, today)
    if state not in ("active", "paused"):
        raise PlanStateError(f"Only an active or paused plan can be ended (plan '{plan.name}' is {state})")

    logger.info("Ending plan %s on %s", plan.id, today)
    return dataclasses.replace(
        plan,
        active=False,
        ended_at=today,
        paused_at=None,
        paused_until=None,
        pause_history=_closed_pause_history(plan, today),
        updated_at=now,
    )


def archive(plan: CyclePlan, now: str) -> CyclePlan:
    """Archive a plan: it stays visible in history but can no longer be applied."""
    return dataclasses.replace(plan, active=False, archived_at=now, updated_at=now)


def repeat_plan(plan: CyclePlan, start_date: str, new_id: str, now: str) -> CyclePlan:
    """
    Build a fresh plan record with the same mapping and duration.

    The copy has no pause, end or usage state; applying it produces a new
    program id like any other application.
    """
    return CyclePlan(
        id=new_id,
        name=plan.name,
        template_ids_by_weekday=dict(plan.template_ids_by_weekday),
        weeks=plan.weeks,
        start_date=start_date,
        created_at=now,
        updated_at=now,
    )
