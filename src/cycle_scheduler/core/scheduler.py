"""
Scheduling facade.

CycleScheduler wires projection, conflict detection, resolution and the
plan timeline to the three injected stores (calendar, plans, templates).
It is what the CLI and any other front end call.

Every public method returns an OperationResult.  Predictable business
outcomes (conflicts, cancelled applies, bad input, invalid transitions,
failed writes) come back as ``success=False`` with a message; only
programmer errors propagate as exceptions.
"""

import copy
import dataclasses
import functools
import logging
import uuid
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Callable

from . import timeline
from .config import DATE_FORMAT, PLAN_ID_PREFIX, PROGRAM_ID_PREFIX, WORKOUT_ID_PREFIX
from .conflicts import detect
from .dates import validate_iso_date
from .engine.config_loader import Settings
from .errors import ImmutableWorkoutError, PlanStateError, ValidationError
from .extraction import extract_day as extract_template_for_weekday
from .models import (
    ApplyResult,
    ConflictItem,
    ConflictResolutionMap,
    CycleConflictResolution,
    CyclePlan,
    ProposedAssignment,
    ScheduledWorkout,
)
from .projector import project
from .resolution import PerDate, ResolutionPolicy, apply, as_policy

if TYPE_CHECKING:
    from ..io.calendar_store import CalendarStore
    from ..io.plan_store import PlanStore
    from ..io.template_library import TemplateLibrary

logger = logging.getLogger(__name__)


@dataclass
class OperationResult:
    """Outcome of one facade call, with enough detail to explain what happened."""

    success: bool
    message: str = ""
    plan: CyclePlan | None = None
    program_id: str | None = None
    proposals: list[ProposedAssignment] = field(default_factory=list)
    conflicts: list[ConflictItem] = field(default_factory=list)
    apply: ApplyResult | None = None
    template_id: str | None = None
    workout: ScheduledWorkout | None = None
    summary: timeline.TimelineSummary | None = None


@dataclass
class _PendingApplication:
    """An apply that stopped at its conflicts and waits for per-date decisions."""

    plan_id: str
    start_date: str


def _business_result(method: Callable[..., OperationResult]) -> Callable[..., OperationResult]:
    """Turn expected failures into ``success=False`` results."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs) -> OperationResult:
        try:
            return method(self, *args, **kwargs)
        except (ValidationError, ImmutableWorkoutError) as e:
            return OperationResult(success=False, message=str(e))
        except OSError as e:
            logger.warning("%s failed to persist: %s", method.__name__, e)
            return OperationResult(success=False, message=f"Could not save changes: {e}")

    return wrapper


class CycleScheduler:
    """
    Exposed scheduling operations over injected stores.

    Args:
        calendar: Calendar store (one ScheduledWorkout per date)
        plans: Plan store
        templates: Template library
        settings: Loaded settings; defaults apply when omitted
        clock: Callable returning the current datetime (injectable for tests)
    """

    def __init__(
        self,
        calendar: "CalendarStore",
        plans: "PlanStore",
        templates: "TemplateLibrary",
        settings: Settings | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.calendar = calendar
        self.plans = plans
        self.templates = templates
        self.settings = settings or Settings()
        self._clock = clock or datetime.now
        self._pending: dict[str, _PendingApplication] = {}

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def today(self) -> str:
        return self._clock().strftime(DATE_FORMAT)

    def now(self) -> str:
        return self._clock().isoformat(timespec="seconds")

    def _require_plan(self, plan_id: str) -> CyclePlan:
        plan = self.plans.get(plan_id)
        if plan is None:
            raise ValidationError(f"Unknown plan: {plan_id}")
        return plan

    def _check_templates(self, mapping: dict[int, str]) -> None:
        missing = sorted({tid for tid in mapping.values() if self.templates.find(tid) is None})
        if missing:
            raise ValidationError(f"Unknown template(s): {', '.join(missing)}")

    def _with_start(self, plan: CyclePlan, start_date: str | None) -> CyclePlan:
        if start_date is None or start_date == plan.start_date:
            return plan
        try:
            validate_iso_date(start_date)
        except ValueError as e:
            raise ValidationError(str(e)) from e
        return dataclasses.replace(plan, start_date=start_date)

    def _running_program_id(self, plan: CyclePlan, start_date: str | None) -> str | None:
        """Program id of the plan's current application when this call re-applies it."""
        if plan.program_id is None:
            return None
        if timeline.plan_state(plan, self.today()) not in ("active", "paused"):
            return None
        if start_date is not None and start_date != plan.start_date:
            return None
        return plan.program_id

    def _record_usage(self, counts: dict[str, int], now: str) -> None:
        """Bump template usage counters; the calendar write already happened."""
        try:
            self.templates.record_usage(counts, now)
        except OSError as e:
            logger.warning("Could not update template usage counters: %s", e)

    @staticmethod
    def new_id(prefix: str) -> str:
        return f"{prefix}-{uuid.uuid4().hex[:12]}"

    # ------------------------------------------------------------------
    # Plan library
    # ------------------------------------------------------------------

    @_business_result
    def create_plan(
        self,
        name: str,
        template_ids_by_weekday: dict[int, str],
        weeks: int,
        start_date: str,
        plan_id: str | None = None,
    ) -> OperationResult:
        """Validate and store a new plan (state ``none``)."""
        if weeks > self.settings.max_plan_weeks:
            raise ValidationError(
                f"weeks must be at most {self.settings.max_plan_weeks}, got {weeks}"
            )
        if not name.strip():
            raise ValidationError("Plan name must be non-empty")
        now = self.now()
        try:
            plan = CyclePlan(
                id=plan_id or self.new_id(PLAN_ID_PREFIX),
                name=name.strip(),
                template_ids_by_weekday=dict(template_ids_by_weekday),
                weeks=weeks,
                start_date=start_date,
                created_at=now,
                updated_at=now,
            )
        except ValueError as e:
            raise ValidationError(str(e)) from e
        if self.plans.get(plan.id) is not None:
            raise ValidationError(f"Plan {plan.id} already exists")
        self._check_templates(plan.template_ids_by_weekday)

        self.plans.save(plan)
        logger.info("Created plan %s (%s, %d weeks)", plan.id, plan.name, plan.weeks)
        return OperationResult(success=True, message=f"Created plan '{plan.name}'", plan=plan)

    @_business_result
    def archive(self, plan_id: str) -> OperationResult:
        plan = timeline.archive(self._require_plan(plan_id), self.now())
        self.plans.save(plan)
        return OperationResult(success=True, message=f"Archived plan '{plan.name}'", plan=plan)

    # ------------------------------------------------------------------
    # Projection / apply
    # ------------------------------------------------------------------

    @_business_result
    def project_and_preview(
        self,
        plan_id: str,
        start_date: str | None = None,
        weeks: int | None = None,
    ) -> OperationResult:
        """Proposals and conflicts for a plan, without writing anything."""
        stored = self._require_plan(plan_id)
        plan = self._with_start(stored, start_date)
        program_id = self._running_program_id(stored, start_date)

        proposals = project(plan, plan.start_date, weeks)
        snapshot = self.calendar.snapshot()
        conflicts = detect(proposals, snapshot.get, program_id)
        return OperationResult(
            success=True,
            message=f"{len(proposals)} workout(s), {len(conflicts)} conflict(s)",
            plan=plan,
            program_id=program_id,
            proposals=proposals,
            conflicts=conflicts,
        )

    @_business_result
    def apply_plan(
        self,
        plan_id: str,
        start_date: str | None = None,
        policy: "ResolutionPolicy | str | dict[str, str] | None" = None,
        use_default_policy: bool = True,
    ) -> OperationResult:
        """
        Project a plan, detect conflicts and commit the resolved writes.

        With ``policy=None`` and conflicts present, the configured default
        policy is used; if there is none (or ``use_default_policy`` is
        False), the conflicts are returned and the application waits for
        ``resolve_conflicts`` under its program id.
        """
        stored = self._require_plan(plan_id)
        if stored.archived_at is not None:
            raise PlanStateError(f"Plan '{stored.name}' is archived and cannot be applied")
        plan = self._with_start(stored, start_date)
        self._check_templates(plan.template_ids_by_weekday)
        program_id = self._running_program_id(stored, start_date) or self.new_id(PROGRAM_ID_PREFIX)

        proposals = project(plan, plan.start_date)
        snapshot = self.calendar.snapshot()
        conflicts = detect(proposals, snapshot.get, program_id)

        if policy is None:
            default = self.settings.default_conflict_resolution if use_default_policy else None
            if conflicts and default is None:
                self._pending[program_id] = _PendingApplication(plan.id, plan.start_date)
                return OperationResult(
                    success=False,
                    message=f"{len(conflicts)} conflict(s) need a decision",
                    plan=plan,
                    program_id=program_id,
                    proposals=proposals,
                    conflicts=conflicts,
                )
            policy = default or "keep"

        return self._commit(plan, program_id, proposals, conflicts, snapshot, as_policy(policy))

    @_business_result
    def resolve_conflicts(
        self, program_id: str, resolution_map: ConflictResolutionMap
    ) -> OperationResult:
        """
        Finish a pending application with per-date replace/keep decisions.

        Projection and detection are re-run against a fresh snapshot, so
        dates that changed since the conflicts were shown are judged as
        they are now.  Conflicting dates missing from the map are kept.
        """
        pending = self._pending.get(program_id)
        if pending is None:
            raise ValidationError(f"No pending application for program {program_id}")
        policy = PerDate(dict(resolution_map))

        stored = self._require_plan(pending.plan_id)
        plan = self._with_start(stored, pending.start_date)
        self._check_templates(plan.template_ids_by_weekday)

        proposals = project(plan, plan.start_date)
        snapshot = self.calendar.snapshot()
        conflicts = detect(proposals, snapshot.get, program_id)
        return self._commit(plan, program_id, proposals, conflicts, snapshot, policy)

    def _commit(
        self,
        plan: CyclePlan,
        program_id: str,
        proposals: list[ProposedAssignment],
        conflicts: list[ConflictItem],
        snapshot: dict[str, ScheduledWorkout],
        policy: ResolutionPolicy,
    ) -> OperationResult:
        result = apply(
            proposals,
            conflicts,
            policy,
            program_id=program_id,
            program_name=plan.name,
            get_template=self.templates.get,
            existing_lookup=snapshot.get,
        )
        if result.cancelled:
            self._pending.pop(program_id, None)
            return OperationResult(
                success=False,
                message="Cancelled; nothing was scheduled",
                plan=plan,
                program_id=program_id,
                proposals=proposals,
                conflicts=conflicts,
                apply=result,
            )

        now = self.now()
        previous = self._require_plan(plan.id)
        applied_plan = timeline.mark_applied(plan, program_id, now)
        self.plans.save(applied_plan)
        try:
            self.calendar.commit(result.writes)
        except (OSError, ValidationError, ImmutableWorkoutError):
            self.plans.save(previous)
            raise
        self._record_usage(Counter(w.template_id for w in result.writes), now)
        self._pending.pop(program_id, None)

        logger.info(
            "Applied plan %s as %s: %d written, %d replaced, %d kept, %d locked",
            plan.id, program_id, result.applied, len(result.replaced),
            result.kept, len(result.locked),
        )
        message = f"Scheduled {result.applied} workout(s)"
        if result.skipped:
            message += f", kept {result.kept} existing"
        if result.locked:
            message += f" ({len(result.locked)} locked)"
        return OperationResult(
            success=True,
            message=message,
            plan=applied_plan,
            program_id=program_id,
            proposals=proposals,
            conflicts=conflicts,
            apply=result,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @_business_result
    def pause(self, plan_id: str, resume_date: str) -> OperationResult:
        plan = timeline.pause(self._require_plan(plan_id), resume_date, self.today(), self.now())
        self.plans.save(plan)
        return OperationResult(
            success=True, message=f"Paused '{plan.name}' until {resume_date}", plan=plan
        )

    @_business_result
    def resume(self, plan_id: str) -> OperationResult:
        plan = timeline.resume(self._require_plan(plan_id), self.today(), self.now())
        self.plans.save(plan)
        return OperationResult(success=True, message=f"Resumed '{plan.name}'", plan=plan)

    @_business_result
    def end(self, plan_id: str) -> OperationResult:
        plan = timeline.end(self._require_plan(plan_id), self.today(), self.now())
        self.plans.save(plan)
        return OperationResult(success=True, message=f"Ended '{plan.name}'", plan=plan)

    @_business_result
    def delete(self, plan_id: str) -> OperationResult:
        """Remove the plan record.  Calendar rows keep their program id and name."""
        plan = self._require_plan(plan_id)
        self.plans.delete(plan_id)
        for program_id in [k for k, v in self._pending.items() if v.plan_id == plan_id]:
            del self._pending[program_id]
        kept = len(self.calendar.list_by_program_id(plan.program_id)) if plan.program_id else 0
        return OperationResult(
            success=True,
            message=f"Deleted '{plan.name}'; {kept} scheduled workout(s) kept in history",
            plan=plan,
            program_id=plan.program_id,
        )

    @_business_result
    def repeat(
        self,
        plan_id: str,
        start_date: str | None = None,
        policy: "ResolutionPolicy | str | dict[str, str] | None" = None,
    ) -> OperationResult:
        """
        Start the plan again from ``start_date`` (default today).

        A new plan record with the same mapping and duration is created and
        applied, which gives it a new program id.  The record is kept while
        its conflicts wait for ``resolve_conflicts`` and removed again when
        the apply is cancelled or fails.
        """
        source = self._require_plan(plan_id)
        start = start_date or self.today()
        try:
            validate_iso_date(start)
        except ValueError as e:
            raise ValidationError(str(e)) from e

        repeated = timeline.repeat_plan(source, start, self.new_id(PLAN_ID_PREFIX), self.now())
        self.plans.save(repeated)
        result = self.apply_plan(repeated.id, policy=policy)
        if result.success:
            return result
        if result.program_id in self._pending:
            result.plan = result.plan or repeated
        else:
            self.plans.delete(repeated.id)
            result.plan = None
        return result

    # ------------------------------------------------------------------
    # Single-day extraction / manual scheduling
    # ------------------------------------------------------------------

    @_business_result
    def extract_day(self, plan_id: str, weekday: int) -> OperationResult:
        plan = self._require_plan(plan_id)
        template_id = extract_template_for_weekday(plan, weekday)
        if template_id is None:
            return OperationResult(success=False, message="That weekday is a rest day", plan=plan)
        return OperationResult(success=True, plan=plan, template_id=template_id)

    @_business_result
    def schedule_workout(
        self,
        date: str,
        template_id: str,
        resolution: CycleConflictResolution | None = None,
    ) -> OperationResult:
        """
        Put one manual workout on ``date``.

        An occupied date is reported as a conflict unless ``resolution`` is
        "replace"; a locked or completed workout is never replaced.
        """
        try:
            validate_iso_date(date)
        except ValueError as e:
            raise ValidationError(str(e)) from e
        if resolution not in (None, "replace", "keep", "cancel"):
            raise ValidationError(f"Invalid resolution: {resolution!r}")
        template = self.templates.find(template_id)
        if template is None:
            raise ValidationError(f"Unknown template: {template_id}")

        existing = self.calendar.get_by_date(date)
        if existing is not None:
            conflict = ConflictItem(date=date, existing=existing, proposed_template_id=template_id)
            if existing.is_immutable:
                return OperationResult(
                    success=False,
                    message=f"{date} holds a locked workout and cannot be replaced",
                    conflicts=[conflict],
                )
            if resolution != "replace":
                return OperationResult(
                    success=False,
                    message=f"{date} already has '{existing.title_snapshot}'",
                    conflicts=[conflict],
                )

        workout = ScheduledWorkout(
            id=self.new_id(WORKOUT_ID_PREFIX),
            date=date,
            template_id=template.id,
            title_snapshot=template.name,
            exercises_snapshot=copy.deepcopy(template.exercises),
            source="manual",
        )
        self.calendar.upsert(workout)
        self._record_usage({template.id: 1}, self.now())
        return OperationResult(
            success=True, message=f"Scheduled '{template.name}' on {date}", workout=workout
        )

    def schedule_extracted_day(
        self,
        plan_id: str,
        weekday: int,
        date: str,
        resolution: CycleConflictResolution | None = None,
    ) -> OperationResult:
        """Schedule one weekday of a plan as a standalone manual workout."""
        extracted = self.extract_day(plan_id, weekday)
        if not extracted.success:
            return extracted
        return self.schedule_workout(date, extracted.template_id, resolution)  # type: ignore[arg-type]

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @_business_result
    def plan_status(self, plan_id: str) -> OperationResult:
        plan = self._require_plan(plan_id)
        summary = timeline.summarize(plan, self.today())
        return OperationResult(
            success=True, plan=plan, program_id=plan.program_id, summary=summary
        )

    def history_for_program(self, program_id: str) -> list[ScheduledWorkout]:
        return self.calendar.list_by_program_id(program_id)

    def pending_program_ids(self) -> list[str]:
        return list(self._pending)
