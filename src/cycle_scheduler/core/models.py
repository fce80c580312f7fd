"""
Data models for cycle-scheduler.

All core dataclasses representing templates, cycle plans, calendar entries,
and the intermediate values passed between projection, conflict detection
and resolution.  Dates are ISO strings (YYYY-MM-DD) throughout.
"""

from dataclasses import dataclass, field
from typing import Literal

from .config import MIN_PLAN_WEEKS
from .dates import validate_iso_date

WorkoutSource = Literal["manual", "cycle"]
WorkoutStatus = Literal["planned", "in_progress", "completed"]
ConflictDecision = Literal["replace", "keep"]
CycleConflictResolution = Literal["replace", "keep", "cancel"]
PlanState = Literal["none", "active", "paused", "ended"]

# date -> decision, used when a shown conflict list is resolved row by row
ConflictResolutionMap = dict[str, ConflictDecision]


@dataclass
class TemplateExercise:
    """
    One exercise prescription inside a workout template.

    ``reps`` is either a number or free text such as "8-10" or "AMRAP".
    """

    exercise_id: str
    sets: int
    reps: int | str
    weight_kg: float | None = None
    rest_seconds: int | None = None

    def __post_init__(self) -> None:
        if not self.exercise_id:
            raise ValueError("exercise_id must be non-empty")
        if self.sets < 1:
            raise ValueError("sets must be at least 1")
        if isinstance(self.reps, int) and self.reps < 0:
            raise ValueError("reps must be non-negative")
        if self.weight_kg is not None and self.weight_kg < 0:
            raise ValueError("weight_kg must be non-negative")
        if self.rest_seconds is not None and self.rest_seconds < 0:
            raise ValueError("rest_seconds must be non-negative")


@dataclass
class WorkoutTemplate:
    """
    A reusable workout definition.

    Templates are only read when a workout is written to the calendar; the
    calendar row keeps its own snapshot afterwards.
    """

    id: str
    name: str
    exercises: list[TemplateExercise] = field(default_factory=list)
    created_at: str = ""
    updated_at: str = ""
    last_used_at: str | None = None  # updates only when applied to the calendar
    usage_count: int = 0

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("template id must be non-empty")
        if not self.name.strip():
            raise ValueError("template name must be non-empty")
        if self.usage_count < 0:
            raise ValueError("usage_count must be non-negative")


@dataclass
class PauseInterval:
    """A completed pause: the plan was on hold from paused_at until resumed_at."""

    paused_at: str
    resumed_at: str

    def __post_init__(self) -> None:
        validate_iso_date(self.paused_at)
        validate_iso_date(self.resumed_at)
        if self.resumed_at < self.paused_at:
            raise ValueError(
                f"resumed_at {self.resumed_at} is before paused_at {self.paused_at}"
            )


@dataclass
class CyclePlan:
    """
    A reusable weekly blueprint spanning ``weeks`` weeks.

    ``template_ids_by_weekday`` maps weekday (0=Sunday .. 6=Saturday) to a
    template id.  Weekdays missing from the mapping are rest days.

    ``program_id`` is the stamp of the plan's current application; it is
    None until the plan has been applied for the first time.
    """

    id: str
    name: str
    template_ids_by_weekday: dict[int, str]
    weeks: int
    start_date: str
    active: bool = True
    archived_at: str | None = None
    paused_at: str | None = None
    paused_until: str | None = None
    pause_history: list[PauseInterval] = field(default_factory=list)
    program_id: str | None = None
    ended_at: str | None = None
    created_at: str = ""
    updated_at: str = ""
    last_used_at: str | None = None  # updates only when applied to the calendar
    usage_count: int = 0

    def __post_init__(self) -> None:
        """Validate plan invariants."""
        if not self.id:
            raise ValueError("plan id must be non-empty")
        if self.weeks < MIN_PLAN_WEEKS:
            raise ValueError(f"weeks must be at least {MIN_PLAN_WEEKS}, got {self.weeks}")
        validate_iso_date(self.start_date)

        for weekday, template_id in self.template_ids_by_weekday.items():
            if not isinstance(weekday, int) or not 0 <= weekday <= 6:
                raise ValueError(f"Invalid weekday key: {weekday!r}. Must be 0-6")
            if not template_id:
                raise ValueError(f"Empty template id for weekday {weekday}")

        if (self.paused_at is None) != (self.paused_until is None):
            raise ValueError("paused_at and paused_until must be set together")
        if self.paused_at is not None and self.paused_until is not None:
            validate_iso_date(self.paused_at)
            validate_iso_date(self.paused_until)
            if self.paused_at > self.paused_until:
                raise ValueError("paused_at must not be after paused_until")

    @property
    def is_paused(self) -> bool:
        """True while a pause is recorded (it may already have expired)."""
        return self.paused_at is not None and self.paused_until is not None

    @property
    def training_weekdays(self) -> list[int]:
        """Weekdays with a template, in Sunday-first order."""
        return sorted(self.template_ids_by_weekday)


@dataclass
class ScheduledWorkout:
    """
    One calendar entry.  The calendar holds at most one per date.

    Snapshots are copied from the template at assignment time so later
    template edits do not rewrite history.  ``is_locked`` is set by the
    execution layer once the workout is started and is independent of
    ``status``.
    """

    id: str
    date: str
    template_id: str
    title_snapshot: str
    exercises_snapshot: list[TemplateExercise] = field(default_factory=list)
    source: WorkoutSource = "manual"
    program_id: str | None = None
    program_name: str | None = None
    week_index: int | None = None
    day_index: int | None = None
    status: WorkoutStatus = "planned"
    is_locked: bool = False
    started_at: str | None = None
    completed_at: str | None = None
    notes: str | None = None

    def __post_init__(self) -> None:
        """Validate calendar entry data."""
        validate_iso_date(self.date)

        if self.source not in ("manual", "cycle"):
            raise ValueError(f"Invalid source: {self.source}")
        if self.status not in ("planned", "in_progress", "completed"):
            raise ValueError(f"Invalid status: {self.status}")

        if self.source == "manual" and (
            self.program_id is not None
            or self.week_index is not None
            or self.day_index is not None
        ):
            raise ValueError("manual workouts carry no program metadata")
        if self.week_index is not None and self.week_index < 1:
            raise ValueError("week_index is 1-based")
        if self.day_index is not None and not 0 <= self.day_index <= 6:
            raise ValueError(f"Invalid day_index: {self.day_index}")

    @property
    def is_immutable(self) -> bool:
        """Completed or locked rows can be read but never overwritten or deleted."""
        return self.is_locked or self.status == "completed"


@dataclass(frozen=True)
class ProposedAssignment:
    """One dated slot produced by projecting a plan."""

    date: str
    template_id: str
    week_index: int  # 1-based
    day_index: int  # weekday, 0=Sunday


@dataclass
class ConflictItem:
    """A proposed date already holding a workout from another source/program."""

    date: str
    existing: ScheduledWorkout
    proposed_template_id: str

    @property
    def is_locked(self) -> bool:
        return self.existing.is_immutable


@dataclass
class WeekProgress:
    """Read-only view of where the plan currently is."""

    current_week: int
    total_weeks: int


@dataclass
class ApplyResult:
    """
    Outcome of one Resolution Applier run.

    ``skipped`` lists every proposed date that was not written, whether the
    user chose to keep the existing row or the row is immutable; ``locked``
    is the subset protected by immutability.
    """

    writes: list[ScheduledWorkout] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    locked: list[str] = field(default_factory=list)
    replaced: list[str] = field(default_factory=list)
    cancelled: bool = False

    @property
    def applied(self) -> int:
        return len(self.writes)

    @property
    def kept(self) -> int:
        return len(self.skipped)
