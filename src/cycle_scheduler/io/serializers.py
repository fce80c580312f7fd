"""
JSON serialization for scheduling data models.

Handles conversion between dataclasses and JSON-compatible dicts.  Every
``dict_to_*`` function raises ValidationError for malformed input so the
stores can report which record is broken.
"""

import re
from typing import Any

from ..core.config import WEEKDAY_NAMES, WEEKDAY_SHORT
from ..core.dates import validate_iso_date
from ..core.errors import ValidationError
from ..core.models import (
    CyclePlan,
    PauseInterval,
    ScheduledWorkout,
    TemplateExercise,
    WorkoutTemplate,
)

__all__ = [
    "ValidationError",
    "cycle_plan_to_dict",
    "dict_to_cycle_plan",
    "dict_to_scheduled_workout",
    "dict_to_template_exercise",
    "dict_to_workout_template",
    "parse_decisions",
    "parse_exercise_spec",
    "parse_weekday",
    "parse_weekday_assignments",
    "parse_weekday_mapping",
    "scheduled_workout_to_dict",
    "template_exercise_to_dict",
    "workout_template_to_dict",
]


def _build(factory, what: str):
    """Call a dataclass constructor, turning field errors into ValidationError."""
    try:
        return factory()
    except KeyError as e:
        raise ValidationError(f"Missing field {e} in {what}") from e
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid {what}: {e}") from e


def template_exercise_to_dict(exercise: TemplateExercise) -> dict[str, Any]:
    """
    Convert TemplateExercise to JSON-compatible dict.

    Optional fields are omitted when unset to keep files compact.
    """
    d: dict[str, Any] = {
        "exercise_id": exercise.exercise_id,
        "sets": exercise.sets,
        "reps": exercise.reps,
    }
    if exercise.weight_kg is not None:
        d["weight_kg"] = exercise.weight_kg
    if exercise.rest_seconds is not None:
        d["rest_seconds"] = exercise.rest_seconds
    return d


def dict_to_template_exercise(data: dict[str, Any]) -> TemplateExercise:
    reps = data.get("reps", 0)
    return _build(
        lambda: TemplateExercise(
            exercise_id=data["exercise_id"],
            sets=int(data["sets"]),
            reps=reps if isinstance(reps, str) else int(reps),
            weight_kg=float(data["weight_kg"]) if data.get("weight_kg") is not None else None,
            rest_seconds=int(data["rest_seconds"]) if data.get("rest_seconds") is not None else None,
        ),
        "exercise",
    )


def workout_template_to_dict(template: WorkoutTemplate) -> dict[str, Any]:
    return {
        "id": template.id,
        "name": template.name,
        "exercises": [template_exercise_to_dict(e) for e in template.exercises],
        "created_at": template.created_at,
        "updated_at": template.updated_at,
        "last_used_at": template.last_used_at,
        "usage_count": template.usage_count,
    }


def dict_to_workout_template(data: dict[str, Any]) -> WorkoutTemplate:
    """
    Convert dict to WorkoutTemplate.

    Raises:
        ValidationError: If data is invalid
    """
    exercises = [dict_to_template_exercise(e) for e in data.get("exercises", [])]
    return _build(
        lambda: WorkoutTemplate(
            id=data["id"],
            name=data["name"],
            exercises=exercises,
            created_at=data.get("created_at", ""),
            updated_at=data.get("updated_at", ""),
            last_used_at=data.get("last_used_at"),
            usage_count=int(data.get("usage_count", 0)),
        ),
        "template",
    )


def parse_weekday_mapping(raw: dict[Any, Any]) -> dict[int, str]:
    """
    Convert a weekday mapping with string keys (as JSON stores them) to ints.

    Raises:
        ValidationError: If a key is not an integer weekday 0-6
    """
    mapping: dict[int, str] = {}
    for key, template_id in raw.items():
        try:
            weekday = int(key)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Invalid weekday key: {key!r}") from e
        if not 0 <= weekday <= 6:
            raise ValidationError(f"Invalid weekday key: {key!r}. Must be 0-6")
        if template_id:
            mapping[weekday] = str(template_id)
    return mapping


def cycle_plan_to_dict(plan: CyclePlan) -> dict[str, Any]:
    """
    Convert CyclePlan to JSON-compatible dict.

    Weekday keys become strings because JSON object keys must be strings.
    """
    return {
        "id": plan.id,
        "name": plan.name,
        "template_ids_by_weekday": {
            str(day): tid for day, tid in sorted(plan.template_ids_by_weekday.items())
        },
        "weeks": plan.weeks,
        "start_date": plan.start_date,
        "active": plan.active,
        "archived_at": plan.archived_at,
        "paused_at": plan.paused_at,
        "paused_until": plan.paused_until,
        "pause_history": [
            {"paused_at": p.paused_at, "resumed_at": p.resumed_at}
            for p in plan.pause_history
        ],
        "program_id": plan.program_id,
        "ended_at": plan.ended_at,
        "created_at": plan.created_at,
        "updated_at": plan.updated_at,
        "last_used_at": plan.last_used_at,
        "usage_count": plan.usage_count,
    }


def dict_to_cycle_plan(data: dict[str, Any]) -> CyclePlan:
    """
    Convert dict to CyclePlan.

    Raises:
        ValidationError: If data is invalid
    """
    mapping = parse_weekday_mapping(data.get("template_ids_by_weekday", {}))
    history = [
        _build(
            lambda p=p: PauseInterval(paused_at=p["paused_at"], resumed_at=p["resumed_at"]),
            "pause interval",
        )
        for p in data.get("pause_history", [])
    ]
    return _build(
        lambda: CyclePlan(
            id=data["id"],
            name=data["name"],
            template_ids_by_weekday=mapping,
            weeks=int(data["weeks"]),
            start_date=data["start_date"],
            active=bool(data.get("active", True)),
            archived_at=data.get("archived_at"),
            paused_at=data.get("paused_at"),
            paused_until=data.get("paused_until"),
            pause_history=history,
            program_id=data.get("program_id"),
            ended_at=data.get("ended_at"),
            created_at=data.get("created_at", ""),
            updated_at=data.get("updated_at", ""),
            last_used_at=data.get("last_used_at"),
            usage_count=int(data.get("usage_count", 0)),
        ),
        "plan",
    )


def scheduled_workout_to_dict(workout: ScheduledWorkout) -> dict[str, Any]:
    return {
        "id": workout.id,
        "date": workout.date,
        "template_id": workout.template_id,
        "title_snapshot": workout.title_snapshot,
        "exercises_snapshot": [template_exercise_to_dict(e) for e in workout.exercises_snapshot],
        "source": workout.source,
        "program_id": workout.program_id,
        "program_name": workout.program_name,
        "week_index": workout.week_index,
        "day_index": workout.day_index,
        "status": workout.status,
        "is_locked": workout.is_locked,
        "started_at": workout.started_at,
        "completed_at": workout.completed_at,
        "notes": workout.notes,
    }


def dict_to_scheduled_workout(data: dict[str, Any]) -> ScheduledWorkout:
    """
    Convert dict to ScheduledWorkout.

    Raises:
        ValidationError: If data is invalid
    """
    snapshot = [dict_to_template_exercise(e) for e in data.get("exercises_snapshot", [])]
    return _build(
        lambda: ScheduledWorkout(
            id=data["id"],
            date=data["date"],
            template_id=data["template_id"],
            title_snapshot=data.get("title_snapshot", ""),
            exercises_snapshot=snapshot,
            source=data.get("source", "manual"),
            program_id=data.get("program_id"),
            program_name=data.get("program_name"),
            week_index=data.get("week_index"),
            day_index=data.get("day_index"),
            status=data.get("status", "planned"),
            is_locked=bool(data.get("is_locked", False)),
            started_at=data.get("started_at"),
            completed_at=data.get("completed_at"),
            notes=data.get("notes"),
        ),
        "scheduled workout",
    )


# ---------------------------------------------------------------------------
# Compact text formats (CLI input)
# ---------------------------------------------------------------------------

_EXERCISE_SPEC_RE = re.compile(
    r"^(?P<exercise>[A-Za-z0-9_\-]+)\s+"
    r"(?P<sets>\d+)\s*[xX×]\s*(?P<reps>[0-9]+(?:-[0-9]+)?|AMRAP|amrap)"
    r"(?:\s*\+\s*(?P<weight>[0-9]+(?:\.[0-9]+)?)\s*kg)?"
    r"(?:\s*/\s*(?P<rest>\d+)\s*s)?\s*$"
)

_WEEKDAY_ALIASES: dict[str, int] = {
    name.lower(): i for i, name in enumerate(WEEKDAY_NAMES)
} | {
    short.lower(): i for i, short in enumerate(WEEKDAY_SHORT)
}


def parse_exercise_spec(s: str) -> TemplateExercise:
    """
    Parse a compact exercise prescription.

    Format: ``EXERCISE SETSxREPS [+Wkg] [/ Rs]``; REPS may be a number, a
    range such as "8-10", or "AMRAP".

    Examples:
        "squat 5x5 +100kg / 180s"  → 5 sets of 5 reps at 100 kg, 180 s rest
        "pull_up 3x8-10"           → 3 sets of 8-10 reps
        "plank 3xAMRAP / 60s"      → 3 sets to failure, 60 s rest

    Raises:
        ValidationError: If the text does not match the format
    """
    m = _EXERCISE_SPEC_RE.match(s.strip())
    if m is None:
        raise ValidationError(
            f"Invalid exercise: {s!r}. Expected e.g. 'squat 5x5 +100kg / 180s'"
        )
    reps_text = m.group("reps")
    reps: int | str = int(reps_text) if reps_text.isdigit() else reps_text.upper()
    return _build(
        lambda: TemplateExercise(
            exercise_id=m.group("exercise"),
            sets=int(m.group("sets")),
            reps=reps,
            weight_kg=float(m.group("weight")) if m.group("weight") else None,
            rest_seconds=int(m.group("rest")) if m.group("rest") else None,
        ),
        "exercise",
    )


def parse_weekday(token: str) -> int:
    """
    Parse a weekday given as 0-6 (0=Sunday) or an English name ("mon", "Friday").

    Raises:
        ValidationError: If the token is not a weekday
    """
    key = token.strip().lower()
    if key.isdigit():
        weekday = int(key)
        if 0 <= weekday <= 6:
            return weekday
    elif key in _WEEKDAY_ALIASES:
        return _WEEKDAY_ALIASES[key]
    raise ValidationError(f"Invalid weekday: {token!r}. Use 0-6 (0=Sunday) or a name like 'mon'")


def parse_weekday_assignments(items: list[str]) -> dict[int, str]:
    """
    Parse ``DAY=TEMPLATE_ID`` pairs into a weekday mapping.

    Example: ["mon=push", "wed=pull", "5=legs"] → {1: "push", 3: "pull", 5: "legs"}

    Raises:
        ValidationError: If a pair is malformed or a weekday appears twice
    """
    mapping: dict[int, str] = {}
    for item in items:
        day, sep, template_id = item.partition("=")
        if not sep or not template_id.strip():
            raise ValidationError(f"Invalid day assignment: {item!r}. Expected DAY=TEMPLATE_ID")
        weekday = parse_weekday(day)
        if weekday in mapping:
            raise ValidationError(f"Weekday {day.strip()!r} assigned twice")
        mapping[weekday] = template_id.strip()
    return mapping


def parse_decisions(replace: list[str], keep: list[str]) -> dict[str, str]:
    """
    Build a per-date resolution map from lists of dates to replace and keep.

    Raises:
        ValidationError: If a date is malformed or listed under both
    """
    decisions: dict[str, str] = {}
    for decision, dates in (("replace", replace), ("keep", keep)):
        for date in dates:
            try:
                validate_iso_date(date)
            except ValueError as e:
                raise ValidationError(str(e)) from e
            if date in decisions:
                raise ValidationError(f"{date} is listed as both replace and keep")
            decisions[date] = decision
    return decisions
