"""
Conflict resolution and the batch applier.

A resolution policy comes in two call shapes:

- ``Uniform("replace" | "keep" | "cancel")``: one decision for a whole-plan apply
- ``PerDate({date: "replace" | "keep"})``: a shown conflict list resolved row by row

Both are reduced to a single ``date -> decision`` function before the
applier branches, so the replace/keep semantics live in one place.

Immutability overrides user intent everywhere: a conflicting date whose
existing workout is locked or completed is always skipped, whatever the
policy says.  This is reported in the result, never raised.
"""

import copy
import logging
from dataclasses import dataclass, field
from typing import Callable, Sequence, Union

from .config import (
    DEFAULT_PER_DATE_DECISION,
    PER_DATE_DECISIONS,
    UNIFORM_RESOLUTIONS,
    WORKOUT_ID_PREFIX,
)
from .errors import ValidationError
from .models import (
    ApplyResult,
    ConflictItem,
    ConflictResolutionMap,
    CycleConflictResolution,
    ProposedAssignment,
    ScheduledWorkout,
    WorkoutTemplate,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Uniform:
    """Same decision for every conflicting date of a whole-plan apply."""

    resolution: CycleConflictResolution

    def __post_init__(self) -> None:
        if self.resolution not in UNIFORM_RESOLUTIONS:
            raise ValidationError(
                f"Invalid resolution: {self.resolution!r}. Must be one of {UNIFORM_RESOLUTIONS}"
            )


@dataclass(frozen=True)
class PerDate:
    """Independent replace/keep decision per conflicting date."""

    decisions: ConflictResolutionMap = field(default_factory=dict)

    def __post_init__(self) -> None:
        for date, decision in self.decisions.items():
            if decision not in PER_DATE_DECISIONS:
                raise ValidationError(
                    f"Invalid decision for {date}: {decision!r}. "
                    f"Must be one of {PER_DATE_DECISIONS}"
                )


ResolutionPolicy = Union[Uniform, PerDate]


def as_policy(value: "ResolutionPolicy | str | dict[str, str]") -> ResolutionPolicy:
    """
    Normalise a bare resolution string or date map into a policy variant.

    Raises:
        ValidationError: If the value is not a known resolution shape
    """
    if isinstance(value, (Uniform, PerDate)):
        return value
    if isinstance(value, str):
        return Uniform(value)
    if isinstance(value, dict):
        return PerDate(dict(value))
    raise ValidationError(f"Unsupported resolution policy: {value!r}")


def decision_function(policy: ResolutionPolicy) -> Callable[[str], str]:
    """
    Reduce a policy to ``date -> "replace" | "keep" | "cancel"``.

    Dates missing from a per-date map keep the existing workout.
    """
    if isinstance(policy, Uniform):
        return lambda _date: policy.resolution
    decisions = policy.decisions
    return lambda date: decisions.get(date, DEFAULT_PER_DATE_DECISION)


def workout_id(program_id: str, date: str) -> str:
    return f"{WORKOUT_ID_PREFIX}-{program_id}-{date}"


def build_cycle_workout(
    proposal: ProposedAssignment,
    template: WorkoutTemplate,
    program_id: str,
    program_name: str,
) -> ScheduledWorkout:
    """
    Create a fresh cycle-sourced calendar row for one proposal.

    The template's title and exercises are deep-copied so later edits to the
    template do not reach back into the calendar.
    """
    return ScheduledWorkout(
        id=workout_id(program_id, proposal.date),
        date=proposal.date,
        template_id=template.id,
        title_snapshot=template.name,
        exercises_snapshot=copy.deepcopy(template.exercises),
        source="cycle",
        program_id=program_id,
        program_name=program_name,
        week_index=proposal.week_index,
        day_index=proposal.day_index,
        status="planned",
        is_locked=False,
    )


def apply(
    proposals: Sequence[ProposedAssignment],
    conflicts: Sequence[ConflictItem],
    policy: "ResolutionPolicy | str | dict[str, str]",
    *,
    program_id: str,
    program_name: str,
    get_template: Callable[[str], WorkoutTemplate],
    existing_lookup: Callable[[str], "ScheduledWorkout | None"] | None = None,
) -> ApplyResult:
    """
    Decide the final set of calendar writes for one plan application.

    Args:
        proposals: Projected slots, in chronological order
        conflicts: Output of ``conflicts.detect`` for the same proposals,
            computed from the same snapshot
        policy: Uniform resolution, per-date map, or a bare string/dict
        program_id: Stamp shared by every write of this call
        program_name: Plan name copied onto every write
        get_template: Template lookup used only to build snapshots
        existing_lookup: Same snapshot lookup used for detection; lets the
            applier leave alone immutable rows of the program being re-applied

    Returns:
        ApplyResult listing writes and skipped dates.  Nothing is committed
        here; the caller commits ``writes`` as one batch.

    Raises:
        ValidationError: If the policy is malformed, a per-date map contains
            "cancel", or a proposal references an unknown template
    """
    policy = as_policy(policy)
    result = ApplyResult()

    if isinstance(policy, Uniform) and policy.resolution == "cancel":
        result.cancelled = True
        logger.info("Application %s cancelled; no writes", program_id)
        return result

    decide = decision_function(policy)
    conflicts_by_date = {c.date: c for c in conflicts}
    templates: dict[str, WorkoutTemplate] = {}

    for proposal in proposals:
        conflict = conflicts_by_date.get(proposal.date)

        if conflict is not None:
            if conflict.is_locked:
                result.skipped.append(proposal.date)
                result.locked.append(proposal.date)
                logger.warning(
                    "Keeping locked workout on %s (policy asked for %s)",
                    proposal.date, decide(proposal.date),
                )
                continue
            if decide(proposal.date) != "replace":
                result.skipped.append(proposal.date)
                continue
            result.replaced.append(proposal.date)
        elif existing_lookup is not None:
            # Own row from an earlier run of the same application
            own = existing_lookup(proposal.date)
            if own is not None and own.is_immutable:
                result.skipped.append(proposal.date)
                result.locked.append(proposal.date)
                continue

        if proposal.template_id not in templates:
            try:
                templates[proposal.template_id] = get_template(proposal.template_id)
            except KeyError as e:
                raise ValidationError(
                    f"Unknown template {proposal.template_id!r} for {proposal.date}"
                ) from e
        result.writes.append(
            build_cycle_workout(
                proposal, templates[proposal.template_id], program_id, program_name
            )
        )

    logger.debug(
        "Resolved %d proposal(s) for %s: %d write(s), %d replaced, %d skipped, %d locked",
        len(proposals), program_id, result.applied, len(result.replaced),
        result.kept, len(result.locked),
    )
    return result
