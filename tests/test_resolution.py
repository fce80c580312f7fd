"""
Unit tests for conflict resolution policies and the batch applier.

Calendar used by most tests (plan: Mon/Wed/Fri over 2 weeks from 2024-01-01):
  2024-01-03  manual "Yoga" (unlocked)     -> conflict
  2024-01-10  manual "Race" (completed)    -> conflict, locked
"""

import pytest

from cycle_scheduler.core.conflicts import detect
from cycle_scheduler.core.errors import ValidationError
from cycle_scheduler.core.models import (
    CyclePlan,
    ScheduledWorkout,
    TemplateExercise,
    WorkoutTemplate,
)
from cycle_scheduler.core.projector import project
from cycle_scheduler.core.resolution import (
    PerDate,
    Uniform,
    apply,
    as_policy,
    decision_function,
    workout_id,
)


# ===========================================================================
# Helpers
# ===========================================================================

TEMPLATES = {
    "push": WorkoutTemplate(
        id="push",
        name="Push",
        exercises=[TemplateExercise("bench", 4, 8, weight_kg=60.0, rest_seconds=120)],
    ),
    "pull": WorkoutTemplate(id="pull", name="Pull", exercises=[TemplateExercise("row", 4, 10)]),
    "legs": WorkoutTemplate(id="legs", name="Legs", exercises=[TemplateExercise("squat", 5, 5)]),
}


def _plan() -> CyclePlan:
    return CyclePlan(
        id="cp-ppl",
        name="PPL",
        template_ids_by_weekday={1: "push", 3: "pull", 5: "legs"},
        weeks=2,
        start_date="2024-01-01",
    )


def _calendar() -> dict[str, ScheduledWorkout]:
    return {
        "2024-01-03": ScheduledWorkout(
            id="sw-yoga", date="2024-01-03", template_id="yoga", title_snapshot="Yoga"
        ),
        "2024-01-10": ScheduledWorkout(
            id="sw-race",
            date="2024-01-10",
            template_id="race",
            title_snapshot="Race",
            status="completed",
        ),
    }


def _run(policy, calendar=None, program_id="prog-1"):
    calendar = _calendar() if calendar is None else calendar
    proposals = project(_plan(), "2024-01-01")
    conflicts = detect(proposals, calendar.get, program_id)
    return apply(
        proposals,
        conflicts,
        policy,
        program_id=program_id,
        program_name="PPL",
        get_template=TEMPLATES.__getitem__,
        existing_lookup=calendar.get,
    )


# ===========================================================================
# Policies
# ===========================================================================

class TestPolicies:

    def test_uniform_rejects_unknown_resolution(self):
        with pytest.raises(ValidationError):
            Uniform("overwrite")

    def test_per_date_rejects_cancel(self):
        with pytest.raises(ValidationError):
            PerDate({"2024-01-03": "cancel"})

    def test_as_policy_normalises_strings_and_maps(self):
        assert as_policy("keep") == Uniform("keep")
        assert as_policy({"2024-01-03": "replace"}) == PerDate({"2024-01-03": "replace"})
        with pytest.raises(ValidationError):
            as_policy(42)  # type: ignore[arg-type]

    def test_missing_per_date_entry_defaults_to_keep(self):
        decide = decision_function(PerDate({"2024-01-03": "replace"}))
        assert decide("2024-01-03") == "replace"
        assert decide("2024-01-05") == "keep"


# ===========================================================================
# Applier
# ===========================================================================

class TestApply:

    def test_replace_overwrites_unlocked_but_never_locked(self):
        result = _run("replace")

        written = [w.date for w in result.writes]
        assert "2024-01-03" in written
        assert "2024-01-10" not in written
        assert result.replaced == ["2024-01-03"]
        assert result.skipped == ["2024-01-10"]
        assert result.locked == ["2024-01-10"]
        assert result.applied == 5

    def test_keep_leaves_all_conflicts(self):
        result = _run("keep")

        assert result.applied == 4
        assert result.skipped == ["2024-01-03", "2024-01-10"]
        assert result.locked == ["2024-01-10"]
        assert result.replaced == []

    def test_replace_turns_manual_row_into_cycle_row(self):
        calendar = {"2024-01-03": _calendar()["2024-01-03"]}
        result = _run("replace", calendar=calendar)

        row = next(w for w in result.writes if w.date == "2024-01-03")
        assert row.source == "cycle"
        assert row.template_id == "pull"
        assert result.applied == 6

    def test_locked_row_skipped_while_others_follow_policy(self):
        calendar = {
            "2024-01-03": _calendar()["2024-01-03"],
            "2024-01-05": ScheduledWorkout(
                id="sw-locked",
                date="2024-01-05",
                template_id="run",
                title_snapshot="Run",
                is_locked=True,
            ),
        }

        result = _run("replace", calendar=calendar)

        assert result.skipped == ["2024-01-05"]
        assert result.replaced == ["2024-01-03"]
        assert [w.date for w in result.writes] == [
            "2024-01-01", "2024-01-03", "2024-01-08", "2024-01-10", "2024-01-12",
        ]

    def test_cancel_writes_nothing(self):
        result = _run("cancel")
        assert result.cancelled
        assert result.writes == []

    def test_per_date_replace_on_locked_date_is_still_skipped(self):
        result = _run(PerDate({"2024-01-03": "keep", "2024-01-10": "replace"}))

        written = [w.date for w in result.writes]
        assert "2024-01-03" not in written
        assert "2024-01-10" not in written
        assert result.locked == ["2024-01-10"]

    def test_writes_share_program_id_and_carry_metadata(self):
        result = _run("keep", calendar={})

        assert {w.program_id for w in result.writes} == {"prog-1"}
        first = result.writes[0]
        assert first.id == workout_id("prog-1", "2024-01-01") == "sw-prog-1-2024-01-01"
        assert first.source == "cycle"
        assert first.program_name == "PPL"
        assert (first.week_index, first.day_index) == (1, 1)
        assert first.status == "planned"
        assert not first.is_locked

    def test_snapshot_is_a_deep_copy(self):
        result = _run("keep", calendar={})

        push = next(w for w in result.writes if w.template_id == "push")
        assert push.title_snapshot == "Push"
        assert push.exercises_snapshot == TEMPLATES["push"].exercises
        assert push.exercises_snapshot[0] is not TEMPLATES["push"].exercises[0]

    def test_immutable_own_row_is_not_rewritten_on_reapply(self):
        """Re-applying the same program leaves its completed rows alone."""
        calendar = {
            "2024-01-01": ScheduledWorkout(
                id="sw-prog-1-2024-01-01",
                date="2024-01-01",
                template_id="push",
                title_snapshot="Push",
                source="cycle",
                program_id="prog-1",
                program_name="PPL",
                week_index=1,
                day_index=1,
                status="completed",
                is_locked=True,
            )
        }

        result = _run("replace", calendar=calendar, program_id="prog-1")

        assert "2024-01-01" not in [w.date for w in result.writes]
        assert result.locked == ["2024-01-01"]
        assert result.applied == 5

    def test_unknown_template_raises_validation_error(self):
        proposals = project(_plan(), "2024-01-01")
        with pytest.raises(ValidationError):
            apply(
                proposals,
                [],
                "keep",
                program_id="prog-1",
                program_name="PPL",
                get_template={}.__getitem__,
            )
