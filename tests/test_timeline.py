"""
Unit tests for the plan lifecycle and derived timeline facts.

Reference plan: 6 weeks starting Monday 2024-01-01, nominal end 2024-02-12.
Hand-computed values are noted beside each assertion.
"""

import pytest

from cycle_scheduler.core import timeline
from cycle_scheduler.core.errors import PlanStateError, ValidationError
from cycle_scheduler.core.models import CyclePlan, PauseInterval

NOW = "2024-01-01T09:00:00"


def _applied_plan() -> CyclePlan:
    plan = CyclePlan(
        id="cp-ppl",
        name="PPL",
        template_ids_by_weekday={1: "push", 3: "pull", 5: "legs"},
        weeks=6,
        start_date="2024-01-01",
        created_at=NOW,
        updated_at=NOW,
    )
    return timeline.mark_applied(plan, "prog-1", NOW)


class TestDerivedFacts:

    def test_nominal_end_date(self):
        assert timeline.nominal_end_date(_applied_plan()) == "2024-02-12"

    def test_pause_shifts_effective_end_by_gap(self):
        """Pause 2024-01-11 -> 2024-01-16 is 5 days: 2024-02-12 + 5 = 2024-02-17."""
        plan = timeline.pause(_applied_plan(), "2024-01-16", "2024-01-11", NOW)

        assert timeline.effective_end_date(plan) == "2024-02-17"
        assert timeline.nominal_end_date(plan) == "2024-02-12"

    def test_week_freezes_while_paused(self):
        plan = timeline.pause(_applied_plan(), "2024-01-16", "2024-01-11", NOW)

        # 2024-01-11: 10 days elapsed -> week 2
        assert timeline.week_progress(plan, "2024-01-11").current_week == 2
        # 2024-01-14: 13 days elapsed, 3 paused -> still week 2
        assert timeline.week_progress(plan, "2024-01-14").current_week == 2
        # 2024-01-16: 15 elapsed, 5 paused -> still week 2
        assert timeline.week_progress(plan, "2024-01-16").current_week == 2
        # 2024-01-19: 18 elapsed, 5 paused -> 13 -> week 2; 2024-01-20 -> week 3
        assert timeline.week_progress(plan, "2024-01-20").current_week == 3

    def test_week_progress_is_clamped(self):
        plan = _applied_plan()
        assert timeline.week_progress(plan, "2023-12-01").current_week == 1
        assert timeline.week_progress(plan, "2025-01-01").current_week == 6
        assert timeline.week_progress(plan, "2024-01-01").total_weeks == 6

    def test_pauses_accumulate(self):
        """3-day pause resumed early, then a 2-day pause: end moves by 5 days."""
        plan = timeline.pause(_applied_plan(), "2024-01-16", "2024-01-11", NOW)
        plan = timeline.resume(plan, "2024-01-14", NOW)

        assert plan.pause_history == [PauseInterval("2024-01-11", "2024-01-14")]
        assert timeline.effective_end_date(plan) == "2024-02-15"

        plan = timeline.pause(plan, "2024-01-22", "2024-01-20", NOW)
        assert timeline.effective_end_date(plan) == "2024-02-17"
        assert timeline.total_paused_days(plan, "2024-01-25") == 5

    def test_summary(self):
        plan = timeline.pause(_applied_plan(), "2024-01-16", "2024-01-11", NOW)
        summary = timeline.summarize(plan, "2024-01-12")

        assert summary.state == "paused"
        assert summary.start_date == "2024-01-01"
        assert summary.effective_end_date == "2024-02-17"
        assert summary.total_paused_days == 1
        assert summary.progress.current_week == 2


class TestStates:

    def test_unapplied_plan_is_none(self):
        plan = CyclePlan(
            id="cp-x", name="X", template_ids_by_weekday={}, weeks=1, start_date="2024-01-01"
        )
        assert timeline.plan_state(plan, "2024-01-01") == "none"

    def test_applied_plan_is_active(self):
        plan = _applied_plan()
        assert timeline.plan_state(plan, "2024-01-05") == "active"
        assert plan.usage_count == 1
        assert plan.last_used_at == NOW

    def test_expired_pause_reads_as_active(self):
        plan = timeline.pause(_applied_plan(), "2024-01-16", "2024-01-11", NOW)
        assert timeline.plan_state(plan, "2024-01-15") == "paused"
        assert timeline.plan_state(plan, "2024-01-16") == "active"

    def test_ended_plan(self):
        plan = timeline.end(_applied_plan(), "2024-01-20", NOW)
        assert timeline.plan_state(plan, "2024-01-20") == "ended"
        assert plan.ended_at == "2024-01-20"
        assert not plan.active


class TestTransitions:

    def test_pause_requires_future_resume_date(self):
        with pytest.raises(ValidationError):
            timeline.pause(_applied_plan(), "2024-01-11", "2024-01-11", NOW)
        with pytest.raises(ValidationError):
            timeline.pause(_applied_plan(), "2024-01-20x", "2024-01-11", NOW)

    def test_pause_requires_active_plan(self):
        plan = timeline.pause(_applied_plan(), "2024-01-16", "2024-01-11", NOW)
        with pytest.raises(PlanStateError):
            timeline.pause(plan, "2024-01-20", "2024-01-12", NOW)

        ended = timeline.end(_applied_plan(), "2024-01-11", NOW)
        with pytest.raises(PlanStateError):
            timeline.pause(ended, "2024-01-20", "2024-01-12", NOW)

    def test_pause_after_expired_pause_folds_it_into_history(self):
        plan = timeline.pause(_applied_plan(), "2024-01-16", "2024-01-11", NOW)
        plan = timeline.pause(plan, "2024-01-25", "2024-01-20", NOW)

        assert plan.pause_history == [PauseInterval("2024-01-11", "2024-01-16")]
        assert (plan.paused_at, plan.paused_until) == ("2024-01-20", "2024-01-25")

    def test_resume_requires_pause(self):
        with pytest.raises(PlanStateError):
            timeline.resume(_applied_plan(), "2024-01-11", NOW)

    def test_end_closes_open_pause(self):
        plan = timeline.pause(_applied_plan(), "2024-01-16", "2024-01-11", NOW)
        plan = timeline.end(plan, "2024-01-13", NOW)

        assert not plan.is_paused
        assert plan.pause_history == [PauseInterval("2024-01-11", "2024-01-13")]

    def test_end_requires_applied_plan(self):
        plan = CyclePlan(
            id="cp-x", name="X", template_ids_by_weekday={}, weeks=1, start_date="2024-01-01"
        )
        with pytest.raises(PlanStateError):
            timeline.end(plan, "2024-01-02", NOW)
        ended = timeline.end(_applied_plan(), "2024-01-02", NOW)
        with pytest.raises(PlanStateError):
            timeline.end(ended, "2024-01-03", NOW)

    def test_new_application_drops_previous_pauses(self):
        """Ended after a pause, then applied again under a new program id."""
        plan = timeline.pause(_applied_plan(), "2024-01-16", "2024-01-11", NOW)
        plan = timeline.end(plan, "2024-01-13", NOW)

        reapplied = timeline.mark_applied(plan, "prog-2", NOW)

        assert reapplied.pause_history == []
        assert not reapplied.is_paused
        assert timeline.effective_end_date(reapplied) == timeline.nominal_end_date(reapplied)

    def test_new_application_of_paused_plan_is_active(self):
        plan = timeline.pause(_applied_plan(), "2024-02-20", "2024-01-11", NOW)

        reapplied = timeline.mark_applied(plan, "prog-2", NOW)

        assert timeline.plan_state(reapplied, "2024-01-12") == "active"

    def test_same_program_reapply_keeps_pause(self):
        plan = timeline.pause(_applied_plan(), "2024-01-16", "2024-01-11", NOW)

        reapplied = timeline.mark_applied(plan, "prog-1", NOW)

        assert (reapplied.paused_at, reapplied.paused_until) == ("2024-01-11", "2024-01-16")
        assert timeline.plan_state(reapplied, "2024-01-12") == "paused"

    def test_archived_plan_cannot_be_applied(self):
        archived = timeline.archive(_applied_plan(), NOW)
        with pytest.raises(PlanStateError):
            timeline.mark_applied(archived, "prog-2", NOW)

    def test_repeat_builds_clean_copy(self):
        plan = timeline.pause(_applied_plan(), "2024-01-16", "2024-01-11", NOW)
        repeated = timeline.repeat_plan(plan, "2024-03-04", "cp-new", NOW)

        assert repeated.id == "cp-new"
        assert repeated.start_date == "2024-03-04"
        assert repeated.template_ids_by_weekday == plan.template_ids_by_weekday
        assert repeated.weeks == 6
        assert repeated.program_id is None
        assert repeated.pause_history == []
        assert not repeated.is_paused
