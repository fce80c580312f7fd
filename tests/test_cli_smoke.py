"""
Minimal smoke tests for the cycle-scheduler CLI.

Tests basic functionality:
- App runs without errors
- Templates and plans can be created
- A plan can be previewed, applied and resolved
- Lifecycle commands run
- Calendar shows and records workouts
"""

import json
import logging
import tempfile
from pathlib import Path

import pytest
from typer.testing import CliRunner

from cycle_scheduler.cli.main import app


runner = CliRunner()


@pytest.fixture
def temp_data_dir(monkeypatch):
    """Create a temporary data directory and a HOME without user settings."""
    with tempfile.TemporaryDirectory() as tmpdir:
        monkeypatch.setenv("HOME", tmpdir)
        yield Path(tmpdir) / "data"


def _invoke(data_dir: Path, *args: str):
    return runner.invoke(app, [*args, "--data-dir", str(data_dir)])


def _setup_ppl(data_dir: Path) -> None:
    for tid, name, exercise in [
        ("push", "Push", "bench 4x8 +60kg / 120s"),
        ("pull", "Pull", "row 4x10"),
        ("legs", "Legs", "squat 5x5 +100kg / 180s"),
        ("yoga", "Yoga", "flow 1xAMRAP"),
    ]:
        result = _invoke(data_dir, "template", "add", name, "--id", tid, "-x", exercise)
        assert result.exit_code == 0, result.output

    result = _invoke(
        data_dir, "plan", "create", "PPL",
        "--day", "mon=push", "--day", "wed=pull", "--day", "fri=legs",
        "--weeks", "2", "--start", "2024-01-01", "--id", "ppl",
    )
    assert result.exit_code == 0, result.output


class TestCLISmoke:
    """Basic smoke tests for CLI commands."""

    def test_app_help(self):
        """Test that app runs and shows help."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "plan" in result.output

    def test_template_add_and_list(self, temp_data_dir):
        """Test template add writes the library and list shows it."""
        result = _invoke(temp_data_dir, "template", "add", "Push", "--id", "push",
                         "-x", "bench 4x8 +60kg / 120s")
        assert result.exit_code == 0
        assert (temp_data_dir / "templates.json").exists()

        result = _invoke(temp_data_dir, "template", "list", "--json")
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data[0]["id"] == "push"
        assert data[0]["exercises"][0]["weight_kg"] == 60.0

    def test_bad_exercise_fails(self, temp_data_dir):
        """Test malformed exercise text exits with an error."""
        result = _invoke(temp_data_dir, "template", "add", "Push", "-x", "bench lots")
        assert result.exit_code == 1

    def test_plan_create_and_list(self, temp_data_dir):
        """Test plan create stores the plan."""
        _setup_ppl(temp_data_dir)

        result = _invoke(temp_data_dir, "plan", "list", "--json")
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data[0]["id"] == "ppl"
        assert data[0]["template_ids_by_weekday"] == {"1": "push", "3": "pull", "5": "legs"}

    def test_plan_create_with_unknown_template_fails(self, temp_data_dir):
        """Test plan create rejects template ids that do not exist."""
        result = _invoke(temp_data_dir, "plan", "create", "X", "--day", "mon=nope",
                         "--weeks", "2", "--start", "2024-01-01")
        assert result.exit_code == 1

    def test_preview_and_apply(self, temp_data_dir):
        """Test preview writes nothing and apply fills the calendar."""
        _setup_ppl(temp_data_dir)

        result = _invoke(temp_data_dir, "plan", "preview", "ppl", "--json")
        assert result.exit_code == 0
        assert len(json.loads(result.output)["proposals"]) == 6
        assert not (temp_data_dir / "calendar.json").exists()

        result = _invoke(temp_data_dir, "plan", "apply", "ppl")
        assert result.exit_code == 0

        result = _invoke(temp_data_dir, "calendar", "show", "--json")
        rows = json.loads(result.output)
        assert [r["date"] for r in rows][:3] == ["2024-01-01", "2024-01-03", "2024-01-05"]
        assert len({r["program_id"] for r in rows}) == 1

    def test_apply_with_conflicts_needs_decision(self, temp_data_dir):
        """Test conflicts stop apply until a policy or per-date decision is given."""
        _setup_ppl(temp_data_dir)
        assert _invoke(temp_data_dir, "calendar", "schedule", "2024-01-03", "yoga").exit_code == 0

        result = _invoke(temp_data_dir, "plan", "apply", "ppl")
        assert result.exit_code == 1
        assert "2024-01-03" in result.output

        result = _invoke(temp_data_dir, "plan", "resolve", "ppl", "--replace", "2024-01-03")
        assert result.exit_code == 0, result.output

        result = _invoke(temp_data_dir, "calendar", "show", "--from", "2024-01-03",
                         "--to", "2024-01-03", "--json")
        rows = json.loads(result.output)
        assert [r["template_id"] for r in rows] == ["pull"]

    def test_resolve_ignores_configured_default_policy(self, temp_data_dir):
        """Test per-date decisions win over default_conflict_resolution in settings."""
        settings_dir = temp_data_dir.parent / ".cycle-scheduler"
        settings_dir.mkdir()
        (settings_dir / "settings.yaml").write_text(
            "scheduling:\n  default_conflict_resolution: keep\n"
        )
        _setup_ppl(temp_data_dir)
        assert _invoke(temp_data_dir, "calendar", "schedule", "2024-01-01", "yoga").exit_code == 0

        result = _invoke(temp_data_dir, "plan", "resolve", "ppl", "--replace", "2024-01-01")
        assert result.exit_code == 0, result.output

        result = _invoke(temp_data_dir, "calendar", "show", "--from", "2024-01-01",
                         "--to", "2024-01-01", "--json")
        rows = json.loads(result.output)
        assert [r["template_id"] for r in rows] == ["push"]

    def test_completed_workout_is_kept(self, temp_data_dir):
        """Test a completed workout survives apply --policy replace."""
        _setup_ppl(temp_data_dir)
        _invoke(temp_data_dir, "calendar", "schedule", "2024-01-03", "yoga")
        assert _invoke(temp_data_dir, "calendar", "complete", "2024-01-03").exit_code == 0

        result = _invoke(temp_data_dir, "plan", "apply", "ppl", "--policy", "replace")
        assert result.exit_code == 0

        rows = json.loads(_invoke(temp_data_dir, "calendar", "show", "--json").output)
        row = next(r for r in rows if r["date"] == "2024-01-03")
        assert row["template_id"] == "yoga"
        assert row["status"] == "completed"

    def test_lifecycle_commands(self, temp_data_dir):
        """Test status, end, history and delete run after an apply."""
        _setup_ppl(temp_data_dir)
        _invoke(temp_data_dir, "plan", "apply", "ppl")

        result = _invoke(temp_data_dir, "plan", "status", "ppl", "--json")
        assert result.exit_code == 0
        status = json.loads(result.output)
        assert status["nominal_end_date"] == "2024-01-15"
        program_id = status["program_id"]

        assert _invoke(temp_data_dir, "plan", "end", "ppl").exit_code == 0
        assert _invoke(temp_data_dir, "plan", "delete", "ppl", "--yes").exit_code == 0

        result = _invoke(temp_data_dir, "plan", "history", program_id)
        assert result.exit_code == 0
        assert "2024-01-12" in result.output

    def test_unknown_plan_fails(self, temp_data_dir):
        """Test commands on an unknown plan exit with an error."""
        assert _invoke(temp_data_dir, "plan", "status", "missing").exit_code == 1
        assert _invoke(temp_data_dir, "plan", "resume", "missing").exit_code == 1

    def test_extract_day(self, temp_data_dir):
        """Test extract-day shows the weekday's template and schedules it as a one-off."""
        _setup_ppl(temp_data_dir)

        result = _invoke(temp_data_dir, "plan", "extract-day", "ppl", "wed")
        assert result.exit_code == 0
        assert "pull" in result.output

        result = _invoke(temp_data_dir, "plan", "extract-day", "ppl", "fri", "--date", "2024-02-01")
        assert result.exit_code == 0
        rows = json.loads(_invoke(temp_data_dir, "calendar", "show", "--json").output)
        assert rows[0]["source"] == "manual"
        assert rows[0]["template_id"] == "legs"

        assert _invoke(temp_data_dir, "plan", "extract-day", "ppl", "tue").exit_code == 1

    def test_verbose_flag(self, temp_data_dir):
        """Test --verbose is accepted before a sub-command."""
        _setup_ppl(temp_data_dir)
        logger = logging.getLogger("cycle_scheduler")
        handlers, level = list(logger.handlers), logger.level
        try:
            result = runner.invoke(
                app, ["--verbose", "plan", "list", "--data-dir", str(temp_data_dir)]
            )
            assert result.exit_code == 0
            assert logger.level == logging.DEBUG
        finally:
            logger.handlers[:] = handlers
            logger.setLevel(level)
