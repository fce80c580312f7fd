"""Shared Typer app objects, shared option types, and the scheduler factory."""

from pathlib import Path
from typing import Annotated, Optional

import typer

from ..core.config import CALENDAR_FILE, DEFAULT_DATA_DIR_NAME, PLANS_FILE, TEMPLATES_FILE
from ..core.engine.config_loader import Settings, load_settings
from ..core.scheduler import CycleScheduler
from ..io.calendar_store import CalendarStore
from ..io.plan_store import PlanStore
from ..io.template_library import TemplateLibrary

# Shared --data-dir option type used across all commands
DataDirOption = Annotated[
    Optional[Path],
    typer.Option("--data-dir", "-d", help="Directory holding calendar, plans and templates"),
]

JsonOption = Annotated[
    bool,
    typer.Option("--json", "-j", help="Output as JSON for machine processing"),
]

app = typer.Typer(
    name="cycle-scheduler",
    help="Schedule weekday-recurring training plans on a one-workout-per-day calendar.",
    no_args_is_help=True,
)
template_app = typer.Typer(help="Manage workout templates.", no_args_is_help=True)
plan_app = typer.Typer(help="Create, apply and control cycle plans.", no_args_is_help=True)
calendar_app = typer.Typer(help="View and edit the workout calendar.", no_args_is_help=True)

app.add_typer(template_app, name="template")
app.add_typer(plan_app, name="plan")
app.add_typer(calendar_app, name="calendar")


def get_default_data_dir(settings: Settings | None = None) -> Path:
    """Data directory from settings.yaml, or ~/.cycle-scheduler."""
    if settings is not None and settings.data_dir is not None:
        return settings.data_dir
    return Path.home() / DEFAULT_DATA_DIR_NAME


def get_scheduler(data_dir: Path | None) -> CycleScheduler:
    """Build a scheduler over the JSON stores in ``data_dir`` (or the default location)."""
    settings = load_settings()
    if data_dir is None:
        data_dir = get_default_data_dir(settings)
    return CycleScheduler(
        calendar=CalendarStore(data_dir / CALENDAR_FILE),
        plans=PlanStore(data_dir / PLANS_FILE),
        templates=TemplateLibrary(data_dir / TEMPLATES_FILE),
        settings=settings,
    )
