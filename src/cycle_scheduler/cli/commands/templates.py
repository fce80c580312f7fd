"""Template commands: add and list workout templates."""

import json
from typing import Annotated, Optional

import typer

from ...core.config import TEMPLATE_ID_PREFIX
from ...core.models import WorkoutTemplate
from ...io.serializers import ValidationError, parse_exercise_spec, workout_template_to_dict
from .. import views
from ..app import DataDirOption, JsonOption, get_scheduler, template_app


@template_app.command("add")
def add_template(
    name: Annotated[str, typer.Argument(help="Template name, e.g. 'Push Day'")],
    exercises: Annotated[
        Optional[list[str]],
        typer.Option(
            "--exercise",
            "-x",
            help="Exercise as 'EXERCISE SETSxREPS [+Wkg] [/ Rs]'; repeat for more",
        ),
    ] = None,
    template_id: Annotated[
        Optional[str],
        typer.Option("--id", help="Template id (default: generated)"),
    ] = None,
    data_dir: DataDirOption = None,
) -> None:
    """
    Add a workout template.

    Example:
        cycle-scheduler template add "Push" --id push -x "bench 4x8 +60kg / 120s" -x "dip 3xAMRAP"
    """
    scheduler = get_scheduler(data_dir)
    library = scheduler.templates

    try:
        parsed = [parse_exercise_spec(x) for x in exercises or []]
        now = scheduler.now()
        template = WorkoutTemplate(
            id=template_id or scheduler.new_id(TEMPLATE_ID_PREFIX),
            name=name,
            exercises=parsed,
            created_at=now,
            updated_at=now,
        )
    except (ValidationError, ValueError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if library.find(template.id) is not None:
        views.print_error(f"Template {template.id} already exists")
        raise typer.Exit(1)

    try:
        library.save(template)
    except OSError as e:
        views.print_error(f"Could not save template: {e}")
        raise typer.Exit(1)
    views.print_success(f"Added template '{template.name}' ({template.id})")


@template_app.command("list")
def list_templates(
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """List workout templates."""
    scheduler = get_scheduler(data_dir)
    try:
        templates = scheduler.templates.list_all()
    except ValidationError as e:
        views.print_error(f"Invalid data: {e}")
        raise typer.Exit(1)

    if json_out:
        print(json.dumps([workout_template_to_dict(t) for t in templates], indent=2))
        return

    if not templates:
        views.print_info("No templates yet. Add one with 'template add'.")
        return
    views.console.print(views.format_template_table(templates))
