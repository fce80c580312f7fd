"""JSON-based workout template library."""

import dataclasses
from pathlib import Path

from ..core.errors import ValidationError
from ..core.models import WorkoutTemplate
from .json_file import read_json_list, write_json_atomic
from .serializers import dict_to_workout_template, workout_template_to_dict


class TemplateLibrary:
    """
    Workout templates by id.

    Scheduling reads a template only to snapshot it into a calendar row, so
    editing a template here never rewrites the calendar.
    """

    def __init__(self, path: str | Path | None = None):
        self.path = Path(path) if path is not None else None
        self._templates: dict[str, WorkoutTemplate] | None = None

    def _load(self) -> dict[str, WorkoutTemplate]:
        if self._templates is not None:
            return self._templates
        templates: dict[str, WorkoutTemplate] = {}
        if self.path is not None:
            for i, data in enumerate(read_json_list(self.path), 1):
                try:
                    template = dict_to_workout_template(data)
                except ValidationError as e:
                    raise ValidationError(f"Error in record {i} of {self.path}: {e}") from e
                templates[template.id] = template
        self._templates = templates
        return templates

    def _write(self, templates: dict[str, WorkoutTemplate]) -> None:
        if self.path is None:
            return
        write_json_atomic(self.path, [workout_template_to_dict(t) for t in templates.values()])

    def get(self, template_id: str) -> WorkoutTemplate:
        """
        Return the template with the given id.

        Raises:
            KeyError: If no such template exists
        """
        return self._load()[template_id]

    def find(self, template_id: str) -> WorkoutTemplate | None:
        return self._load().get(template_id)

    def list_all(self) -> list[WorkoutTemplate]:
        return sorted(self._load().values(), key=lambda t: t.name.lower())

    def save(self, template: WorkoutTemplate) -> None:
        updated = dict(self._load())
        updated[template.id] = template
        self._write(updated)
        self._templates = updated

    def record_usage(self, counts: dict[str, int], now: str) -> None:
        """
        Bump usage counters after templates were written to the calendar.

        Args:
            counts: template id -> number of calendar rows written from it
            now: ISO timestamp stored as ``last_used_at``
        """
        templates = self._load()
        updated = dict(templates)
        for template_id, count in counts.items():
            if count <= 0 or template_id not in templates:
                continue
            t = templates[template_id]
            updated[template_id] = dataclasses.replace(
                t, last_used_at=now, usage_count=t.usage_count + count
            )
        self._write(updated)
        self._templates = updated
