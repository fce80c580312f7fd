"""
JSON-based storage for cycle plans.

Deleting a plan removes only its record; calendar rows written by the plan
keep their program id and name and are managed by the calendar store.
"""

import logging
from pathlib import Path

from ..core.errors import ValidationError
from ..core.models import CyclePlan
from .json_file import read_json_list, write_json_atomic
from .serializers import cycle_plan_to_dict, dict_to_cycle_plan

logger = logging.getLogger(__name__)


class PlanStore:
    """CRUD for CyclePlan records, in a JSON file or in memory (``path=None``)."""

    def __init__(self, path: str | Path | None = None):
        self.path = Path(path) if path is not None else None
        self._plans: dict[str, CyclePlan] | None = None

    def _load(self) -> dict[str, CyclePlan]:
        if self._plans is not None:
            return self._plans
        plans: dict[str, CyclePlan] = {}
        if self.path is not None:
            for i, data in enumerate(read_json_list(self.path), 1):
                try:
                    plan = dict_to_cycle_plan(data)
                except ValidationError as e:
                    raise ValidationError(f"Error in record {i} of {self.path}: {e}") from e
                plans[plan.id] = plan
        self._plans = plans
        return plans

    def _write(self, plans: dict[str, CyclePlan]) -> None:
        if self.path is None:
            return
        write_json_atomic(self.path, [cycle_plan_to_dict(p) for p in plans.values()])

    def get(self, plan_id: str) -> CyclePlan | None:
        return self._load().get(plan_id)

    def list_all(self) -> list[CyclePlan]:
        """All plans, newest first by creation time."""
        return sorted(self._load().values(), key=lambda p: p.created_at, reverse=True)

    def list_available(self) -> list[CyclePlan]:
        """Plans that can still be picked from the library (active and not archived)."""
        return [p for p in self.list_all() if p.active and p.archived_at is None]

    def save(self, plan: CyclePlan) -> None:
        """
        Insert or replace a plan.

        Raises:
            OSError: If the file cannot be written (memory is left untouched)
        """
        updated = dict(self._load())
        updated[plan.id] = plan
        self._write(updated)
        self._plans = updated

    def delete(self, plan_id: str) -> bool:
        """Remove a plan record.  Returns False if it did not exist."""
        plans = self._load()
        if plan_id not in plans:
            return False
        updated = {pid: p for pid, p in plans.items() if pid != plan_id}
        self._write(updated)
        self._plans = updated
        logger.info("Deleted plan record %s", plan_id)
        return True
