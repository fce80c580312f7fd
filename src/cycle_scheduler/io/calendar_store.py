"""
JSON-based calendar storage.

The calendar is the single source of truth for "what workout happens
when": one ScheduledWorkout per date, keyed by date.  Locked and completed
rows are refused for overwrite and deletion here as well as in the
resolution step.
"""

import copy
import logging
from pathlib import Path
from typing import Iterable

from ..core.config import STATUS_ORDER
from ..core.errors import ImmutableWorkoutError, ValidationError
from ..core.models import ScheduledWorkout, WorkoutStatus
from .json_file import read_json_list, write_json_atomic
from .serializers import dict_to_scheduled_workout, scheduled_workout_to_dict

logger = logging.getLogger(__name__)


class CalendarStore:
    """
    Manages scheduled workouts stored as a JSON list sorted by date.

    With ``path=None`` the store lives in memory only, which is what the
    tests and previews use.  In-memory rows change only after the file write
    has succeeded.
    """

    def __init__(self, path: str | Path | None = None):
        """
        Initialize the calendar store.

        Args:
            path: Path to the calendar JSON file, or None for memory only
        """
        self.path = Path(path) if path is not None else None
        self._rows: dict[str, ScheduledWorkout] | None = None

    def _load(self) -> dict[str, ScheduledWorkout]:
        """
        Load rows from disk on first use.

        Raises:
            ValidationError: If a record is invalid or two records share a date
        """
        if self._rows is not None:
            return self._rows

        rows: dict[str, ScheduledWorkout] = {}
        if self.path is not None:
            for i, data in enumerate(read_json_list(self.path), 1):
                try:
                    workout = dict_to_scheduled_workout(data)
                except ValidationError as e:
                    raise ValidationError(f"Error in record {i} of {self.path}: {e}") from e
                if workout.date in rows:
                    raise ValidationError(
                        f"Duplicate calendar entry for {workout.date} in {self.path}"
                    )
                rows[workout.date] = workout
        self._rows = rows
        return rows

    def _write(self, rows: dict[str, ScheduledWorkout]) -> None:
        if self.path is None:
            return
        write_json_atomic(
            self.path,
            [scheduled_workout_to_dict(rows[d]) for d in sorted(rows)],
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_by_date(self, date: str) -> ScheduledWorkout | None:
        return self._load().get(date)

    def snapshot(self) -> dict[str, ScheduledWorkout]:
        """Deep copy of every row, keyed by date, for a consistent batch read."""
        return copy.deepcopy(self._load())

    def list_all(self) -> list[ScheduledWorkout]:
        rows = self._load()
        return [rows[d] for d in sorted(rows)]

    def list_range(self, start: str, end_exclusive: str) -> list[ScheduledWorkout]:
        """Rows with ``start <= date < end_exclusive``, sorted by date."""
        return [w for w in self.list_all() if start <= w.date < end_exclusive]

    def list_by_program_id(self, program_id: str) -> list[ScheduledWorkout]:
        return [w for w in self.list_all() if w.program_id == program_id]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def commit(
        self,
        writes: Iterable[ScheduledWorkout] = (),
        deletions: Iterable[str] = (),
    ) -> None:
        """
        Apply a batch of upserts and deletions as one unit.

        Every target is checked before anything is written; if any check
        fails nothing changes.

        Raises:
            ImmutableWorkoutError: If a target date holds a locked/completed row
            ValidationError: If the batch writes the same date twice
            OSError: If the file cannot be written (memory is left untouched)
        """
        writes = list(writes)
        deletions = list(deletions)
        rows = self._load()

        seen: set[str] = set()
        for workout in writes:
            if workout.date in seen:
                raise ValidationError(f"Batch writes {workout.date} more than once")
            seen.add(workout.date)
        for date in [w.date for w in writes] + deletions:
            existing = rows.get(date)
            if existing is not None and existing.is_immutable:
                raise ImmutableWorkoutError(date)

        updated = dict(rows)
        for date in deletions:
            updated.pop(date, None)
        for workout in writes:
            updated[workout.date] = workout

        self._write(updated)
        self._rows = updated
        logger.debug("Committed %d write(s), %d deletion(s)", len(writes), len(deletions))

    def upsert(self, workout: ScheduledWorkout) -> None:
        """Insert or replace the row on ``workout.date``."""
        self.commit(writes=[workout])

    def delete(self, date: str) -> None:
        """Remove the row on ``date`` (no-op if the date is empty)."""
        self.commit(deletions=[date])

    def record_execution(
        self, date: str, status: WorkoutStatus, timestamp: str
    ) -> ScheduledWorkout:
        """
        Move a workout forward through planned -> in_progress -> completed.

        This is the execution layer's entry point: starting or finishing a
        workout locks it, after which no scheduling operation can change it.

        Raises:
            KeyError: If there is no workout on ``date``
            ValidationError: If the transition goes backwards
            OSError: If the file cannot be written
        """
        rows = self._load()
        if date not in rows:
            raise KeyError(date)
        current = rows[date]
        if status not in STATUS_ORDER:
            raise ValidationError(f"Invalid status: {status}")
        if STATUS_ORDER[status] <= STATUS_ORDER[current.status]:
            raise ValidationError(
                f"Workout on {date} is already {current.status}; cannot move to {status}"
            )

        updated_workout = copy.deepcopy(current)
        updated_workout.status = status
        updated_workout.is_locked = True
        if status == "in_progress" or updated_workout.started_at is None:
            updated_workout.started_at = timestamp
        if status == "completed":
            updated_workout.completed_at = timestamp

        updated = dict(rows)
        updated[date] = updated_workout
        self._write(updated)
        self._rows = updated
        logger.info("Workout on %s is now %s (locked)", date, status)
        return updated_workout
