"""
Conflict detection.

Cross-references projected proposals against the calendar.  Detection only
surfaces facts; whether a conflicting date is overwritten is decided by the
resolution step, which also enforces immutability.
"""

import logging
from typing import Callable, Sequence

from .models import ConflictItem, ProposedAssignment, ScheduledWorkout

logger = logging.getLogger(__name__)

CalendarLookup = Callable[[str], "ScheduledWorkout | None"]


def detect(
    proposals: Sequence[ProposedAssignment],
    calendar_lookup: CalendarLookup,
    program_id: str | None = None,
) -> list[ConflictItem]:
    """
    Find proposed dates that already hold a workout from another source.

    A date is not a conflict when it is empty or when the existing row was
    written by the same application (``program_id``) that is being re-applied.
    Every other row is reported, including locked and completed ones.

    Args:
        proposals: Output of ``projector.project``
        calendar_lookup: ``date -> ScheduledWorkout | None``; bind it to a
            snapshot taken before any write of the batch
        program_id: Stamp of the application being (re)applied, if any

    Returns:
        Conflicts in proposal (chronological) order
    """
    conflicts: list[ConflictItem] = []
    for proposal in proposals:
        existing = calendar_lookup(proposal.date)
        if existing is None:
            continue
        if program_id is not None and existing.program_id == program_id:
            continue
        conflicts.append(
            ConflictItem(
                date=proposal.date,
                existing=existing,
                proposed_template_id=proposal.template_id,
            )
        )

    logger.debug(
        "Checked %d proposal(s) for program %s: %d conflict(s), %d locked",
        len(proposals), program_id, len(conflicts),
        sum(1 for c in conflicts if c.is_locked),
    )
    return conflicts
