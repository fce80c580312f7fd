"""
Plan projection.

Expands a weekday-templated CyclePlan into concrete dated proposals.  The
projection is a pure function of (plan, effective_start, weeks): it never
touches the calendar, and calling it twice with the same inputs yields the
same ordered list, which is what makes re-applying a plan idempotent.
"""

import logging

from .config import DAYS_PER_WEEK
from .dates import add_days, sunday_weekday, validate_iso_date
from .errors import ValidationError
from .models import CyclePlan, ProposedAssignment

logger = logging.getLogger(__name__)


def projection_window(effective_start: str, weeks: int) -> tuple[str, str]:
    """
    Return the (start, end_exclusive) date range covered by a projection.

    Args:
        effective_start: First date of week 1
        weeks: Number of weeks projected

    Returns:
        Tuple of ISO dates; the end date is not part of the window
    """
    return effective_start, add_days(effective_start, weeks * DAYS_PER_WEEK)


def project(
    plan: CyclePlan,
    effective_start: str,
    weeks: int | None = None,
) -> list[ProposedAssignment]:
    """
    Project a plan onto calendar dates.

    For each week the seven dates starting at ``effective_start + 7*week``
    are visited in order; a proposal is emitted only when the date's weekday
    has a template.  Rest days are never emitted.

    Args:
        plan: Plan to project
        effective_start: First date of week 1 (any weekday)
        weeks: Weeks to project; defaults to ``plan.weeks``.  Smaller values
            give a partial projection (e.g. the remaining week of a plan).

    Returns:
        Chronologically ordered proposals

    Raises:
        ValidationError: If the start date is malformed or ``weeks`` is outside
            ``1..plan.weeks``
    """
    if weeks is None:
        weeks = plan.weeks
    if weeks < 1:
        raise ValidationError(f"weeks must be at least 1, got {weeks}")
    if weeks > plan.weeks:
        raise ValidationError(
            f"Cannot project {weeks} weeks of a {plan.weeks}-week plan"
        )
    try:
        validate_iso_date(effective_start)
    except ValueError as e:
        raise ValidationError(str(e)) from e

    proposals: list[ProposedAssignment] = []
    for week in range(weeks):
        week_start = add_days(effective_start, week * DAYS_PER_WEEK)
        for offset in range(DAYS_PER_WEEK):
            date = add_days(week_start, offset)
            weekday = sunday_weekday(date)
            template_id = plan.template_ids_by_weekday.get(weekday)
            if template_id is None:
                continue  # rest day
            proposals.append(
                ProposedAssignment(
                    date=date,
                    template_id=template_id,
                    week_index=week + 1,
                    day_index=weekday,
                )
            )

    logger.debug(
        "Projected plan %s from %s over %d week(s): %d proposal(s)",
        plan.id, effective_start, weeks, len(proposals),
    )
    return proposals
