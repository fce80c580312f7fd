"""Single-day extraction: pull one weekday's template out of a plan."""

from .errors import ValidationError
from .models import CyclePlan


def extract_day(plan: CyclePlan, weekday: int) -> str | None:
    """
    Return the template scheduled on ``weekday`` (0=Sunday), or None for a rest day.

    Read-only.  A workout scheduled from the result is a plain manual entry
    and is no longer tracked as part of the plan.

    Raises:
        ValidationError: If weekday is outside 0-6
    """
    if isinstance(weekday, bool) or not isinstance(weekday, int) or not 0 <= weekday <= 6:
        raise ValidationError(f"Invalid weekday: {weekday!r}. Must be 0 (Sunday) to 6 (Saturday)")
    return plan.template_ids_by_weekday.get(weekday)
