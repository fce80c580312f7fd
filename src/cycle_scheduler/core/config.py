"""
Configuration constants for the cycle scheduling engine.

User-adjustable settings (default conflict policy, display order, data
directory) live in settings.yaml and are read by engine/config_loader.py;
the values here are fixed by the data model.
"""

from typing import Final

# =============================================================================
# CALENDAR
# =============================================================================

DATE_FORMAT: Final[str] = "%Y-%m-%d"
DAYS_PER_WEEK: Final[int] = 7

# Sunday-first, matching the storage convention of plan mappings
WEEKDAY_NAMES: Final[tuple[str, ...]] = (
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)
WEEKDAY_SHORT: Final[tuple[str, ...]] = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")

# =============================================================================
# PLANS
# =============================================================================

MIN_PLAN_WEEKS: Final[int] = 1
MAX_PLAN_WEEKS: Final[int] = 52  # fallback when settings.yaml does not override it

# =============================================================================
# CONFLICT RESOLUTION
# =============================================================================

UNIFORM_RESOLUTIONS: Final[tuple[str, ...]] = ("replace", "keep", "cancel")
PER_DATE_DECISIONS: Final[tuple[str, ...]] = ("replace", "keep")
# A date left out of a per-date map keeps the existing workout
DEFAULT_PER_DATE_DECISION: Final[str] = "keep"

# =============================================================================
# EXECUTION STATUS
# =============================================================================

STATUS_ORDER: Final[dict[str, int]] = {
    "planned": 0,
    "in_progress": 1,
    "completed": 2,
}

# =============================================================================
# IDS / STORAGE
# =============================================================================

PLAN_ID_PREFIX: Final[str] = "cp"
PROGRAM_ID_PREFIX: Final[str] = "prog"
TEMPLATE_ID_PREFIX: Final[str] = "wt"
WORKOUT_ID_PREFIX: Final[str] = "sw"

DEFAULT_DATA_DIR_NAME: Final[str] = ".cycle-scheduler"
CALENDAR_FILE: Final[str] = "calendar.json"
PLANS_FILE: Final[str] = "plans.json"
TEMPLATES_FILE: Final[str] = "templates.json"
SETTINGS_FILE: Final[str] = "settings.yaml"
