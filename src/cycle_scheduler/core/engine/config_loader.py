"""
YAML → typed settings loader.

Loads scheduler settings from settings.yaml (bundled with the package) and
optionally merges user overrides from ~/.cycle-scheduler/settings.yaml.

Usage:
    from cycle_scheduler.core.engine.config_loader import load_settings
    settings = load_settings()
    settings.default_conflict_resolution   # None, "replace" or "keep"

If the user override file exists but has parse errors or invalid values, a
warning is issued and the file is ignored.
"""

from __future__ import annotations

import importlib.resources
import os
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from ..config import DEFAULT_DATA_DIR_NAME, MAX_PLAN_WEEKS, SETTINGS_FILE

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file; mapping contents only."""
    with open(path, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    return data if isinstance(data, dict) else {}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


# ---------------------------------------------------------------------------
# Typed view
# ---------------------------------------------------------------------------


@dataclass
class Settings:
    """Scheduler settings after merging bundled defaults and user overrides."""

    default_conflict_resolution: str | None = None  # None = ask the caller
    max_plan_weeks: int = MAX_PLAN_WEEKS
    week_starts_on: str = "monday"
    data_dir: Path | None = None

    def __post_init__(self) -> None:
        if self.default_conflict_resolution not in (None, "replace", "keep"):
            raise ValueError(
                f"Invalid default_conflict_resolution: {self.default_conflict_resolution!r}. "
                "Must be null, 'replace' or 'keep'."
            )
        if self.max_plan_weeks < 1:
            raise ValueError("max_plan_weeks must be at least 1")
        if self.week_starts_on not in ("monday", "sunday"):
            raise ValueError(
                f"Invalid week_starts_on: {self.week_starts_on!r}. Must be 'monday' or 'sunday'."
            )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Settings":
        scheduling = data.get("scheduling") or {}
        display = data.get("display") or {}
        storage = data.get("storage") or {}
        data_dir = storage.get("data_dir")
        return cls(
            default_conflict_resolution=scheduling.get("default_conflict_resolution"),
            max_plan_weeks=int(scheduling.get("max_plan_weeks", MAX_PLAN_WEEKS)),
            week_starts_on=str(display.get("week_starts_on", "monday")),
            data_dir=Path(data_dir).expanduser() if data_dir else None,
        )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_bundled_yaml_path() -> Path | None:
    """Return the path to the bundled settings.yaml, or None if not found."""
    try:
        pkg_files = importlib.resources.files("cycle_scheduler")
        ref = pkg_files.joinpath(SETTINGS_FILE)
        with importlib.resources.as_file(ref) as p:
            return p if p.exists() else None
    except (ModuleNotFoundError, FileNotFoundError):
        candidate = Path(__file__).parent.parent.parent / SETTINGS_FILE
        return candidate if candidate.exists() else None


def get_user_yaml_path() -> Path | None:
    """Return ~/.cycle-scheduler/settings.yaml if it exists, else None."""
    home = Path(os.environ.get("HOME", "~")).expanduser()
    p = home / DEFAULT_DATA_DIR_NAME / SETTINGS_FILE
    return p if p.exists() else None


def load_settings_dict(user_path: Path | None = None) -> dict[str, Any]:
    """
    Load and merge settings from YAML sources.

    Load order (later overrides earlier):
    1. Bundled src/cycle_scheduler/settings.yaml
    2. User override (``user_path`` or ~/.cycle-scheduler/settings.yaml)

    Returns:
        Merged dict of settings sections.  Empty dict if no YAML available.
    """
    config: dict[str, Any] = {}

    bundled = get_bundled_yaml_path()
    if bundled is not None:
        config = _deep_merge(config, _load_yaml_file(bundled))

    user = user_path if user_path is not None else get_user_yaml_path()
    if user is not None and user.exists():
        try:
            user_cfg = _load_yaml_file(user)
        except (yaml.YAMLError, OSError) as exc:
            warnings.warn(
                f"cycle-scheduler: ignoring settings override {user} ({exc})",
                stacklevel=2,
            )
            user_cfg = {}
        if user_cfg:
            config = _deep_merge(config, user_cfg)

    return config


def load_settings(user_path: Path | None = None) -> Settings:
    """
    Load typed settings.

    Falls back to the bundled values if the merged result is invalid.
    """
    merged = load_settings_dict(user_path)
    try:
        return Settings.from_dict(merged)
    except (ValueError, TypeError) as exc:
        warnings.warn(
            f"cycle-scheduler: invalid settings override ({exc}); using defaults.",
            stacklevel=2,
        )
        bundled = get_bundled_yaml_path()
        return Settings.from_dict(_load_yaml_file(bundled) if bundled is not None else {})
