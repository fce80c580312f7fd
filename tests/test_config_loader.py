"""Tests for settings.yaml loading and user overrides."""

from pathlib import Path

import pytest

from cycle_scheduler.core.engine.config_loader import (
    Settings,
    get_bundled_yaml_path,
    load_settings,
    load_settings_dict,
)


class TestSettings:

    def test_bundled_defaults(self, tmp_path):
        settings = load_settings(user_path=tmp_path / "missing.yaml")

        assert get_bundled_yaml_path() is not None
        assert settings.default_conflict_resolution is None
        assert settings.max_plan_weeks == 52
        assert settings.week_starts_on == "monday"
        assert settings.data_dir is None

    def test_user_override_is_deep_merged(self, tmp_path):
        user = tmp_path / "settings.yaml"
        user.write_text("scheduling:\n  default_conflict_resolution: keep\n")

        merged = load_settings_dict(user_path=user)
        settings = load_settings(user_path=user)

        assert merged["scheduling"]["max_plan_weeks"] == 52
        assert settings.default_conflict_resolution == "keep"
        assert settings.week_starts_on == "monday"

    def test_data_dir_is_expanded(self, tmp_path):
        user = tmp_path / "settings.yaml"
        user.write_text(f"storage:\n  data_dir: {tmp_path / 'data'}\n")

        assert load_settings(user_path=user).data_dir == Path(tmp_path / "data")

    def test_invalid_value_falls_back_to_defaults(self, tmp_path):
        user = tmp_path / "settings.yaml"
        user.write_text("scheduling:\n  default_conflict_resolution: cancel\n")

        with pytest.warns(UserWarning):
            settings = load_settings(user_path=user)

        assert settings.default_conflict_resolution is None

    def test_unparseable_override_is_ignored(self, tmp_path):
        user = tmp_path / "settings.yaml"
        user.write_text("scheduling: [unclosed\n")

        with pytest.warns(UserWarning):
            settings = load_settings(user_path=user)

        assert settings == Settings()

    def test_direct_construction_validates(self):
        with pytest.raises(ValueError):
            Settings(week_starts_on="friday")
        with pytest.raises(ValueError):
            Settings(max_plan_weeks=0)
