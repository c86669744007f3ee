"""
STARGAZER Unit Tests - Configuration

Unit tests for stargazer/config.py: defaults, YAML loading, environment
overrides and validation.

Run:
    pytest tests/unit/test_config.py -v
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from stargazer.config import (
    ConstellationDrawMode,
    DetectionConfig,
    SchedulerConfig,
    StargazerConfig,
    ViewConfig,
    get_config_paths,
    load_config,
)
from stargazer.exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """No config files or STARGAZER_* variables leak in from the host."""
    import os

    for key in list(os.environ):
        if key.startswith("STARGAZER_"):
            monkeypatch.delenv(key)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.chdir(tmp_path)


# =============================================================================
# Defaults
# =============================================================================

class TestDefaults:
    """Built-in defaults."""

    def test_view_defaults(self):
        view = StargazerConfig().view
        assert view.field_of_view == 60.0
        assert view.min_altitude == 0.0
        assert view.max_magnitude == 6.0
        assert view.reticle_radius_deg == 7.5

    def test_scheduler_defaults(self):
        scheduler = StargazerConfig().scheduler
        assert scheduler.candidate_refresh_sec == 2.0
        assert scheduler.visibility_tick_sec == 0.1
        assert scheduler.detection_interval_sec == 0.45

    def test_detection_defaults(self):
        detection = StargazerConfig().detection
        assert detection.keep_threshold == 0.45
        assert detection.adopt_threshold == 0.67
        assert detection.switch_threshold == 0.75
        assert detection.switch_margin == 0.10
        assert detection.draw_mode is ConstellationDrawMode.DETECTED
        assert detection.hybrid_max_segments == 140

    def test_catalog_defaults(self):
        catalog = StargazerConfig().catalog
        assert catalog.stars_path is None
        assert catalog.include_planets is True

    def test_load_without_files(self):
        config = load_config()
        assert config.log_level == "INFO"
        assert config.observer.name == "Greenwich"


# =============================================================================
# Validation
# =============================================================================

class TestValidation:
    """Section validators."""

    def test_field_of_view_bounds(self):
        with pytest.raises(ValidationError):
            ViewConfig(field_of_view=0.0)
        with pytest.raises(ValidationError):
            ViewConfig(field_of_view=361.0)
        assert ViewConfig(field_of_view=360.0).field_of_view == 360.0

    def test_weights_must_sum_to_one(self):
        with pytest.raises(ValidationError, match="must equal 1.0"):
            DetectionConfig(ratio_weight=0.5, proximity_weight=0.25)
        assert DetectionConfig(ratio_weight=0.6, proximity_weight=0.4).ratio_weight == 0.6

    def test_detection_not_faster_than_tick(self):
        with pytest.raises(ValidationError, match="detection_interval_sec"):
            SchedulerConfig(visibility_tick_sec=0.5, detection_interval_sec=0.2)

    def test_latitude_range(self):
        with pytest.raises(ValidationError):
            StargazerConfig(observer={"latitude": 91.0})

    def test_draw_mode_from_string(self):
        assert DetectionConfig(draw_mode="hybrid").draw_mode is ConstellationDrawMode.HYBRID

    def test_paths_expand_user(self):
        config = StargazerConfig(catalog={"stars_path": "~/stars.json"})
        assert "~" not in str(config.catalog.stars_path)

    def test_unknown_top_level_keys_ignored(self):
        config = StargazerConfig(mount={"type": "lx200"})
        assert not hasattr(config, "mount")


# =============================================================================
# File Loading
# =============================================================================

class TestLoadConfig:
    """YAML loading and environment overrides."""

    def test_explicit_file(self, tmp_path):
        path = tmp_path / "custom.yaml"
        path.write_text(
            "observer:\n"
            "  latitude: -33.9\n"
            "  longitude: 151.2\n"
            "  name: Sydney\n"
            "view:\n"
            "  field_of_view: 90\n"
            "detection:\n"
            "  draw_mode: nearby\n"
        )
        config = load_config(path)
        assert config.observer.name == "Sydney"
        assert config.view.field_of_view == 90.0
        assert config.detection.draw_mode is ConstellationDrawMode.NEARBY

    def test_discovers_local_file(self, tmp_path):
        (tmp_path / "stargazer.yaml").write_text("log_level: DEBUG\n")
        assert load_config().log_level == "DEBUG"

    def test_component_log_levels(self, tmp_path):
        path = tmp_path / "levels.yaml"
        path.write_text("log_levels:\n  scheduler: DEBUG\n  catalog.loader: ERROR\n")
        config = load_config(path)
        assert config.log_levels == {"scheduler": "DEBUG", "catalog.loader": "ERROR"}

    def test_empty_file_uses_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path).view.field_of_view == 60.0

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_config(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("view: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_config(path)

    def test_top_level_not_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ConfigurationError, match="mapping"):
            load_config(path)

    def test_validation_failure_wrapped(self, tmp_path):
        path = tmp_path / "bad_values.yaml"
        path.write_text("view:\n  field_of_view: -5\n")
        with pytest.raises(ConfigurationError, match="validation failed"):
            load_config(path)

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("STARGAZER_VIEW_FIELD_OF_VIEW", "45")
        monkeypatch.setenv("STARGAZER_DETECTION_ENABLED", "false")
        monkeypatch.setenv("STARGAZER_LOG_LEVEL", "debug")
        config = load_config()
        assert config.view.field_of_view == 45.0
        assert config.detection.enabled is False
        assert config.log_level == "DEBUG"

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        path = tmp_path / "custom.yaml"
        path.write_text("scheduler:\n  candidate_refresh_sec: 5\n")
        monkeypatch.setenv("STARGAZER_SCHEDULER_CANDIDATE_REFRESH_SEC", "3.5")
        assert load_config(path).scheduler.candidate_refresh_sec == 3.5

    def test_config_paths(self):
        paths = get_config_paths()
        assert paths[0] == Path("./stargazer.yaml")
        assert all(isinstance(p, Path) for p in paths)
