"""
STARGAZER Configuration System

Configuration management for the sky engine using pydantic for type-safe
validation and YAML for human-readable config files.

Configuration loading priority:
1. Environment variables (STARGAZER_*)
2. Config file passed to load_config()
3. ./stargazer.yaml (current directory)
4. ~/.stargazer/config.yaml (user home)
5. Built-in defaults

Usage:
    from stargazer.config import load_config

    config = load_config()
    print(config.view.field_of_view)
    print(config.scheduler.detection_interval_sec)
"""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Dict, Literal, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from stargazer import constants
from stargazer.exceptions import ConfigurationError

__all__ = [
    "StargazerConfig",
    "ObserverConfig",
    "ViewConfig",
    "SchedulerConfig",
    "DetectionConfig",
    "CatalogConfig",
    "ConstellationDrawMode",
    "load_config",
    "get_config_paths",
]

ENV_PREFIX = "STARGAZER_"


class ConstellationDrawMode(str, Enum):
    """How constellation lines are produced for the renderer.

    DETECTED: only the best-matching constellation
    NEARBY: nearby lines from every constellation (atlas mode)
    HYBRID: detected constellation plus faint nearby context
    """

    DETECTED = "detected"
    NEARBY = "nearby"
    HYBRID = "hybrid"


# =============================================================================
# Configuration Sections
# =============================================================================


class ObserverConfig(BaseModel):
    """Fallback observer location, used while no location fix is available."""

    latitude: float = Field(
        default=51.4779,
        ge=-90.0,
        le=90.0,
        description="Fallback latitude in decimal degrees (positive = North)",
    )
    longitude: float = Field(
        default=-0.0015,
        ge=-180.0,
        le=180.0,
        description="Fallback longitude in decimal degrees (positive = East)",
    )
    name: str = Field(default="Greenwich", description="Human-readable location name")


class ViewConfig(BaseModel):
    """Viewing window and reticle parameters."""

    field_of_view: float = Field(
        default=constants.DEFAULT_FIELD_OF_VIEW_DEG,
        gt=0.0,
        le=360.0,
        description="Full width of the az/alt viewing box in degrees",
    )
    min_altitude: float = Field(
        default=constants.DEFAULT_MIN_ALTITUDE_DEG,
        ge=-90.0,
        le=90.0,
        description="Objects must be strictly above this altitude",
    )
    max_magnitude: float = Field(
        default=constants.DEFAULT_MAX_MAGNITUDE,
        ge=-30.0,
        le=30.0,
        description="Faintest apparent magnitude loaded into the candidate set",
    )
    reticle_radius_deg: float = Field(
        default=constants.DEFAULT_RETICLE_RADIUS_DEG,
        gt=0.0,
        description="Angular selection threshold around the pointing",
    )
    reticle_size_px: float = Field(
        default=constants.DEFAULT_RETICLE_SIZE_PX,
        gt=0.0,
        description="Side of the on-screen square reticle in pixels",
    )


class SchedulerConfig(BaseModel):
    """Periods of the three scheduler tasks (seconds)."""

    candidate_refresh_sec: float = Field(default=constants.CANDIDATE_REFRESH_SEC, gt=0.0)
    visibility_tick_sec: float = Field(default=constants.VISIBILITY_TICK_SEC, gt=0.0)
    detection_interval_sec: float = Field(default=constants.DETECTION_INTERVAL_SEC, gt=0.0)

    @model_validator(mode="after")
    def validate_cadence(self) -> "SchedulerConfig":
        """Detection must not run faster than the tick it consumes."""
        if self.detection_interval_sec < self.visibility_tick_sec:
            raise ValueError(
                "detection_interval_sec must be >= visibility_tick_sec "
                f"({self.detection_interval_sec} < {self.visibility_tick_sec})"
            )
        return self


class DetectionConfig(BaseModel):
    """Constellation scoring and hysteresis thresholds."""

    min_line_fraction: float = Field(default=constants.MIN_VISIBLE_LINE_FRACTION, gt=0.0, le=1.0)
    ratio_weight: float = Field(default=constants.LINE_RATIO_WEIGHT, ge=0.0, le=1.0)
    proximity_weight: float = Field(default=constants.PROXIMITY_WEIGHT, ge=0.0, le=1.0)
    proximity_falloff_deg: float = Field(default=constants.PROXIMITY_FALLOFF_DEG, gt=0.0)

    keep_threshold: float = Field(default=constants.KEEP_THRESHOLD, ge=0.0, le=1.0)
    adopt_threshold: float = Field(default=constants.ADOPT_THRESHOLD, ge=0.0, le=1.0)
    switch_threshold: float = Field(default=constants.SWITCH_THRESHOLD, ge=0.0, le=1.0)
    switch_margin: float = Field(default=constants.SWITCH_MARGIN, ge=0.0, le=1.0)

    detected_line_radius_deg: float = Field(default=constants.DETECTED_LINE_RADIUS_DEG, gt=0.0)
    nearby_line_radius_deg: float = Field(default=constants.NEARBY_LINE_RADIUS_DEG, gt=0.0)
    hybrid_max_segments: int = Field(default=constants.HYBRID_MAX_SEGMENTS, ge=0)

    draw_mode: ConstellationDrawMode = Field(default=ConstellationDrawMode.DETECTED)
    enabled: bool = Field(default=True, description="Compute constellation lines at all")

    @model_validator(mode="after")
    def validate_weights(self) -> "DetectionConfig":
        """Score weights must sum to 1 so scores stay in [0, 1]."""
        total = self.ratio_weight + self.proximity_weight
        if abs(total - 1.0) > 1e-6:
            raise ValueError(f"ratio_weight + proximity_weight must equal 1.0, got {total}")
        return self


class CatalogConfig(BaseModel):
    """Where the star and constellation catalogs come from."""

    stars_path: Optional[Path] = Field(
        default=None,
        description="JSON star list; None uses the bundled bright-star asset",
    )
    hyg_csv_path: Optional[Path] = Field(
        default=None,
        description="Optional HYG database CSV merged after the JSON stars",
    )
    hyg_limit: int = Field(default=constants.HYG_DEFAULT_LIMIT, ge=0)
    constellations_path: Optional[Path] = Field(
        default=None,
        description="JSON constellation lines; None uses the bundled asset",
    )
    include_planets: bool = Field(default=True)

    @field_validator("stars_path", "hyg_csv_path", "constellations_path")
    @classmethod
    def expand_user(cls, v: Optional[Path]) -> Optional[Path]:
        """Expand ~ in configured paths."""
        return v.expanduser() if v is not None else v


class StargazerConfig(BaseModel):
    """Master configuration aggregating all sections."""

    model_config = ConfigDict(extra="ignore")

    observer: ObserverConfig = Field(default_factory=ObserverConfig)
    view: ViewConfig = Field(default_factory=ViewConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    detection: DetectionConfig = Field(default_factory=DetectionConfig)
    catalog: CatalogConfig = Field(default_factory=CatalogConfig)

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Global logging level",
    )
    log_file: Optional[Path] = Field(default=None)
    log_levels: Dict[str, Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]] = Field(
        default_factory=dict,
        description="Per-component levels, e.g. {\"scheduler\": \"DEBUG\"}",
    )


# =============================================================================
# Configuration Loading
# =============================================================================


def get_config_paths() -> list[Path]:
    """Config file paths to search, in priority order (first found wins)."""
    home = Path.home()
    return [
        Path("./stargazer.yaml"),
        Path("./stargazer.yml"),
        home / ".stargazer" / "config.yaml",
        home / ".stargazer" / "config.yml",
        Path("/etc/stargazer/config.yaml"),
    ]


def _coerce_env_value(value: str):
    if value.lower() in ("true", "false"):
        return value.lower() == "true"
    if value.isdigit():
        return int(value)
    try:
        return float(value)
    except ValueError:
        return value


def _apply_env_overrides(config_dict: dict) -> dict:
    """Apply STARGAZER_SECTION_KEY environment variables.

    Example: STARGAZER_VIEW_FIELD_OF_VIEW=45 -> view.field_of_view = 45
    Top-level keys use the section name directly: STARGAZER_LOG_LEVEL=DEBUG.
    """
    top_level = {"log_level", "log_file"}

    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue

        name = key[len(ENV_PREFIX):].lower()
        if name in top_level:
            config_dict[name] = value.upper() if name == "log_level" else value
            continue

        parts = name.split("_")
        if len(parts) < 2:
            continue

        section = parts[0]
        setting = "_".join(parts[1:])

        if not isinstance(config_dict.get(section), dict):
            config_dict[section] = {}
        config_dict[section][setting] = _coerce_env_value(value)

    return config_dict


def load_config(config_path: Optional[str | Path] = None) -> StargazerConfig:
    """Load configuration from file with validation.

    Args:
        config_path: Explicit config file path, or None for auto-discovery

    Returns:
        Validated StargazerConfig

    Raises:
        ConfigurationError: If the file is missing, invalid or fails validation
    """
    config_dict: dict = {}

    if config_path:
        path = Path(config_path)
        if not path.exists():
            raise ConfigurationError(f"Config file not found: {path}")
        config_files = [path]
    else:
        config_files = get_config_paths()

    for path in config_files:
        if path.exists():
            try:
                with open(path, encoding="utf-8") as f:
                    config_dict = yaml.safe_load(f) or {}
                break
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
            except OSError as e:
                raise ConfigurationError(f"Cannot read {path}: {e}") from e

    if not isinstance(config_dict, dict):
        raise ConfigurationError("Config file must contain a mapping at the top level")

    config_dict = _apply_env_overrides(config_dict)

    try:
        return StargazerConfig(**config_dict)
    except Exception as e:
        raise ConfigurationError(f"Configuration validation failed: {e}") from e
