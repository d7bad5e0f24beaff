"""Engine settings supplied by the host application."""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from openmap.core.config import (
    DEFAULT_BACKGROUND_COLOR,
    DEFAULT_CACHE_DIR,
    DEFAULT_CACHE_HOURS,
    DEFAULT_HEIGHT,
    DEFAULT_OVERLAY_OPACITY,
    DEFAULT_WIDTH,
    DEFAULT_ZOOM,
    DOWNLOAD_TIMEOUT,
    MAX_CONCURRENT_DOWNLOADS,
    MAX_ZOOM,
    MIN_ZOOM,
    USER_AGENT,
    MapStyle,
    parse_map_style,
)

logger = logging.getLogger(__name__)


class OpenMapSettings(BaseModel):
    """Settings for map rendering, tile download and tile caching."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    default_width: int = Field(default=DEFAULT_WIDTH, gt=0)
    default_height: int = Field(default=DEFAULT_HEIGHT, gt=0)
    default_map_style: MapStyle = MapStyle.STANDARD
    default_zoom_level: int = Field(default=DEFAULT_ZOOM, ge=MIN_ZOOM, le=MAX_ZOOM)
    background_color: str = DEFAULT_BACKGROUND_COLOR
    overlay_opacity: float = Field(default=DEFAULT_OVERLAY_OPACITY, ge=0.0, le=1.0)
    tile_download_timeout_seconds: float = Field(default=DOWNLOAD_TIMEOUT, gt=0)
    enable_tile_cache: bool = True
    tile_cache_directory: Path = Path(DEFAULT_CACHE_DIR)
    cache_duration_hours: float = Field(default=DEFAULT_CACHE_HOURS, ge=0)
    use_dark_mode: bool = False
    max_concurrent_downloads: int = Field(default=MAX_CONCURRENT_DOWNLOADS, gt=0)
    user_agent: str = USER_AGENT

    @field_validator("default_map_style", mode="before")
    @classmethod
    def _parse_style(cls, value):
        return parse_map_style(value)

    @field_validator("user_agent")
    @classmethod
    def _require_user_agent(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("user_agent must identify the application")
        return value


def load_settings(config_path: str | Path) -> OpenMapSettings:
    """
    Load settings from a YAML file.

    The file may hold the settings at the top level or under an ``openmap``
    key, so the engine section can live inside a larger application config.

    Args:
        config_path: Path to YAML settings file

    Returns:
        Validated OpenMapSettings

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file is not valid YAML or fails validation
    """
    config_file = Path(config_path)
    if not config_file.exists():
        raise FileNotFoundError(f"Settings file not found: {config_path}")

    try:
        with open(config_file) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Settings file must contain a mapping, got {type(data).__name__}")

    if "openmap" in data:
        data = data["openmap"] or {}

    try:
        settings = OpenMapSettings.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Settings validation failed:\n{e}") from e

    logger.debug(f"Loaded settings from {config_file}")
    return settings
