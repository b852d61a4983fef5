"""
Occupancy Twin Configuration
============================

This module handles configuration loading for the occupancy twin service.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    TWIN_STREAM_URL            -> stream.url
    TWIN_RECONNECT_BACKOFF_MS  -> stream.reconnect_backoff_ms
    TWIN_MAX_QUEUE_SIZE        -> stream.max_queue_size
    TWIN_ACTIVE_FACILITY       -> active_facility
    TWIN_GRID_SIZE             -> engine.grid_size
    TWIN_SERVICE_PORT          -> server.port
    TWIN_LOG_LEVEL             -> logging.level
    PORT                       -> server.port (Cloud Run)

Example:
    from occupancy_twin.config import settings

    print(settings.stream.url)
    print(settings.engine.grid_size)
    print(settings.get_facility(settings.active_facility).width)
"""

import os
import logging
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, model_validator

from occupancy_twin.models.facility import Facility, FloorPoint


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class ServiceConfig(BaseModel):
    """Service identification configuration."""

    name: str = Field(default="occupancy-twin", description="Service name")
    version: str = Field(default="v0.1.0", description="Protocol version")


class StreamConfig(BaseModel):
    """Tracking backend push-channel configuration."""

    url: str = Field(
        default="ws://localhost:3000/ws?type=browser",
        description="WebSocket URL of the tracking backend",
    )
    reconnect_backoff_ms: int = Field(
        default=3000,
        ge=100,
        description="Backoff in milliseconds between reconnect attempts",
    )
    max_reconnect_attempts: int = Field(
        default=0,
        ge=0,
        description="Maximum reconnection attempts (0 = unlimited)",
    )
    max_queue_size: int = Field(
        default=50,
        ge=1,
        description="Maximum number of buffered snapshots",
    )


class EngineConfig(BaseModel):
    """Smoothing, trail and heatmap tuning."""

    grid_size: float = Field(
        default=25.0,
        gt=0,
        description="Heatmap cell edge length in floor-plan units",
    )
    lerp_factor: float = Field(
        default=0.15,
        gt=0,
        le=1.0,
        description="Fraction of remaining distance covered per frame",
    )
    snap_threshold: float = Field(
        default=0.5,
        ge=0,
        description="Per-axis distance below which entities stop moving",
    )
    trail_spacing: float = Field(
        default=30.0,
        ge=0,
        description="Minimum distance between consecutive trail points",
    )
    trail_max_length: int = Field(
        default=16,
        ge=1,
        description="Maximum trail points per entity",
    )
    heat_per_frame: float = Field(
        default=0.02,
        ge=0,
        description="Heatmap intensity added per entity per frame",
    )
    frame_interval_ms: float = Field(
        default=16.67,
        gt=0,
        description="Duration of one nominal render frame (60 Hz)",
    )
    publish_every_n_ticks: int = Field(
        default=60,
        ge=1,
        description="Publish a heatmap snapshot every N ticks",
    )


def _default_facilities() -> List[Facility]:
    return [
        Facility(
            id="coldroom1",
            name="Makro St.57 (Bangphil-Coldroom1)",
            width=1516,
            height=1016,
            entrance=FloorPoint(x=758, y=980),
        ),
        Facility(
            id="coldroom2",
            name="Makro St.57 (Bangphil-Coldroom2)",
            width=1118,
            height=690,
            entrance=FloorPoint(x=559, y=650),
        ),
    ]


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=8002, ge=1, le=65535, description="Bind port")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="json", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for the occupancy twin.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    service: ServiceConfig = Field(default_factory=ServiceConfig)
    stream: StreamConfig = Field(default_factory=StreamConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    facilities: List[Facility] = Field(default_factory=_default_facilities)
    active_facility: Optional[str] = Field(
        default=None,
        description="Facility selected at startup (first facility if unset)",
    )
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def _check_facilities(self) -> "Settings":
        if not self.facilities:
            raise ValueError("at least one facility must be configured")
        ids = [f.id for f in self.facilities]
        if len(set(ids)) != len(ids):
            raise ValueError(f"duplicate facility ids: {ids}")
        if self.active_facility is None:
            self.active_facility = self.facilities[0].id
        elif self.active_facility not in ids:
            raise ValueError(f"unknown active_facility: {self.active_facility}")
        return self

    def get_facility(self, facility_id: str) -> Facility:
        """
        Look up a configured facility.

        Raises:
            KeyError: If no facility has this id
        """
        for facility in self.facilities:
            if facility.id == facility_id:
                return facility
        raise KeyError(facility_id)


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values

    Args:
        config_path: Path to config.yaml. If None, searches common locations.

    Returns:
        Settings: Loaded configuration
    """
    if config_path is None:
        search_paths = [
            Path("config.yaml"),
            Path("config.yml"),
            Path("/app/config.yaml"),
            Path(__file__).parent.parent.parent / "config.yaml",
        ]
        for path in search_paths:
            if path.exists():
                config_path = str(path)
                break

    config_data = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
    else:
        logger.warning("No config file found, using defaults and environment variables")

    _apply_env_overrides(config_data)

    return Settings.model_validate(config_data)


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    # Stream settings
    if env_url := os.environ.get("TWIN_STREAM_URL"):
        config_data.setdefault("stream", {})["url"] = env_url
    if env_backoff := os.environ.get("TWIN_RECONNECT_BACKOFF_MS"):
        config_data.setdefault("stream", {})["reconnect_backoff_ms"] = int(env_backoff)
    if env_queue := os.environ.get("TWIN_MAX_QUEUE_SIZE"):
        config_data.setdefault("stream", {})["max_queue_size"] = int(env_queue)

    # Engine settings
    if env_facility := os.environ.get("TWIN_ACTIVE_FACILITY"):
        config_data["active_facility"] = env_facility
    if env_grid := os.environ.get("TWIN_GRID_SIZE"):
        config_data.setdefault("engine", {})["grid_size"] = float(env_grid)

    # Server settings (Cloud Run uses PORT env var)
    if env_port := os.environ.get("PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)
    elif env_port := os.environ.get("TWIN_SERVICE_PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)

    # Logging settings
    if env_log := os.environ.get("TWIN_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


# =============================================================================
# Global Settings Instance
# =============================================================================

# Global settings instance - loaded on import
settings = load_config()
setup_logging(settings)
