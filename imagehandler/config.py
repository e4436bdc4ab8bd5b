"""
Configuration for the image handler.

Settings are pydantic models grouped by concern. Values come from
IMAGEHANDLER_* environment variables, falling back to the defaults below.
"""

import logging
import os
from functools import lru_cache
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

from imagehandler.core.constants import SystemConstants
from imagehandler.core.drivers.settings import DriverSettings

logger = logging.getLogger(__name__)

ENV_PREFIX = "IMAGEHANDLER_"

_TRUE_VALUES = {"1", "true", "yes", "on"}


class SystemSettings(BaseModel):
    """Logging and debug settings"""

    log_level: str = SystemConstants.LOG_LEVEL_DEFAULT
    debug: bool = False

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log level: {v}")
        return level


class APISettings(BaseModel):
    """HTTP server settings"""

    host: str = SystemConstants.DEFAULT_HOST
    port: int = Field(SystemConstants.DEFAULT_PORT, ge=1, le=65535)
    cors_enabled: bool = False
    cors_origins: list = Field(default_factory=lambda: ["*"])
    # Request paths are resolved inside this directory
    storage_root: str = "."


class Settings(BaseModel):
    """Application settings"""

    environment: str = "development"
    system: SystemSettings = Field(default_factory=SystemSettings)
    api: APISettings = Field(default_factory=APISettings)
    drivers: DriverSettings = Field(default_factory=DriverSettings)

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "Settings":
        """Build settings from IMAGEHANDLER_* environment variables."""
        env = os.environ if environ is None else environ

        def get(name: str) -> Optional[str]:
            return env.get(ENV_PREFIX + name)

        system: Dict[str, Any] = {}
        api: Dict[str, Any] = {}
        drivers: Dict[str, Any] = {}

        if get("LOG_LEVEL"):
            system["log_level"] = get("LOG_LEVEL")
        if get("DEBUG") is not None:
            system["debug"] = get("DEBUG").lower() in _TRUE_VALUES
        if get("HOST"):
            api["host"] = get("HOST")
        if get("PORT"):
            api["port"] = int(get("PORT"))
        if get("CORS_ENABLED") is not None:
            api["cors_enabled"] = get("CORS_ENABLED").lower() in _TRUE_VALUES
        if get("STORAGE_ROOT"):
            api["storage_root"] = get("STORAGE_ROOT")
        if get("DRIVER"):
            drivers["driver"] = get("DRIVER")
        if get("CONVERT_PATH"):
            drivers["convert_path"] = get("CONVERT_PATH")
        if get("CHECK_EXIT_STATUS") is not None:
            drivers["check_exit_status"] = get("CHECK_EXIT_STATUS").lower() in _TRUE_VALUES
        if get("JPEG_QUALITY"):
            drivers["default_jpeg_quality"] = int(get("JPEG_QUALITY"))

        return cls(
            environment=get("ENVIRONMENT") or "development",
            system=SystemSettings(**system),
            api=APISettings(**api),
            drivers=DriverSettings(**drivers),
        )

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    settings = Settings.from_env()
    logger.debug(f"Loaded settings for environment '{settings.environment}'")
    return settings
