"""
Execution drivers for image sessions.

- raster: applies transforms immediately to an in-memory pixel buffer
- deferred: records one convert command, executed at save time
"""

import logging
from typing import Any, Optional

from imagehandler.core.drivers.base import ImageDriver, TextOverlay, WatermarkOverlay
from imagehandler.core.drivers.deferred import DeferredDriver, PendingCommand
from imagehandler.core.drivers.raster import RasterDriver
from imagehandler.core.drivers.settings import DriverSettings
from imagehandler.core.enums import DRIVER_ALIASES, Driver
from imagehandler.core.exceptions import InvalidDriver
from imagehandler.core.utils.enum_converter import parse_enum

logger = logging.getLogger(__name__)


def create_driver(driver: Any = None, settings: Optional[DriverSettings] = None) -> ImageDriver:
    """
    Create a driver instance.

    Args:
        driver: Driver member or name ("raster", "deferred", or the legacy
            "GD" / "ImageMagick"); defaults to settings.driver
        settings: Driver options (defaults apply when omitted)

    Returns:
        New driver instance

    Raises:
        InvalidDriver: if the driver is unknown
    """
    settings = settings or DriverSettings()
    kind = settings.driver if driver is None else parse_enum(
        driver, Driver, aliases=DRIVER_ALIASES, error_class=InvalidDriver
    )

    if kind == Driver.RASTER:
        return RasterDriver()
    if kind == Driver.DEFERRED:
        return DeferredDriver(settings)

    raise InvalidDriver(f"Invalid driver name: {driver!r}")


__all__ = [
    "DeferredDriver",
    "DriverSettings",
    "ImageDriver",
    "PendingCommand",
    "RasterDriver",
    "TextOverlay",
    "WatermarkOverlay",
    "create_driver",
]
