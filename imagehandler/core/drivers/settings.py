"""
Driver configuration.
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator

from imagehandler.core.constants import CommandConstants, ImageConstants
from imagehandler.core.enums import DRIVER_ALIASES, Driver
from imagehandler.core.exceptions import InvalidDriver
from imagehandler.core.utils.enum_converter import parse_enum


class DriverSettings(BaseModel):
    """
    Options understood by the drivers.

    - driver: which execution driver sessions use
    - convert_path: convert binary used by the deferred driver
    - check_exit_status: treat a non-zero convert exit as SaveFailure;
      when False a failing command is only logged (legacy behaviour)
    - default_jpeg_quality: quality used when callers pass none
    """

    driver: Driver = Driver.RASTER
    convert_path: str = CommandConstants.DEFAULT_CONVERT_PATH
    check_exit_status: bool = True
    default_jpeg_quality: int = Field(
        ImageConstants.DEFAULT_JPEG_QUALITY,
        ge=ImageConstants.MIN_JPEG_QUALITY,
        le=ImageConstants.MAX_JPEG_QUALITY,
    )

    @field_validator("driver", mode="before")
    @classmethod
    def validate_driver(cls, v: Any) -> Driver:
        return parse_enum(v, Driver, aliases=DRIVER_ALIASES, error_class=InvalidDriver)
