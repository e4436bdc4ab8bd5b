"""
imagehandler - image transformation sessions with pluggable drivers.
"""

from imagehandler.core.enums import Corner, Driver, FlipMode, ImageFormat
from imagehandler.core.exceptions import (
    ImageHandlerError,
    InvalidDriver,
    InvalidEnumValue,
    LoadFailure,
    NotLoaded,
    SaveFailure,
    UnsupportedCorner,
)
from imagehandler.core.session import EncodedImage, ImageSession

__version__ = "1.0.0"

__all__ = [
    "Corner",
    "Driver",
    "EncodedImage",
    "FlipMode",
    "ImageFormat",
    "ImageHandlerError",
    "ImageSession",
    "InvalidDriver",
    "InvalidEnumValue",
    "LoadFailure",
    "NotLoaded",
    "SaveFailure",
    "UnsupportedCorner",
]
