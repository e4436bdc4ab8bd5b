"""
Exception hierarchy for image sessions and their drivers.

Every error raised by the core derives from ImageHandlerError so callers
(and the API layer) can handle the whole taxonomy in one place.
"""


class ImageHandlerError(Exception):
    """Base class for all image handler errors"""

    kind = "image_handler_error"


class InvalidDriver(ImageHandlerError):
    """Unknown driver requested"""

    kind = "invalid_driver"


class LoadFailure(ImageHandlerError):
    """File missing, unreadable, or not a supported image"""

    kind = "load_failure"


class NotLoaded(ImageHandlerError):
    """Transform invoked before a successful load"""

    kind = "not_loaded"

    def __init__(self, message: str = "Load image first"):
        super().__init__(message)


class InvalidEnumValue(ImageHandlerError, ValueError):
    """Unrecognized corner, flip mode, or format value"""

    kind = "invalid_enum_value"


class UnsupportedCorner(InvalidEnumValue):
    """Corner is known but has no placement algorithm (TILE)"""

    kind = "unsupported_corner"


class SaveFailure(ImageHandlerError):
    """Codec write failed or the external process reported failure"""

    kind = "save_failure"
