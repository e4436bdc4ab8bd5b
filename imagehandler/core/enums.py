"""
Centralized enums for the image handler.

Integer values mirror the tags used by existing callers of the image
component, so stored configurations keep working.
"""

from enum import Enum, IntEnum


class ImageFormat(IntEnum):
    """Output codecs (values follow the standard image-type identifiers)."""

    GIF = 1
    JPEG = 2
    PNG = 3

    @property
    def mime_type(self) -> str:
        return _MIME_TYPES[self]

    @property
    def extension(self) -> str:
        """Canonical file extension, without the dot."""
        return _EXTENSIONS[self]

    @property
    def coder(self) -> str:
        """Coder prefix understood by the convert command."""
        return _CODERS[self]

    @property
    def pil_format(self) -> str:
        return self.name


_MIME_TYPES = {
    ImageFormat.GIF: "image/gif",
    ImageFormat.JPEG: "image/jpeg",
    ImageFormat.PNG: "image/png",
}

_EXTENSIONS = {
    ImageFormat.GIF: "gif",
    ImageFormat.JPEG: "jpg",
    ImageFormat.PNG: "png",
}

_CODERS = {
    ImageFormat.GIF: "GIF",
    ImageFormat.JPEG: "JPG",
    ImageFormat.PNG: "PNG",
}


class Corner(IntEnum):
    """Anchor used to place overlays relative to the canvas."""

    LEFT_TOP = 1
    RIGHT_TOP = 2
    LEFT_BOTTOM = 3
    RIGHT_BOTTOM = 4
    CENTER = 5
    CENTER_TOP = 6
    CENTER_BOTTOM = 7
    LEFT_CENTER = 8
    RIGHT_CENTER = 9
    TILE = 10


class FlipMode(IntEnum):
    """Mirror axis for flip()."""

    HORIZONTAL = 1
    VERTICAL = 2
    BOTH = 3


class Driver(str, Enum):
    """Available execution drivers."""

    RASTER = "raster"  # in-memory pixel buffer, applied immediately
    DEFERRED = "deferred"  # single external convert command, applied at save


# Names used by older configurations
DRIVER_ALIASES = {
    "gd": Driver.RASTER,
    "imagemagick": Driver.DEFERRED,
    "im": Driver.DEFERRED,
}

FORMAT_ALIASES = {
    "jpg": ImageFormat.JPEG,
}
