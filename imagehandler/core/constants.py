"""
Constants and configuration values for the image handler.
Centralizes all magic numbers and configuration constants.
"""


# Image Codec Constants
class ImageConstants:
    """Constants related to image codecs and output."""

    # Quality
    DEFAULT_JPEG_QUALITY = 75
    MIN_JPEG_QUALITY = 0
    MAX_JPEG_QUALITY = 100

    # Text overlay
    DEFAULT_FONT_SIZE = 12

    # Translucency range of the raster engine (0 = opaque, 127 = fully transparent)
    MAX_ALPHA = 127

    # Background fills
    DEFAULT_THUMB_BACKGROUND = (0, 0, 0)
    DEFAULT_CANVAS_BACKGROUND = (255, 255, 255)

    # GIF encoding
    GIF_PALETTE_COLORS = 255
    GIF_ALPHA_THRESHOLD = 128


# Deferred Command Constants
class CommandConstants:
    """Constants for the external convert command surface."""

    DEFAULT_CONVERT_PATH = "convert"
    DEST_PLACEHOLDER = "%dest%"

    # Flags
    QUIET = "-quiet"
    STRIP = "-strip"
    FLOP = "-flop"
    FLIP = "-flip"
    ROTATE = "-rotate"
    CROP = "-crop"
    COLORSPACE = "-colorspace"
    GRAY = "Gray"
    FONT = "-font"
    POINTSIZE = "-pointsize"
    DRAW = "-draw"
    DEFINE = "-define"
    THUMBNAIL = "-thumbnail"
    BACKGROUND = "-background"
    GRAVITY = "-gravity"
    CENTER = "center"
    EXTENT = "-extent"
    RESIZE = "-resize"
    GEOMETRY = "-geometry"
    COMPOSITE = "-composite"
    QUALITY = "-quality"


# System Constants
class SystemConstants:
    """Constants for system operations."""

    # Logging
    LOG_LEVEL_DEFAULT = "INFO"
    LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # API
    DEFAULT_HOST = "0.0.0.0"
    DEFAULT_PORT = 8000
    API_VERSION = "v1"
