"""
Raster driver - applies every transform immediately to an RGBA pixel buffer.

Pixel work is done with OpenCV on NumPy arrays; decoding, encoding and
glyph rendering go through Pillow.
"""

import logging
from pathlib import Path
from typing import Optional

import cv2
import numpy as np

from imagehandler.core.drivers.base import ImageDriver, TextOverlay, WatermarkOverlay
from imagehandler.core.enums import Driver, FlipMode, ImageFormat
from imagehandler.core.exceptions import InvalidEnumValue, NotLoaded, SaveFailure
from imagehandler.core.geometry import rotated_bounds
from imagehandler.core.image.converters import ImageConverters
from imagehandler.core.image.loader import ImageInfo, decode_image
from imagehandler.core.overlay_renderer import OverlayRenderer
from imagehandler.schemas.common import ROI, Color, Point, Size

logger = logging.getLogger(__name__)

# cv2.flip codes
_FLIP_CODES = {
    FlipMode.HORIZONTAL: 1,
    FlipMode.VERTICAL: 0,
    FlipMode.BOTH: -1,
}


def resample(image: np.ndarray, size: Size) -> np.ndarray:
    """
    Resample an RGBA buffer to a new size.

    INTER_AREA when shrinking, INTER_LINEAR when enlarging.
    """
    height, width = image.shape[:2]
    if (width, height) == (size.width, size.height):
        return image.copy()

    shrinking = size.width * size.height < width * height
    interpolation = cv2.INTER_AREA if shrinking else cv2.INTER_LINEAR
    return cv2.resize(image, (size.width, size.height), interpolation=interpolation)


class RasterDriver(ImageDriver):
    """In-memory pixel driver"""

    kind = Driver.RASTER

    def __init__(self, renderer: Optional[OverlayRenderer] = None):
        super().__init__()
        self.renderer = renderer or OverlayRenderer()
        self._image: Optional[np.ndarray] = None
        self._original: Optional[np.ndarray] = None

    @property
    def image(self) -> np.ndarray:
        """Current RGBA buffer"""
        if self._image is None:
            raise NotLoaded()
        return self._image

    @property
    def size(self) -> Size:
        height, width = self.image.shape[:2]
        return Size(width=width, height=height)

    def load(self, info: ImageInfo) -> None:
        self.free()
        self._original = decode_image(info.path)
        self._image = self._original.copy()
        self.info = info
        logger.debug(f"Decoded {info.path} into {info.width}x{info.height} RGBA buffer")

    def reload(self) -> None:
        if self._original is None:
            raise NotLoaded()
        self._image = self._original.copy()

    def free(self) -> None:
        self._image = None
        self._original = None
        super().free()

    def resize(self, size: Size) -> Size:
        self._image = resample(self.image, size)
        return self.size

    def crop(self, region: ROI) -> Size:
        self._image = self.image[region.y : region.y2, region.x : region.x2].copy()
        return self.size

    def flip(self, mode: FlipMode) -> Size:
        if mode not in _FLIP_CODES:
            raise InvalidEnumValue(f"Invalid flip mode: {mode!r}")
        self._image = cv2.flip(self.image, _FLIP_CODES[mode])
        return self.size

    def rotate(self, degrees: int) -> Size:
        """Rotate counter-clockwise about the centre; uncovered pixels are transparent."""
        image = self.image
        degrees = int(degrees) % 360

        if degrees % 90 == 0:
            self._image = np.ascontiguousarray(np.rot90(image, k=degrees // 90))
            return self.size

        height, width = image.shape[:2]
        bounds = rotated_bounds(Size(width=width, height=height), degrees)

        matrix = cv2.getRotationMatrix2D(((width - 1) / 2.0, (height - 1) / 2.0), degrees, 1.0)
        matrix[0, 2] += (bounds.width - width) / 2.0
        matrix[1, 2] += (bounds.height - height) / 2.0

        self._image = cv2.warpAffine(
            image,
            matrix,
            (bounds.width, bounds.height),
            flags=cv2.INTER_LINEAR,
            borderMode=cv2.BORDER_CONSTANT,
            borderValue=(0, 0, 0, 0),
        )
        return self.size

    def grayscale(self) -> Size:
        image = self.image.copy()
        gray = cv2.cvtColor(np.ascontiguousarray(image[..., :3]), cv2.COLOR_RGB2GRAY)
        image[..., 0] = gray
        image[..., 1] = gray
        image[..., 2] = gray
        self._image = image
        return self.size

    def watermark(self, overlay: WatermarkOverlay) -> Size:
        layer = decode_image(overlay.info.path)
        layer_height, layer_width = layer.shape[:2]
        if (layer_width, layer_height) != (overlay.size.width, overlay.size.height):
            layer = resample(layer, overlay.size)

        self.renderer.composite(self.image, layer, overlay.position)
        return self.size

    def text(self, overlay: TextOverlay) -> Size:
        self.renderer.composite(self.image, overlay.layer, overlay.position)
        return self.size

    def adaptive_thumb(self, target: Size, scale: Size, region: ROI, background: Color) -> Size:
        self.resize(scale)
        return self.crop(region)

    def resize_canvas(self, canvas: Size, content: Size, position: Point, background: Color) -> Size:
        r, g, b = background.to_rgb()
        new_image = np.empty((canvas.height, canvas.width, 4), dtype=np.uint8)
        new_image[...] = (r, g, b, 255)

        scaled = resample(self.image, content)
        self.renderer.composite(new_image, scaled, position)

        self._image = new_image
        return self.size

    def render(self, image_format: ImageFormat, quality: int) -> bytes:
        return ImageConverters.encode(self.image, image_format, quality)

    def save(self, path: Path, image_format: ImageFormat, quality: int) -> Path:
        data = self.render(image_format, quality)
        try:
            Path(path).write_bytes(data)
        except OSError as e:
            logger.error(f"Failed to write {path}: {e}")
            raise SaveFailure(f"Can't save {image_format.name.lower()} file {path}: {e}") from e
        return Path(path)
