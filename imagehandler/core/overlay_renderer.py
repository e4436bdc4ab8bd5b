"""
Overlay rendering for the raster driver.

Provides text layers (measured, rotated glyph boxes) and alpha compositing
of overlays such as watermarks onto RGBA pixel buffers.
"""

import logging
from typing import Optional

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from imagehandler.core.constants import ImageConstants
from imagehandler.core.image.converters import ImageConverters
from imagehandler.schemas.common import Color, Point, Size

logger = logging.getLogger(__name__)


class OverlayRenderer:
    """
    Renders text and composites overlays on RGBA buffers.

    Text is drawn into its own tight layer first so that its measured box
    can be positioned with the same corner rules as any other overlay.
    """

    def __init__(self, resample=Image.Resampling.BICUBIC):
        """
        Initialize overlay renderer.

        Args:
            resample: PIL resampling filter used when rotating text layers
        """
        self.resample = resample

    @staticmethod
    def load_font(font_file: Optional[str], size: int) -> ImageFont.ImageFont:
        """
        Load a TrueType font, or Pillow's default font when no file is given.

        Raises:
            OSError: if the font file cannot be read
        """
        if font_file:
            return ImageFont.truetype(str(font_file), size=size)
        return ImageFont.load_default(size=size)

    def render_text(
        self,
        text: str,
        font_file: Optional[str] = None,
        size: int = ImageConstants.DEFAULT_FONT_SIZE,
        color: Optional[Color] = None,
        angle: float = 0,
    ) -> np.ndarray:
        """
        Render text into a tight RGBA layer.

        Args:
            text: Text to draw
            font_file: Path to a TrueType font (None = default font)
            size: Font size in points
            color: Fill colour, translucency taken from color.alpha
            angle: Counter-clockwise rotation in degrees

        Returns:
            RGBA layer whose shape is the measured text box
        """
        color = color or Color()
        font = self.load_font(font_file, size)

        left, top, right, bottom = font.getbbox(text)
        width, height = max(0, right - left), max(0, bottom - top)
        if not width or not height:
            return np.zeros((height, width, 4), dtype=np.uint8)

        layer = Image.new("RGBA", (width, height), (0, 0, 0, 0))
        draw = ImageDraw.Draw(layer)
        draw.text((-left, -top), text, font=font, fill=color.to_rgba())
        if angle:
            layer = layer.rotate(angle, resample=self.resample, expand=True)

        return ImageConverters.pil_to_numpy(layer)

    @staticmethod
    def measure(layer: np.ndarray) -> Size:
        """Size of an overlay layer."""
        height, width = layer.shape[:2]
        return Size(width=width, height=height)

    @staticmethod
    def composite(image: np.ndarray, overlay: np.ndarray, position: Point) -> np.ndarray:
        """
        Alpha-blend an overlay onto an image in place.

        Parts of the overlay outside the image are clipped.

        Args:
            image: Destination RGBA buffer (modified)
            overlay: Source RGBA layer
            position: Top-left of the overlay on the image (may be negative)

        Returns:
            The destination buffer
        """
        img_height, img_width = image.shape[:2]
        ov_height, ov_width = overlay.shape[:2]

        x0 = max(0, position.x)
        y0 = max(0, position.y)
        x1 = min(img_width, position.x + ov_width)
        y1 = min(img_height, position.y + ov_height)

        if x1 <= x0 or y1 <= y0:
            logger.debug(f"Overlay at ({position.x},{position.y}) lies outside the canvas")
            return image

        src = overlay[y0 - position.y : y1 - position.y, x0 - position.x : x1 - position.x]
        dst = image[y0:y1, x0:x1]

        src_alpha = src[..., 3:4].astype(np.float32) / 255.0
        dst_alpha = dst[..., 3:4].astype(np.float32) / 255.0

        rgb = src[..., :3].astype(np.float32) * src_alpha + dst[..., :3].astype(np.float32) * (
            1.0 - src_alpha
        )
        alpha = src_alpha + dst_alpha * (1.0 - src_alpha)

        dst[..., :3] = np.clip(np.rint(rgb), 0, 255).astype(np.uint8)
        dst[..., 3:4] = np.clip(np.rint(alpha * 255.0), 0, 255).astype(np.uint8)
        return image
