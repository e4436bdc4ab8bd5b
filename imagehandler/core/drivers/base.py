"""
Driver interface shared by the raster and deferred execution strategies.

The session computes all geometry and hands drivers finished numbers;
each transform returns the working size the image has afterwards.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import numpy as np

from imagehandler.core.enums import Driver, FlipMode, ImageFormat
from imagehandler.core.image.loader import ImageInfo
from imagehandler.schemas.common import ROI, Color, Point, Size


@dataclass
class TextOverlay:
    """Measured text ready to be drawn"""

    text: str
    font_file: Optional[str]
    size: int
    color: Color
    angle: float
    position: Point
    layer: np.ndarray  # rendered RGBA glyph box


@dataclass
class WatermarkOverlay:
    """Watermark image placed on the canvas"""

    info: ImageInfo
    size: Size
    position: Point


class ImageDriver(ABC):
    """Base class for execution drivers"""

    kind: Driver

    #: True when every transform reads the pristine source file rather than
    #: the result of the previous transform.
    applies_to_source: bool = False

    def __init__(self):
        self.info: Optional[ImageInfo] = None

    @property
    def loaded(self) -> bool:
        return self.info is not None

    @abstractmethod
    def load(self, info: ImageInfo) -> None:
        """Take ownership of a freshly probed image."""

    @abstractmethod
    def reload(self) -> None:
        """Restore the pristine working state of the loaded image."""

    def free(self) -> None:
        """Release any resource held for the loaded image."""
        self.info = None

    @abstractmethod
    def resize(self, size: Size) -> Size: ...

    @abstractmethod
    def crop(self, region: ROI) -> Size: ...

    @abstractmethod
    def flip(self, mode: FlipMode) -> Size: ...

    @abstractmethod
    def rotate(self, degrees: int) -> Size: ...

    @abstractmethod
    def grayscale(self) -> Size: ...

    @abstractmethod
    def watermark(self, overlay: WatermarkOverlay) -> Size: ...

    @abstractmethod
    def text(self, overlay: TextOverlay) -> Size: ...

    @abstractmethod
    def adaptive_thumb(self, target: Size, scale: Size, region: ROI, background: Color) -> Size: ...

    @abstractmethod
    def resize_canvas(
        self, canvas: Size, content: Size, position: Point, background: Color
    ) -> Size: ...

    @abstractmethod
    def save(self, path: Path, image_format: ImageFormat, quality: int) -> Path:
        """
        Persist the result.

        Returns:
            Path actually written (drivers may normalize the extension)
        """

    @abstractmethod
    def render(self, image_format: ImageFormat, quality: int) -> bytes:
        """Encode the result to bytes without touching the session's file."""
