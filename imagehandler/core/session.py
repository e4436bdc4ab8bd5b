"""
Image Session - fluent, single-image transformation API.

A session loads one image, applies transforms through its driver and
writes the result. Every transform returns the session itself:

    with ImageSession() as session:
        session.load("photo.jpg").thumb(200, 200).grayscale().save("thumb.png", ImageFormat.PNG)

Sessions are not thread-safe; serialize calls on one session.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, BinaryIO, Optional, Union

from imagehandler.core.constants import ImageConstants
from imagehandler.core.drivers import DriverSettings, ImageDriver, create_driver
from imagehandler.core.drivers.base import TextOverlay, WatermarkOverlay
from imagehandler.core.enums import FORMAT_ALIASES, Corner, Driver, FlipMode, ImageFormat
from imagehandler.core.exceptions import NotLoaded, SaveFailure
from imagehandler.core.geometry import (
    cover_then_crop,
    crop_region,
    fit_within,
    resolve_position,
    shrink_to_fit_canvas,
    zoom_to_fit,
)
from imagehandler.core.image.loader import ImageInfo, probe_image
from imagehandler.core.overlay_renderer import OverlayRenderer
from imagehandler.core.utils.enum_converter import parse_enum
from imagehandler.schemas.common import Color, ColorLike, Point, Size

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass(frozen=True)
class EncodedImage:
    """Encoded image bytes with their content type"""

    data: bytes
    format: ImageFormat

    @property
    def mime_type(self) -> str:
        return self.format.mime_type


def _require_positive(**dimensions: int) -> None:
    for name, value in dimensions.items():
        if value is None or int(value) <= 0:
            raise ValueError(f"{name} must be a positive number of pixels, got {value!r}")


class ImageSession:
    """
    Applies an ordered sequence of transforms to one loaded image.

    The working size (width/height) follows every transform. The original
    header information is kept separately so reload() can restore the
    pristine state without reading the file again.
    """

    def __init__(
        self,
        driver: Any = None,
        settings: Optional[DriverSettings] = None,
        renderer: Optional[OverlayRenderer] = None,
    ):
        """
        Initialize image session.

        Args:
            driver: Driver member or name; defaults to settings.driver
            settings: Driver options
            renderer: Text renderer used to measure glyph boxes

        Raises:
            InvalidDriver: if the driver is unknown
        """
        self.settings = settings or DriverSettings()
        self._driver: ImageDriver = create_driver(driver, self.settings)
        self.renderer = renderer or OverlayRenderer()

        self._original: Optional[ImageInfo] = None
        self._file_name: Optional[Path] = None
        self._format: Optional[ImageFormat] = None
        self._mime_type = ""
        self._saved_path: Optional[Path] = None
        self._width = 0
        self._height = 0

    # Properties

    @property
    def driver(self) -> Driver:
        return self._driver.kind

    @property
    def loaded(self) -> bool:
        return self._original is not None and self._driver.loaded

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def size(self) -> Size:
        return Size(width=self._width, height=self._height)

    @property
    def format(self) -> Optional[ImageFormat]:
        return self._format

    @property
    def mime_type(self) -> str:
        return self._mime_type

    @property
    def file_name(self) -> Optional[Path]:
        return self._file_name

    @property
    def original(self) -> Optional[ImageInfo]:
        """Header information of the loaded file"""
        return self._original

    @property
    def saved_path(self) -> Optional[Path]:
        """Path written by the most recent save(), with its normalized extension"""
        return self._saved_path

    @property
    def backend(self) -> ImageDriver:
        """Active driver instance"""
        return self._driver

    # Lifecycle

    def __enter__(self) -> "ImageSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        """Release the driver's resources; the session must be loaded again before use."""
        self._driver.free()
        self._original = None
        self._width = 0
        self._height = 0

    def _check_loaded(self) -> None:
        if not self.loaded:
            raise NotLoaded()

    def _init_image(self, info: ImageInfo) -> None:
        self._width = info.width
        self._height = info.height
        self._mime_type = info.mime_type
        self._format = info.format

    def _set_size(self, size: Size) -> None:
        self._width = size.width
        self._height = size.height

    def _canvas(self) -> Size:
        """
        Size the next transform starts from.

        Drivers that always read the source file start from the original size.
        """
        if self._driver.applies_to_source:
            return Size(width=self._original.width, height=self._original.height)
        return self.size

    def load(self, file: PathLike) -> "ImageSession":
        """
        Load an image file, releasing any previously loaded image first.

        Raises:
            LoadFailure: if the file is missing, unreadable or not a GIF/JPEG/PNG
        """
        logger.debug(f"ImageSession.load: {file}")
        self.close()

        info = probe_image(file)
        self._driver.load(info)

        self._original = info
        self._file_name = info.path
        self._init_image(info)

        logger.info(f"Loaded {info.path} ({info.width}x{info.height} {info.format.name})")
        return self

    def reload(self) -> "ImageSession":
        """
        Discard pending transforms and restore the loaded image.

        With the raster driver this is the decoded file from load(), even
        after save(). The deferred driver makes each saved output its new
        source, so after save() it restores the saved file instead.
        """
        logger.debug("ImageSession.reload")
        self._check_loaded()

        self._driver.reload()
        self._init_image(self._original)
        return self

    # Transforms

    def resize(
        self, to_width: Optional[int], to_height: Optional[int], proportional: bool = True
    ) -> "ImageSession":
        """
        Resize to fit within to_width x to_height.

        Args:
            to_width: Target width (None keeps the current width)
            to_height: Target height (None keeps the current height)
            proportional: Preserve aspect ratio
        """
        logger.debug(f"ImageSession.resize: {to_width}x{to_height} proportional={proportional}")
        self._check_loaded()

        canvas = self._canvas()
        to_width = canvas.width if to_width is None else int(to_width)
        to_height = canvas.height if to_height is None else int(to_height)
        _require_positive(width=to_width, height=to_height)

        size = fit_within(canvas, Size(width=to_width, height=to_height), proportional)
        _require_positive(width=size.width, height=size.height)
        self._set_size(self._driver.resize(size))
        return self

    def thumb(
        self, to_width: Optional[int], to_height: Optional[int], proportional: bool = True
    ) -> "ImageSession":
        """Like resize(), but never enlarges beyond the current size."""
        logger.debug(f"ImageSession.thumb: {to_width}x{to_height}")
        self._check_loaded()

        canvas = self._canvas()
        if to_width is not None:
            to_width = min(int(to_width), canvas.width)
        if to_height is not None:
            to_height = min(int(to_height), canvas.height)

        return self.resize(to_width, to_height, proportional)

    def crop(
        self,
        width: int,
        height: int,
        start_x: Optional[int] = None,
        start_y: Optional[int] = None,
    ) -> "ImageSession":
        """
        Crop a region, centred unless start coordinates are given.

        The region is clamped to the canvas.
        """
        logger.debug(f"ImageSession.crop: {width}x{height} at ({start_x},{start_y})")
        self._check_loaded()
        _require_positive(width=width, height=height)

        region = crop_region(self._canvas(), int(width), int(height), start_x, start_y)
        if region.is_empty:
            raise ValueError(f"Crop region {region.to_geometry()} lies outside the image")

        self._set_size(self._driver.crop(region))
        return self

    def flip(self, mode) -> "ImageSession":
        """
        Mirror the image.

        Raises:
            InvalidEnumValue: if mode is not a FlipMode
        """
        logger.debug(f"ImageSession.flip: {mode}")
        self._check_loaded()

        mode = parse_enum(mode, FlipMode)
        self._set_size(self._driver.flip(mode))
        return self

    def rotate(self, degrees: int) -> "ImageSession":
        """Rotate by whole degrees; the canvas grows to the rotated bounding box."""
        logger.debug(f"ImageSession.rotate: {degrees}")
        self._check_loaded()

        self._set_size(self._driver.rotate(int(degrees)))
        return self

    def grayscale(self) -> "ImageSession":
        logger.debug("ImageSession.grayscale")
        self._check_loaded()

        self._set_size(self._driver.grayscale())
        return self

    def watermark(
        self,
        watermark_file: PathLike,
        offset_x: int = 0,
        offset_y: int = 0,
        corner=Corner.RIGHT_BOTTOM,
        zoom: Optional[float] = None,
    ) -> "ImageSession":
        """
        Composite another image on top of this one.

        Args:
            watermark_file: Image to overlay
            offset_x: Horizontal offset from the anchored edge
            offset_y: Vertical offset from the anchored edge
            corner: Anchor corner
            zoom: Scale the watermark to fit a square of zoom * max(width, height)

        Raises:
            LoadFailure: if the watermark cannot be loaded
            InvalidEnumValue: for an unknown corner (UnsupportedCorner for TILE)
        """
        logger.debug(f"ImageSession.watermark: {watermark_file} corner={corner} zoom={zoom}")
        self._check_loaded()

        corner = parse_enum(corner, Corner)
        info = probe_image(watermark_file)
        canvas = self._canvas()

        size = Size(width=info.width, height=info.height)
        if zoom is not None:
            size = zoom_to_fit(size, canvas, zoom)
            _require_positive(width=size.width, height=size.height)

        position = resolve_position(corner, size, canvas, Point(x=int(offset_x), y=int(offset_y)))
        overlay = WatermarkOverlay(info=info, size=size, position=position)

        self._set_size(self._driver.watermark(overlay))
        return self

    def text(
        self,
        text: str,
        font_file: Optional[PathLike] = None,
        size: int = ImageConstants.DEFAULT_FONT_SIZE,
        color: ColorLike = (0, 0, 0),
        corner=Corner.LEFT_TOP,
        offset_x: int = 0,
        offset_y: int = 0,
        angle: float = 0,
        alpha: int = 0,
    ) -> "ImageSession":
        """
        Draw text anchored at a corner.

        Args:
            text: Text to draw
            font_file: TrueType font file (None = Pillow's default font)
            size: Font size
            color: RGB colour (tuple, Color or '#rrggbb')
            corner: Anchor corner
            offset_x: Horizontal offset from the anchored edge
            offset_y: Vertical offset from the anchored edge
            angle: Counter-clockwise text angle in degrees
            alpha: Translucency 0 (opaque) .. 127 (transparent)

        Raises:
            InvalidEnumValue: for an unknown corner (UnsupportedCorner for TILE)
        """
        logger.debug(f"ImageSession.text: {text!r} size={size} corner={corner}")
        self._check_loaded()

        corner = parse_enum(corner, Corner)
        fill = Color.from_value(color).with_alpha(int(alpha))
        font = str(font_file) if font_file else None

        try:
            layer = self.renderer.render_text(text, font, int(size), fill, angle)
        except OSError as e:
            raise ValueError(f"Cannot load font {font_file}: {e}") from e

        position = resolve_position(
            corner,
            self.renderer.measure(layer),
            self._canvas(),
            Point(x=int(offset_x), y=int(offset_y)),
        )
        overlay = TextOverlay(
            text=text,
            font_file=font,
            size=int(size),
            color=fill,
            angle=angle,
            position=position,
            layer=layer,
        )

        self._set_size(self._driver.text(overlay))
        return self

    def adaptive_thumb(
        self,
        width: int,
        height: int,
        background_color: ColorLike = ImageConstants.DEFAULT_THUMB_BACKGROUND,
    ) -> "ImageSession":
        """Scale to cover width x height, then crop the centre to exactly that size."""
        logger.debug(f"ImageSession.adaptive_thumb: {width}x{height}")
        self._check_loaded()
        _require_positive(width=width, height=height)

        target = Size(width=int(width), height=int(height))
        scale = cover_then_crop(self._canvas(), target)
        region = crop_region(scale, target.width, target.height)
        background = Color.from_value(background_color)

        self._set_size(self._driver.adaptive_thumb(target, scale, region, background))
        return self

    def resize_canvas(
        self,
        to_width: int,
        to_height: int,
        background_color: ColorLike = ImageConstants.DEFAULT_CANVAS_BACKGROUND,
    ) -> "ImageSession":
        """Centre the (never enlarged) image on a to_width x to_height canvas."""
        logger.debug(f"ImageSession.resize_canvas: {to_width}x{to_height}")
        self._check_loaded()
        _require_positive(width=to_width, height=to_height)

        canvas = Size(width=int(to_width), height=int(to_height))
        content, position = shrink_to_fit_canvas(self._canvas(), canvas)
        _require_positive(width=content.width, height=content.height)
        background = Color.from_value(background_color)

        self._set_size(self._driver.resize_canvas(canvas, content, position, background))
        return self

    # Output

    def resolve_format(self, image_format) -> ImageFormat:
        """Parse a format value; None means the session's current format."""
        if image_format is None:
            return self._format
        return parse_enum(image_format, ImageFormat, aliases=FORMAT_ALIASES)

    def _quality(self, quality: Optional[int]) -> int:
        return self.settings.default_jpeg_quality if quality is None else int(quality)

    def render(self, in_format=None, quality: Optional[int] = None) -> EncodedImage:
        """
        Encode the current result without writing a file.

        Args:
            in_format: Output format (defaults to the loaded image's format)
            quality: JPEG quality 0-100

        Raises:
            InvalidEnumValue: for an unknown format
            SaveFailure: if encoding fails
        """
        self._check_loaded()
        image_format = self.resolve_format(in_format)
        data = self._driver.render(image_format, self._quality(quality))
        return EncodedImage(data=data, format=image_format)

    def show(self, stream: BinaryIO, in_format=None, quality: Optional[int] = None) -> "ImageSession":
        """Write the encoded result to a binary stream."""
        logger.debug(f"ImageSession.show: {in_format}")
        encoded = self.render(in_format, quality)
        stream.write(encoded.data)
        return self

    def save(
        self,
        file: Optional[PathLike] = None,
        to_format=None,
        quality: Optional[int] = None,
        touch: bool = False,
    ) -> "ImageSession":
        """
        Write the result to a file.

        Args:
            file: Output path (defaults to overwriting the loaded file)
            to_format: Output format (defaults to the loaded image's format)
            quality: JPEG quality 0-100
            touch: Copy the source file's modification time to the output

        Raises:
            InvalidEnumValue: for an unknown format
            SaveFailure: if encoding, writing or the external command fails
        """
        logger.debug(f"ImageSession.save: {file} format={to_format}")
        self._check_loaded()

        source = self._file_name
        target = Path(file) if file else source
        image_format = self.resolve_format(to_format)

        written = self._driver.save(target, image_format, self._quality(quality))
        self._saved_path = written
        logger.info(f"Saved {written} ({self._width}x{self._height} {image_format.name})")

        if self._driver.applies_to_source:
            # The output becomes the source of subsequent commands
            info = ImageInfo(
                path=written,
                width=self._width,
                height=self._height,
                format=image_format,
                mime_type=image_format.mime_type,
            )
            self._driver.rebase(info)
            self._original = info
            self._file_name = written
            self._format = image_format
            self._mime_type = image_format.mime_type

        if touch and written.resolve() != source.resolve():
            try:
                stat = os.stat(source)
                os.utime(written, (stat.st_atime, stat.st_mtime))
            except OSError as e:
                raise SaveFailure(f"Cannot copy modification time to {written}: {e}") from e

        return self
