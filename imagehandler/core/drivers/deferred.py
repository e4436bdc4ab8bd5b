"""
Deferred driver - records a single convert command, executed at save time.

Each transform replaces the pending command: only the most recent
transform reaches the output file. Callers that need several transforms
must save between them (each save makes the output the new source) or use
the raster driver.
"""

import logging
import shlex
import subprocess
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from imagehandler.core.constants import CommandConstants as C
from imagehandler.core.drivers.base import ImageDriver, TextOverlay, WatermarkOverlay
from imagehandler.core.drivers.settings import DriverSettings
from imagehandler.core.enums import Driver, FlipMode, ImageFormat
from imagehandler.core.exceptions import InvalidEnumValue, NotLoaded, SaveFailure
from imagehandler.core.geometry import rotated_bounds
from imagehandler.core.image.loader import ImageInfo
from imagehandler.schemas.common import ROI, Color, Point, Size

logger = logging.getLogger(__name__)

_FLIP_FLAGS = {
    FlipMode.HORIZONTAL: [C.FLOP],
    FlipMode.VERTICAL: [C.FLIP],
    FlipMode.BOTH: [C.FLOP, C.FLIP],
}


@dataclass
class PendingCommand:
    """
    A convert invocation waiting for its destination.

    args holds the argv tokens; exactly one of them is the destination
    placeholder, substituted by render().
    """

    args: List[str] = field(default_factory=list)

    def __post_init__(self):
        count = self.args.count(C.DEST_PLACEHOLDER)
        if count != 1:
            raise ValueError(f"Command must contain exactly one {C.DEST_PLACEHOLDER}, found {count}")

    def render(self, image_format: ImageFormat, quality: int, path: Path) -> List[str]:
        """Resolve the placeholder to '-quality <q> <CODER>:<path>'."""
        destination = [C.QUALITY, str(int(quality)), f"{image_format.coder}:{path}"]
        index = self.args.index(C.DEST_PLACEHOLDER)
        return self.args[:index] + destination + self.args[index + 1 :]

    def to_string(self) -> str:
        """Shell-quoted command line, placeholder included."""
        return shlex.join(self.args)


def escape_draw_text(text: str) -> str:
    """
    Quote-safe text for a -draw primitive.

    Backslashes and single quotes are backslash-escaped; a leading @ is
    escaped so convert does not read the text from a file.
    """
    escaped = text.replace("\\", "\\\\").replace("'", "\\'")
    if escaped.startswith("@"):
        escaped = "\\" + escaped
    return escaped


def normalize_extension(path: Path, image_format: ImageFormat) -> Path:
    """Keep directory and base name, replace the extension with the format's."""
    path = Path(path)
    return path.parent / f"{path.stem}.{image_format.extension}"


class DeferredDriver(ImageDriver):
    """External convert command driver"""

    kind = Driver.DEFERRED
    applies_to_source = True

    def __init__(self, settings: Optional[DriverSettings] = None):
        super().__init__()
        self.settings = settings or DriverSettings(driver=Driver.DEFERRED)
        self.pending: Optional[PendingCommand] = None

    @property
    def source(self) -> str:
        if self.info is None:
            raise NotLoaded()
        return str(self.info.path)

    def _set_pending(self, *args: str) -> None:
        command = PendingCommand(args=[self.settings.convert_path, *args])
        if self.pending is not None and not self._is_identity(self.pending):
            logger.warning(
                f"Discarding pending command, only the latest transform is applied: "
                f"{self.pending.to_string()}"
            )
        self.pending = command
        logger.debug(f"Pending command: {command.to_string()}")

    def _identity(self) -> PendingCommand:
        return PendingCommand(args=[self.settings.convert_path, self.source, C.DEST_PLACEHOLDER])

    def _is_identity(self, command: PendingCommand) -> bool:
        return command.args == self._identity().args

    @property
    def original_size(self) -> Size:
        if self.info is None:
            raise NotLoaded()
        return Size(width=self.info.width, height=self.info.height)

    def load(self, info: ImageInfo) -> None:
        self.free()
        self.info = info
        self.pending = self._identity()

    def reload(self) -> None:
        self.pending = self._identity()

    def free(self) -> None:
        self.pending = None
        super().free()

    def resize(self, size: Size) -> Size:
        self._set_pending(
            C.QUIET, C.STRIP, self.source, C.RESIZE, f"{size.width}x{size.height}!", C.DEST_PLACEHOLDER
        )
        return size

    def crop(self, region: ROI) -> Size:
        self._set_pending(C.QUIET, C.STRIP, C.CROP, region.to_geometry(), self.source, C.DEST_PLACEHOLDER)
        return region.size

    def flip(self, mode: FlipMode) -> Size:
        if mode not in _FLIP_FLAGS:
            raise InvalidEnumValue(f"Invalid flip mode: {mode!r}")
        self._set_pending(*_FLIP_FLAGS[mode], self.source, C.DEST_PLACEHOLDER)
        return self.original_size

    def rotate(self, degrees: int) -> Size:
        self._set_pending(C.ROTATE, str(int(degrees)), self.source, C.DEST_PLACEHOLDER)
        return rotated_bounds(self.original_size, degrees)

    def grayscale(self) -> Size:
        self._set_pending(C.COLORSPACE, C.GRAY, self.source, C.DEST_PLACEHOLDER)
        return self.original_size

    def watermark(self, overlay: WatermarkOverlay) -> Size:
        self._set_pending(
            C.QUIET,
            self.source,
            "(",
            str(overlay.info.path),
            C.RESIZE,
            f"{overlay.size.width}x{overlay.size.height}!",
            ")",
            C.GEOMETRY,
            f"{overlay.position.x:+d}{overlay.position.y:+d}",
            C.COMPOSITE,
            C.DEST_PLACEHOLDER,
        )
        return self.original_size

    def text(self, overlay: TextOverlay) -> Size:
        font_args = [C.FONT, str(overlay.font_file)] if overlay.font_file else []
        draw = (
            f"gravity south fill '{overlay.color.to_hex()}' "
            f"text {overlay.position.x},{overlay.position.y} '{escape_draw_text(overlay.text)}' "
        )
        self._set_pending(
            C.QUIET,
            *font_args,
            C.POINTSIZE,
            str(overlay.size),
            C.DRAW,
            draw,
            self.source,
            C.DEST_PLACEHOLDER,
        )
        return self.original_size

    def _extent(self, canvas: Size, background: Color) -> None:
        geometry = f"{canvas.width}x{canvas.height}"
        self._set_pending(
            C.QUIET,
            C.STRIP,
            C.DEFINE,
            f"jpeg:size={geometry}",
            self.source,
            C.THUMBNAIL,
            f"{geometry}>",
            C.BACKGROUND,
            background.to_hex(),
            C.GRAVITY,
            C.CENTER,
            C.EXTENT,
            geometry,
            C.DEST_PLACEHOLDER,
        )

    def adaptive_thumb(self, target: Size, scale: Size, region: ROI, background: Color) -> Size:
        self._extent(target, background)
        return target

    def resize_canvas(self, canvas: Size, content: Size, position: Point, background: Color) -> Size:
        self._extent(canvas, background)
        return canvas

    def _execute(self, args: List[str]) -> None:
        command_line = shlex.join(args)
        logger.info(f"Running: {command_line}")
        try:
            result = subprocess.run(args, capture_output=True, text=True, check=False)
        except OSError as e:
            logger.error(f"Cannot run {args[0]}: {e}")
            raise SaveFailure(f"Cannot run convert command {args[0]!r}: {e}") from e

        if result.returncode != 0:
            message = f"Convert command failed with exit status {result.returncode}: {command_line}"
            if result.stderr:
                message += f"\nError: {result.stderr.strip()}"
            if self.settings.check_exit_status:
                logger.error(message)
                raise SaveFailure(message)
            logger.warning(f"{message} (exit status not checked)")

    def save(self, path: Path, image_format: ImageFormat, quality: int) -> Path:
        if self.pending is None:
            raise NotLoaded()

        destination = normalize_extension(path, image_format)
        self._execute(self.pending.render(image_format, quality, destination))
        return destination

    def rebase(self, info: ImageInfo) -> None:
        """Make a saved output the new source and reset the pending command."""
        self.info = info
        self.pending = self._identity()

    def render(self, image_format: ImageFormat, quality: int) -> bytes:
        if self.pending is None:
            raise NotLoaded()

        with tempfile.TemporaryDirectory(prefix="imagehandler-") as temp_dir:
            destination = Path(temp_dir) / f"render.{image_format.extension}"
            self._execute(self.pending.render(image_format, quality, destination))
            try:
                return destination.read_bytes()
            except OSError as e:
                raise SaveFailure(f"Convert command produced no output: {e}") from e
