"""
Image file probing and decoding.

probe_image reads only the header (Pillow opens files lazily), so the
deferred driver can learn dimensions without decoding any pixels.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from imagehandler.core.enums import ImageFormat
from imagehandler.core.exceptions import LoadFailure

logger = logging.getLogger(__name__)

_PIL_FORMATS = {
    "GIF": ImageFormat.GIF,
    "JPEG": ImageFormat.JPEG,
    "MPO": ImageFormat.JPEG,  # multi-picture JPEGs from cameras
    "PNG": ImageFormat.PNG,
}


@dataclass(frozen=True)
class ImageInfo:
    """Header information of an image file"""

    path: Path
    width: int
    height: int
    format: ImageFormat
    mime_type: str


def probe_image(file_path: Union[str, Path]) -> ImageInfo:
    """
    Inspect an image file header.

    Args:
        file_path: Path to the image file

    Returns:
        ImageInfo with dimensions, format and MIME type

    Raises:
        LoadFailure: if the file is missing, unreadable, not an image,
            or not GIF/JPEG/PNG
    """
    path = Path(file_path)
    if not path.is_file():
        raise LoadFailure(f"Image file not found: {path}")

    try:
        with Image.open(path) as img:
            width, height = img.size
            pil_format = img.format
    except UnidentifiedImageError as e:
        raise LoadFailure(f"Invalid image file: {path}") from e
    except Image.DecompressionBombError as e:
        raise LoadFailure(f"Image dimensions exceed the decoding limit: {path}") from e
    except OSError as e:
        raise LoadFailure(f"Cannot read image file {path}: {e}") from e

    image_format = _PIL_FORMATS.get(pil_format or "")
    if image_format is None:
        raise LoadFailure(f"Unsupported image format {pil_format} in {path}")

    if width <= 0 or height <= 0:
        raise LoadFailure(f"Image has no pixels: {path}")

    logger.debug(f"Probed {path}: {width}x{height} {image_format.name}")
    return ImageInfo(
        path=path,
        width=width,
        height=height,
        format=image_format,
        mime_type=image_format.mime_type,
    )


def decode_image(file_path: Union[str, Path]) -> np.ndarray:
    """
    Decode an image file into an RGBA pixel buffer.

    Palette transparency and alpha channels are carried into the alpha plane.

    Returns:
        NumPy array of shape (height, width, 4), dtype uint8, RGBA order
    """
    path = Path(file_path)
    try:
        with Image.open(path) as img:
            img.seek(0)  # first frame only
            rgba = img.convert("RGBA")
            return np.array(rgba, dtype=np.uint8)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise LoadFailure(f"Cannot decode image {path}: {e}") from e
