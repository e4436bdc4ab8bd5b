"""
Image format conversion utilities.

Handles conversions between:
- NumPy RGBA arrays (the raster driver's pixel buffer)
- PIL Images
- Encoded GIF/JPEG/PNG bytes
"""

import io
import logging

import numpy as np
from PIL import Image

from imagehandler.core.constants import ImageConstants
from imagehandler.core.enums import ImageFormat
from imagehandler.core.exceptions import SaveFailure

logger = logging.getLogger(__name__)


class ImageConverters:
    """Utilities for converting between image formats."""

    @staticmethod
    def numpy_to_pil(image: np.ndarray) -> Image.Image:
        """
        Convert RGBA (or grayscale) NumPy array to PIL Image.

        Args:
            image: uint8 NumPy array, RGBA channel order

        Returns:
            PIL Image in RGBA mode (L for single-channel arrays)
        """
        return Image.fromarray(np.ascontiguousarray(image, dtype=np.uint8))

    @staticmethod
    def pil_to_numpy(image: Image.Image) -> np.ndarray:
        """
        Convert PIL Image to an RGBA NumPy array.

        Args:
            image: PIL Image in any mode

        Returns:
            NumPy array of shape (height, width, 4)
        """
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        return np.array(image, dtype=np.uint8)

    @staticmethod
    def encode(
        image: np.ndarray,
        image_format: ImageFormat,
        quality: int = ImageConstants.DEFAULT_JPEG_QUALITY,
    ) -> bytes:
        """
        Encode an RGBA buffer to GIF, JPEG or PNG bytes.

        GIF and PNG are lossless (GIF is palette-quantized); JPEG honors
        quality and drops the alpha channel.

        Raises:
            SaveFailure: if the encoder fails
        """
        pil_image = ImageConverters.numpy_to_pil(image)
        buffer = io.BytesIO()

        try:
            if image_format == ImageFormat.JPEG:
                pil_image.convert("RGB").save(buffer, format="JPEG", quality=int(quality))
            elif image_format == ImageFormat.PNG:
                pil_image.save(buffer, format="PNG")
            elif image_format == ImageFormat.GIF:
                paletted = ImageConverters._to_gif_palette(pil_image)
                save_kwargs = {"format": "GIF"}
                if "transparency" in paletted.info:
                    save_kwargs["transparency"] = paletted.info["transparency"]
                paletted.save(buffer, **save_kwargs)
            else:
                raise SaveFailure(f"Invalid image format for output: {image_format!r}")
        except (OSError, ValueError) as e:
            logger.error(f"Failed to encode {image_format.name} image: {e}")
            raise SaveFailure(f"Can't encode {image_format.name.lower()} image: {e}") from e

        return buffer.getvalue()

    @staticmethod
    def _to_gif_palette(image: Image.Image) -> Image.Image:
        """Quantize RGBA to a palette, reserving one index for transparency."""
        alpha = image.getchannel("A")
        paletted = image.convert("RGB").convert(
            "P", palette=Image.Palette.ADAPTIVE, colors=ImageConstants.GIF_PALETTE_COLORS
        )
        if alpha.getextrema()[0] < ImageConstants.GIF_ALPHA_THRESHOLD:
            transparent_index = ImageConstants.GIF_PALETTE_COLORS
            mask = Image.eval(alpha, lambda a: 255 if a < ImageConstants.GIF_ALPHA_THRESHOLD else 0)
            paletted.paste(transparent_index, mask=mask)
            paletted.info["transparency"] = transparent_index
        return paletted
