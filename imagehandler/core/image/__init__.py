"""
Image I/O utilities.

- loader: header probing and decoding to RGBA buffers
- converters: buffer <-> PIL conversions and GIF/JPEG/PNG encoding
"""

from imagehandler.core.image.converters import ImageConverters
from imagehandler.core.image.loader import ImageInfo, decode_image, probe_image

__all__ = ["ImageConverters", "ImageInfo", "decode_image", "probe_image"]
