"""
Common value models shared by the geometry, drivers and API layers.
"""

import re
from typing import Any, Dict, Sequence, Tuple, Union

from pydantic import BaseModel, Field

from imagehandler.core.constants import ImageConstants

_HEX_COLOR = re.compile(r"^#?([0-9a-fA-F]{6})$")


class Point(BaseModel):
    """2D integer point (may lie outside the canvas)"""

    x: int
    y: int


class Size(BaseModel):
    """Image size"""

    width: int = Field(..., ge=0)
    height: int = Field(..., ge=0)


class ROI(BaseModel):
    """
    Rectangular region of an image.

    Used for crop regions; width/height may be zero after clamping a region
    that starts on the far edge of the canvas.
    """

    x: int = Field(..., ge=0, description="X coordinate")
    y: int = Field(..., ge=0, description="Y coordinate")
    width: int = Field(..., ge=0, description="Width")
    height: int = Field(..., ge=0, description="Height")

    @property
    def x2(self) -> int:
        """Get right edge coordinate."""
        return self.x + self.width

    @property
    def y2(self) -> int:
        """Get bottom edge coordinate."""
        return self.y + self.height

    @property
    def size(self) -> Size:
        return Size(width=self.width, height=self.height)

    @property
    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    def to_geometry(self) -> str:
        """Format as a convert geometry string: WxH+X+Y."""
        return f"{self.width}x{self.height}+{self.x}+{self.y}"


class Color(BaseModel):
    """
    RGB colour with the raster engine's translucency level.

    alpha: 0 is opaque, 127 is fully transparent.
    """

    r: int = Field(0, ge=0, le=255)
    g: int = Field(0, ge=0, le=255)
    b: int = Field(0, ge=0, le=255)
    alpha: int = Field(0, ge=0, le=ImageConstants.MAX_ALPHA)

    @classmethod
    def from_value(cls, value: Union["Color", Sequence[int], str, Dict[str, Any]]) -> "Color":
        """
        Build a colour from a Color, an (r, g, b[, alpha]) sequence,
        a '#RRGGBB' string or a dict.

        Raises:
            ValueError: for malformed strings, wrong component counts or
                out-of-range components (pydantic's ValidationError)
        """
        if isinstance(value, Color):
            return value
        if isinstance(value, dict):
            return cls(**value)
        if isinstance(value, str):
            match = _HEX_COLOR.match(value.strip())
            if not match:
                raise ValueError(f"Invalid colour string: {value!r}")
            s = match.group(1)
            return cls(r=int(s[0:2], 16), g=int(s[2:4], 16), b=int(s[4:6], 16))
        values = list(value)
        if len(values) not in (3, 4):
            raise ValueError(f"Colour needs 3 or 4 components, got {len(values)}")
        return cls(r=values[0], g=values[1], b=values[2], alpha=values[3] if len(values) == 4 else 0)

    def with_alpha(self, alpha: int) -> "Color":
        return Color(r=self.r, g=self.g, b=self.b, alpha=alpha)

    def to_hex(self) -> str:
        """Format as '#rrggbb' (alpha is not encoded)."""
        return f"#{self.r:02x}{self.g:02x}{self.b:02x}"

    def to_rgba(self) -> Tuple[int, int, int, int]:
        """Convert to 8-bit RGBA, mapping translucency 0..127 onto opacity 255..0."""
        opacity = round(255 * (ImageConstants.MAX_ALPHA - self.alpha) / ImageConstants.MAX_ALPHA)
        return (self.r, self.g, self.b, opacity)

    def to_rgb(self) -> Tuple[int, int, int]:
        return (self.r, self.g, self.b)


ColorLike = Union[Color, Sequence[int], str]
