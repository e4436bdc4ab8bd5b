"""
Geometry for image sessions.

Pure functions shared by both drivers so that eager (pixel) and deferred
(command) execution place and size things identically:
- resolve_position: corner-anchored placement
- fit_within / cover_then_crop / shrink_to_fit_canvas / zoom_to_fit:
  proportional scaling policies
- crop_region: centred default and clamped crop rectangles
- rotated_bounds: bounding box of a rotated canvas

All rounding is half away from zero (round_half_up), never Python's
banker's rounding; centring uses floor division.
"""

import math
from typing import Optional, Tuple

from imagehandler.core.enums import Corner
from imagehandler.core.exceptions import UnsupportedCorner
from imagehandler.core.utils.enum_converter import parse_enum
from imagehandler.schemas.common import ROI, Point, Size


def round_half_up(value: float) -> int:
    """Round to nearest integer, halves away from zero (2.5 -> 3, -2.5 -> -3)."""
    if value >= 0:
        return int(math.floor(value + 0.5))
    return -int(math.floor(-value + 0.5))


def resolve_position(corner, content: Size, canvas: Size, offset: Optional[Point] = None) -> Point:
    """
    Resolve the top-left placement of content on a canvas.

    Offsets push content inwards from the anchored edges and are ignored on
    centred axes. The result is not clamped: it may lie outside the canvas.

    Args:
        corner: Corner member, integer tag or name
        content: Size of the placed content
        canvas: Size of the canvas
        offset: Offset from the anchored edges (default 0, 0)

    Returns:
        Top-left point of the content

    Raises:
        InvalidEnumValue: if corner is not recognized
        UnsupportedCorner: for Corner.TILE, which has no placement algorithm
    """
    corner = parse_enum(corner, Corner)
    ox, oy = (offset.x, offset.y) if offset is not None else (0, 0)
    w, h = content.width, content.height
    cw, ch = canvas.width, canvas.height

    left = ox
    right = cw - w - ox
    center_x = (cw - w) // 2
    top = oy
    bottom = ch - h - oy
    center_y = (ch - h) // 2

    positions = {
        Corner.LEFT_TOP: (left, top),
        Corner.RIGHT_TOP: (right, top),
        Corner.LEFT_BOTTOM: (left, bottom),
        Corner.RIGHT_BOTTOM: (right, bottom),
        Corner.CENTER: (center_x, center_y),
        Corner.CENTER_TOP: (center_x, top),
        Corner.CENTER_BOTTOM: (center_x, bottom),
        Corner.LEFT_CENTER: (left, center_y),
        Corner.RIGHT_CENTER: (right, center_y),
    }

    if corner not in positions:
        raise UnsupportedCorner(f"Placement for corner {corner.name} is not implemented")

    x, y = positions[corner]
    return Point(x=x, y=y)


def fit_within(current: Size, target: Size, proportional: bool = True) -> Size:
    """
    Scale current size to fit the target box.

    Proportional scaling anchors on the target height first and re-anchors
    on the width only if the computed width overflows.

    Example:
        >>> fit_within(Size(width=200, height=100), Size(width=50, height=50))
        Size(width=50, height=25)
    """
    if not proportional:
        return Size(width=target.width, height=target.height)

    w, h = current.width, current.height
    new_height = target.height
    new_width = round_half_up(new_height / h * w)
    if new_width > target.width:
        new_width = target.width
        new_height = round_half_up(new_width / w * h)

    return Size(width=new_width, height=new_height)


def cover_then_crop(current: Size, target: Size) -> Size:
    """
    Compute the intermediate size that covers the target box.

    The image is scaled so that the dimension with the larger proportion
    matches the target exactly; a centred crop to the target follows.

    Returns:
        Scale size before the crop (at least as large as target on one axis)
    """
    w, h = current.width, current.height
    width_proportion = target.width / w
    height_proportion = target.height / h

    if width_proportion > height_proportion:
        new_width = target.width
        new_height = round_half_up(new_width / w * h)
    else:
        new_height = target.height
        new_width = round_half_up(new_height / h * w)

    return Size(width=new_width, height=new_height)


def shrink_to_fit_canvas(current: Size, canvas: Size) -> Tuple[Size, Point]:
    """
    Fit the image inside a new canvas without ever upscaling it.

    Returns:
        Tuple of (content size, top-left position on the canvas)
    """
    w, h = current.width, current.height
    new_width = min(canvas.width, w)
    new_height = min(canvas.height, h)

    width_proportion = new_width / w
    height_proportion = new_height / h

    if width_proportion < height_proportion:
        new_height = round_half_up(width_proportion * h)
    else:
        new_width = round_half_up(height_proportion * w)

    position = Point(x=(canvas.width - new_width) // 2, y=(canvas.height - new_height) // 2)
    return Size(width=new_width, height=new_height), position


def zoom_to_fit(content: Size, canvas: Size, zoom: float) -> Size:
    """
    Scale an overlay relative to the canvas' larger side.

    The overlay is fitted into a square of round(max(W, H) * zoom),
    anchoring on height first like fit_within.
    """
    dimension = round_half_up(max(canvas.width, canvas.height) * zoom)
    return fit_within(content, Size(width=dimension, height=dimension))


def crop_region(
    canvas: Size,
    width: int,
    height: int,
    start_x: Optional[int] = None,
    start_y: Optional[int] = None,
) -> ROI:
    """
    Compute a crop rectangle clamped to the canvas.

    Start coordinates default to a centred crop. They are clamped into
    [0, canvas dimension]; the size is then clamped so the region never
    extends past the canvas.
    """
    if start_x is None:
        start_x = (canvas.width - width) // 2
    if start_y is None:
        start_y = (canvas.height - height) // 2

    start_x = max(0, min(canvas.width, int(start_x)))
    start_y = max(0, min(canvas.height, int(start_y)))
    width = max(0, min(width, canvas.width - start_x))
    height = max(0, min(height, canvas.height - start_y))

    return ROI(x=start_x, y=start_y, width=width, height=height)


def rotated_bounds(size: Size, degrees: int) -> Size:
    """
    Bounding box of a canvas rotated about its centre.

    Right angles are exact; other angles round the box up to whole pixels.
    """
    degrees = int(degrees) % 360
    if degrees in (0, 180):
        return Size(width=size.width, height=size.height)
    if degrees in (90, 270):
        return Size(width=size.height, height=size.width)

    radians = math.radians(degrees)
    cos_a = abs(math.cos(radians))
    sin_a = abs(math.sin(radians))
    width = size.width * cos_a + size.height * sin_a
    height = size.width * sin_a + size.height * cos_a
    # Tolerate float noise before rounding up
    return Size(width=int(math.ceil(width - 1e-9)), height=int(math.ceil(height - 1e-9)))
