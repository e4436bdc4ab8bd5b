"""
Schemas Package

Pydantic models shared by the core, service and API layers.
"""

# Common models (core data structures)
from .common import ROI, Color, ColorLike, Point, Size

# System models
from .system import DriverStatus, SystemStatus

# Transform pipeline models
from .transform import (
    AdaptiveThumbOperation,
    CropOperation,
    ErrorInfo,
    FlipOperation,
    GrayscaleOperation,
    Operation,
    RenderRequest,
    ResizeCanvasOperation,
    ResizeOperation,
    RotateOperation,
    SaveRequest,
    TextOperation,
    ThumbOperation,
    TransformResult,
    WatermarkOperation,
)

__all__ = [
    # Common models
    "ROI",
    "Color",
    "ColorLike",
    "Point",
    "Size",
    # Operations
    "Operation",
    "ResizeOperation",
    "ThumbOperation",
    "CropOperation",
    "FlipOperation",
    "RotateOperation",
    "GrayscaleOperation",
    "WatermarkOperation",
    "TextOperation",
    "AdaptiveThumbOperation",
    "ResizeCanvasOperation",
    # System models
    "DriverStatus",
    "SystemStatus",
    # Requests / results
    "RenderRequest",
    "SaveRequest",
    "ErrorInfo",
    "TransformResult",
]
