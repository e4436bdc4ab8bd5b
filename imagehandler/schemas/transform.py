"""
Transform request and result models.

This module contains models for the transform pipeline:
- One operation model per session transform, discriminated by "op"
- Render and save requests
- TransformResult returned by the service layer
"""

from typing import TYPE_CHECKING, Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from imagehandler.core.constants import ImageConstants

if TYPE_CHECKING:
    from imagehandler.core.session import ImageSession

# Enum fields accept a member name ("right_bottom") or an integer tag (4)
EnumValue = Union[int, str]
ColorValue = Union[str, List[int]]


class ResizeOperation(BaseModel):
    op: Literal["resize"] = "resize"
    width: Optional[int] = Field(None, gt=0)
    height: Optional[int] = Field(None, gt=0)
    proportional: bool = True

    def apply(self, session: "ImageSession") -> None:
        session.resize(self.width, self.height, self.proportional)


class ThumbOperation(BaseModel):
    op: Literal["thumb"] = "thumb"
    width: Optional[int] = Field(None, gt=0)
    height: Optional[int] = Field(None, gt=0)
    proportional: bool = True

    def apply(self, session: "ImageSession") -> None:
        session.thumb(self.width, self.height, self.proportional)


class CropOperation(BaseModel):
    """Centred crop unless x/y are given"""

    op: Literal["crop"] = "crop"
    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)
    x: Optional[int] = None
    y: Optional[int] = None

    def apply(self, session: "ImageSession") -> None:
        session.crop(self.width, self.height, self.x, self.y)


class FlipOperation(BaseModel):
    op: Literal["flip"] = "flip"
    mode: EnumValue = "horizontal"

    def apply(self, session: "ImageSession") -> None:
        session.flip(self.mode)


class RotateOperation(BaseModel):
    op: Literal["rotate"] = "rotate"
    degrees: int

    def apply(self, session: "ImageSession") -> None:
        session.rotate(self.degrees)


class GrayscaleOperation(BaseModel):
    op: Literal["grayscale"] = "grayscale"

    def apply(self, session: "ImageSession") -> None:
        session.grayscale()


class WatermarkOperation(BaseModel):
    """Overlay another image file"""

    op: Literal["watermark"] = "watermark"
    file: str = Field(..., description="Path of the watermark image")
    offset_x: int = 0
    offset_y: int = 0
    corner: EnumValue = "right_bottom"
    zoom: Optional[float] = Field(None, gt=0)

    def apply(self, session: "ImageSession") -> None:
        session.watermark(self.file, self.offset_x, self.offset_y, self.corner, self.zoom)


class TextOperation(BaseModel):
    """Draw text at a corner"""

    op: Literal["text"] = "text"
    text: str
    font_file: Optional[str] = None
    size: int = Field(ImageConstants.DEFAULT_FONT_SIZE, gt=0)
    color: ColorValue = Field(default_factory=lambda: [0, 0, 0])
    corner: EnumValue = "left_top"
    offset_x: int = 0
    offset_y: int = 0
    angle: float = 0
    alpha: int = Field(0, ge=0, le=ImageConstants.MAX_ALPHA)

    def apply(self, session: "ImageSession") -> None:
        session.text(
            self.text,
            font_file=self.font_file,
            size=self.size,
            color=self.color,
            corner=self.corner,
            offset_x=self.offset_x,
            offset_y=self.offset_y,
            angle=self.angle,
            alpha=self.alpha,
        )


class AdaptiveThumbOperation(BaseModel):
    op: Literal["adaptive_thumb"] = "adaptive_thumb"
    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)
    background: ColorValue = Field(default_factory=lambda: list(ImageConstants.DEFAULT_THUMB_BACKGROUND))

    def apply(self, session: "ImageSession") -> None:
        session.adaptive_thumb(self.width, self.height, self.background)


class ResizeCanvasOperation(BaseModel):
    op: Literal["resize_canvas"] = "resize_canvas"
    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)
    background: ColorValue = Field(default_factory=lambda: list(ImageConstants.DEFAULT_CANVAS_BACKGROUND))

    def apply(self, session: "ImageSession") -> None:
        session.resize_canvas(self.width, self.height, self.background)


Operation = Annotated[
    Union[
        ResizeOperation,
        ThumbOperation,
        CropOperation,
        FlipOperation,
        RotateOperation,
        GrayscaleOperation,
        WatermarkOperation,
        TextOperation,
        AdaptiveThumbOperation,
        ResizeCanvasOperation,
    ],
    Field(discriminator="op"),
]


class RenderRequest(BaseModel):
    """Load a file, apply operations in order and encode the result"""

    source: str = Field(..., description="Path of the image to load")
    driver: Optional[str] = Field(None, description="raster or deferred (default from settings)")
    operations: List[Operation] = Field(default_factory=list)
    output_format: Optional[EnumValue] = Field(None, description="gif, jpeg or png (default: source format)")
    quality: Optional[int] = Field(
        None, ge=ImageConstants.MIN_JPEG_QUALITY, le=ImageConstants.MAX_JPEG_QUALITY
    )


class SaveRequest(RenderRequest):
    """Like RenderRequest, but writes the result to destination"""

    destination: str = Field(..., description="Output path")
    touch: bool = False


class ErrorInfo(BaseModel):
    """Failed transform: error kind from the exception taxonomy plus message"""

    kind: str
    message: str


class TransformResult(BaseModel):
    """Outcome of a transform pipeline"""

    success: bool
    width: Optional[int] = None
    height: Optional[int] = None
    format: Optional[str] = None
    mime_type: Optional[str] = None
    path: Optional[str] = None
    error: Optional[ErrorInfo] = None
