"""
Image API Router - Transform pipelines over files on the server
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, Response

from imagehandler.api.dependencies import get_transform_service
from imagehandler.api.exceptions import safe_endpoint, status_for
from imagehandler.schemas import RenderRequest, SaveRequest, TransformResult

logger = logging.getLogger(__name__)

router = APIRouter()


def _failure_response(result: TransformResult) -> JSONResponse:
    content = result.model_dump(mode="json")
    content["detail"] = result.error.message
    return JSONResponse(status_code=status_for(result.error.kind), content=content)


@router.post("/render")
@safe_endpoint
async def render_image(request: RenderRequest, transform_service=Depends(get_transform_service)):
    """
    Apply operations to an image and return the encoded result.

    The response body is the image itself, with Content-Type image/gif,
    image/jpeg or image/png. Failures answer with a JSON TransformResult
    and the status code of the error kind.
    """
    encoded, result = transform_service.render(request)
    if not result.success:
        return _failure_response(result)

    logger.info(
        f"Rendered {request.source}: {result.width}x{result.height} "
        f"{result.mime_type} ({len(encoded.data)} bytes)"
    )
    return Response(
        content=encoded.data,
        media_type=encoded.mime_type,
        headers={"X-Image-Width": str(result.width), "X-Image-Height": str(result.height)},
    )


@router.post("/save")
@safe_endpoint
async def save_image(request: SaveRequest, transform_service=Depends(get_transform_service)):
    """
    Apply operations to an image and write the result to destination.

    Returns:
        TransformResult with the written path and final dimensions
    """
    result = transform_service.apply(request)
    if not result.success:
        return _failure_response(result)

    logger.info(f"Saved {request.source} to {result.path}")
    return result
