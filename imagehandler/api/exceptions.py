"""
Exception handling for the HTTP API.

Maps the core exception taxonomy onto HTTP status codes and provides
the safe_endpoint decorator used by every router.
"""

import functools
import logging
from typing import Dict

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from imagehandler.core.exceptions import (
    ImageHandlerError,
    InvalidDriver,
    InvalidEnumValue,
    LoadFailure,
    NotLoaded,
    SaveFailure,
    UnsupportedCorner,
)
from imagehandler.services.transform_service import INVALID_ARGUMENT

logger = logging.getLogger(__name__)

# HTTP status per error kind
STATUS_CODES: Dict[str, int] = {
    InvalidDriver.kind: 400,
    LoadFailure.kind: 422,
    NotLoaded.kind: 409,
    InvalidEnumValue.kind: 400,
    UnsupportedCorner.kind: 400,
    SaveFailure.kind: 500,
    INVALID_ARGUMENT: 400,
}


def status_for(kind: str) -> int:
    """HTTP status for an error kind (500 when unknown)."""
    return STATUS_CODES.get(kind, 500)


def error_content(kind: str, message: str) -> dict:
    return {"detail": message, "error": {"kind": kind, "message": message}}


def safe_endpoint(func):
    """
    Decorator for async endpoints.

    HTTPException and ImageHandlerError pass through to their handlers;
    any other exception is logged and turned into a 500.
    """

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except (HTTPException, ImageHandlerError):
            raise
        except Exception as e:
            logger.error(f"Unhandled error in {func.__name__}: {e}", exc_info=True)
            raise HTTPException(status_code=500, detail=f"Internal server error: {e}") from e

    return wrapper


async def image_handler_error_handler(request: Request, exc: ImageHandlerError) -> JSONResponse:
    status_code = status_for(exc.kind)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected ({exc.kind}): {exc}")
    return JSONResponse(status_code=status_code, content=error_content(exc.kind, str(exc)))


def register_exception_handlers(app: FastAPI) -> None:
    """Register handlers for the core exception taxonomy."""
    app.add_exception_handler(ImageHandlerError, image_handler_error_handler)
