"""
Shared FastAPI dependencies for the image handler API.
"""

import logging
from pathlib import Path

from fastapi import Depends, HTTPException, Request

from imagehandler.core.drivers import DriverSettings
from imagehandler.services.transform_service import TransformService

logger = logging.getLogger(__name__)


def get_driver_settings(request: Request) -> DriverSettings:
    """
    Get driver settings from app state.

    Raises:
        HTTPException: If settings are not initialized
    """
    try:
        return request.app.state.driver_settings
    except AttributeError as e:
        logger.error(f"Driver settings not initialized in app state: {e}")
        raise HTTPException(
            status_code=500, detail="Internal server error: Settings not initialized"
        )


def get_storage_root(request: Request) -> Path:
    """
    Get the directory request paths are confined to.

    Raises:
        HTTPException: If the storage root is not initialized
    """
    try:
        return request.app.state.storage_root
    except AttributeError as e:
        logger.error(f"Storage root not initialized in app state: {e}")
        raise HTTPException(
            status_code=500, detail="Internal server error: Storage root not initialized"
        )


def get_transform_service(
    settings: DriverSettings = Depends(get_driver_settings),
    storage_root: Path = Depends(get_storage_root),
) -> TransformService:
    """Get transform service instance."""
    return TransformService(settings=settings, storage_root=storage_root)
