"""
System API Router - Status and configuration
"""

import logging
import shutil
import time

import psutil
from fastapi import APIRouter, Depends, Request

from imagehandler.api.dependencies import get_driver_settings
from imagehandler.api.exceptions import safe_endpoint
from imagehandler.core.drivers import DriverSettings
from imagehandler.schemas.system import DriverStatus, SystemStatus

logger = logging.getLogger(__name__)

router = APIRouter()

# Track start time
START_TIME = time.time()


@router.get("/status")
@safe_endpoint
async def get_status(settings: DriverSettings = Depends(get_driver_settings)) -> SystemStatus:
    """Get system status"""
    process = psutil.Process()
    memory_info = process.memory_info()
    virtual_memory = psutil.virtual_memory()

    # The deferred driver needs the convert binary on PATH (or an absolute path)
    location = shutil.which(settings.convert_path)

    return SystemStatus(
        status="healthy",
        uptime=time.time() - START_TIME,
        memory_usage={
            "process_mb": memory_info.rss / 1024 / 1024,
            "system_percent": virtual_memory.percent,
            "available_mb": virtual_memory.available / 1024 / 1024,
        },
        drivers=DriverStatus(
            driver=settings.driver.value,
            convert_path=settings.convert_path,
            convert_found=location is not None,
            convert_location=location,
            check_exit_status=settings.check_exit_status,
        ),
    )


@router.get("/config")
@safe_endpoint
async def get_config(request: Request) -> dict:
    """Get the active configuration"""
    return getattr(request.app.state, "config", {})
