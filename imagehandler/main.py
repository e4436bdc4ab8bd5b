"""
Image Handler - Main FastAPI Application
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from imagehandler import __version__
from imagehandler.api.exceptions import register_exception_handlers
from imagehandler.api.routers import image, system
from imagehandler.config import get_settings
from imagehandler.core.constants import SystemConstants

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.system.log_level),
    format=SystemConstants.LOG_FORMAT,
)
logger = logging.getLogger(__name__)

# Reloader noise
logging.getLogger("watchfiles").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle"""
    logger.info(
        f"Starting Image Handler ({settings.environment}, driver={settings.drivers.driver.value}, "
        f"debug={settings.system.debug})"
    )

    app.state.driver_settings = settings.drivers
    app.state.storage_root = Path(settings.api.storage_root).resolve()
    logger.info(f"Storage root: {app.state.storage_root}")
    app.state.config = settings.to_dict()
    app.state.debug = settings.system.debug

    yield

    logger.info("Image Handler server shutdown complete")


app = FastAPI(
    title="Image Handler",
    description="Image transformation sessions with raster and deferred drivers",
    version=__version__,
    lifespan=lifespan,
)

if settings.api.cors_enabled:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

register_exception_handlers(app)

# Routers
app.include_router(image.router, prefix="/api/image", tags=["Image"])
app.include_router(system.router, prefix="/api/system", tags=["System"])


@app.get("/")
async def root():
    return {
        "name": "Image Handler",
        "status": "running",
        "version": __version__,
        "endpoints": {
            "image": "/api/image",
            "system": "/api/system",
            "docs": "/docs",
        },
    }


@app.get("/health")
async def health_check():
    driver_settings = getattr(app.state, "driver_settings", None)
    return {
        "status": "healthy",
        "driver": driver_settings.driver.value if driver_settings else None,
        "services": {"driver_settings": driver_settings is not None},
    }


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(status_code=500, content={"detail": "Internal server error", "error": str(exc)})


def run() -> None:
    """Run the API server with uvicorn."""
    server_config = uvicorn.Config(
        "imagehandler.main:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.system.debug,
        log_level=settings.system.log_level.lower(),
    )
    server = uvicorn.Server(server_config)

    logger.info(f"Serving on {settings.api.host}:{settings.api.port}")
    server.run()


if __name__ == "__main__":
    run()
