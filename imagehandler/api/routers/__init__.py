"""
API Routers for the image handler
"""

from . import image, system

__all__ = ["image", "system"]
