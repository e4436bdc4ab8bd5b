"""
Service layer: use cases built on the core session API.
"""

from .transform_service import TransformService

__all__ = ["TransformService"]
