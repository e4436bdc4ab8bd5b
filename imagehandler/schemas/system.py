"""
System status models.
"""

from typing import Dict, Optional

from pydantic import BaseModel


class DriverStatus(BaseModel):
    """Configured driver and availability of the convert binary"""

    driver: str
    convert_path: str
    convert_found: bool
    convert_location: Optional[str] = None
    check_exit_status: bool


class SystemStatus(BaseModel):
    """Service status"""

    status: str
    uptime: float
    memory_usage: Dict[str, float]
    drivers: DriverStatus
