from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel


class RootStatus(BaseModel):
    status: str
    timestamp: datetime
    environment: str


class ServiceHealth(BaseModel):
    """Health status of an individual dependency."""

    status: Literal["healthy", "unhealthy"]
    latency_ms: Optional[float] = None
    message: Optional[str] = None


class HealthResponse(BaseModel):
    status: Literal["healthy", "unhealthy"]
    version: str
    environment: str
    database: ServiceHealth
