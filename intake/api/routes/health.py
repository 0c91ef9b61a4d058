"""
Health endpoints.

- ``/`` - liveness status with timestamp and environment
- ``/health`` - database connectivity check
"""
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from intake.api.deps import get_database, get_settings
from intake.core.config import Settings
from intake.db.session import Database
from intake.schemas.health import HealthResponse, RootStatus, ServiceHealth

router = APIRouter(tags=["health"])


def check_database(database: Database) -> ServiceHealth:
    """Check database connectivity and latency."""
    try:
        start = time.perf_counter()
        database.ping()
        latency = (time.perf_counter() - start) * 1000
        return ServiceHealth(status="healthy", latency_ms=round(latency, 2))
    except (SQLAlchemyError, RuntimeError) as e:
        database.handle_failure(e)
        return ServiceHealth(status="unhealthy", message=str(e)[:100])


@router.get("/", response_model=RootStatus, summary="Service status")
def root(settings: Settings = Depends(get_settings)) -> RootStatus:
    return RootStatus(
        status="Server is running!",
        timestamp=datetime.now(timezone.utc),
        environment=settings.ENVIRONMENT,
    )


@router.get("/health", response_model=HealthResponse, summary="Database health check")
def health(
    settings: Settings = Depends(get_settings),
    database: Database = Depends(get_database),
):
    db_health = check_database(database)
    body = HealthResponse(
        status=db_health.status,
        version=settings.VERSION,
        environment=settings.ENVIRONMENT,
        database=db_health,
    )
    if db_health.status != "healthy":
        return JSONResponse(status_code=503, content=body.model_dump(mode="json"))
    return body
