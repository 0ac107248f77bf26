"""
Health check endpoints.
"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from delivery_service.core.config import settings
from delivery_service.core.database import check_db_connection, get_db

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check() -> dict:
    """Basic health check."""
    return {"status": "healthy"}


@router.get("/health/detailed")
async def detailed_health_check(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Detailed health check including dependencies."""
    checks = {
        "api": "healthy",
        "database": "unknown",
    }

    if await check_db_connection(db):
        checks["database"] = "healthy"
    else:
        checks["database"] = "unhealthy"

    overall = "healthy" if all(
        v == "healthy" for v in checks.values()
    ) else "degraded"

    publisher = getattr(request.app.state, "event_publisher", None)

    return {
        "status": overall,
        "checks": checks,
        "events": {
            "enabled": settings.EVENTS_ENABLED,
            "publisher": type(publisher).__name__ if publisher is not None else None,
        },
        "version": settings.APP_VERSION,
    }
