"""Health API endpoints."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from gallery_api.core.config import settings
from gallery_api.core.logging_config import get_logger
from gallery_api.db.session import get_session


logger = get_logger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/")
async def health_check():
    """Basic liveness check for load balancers.

    Returns:
        dict: Health status with service info and timestamp
    """
    return {
        "status": "healthy",
        "service": settings.SERVICE_NAME,
        "version": settings.VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@router.get("/ready")
async def readiness_check(session: AsyncSession = Depends(get_session)):
    """Readiness check: database reachable and media host configured.

    Returns 503 when the database cannot be queried. Missing media host
    credentials are reported but do not fail the check, reads still work.
    """
    checks = {"media_host_configured": settings.media_host_configured}

    try:
        await session.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except SQLAlchemyError as e:
        logger.error("readiness_database_check_failed", error=str(e))
        checks["database"] = "unavailable"
        return JSONResponse(status_code=503, content={"status": "unavailable", "checks": checks})

    return {"status": "ready", "checks": checks}
