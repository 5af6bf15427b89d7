"""
Health check endpoints.
Used for monitoring, deployment readiness checks, and basic connectivity tests.
"""

from fastapi import APIRouter, HTTPException
from civicsense.config.firebase import get_db, get_database_mode
from civicsense.core.settings import settings
from civicsense.services.report_service import get_report_service
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
async def health_check():
    """
    Basic health check endpoint.
    Returns 200 if service is running, with the report count when the store answers.
    """
    try:
        reports_count = get_report_service().count_reports()
    except Exception as e:
        logger.warning(f"Health check could not count reports: {e}")
        reports_count = None

    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "database_mode": get_database_mode(),
        "reports_count": reports_count,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/db")
async def database_health():
    """
    Database connectivity check.
    Lists collections to verify the store responds.
    """
    try:
        db = get_db()
        collections = list(db.collections())

        return {
            "status": "healthy",
            "database": get_database_mode(),
            "connected": True,
            "collections_count": len(collections),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
    except Exception as e:
        raise HTTPException(
            status_code=503,
            detail=f"Database connection failed: {str(e)}"
        )
