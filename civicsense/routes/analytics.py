"""
Analytics endpoints - dashboard aggregates over all reports.

All endpoints require the `view-reports` permission.
"""

from typing import Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from civicsense.core.exceptions import CivicSenseError
from civicsense.models.admin import AdminContext, Permission
from civicsense.routes.deps import http_error, require_permission
from civicsense.services.analytics_service import get_analytics_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/analytics", tags=["Analytics"])

view_reports = require_permission(Permission.VIEW_REPORTS.value)


def _run(action: str, operation, *args):
    try:
        return operation(*args)
    except CivicSenseError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"❌ Analytics {action} failed: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to fetch {action}",
        )


@router.get("/most-common")
async def most_common(
    period: str = Query("week", description="week or month"),
    admin: AdminContext = Depends(view_reports),
):
    """Top 10 report categories in the period."""
    return _run("most common issues", get_analytics_service().most_common, period)


@router.get("/avg-resolution-time")
async def average_resolution_time(
    period: str = Query("month", description="week or month"),
    admin: AdminContext = Depends(view_reports),
):
    return _run("average resolution time", get_analytics_service().average_resolution_time, period)


@router.get("/top-locations")
async def top_locations(
    limit: int = Query(10, ge=1, le=100),
    admin: AdminContext = Depends(view_reports),
):
    return _run("top locations", get_analytics_service().top_locations, limit)


@router.get("/weekly-summary")
def weekly_summary(
    date_from: Optional[str] = Query(None, alias="from", description="YYYY-MM-DD"),
    date_to: Optional[str] = Query(None, alias="to", description="YYYY-MM-DD"),
    admin: AdminContext = Depends(view_reports),
):
    """
    Status, category and priority breakdown between two dates, with a
    narrative summary (AI-written when a provider is configured).
    """
    return _run("weekly summary", get_analytics_service().weekly_summary, date_from, date_to)


@router.get("/heatmap-data")
async def heatmap_data(admin: AdminContext = Depends(view_reports)):
    """Report coordinates weighted by priority, plus the bounding box."""
    return _run("heatmap data", get_analytics_service().heatmap_data)
