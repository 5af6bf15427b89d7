"""
Admin endpoints - the dashboard's view of all reports.

Unlike the public list, admin responses carry full records (contact info,
update log, AI analysis, assignment) and support pagination and sorting.
"""

from typing import Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from civicsense.models.admin import AdminContext, Permission
from civicsense.models.report import AdminReportsResponse
from civicsense.routes.deps import require_permission
from civicsense.services.report_service import get_report_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/reports", response_model=AdminReportsResponse)
async def get_admin_reports(
    format: Optional[str] = Query(None, description="'map' keeps only reports with coordinates"),
    status_filter: Optional[str] = Query(None, alias="status"),
    severity: Optional[str] = Query(None, description="Filter by priority"),
    assigned_to: Optional[str] = Query(None, description="Filter by team ID"),
    category: Optional[str] = Query(None),
    limit: Optional[int] = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    sort_by: Optional[str] = Query(None, description="Any report field, default created_at"),
    sort_order: Optional[str] = Query(None, pattern="^(asc|desc)$"),
    admin: AdminContext = Depends(require_permission(Permission.VIEW_REPORTS.value)),
):
    """
    List reports for administrators.

    **Returns:**
    - reports: full records plus `title` and `media_url`
    - pagination: total, offset, limit, has_more
    """
    try:
        return get_report_service().list_admin_reports(
            format=format,
            status=status_filter,
            severity=severity,
            assigned_to=assigned_to,
            category=category,
            limit=limit,
            offset=offset,
            sort_by=sort_by,
            sort_order=sort_order,
        )
    except Exception as e:
        logger.error(f"❌ GET /admin/reports failed for {admin.username}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch admin reports",
        )
