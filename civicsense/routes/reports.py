"""
Report endpoints - citizen report submission and retrieval, plus the admin
assignment and status actions on a single report.

Public:
- POST /reports (multipart form, optional `media` file)
- GET /reports
- GET /reports/{tracking_id}

Admin (bearer token):
- PATCH /reports/{report_id}/assign          (assign-reports)
- PATCH /reports/{report_id}/status          (update-status)
- GET /reports/{report_id}/allowed-transitions (view-reports)
"""

from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status

from civicsense.core.exceptions import CivicSenseError
from civicsense.models.admin import AdminContext, Permission
from civicsense.models.report import AssignReportRequest, PublicReport, StatusUpdateRequest
from civicsense.routes.deps import http_error, require_permission
from civicsense.services.assignment_service import get_assignment_service
from civicsense.services.media_service import get_media_service
from civicsense.services.report_service import get_report_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["Reports"])

TRUE_VALUES = ("true", "1", "yes", "on")


def _form_flag(value: Optional[str]) -> bool:
    return value is not None and value.strip().lower() in TRUE_VALUES


def _discard_media(stored_media: Optional[dict]):
    """Remove a file saved for a submission that did not go through."""
    if not stored_media:
        return
    try:
        get_media_service().delete(stored_media["filename"])
    except CivicSenseError as e:
        logger.warning(f"Could not remove media {stored_media['filename']}: {e.message}")


@router.post("", status_code=status.HTTP_201_CREATED)
def submit_report(
    description: Optional[str] = Form(None),
    contact_info: Optional[str] = Form(None),
    anonymous: Optional[str] = Form(None),
    use_location: Optional[str] = Form(None),
    location: Optional[str] = Form(None, description='JSON: {"lat": .., "lng": .., "address": ..}'),
    media: Optional[UploadFile] = File(None),
):
    """
    Submit a new citizen report.

    This endpoint:
    1. Stores the optional media file
    2. Validates and stores the report with a new tracking ID
    3. Runs best-effort AI analysis on attached images
    4. Queues notifications to the reporter

    Returns the tracking ID and a short report summary.
    """
    media_service = get_media_service()
    stored_media = None
    try:
        logger.info(f"📝 POST /reports - anonymous={_form_flag(anonymous)}, has_media={media is not None}")

        if media is not None and media.filename:
            content = media_service.read_upload(media)
            stored_media = media_service.save_upload(content, media.filename, media.content_type)

        return get_report_service().create_report(
            description=description,
            contact_info=contact_info,
            anonymous=_form_flag(anonymous),
            use_location=_form_flag(use_location),
            location=location,
            media=stored_media,
        )

    except CivicSenseError as e:
        _discard_media(stored_media)
        raise http_error(e)
    except Exception as e:
        logger.error(f"❌ POST /reports - Report creation failed: {str(e)}", exc_info=True)
        _discard_media(stored_media)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create report",
        )


@router.get("", response_model=List[PublicReport])
async def get_reports(
    format: Optional[str] = Query(None, description="'map' keeps only reports with coordinates"),
    status_filter: Optional[str] = Query(None, alias="status"),
    severity: Optional[str] = Query(None, description="Filter by priority"),
    limit: Optional[int] = Query(None, ge=1),
):
    """Public report list, newest first. Contact info is hidden on anonymous reports."""
    try:
        return get_report_service().list_public_reports(
            status=status_filter,
            severity=severity,
            format=format,
            limit=limit,
        )
    except Exception as e:
        logger.error(f"❌ GET /reports failed: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch reports",
        )


@router.get("/{tracking_id}")
async def get_report(tracking_id: str):
    """
    Get a report by tracking ID.

    Returns the full record; anonymous reports have contact_info removed and
    created_by set to "anonymous".
    """
    try:
        return get_report_service().get_public_report(tracking_id)
    except CivicSenseError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"❌ GET /reports/{tracking_id} failed: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch report",
        )


@router.patch("/{report_id}/assign")
async def assign_report(
    report_id: str,
    request: AssignReportRequest,
    admin: AdminContext = Depends(require_permission(Permission.ASSIGN_REPORTS.value)),
):
    """
    Assign a report (by ID or tracking ID) to a team.

    **Rules:**
    - Team must exist and be active
    - A full team rejects the assignment (400, with available capacity)
    - Reassigning releases the previous team's slot
    """
    try:
        return get_assignment_service().assign_report(
            report_id=report_id,
            team_id=request.team_id,
            assigned_by=request.assigned_by or admin.username,
            priority=request.priority.value if request.priority else None,
        )
    except CivicSenseError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"❌ Assign report {report_id} failed: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to assign report",
        )


@router.patch("/{report_id}/status")
async def update_report_status(
    report_id: str,
    request: StatusUpdateRequest,
    admin: AdminContext = Depends(require_permission(Permission.UPDATE_STATUS.value)),
):
    """
    Change report status.

    Every change is appended to the report's `updates` log and the reporter
    is notified unless the report is anonymous.
    """
    try:
        report = get_report_service().update_status(
            report_id,
            request.status,
            note=request.note,
            updated_by=request.updated_by or admin.username,
        )
        return {
            "message": "Report status updated successfully",
            "report": {
                "id": report["id"],
                "tracking_id": report["tracking_id"],
                "status": report["status"],
                "updated_at": report["updated_at"],
                "resolved_at": report.get("resolved_at"),
                "updates": report["updates"],
            },
        }
    except CivicSenseError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"❌ Status update for {report_id} failed: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update report status",
        )


@router.get("/{report_id}/allowed-transitions")
async def get_allowed_transitions(
    report_id: str,
    admin: AdminContext = Depends(require_permission(Permission.VIEW_REPORTS.value)),
):
    try:
        return get_report_service().get_allowed_transitions(report_id)
    except CivicSenseError as e:
        raise http_error(e)
