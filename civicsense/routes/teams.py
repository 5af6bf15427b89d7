"""
Team endpoints - team management and bulk assignment.

Viewing teams requires `view-reports`; creating, editing and deleting them
requires `manage-teams`; (un)assigning reports requires `assign-reports`.
"""

from typing import Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from civicsense.core.exceptions import CivicSenseError
from civicsense.models.admin import AdminContext, Permission
from civicsense.models.team import TeamAssignRequest, TeamCreate, TeamUnassignRequest, TeamUpdate
from civicsense.routes.deps import http_error, require_permission
from civicsense.services.assignment_service import get_assignment_service
from civicsense.services.team_service import get_team_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/teams", tags=["Teams"])


def _server_error(action: str, e: Exception) -> HTTPException:
    logger.error(f"❌ Failed to {action}: {str(e)}", exc_info=True)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action}",
    )


@router.get("")
async def list_teams(
    department: Optional[str] = Query(None),
    specialty: Optional[str] = Query(None),
    available: bool = Query(False, description="Only teams with free capacity"),
    admin: AdminContext = Depends(require_permission(Permission.VIEW_REPORTS.value)),
):
    """Active teams with available_capacity, utilization_rate and can_take_assignment."""
    try:
        return get_team_service().list_teams(department=department, specialty=specialty, available=available)
    except Exception as e:
        raise _server_error("fetch teams", e)


@router.get("/{team_id}")
async def get_team(
    team_id: str,
    admin: AdminContext = Depends(require_permission(Permission.VIEW_REPORTS.value)),
):
    try:
        return get_team_service().get_team(team_id)
    except CivicSenseError as e:
        raise http_error(e)
    except Exception as e:
        raise _server_error("fetch team", e)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_team(
    request: TeamCreate,
    admin: AdminContext = Depends(require_permission(Permission.MANAGE_TEAMS.value)),
):
    """
    Create a team.

    Name and department are required; capacity defaults to 5 and working
    hours to 08:00-17:00 Monday to Friday.
    """
    try:
        return get_team_service().create_team(request)
    except CivicSenseError as e:
        raise http_error(e)
    except Exception as e:
        raise _server_error("create team", e)


@router.patch("/{team_id}")
async def update_team(
    team_id: str,
    request: TeamUpdate,
    admin: AdminContext = Depends(require_permission(Permission.MANAGE_TEAMS.value)),
):
    try:
        return get_team_service().update_team(team_id, request)
    except CivicSenseError as e:
        raise http_error(e)
    except Exception as e:
        raise _server_error("update team", e)


@router.patch("/{team_id}/assign")
async def assign_reports(
    team_id: str,
    request: TeamAssignRequest,
    admin: AdminContext = Depends(require_permission(Permission.ASSIGN_REPORTS.value)),
):
    """
    Assign several reports to a team at once.

    The whole batch must fit into the team's remaining capacity.
    """
    try:
        return get_assignment_service().assign_reports_to_team(
            team_id,
            request.report_ids,
            priority=request.priority.value,
            assigned_by=admin.username,
        )
    except CivicSenseError as e:
        raise http_error(e)
    except Exception as e:
        raise _server_error("assign reports", e)


@router.patch("/{team_id}/unassign")
async def unassign_report(
    team_id: str,
    request: TeamUnassignRequest,
    admin: AdminContext = Depends(require_permission(Permission.ASSIGN_REPORTS.value)),
):
    try:
        return get_assignment_service().unassign_report(team_id, request.report_id, unassigned_by=admin.username)
    except CivicSenseError as e:
        raise http_error(e)
    except Exception as e:
        raise _server_error("unassign report", e)


@router.delete("/{team_id}")
async def delete_team(
    team_id: str,
    admin: AdminContext = Depends(require_permission(Permission.MANAGE_TEAMS.value)),
):
    """Soft delete: the team is marked inactive and disappears from listings."""
    try:
        return get_team_service().delete_team(team_id)
    except CivicSenseError as e:
        raise http_error(e)
    except Exception as e:
        raise _server_error("delete team", e)
