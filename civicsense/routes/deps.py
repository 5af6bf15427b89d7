"""
Shared route dependencies: admin authentication and permission checks.

Usage:
    @router.get("/teams")
    async def list_teams(admin: AdminContext = Depends(require_permission("view-reports"))):
        ...
"""

from typing import List, Optional, Union
import logging

from fastapi import Depends, Header, HTTPException

from civicsense.core.exceptions import AuthError, CivicSenseError, PermissionDeniedError
from civicsense.models.admin import AdminContext
from civicsense.services.admin_service import get_admin_registry
from civicsense.utils.security import extract_bearer_token

logger = logging.getLogger(__name__)


def http_error(error: CivicSenseError) -> HTTPException:
    """Translate a service-level error into an HTTPException."""
    return HTTPException(status_code=error.status_code, detail=error.message)


async def authenticate_admin(authorization: Optional[str] = Header(None)) -> AdminContext:
    """
    Resolve the bearer token (guest token or JWT) to the calling admin.

    Raises:
        HTTPException 401: Missing, invalid or expired token
    """
    token = extract_bearer_token(authorization)
    try:
        return get_admin_registry().authenticate(token)
    except AuthError as e:
        raise http_error(e)


def require_permission(permission: str):
    """Dependency factory: 403 unless the admin holds `permission` (super-admins always pass)."""

    async def check_permission(admin: AdminContext = Depends(authenticate_admin)) -> AdminContext:
        if not admin.has_permission(permission):
            logger.warning(f"⛔ {admin.username} denied: missing permission {permission}")
            raise http_error(PermissionDeniedError(f"Access denied. Required permission: {permission}"))
        return admin

    return check_permission


def require_role(roles: Union[str, List[str]]):
    """Dependency factory: 403 unless the admin has one of `roles`."""
    allowed = [roles] if isinstance(roles, str) else list(roles)

    async def check_role(admin: AdminContext = Depends(authenticate_admin)) -> AdminContext:
        if admin.role not in allowed:
            raise http_error(PermissionDeniedError(f"Access denied. Required role: {' or '.join(allowed)}"))
        return admin

    return check_role
