"""
Admin models for authentication and permission checks.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List
from enum import Enum


class Permission(str, Enum):
    VIEW_REPORTS = "view-reports"
    ASSIGN_REPORTS = "assign-reports"
    UPDATE_STATUS = "update-status"
    MANAGE_TEAMS = "manage-teams"
    MANAGE_USERS = "manage-users"
    VIEW_ANALYTICS = "view-analytics"
    EXPORT_DATA = "export-data"
    SYSTEM_SETTINGS = "system-settings"


class AdminRole(str, Enum):
    SUPER_ADMIN = "super-admin"
    MODERATOR = "moderator"
    GUEST = "guest"


ALL_PERMISSIONS = [p.value for p in Permission]
MODERATOR_PERMISSIONS = [
    Permission.VIEW_REPORTS.value,
    Permission.ASSIGN_REPORTS.value,
    Permission.UPDATE_STATUS.value,
]
GUEST_PERMISSIONS = list(MODERATOR_PERMISSIONS)


class AdminProfile(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    position: Optional[str] = None


class AdminContext(BaseModel):
    """The authenticated admin attached to a request."""
    id: str
    username: str
    role: str
    permissions: List[str] = Field(default_factory=list)

    def has_permission(self, permission: str) -> bool:
        # Super admin has all permissions
        return self.role == AdminRole.SUPER_ADMIN.value or permission in self.permissions


class AdminResponse(BaseModel):
    """Admin fields safe to return to clients (never the password hash)."""
    id: str
    username: str
    email: Optional[str] = None
    role: str
    permissions: List[str]
    profile: Optional[AdminProfile] = None
    last_login: Optional[datetime] = None


class LoginRequest(BaseModel):
    """Login with username or email."""
    username: Optional[str] = Field(None, description="Username or email")
    password: Optional[str] = None


class GuestLoginRequest(BaseModel):
    password: Optional[str] = None


class LoginResponse(BaseModel):
    token: str
    admin: AdminResponse


class GuestLoginResponse(BaseModel):
    token: str
    expires_at: datetime
    admin: AdminResponse


class VerifyResponse(BaseModel):
    valid: bool
    admin: AdminResponse
