"""
Pydantic models and enums for citizen reports.
These models handle validation for admin actions and shape API responses.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List, Dict
from enum import Enum


class ReportStatus(str, Enum):
    """
    Report lifecycle states, in workflow order.
    """
    REPORTED = "reported"          # Initial state, submitted by a citizen
    IN_REVIEW = "in-review"        # Being triaged by an administrator
    IN_PROGRESS = "in-progress"    # Assigned work is underway
    RESOLVED = "resolved"          # Fixed
    CLOSED = "closed"              # Archived


class ReportPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class ReportCategory(str, Enum):
    INFRASTRUCTURE = "infrastructure"
    SAFETY = "safety"
    ENVIRONMENT = "environment"
    PUBLIC_SERVICES = "public-services"
    OTHER = "other"


REPORT_STATUSES = [s.value for s in ReportStatus]
REPORT_PRIORITIES = [p.value for p in ReportPriority]
REPORT_CATEGORIES = [c.value for c in ReportCategory]

DESCRIPTION_MIN_LENGTH = 10
DESCRIPTION_MAX_LENGTH = 2000


class Location(BaseModel):
    """Report coordinates with an optional human-readable address."""
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    address: Optional[str] = None


class MediaInfo(BaseModel):
    url: str
    filename: str
    original_name: str
    size: int
    mimetype: str


class MediaUploadResponse(MediaInfo):
    """Stored media info plus display metadata (POST /media/upload)."""
    success: bool = True
    media_type: str = Field(..., description="image, video or audio")
    uploaded_at: datetime
    size_formatted: str


class StatusUpdateRequest(BaseModel):
    """
    Request to change report status.
    Status is validated by the workflow engine so the error lists valid values.
    """
    status: Optional[str] = Field(None, description="New status value")
    note: Optional[str] = Field(None, max_length=500, description="Optional note explaining the change")
    updated_by: Optional[str] = Field(None, description="Defaults to the authenticated admin")


class AssignReportRequest(BaseModel):
    """Request to assign a report to a team."""
    team_id: Optional[str] = Field(None, description="Target team ID")
    assigned_by: Optional[str] = Field(None, description="Defaults to the authenticated admin")
    priority: Optional[ReportPriority] = Field(None, description="Defaults to the report priority")

    class Config:
        json_schema_extra = {
            "example": {
                "team_id": "1",
                "assigned_by": "admin",
            }
        }


class PublicReport(BaseModel):
    """
    Public projection of a report (GET /reports).
    Contact info is hidden for anonymous reports.
    """
    id: str
    title: str
    description: str
    status: str
    severity: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    tracking_id: str
    contact_info: Optional[str] = None
    created_by: str
    location: Optional[Location] = None
    media_url: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "id": "Q2x1bHpLQUhZbWZ3dTNq",
                "title": "Issue Report #0420",
                "description": "Large pothole on Main Street near the school crossing",
                "status": "reported",
                "severity": "medium",
                "created_at": "2024-01-15T10:30:00Z",
                "updated_at": "2024-01-15T10:30:00Z",
                "tracking_id": "RPT-20240115-0420",
                "contact_info": None,
                "created_by": "anonymous",
                "location": {"lat": 40.7128, "lng": -74.006, "address": "Main St"},
                "media_url": None,
            }
        }


class Pagination(BaseModel):
    total: int
    offset: int
    limit: int
    has_more: bool


class AdminReportsResponse(BaseModel):
    reports: List[Dict]
    pagination: Pagination
