"""
Pydantic models for municipal work teams.
"""

from pydantic import BaseModel, Field
from typing import Optional, List
from enum import Enum

from civicsense.models.report import ReportPriority


class Department(str, Enum):
    PUBLIC_WORKS = "public-works"
    UTILITIES = "utilities"
    PARKS_RECREATION = "parks-recreation"
    TRANSPORTATION = "transportation"
    EMERGENCY_SERVICES = "emergency-services"
    ENVIRONMENTAL = "environmental"
    OTHER = "other"


class Specialty(str, Enum):
    INFRASTRUCTURE = "infrastructure"
    SAFETY = "safety"
    ENVIRONMENT = "environment"
    PUBLIC_SERVICES = "public-services"
    EMERGENCY = "emergency"
    MAINTENANCE = "maintenance"


class MemberRole(str, Enum):
    LEAD = "lead"
    MEMBER = "member"
    SPECIALIST = "specialist"


class Weekday(str, Enum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"


DEFAULT_WORKING_DAYS = ["monday", "tuesday", "wednesday", "thursday", "friday"]


class TeamMember(BaseModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    role: MemberRole = MemberRole.MEMBER


class TeamContactInfo(BaseModel):
    phone: Optional[str] = None
    email: Optional[str] = None
    location: Optional[str] = None


class WorkingHours(BaseModel):
    start: str = Field("08:00", pattern=r"^\d{2}:\d{2}$")
    end: str = Field("17:00", pattern=r"^\d{2}:\d{2}$")
    days: List[Weekday] = Field(default_factory=lambda: [Weekday(d) for d in DEFAULT_WORKING_DAYS])


class TeamCreate(BaseModel):
    """
    Model for creating a new team (incoming POST request).
    Name and department are the only required fields.
    """
    name: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    department: Optional[Department] = None
    members: List[TeamMember] = Field(default_factory=list)
    specialties: List[Specialty] = Field(default_factory=list)
    capacity: int = Field(5, ge=1, le=50)
    contact_info: TeamContactInfo = Field(default_factory=TeamContactInfo)
    working_hours: WorkingHours = Field(default_factory=WorkingHours)

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Public Works Alpha",
                "description": "Primary infrastructure maintenance and repair team",
                "department": "public-works",
                "members": [{"name": "John Smith", "email": "j.smith@city.gov", "role": "lead"}],
                "specialties": ["infrastructure", "maintenance"],
                "capacity": 8,
            }
        }


class TeamUpdate(BaseModel):
    """Partial team update; only fields present in the request are applied."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    department: Optional[Department] = None
    members: Optional[List[TeamMember]] = None
    specialties: Optional[List[Specialty]] = None
    capacity: Optional[int] = Field(None, ge=1, le=50)
    contact_info: Optional[TeamContactInfo] = None
    working_hours: Optional[WorkingHours] = None
    is_active: Optional[bool] = None


class TeamAssignRequest(BaseModel):
    """Bulk assignment of reports to a team."""
    report_ids: Optional[List[str]] = None
    priority: ReportPriority = ReportPriority.MEDIUM


class TeamUnassignRequest(BaseModel):
    report_id: Optional[str] = None
