"""
Pydantic models for citizen profiles.
"""

from pydantic import Field
from datetime import datetime
from typing import Optional
from enum import Enum

from app.models.base import CamelModel, GeoPoint
from app.services.status_workflow import IssueStatus


class ProfileVisibility(str, Enum):
    PUBLIC = "public"
    PRIVATE = "private"


class CitizenCreate(CamelModel):
    user_id: Optional[str] = None
    ward_id: Optional[str] = None
    address: Optional[str] = Field(None, max_length=500)
    pincode: Optional[str] = Field(None, pattern=r"^[1-9][0-9]{5}$", description="6-digit PIN code")
    geo_location: Optional[GeoPoint] = None
    alternate_phone: Optional[str] = Field(None, pattern=r"^[0-9]{10}$")
    profile_visibility: ProfileVisibility = ProfileVisibility.PUBLIC


class CitizenUpdate(CamelModel):
    """Profile fields only; userId and ledger fields cannot be changed here."""
    ward_id: Optional[str] = None
    address: Optional[str] = Field(None, max_length=500)
    pincode: Optional[str] = Field(None, pattern=r"^[1-9][0-9]{5}$")
    geo_location: Optional[GeoPoint] = None
    alternate_phone: Optional[str] = Field(None, pattern=r"^[0-9]{10}$")
    profile_visibility: Optional[ProfileVisibility] = None


class ReportedIssueCreate(CamelModel):
    issue_id: str
    title: Optional[str] = None
    status: Optional[IssueStatus] = None  # defaults to Pending Verification
    reported_at: Optional[datetime] = None


class ReportedIssueStatusUpdate(CamelModel):
    status: IssueStatus


class CitizenCommentCreate(CamelModel):
    issue_id: Optional[str] = None
    comment_text: str = Field(..., min_length=1, max_length=2000)


class ActivityCreate(CamelModel):
    action: str = Field(..., min_length=1, max_length=200)
    issue_id: Optional[str] = None


class VerifyCitizenRequest(CamelModel):
    verify: bool = True


class CitizenArchiveRequest(CamelModel):
    archive: bool = True
