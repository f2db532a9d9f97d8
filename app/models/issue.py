"""
Pydantic models for issues.
These models handle validation for issue creation and lifecycle actions.
"""

from pydantic import ConfigDict, Field
from typing import List, Optional
from enum import Enum

from app.models.base import CamelModel, GeoPoint


class IssueCategory(str, Enum):
    LIGHTING = "Lighting"
    WASTE_MANAGEMENT = "Waste Management"
    ROADS = "Roads"
    WATER_SUPPLY = "Water Supply"
    DRAINAGE = "Drainage"
    PUBLIC_HEALTH = "Public Health"
    OTHERS = "Others"


class IssuePriority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class Visibility(str, Enum):
    PUBLIC = "public"
    WARD_ONLY = "ward_only"


class IssueLocation(GeoPoint):
    address: Optional[str] = None
    landmark: Optional[str] = None


class IssueCreate(CamelModel):
    """
    Model for reporting a new issue (incoming POST request).
    Required presence of citizen, ward, title and description is also
    enforced by the service so the same rule holds for non-HTTP callers.
    """
    citizen_id: Optional[str] = Field(None, description="Reporting citizen profile id")
    ward_id: Optional[str] = Field(None, description="Owning ward id")
    title: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    category: IssueCategory = IssueCategory.OTHERS
    priority: IssuePriority = IssuePriority.MEDIUM
    location: Optional[IssueLocation] = None
    images: List[str] = Field(default_factory=list, description="Image URLs or file paths")
    estimated_cost: float = Field(0, ge=0)
    visibility: Visibility = Visibility.PUBLIC
    post_id: Optional[str] = Field(None, description="Social feed post reference")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "citizenId": "64b7f0c2a1b2c3d4e5f60718",
            "wardId": "64b7f0c2a1b2c3d4e5f60719",
            "title": "Pothole",
            "description": "Large pothole on Main St",
            "category": "Roads",
            "priority": "High",
            "location": {"latitude": 18.5074, "longitude": 73.8077, "address": "Main St", "landmark": "Bus stop"},
        }
    })


class IssueUpdate(CamelModel):
    """
    Partial update of descriptive fields only.
    Status, verification and resolution fields are not accepted and are
    dropped if a client sends them.
    """
    ward_id: Optional[str] = None
    title: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    category: Optional[IssueCategory] = None
    priority: Optional[IssuePriority] = None
    location: Optional[IssueLocation] = None
    images: Optional[List[str]] = None
    estimated_cost: Optional[float] = Field(None, ge=0)
    visibility: Optional[Visibility] = None
    post_id: Optional[str] = None


class VerifyIssueRequest(CamelModel):
    ward_rep_id: str
    verification_remark: Optional[str] = None
    accept: bool = True


class AssignIssueRequest(CamelModel):
    officer_id: Optional[str] = None
    worker_id: Optional[str] = None
    assigned_by: Optional[str] = None


class ProgressUpdateRequest(CamelModel):
    status: str
    remark: Optional[str] = None
    updated_by: Optional[str] = None
    photo: Optional[str] = None


class IssueCommentRequest(CamelModel):
    user_id: str
    text: str = Field(..., min_length=1, max_length=2000)


class LikeRequest(CamelModel):
    user_id: str


class LinkBudgetRequest(CamelModel):
    budget_id: str


class ArchiveRequest(CamelModel):
    archive: bool = True
