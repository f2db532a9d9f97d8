"""
Account models: admin users, ward representatives and officers.
Password hashes never appear in any response model.
"""

from pydantic import EmailStr, Field
from typing import Any, Dict, List, Optional

from app.models.base import CamelModel


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class AuthResponse(CamelModel):
    """Authentication response."""
    message: str
    token: str
    account: Dict[str, Any]


# Admin accounts

class AdminRegister(CamelModel):
    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6)
    roles: Optional[List[str]] = None


class AdminUpdate(CamelModel):
    username: Optional[str] = Field(None, min_length=3, max_length=50)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=6)
    roles: Optional[List[str]] = None


# Ward representatives

class WardRepRegister(CamelModel):
    ward_leader_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    email: EmailStr
    phone: str = Field(..., min_length=5, max_length=15)
    password: str = Field(..., min_length=6)
    ward: str = Field(..., min_length=1)
    area: Optional[str] = None
    address: Optional[str] = None
    citizen_meet_days: Optional[str] = None
    years_of_experience: int = Field(0, ge=0)
    profile_image: Optional[str] = None


class WardRepUpdate(CamelModel):
    """wardLeaderId and email are identity fields and cannot change here."""
    name: Optional[str] = None
    phone: Optional[str] = Field(None, min_length=5, max_length=15)
    password: Optional[str] = Field(None, min_length=6)
    ward: Optional[str] = None
    area: Optional[str] = None
    address: Optional[str] = None
    citizen_meet_days: Optional[str] = None
    years_of_experience: Optional[int] = Field(None, ge=0)
    profile_image: Optional[str] = None


class AddVerifiedIssueRequest(CamelModel):
    rep_id: Optional[str] = None
    issue_id: Optional[str] = None


class IncrementResolvedRequest(CamelModel):
    delta: int = 1


# Officers

class OfficerCreate(CamelModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6)
    position: Optional[str] = None
    wards_managed: List[str] = Field(default_factory=list)
