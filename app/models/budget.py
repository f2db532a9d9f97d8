"""
Pydantic models for budget records.
"""

from pydantic import ConfigDict, Field
from typing import List, Optional
from enum import Enum

from app.models.base import CamelModel


class BudgetStatus(str, Enum):
    APPROVED = "Approved"
    PARTIALLY_USED = "Partially Used"
    COMPLETED = "Completed"
    CLOSED = "Closed"


class BudgetDocumentIn(CamelModel):
    file_name: str
    file_path: str


class BudgetCreate(CamelModel):
    """
    Initial budget approval for one issue.
    Amount fields are checked for presence in the service; zero or negative
    approvals are rejected here.
    """
    issue_id: Optional[str] = None
    ward_id: Optional[str] = None
    approved_by: Optional[str] = None
    estimated_cost: Optional[float] = Field(None, gt=0)
    amount_approved: Optional[float] = Field(None, gt=0)
    amount_used: float = Field(0, ge=0)
    remarks: Optional[str] = Field(None, max_length=2000)
    documents: List[BudgetDocumentIn] = Field(default_factory=list)

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "issueId": "64b7f0c2a1b2c3d4e5f60718",
            "wardId": "64b7f0c2a1b2c3d4e5f60719",
            "approvedBy": "64b7f0c2a1b2c3d4e5f6071a",
            "estimatedCost": 1000,
            "amountApproved": 800,
        }
    })


class BudgetUsageUpdate(CamelModel):
    amount_used: Optional[float] = Field(None, ge=0)
    by: Optional[str] = None
    note: Optional[str] = None


class BudgetDocumentCreate(CamelModel):
    file_name: str = Field(..., min_length=1)
    file_path: str = Field(..., min_length=1)
    by: Optional[str] = None
    note: Optional[str] = None


class BudgetCloseRequest(CamelModel):
    by: Optional[str] = None
    note: Optional[str] = None
