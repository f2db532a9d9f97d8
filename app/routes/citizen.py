"""
Citizen profile endpoints.

The issue counters on a profile are derived from issuesReported and are
never accepted from request bodies.
"""

from fastapi import APIRouter, Depends, Query, status
from typing import Optional
import logging

from app.core.errors import CivicError, server_error
from app.models.base import MessageResponse
from app.models.citizen import (
    ActivityCreate, CitizenArchiveRequest, CitizenCommentCreate, CitizenCreate, CitizenUpdate,
    ReportedIssueCreate, ReportedIssueStatusUpdate, VerifyCitizenRequest,
)
from app.services.citizen_service import CitizenService, get_citizen_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/citizen", tags=["Citizen"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_citizen(body: CitizenCreate, service: CitizenService = Depends(get_citizen_service)):
    """Create the profile for a user. A user can only have one profile."""
    try:
        return service.create_citizen(body.to_document())
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"❌ POST /citizen - Profile creation failed: {str(e)}", exc_info=True)
        raise server_error(e)


@router.get("")
async def list_citizens(
    ward_id: Optional[str] = Query(None, alias="wardId"),
    verified: Optional[bool] = None,
    q: Optional[str] = None,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_dir: Optional[str] = Query(None, alias="sortDir"),
    service: CitizenService = Depends(get_citizen_service),
):
    try:
        return service.list_citizens(ward_id, verified, q, page, limit, sort_by, sort_dir)
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"GET /citizen failed: {str(e)}", exc_info=True)
        raise server_error(e)


@router.get("/{citizen_id}")
async def get_citizen(citizen_id: str, service: CitizenService = Depends(get_citizen_service)):
    try:
        return service.get_citizen(citizen_id)
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"GET /citizen/{citizen_id} failed: {str(e)}", exc_info=True)
        raise server_error(e)


@router.patch("/{citizen_id}")
async def update_citizen(citizen_id: str, body: CitizenUpdate,
                         service: CitizenService = Depends(get_citizen_service)):
    try:
        return service.update_citizen(citizen_id, body.to_document(exclude_unset=True))
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"PATCH /citizen/{citizen_id} failed: {str(e)}", exc_info=True)
        raise server_error(e)


@router.post("/{citizen_id}/report-issue", status_code=status.HTTP_201_CREATED)
async def add_reported_issue(citizen_id: str, body: ReportedIssueCreate,
                             service: CitizenService = Depends(get_citizen_service)):
    try:
        return service.add_reported_issue(citizen_id, body.issue_id, body.title, body.status, body.reported_at)
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"❌ POST /citizen/{citizen_id}/report-issue failed: {str(e)}", exc_info=True)
        raise server_error(e)


@router.patch("/{citizen_id}/report-issue/{issue_id}")
async def update_reported_issue_status(citizen_id: str, issue_id: str, body: ReportedIssueStatusUpdate,
                                       service: CitizenService = Depends(get_citizen_service)):
    try:
        return service.update_reported_issue_status(citizen_id, issue_id, body.status)
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"❌ PATCH /citizen/{citizen_id}/report-issue/{issue_id} failed: {str(e)}", exc_info=True)
        raise server_error(e)


@router.post("/{citizen_id}/comment", status_code=status.HTTP_201_CREATED)
async def add_comment(citizen_id: str, body: CitizenCommentCreate,
                      service: CitizenService = Depends(get_citizen_service)):
    try:
        return service.add_comment(citizen_id, body.comment_text, body.issue_id)
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"POST /citizen/{citizen_id}/comment failed: {str(e)}", exc_info=True)
        raise server_error(e)


@router.post("/{citizen_id}/activity", status_code=status.HTTP_201_CREATED)
async def record_activity(citizen_id: str, body: ActivityCreate,
                          service: CitizenService = Depends(get_citizen_service)):
    try:
        return service.record_activity(citizen_id, body.action, body.issue_id)
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"POST /citizen/{citizen_id}/activity failed: {str(e)}", exc_info=True)
        raise server_error(e)


@router.patch("/{citizen_id}/verify")
async def verify_citizen(citizen_id: str, body: VerifyCitizenRequest,
                         service: CitizenService = Depends(get_citizen_service)):
    try:
        return service.set_verified(citizen_id, body.verify)
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"PATCH /citizen/{citizen_id}/verify failed: {str(e)}", exc_info=True)
        raise server_error(e)


@router.patch("/{citizen_id}/archive")
async def archive_citizen(citizen_id: str, body: CitizenArchiveRequest,
                          service: CitizenService = Depends(get_citizen_service)):
    try:
        return service.set_archive(citizen_id, body.archive)
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"PATCH /citizen/{citizen_id}/archive failed: {str(e)}", exc_info=True)
        raise server_error(e)


@router.delete("/{citizen_id}", response_model=MessageResponse)
async def delete_citizen(citizen_id: str, service: CitizenService = Depends(get_citizen_service)):
    try:
        service.delete_citizen(citizen_id)
        return {"message": "Citizen profile deleted successfully"}
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"DELETE /citizen/{citizen_id} failed: {str(e)}", exc_info=True)
        raise server_error(e)
