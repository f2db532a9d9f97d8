"""
Ward representative endpoints - registration, login and verification records.
"""

from fastapi import APIRouter, Depends, Query, status
from typing import Optional
import logging

from app.core.errors import CivicError, server_error
from app.models.base import MessageResponse
from app.models.user import (
    AddVerifiedIssueRequest, AuthResponse, IncrementResolvedRequest, LoginRequest,
    WardRepRegister, WardRepUpdate,
)
from app.services.account_service import WardRepService, get_ward_rep_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ward-reps", tags=["Ward Representatives"])


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=AuthResponse)
async def register(body: WardRepRegister, service: WardRepService = Depends(get_ward_rep_service)):
    try:
        return service.register(body.to_document())
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"❌ POST /ward-reps/register failed: {str(e)}", exc_info=True)
        raise server_error(e)


@router.post("/login", response_model=AuthResponse)
async def login(body: LoginRequest, service: WardRepService = Depends(get_ward_rep_service)):
    try:
        return service.login(body.email, body.password)
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"❌ POST /ward-reps/login failed: {str(e)}", exc_info=True)
        raise server_error(e)


@router.post("/add-verified-issue")
async def add_verified_issue(body: AddVerifiedIssueRequest,
                             service: WardRepService = Depends(get_ward_rep_service)):
    """Record an issue the representative verified; totalResolvedIssues follows the list length."""
    try:
        return service.add_verified_issue(body.rep_id, body.issue_id)
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"POST /ward-reps/add-verified-issue failed: {str(e)}", exc_info=True)
        raise server_error(e)


@router.get("")
async def list_ward_reps(
    page: Optional[int] = None,
    limit: Optional[int] = None,
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_dir: Optional[str] = Query(None, alias="sortDir"),
    service: WardRepService = Depends(get_ward_rep_service),
):
    try:
        return service.list_accounts(page, limit, sort_by, sort_dir)
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"GET /ward-reps failed: {str(e)}", exc_info=True)
        raise server_error(e)


@router.get("/{rep_id}")
async def get_ward_rep(rep_id: str, service: WardRepService = Depends(get_ward_rep_service)):
    try:
        return service.get(rep_id)
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"GET /ward-reps/{rep_id} failed: {str(e)}", exc_info=True)
        raise server_error(e)


@router.patch("/{rep_id}")
async def update_ward_rep(rep_id: str, body: WardRepUpdate, service: WardRepService = Depends(get_ward_rep_service)):
    try:
        return service.update(rep_id, body.to_document(exclude_unset=True))
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"PATCH /ward-reps/{rep_id} failed: {str(e)}", exc_info=True)
        raise server_error(e)


@router.delete("/{rep_id}", response_model=MessageResponse)
async def delete_ward_rep(rep_id: str, service: WardRepService = Depends(get_ward_rep_service)):
    try:
        service.delete(rep_id)
        return {"message": "Ward representative deleted successfully"}
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"DELETE /ward-reps/{rep_id} failed: {str(e)}", exc_info=True)
        raise server_error(e)


@router.post("/{rep_id}/increment-resolved")
async def increment_resolved(rep_id: str, body: Optional[IncrementResolvedRequest] = None,
                             service: WardRepService = Depends(get_ward_rep_service)):
    try:
        delta = body.delta if body is not None else 1
        return service.increment_resolved(rep_id, delta)
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"POST /ward-reps/{rep_id}/increment-resolved failed: {str(e)}", exc_info=True)
        raise server_error(e)
