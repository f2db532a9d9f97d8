"""
Admin account endpoints.

Registration and login issue an access token; /admin/me resolves the
account behind an `Authorization: Bearer <token>` header. Other
collections do not require a token.
"""

from fastapi import APIRouter, Depends, Header, Query, status
from typing import Optional
import logging

from app.core.errors import CivicError, server_error
from app.models.base import MessageResponse
from app.models.user import AdminRegister, AdminUpdate, AuthResponse, LoginRequest
from app.services.account_service import AdminService, get_admin_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=AuthResponse)
async def register(body: AdminRegister, service: AdminService = Depends(get_admin_service)):
    try:
        return service.register(body.username, body.email, body.password, body.roles)
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"❌ POST /admin/register failed: {str(e)}", exc_info=True)
        raise server_error(e)


@router.post("/login", response_model=AuthResponse)
async def login(body: LoginRequest, service: AdminService = Depends(get_admin_service)):
    try:
        return service.login(body.email, body.password)
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"❌ POST /admin/login failed: {str(e)}", exc_info=True)
        raise server_error(e)


@router.get("")
async def list_accounts(
    page: Optional[int] = None,
    limit: Optional[int] = None,
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_dir: Optional[str] = Query(None, alias="sortDir"),
    service: AdminService = Depends(get_admin_service),
):
    try:
        return service.list_accounts(page, limit, sort_by, sort_dir)
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"GET /admin failed: {str(e)}", exc_info=True)
        raise server_error(e)


@router.get("/me")
async def me(authorization: Optional[str] = Header(None),
             service: AdminService = Depends(get_admin_service)):
    """Account for the bearer token; 401 when the token is missing, invalid or expired."""
    try:
        return service.me(authorization)
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"GET /admin/me failed: {str(e)}", exc_info=True)
        raise server_error(e)


@router.get("/{account_id}")
async def get_account(account_id: str, service: AdminService = Depends(get_admin_service)):
    try:
        return service.get(account_id)
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"GET /admin/{account_id} failed: {str(e)}", exc_info=True)
        raise server_error(e)


@router.patch("/{account_id}")
async def update_account(account_id: str, body: AdminUpdate, service: AdminService = Depends(get_admin_service)):
    try:
        return service.update(account_id, body.to_document(exclude_unset=True))
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"PATCH /admin/{account_id} failed: {str(e)}", exc_info=True)
        raise server_error(e)


@router.delete("/{account_id}", response_model=MessageResponse)
async def delete_account(account_id: str, service: AdminService = Depends(get_admin_service)):
    try:
        service.delete(account_id)
        return {"message": "Account deleted successfully"}
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"DELETE /admin/{account_id} failed: {str(e)}", exc_info=True)
        raise server_error(e)
