"""
Officer endpoints.
"""

from fastapi import APIRouter, Depends, Query, status
from typing import Optional
import logging

from app.core.errors import CivicError, server_error
from app.models.user import OfficerCreate
from app.services.account_service import OfficerService, get_officer_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/officers", tags=["Officers"])


@router.post("/create", status_code=status.HTTP_201_CREATED)
async def create_officer(body: OfficerCreate, service: OfficerService = Depends(get_officer_service)):
    try:
        return service.create(body.to_document())
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"❌ POST /officers/create failed: {str(e)}", exc_info=True)
        raise server_error(e)


@router.get("")
async def list_officers(
    page: Optional[int] = None,
    limit: Optional[int] = None,
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_dir: Optional[str] = Query(None, alias="sortDir"),
    service: OfficerService = Depends(get_officer_service),
):
    try:
        return service.list_accounts(page, limit, sort_by, sort_dir)
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"GET /officers failed: {str(e)}", exc_info=True)
        raise server_error(e)


@router.get("/{officer_id}")
async def get_officer(officer_id: str, service: OfficerService = Depends(get_officer_service)):
    try:
        return service.get(officer_id)
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"GET /officers/{officer_id} failed: {str(e)}", exc_info=True)
        raise server_error(e)
