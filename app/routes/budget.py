"""
Budget endpoints - approval, spending, documents and closure.
"""

from fastapi import APIRouter, Depends, Query, status
from typing import Optional
import logging

from app.core.errors import CivicError, server_error
from app.models.base import MessageResponse
from app.models.budget import BudgetCloseRequest, BudgetCreate, BudgetDocumentCreate, BudgetUsageUpdate
from app.services.budget_service import BudgetService, get_budget_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/budget", tags=["Budget"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_budget(body: BudgetCreate, service: BudgetService = Depends(get_budget_service)):
    """Approve a budget for an issue. An issue can only have one budget."""
    try:
        logger.info(f"📝 POST /budget - issue={body.issue_id}, approved={body.amount_approved}")
        return service.create_budget(body.to_document())
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"❌ POST /budget - Budget creation failed: {str(e)}", exc_info=True)
        raise server_error(e)


@router.get("")
async def list_budgets(
    ward_id: Optional[str] = Query(None, alias="wardId"),
    issue_id: Optional[str] = Query(None, alias="issueId"),
    page: Optional[int] = None,
    limit: Optional[int] = None,
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_dir: Optional[str] = Query(None, alias="sortDir"),
    service: BudgetService = Depends(get_budget_service),
):
    try:
        return service.list_budgets(ward_id, issue_id, page, limit, sort_by, sort_dir)
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"GET /budget failed: {str(e)}", exc_info=True)
        raise server_error(e)


@router.get("/{budget_id}")
async def get_budget(budget_id: str, service: BudgetService = Depends(get_budget_service)):
    try:
        return service.get_budget(budget_id)
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"GET /budget/{budget_id} failed: {str(e)}", exc_info=True)
        raise server_error(e)


@router.patch("/{budget_id}/usage")
async def update_usage(budget_id: str, body: BudgetUsageUpdate, service: BudgetService = Depends(get_budget_service)):
    """Record the amount used so far. Closed budgets reject usage changes."""
    try:
        return service.update_usage(budget_id, body.amount_used, body.by, body.note)
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"❌ PATCH /budget/{budget_id}/usage failed: {str(e)}", exc_info=True)
        raise server_error(e)


@router.post("/{budget_id}/document", status_code=status.HTTP_201_CREATED)
async def add_document(budget_id: str, body: BudgetDocumentCreate,
                       service: BudgetService = Depends(get_budget_service)):
    try:
        return service.add_document(budget_id, body.file_name, body.file_path, body.by, body.note)
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"POST /budget/{budget_id}/document failed: {str(e)}", exc_info=True)
        raise server_error(e)


@router.patch("/{budget_id}/close")
async def close_budget(budget_id: str, body: Optional[BudgetCloseRequest] = None,
                       service: BudgetService = Depends(get_budget_service)):
    try:
        body = body or BudgetCloseRequest()
        return service.close_budget(budget_id, body.by, body.note)
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"❌ PATCH /budget/{budget_id}/close failed: {str(e)}", exc_info=True)
        raise server_error(e)


@router.delete("/{budget_id}", response_model=MessageResponse)
async def delete_budget(budget_id: str, service: BudgetService = Depends(get_budget_service)):
    try:
        service.delete_budget(budget_id)
        return {"message": "Budget deleted successfully"}
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"DELETE /budget/{budget_id} failed: {str(e)}", exc_info=True)
        raise server_error(e)
