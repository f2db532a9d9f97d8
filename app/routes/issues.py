"""
Issue endpoints - reporting, lifecycle actions and public engagement.

Lifecycle moves (verify, assign, progress) each have their own endpoint;
PATCH /issues/{id} only touches descriptive fields.
"""

from fastapi import APIRouter, Depends, Query, status
from typing import Optional
import logging

from app.core.errors import CivicError, server_error
from app.models.base import MessageResponse
from app.models.issue import (
    ArchiveRequest, AssignIssueRequest, IssueCommentRequest, IssueCreate, IssueUpdate,
    LikeRequest, LinkBudgetRequest, ProgressUpdateRequest, VerifyIssueRequest,
)
from app.services.issue_service import IssueService, get_issue_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/issues", tags=["Issues"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_issue(body: IssueCreate, service: IssueService = Depends(get_issue_service)):
    """
    Report a new issue.

    The issue starts in Pending Verification and is recorded on the
    citizen's profile when one exists.
    """
    try:
        logger.info(f"📝 POST /issues - ward={body.ward_id}, category={body.category}")
        return service.create_issue(body.to_document())
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"❌ POST /issues - Issue creation failed: {str(e)}", exc_info=True)
        raise server_error(e)


@router.get("")
async def list_issues(
    ward_id: Optional[str] = Query(None, alias="wardId"),
    status_filter: Optional[str] = Query(None, alias="status"),
    category: Optional[str] = None,
    priority: Optional[str] = None,
    citizen_id: Optional[str] = Query(None, alias="citizenId"),
    q: Optional[str] = None,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_dir: Optional[str] = Query(None, alias="sortDir"),
    service: IssueService = Depends(get_issue_service),
):
    try:
        return service.list_issues(
            ward_id=ward_id, status=status_filter, category=category, priority=priority,
            citizen_id=citizen_id, q=q, page=page, limit=limit, sort_by=sort_by, sort_dir=sort_dir,
        )
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"GET /issues failed: {str(e)}", exc_info=True)
        raise server_error(e)


@router.get("/{issue_id}")
async def get_issue(issue_id: str, service: IssueService = Depends(get_issue_service)):
    """Issue with citizen, ward, verifier, officer, worker and budget expanded."""
    try:
        return service.get_issue(issue_id)
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"GET /issues/{issue_id} failed: {str(e)}", exc_info=True)
        raise server_error(e)


@router.patch("/{issue_id}")
async def update_issue(issue_id: str, body: IssueUpdate, service: IssueService = Depends(get_issue_service)):
    try:
        return service.update_issue(issue_id, body.to_document(exclude_unset=True))
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"PATCH /issues/{issue_id} failed: {str(e)}", exc_info=True)
        raise server_error(e)


@router.post("/{issue_id}/verify")
async def verify_issue(issue_id: str, body: VerifyIssueRequest, service: IssueService = Depends(get_issue_service)):
    """Ward representative accepts (Verified) or rejects (Rejected) the issue."""
    try:
        return service.verify_issue(issue_id, body.ward_rep_id, body.accept, body.verification_remark)
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"❌ POST /issues/{issue_id}/verify failed: {str(e)}", exc_info=True)
        raise server_error(e)


@router.post("/{issue_id}/assign")
async def assign_issue(issue_id: str, body: AssignIssueRequest, service: IssueService = Depends(get_issue_service)):
    try:
        return service.assign_issue(issue_id, body.officer_id, body.worker_id, body.assigned_by)
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"❌ POST /issues/{issue_id}/assign failed: {str(e)}", exc_info=True)
        raise server_error(e)


@router.post("/{issue_id}/progress")
async def add_progress_update(issue_id: str, body: ProgressUpdateRequest,
                              service: IssueService = Depends(get_issue_service)):
    """
    Append a progress update.

    Allowed statuses: Assigned, In Progress, Work Halted, Resolved, Closed.
    Work Halted is recorded without changing the issue status.
    """
    try:
        return service.add_progress_update(issue_id, body.status, body.remark, body.updated_by, body.photo)
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"❌ POST /issues/{issue_id}/progress failed: {str(e)}", exc_info=True)
        raise server_error(e)


@router.post("/{issue_id}/comment", status_code=status.HTTP_201_CREATED)
async def add_comment(issue_id: str, body: IssueCommentRequest, service: IssueService = Depends(get_issue_service)):
    try:
        issue = service.add_comment(issue_id, body.user_id, body.text)
        return {"comments": issue["comments"]}
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"POST /issues/{issue_id}/comment failed: {str(e)}", exc_info=True)
        raise server_error(e)


@router.post("/{issue_id}/like")
async def toggle_like(issue_id: str, body: LikeRequest, service: IssueService = Depends(get_issue_service)):
    try:
        return service.toggle_like(issue_id, body.user_id)
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"POST /issues/{issue_id}/like failed: {str(e)}", exc_info=True)
        raise server_error(e)


@router.post("/{issue_id}/views")
async def increment_views(issue_id: str, service: IssueService = Depends(get_issue_service)):
    try:
        return service.increment_views(issue_id)
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"POST /issues/{issue_id}/views failed: {str(e)}", exc_info=True)
        raise server_error(e)


@router.post("/{issue_id}/link-budget")
async def link_budget(issue_id: str, body: LinkBudgetRequest, service: IssueService = Depends(get_issue_service)):
    try:
        return service.link_budget(issue_id, body.budget_id)
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"POST /issues/{issue_id}/link-budget failed: {str(e)}", exc_info=True)
        raise server_error(e)


@router.patch("/{issue_id}/archive")
async def archive_issue(issue_id: str, body: ArchiveRequest, service: IssueService = Depends(get_issue_service)):
    try:
        return service.set_archive(issue_id, body.archive)
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"PATCH /issues/{issue_id}/archive failed: {str(e)}", exc_info=True)
        raise server_error(e)


@router.delete("/{issue_id}", response_model=MessageResponse)
async def delete_issue(issue_id: str, service: IssueService = Depends(get_issue_service)):
    try:
        service.delete_issue(issue_id)
        return {"message": "Issue deleted successfully"}
    except CivicError:
        raise
    except Exception as e:
        logger.error(f"DELETE /issues/{issue_id} failed: {str(e)}", exc_info=True)
        raise server_error(e)
