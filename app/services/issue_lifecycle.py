"""
Issue Lifecycle Engine - pure state changes for issue documents.

Every function takes the current issue dict and returns the dict of
fields to write. Nothing here touches Firestore; IssueService reads the
document, calls into this module and persists the result.

DESIGN PRINCIPLES:
- Status only moves through StatusWorkflowEngine
- Generic updates can never reach lifecycle fields
- Owned lists (progress, comments, likes) are append-only, likes toggle
"""

from datetime import datetime
from typing import Dict, Optional, Tuple

from app.core.errors import ConflictError, InvalidTransitionError, ValidationError
from app.services.status_workflow import IssueStatus, ProgressStatus, StatusWorkflowEngine
from app.utils.firestore_helpers import require_valid_id, utcnow

# Only the dedicated lifecycle operations may write these
LIFECYCLE_FIELDS = frozenset({
    "status", "verifiedBy", "verifiedAt", "verificationRemark", "verifiedDate",
    "officerId", "assignedTo", "assignedAt", "resolvedDate", "closedDate",
    "progressUpdates", "comments", "likes", "views", "budgetDetails", "budgetUsed",
    "isActive", "isArchived", "citizenId", "createdAt", "updatedAt", "id",
})

REQUIRED_ON_CREATE = ("citizenId", "wardId", "title", "description")


def new_issue(fields: Dict, now: Optional[datetime] = None) -> Dict:
    """
    Build the initial issue document from reporter-supplied fields.

    Raises:
        ValidationError: required field missing or an id is malformed
    """
    missing = [name for name in REQUIRED_ON_CREATE if not str(fields.get(name) or "").strip()]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}.")

    require_valid_id(fields["citizenId"], "citizenId")
    require_valid_id(fields["wardId"], "wardId")
    if fields.get("postId"):
        require_valid_id(fields["postId"], "postId")

    now = now or utcnow()
    issue = {
        "category": "Others",
        "priority": "Medium",
        "location": None,
        "images": [],
        "estimatedCost": 0,
        "visibility": "public",
        "postId": None,
    }
    issue.update({key: value for key, value in fields.items() if key not in LIFECYCLE_FIELDS})
    issue.update({
        "citizenId": fields["citizenId"],
        "title": fields["title"].strip(),
        "description": fields["description"].strip(),
        "status": IssueStatus.PENDING_VERIFICATION.value,
        "verifiedBy": None,
        "verificationRemark": None,
        "verifiedAt": None,
        "verifiedDate": None,
        "officerId": None,
        "assignedTo": None,
        "assignedAt": None,
        "resolvedDate": None,
        "closedDate": None,
        "progressUpdates": [],
        "comments": [],
        "likes": [],
        "views": 0,
        "budgetUsed": 0,
        "budgetDetails": None,
        "isActive": True,
        "isArchived": False,
        "createdAt": now,
        "updatedAt": now,
    })
    return issue


def sanitize_update(fields: Dict) -> Dict:
    """Drop lifecycle and owned fields from a generic partial update."""
    changes = {key: value for key, value in fields.items() if key not in LIFECYCLE_FIELDS}
    if "wardId" in changes:
        require_valid_id(changes["wardId"], "wardId")
    if changes.get("postId"):
        require_valid_id(changes["postId"], "postId")
    return changes


def verify(issue: Dict, ward_rep_id: str, accept: bool = True,
           remark: Optional[str] = None, now: Optional[datetime] = None) -> Dict:
    """Record a ward representative's verification outcome."""
    require_valid_id(ward_rep_id, "wardRepId")
    new_status = IssueStatus.VERIFIED.value if accept else IssueStatus.REJECTED.value
    StatusWorkflowEngine.validate_transition(issue.get("status"), new_status)

    now = now or utcnow()
    return {
        "verifiedBy": ward_rep_id,
        "verificationRemark": remark or new_status,
        "verifiedAt": now,
        "status": new_status,
        "verifiedDate": now,
    }


def assign(issue: Dict, officer_id: Optional[str] = None, worker_id: Optional[str] = None,
           assigned_by: Optional[str] = None, now: Optional[datetime] = None) -> Dict:
    """Assign a responsible officer and/or a worker."""
    if not officer_id and not worker_id:
        raise ValidationError("officerId or workerId is required.")
    if officer_id:
        require_valid_id(officer_id, "officer id")
    if worker_id:
        require_valid_id(worker_id, "worker id")
    if assigned_by:
        require_valid_id(assigned_by, "assignedBy")

    StatusWorkflowEngine.validate_transition(issue.get("status"), IssueStatus.ASSIGNED.value)

    now = now or utcnow()
    changes: Dict = {"status": IssueStatus.ASSIGNED.value}
    if officer_id:
        changes["officerId"] = officer_id
    if worker_id:
        changes["assignedTo"] = worker_id
        changes["assignedAt"] = now

    if assigned_by:
        changes["progressUpdates"] = list(issue.get("progressUpdates") or []) + [{
            "status": ProgressStatus.ASSIGNED.value,
            "remark": f"Assigned by {assigned_by}",
            "updatedBy": assigned_by,
            "photo": None,
            "timestamp": now,
        }]
    return changes


def add_progress_update(issue: Dict, status: str, remark: Optional[str] = None,
                        updated_by: Optional[str] = None, photo: Optional[str] = None,
                        now: Optional[datetime] = None) -> Dict:
    """
    Append a progress entry and move the top-level status.

    "Work Halted" is history only: the issue keeps its current status.
    """
    if not status:
        raise ValidationError("Status is required.")
    try:
        progress_status = ProgressStatus(status)
    except ValueError:
        allowed = [value.value for value in ProgressStatus]
        raise ValidationError(f"Invalid progress status: {status}. Allowed: {allowed}")
    if updated_by:
        require_valid_id(updated_by, "updatedBy")

    current = issue.get("status")
    if progress_status is ProgressStatus.WORK_HALTED:
        if current not in (IssueStatus.ASSIGNED.value, IssueStatus.IN_PROGRESS.value):
            raise InvalidTransitionError(f"Work cannot be halted on an issue that is {current}.")
    else:
        StatusWorkflowEngine.validate_transition(current, progress_status.value)

    now = now or utcnow()
    changes: Dict = {
        "progressUpdates": list(issue.get("progressUpdates") or []) + [{
            "status": progress_status.value,
            "remark": remark,
            "updatedBy": updated_by,
            "photo": photo,
            "timestamp": now,
        }],
    }

    if progress_status is ProgressStatus.RESOLVED:
        changes["resolvedDate"] = now
    elif progress_status is ProgressStatus.CLOSED:
        changes["closedDate"] = now

    if progress_status is not ProgressStatus.WORK_HALTED:
        changes["status"] = progress_status.value
    return changes


def add_comment(issue: Dict, user_id: str, text: str, now: Optional[datetime] = None) -> Dict:
    require_valid_id(user_id, "userId")
    if not text or not text.strip():
        raise ValidationError("Comment text is required.")
    now = now or utcnow()
    return {
        "comments": list(issue.get("comments") or []) + [
            {"userId": user_id, "text": text.strip(), "timestamp": now}
        ],
    }


def toggle_like(issue: Dict, user_id: str, now: Optional[datetime] = None) -> Tuple[Dict, bool]:
    """
    Like if the actor has not liked yet, unlike otherwise.

    Returns:
        (changes, liked) where liked is the membership after the toggle
    """
    require_valid_id(user_id, "userId")
    likes = list(issue.get("likes") or [])
    remaining = [like for like in likes if like.get("userId") != user_id]

    if len(remaining) != len(likes):
        return {"likes": remaining}, False

    now = now or utcnow()
    return {"likes": likes + [{"userId": user_id, "likedAt": now}]}, True


def link_budget(issue: Dict, budget: Dict) -> Dict:
    """Point the issue at its budget; the budget must belong to this issue."""
    if budget.get("issueId") != issue.get("id"):
        raise ConflictError("Budget belongs to a different issue.")
    linked = issue.get("budgetDetails")
    if linked and linked != budget.get("id"):
        raise ConflictError("Issue is already linked to another budget.")
    return {"budgetDetails": budget["id"], "budgetUsed": budget.get("amountUsed", 0)}


def set_archive(archive: bool) -> Dict:
    return {"isArchived": bool(archive), "isActive": not archive}

