"""
Citizen Ledger - pure rules for citizen profile documents.

The three counters are a function of issuesReported and nothing else:

    totalIssuesReported == len(issuesReported)
    totalResolved       == entries with status Resolved or Closed
    totalPending        == every other entry

with_totals() is applied to the post-change document before every write,
whichever field the write touches.
"""

from datetime import datetime
from typing import Dict, List, Optional

from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.services.status_workflow import RESOLVED_STATUSES, IssueStatus, StatusWorkflowEngine
from app.utils.firestore_helpers import require_valid_id, utcnow

# Owned by the ledger operations, never by a generic profile update
LEDGER_FIELDS = frozenset({
    "userId", "issuesReported", "comments", "activityLog",
    "totalIssuesReported", "totalResolved", "totalPending",
    "isVerifiedCitizen", "isArchived", "isActive", "createdAt", "updatedAt", "id",
})


def compute_totals(issues_reported: List[Dict]) -> Dict:
    resolved = sum(1 for entry in issues_reported if entry.get("status") in RESOLVED_STATUSES)
    return {
        "totalIssuesReported": len(issues_reported),
        "totalResolved": resolved,
        "totalPending": len(issues_reported) - resolved,
    }


def with_totals(citizen: Dict, changes: Dict, now: Optional[datetime] = None) -> Dict:
    """Complete a change set with recomputed counters and updatedAt."""
    merged = {**citizen, **changes}
    changes.update(compute_totals(merged.get("issuesReported") or []))
    changes["updatedAt"] = now or utcnow()
    return changes


def activity_entry(action: str, issue_id: Optional[str] = None, now: Optional[datetime] = None) -> Dict:
    return {"action": action, "issueId": issue_id, "timestamp": now or utcnow()}


def _log(citizen: Dict, action: str, issue_id: Optional[str], now: datetime) -> List[Dict]:
    return list(citizen.get("activityLog") or []) + [activity_entry(action, issue_id, now)]


def new_profile(fields: Dict, now: Optional[datetime] = None) -> Dict:
    missing = [name for name in ("userId", "wardId", "address") if not str(fields.get(name) or "").strip()]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}.")
    require_valid_id(fields["userId"], "userId")
    require_valid_id(fields["wardId"], "wardId")

    now = now or utcnow()
    profile = {
        "pincode": None,
        "geoLocation": None,
        "alternatePhone": None,
        "profileVisibility": "public",
    }
    profile.update({key: value for key, value in fields.items() if key not in LEDGER_FIELDS})
    profile.update({
        "userId": fields["userId"],
        "address": fields["address"].strip(),
        "issuesReported": [],
        "comments": [],
        "activityLog": [],
        "isVerifiedCitizen": False,
        "isArchived": False,
        "isActive": True,
        "createdAt": now,
    })
    profile.update(with_totals(profile, {}, now))
    return profile


def sanitize_update(fields: Dict) -> Dict:
    changes = {key: value for key, value in fields.items() if key not in LEDGER_FIELDS}
    if "wardId" in changes:
        require_valid_id(changes["wardId"], "wardId")
    return changes


def find_reported(citizen: Dict, issue_id: str) -> Optional[Dict]:
    for entry in citizen.get("issuesReported") or []:
        if entry.get("issueId") == issue_id:
            return entry
    return None


def add_reported_issue(citizen: Dict, issue_id: str, title: Optional[str] = None,
                       status: Optional[str] = None, reported_at: Optional[datetime] = None,
                       now: Optional[datetime] = None) -> Dict:
    """
    Record an issue on the profile.

    Raises:
        ConflictError: the issue is already recorded for this citizen
    """
    require_valid_id(issue_id, "issueId")
    status = status or IssueStatus.PENDING_VERIFICATION.value
    if not StatusWorkflowEngine.is_valid_status(status):
        raise ValidationError(f"Invalid issue status: {status}")
    if find_reported(citizen, issue_id) is not None:
        raise ConflictError("Issue already recorded for this citizen.")

    now = now or utcnow()
    changes = {
        "issuesReported": list(citizen.get("issuesReported") or []) + [{
            "issueId": issue_id,
            "title": title,
            "status": status,
            "reportedAt": reported_at or now,
        }],
        "activityLog": _log(citizen, "Reported Issue", issue_id, now),
    }
    return with_totals(citizen, changes, now)


def update_reported_issue_status(citizen: Dict, issue_id: str, status: str,
                                 now: Optional[datetime] = None) -> Dict:
    """
    Change the status snapshot of a recorded issue.

    Raises:
        NotFoundError: the issue is not recorded for this citizen
    """
    require_valid_id(issue_id, "issueId")
    if not status:
        raise ValidationError("status is required.")
    if not StatusWorkflowEngine.is_valid_status(status):
        raise ValidationError(f"Invalid issue status: {status}")
    if find_reported(citizen, issue_id) is None:
        raise NotFoundError("Reported issue not found for this citizen.")

    now = now or utcnow()
    issues = [
        {**entry, "status": status} if entry.get("issueId") == issue_id else entry
        for entry in citizen.get("issuesReported") or []
    ]
    changes = {
        "issuesReported": issues,
        "activityLog": _log(citizen, f"Issue status updated to {status}", issue_id, now),
    }
    return with_totals(citizen, changes, now)


def remove_reported_issue(citizen: Dict, issue_id: str, now: Optional[datetime] = None) -> Dict:
    """Drop a deleted issue from the profile; counters follow."""
    now = now or utcnow()
    changes = {
        "issuesReported": [
            entry for entry in citizen.get("issuesReported") or []
            if entry.get("issueId") != issue_id
        ],
        "activityLog": _log(citizen, "Reported issue deleted", issue_id, now),
    }
    return with_totals(citizen, changes, now)


def add_comment(citizen: Dict, comment_text: str, issue_id: Optional[str] = None,
                now: Optional[datetime] = None) -> Dict:
    if not comment_text or not comment_text.strip():
        raise ValidationError("commentText is required.")
    if issue_id:
        require_valid_id(issue_id, "issueId")

    now = now or utcnow()
    changes = {
        "comments": list(citizen.get("comments") or []) + [
            {"issueId": issue_id, "commentText": comment_text.strip(), "commentedAt": now}
        ],
        "activityLog": _log(citizen, "Commented", issue_id, now),
    }
    return with_totals(citizen, changes, now)


def record_activity(citizen: Dict, action: str, issue_id: Optional[str] = None,
                    now: Optional[datetime] = None) -> Dict:
    if not action or not action.strip():
        raise ValidationError("action is required.")
    if issue_id:
        require_valid_id(issue_id, "issueId")

    now = now or utcnow()
    return with_totals(citizen, {"activityLog": _log(citizen, action.strip(), issue_id, now)}, now)


def set_verified(citizen: Dict, verify: bool, now: Optional[datetime] = None) -> Dict:
    now = now or utcnow()
    action = "Verified as citizen" if verify else "Unverified citizen"
    changes = {
        "isVerifiedCitizen": bool(verify),
        "activityLog": _log(citizen, action, None, now),
    }
    return with_totals(citizen, changes, now)


def set_archive(citizen: Dict, archive: bool, now: Optional[datetime] = None) -> Dict:
    now = now or utcnow()
    action = "Archived profile" if archive else "Restored profile"
    changes = {
        "isArchived": bool(archive),
        "activityLog": _log(citizen, action, None, now),
    }
    if "isActive" in citizen:
        changes["isActive"] = not archive
    return with_totals(citizen, changes, now)
