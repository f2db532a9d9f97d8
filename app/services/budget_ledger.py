"""
Budget Ledger - pure rules for budget records.

remainingAmount and status are never taken from callers: recompute() derives
them from amountApproved/amountUsed and every operation below runs it on
the post-change document before returning the fields to write.

Status derivation:
- Approved        amountUsed == 0
- Partially Used  0 < amountUsed < amountApproved
- Completed       amountUsed >= amountApproved
- Closed          set by close(); terminal, survives any recompute

Every mutating operation appends exactly one history entry.
"""

from datetime import datetime
from typing import Dict, List, Optional

from app.core.errors import ConflictError, ValidationError
from app.models.budget import BudgetStatus
from app.utils.firestore_helpers import require_valid_id, utcnow

REQUIRED_ON_CREATE = ("issueId", "wardId", "approvedBy", "estimatedCost", "amountApproved")


def derive_status(amount_approved: float, amount_used: float, current_status: Optional[str] = None) -> str:
    if current_status == BudgetStatus.CLOSED.value:
        return BudgetStatus.CLOSED.value
    if amount_used == 0:
        return BudgetStatus.APPROVED.value
    if amount_used < amount_approved:
        return BudgetStatus.PARTIALLY_USED.value
    return BudgetStatus.COMPLETED.value


def recompute(budget: Dict) -> Dict:
    """Derived fields for a budget document."""
    approved = budget.get("amountApproved") or 0
    used = budget.get("amountUsed") or 0
    return {
        "remainingAmount": approved - used,
        "status": derive_status(approved, used, budget.get("status")),
    }


def history_entry(action: str, by: Optional[str], note: str,
                  amount_changed: Optional[float] = None, now: Optional[datetime] = None) -> Dict:
    return {
        "action": action,
        "by": by,
        "amountChanged": amount_changed,
        "note": note,
        "timestamp": now or utcnow(),
    }


def _check_actor(by: Optional[str]) -> None:
    if by:
        require_valid_id(by, "actor id")


def _finalize(budget: Dict, changes: Dict, now: datetime) -> Dict:
    changes["updatedAt"] = now
    changes.update(recompute({**budget, **changes}))
    return changes


def new_budget(fields: Dict, now: Optional[datetime] = None) -> Dict:
    """
    Build a budget document seeded with its "Approved" history entry.

    Raises:
        ValidationError: required field missing or an id is malformed
    """
    missing = [name for name in REQUIRED_ON_CREATE if not fields.get(name)]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}.")
    for name in ("issueId", "wardId", "approvedBy"):
        require_valid_id(fields[name], name)

    now = now or utcnow()
    documents: List[Dict] = [
        {"fileName": doc["fileName"], "filePath": doc["filePath"], "uploadedAt": now}
        for doc in fields.get("documents") or []
    ]
    budget = {
        "issueId": fields["issueId"],
        "wardId": fields["wardId"],
        "approvedBy": fields["approvedBy"],
        "estimatedCost": fields["estimatedCost"],
        "amountApproved": fields["amountApproved"],
        "amountUsed": fields.get("amountUsed") or 0,
        "remarks": fields.get("remarks"),
        "documents": documents,
        "history": [history_entry(
            "Approved", fields["approvedBy"], "Initial budget approval",
            amount_changed=fields["amountApproved"], now=now,
        )],
        "approvedAt": now,
        "closedAt": None,
        "status": BudgetStatus.APPROVED.value,
        "createdAt": now,
        "updatedAt": now,
    }
    budget.update(recompute(budget))
    return budget


def update_usage(budget: Dict, amount_used: Optional[float], by: Optional[str] = None,
                 note: Optional[str] = None, now: Optional[datetime] = None) -> Dict:
    """Record spending. Zero is a valid amount; a closed budget is locked."""
    if amount_used is None:
        raise ValidationError("amountUsed is required.")
    if amount_used < 0:
        raise ValidationError("amountUsed cannot be negative.")
    if budget.get("status") == BudgetStatus.CLOSED.value:
        raise ConflictError("Budget is closed and can no longer be updated.")
    _check_actor(by)

    now = now or utcnow()
    changes = {
        "amountUsed": amount_used,
        "history": list(budget.get("history") or []) + [history_entry(
            "Updated", by, note or "Updated budget usage", amount_changed=amount_used, now=now,
        )],
    }
    return _finalize(budget, changes, now)


def add_document(budget: Dict, file_name: str, file_path: str, by: Optional[str] = None,
                 note: Optional[str] = None, now: Optional[datetime] = None) -> Dict:
    if not file_name or not file_path:
        raise ValidationError("fileName and filePath are required.")
    _check_actor(by)

    now = now or utcnow()
    changes = {
        "documents": list(budget.get("documents") or []) + [
            {"fileName": file_name, "filePath": file_path, "uploadedAt": now}
        ],
        "history": list(budget.get("history") or []) + [
            history_entry("Document Added", by, note or "New document uploaded", now=now)
        ],
    }
    return _finalize(budget, changes, now)


def close(budget: Dict, by: Optional[str] = None, note: Optional[str] = None,
          now: Optional[datetime] = None) -> Dict:
    if budget.get("status") == BudgetStatus.CLOSED.value:
        raise ConflictError("Budget is already closed.")
    _check_actor(by)

    now = now or utcnow()
    changes = {
        "status": BudgetStatus.CLOSED.value,
        "closedAt": now,
        "history": list(budget.get("history") or []) + [
            history_entry("Closed", by, note or "Budget closed", now=now)
        ],
    }
    return _finalize(budget, changes, now)
