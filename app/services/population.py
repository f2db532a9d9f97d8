"""
Reference expansion for read endpoints.

Documents reference each other by id. Read endpoints that want the
referenced record inline call populate() explicitly after the primary
read; ledgers and lifecycle code only ever see ids.

A reference that is malformed or points at a missing document is left
as the raw id. Password hashes are never expanded.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from app.utils.firestore_helpers import (
    BUDGETS, CITIZENS, ISSUES, OFFICERS, USERS, WARD_REPS, WARDS, WORKERS,
    is_valid_id, snapshot_to_dict,
)
from app.utils.security import strip_secrets

logger = logging.getLogger(__name__)

# field -> (collection, projected fields); None projects the whole document
Reference = Tuple[str, Optional[Sequence[str]]]

ISSUE_REFERENCES: Dict[str, Reference] = {
    "citizenId": (CITIZENS, ("userId", "wardId", "address")),
    "wardId": (WARDS, ("name",)),
    "verifiedBy": (WARD_REPS, ("name",)),
    "officerId": (OFFICERS, ("name", "position")),
    "assignedTo": (WORKERS, ("name",)),
    "budgetDetails": (BUDGETS, None),
}

BUDGET_REFERENCES: Dict[str, Reference] = {
    "issueId": (ISSUES, ("title", "status")),
    "wardId": (WARDS, ("name",)),
    "approvedBy": (OFFICERS, ("name", "position")),
}

CITIZEN_REFERENCES: Dict[str, Reference] = {
    "userId": (USERS, ("username", "email")),
    "wardId": (WARDS, ("name",)),
}


def _fetch(db, collection: str, ref_id: str, fields: Optional[Sequence[str]]) -> Optional[Dict]:
    doc = db.collection(collection).document(ref_id).get()
    if not doc.exists:
        return None
    data = strip_secrets(snapshot_to_dict(doc))
    if fields is None:
        return data
    return {"id": data["id"], **{field: data.get(field) for field in fields}}


def populate(db, data: Dict, references: Dict[str, Reference]) -> Dict:
    """Return a copy of `data` with each resolvable reference replaced by its record."""
    result = dict(data)
    for field, (collection, fields) in references.items():
        ref_id = data.get(field)
        if not is_valid_id(ref_id):
            continue
        expanded = _fetch(db, collection, ref_id, fields)
        if expanded is None:
            logger.debug(f"Reference {field}={ref_id} not found in {collection}")
            continue
        result[field] = expanded
    return result


def populate_ids(db, ids: List[str], collection: str, fields: Optional[Sequence[str]]) -> List:
    """Expand a list of ids, keeping unresolvable entries as raw ids."""
    expanded = []
    for ref_id in ids or []:
        record = _fetch(db, collection, ref_id, fields) if is_valid_id(ref_id) else None
        expanded.append(record if record is not None else ref_id)
    return expanded
