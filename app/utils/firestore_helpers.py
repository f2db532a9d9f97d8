"""
Firestore helpers shared by the persistence services.

Document ids are 24-hex strings generated here rather than Firestore's
auto-ids, so every id in the API has the same shape.

Read-modify-write updates go through guarded_update(), which attaches a
last_update_time precondition taken from the snapshot that was read. If
another writer touched the document in between, Firestore rejects the
write and we surface a ConflictError instead of losing the other update.
"""

import re
import secrets
from datetime import datetime, timezone
from typing import Dict, Optional

from google.api_core import exceptions as gcloud_exceptions

from app.core.errors import ConflictError, NotFoundError, ValidationError

_ID_PATTERN = re.compile(r"^[0-9a-fA-F]{24}$")

# Collection names
ISSUES = "issues"
BUDGETS = "budgets"
CITIZENS = "citizens"
CITIZEN_ACCOUNTS = "citizen_accounts"  # one marker per userId
WARD_REPS = "ward_reps"
USERS = "users"
OFFICERS = "officers"
WARDS = "wards"
WORKERS = "workers"


def where_filter(query, field_path: str, op_string: str, value):
    """
    Helper function for Firestore queries.

    Usage:
        query = where_filter(collection, "wardId", "==", ward_id)
        query = where_filter(query, "status", "==", "Verified")
    """
    return query.where(field_path, op_string, value)


def find_one(collection_ref, field_path: str, value) -> Optional[Dict]:
    """First document whose `field_path` equals `value`, as a dict with its id."""
    docs = list(where_filter(collection_ref, field_path, "==", value).limit(1).stream())
    if docs:
        return snapshot_to_dict(docs[0])
    return None


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_document_id() -> str:
    """Generate a 24-hex-character document id."""
    return secrets.token_hex(12)


def is_valid_id(value: Optional[str]) -> bool:
    return bool(value) and isinstance(value, str) and bool(_ID_PATTERN.match(value))


def require_valid_id(value: Optional[str], label: str = "id") -> str:
    if not is_valid_id(value):
        raise ValidationError(f"Invalid {label}.")
    return value


def snapshot_to_dict(doc) -> Dict:
    """Convert a document snapshot into a plain dict carrying its id."""
    data = doc.to_dict() or {}
    data["id"] = doc.id
    return data


def get_snapshot(collection_ref, doc_id: str, label: str):
    """Fetch a snapshot or raise NotFoundError. The id must already be validated."""
    doc = collection_ref.document(doc_id).get()
    if not doc.exists:
        raise NotFoundError(f"{label} not found.")
    return doc


def precondition(db, snapshot):
    """Write option that only succeeds if the document is unchanged since `snapshot`."""
    return db.write_option(last_update_time=snapshot.update_time)


def guarded_update(db, snapshot, changes: Dict, label: str) -> None:
    """Apply `changes` to the snapshot's document, failing on concurrent modification."""
    try:
        snapshot.reference.update(changes, option=precondition(db, snapshot))
    except gcloud_exceptions.FailedPrecondition:
        raise ConflictError(f"{label} was modified concurrently, please retry.")
    except gcloud_exceptions.NotFound:
        raise NotFoundError(f"{label} not found.")


def commit_batch(batch, label: str) -> None:
    """Commit a WriteBatch, translating Firestore failures into the error taxonomy."""
    try:
        batch.commit()
    except gcloud_exceptions.FailedPrecondition:
        raise ConflictError(f"{label} was modified concurrently, please retry.")
    except gcloud_exceptions.AlreadyExists:
        raise ConflictError(f"{label} already exists.")
    except gcloud_exceptions.NotFound:
        raise NotFoundError(f"{label} not found.")


def count_query(query) -> int:
    """Run a server-side count aggregation over `query`."""
    result = query.count(alias="total").get()
    return int(result[0][0].value)
