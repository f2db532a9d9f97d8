"""
Citizen Service - Firestore persistence for citizen profiles.

One profile per user: creating a profile also creates a marker document
citizen_accounts/{userId} in the same batch. Firestore's create() fails if
the marker already exists, so two concurrent registrations for the same
user cannot both succeed.
"""

from google.api_core import exceptions as gcloud_exceptions
from typing import Dict, Optional
import logging

from app.config.firebase import get_db
from app.core.errors import ConflictError
from app.services import citizen_ledger
from app.services.population import CITIZEN_REFERENCES, populate
from app.utils.firestore_helpers import (
    CITIZEN_ACCOUNTS, CITIZENS,
    commit_batch, get_snapshot, guarded_update, is_valid_id, new_document_id,
    require_valid_id, snapshot_to_dict,
)
from app.utils.query_builder import ListQuery

logger = logging.getLogger(__name__)


class CitizenService:
    """
    Service for citizen profile ledger operations in Firestore.
    """

    def __init__(self, db=None):
        self.db = db or get_db()
        self.citizens = self.db.collection(CITIZENS)
        self.accounts = self.db.collection(CITIZEN_ACCOUNTS)

    def _snapshot(self, citizen_id: str):
        require_valid_id(citizen_id, "citizen id")
        return get_snapshot(self.citizens, citizen_id, "Citizen")

    def _apply(self, snapshot, changes: Dict) -> Dict:
        guarded_update(self.db, snapshot, changes, "Citizen")
        citizen = snapshot_to_dict(snapshot)
        citizen.update(changes)
        return citizen

    def create_citizen(self, fields: Dict) -> Dict:
        """
        Create a citizen profile.

        Raises:
            ValidationError: userId, wardId or address missing or malformed
            ConflictError: a profile already exists for this user
        """
        profile = citizen_ledger.new_profile(fields)
        citizen_id = new_document_id()

        batch = self.db.batch()
        batch.create(self.accounts.document(profile["userId"]), {"citizenId": citizen_id})
        batch.create(self.citizens.document(citizen_id), profile)
        try:
            batch.commit()
        except gcloud_exceptions.AlreadyExists:
            raise ConflictError("Citizen profile already exists for this user.")

        logger.info(f"Citizen profile {citizen_id} created for user {profile['userId']}")
        return {"id": citizen_id, **profile}

    def get_citizen(self, citizen_id: str) -> Dict:
        citizen = snapshot_to_dict(self._snapshot(citizen_id))
        return populate(self.db, citizen, CITIZEN_REFERENCES)

    def list_citizens(
        self,
        ward_id: Optional[str] = None,
        verified: Optional[bool] = None,
        q: Optional[str] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        sort_by: Optional[str] = None,
        sort_dir: Optional[str] = None,
    ) -> Dict:
        query = (
            ListQuery(CITIZENS)
            .where_if(is_valid_id(ward_id), "wardId", "==", ward_id)
            .where_if(verified is not None, "isVerifiedCitizen", "==", verified)
            .search(q, ("address", "alternatePhone"))
            .order(sort_by, sort_dir)
            .paginate(page, limit)
        )
        return query.run(self.db)

    def update_citizen(self, citizen_id: str, fields: Dict) -> Dict:
        snapshot = self._snapshot(citizen_id)
        changes = citizen_ledger.sanitize_update(fields)
        citizen = snapshot_to_dict(snapshot)
        changes = citizen_ledger.with_totals(citizen, changes)
        return self._apply(snapshot, changes)

    def add_reported_issue(self, citizen_id: str, issue_id: str, title: Optional[str] = None,
                           status: Optional[str] = None, reported_at=None) -> Dict:
        snapshot = self._snapshot(citizen_id)
        changes = citizen_ledger.add_reported_issue(
            snapshot_to_dict(snapshot), issue_id, title=title, status=status, reported_at=reported_at
        )
        citizen = self._apply(snapshot, changes)
        logger.info(f"Citizen {citizen_id} reported issue {issue_id}")
        return citizen

    def update_reported_issue_status(self, citizen_id: str, issue_id: str, status: str) -> Dict:
        snapshot = self._snapshot(citizen_id)
        changes = citizen_ledger.update_reported_issue_status(snapshot_to_dict(snapshot), issue_id, status)
        citizen = self._apply(snapshot, changes)
        logger.info(f"Citizen {citizen_id} issue {issue_id} status -> {status}")
        return citizen

    def add_comment(self, citizen_id: str, comment_text: str, issue_id: Optional[str] = None) -> Dict:
        snapshot = self._snapshot(citizen_id)
        changes = citizen_ledger.add_comment(snapshot_to_dict(snapshot), comment_text, issue_id)
        return self._apply(snapshot, changes)

    def record_activity(self, citizen_id: str, action: str, issue_id: Optional[str] = None) -> Dict:
        snapshot = self._snapshot(citizen_id)
        changes = citizen_ledger.record_activity(snapshot_to_dict(snapshot), action, issue_id)
        return self._apply(snapshot, changes)

    def set_verified(self, citizen_id: str, verify: bool = True) -> Dict:
        snapshot = self._snapshot(citizen_id)
        citizen = self._apply(snapshot, citizen_ledger.set_verified(snapshot_to_dict(snapshot), verify))
        logger.info(f"Citizen {citizen_id} verified={bool(verify)}")
        return citizen

    def set_archive(self, citizen_id: str, archive: bool = True) -> Dict:
        snapshot = self._snapshot(citizen_id)
        citizen = self._apply(snapshot, citizen_ledger.set_archive(snapshot_to_dict(snapshot), archive))
        logger.info(f"Citizen {citizen_id} archived={bool(archive)}")
        return citizen

    def delete_citizen(self, citizen_id: str) -> None:
        """Hard delete of the profile and its per-user marker."""
        snapshot = self._snapshot(citizen_id)
        user_id = (snapshot.to_dict() or {}).get("userId")

        batch = self.db.batch()
        batch.delete(snapshot.reference)
        if user_id:
            batch.delete(self.accounts.document(user_id))
        commit_batch(batch, "Citizen")
        logger.warning(f"Citizen {citizen_id} deleted")


# Global service instance (singleton pattern)
_citizen_service = None


def get_citizen_service() -> CitizenService:
    global _citizen_service
    if _citizen_service is None:
        _citizen_service = CitizenService()
    return _citizen_service
