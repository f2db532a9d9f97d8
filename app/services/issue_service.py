"""
Issue Service - Firestore persistence for the issue lifecycle.

Each mutation reads the issue, asks issue_lifecycle for the fields to
change and writes them in one WriteBatch guarded by the snapshot's
update time. When the status moves, the reporting citizen's
issuesReported snapshot (and its counters) is rewritten in the same batch.
"""

from firebase_admin import firestore
from google.api_core import exceptions as gcloud_exceptions
from typing import Dict, Optional
import logging

from app.config.firebase import get_db
from app.core.errors import NotFoundError
from app.services import citizen_ledger, issue_lifecycle
from app.services.population import ISSUE_REFERENCES, populate
from app.utils.firestore_helpers import (
    BUDGETS, CITIZENS, ISSUES,
    commit_batch, get_snapshot, is_valid_id, new_document_id, precondition,
    require_valid_id, snapshot_to_dict, utcnow,
)
from app.utils.query_builder import ListQuery

logger = logging.getLogger(__name__)


class IssueService:
    """
    Service for issue lifecycle operations in Firestore.
    """

    def __init__(self, db=None):
        self.db = db or get_db()
        self.issues = self.db.collection(ISSUES)

    def _snapshot(self, issue_id: str):
        require_valid_id(issue_id, "issue id")
        return get_snapshot(self.issues, issue_id, "Issue")

    def _citizen_snapshot(self, citizen_id: Optional[str]):
        if not is_valid_id(citizen_id):
            return None
        doc = self.db.collection(CITIZENS).document(citizen_id).get()
        return doc if doc.exists else None

    def _mirror_status(self, batch, issue: Dict, new_status: Optional[str]) -> None:
        """Queue the citizen snapshot update for a status change, if the citizen tracks this issue."""
        if not new_status or new_status == issue.get("status"):
            return
        citizen_doc = self._citizen_snapshot(issue.get("citizenId"))
        if citizen_doc is None:
            return
        citizen = snapshot_to_dict(citizen_doc)
        if citizen_ledger.find_reported(citizen, issue["id"]) is None:
            return
        changes = citizen_ledger.update_reported_issue_status(citizen, issue["id"], new_status)
        batch.update(citizen_doc.reference, changes, option=precondition(self.db, citizen_doc))

    def _apply(self, snapshot, changes: Dict) -> Dict:
        """Persist lifecycle changes (plus mirrors) atomically and return the new issue."""
        issue = snapshot_to_dict(snapshot)
        changes["updatedAt"] = utcnow()

        batch = self.db.batch()
        batch.update(snapshot.reference, changes, option=precondition(self.db, snapshot))
        self._mirror_status(batch, issue, changes.get("status"))
        commit_batch(batch, "Issue")

        issue.update(changes)
        return issue

    def create_issue(self, fields: Dict) -> Dict:
        """
        Create a new issue in Pending Verification.

        If the reporting citizen has a profile, the issue is recorded in its
        issuesReported within the same batch.

        Args:
            fields: camelCase issue fields from the request body

        Returns:
            The created issue with its generated ID
        """
        issue = issue_lifecycle.new_issue(fields)
        issue_id = new_document_id()

        batch = self.db.batch()
        batch.create(self.issues.document(issue_id), issue)

        citizen_doc = self._citizen_snapshot(issue["citizenId"])
        if citizen_doc is not None:
            changes = citizen_ledger.add_reported_issue(
                snapshot_to_dict(citizen_doc), issue_id,
                title=issue["title"], status=issue["status"], reported_at=issue["createdAt"],
            )
            batch.update(citizen_doc.reference, changes, option=precondition(self.db, citizen_doc))

        commit_batch(batch, "Issue")
        logger.info(f"Issue created: {issue_id} (citizen={issue['citizenId']}, ward={issue['wardId']})")
        return {"id": issue_id, **issue}

    def get_issue(self, issue_id: str, expand: bool = True) -> Dict:
        issue = snapshot_to_dict(self._snapshot(issue_id))
        return populate(self.db, issue, ISSUE_REFERENCES) if expand else issue

    def list_issues(
        self,
        ward_id: Optional[str] = None,
        status: Optional[str] = None,
        category: Optional[str] = None,
        priority: Optional[str] = None,
        citizen_id: Optional[str] = None,
        q: Optional[str] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        sort_by: Optional[str] = None,
        sort_dir: Optional[str] = None,
    ) -> Dict:
        """
        List active, non-archived issues.

        Malformed ward/citizen ids are ignored rather than rejected.
        """
        query = (
            ListQuery(ISSUES)
            .where("isActive", "==", True)
            .where("isArchived", "==", False)
            .where_if(is_valid_id(ward_id), "wardId", "==", ward_id)
            .where_if(bool(status), "status", "==", status)
            .where_if(bool(category), "category", "==", category)
            .where_if(bool(priority), "priority", "==", priority)
            .where_if(is_valid_id(citizen_id), "citizenId", "==", citizen_id)
            .search(q, ("title", "description"))
            .order(sort_by, sort_dir)
            .paginate(page, limit)
        )
        return query.run(self.db)

    def update_issue(self, issue_id: str, fields: Dict) -> Dict:
        snapshot = self._snapshot(issue_id)
        changes = issue_lifecycle.sanitize_update(fields)
        if not changes:
            return snapshot_to_dict(snapshot)
        issue = self._apply(snapshot, changes)
        logger.info(f"Issue {issue_id} updated: {sorted(changes)}")
        return issue

    def verify_issue(self, issue_id: str, ward_rep_id: str, accept: bool = True,
                     remark: Optional[str] = None) -> Dict:
        require_valid_id(ward_rep_id, "wardRepId")
        snapshot = self._snapshot(issue_id)
        changes = issue_lifecycle.verify(snapshot_to_dict(snapshot), ward_rep_id, accept, remark)
        issue = self._apply(snapshot, changes)
        logger.info(f"Issue {issue_id} {issue['status']} by ward rep {ward_rep_id}")
        return issue

    def assign_issue(self, issue_id: str, officer_id: Optional[str] = None,
                     worker_id: Optional[str] = None, assigned_by: Optional[str] = None) -> Dict:
        snapshot = self._snapshot(issue_id)
        changes = issue_lifecycle.assign(snapshot_to_dict(snapshot), officer_id, worker_id, assigned_by)
        issue = self._apply(snapshot, changes)
        logger.info(f"Issue {issue_id} assigned (officer={officer_id}, worker={worker_id})")
        return issue

    def add_progress_update(self, issue_id: str, status: str, remark: Optional[str] = None,
                            updated_by: Optional[str] = None, photo: Optional[str] = None) -> Dict:
        snapshot = self._snapshot(issue_id)
        changes = issue_lifecycle.add_progress_update(
            snapshot_to_dict(snapshot), status, remark, updated_by, photo
        )
        issue = self._apply(snapshot, changes)
        logger.info(f"Issue {issue_id} progress: {status} (status now {issue['status']})")
        return issue

    def add_comment(self, issue_id: str, user_id: str, text: str) -> Dict:
        snapshot = self._snapshot(issue_id)
        changes = issue_lifecycle.add_comment(snapshot_to_dict(snapshot), user_id, text)
        return self._apply(snapshot, changes)

    def toggle_like(self, issue_id: str, user_id: str) -> Dict:
        snapshot = self._snapshot(issue_id)
        changes, liked = issue_lifecycle.toggle_like(snapshot_to_dict(snapshot), user_id)
        issue = self._apply(snapshot, changes)
        return {"likesCount": len(issue["likes"]), "liked": liked}

    def increment_views(self, issue_id: str) -> Dict:
        """Atomic server-side increment; concurrent callers never lose a view."""
        require_valid_id(issue_id, "issue id")
        issue_ref = self.issues.document(issue_id)
        try:
            issue_ref.update({"views": firestore.Increment(1)})
        except gcloud_exceptions.NotFound:
            raise NotFoundError("Issue not found.")
        return {"views": issue_ref.get(field_paths=["views"]).get("views")}

    def link_budget(self, issue_id: str, budget_id: str) -> Dict:
        require_valid_id(budget_id, "budget id")
        snapshot = self._snapshot(issue_id)
        budget = snapshot_to_dict(get_snapshot(self.db.collection(BUDGETS), budget_id, "Budget"))
        changes = issue_lifecycle.link_budget(snapshot_to_dict(snapshot), budget)
        issue = self._apply(snapshot, changes)
        logger.info(f"Issue {issue_id} linked to budget {budget_id}")
        return issue

    def set_archive(self, issue_id: str, archive: bool = True) -> Dict:
        snapshot = self._snapshot(issue_id)
        issue = self._apply(snapshot, issue_lifecycle.set_archive(archive))
        logger.info(f"Issue {issue_id} {'archived' if archive else 'restored'}")
        return issue

    def delete_issue(self, issue_id: str) -> None:
        """
        Administrative hard delete.

        The reporting citizen's issuesReported entry is removed in the same
        batch. A linked budget keeps its issueId as the record of what the
        money was approved for.
        """
        snapshot = self._snapshot(issue_id)
        issue = snapshot_to_dict(snapshot)

        batch = self.db.batch()
        batch.delete(snapshot.reference, option=precondition(self.db, snapshot))
        citizen_doc = self._citizen_snapshot(issue.get("citizenId"))
        if citizen_doc is not None:
            citizen = snapshot_to_dict(citizen_doc)
            if citizen_ledger.find_reported(citizen, issue_id) is not None:
                batch.update(
                    citizen_doc.reference,
                    citizen_ledger.remove_reported_issue(citizen, issue_id),
                    option=precondition(self.db, citizen_doc),
                )
        commit_batch(batch, "Issue")
        logger.warning(f"Issue {issue_id} deleted")


# Global service instance (singleton pattern)
_issue_service = None


def get_issue_service() -> IssueService:
    """
    Get or create IssueService singleton instance.

    Returns:
        IssueService: The global issue service instance
    """
    global _issue_service
    if _issue_service is None:
        _issue_service = IssueService()
    return _issue_service
