"""
Budget Service - Firestore persistence for budget records.

A budget belongs to exactly one issue. Creating it links the issue
(budgetDetails, budgetUsed) and every usage change mirrors budgetUsed onto
the issue, both in the same WriteBatch as the budget write.
"""

from typing import Dict, Optional
import logging

from app.config.firebase import get_db
from app.core.errors import ConflictError
from app.services import budget_ledger
from app.services.population import BUDGET_REFERENCES, populate
from app.utils.firestore_helpers import (
    BUDGETS, ISSUES,
    commit_batch, get_snapshot, is_valid_id, new_document_id, precondition,
    require_valid_id, snapshot_to_dict, utcnow,
)
from app.utils.query_builder import ListQuery

logger = logging.getLogger(__name__)


class BudgetService:
    """
    Service for budget ledger operations in Firestore.
    """

    def __init__(self, db=None):
        self.db = db or get_db()
        self.budgets = self.db.collection(BUDGETS)
        self.issues = self.db.collection(ISSUES)

    def _snapshot(self, budget_id: str):
        require_valid_id(budget_id, "budget id")
        return get_snapshot(self.budgets, budget_id, "Budget")

    def _linked_issue(self, budget: Dict):
        """Issue snapshot that points at this budget, or None."""
        issue_id = budget.get("issueId")
        if not is_valid_id(issue_id):
            return None
        doc = self.issues.document(issue_id).get()
        if not doc.exists or doc.to_dict().get("budgetDetails") != budget["id"]:
            return None
        return doc

    def _apply(self, snapshot, changes: Dict, mirror_usage: bool = False) -> Dict:
        budget = snapshot_to_dict(snapshot)

        batch = self.db.batch()
        batch.update(snapshot.reference, changes, option=precondition(self.db, snapshot))
        if mirror_usage:
            issue_doc = self._linked_issue(budget)
            if issue_doc is not None:
                batch.update(
                    issue_doc.reference,
                    {"budgetUsed": changes["amountUsed"], "updatedAt": changes["updatedAt"]},
                    option=precondition(self.db, issue_doc),
                )
        commit_batch(batch, "Budget")

        budget.update(changes)
        return budget

    def create_budget(self, fields: Dict) -> Dict:
        """
        Approve a budget for an issue and link the issue to it.

        Raises:
            ValidationError: required field missing or malformed id
            NotFoundError: the issue does not exist
            ConflictError: the issue already has a budget
        """
        budget = budget_ledger.new_budget(fields)
        issue_doc = get_snapshot(self.issues, budget["issueId"], "Issue")
        if issue_doc.to_dict().get("budgetDetails"):
            raise ConflictError("Budget already exists for this issue.")

        budget_id = new_document_id()
        batch = self.db.batch()
        batch.create(self.budgets.document(budget_id), budget)
        batch.update(
            issue_doc.reference,
            {"budgetDetails": budget_id, "budgetUsed": budget["amountUsed"], "updatedAt": utcnow()},
            option=precondition(self.db, issue_doc),
        )
        commit_batch(batch, "Budget")

        logger.info(f"Budget {budget_id} approved for issue {budget['issueId']}: {budget['amountApproved']}")
        return {"id": budget_id, **budget}

    def get_budget(self, budget_id: str) -> Dict:
        budget = snapshot_to_dict(self._snapshot(budget_id))
        return populate(self.db, budget, BUDGET_REFERENCES)

    def list_budgets(
        self,
        ward_id: Optional[str] = None,
        issue_id: Optional[str] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        sort_by: Optional[str] = None,
        sort_dir: Optional[str] = None,
    ) -> Dict:
        query = (
            ListQuery(BUDGETS)
            .where_if(is_valid_id(ward_id), "wardId", "==", ward_id)
            .where_if(is_valid_id(issue_id), "issueId", "==", issue_id)
            .order(sort_by, sort_dir)
            .paginate(page, limit)
        )
        return query.run(self.db, project=lambda item: populate(self.db, item, BUDGET_REFERENCES))

    def update_usage(self, budget_id: str, amount_used: Optional[float],
                     by: Optional[str] = None, note: Optional[str] = None) -> Dict:
        snapshot = self._snapshot(budget_id)
        changes = budget_ledger.update_usage(snapshot_to_dict(snapshot), amount_used, by, note)
        budget = self._apply(snapshot, changes, mirror_usage=True)
        logger.info(f"Budget {budget_id} usage {amount_used} -> {budget['status']}")
        return budget

    def add_document(self, budget_id: str, file_name: str, file_path: str,
                     by: Optional[str] = None, note: Optional[str] = None) -> Dict:
        snapshot = self._snapshot(budget_id)
        changes = budget_ledger.add_document(snapshot_to_dict(snapshot), file_name, file_path, by, note)
        budget = self._apply(snapshot, changes)
        logger.info(f"Budget {budget_id} document added: {file_name}")
        return budget

    def close_budget(self, budget_id: str, by: Optional[str] = None, note: Optional[str] = None) -> Dict:
        snapshot = self._snapshot(budget_id)
        budget = self._apply(snapshot, budget_ledger.close(snapshot_to_dict(snapshot), by, note))
        logger.info(f"Budget {budget_id} closed")
        return budget

    def delete_budget(self, budget_id: str) -> None:
        """Hard delete; the owning issue's link is cleared in the same batch."""
        snapshot = self._snapshot(budget_id)
        issue_doc = self._linked_issue(snapshot_to_dict(snapshot))

        batch = self.db.batch()
        batch.delete(snapshot.reference)
        if issue_doc is not None:
            batch.update(
                issue_doc.reference,
                {"budgetDetails": None, "budgetUsed": 0, "updatedAt": utcnow()},
                option=precondition(self.db, issue_doc),
            )
        commit_batch(batch, "Budget")
        logger.warning(f"Budget {budget_id} deleted")


# Global service instance (singleton pattern)
_budget_service = None


def get_budget_service() -> BudgetService:
    global _budget_service
    if _budget_service is None:
        _budget_service = BudgetService()
    return _budget_service
