"""
Status Workflow Engine - strict state machine for issue status.

DESIGN PRINCIPLES:
- Status is a closed set; unknown values are rejected
- No backward transitions (a Closed issue never returns to Pending)
- Re-applying the current status is a no-op and always valid
- Verification outcome may be revised until work is assigned
"""

from enum import Enum
from typing import Dict, List

from app.core.errors import InvalidTransitionError


class IssueStatus(str, Enum):
    """
    Issue lifecycle:
    Pending Verification → Verified → Assigned → In Progress → Resolved → Closed
    with Rejected as the negative verification outcome.
    """
    PENDING_VERIFICATION = "Pending Verification"
    VERIFIED = "Verified"
    REJECTED = "Rejected"
    ASSIGNED = "Assigned"
    IN_PROGRESS = "In Progress"
    RESOLVED = "Resolved"
    CLOSED = "Closed"


class ProgressStatus(str, Enum):
    """Values accepted on a progress update."""
    ASSIGNED = "Assigned"
    IN_PROGRESS = "In Progress"
    WORK_HALTED = "Work Halted"
    RESOLVED = "Resolved"
    CLOSED = "Closed"


# Counted as resolved on citizen profiles; everything else is pending
RESOLVED_STATUSES = frozenset({IssueStatus.RESOLVED.value, IssueStatus.CLOSED.value})


class StatusWorkflowEngine:
    """
    Transition table for issue status.

    Rules:
    - Same status is always valid (no-op)
    - Anything not listed is rejected
    """

    # Allowed transitions map: {from_status: [to_status, ...]}
    ALLOWED_TRANSITIONS: Dict[IssueStatus, List[IssueStatus]] = {
        IssueStatus.PENDING_VERIFICATION: [IssueStatus.VERIFIED, IssueStatus.REJECTED],
        IssueStatus.VERIFIED: [IssueStatus.REJECTED, IssueStatus.ASSIGNED],
        IssueStatus.REJECTED: [IssueStatus.VERIFIED, IssueStatus.CLOSED],
        IssueStatus.ASSIGNED: [IssueStatus.IN_PROGRESS, IssueStatus.RESOLVED],
        IssueStatus.IN_PROGRESS: [IssueStatus.RESOLVED],
        IssueStatus.RESOLVED: [IssueStatus.CLOSED],
        IssueStatus.CLOSED: [],  # Terminal state, no transitions allowed
    }

    @classmethod
    def is_valid_status(cls, value: str) -> bool:
        try:
            IssueStatus(value)
        except ValueError:
            return False
        return True

    @classmethod
    def is_valid_transition(cls, from_status: str, to_status: str) -> bool:
        """
        Check if a status transition is valid.

        Args:
            from_status: Current status
            to_status: Desired new status

        Returns:
            True if transition is allowed, False otherwise
        """
        try:
            from_enum = IssueStatus(from_status)
            to_enum = IssueStatus(to_status)
        except ValueError:
            return False

        if from_enum == to_enum:
            return True

        return to_enum in cls.ALLOWED_TRANSITIONS.get(from_enum, [])

    @classmethod
    def get_allowed_transitions(cls, current_status: str) -> List[str]:
        """
        Get list of allowed next statuses from current status.

        Args:
            current_status: Current status string

        Returns:
            List of allowed next status strings
        """
        try:
            current_enum = IssueStatus(current_status)
        except ValueError:
            return []
        return [status.value for status in cls.ALLOWED_TRANSITIONS.get(current_enum, [])]

    @classmethod
    def validate_transition(cls, current_status: str, new_status: str) -> None:
        """
        Raise InvalidTransitionError unless current → new is allowed.
        """
        if not cls.is_valid_transition(current_status, new_status):
            allowed = cls.get_allowed_transitions(current_status)
            raise InvalidTransitionError(
                f"Invalid status transition: {current_status} → {new_status}. "
                f"Allowed transitions from {current_status}: {allowed}"
            )
