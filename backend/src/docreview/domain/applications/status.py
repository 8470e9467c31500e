"""ApplicationStatus state machine for the review lifecycle

State flow:
    SUBMITTED → COMPLIANCE_REVIEW → APPROVED
    SUBMITTED / JUNIOR_REVIEW / COMPLIANCE_REVIEW → REJECTED

APPROVED and REJECTED are terminal.
"""

from enum import Enum, IntEnum
from typing import Dict, FrozenSet, List


class ApplicationStatus(str, Enum):
    """Application review status enum"""
    SUBMITTED = "submitted"
    JUNIOR_REVIEW = "junior_review"
    COMPLIANCE_REVIEW = "compliance_review"
    APPROVED = "approved"      # Terminal success
    REJECTED = "rejected"      # Terminal failure


class WorkflowStep(IntEnum):
    """Position in the workflow, stored as application.current_step"""
    JUNIOR = 1
    COMPLIANCE = 2
    COMPLETED = 3


TERMINAL_STATUSES: FrozenSet[ApplicationStatus] = frozenset({
    ApplicationStatus.APPROVED,
    ApplicationStatus.REJECTED,
})


ALLOWED_TRANSITIONS: Dict[ApplicationStatus, List[ApplicationStatus]] = {
    ApplicationStatus.SUBMITTED: [ApplicationStatus.COMPLIANCE_REVIEW, ApplicationStatus.REJECTED],
    ApplicationStatus.JUNIOR_REVIEW: [ApplicationStatus.COMPLIANCE_REVIEW, ApplicationStatus.REJECTED],
    ApplicationStatus.COMPLIANCE_REVIEW: [ApplicationStatus.APPROVED, ApplicationStatus.REJECTED],
    ApplicationStatus.APPROVED: [],
    ApplicationStatus.REJECTED: [],
}


def can_transition(from_status: ApplicationStatus, to_status: ApplicationStatus) -> bool:
    """Validate if status transition is allowed

    Example:
        >>> can_transition(ApplicationStatus.SUBMITTED, ApplicationStatus.COMPLIANCE_REVIEW)
        True
        >>> can_transition(ApplicationStatus.APPROVED, ApplicationStatus.REJECTED)
        False
    """
    return to_status in ALLOWED_TRANSITIONS.get(from_status, [])


def is_terminal(status: ApplicationStatus) -> bool:
    return status in TERMINAL_STATUSES
