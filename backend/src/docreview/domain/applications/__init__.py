"""Application review domain: statuses, decision logic, store port."""

from .status import (
    ApplicationStatus,
    WorkflowStep,
    TERMINAL_STATUSES,
    ALLOWED_TRANSITIONS,
    can_transition,
    is_terminal,
)
from .state_machine import (
    Actor,
    ReviewAction,
    ReviewDecision,
    ReviewRecord,
    ReviewRejection,
    RejectionReason,
    decide,
    stage_precheck,
    find_junior_approver_name,
)

__all__ = [
    "ApplicationStatus",
    "WorkflowStep",
    "TERMINAL_STATUSES",
    "ALLOWED_TRANSITIONS",
    "can_transition",
    "is_terminal",
    "Actor",
    "ReviewAction",
    "ReviewDecision",
    "ReviewRecord",
    "ReviewRejection",
    "RejectionReason",
    "decide",
    "stage_precheck",
    "find_junior_approver_name",
]
