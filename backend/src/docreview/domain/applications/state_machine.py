"""Review decision logic for the two-stage approval workflow.

``decide`` is a pure function: it reads the current application, the acting
principal and the requested action, and returns either a ReviewDecision (the
new status/step plus the review to append) or a ReviewRejection with a
distinct reason. It never persists and never raises for rule violations.

Checks run in a fixed order, first failure wins:
    1. application exists                  -> NOT_FOUND
    2. application is not terminal         -> ALREADY_FINALIZED
    3. actor has not reviewed before       -> DUPLICATE_REVIEW (admin exempt)
    4. actor's role may act at this stage  -> WRONG_STAGE
       unknown status                      -> INVALID_STATE

Transitions:
    submitted / junior_review + approve  -> compliance_review, step 2
    submitted / junior_review + reject   -> rejected,          step 1
    compliance_review + approve          -> approved,          step 3
    compliance_review + reject           -> rejected,          step 2
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, FrozenSet, Iterable, Optional, Union

from ...auth.roles import Role
from .status import ApplicationStatus, WorkflowStep, can_transition, is_terminal


class ReviewAction(str, Enum):
    """Action requested by a reviewer. Values match the recorded review action."""
    APPROVE = "approved"
    REJECT = "rejected"


class RejectionReason(str, Enum):
    NOT_FOUND = "not_found"
    ALREADY_FINALIZED = "already_finalized"
    DUPLICATE_REVIEW = "duplicate_review"
    WRONG_STAGE = "wrong_stage"
    INVALID_STATE = "invalid_state"


@dataclass(frozen=True)
class Actor:
    """Acting principal with its resolved role and display identity."""
    principal_id: str
    role: Role
    display_name: str
    email: Optional[str] = None


@dataclass(frozen=True)
class ReviewRecord:
    """Review to append to an application's review list."""
    reviewer_role: Role
    reviewer_id: str
    reviewer_name: str
    action: ReviewAction
    comment: Optional[str]
    timestamp: datetime


@dataclass(frozen=True)
class ReviewDecision:
    application_id: str
    previous_status: ApplicationStatus
    new_status: ApplicationStatus
    new_step: WorkflowStep
    review: ReviewRecord
    expected_review_count: int

    @property
    def requires_sealing(self) -> bool:
        return self.new_status == ApplicationStatus.APPROVED


@dataclass(frozen=True)
class ReviewRejection:
    reason: RejectionReason
    message: str


ReviewOutcome = Union[ReviewDecision, ReviewRejection]


@dataclass(frozen=True)
class _StageRule:
    recorded_role: Role
    allowed_roles: FrozenSet[Role]
    wrong_stage_message: str
    on_approve: tuple
    on_reject: tuple


_JUNIOR_STAGE = _StageRule(
    recorded_role=Role.JUNIOR_REVIEWER,
    allowed_roles=frozenset({Role.JUNIOR_REVIEWER, Role.ADMIN}),
    wrong_stage_message="Only Junior Reviewers can review at this stage",
    on_approve=(ApplicationStatus.COMPLIANCE_REVIEW, WorkflowStep.COMPLIANCE),
    on_reject=(ApplicationStatus.REJECTED, WorkflowStep.JUNIOR),
)

_COMPLIANCE_STAGE = _StageRule(
    recorded_role=Role.COMPLIANCE_OFFICER,
    allowed_roles=frozenset({Role.COMPLIANCE_OFFICER, Role.ADMIN}),
    wrong_stage_message="Only Compliance Officers can review at this stage",
    on_approve=(ApplicationStatus.APPROVED, WorkflowStep.COMPLETED),
    on_reject=(ApplicationStatus.REJECTED, WorkflowStep.COMPLIANCE),
)

STAGE_RULES: Dict[ApplicationStatus, _StageRule] = {
    ApplicationStatus.SUBMITTED: _JUNIOR_STAGE,
    ApplicationStatus.JUNIOR_REVIEW: _JUNIOR_STAGE,
    ApplicationStatus.COMPLIANCE_REVIEW: _COMPLIANCE_STAGE,
}


def _parse_status(value) -> Optional[ApplicationStatus]:
    try:
        return ApplicationStatus(value)
    except ValueError:
        return None


def _finalized(status: ApplicationStatus) -> ReviewRejection:
    return ReviewRejection(
        RejectionReason.ALREADY_FINALIZED,
        f"Application has already been {status.value} and cannot be reviewed again",
    )


def stage_precheck(role: Role, status_value: str) -> Optional[ReviewRejection]:
    """Check whether ``role`` may act on an application in ``status_value``.

    Returns None when the role may act, otherwise the rejection decide()
    would produce for the stage check. Terminal statuses yield
    ALREADY_FINALIZED.
    """
    status = _parse_status(status_value)
    if status is None:
        return ReviewRejection(
            RejectionReason.INVALID_STATE,
            f"Application is in an unexpected status: {status_value!r}",
        )
    if is_terminal(status):
        return _finalized(status)

    rule = STAGE_RULES[status]
    if role not in rule.allowed_roles:
        return ReviewRejection(RejectionReason.WRONG_STAGE, rule.wrong_stage_message)
    return None


def has_reviewed(reviews: Iterable, principal_id: str) -> bool:
    return any(review.reviewer_id == principal_id for review in reviews)


def decide(
    application,
    actor: Actor,
    action: ReviewAction,
    comment: Optional[str] = None,
    now: Optional[datetime] = None,
) -> ReviewOutcome:
    """Decide whether a review action is legal and what state results.

    Args:
        application: Freshly loaded Application (or None if absent)
        actor: Acting principal
        action: APPROVE or REJECT
        comment: Optional reviewer comment
        now: Review timestamp (defaults to current UTC time)

    Returns:
        ReviewDecision on success, ReviewRejection otherwise
    """
    if application is None:
        return ReviewRejection(RejectionReason.NOT_FOUND, "Application not found")

    status = _parse_status(application.status)
    if status is not None and is_terminal(status):
        return _finalized(status)

    reviews = list(application.reviews)
    if actor.role != Role.ADMIN and has_reviewed(reviews, actor.principal_id):
        return ReviewRejection(
            RejectionReason.DUPLICATE_REVIEW,
            "You have already reviewed this application",
        )

    rejection = stage_precheck(actor.role, application.status)
    if rejection is not None:
        return rejection

    rule = STAGE_RULES[status]
    new_status, new_step = rule.on_approve if action == ReviewAction.APPROVE else rule.on_reject
    if not can_transition(status, new_status):
        return ReviewRejection(
            RejectionReason.INVALID_STATE,
            f"Transition {status.value} -> {new_status.value} is not allowed",
        )

    review = ReviewRecord(
        reviewer_role=rule.recorded_role,
        reviewer_id=actor.principal_id,
        reviewer_name=actor.display_name,
        action=action,
        comment=comment or None,
        timestamp=now or datetime.now(timezone.utc),
    )

    return ReviewDecision(
        application_id=application.id,
        previous_status=status,
        new_status=new_status,
        new_step=new_step,
        review=review,
        expected_review_count=len(reviews),
    )


def find_junior_approver_name(reviews: Iterable) -> Optional[str]:
    """Name on the junior-stage approval that forwarded the application.

    Should be exactly one; if several exist the latest wins.
    """
    name = None
    for review in reviews:
        if (
            review.reviewer_role == Role.JUNIOR_REVIEWER.value
            and review.action == ReviewAction.APPROVE.value
        ):
            name = review.reviewer_name
    return name
