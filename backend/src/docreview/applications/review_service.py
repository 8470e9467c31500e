"""Review orchestration.

Flow for one review request:
1. Load the application fresh from the store
2. Stage pre-check for the actor's role (gate), skipped for repeat reviewers
3. decide() computes the transition or a rejection
4. Conditional write; on a lost race reload and decide once more
5. On final approval, seal the document (best effort)
6. Record activity entries (best effort)

Only steps 1-4 can fail the request. Steps 5-6 work from values captured
before the write and report their outcome as BestEffortResult values.
"""

import logging
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Iterable, Optional

from ..audit.service import ActivityEntry, ActivityLogger, ActivityType, TargetType
from ..auth.roles import Role
from ..domain.applications.ports import ApplicationStorePort
from ..domain.applications.state_machine import (
    Actor,
    ReviewAction,
    ReviewDecision,
    ReviewRejection,
    decide,
    find_junior_approver_name,
    has_reviewed,
    stage_precheck,
)
from ..domain.applications.status import ApplicationStatus, WorkflowStep
from ..domain.best_effort import BestEffortResult, run_best_effort
from ..domain.sealing.ports import ReviewerNames, SealedDocument, SealingError, SealingPort
from ..models.application import Application
from ..observability.metrics import (
    document_sealing_total,
    review_conflicts_total,
    review_decisions_total,
    review_rejections_total,
)

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 2
UNKNOWN_REVIEWER = "Unknown"


class ReviewRejectedError(Exception):
    """Raised when the gate or the state machine refuses a review."""

    def __init__(self, rejection: ReviewRejection):
        super().__init__(rejection.message)
        self.rejection = rejection


class ReviewConflictError(Exception):
    """Raised when the conditional write lost the race on every attempt."""
    pass


@dataclass(frozen=True)
class ReviewResult:
    application_id: str
    new_status: ApplicationStatus
    new_step: WorkflowStep
    message: str
    verification_code: Optional[str] = None
    sealing: Optional[BestEffortResult[SealedDocument]] = None


@dataclass(frozen=True)
class _ReviewTarget:
    """Application fields needed after the review write."""
    id: str
    full_name: str
    document_key: str
    document_filename: str
    junior_approver_name: Optional[str]

    @classmethod
    def of(cls, application: Application) -> "_ReviewTarget":
        return cls(
            id=application.id,
            full_name=application.full_name,
            document_key=application.document_key,
            document_filename=application.document_filename,
            junior_approver_name=find_junior_approver_name(application.reviews),
        )


def is_sealable(filename: Optional[str], sealable_extensions: Iterable[str]) -> bool:
    """True if the filename's extension (case-insensitive) is sealable."""
    if not filename:
        return False
    return PurePosixPath(filename).suffix.lower() in set(sealable_extensions)


def _result_message(decision: ReviewDecision) -> str:
    if decision.new_status == ApplicationStatus.COMPLIANCE_REVIEW:
        return "Application approved and forwarded to compliance review"
    if decision.new_status == ApplicationStatus.APPROVED:
        return "Application approved"
    return "Application rejected"


def _activity_type(decision: ReviewDecision) -> ActivityType:
    if decision.new_status == ApplicationStatus.COMPLIANCE_REVIEW:
        return ActivityType.APPLICATION_REVIEWED
    if decision.new_status == ApplicationStatus.APPROVED:
        return ActivityType.APPLICATION_APPROVED
    return ActivityType.APPLICATION_REJECTED


class ReviewService:
    """Applies reviewer decisions to applications.

    Args:
        store: Application persistence
        sealing: Document sealing collaborator
        activity_logger: Audit log writer
        sealable_extensions: Extensions (with leading dot) eligible for sealing
    """

    def __init__(
        self,
        store: ApplicationStorePort,
        sealing: SealingPort,
        activity_logger: ActivityLogger,
        sealable_extensions: Iterable[str] = (".pdf",),
    ):
        self.store = store
        self.sealing = sealing
        self.activity_logger = activity_logger
        self.sealable_extensions = frozenset(ext.lower() for ext in sealable_extensions)

    def review(
        self,
        application_id: str,
        actor: Actor,
        action: ReviewAction,
        comment: Optional[str] = None,
    ) -> ReviewResult:
        """Apply one review action.

        Raises:
            ReviewRejectedError: The gate or the state machine refused the action
            ReviewConflictError: A concurrent review won the race twice
        """
        decision = None
        for attempt in range(1, MAX_ATTEMPTS + 1):
            application = self.store.get(application_id)

            # A repeat reviewer falls through to decide() for DUPLICATE_REVIEW
            if application is not None and (
                actor.role == Role.ADMIN or not has_reviewed(application.reviews, actor.principal_id)
            ):
                rejection = stage_precheck(actor.role, application.status)
                if rejection is not None:
                    self._reject(application_id, actor, rejection)

            outcome = decide(application, actor, action, comment)
            if isinstance(outcome, ReviewRejection):
                self._reject(application_id, actor, outcome)

            # Captured before the write; the committed row is not read back
            target = _ReviewTarget.of(application)

            applied = self.store.append_review_conditionally(
                application_id=outcome.application_id,
                expected_status=outcome.previous_status,
                expected_review_count=outcome.expected_review_count,
                new_status=outcome.new_status,
                new_step=outcome.new_step,
                review=outcome.review,
            )
            if applied:
                decision = outcome
                break

            is_last = attempt == MAX_ATTEMPTS
            review_conflicts_total.labels(outcome="failed" if is_last else "retried").inc()
            logger.info(
                f"Review conflict on application {application_id} "
                f"(attempt {attempt}/{MAX_ATTEMPTS})"
            )

        if decision is None:
            raise ReviewConflictError(
                "Application was modified concurrently, please reload and try again"
            )

        review_decisions_total.labels(
            stage=decision.review.reviewer_role.value,
            action=decision.review.action.value,
        ).inc()
        logger.info(
            f"Application {application_id}: {decision.previous_status.value} -> "
            f"{decision.new_status.value} by {actor.principal_id}"
        )

        self._record_decision(target, actor, decision)

        sealing = None
        verification_code = None
        if decision.requires_sealing:
            sealing = self._seal(target, actor)
            if sealing is not None and sealing.ok:
                verification_code = sealing.value.verification_code

        return ReviewResult(
            application_id=application_id,
            new_status=decision.new_status,
            new_step=decision.new_step,
            message=_result_message(decision),
            verification_code=verification_code,
            sealing=sealing,
        )

    def _reject(self, application_id: str, actor: Actor, rejection: ReviewRejection) -> None:
        review_rejections_total.labels(reason=rejection.reason.value).inc()
        logger.info(
            f"Review refused: application_id={application_id}, actor={actor.principal_id}, "
            f"reason={rejection.reason.value}"
        )
        raise ReviewRejectedError(rejection)

    def _seal(
        self,
        application: _ReviewTarget,
        actor: Actor,
    ) -> Optional[BestEffortResult[SealedDocument]]:
        """Seal the approved document. Returns None when the file type is not sealable."""
        if not is_sealable(application.document_filename, self.sealable_extensions):
            document_sealing_total.labels(status="skipped").inc()
            logger.info(
                f"Sealing skipped for application {application.id}: "
                f"{application.document_filename!r} is not a sealable file type"
            )
            return None

        reviewers = ReviewerNames(
            junior_reviewer_name=application.junior_approver_name or UNKNOWN_REVIEWER,
            compliance_officer_name=actor.display_name,
        )
        result = run_best_effort(
            "seal_document", self._seal_and_attach, application, reviewers
        )
        document_sealing_total.labels(status="success" if result.ok else "error").inc()

        if result.ok:
            self.activity_logger.record(ActivityEntry(
                actor=actor,
                action_type=ActivityType.DOCUMENT_SIGNED,
                target_type=TargetType.DOCUMENT,
                target_id=application.id,
                target_name=application.document_filename,
                details=f"Sealed document for {application.full_name}",
                metadata={
                    "verification_code": result.value.verification_code,
                    "sealed_document_key": result.value.sealed_document_key,
                    "junior_reviewer_name": reviewers.junior_reviewer_name,
                    "compliance_officer_name": reviewers.compliance_officer_name,
                },
            ))
        return result

    def _seal_and_attach(self, application: _ReviewTarget, reviewers: ReviewerNames) -> SealedDocument:
        sealed = self.sealing.seal(application.id, application.document_key, reviewers)
        if not self.store.attach_sealed_document(
            application.id, sealed.sealed_document_key, sealed.verification_code
        ):
            raise SealingError(f"Application {application.id} already has a verification code")
        return sealed

    def _record_decision(self, application: _ReviewTarget, actor: Actor, decision: ReviewDecision) -> None:
        review = decision.review
        self.activity_logger.record(ActivityEntry(
            actor=actor,
            action_type=_activity_type(decision),
            target_type=TargetType.APPLICATION,
            target_id=decision.application_id,
            target_name=application.full_name,
            details=(
                f"{review.action.value.capitalize()} application at "
                f"{review.reviewer_role.value} stage"
            ),
            metadata={
                "previous_status": decision.previous_status.value,
                "new_status": decision.new_status.value,
                "current_step": int(decision.new_step),
                "comment": review.comment,
            },
        ))
