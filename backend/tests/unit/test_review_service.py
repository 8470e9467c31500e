"""Unit tests for review orchestration

Covers the full two-stage flow against the SQLite store, sealing through the
recording fake, activity entries, and the retry-once conflict handling.
"""

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from docreview.applications.review_service import (
    ReviewConflictError,
    ReviewRejectedError,
    ReviewService,
    is_sealable,
)
from docreview.audit.service import ActivityLogger
from docreview.auth.roles import Role
from docreview.database import SessionLocal
from docreview.domain.applications import (
    Actor,
    ApplicationStatus,
    RejectionReason,
    ReviewAction,
    WorkflowStep,
)
from docreview.domain.sealing.ports import ReviewerNames, SealingError
from docreview.infrastructure.repositories.application_repository import SqlAlchemyApplicationStore
from docreview.models import ActivityLog


def actor_for(user):
    return Actor(user.id, Role(user.role), user.name, user.email)


@pytest.fixture
def service(store, sealing_service):
    return ReviewService(store, sealing_service, ActivityLogger(SessionLocal))


def activity_rows(db_session):
    db_session.expire_all()
    return list(db_session.execute(select(ActivityLog).order_by(ActivityLog.created_at)).scalars())


class FlakyStore(SqlAlchemyApplicationStore):
    """Store whose first ``losses`` conditional writes report a lost race."""

    def __init__(self, db, losses, before_loss=None):
        super().__init__(db)
        self.losses = losses
        self.before_loss = before_loss
        self.attempts = 0

    def append_review_conditionally(self, *args, **kwargs):
        self.attempts += 1
        if self.attempts <= self.losses:
            if self.before_loss is not None:
                self.before_loss()
            return False
        return super().append_review_conditionally(*args, **kwargs)


class ReadFailsAfterWriteStore(SqlAlchemyApplicationStore):
    """Store whose reads fail once a review write has committed."""

    written = False

    def append_review_conditionally(self, *args, **kwargs):
        self.written = super().append_review_conditionally(*args, **kwargs)
        return self.written

    def get(self, application_id):
        if self.written:
            raise OperationalError("SELECT application", {}, Exception("connection lost"))
        return super().get(application_id)


class TestSealableExtensions:
    @pytest.mark.parametrize("filename", ["a.pdf", "A.PDF", "dir.x/name.Pdf"])
    def test_pdf_is_sealable(self, filename):
        assert is_sealable(filename, {".pdf"})

    @pytest.mark.parametrize("filename", ["photo.jpg", "pdf", "", None])
    def test_other_files_are_not(self, filename):
        assert not is_sealable(filename, {".pdf"})


class TestTwoStageFlow:
    def test_alice_then_bob(
        self, service, store, sealing_service, db_session,
        submitted_application, junior_reviewer, compliance_officer,
    ):
        first = service.review(submitted_application.id, actor_for(junior_reviewer), ReviewAction.APPROVE)

        assert first.new_status == ApplicationStatus.COMPLIANCE_REVIEW
        assert first.new_step == WorkflowStep.COMPLIANCE
        assert first.message == "Application approved and forwarded to compliance review"
        assert first.verification_code is None
        assert sealing_service.calls == []

        second = service.review(
            submitted_application.id, actor_for(compliance_officer), ReviewAction.APPROVE, "All good"
        )

        assert second.new_status == ApplicationStatus.APPROVED
        assert second.new_step == WorkflowStep.COMPLETED
        assert second.message == "Application approved"
        assert second.verification_code is not None
        assert second.verification_code.startswith(f"DRV-{submitted_application.id[:4].upper()}-")

        assert sealing_service.calls == [(
            submitted_application.id,
            submitted_application.document_key,
            ReviewerNames(junior_reviewer_name="Alice", compliance_officer_name="Bob"),
        )]

        application = store.get(submitted_application.id)
        assert application.status == "approved"
        assert application.current_step == 3
        assert application.verification_code == second.verification_code
        assert application.sealed_document_key.endswith("_VERIFIED.pdf")
        assert [(r.reviewer_role, r.reviewer_name, r.action) for r in application.reviews] == [
            ("junior_reviewer", "Alice", "approved"),
            ("compliance_officer", "Bob", "approved"),
        ]
        assert application.reviews[1].comment == "All good"

    def test_junior_rejection_is_final(self, service, store, submitted_application, junior_reviewer):
        result = service.review(
            submitted_application.id, actor_for(junior_reviewer), ReviewAction.REJECT, "Blurry scan"
        )

        assert result.new_status == ApplicationStatus.REJECTED
        assert result.new_step == WorkflowStep.JUNIOR
        assert result.message == "Application rejected"
        assert store.get(submitted_application.id).reviews[0].comment == "Blurry scan"

    def test_compliance_rejection_keeps_step_two(
        self, service, sealing_service, submitted_application, junior_reviewer, compliance_officer,
    ):
        service.review(submitted_application.id, actor_for(junior_reviewer), ReviewAction.APPROVE)

        result = service.review(submitted_application.id, actor_for(compliance_officer), ReviewAction.REJECT)

        assert result.new_status == ApplicationStatus.REJECTED
        assert result.new_step == WorkflowStep.COMPLIANCE
        assert sealing_service.calls == []

    def test_admin_can_take_both_stages(self, service, sealing_service, submitted_application, admin_user):
        admin = actor_for(admin_user)

        service.review(submitted_application.id, admin, ReviewAction.APPROVE)
        result = service.review(submitted_application.id, admin, ReviewAction.APPROVE)

        assert result.new_status == ApplicationStatus.APPROVED
        # Admin's first action is recorded as the junior approval
        assert sealing_service.calls[0][2] == ReviewerNames("Admin User", "Admin User")


class TestRefusals:
    def test_missing_application(self, service, junior_reviewer):
        with pytest.raises(ReviewRejectedError) as exc_info:
            service.review("missing", actor_for(junior_reviewer), ReviewAction.APPROVE)
        assert exc_info.value.rejection.reason == RejectionReason.NOT_FOUND

    def test_compliance_cannot_act_first(self, service, submitted_application, compliance_officer):
        with pytest.raises(ReviewRejectedError) as exc_info:
            service.review(submitted_application.id, actor_for(compliance_officer), ReviewAction.APPROVE)
        assert exc_info.value.rejection.reason == RejectionReason.WRONG_STAGE

    def test_junior_cannot_act_twice(self, service, submitted_application, junior_reviewer):
        alice = actor_for(junior_reviewer)
        service.review(submitted_application.id, alice, ReviewAction.APPROVE)

        with pytest.raises(ReviewRejectedError) as exc_info:
            service.review(submitted_application.id, alice, ReviewAction.APPROVE)
        assert exc_info.value.rejection.reason == RejectionReason.DUPLICATE_REVIEW

    def test_finalized_application(self, service, submitted_application, junior_reviewer, second_junior_reviewer):
        service.review(submitted_application.id, actor_for(junior_reviewer), ReviewAction.REJECT)

        with pytest.raises(ReviewRejectedError) as exc_info:
            service.review(submitted_application.id, actor_for(second_junior_reviewer), ReviewAction.APPROVE)
        assert exc_info.value.rejection.reason == RejectionReason.ALREADY_FINALIZED

    def test_refusal_leaves_application_untouched(self, service, store, submitted_application, compliance_officer):
        with pytest.raises(ReviewRejectedError):
            service.review(submitted_application.id, actor_for(compliance_officer), ReviewAction.REJECT)

        application = store.get(submitted_application.id)
        assert application.status == "submitted"
        assert application.reviews == []


class TestSealingIsBestEffort:
    def test_sealing_failure_still_approves(
        self, service, store, sealing_service, submitted_application, junior_reviewer, compliance_officer,
    ):
        sealing_service.fail_with = SealingError("storage unavailable")
        service.review(submitted_application.id, actor_for(junior_reviewer), ReviewAction.APPROVE)

        result = service.review(submitted_application.id, actor_for(compliance_officer), ReviewAction.APPROVE)

        assert result.new_status == ApplicationStatus.APPROVED
        assert result.verification_code is None
        assert result.sealing.ok is False
        application = store.get(submitted_application.id)
        assert application.status == "approved"
        assert application.verification_code is None
        assert application.sealed_document_key is None

    def test_committed_approval_survives_failing_reads(
        self, db_session, store, sealing_service, submitted_application, junior_reviewer, compliance_officer,
    ):
        ReviewService(store, sealing_service, ActivityLogger(SessionLocal)).review(
            submitted_application.id, actor_for(junior_reviewer), ReviewAction.APPROVE
        )
        service = ReviewService(
            ReadFailsAfterWriteStore(db_session), sealing_service, ActivityLogger(SessionLocal)
        )

        result = service.review(submitted_application.id, actor_for(compliance_officer), ReviewAction.APPROVE)

        assert result.new_status == ApplicationStatus.APPROVED
        assert result.verification_code is not None
        assert sealing_service.calls == [(
            submitted_application.id,
            submitted_application.document_key,
            ReviewerNames(junior_reviewer_name="Alice", compliance_officer_name="Bob"),
        )]

        application = store.get(submitted_application.id)
        assert application.status == "approved"
        assert application.verification_code == result.verification_code
        assert [row.action_type for row in activity_rows(db_session)] == [
            "application_reviewed",
            "application_approved",
            "document_signed",
        ]
        assert activity_rows(db_session)[1].target_name == "Jane Doe"

    def test_non_pdf_is_not_sealed(
        self, service, store, sealing_service, applicant, application_factory,
        junior_reviewer, compliance_officer,
    ):
        application = application_factory(applicant, "photo.jpg")
        service.review(application.id, actor_for(junior_reviewer), ReviewAction.APPROVE)

        result = service.review(application.id, actor_for(compliance_officer), ReviewAction.APPROVE)

        assert result.new_status == ApplicationStatus.APPROVED
        assert result.sealing is None
        assert result.verification_code is None
        assert sealing_service.calls == []

    def test_configured_extensions_are_honoured(
        self, store, sealing_service, applicant, application_factory, junior_reviewer, compliance_officer,
    ):
        service = ReviewService(store, sealing_service, ActivityLogger(SessionLocal), sealable_extensions=[".PNG"])
        application = application_factory(applicant, "scan.png")
        service.review(application.id, actor_for(junior_reviewer), ReviewAction.APPROVE)

        result = service.review(application.id, actor_for(compliance_officer), ReviewAction.APPROVE)

        assert result.verification_code is not None
        assert len(sealing_service.calls) == 1

    def test_missing_junior_name_falls_back(
        self, store, sealing_service, submitted_application, compliance_officer, junior_reviewer,
    ):
        service = ReviewService(store, sealing_service, ActivityLogger(SessionLocal))
        service.review(submitted_application.id, actor_for(junior_reviewer), ReviewAction.APPROVE)
        # No junior-stage approval left to take a name from
        store.get(submitted_application.id).reviews[0].reviewer_role = "compliance_officer"
        store.db.commit()

        service.review(submitted_application.id, actor_for(compliance_officer), ReviewAction.APPROVE)

        assert sealing_service.calls[0][2].junior_reviewer_name == "Unknown"


class TestActivityEntries:
    def test_each_decision_is_logged(
        self, service, db_session, submitted_application, junior_reviewer, compliance_officer,
    ):
        service.review(submitted_application.id, actor_for(junior_reviewer), ReviewAction.APPROVE, "ok")
        service.review(submitted_application.id, actor_for(compliance_officer), ReviewAction.APPROVE)

        rows = activity_rows(db_session)
        assert [row.action_type for row in rows] == [
            "application_reviewed",
            "application_approved",
            "document_signed",
        ]

        reviewed = rows[0]
        assert reviewed.actor_id == junior_reviewer.id
        assert reviewed.actor_name == "Alice"
        assert reviewed.actor_role == "junior_reviewer"
        assert reviewed.target_type == "application"
        assert reviewed.target_id == submitted_application.id
        assert reviewed.target_name == "Jane Doe"
        assert reviewed.details == "Approved application at junior_reviewer stage"
        assert reviewed.metadata_json == {
            "previous_status": "submitted",
            "new_status": "compliance_review",
            "current_step": 2,
            "comment": "ok",
        }

        signed = rows[2]
        assert signed.target_type == "document"
        assert signed.metadata_json["junior_reviewer_name"] == "Alice"
        assert signed.metadata_json["compliance_officer_name"] == "Bob"

    def test_rejection_is_logged(self, service, db_session, submitted_application, junior_reviewer):
        service.review(submitted_application.id, actor_for(junior_reviewer), ReviewAction.REJECT)

        rows = activity_rows(db_session)
        assert [row.action_type for row in rows] == ["application_rejected"]
        assert rows[0].details == "Rejected application at junior_reviewer stage"

    def test_audit_failure_does_not_fail_review(
        self, store, sealing_service, submitted_application, junior_reviewer,
    ):
        def broken_session():
            raise RuntimeError("audit database unavailable")

        service = ReviewService(store, sealing_service, ActivityLogger(broken_session))

        result = service.review(submitted_application.id, actor_for(junior_reviewer), ReviewAction.APPROVE)

        assert result.new_status == ApplicationStatus.COMPLIANCE_REVIEW

    def test_refusals_are_not_logged(self, service, db_session, submitted_application, compliance_officer):
        with pytest.raises(ReviewRejectedError):
            service.review(submitted_application.id, actor_for(compliance_officer), ReviewAction.APPROVE)

        assert activity_rows(db_session) == []


class TestConflicts:
    def test_single_lost_race_is_retried(self, db_session, sealing_service, submitted_application, junior_reviewer):
        store = FlakyStore(db_session, losses=1)
        service = ReviewService(store, sealing_service, ActivityLogger(SessionLocal))

        result = service.review(submitted_application.id, actor_for(junior_reviewer), ReviewAction.APPROVE)

        assert store.attempts == 2
        assert result.new_status == ApplicationStatus.COMPLIANCE_REVIEW

    def test_two_lost_races_raise_conflict(
        self, db_session, sealing_service, submitted_application, junior_reviewer,
    ):
        store = FlakyStore(db_session, losses=2)
        service = ReviewService(store, sealing_service, ActivityLogger(SessionLocal))

        with pytest.raises(ReviewConflictError):
            service.review(submitted_application.id, actor_for(junior_reviewer), ReviewAction.APPROVE)

        assert store.attempts == 2
        application = store.get(submitted_application.id)
        assert application.status == "submitted"
        assert application.reviews == []

    def test_retry_sees_concurrent_winner(
        self, db_session, sealing_service, submitted_application, junior_reviewer, second_junior_reviewer,
    ):
        """Carol's approval lands while Alice's write is in flight."""
        other_session = SessionLocal()
        try:
            other = ReviewService(
                SqlAlchemyApplicationStore(other_session), sealing_service, ActivityLogger(SessionLocal)
            )
            store = FlakyStore(
                db_session,
                losses=1,
                before_loss=lambda: other.review(
                    submitted_application.id, actor_for(second_junior_reviewer), ReviewAction.APPROVE
                ),
            )
            service = ReviewService(store, sealing_service, ActivityLogger(SessionLocal))

            with pytest.raises(ReviewRejectedError) as exc_info:
                service.review(submitted_application.id, actor_for(junior_reviewer), ReviewAction.APPROVE)
        finally:
            other_session.close()

        assert exc_info.value.rejection.reason == RejectionReason.WRONG_STAGE
        application = store.get(submitted_application.id)
        assert [r.reviewer_name for r in application.reviews] == ["Carol"]
