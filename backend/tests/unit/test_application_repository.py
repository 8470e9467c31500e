"""Unit tests for the SQLAlchemy application store"""

from datetime import datetime, timezone

from docreview.auth.roles import Role
from docreview.domain.applications import (
    ApplicationStatus,
    ReviewAction,
    ReviewRecord,
    WorkflowStep,
)


def review_record(reviewer_id, role=Role.JUNIOR_REVIEWER, action=ReviewAction.APPROVE, name="Alice"):
    return ReviewRecord(
        reviewer_role=role,
        reviewer_id=reviewer_id,
        reviewer_name=name,
        action=action,
        comment="looks fine",
        timestamp=datetime.now(timezone.utc),
    )


def forward_to_compliance(store, application):
    return store.append_review_conditionally(
        application_id=application.id,
        expected_status=ApplicationStatus.SUBMITTED,
        expected_review_count=0,
        new_status=ApplicationStatus.COMPLIANCE_REVIEW,
        new_step=WorkflowStep.COMPLIANCE,
        review=review_record("junior-1"),
    )


def approve_final(store, application):
    return store.append_review_conditionally(
        application_id=application.id,
        expected_status=ApplicationStatus.COMPLIANCE_REVIEW,
        expected_review_count=1,
        new_status=ApplicationStatus.APPROVED,
        new_step=WorkflowStep.COMPLETED,
        review=review_record("co-1", Role.COMPLIANCE_OFFICER, name="Bob"),
    )


class TestCreate:
    def test_new_application_starts_submitted(self, submitted_application):
        assert submitted_application.status == "submitted"
        assert submitted_application.current_step == 1
        assert submitted_application.review_count == 0
        assert submitted_application.reviews == []
        assert submitted_application.verification_code is None

    def test_get_missing_returns_none(self, store):
        assert store.get("does-not-exist") is None


class TestConditionalReviewWrite:
    def test_applies_when_expectations_hold(self, store, submitted_application):
        assert forward_to_compliance(store, submitted_application) is True

        application = store.get(submitted_application.id)
        assert application.status == "compliance_review"
        assert application.current_step == 2
        assert application.review_count == 1
        assert len(application.reviews) == 1

        review = application.reviews[0]
        assert review.sequence == 0
        assert review.reviewer_role == "junior_reviewer"
        assert review.reviewer_id == "junior-1"
        assert review.reviewer_name == "Alice"
        assert review.action == "approved"
        assert review.comment == "looks fine"

    def test_stale_status_is_refused(self, store, submitted_application):
        forward_to_compliance(store, submitted_application)

        # A second junior approval still expects 'submitted'
        assert forward_to_compliance(store, submitted_application) is False

        application = store.get(submitted_application.id)
        assert application.status == "compliance_review"
        assert len(application.reviews) == 1

    def test_stale_review_count_is_refused(self, store, submitted_application):
        applied = store.append_review_conditionally(
            application_id=submitted_application.id,
            expected_status=ApplicationStatus.SUBMITTED,
            expected_review_count=3,
            new_status=ApplicationStatus.REJECTED,
            new_step=WorkflowStep.JUNIOR,
            review=review_record("junior-1", action=ReviewAction.REJECT),
        )

        assert applied is False
        application = store.get(submitted_application.id)
        assert application.status == "submitted"
        assert application.reviews == []

    def test_unknown_application_is_refused(self, store):
        applied = store.append_review_conditionally(
            application_id="missing",
            expected_status=ApplicationStatus.SUBMITTED,
            expected_review_count=0,
            new_status=ApplicationStatus.COMPLIANCE_REVIEW,
            new_step=WorkflowStep.COMPLIANCE,
            review=review_record("junior-1"),
        )
        assert applied is False

    def test_reviews_keep_insertion_order(self, store, submitted_application):
        forward_to_compliance(store, submitted_application)
        approve_final(store, submitted_application)

        application = store.get(submitted_application.id)
        assert application.status == "approved"
        assert application.current_step == 3
        assert [r.sequence for r in application.reviews] == [0, 1]
        assert [r.reviewer_name for r in application.reviews] == ["Alice", "Bob"]


class TestAttachSealedDocument:
    def test_refused_before_approval(self, store, submitted_application):
        assert store.attach_sealed_document(
            submitted_application.id, "uploads/x_VERIFIED.pdf", "DRV-AAAA-1-AAAAAA"
        ) is False
        assert store.get(submitted_application.id).verification_code is None

    def test_attached_once(self, store, submitted_application):
        forward_to_compliance(store, submitted_application)
        approve_final(store, submitted_application)

        assert store.attach_sealed_document(
            submitted_application.id, "uploads/x_VERIFIED.pdf", "DRV-AAAA-1-AAAAAA"
        ) is True
        assert store.attach_sealed_document(
            submitted_application.id, "uploads/y_VERIFIED.pdf", "DRV-AAAA-2-BBBBBB"
        ) is False

        application = store.get(submitted_application.id)
        assert application.sealed_document_key == "uploads/x_VERIFIED.pdf"
        assert application.verification_code == "DRV-AAAA-1-AAAAAA"


class TestListing:
    def test_list_all_newest_first(self, store, applicant, other_applicant, application_factory):
        first = application_factory(applicant, "first.pdf")
        second = application_factory(other_applicant, "second.pdf")

        assert [a.id for a in store.list_all()] == [second.id, first.id]

    def test_list_by_owner(self, store, applicant, other_applicant, application_factory):
        mine = application_factory(applicant)
        application_factory(other_applicant)

        assert [a.id for a in store.list_by_owner(applicant.id)] == [mine.id]

    def test_status_filter(self, store, applicant, application_factory):
        forwarded = application_factory(applicant, "a.pdf")
        waiting = application_factory(applicant, "b.pdf")
        forward_to_compliance(store, forwarded)

        assert [a.id for a in store.list_by_status(ApplicationStatus.COMPLIANCE_REVIEW)] == [forwarded.id]
        assert [a.id for a in store.list_all(status=ApplicationStatus.SUBMITTED)] == [waiting.id]
        assert [
            a.id for a in store.list_by_owner(applicant.id, status=ApplicationStatus.SUBMITTED)
        ] == [waiting.id]
