"""Application and ApplicationReview SQLAlchemy models

An Application is one submitted document moving through the two-stage review
workflow. Reviews are stored as an append-only child table ordered by
``sequence``; ``review_count`` on the parent is the optimistic concurrency token
used by conditional review writes.
"""

from sqlalchemy import (
    Column,
    String,
    Text,
    Integer,
    BigInteger,
    Date,
    DateTime,
    ForeignKey,
    CheckConstraint,
    UniqueConstraint,
    Index,
)
from sqlalchemy.orm import relationship

from .base import Base, new_id, utcnow


class Application(Base):
    """Application model representing a document submitted for certification."""
    __tablename__ = "application"
    __table_args__ = (
        Index("ix_application_owner_id", "owner_id"),
        Index("ix_application_status", "status"),
        CheckConstraint(
            "status IN ('submitted', 'junior_review', 'compliance_review', 'approved', 'rejected')",
            name="ck_application_status"
        ),
        CheckConstraint("current_step BETWEEN 1 AND 3", name="ck_application_current_step"),
        CheckConstraint("review_count >= 0", name="ck_application_review_count"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    owner_id = Column(String(36), nullable=False)

    # Applicant fields
    full_name = Column(Text, nullable=False)
    guardian_name = Column(Text, nullable=False)
    age = Column(Integer, nullable=False)
    phone = Column(String(32), nullable=False)
    email = Column(String(320), nullable=False)
    address = Column(Text, nullable=False)
    national_id = Column(String(32), nullable=False)
    typed_signature = Column(Text, nullable=False)
    document_type = Column(Text, nullable=False)
    required_by_date = Column(Date, nullable=False)
    department = Column(Text, nullable=True)

    # Original uploaded document
    document_key = Column(Text, nullable=False)
    document_filename = Column(Text, nullable=False)
    document_size_bytes = Column(BigInteger, nullable=False)

    # Sealed document (set once, after final approval)
    sealed_document_key = Column(Text, nullable=True)
    verification_code = Column(String(64), nullable=True, unique=True)

    # Workflow
    status = Column(String(32), nullable=False, default="submitted")
    current_step = Column(Integer, nullable=False, default=1)
    review_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    reviews = relationship(
        "ApplicationReview",
        back_populates="application",
        order_by="ApplicationReview.sequence",
        lazy="selectin",
    )


class ApplicationReview(Base):
    """One approve/reject action taken on an application.

    Rows are never updated or deleted. ``reviewer_name`` is a snapshot of the
    reviewer's display name at the time of the action.
    """
    __tablename__ = "application_review"
    __table_args__ = (
        UniqueConstraint("application_id", "sequence", name="uq_application_review_sequence"),
        CheckConstraint(
            "reviewer_role IN ('junior_reviewer', 'compliance_officer')",
            name="ck_application_review_role"
        ),
        CheckConstraint("action IN ('approved', 'rejected')", name="ck_application_review_action"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    application_id = Column(
        String(36),
        ForeignKey("application.id", ondelete="RESTRICT"),
        nullable=False,
    )
    sequence = Column(Integer, nullable=False)
    reviewer_role = Column(String(32), nullable=False)
    reviewer_id = Column(String(36), nullable=False)
    reviewer_name = Column(Text, nullable=False)
    action = Column(String(16), nullable=False)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    application = relationship("Application", back_populates="reviews")
