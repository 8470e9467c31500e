"""ActivityLog SQLAlchemy model"""

from sqlalchemy import Column, String, Text, DateTime, Index

from .base import Base, PortableJSONB, new_id, utcnow


class ActivityLog(Base):
    """ActivityLog model for the append-only review activity trail.

    One row per successful review decision, document seal, or reviewer
    account change. Entries are append-only and should never be updated or
    deleted.
    """
    __tablename__ = "activity_log"
    __table_args__ = (
        Index("ix_activity_log_created_at", "created_at"),
        Index("ix_activity_log_actor_id", "actor_id"),
        Index("ix_activity_log_action_type", "action_type"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    actor_id = Column(String(36), nullable=False)
    actor_name = Column(Text, nullable=False)
    actor_role = Column(String(32), nullable=False)
    actor_email = Column(String(320), nullable=True)
    action_type = Column(String(32), nullable=False)
    target_type = Column(String(16), nullable=False)
    target_id = Column(String(36), nullable=False)
    target_name = Column(Text, nullable=True)
    details = Column(Text, nullable=False)
    metadata_json = Column(PortableJSONB, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
