"""User SQLAlchemy model"""

import re

from sqlalchemy import Column, String, Text, DateTime, CheckConstraint
from sqlalchemy.orm import validates

from .base import Base, new_id, utcnow


class User(Base):
    """User model representing an authenticated principal.

    A user has exactly one role at a time. Applicants self-register with the
    ``user`` role; reviewer accounts are created by admins or compliance officers.
    Passwords are hashed using Argon2id.
    """
    __tablename__ = "user"

    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String(320), nullable=False, unique=True)
    name = Column(Text, nullable=False)
    role = Column(String(32), nullable=False, default="user")
    password_hash = Column(Text, nullable=False)
    status = Column(String(16), nullable=False, default="ACTIVE")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint(
            "role IN ('user', 'junior_reviewer', 'compliance_officer', 'admin')",
            name='ck_user_role'
        ),
        CheckConstraint(
            "status IN ('ACTIVE', 'DISABLED')",
            name='ck_user_status'
        ),
    )

    @validates('email')
    def validate_email(self, key, value):
        """Basic email format validation"""
        if not re.match(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$', value):
            raise ValueError("Invalid email format")
        return value.lower()

    @property
    def is_active(self) -> bool:
        return self.status == "ACTIVE"
