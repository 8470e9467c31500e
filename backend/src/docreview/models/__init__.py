"""SQLAlchemy models for the review backend."""

from .base import Base
from .user import User
from .application import Application, ApplicationReview
from .activity_log import ActivityLog

__all__ = [
    "Base",
    "User",
    "Application",
    "ApplicationReview",
    "ActivityLog",
]
