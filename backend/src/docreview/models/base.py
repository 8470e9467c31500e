"""Declarative base and column helpers shared by the review models"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# JSONB on PostgreSQL, plain JSON on SQLite (tests)
PortableJSONB = JSON().with_variant(JSONB(), "postgresql")


def new_id() -> str:
    """Opaque string identifier (UUID4 text)."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
