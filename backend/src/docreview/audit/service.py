"""Activity audit log service.

Append-only trail of review activity. Entries are written after the business
transaction has committed, in a session of their own, so an audit failure can
never undo or fail a review.

Activity types:
- APPLICATION_REVIEWED: junior-stage approval forwarding to compliance
- APPLICATION_APPROVED: final approval at the compliance stage
- APPLICATION_REJECTED: rejection at either stage
- DOCUMENT_SIGNED: sealed document produced for an approved application
- USER_ROLE_CHANGED: reviewer account created or disabled
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..domain.applications.state_machine import Actor
from ..domain.best_effort import BestEffortResult, run_best_effort
from ..models.activity_log import ActivityLog
from ..observability.metrics import activity_log_writes_total

logger = logging.getLogger(__name__)


class ActivityType(str, Enum):
    APPLICATION_REVIEWED = "application_reviewed"
    APPLICATION_APPROVED = "application_approved"
    APPLICATION_REJECTED = "application_rejected"
    DOCUMENT_SIGNED = "document_signed"
    USER_ROLE_CHANGED = "user_role_changed"


class TargetType(str, Enum):
    APPLICATION = "application"
    USER = "user"
    DOCUMENT = "document"


@dataclass(frozen=True)
class ActivityEntry:
    """One activity to record."""
    actor: Actor
    action_type: ActivityType
    target_type: TargetType
    target_id: str
    details: str
    target_name: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


class ActivityLogger:
    """Writes activity entries in their own transaction.

    Args:
        session_factory: Callable returning a new Session (e.g. SessionLocal)
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def record(self, entry: ActivityEntry) -> BestEffortResult[str]:
        """Append an entry. Never raises; failures are logged and returned."""
        result = run_best_effort(f"activity_log:{entry.action_type.value}", self._write, entry)
        activity_log_writes_total.labels(status="success" if result.ok else "error").inc()
        return result

    def _write(self, entry: ActivityEntry) -> str:
        session = self.session_factory()
        try:
            row = ActivityLog(
                actor_id=entry.actor.principal_id,
                actor_name=entry.actor.display_name,
                actor_role=entry.actor.role.value,
                actor_email=entry.actor.email,
                action_type=entry.action_type.value,
                target_type=entry.target_type.value,
                target_id=entry.target_id,
                target_name=entry.target_name,
                details=entry.details,
                metadata_json=entry.metadata or None,
            )
            session.add(row)
            session.commit()
            logger.debug(
                f"Activity recorded: action_type={entry.action_type.value}, "
                f"target={entry.target_type.value}:{entry.target_id}"
            )
            return row.id
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


def list_recent(db: Session, limit: int = 200) -> List[ActivityLog]:
    """Most recent entries first, at most ``limit``."""
    query = select(ActivityLog).order_by(ActivityLog.created_at.desc()).limit(limit)
    return list(db.execute(query).scalars().all())


def list_by_actor(db: Session, actor_id: str, limit: int = 200) -> List[ActivityLog]:
    query = (
        select(ActivityLog)
        .where(ActivityLog.actor_id == actor_id)
        .order_by(ActivityLog.created_at.desc())
        .limit(limit)
    )
    return list(db.execute(query).scalars().all())


def list_by_action(db: Session, action_type: ActivityType, limit: int = 200) -> List[ActivityLog]:
    query = (
        select(ActivityLog)
        .where(ActivityLog.action_type == action_type.value)
        .order_by(ActivityLog.created_at.desc())
        .limit(limit)
    )
    return list(db.execute(query).scalars().all())
