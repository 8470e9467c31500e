"""Activity log query endpoint (ADMIN only).

Read-only. Entries are written by the review and account services and
cannot be created, updated, or deleted through the API.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ..auth.dependencies import require_roles
from ..auth.roles import Role
from ..config import Settings, get_settings
from ..database import get_db
from ..domain.applications.state_machine import Actor
from .schemas import ActivityLogListResponse, ActivityLogResponse
from .service import ActivityType, list_by_action, list_by_actor, list_recent


router = APIRouter(prefix="/activity-logs", tags=["Activity Logs"])


@router.get(
    "",
    response_model=ActivityLogListResponse,
    summary="Query activity logs (ADMIN only)",
)
def query_activity_logs(
    actor_id: Optional[str] = Query(None, description="Filter by acting principal"),
    action_type: Optional[str] = Query(None, description="Filter by action type, e.g. application_approved"),
    limit: Optional[int] = Query(None, ge=1, description="Maximum entries (capped by server limit)"),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    _: Actor = Depends(require_roles(Role.ADMIN)),
) -> ActivityLogListResponse:
    """Most recent entries first.

    ``actor_id`` takes precedence over ``action_type`` when both are given.
    """
    effective_limit = min(limit or settings.ACTIVITY_LOG_DEFAULT_LIMIT, settings.ACTIVITY_LOG_MAX_LIMIT)

    if actor_id:
        entries = list_by_actor(db, actor_id, limit=effective_limit)
    elif action_type:
        try:
            parsed = ActivityType(action_type)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Unknown action_type: {action_type}",
            )
        entries = list_by_action(db, parsed, limit=effective_limit)
    else:
        entries = list_recent(db, limit=effective_limit)

    return ActivityLogListResponse(
        entries=[ActivityLogResponse.model_validate(entry) for entry in entries],
        count=len(entries),
        limit=effective_limit,
    )
