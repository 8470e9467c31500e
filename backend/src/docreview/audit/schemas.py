"""Pydantic schemas for activity log endpoints.

Activity logs are read-only through the API.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ActivityLogResponse(BaseModel):
    """One activity log entry."""
    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": "550e8400-e29b-41d4-a716-446655440000",
                "actor_id": "123e4567-e89b-12d3-a456-426614174000",
                "actor_name": "Bob",
                "actor_role": "compliance_officer",
                "actor_email": "bob@example.com",
                "action_type": "application_approved",
                "target_type": "application",
                "target_id": "abc12345-6789-0abc-def0-123456789012",
                "target_name": "Jane Doe",
                "details": "Approved application at compliance_officer stage",
                "metadata": {"new_status": "approved"},
                "created_at": "2026-01-04T12:00:00Z",
            }
        },
    )

    id: str
    actor_id: str
    actor_name: str
    actor_role: str
    actor_email: Optional[str] = None
    action_type: str
    target_type: str
    target_id: str
    target_name: Optional[str] = None
    details: str
    metadata: Optional[dict] = Field(None, validation_alias="metadata_json")
    created_at: datetime


class ActivityLogListResponse(BaseModel):
    entries: list[ActivityLogResponse] = Field(..., description="Entries, most recent first")
    count: int = Field(..., description="Number of entries returned")
    limit: int = Field(..., description="Limit applied to the query")
