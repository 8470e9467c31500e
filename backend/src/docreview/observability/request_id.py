"""Correlation id bound to the current request context."""

import uuid
from contextvars import ContextVar
from typing import Optional

REQUEST_ID_HEADER = "X-Request-ID"
NO_REQUEST_ID = "-"

_request_id: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def bind_request_id(incoming: Optional[str] = None) -> str:
    """Bind the caller-supplied id, or a fresh one, and return it."""
    request_id = incoming or str(uuid.uuid4())
    _request_id.set(request_id)
    return request_id


def current_request_id() -> str:
    return _request_id.get() or NO_REQUEST_ID
