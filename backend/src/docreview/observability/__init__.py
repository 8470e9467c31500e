"""Observability: structured logging, request IDs, metrics and health checks."""

from .health import ComponentHealth, HealthStatus
from .logging_config import configure_logging
from .middleware import RequestIDMiddleware

__all__ = [
    "ComponentHealth",
    "HealthStatus",
    "RequestIDMiddleware",
    "configure_logging",
]
