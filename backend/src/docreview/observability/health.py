"""Health check utilities.

Provides health checks for the database, the role cache and object storage.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.orm import Session

from ..cache.role_cache import RedisRoleCache, RoleCache
from ..domain.documents.ports.object_storage_port import ObjectStoragePort

logger = logging.getLogger(__name__)


class HealthStatus(str, Enum):
    """Health check status enum."""
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    DEGRADED = "degraded"


@dataclass
class ComponentHealth:
    """Health status for a single component."""
    status: HealthStatus
    message: Optional[str] = None
    latency_ms: Optional[float] = None


def check_database_health(db: Session) -> ComponentHealth:
    try:
        start = time.time()
        db.execute(text("SELECT 1"))
        latency_ms = (time.time() - start) * 1000

        return ComponentHealth(
            status=HealthStatus.HEALTHY,
            message="Database connection OK",
            latency_ms=round(latency_ms, 2)
        )
    except Exception as e:
        logger.error(f"Database health check failed: {e}", exc_info=True)
        return ComponentHealth(
            status=HealthStatus.UNHEALTHY,
            message=f"Database error: {str(e)}"
        )


def check_role_cache_health(cache: RoleCache) -> ComponentHealth:
    """Role cache health. A disabled cache is degraded, not unhealthy."""
    if not isinstance(cache, RedisRoleCache):
        return ComponentHealth(
            status=HealthStatus.DEGRADED,
            message="Role cache disabled (no Redis)"
        )

    try:
        start = time.time()
        cache.client.ping()
        latency_ms = (time.time() - start) * 1000

        return ComponentHealth(
            status=HealthStatus.HEALTHY,
            message="Redis connection OK",
            latency_ms=round(latency_ms, 2)
        )
    except RedisError as e:
        logger.warning(f"Redis health check failed: {e}")
        return ComponentHealth(
            status=HealthStatus.DEGRADED,
            message=f"Redis error: {str(e)}"
        )


def check_object_storage_health(storage: ObjectStoragePort) -> ComponentHealth:
    verify = getattr(storage, "verify_bucket_exists", None)
    if verify is None:
        return ComponentHealth(status=HealthStatus.HEALTHY, message="Object storage OK")

    try:
        start = time.time()
        verify()
        latency_ms = (time.time() - start) * 1000

        return ComponentHealth(
            status=HealthStatus.HEALTHY,
            message="Object storage connection OK",
            latency_ms=round(latency_ms, 2)
        )
    except Exception as e:
        logger.error(f"Object storage health check failed: {e}", exc_info=True)
        return ComponentHealth(
            status=HealthStatus.UNHEALTHY,
            message=f"Object storage error: {str(e)}"
        )


def get_overall_health(components: Dict[str, ComponentHealth]) -> HealthStatus:
    if all(c.status == HealthStatus.HEALTHY for c in components.values()):
        return HealthStatus.HEALTHY

    if any(c.status == HealthStatus.UNHEALTHY for c in components.values()):
        return HealthStatus.UNHEALTHY

    return HealthStatus.DEGRADED
