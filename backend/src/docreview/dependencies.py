"""Global FastAPI dependencies for collaborator wiring.

This module provides the adapters behind each domain port:
- get_role_cache: process-wide RoleCache (Redis or no-op)
- get_object_storage: S3 storage adapter
- get_application_store: SQLAlchemy application repository (request session)
- get_sealing_service: PyMuPDF sealing backed by object storage
- get_activity_logger: audit log writer with its own sessions

Tests replace any of these through ``app.dependency_overrides``.
"""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session, sessionmaker

from .audit.service import ActivityLogger
from .cache.role_cache import RoleCache, build_role_cache
from .config import get_settings
from .database import get_db, get_session_factory
from .domain.applications.ports import ApplicationStorePort
from .domain.documents.ports.object_storage_port import ObjectStoragePort
from .domain.sealing.ports import SealingPort
from .infrastructure.repositories.application_repository import SqlAlchemyApplicationStore
from .infrastructure.sealing.pdf_stamper import PdfSealingService
from .infrastructure.storage.s3_storage_adapter import S3StorageAdapter
from .infrastructure.storage.storage_config import load_storage_config


@lru_cache()
def get_role_cache() -> RoleCache:
    """Role cache for this process, built once from settings."""
    settings = get_settings()
    return build_role_cache(settings.REDIS_URL, settings.ROLE_CACHE_TTL_SECONDS)


@lru_cache()
def get_object_storage() -> ObjectStoragePort:
    return S3StorageAdapter.from_config(load_storage_config(get_settings()))


def get_application_store(db: Session = Depends(get_db)) -> ApplicationStorePort:
    return SqlAlchemyApplicationStore(db)


def get_sealing_service(
    storage: ObjectStoragePort = Depends(get_object_storage),
) -> SealingPort:
    return PdfSealingService(storage)


def get_activity_logger(
    session_factory: sessionmaker = Depends(get_session_factory),
) -> ActivityLogger:
    return ActivityLogger(session_factory)
