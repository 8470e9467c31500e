"""Pytest fixtures for the review service.

Provides reusable test fixtures for:
- A file-backed SQLite database, recreated for every test
- Users with each role (applicant, junior reviewer, compliance officer, admin)
- In-memory object storage and a recording sealing service
- Authenticated TestClients with JWT tokens

Usage:
    def test_admin_endpoint(as_user, admin_user):
        response = as_user(admin_user).get("/api/v1/activity-logs")
        assert response.status_code == 200
"""

import io
import os
import tempfile
from datetime import date
from functools import lru_cache
from pathlib import Path
from typing import Dict, Generator, List, Optional

# Set environment variables BEFORE any imports to ensure they take effect.
# The engine is created at import time; the audit log writes through its own
# sessions, so the test database must be a file shared by all connections.
_TEST_DB_DIR = tempfile.mkdtemp(prefix="docreview-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{Path(_TEST_DB_DIR) / 'test.db'}"
os.environ["REDIS_URL"] = ""
os.environ.setdefault("PASSWORD_PEPPER", "test-pepper-secret-key-32-chars-long")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-key-256-bits-minimum-length-required-for-security")
os.environ.setdefault("LOG_JSON", "false")

import pytest
from fastapi.testclient import TestClient
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas
from sqlalchemy.orm import Session

from docreview.config import get_settings

get_settings.cache_clear()

from docreview.auth.jwt import create_access_token
from docreview.auth.password import hash_password
from docreview.auth.roles import Role
from docreview.cache.role_cache import NullRoleCache
from docreview.database import SessionLocal, engine
from docreview.dependencies import (
    get_object_storage,
    get_role_cache,
    get_sealing_service,
)
from docreview.domain.applications.ports import NewApplication
from docreview.domain.documents.ports.object_storage_port import ObjectStoragePort, StoredFile
from docreview.domain.sealing.ports import ReviewerNames, SealedDocument, SealingPort
from docreview.infrastructure.repositories.application_repository import SqlAlchemyApplicationStore
from docreview.main import app
from docreview.models import Base, User


# =============================================================================
# FAKE COLLABORATORS
# =============================================================================

class InMemoryObjectStorage(ObjectStoragePort):
    """Dict-backed object storage."""

    def __init__(self):
        self.objects: Dict[str, bytes] = {}
        self.metadata: Dict[str, Dict[str, str]] = {}

    def get_bytes(self, storage_key: str) -> bytes:
        if storage_key not in self.objects:
            raise FileNotFoundError(f"File not found: {storage_key}")
        return self.objects[storage_key]

    def put_bytes(self, storage_key, data, mime_type, metadata=None) -> StoredFile:
        if not data:
            raise ValueError("Cannot store empty file")
        self.objects[storage_key] = data
        self.metadata[storage_key] = dict(metadata or {})
        return StoredFile(storage_key=storage_key, size_bytes=len(data), mime_type=mime_type)

    def file_exists(self, storage_key: str) -> bool:
        return storage_key in self.objects

    def generate_presigned_url(self, storage_key: str, expires_in_seconds: int = 3600) -> str:
        return f"https://storage.test/{storage_key}?expires={expires_in_seconds}"


class RecordingSealingService(SealingPort):
    """Sealing fake that records calls and can be told to fail."""

    def __init__(self):
        self.calls: List[tuple] = []
        self.fail_with: Optional[Exception] = None
        self._counter = 0

    def seal(self, application_id: str, document_key: str, reviewers: ReviewerNames) -> SealedDocument:
        self.calls.append((application_id, document_key, reviewers))
        if self.fail_with is not None:
            raise self.fail_with
        self._counter += 1
        return SealedDocument(
            sealed_document_key=document_key.replace(".pdf", "_VERIFIED.pdf"),
            verification_code=f"DRV-{application_id[:4].upper()}-TEST-{self._counter:06d}",
        )


# =============================================================================
# DATABASE
# =============================================================================

@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create a fresh database for each test.

    Creates all tables before the test and drops them after.
    """
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def store(db_session: Session) -> SqlAlchemyApplicationStore:
    return SqlAlchemyApplicationStore(db_session)


# =============================================================================
# USERS
# =============================================================================

@lru_cache()
def _password_hash(password: str) -> str:
    # One hash per password per run
    return hash_password(password)


def make_user(db: Session, email: str, name: str, role: Role, status: str = "ACTIVE") -> User:
    user = User(
        email=email,
        name=name,
        role=role.value,
        password_hash=_password_hash("SecurePass123"),
        status=status,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def user_factory(db_session: Session):
    """Create users on demand: user_factory(email, name, role, status="ACTIVE")."""

    def _create(email: str, name: str, role: Role, status: str = "ACTIVE") -> User:
        return make_user(db_session, email, name, role, status)

    return _create


@pytest.fixture
def applicant(db_session: Session) -> User:
    return make_user(db_session, "jane@test.com", "Jane Doe", Role.USER)


@pytest.fixture
def other_applicant(db_session: Session) -> User:
    return make_user(db_session, "john@test.com", "John Roe", Role.USER)


@pytest.fixture
def junior_reviewer(db_session: Session) -> User:
    return make_user(db_session, "alice@test.com", "Alice", Role.JUNIOR_REVIEWER)


@pytest.fixture
def second_junior_reviewer(db_session: Session) -> User:
    return make_user(db_session, "carol@test.com", "Carol", Role.JUNIOR_REVIEWER)


@pytest.fixture
def compliance_officer(db_session: Session) -> User:
    return make_user(db_session, "bob@test.com", "Bob", Role.COMPLIANCE_OFFICER)


@pytest.fixture
def admin_user(db_session: Session) -> User:
    return make_user(db_session, "admin@test.com", "Admin User", Role.ADMIN)


def new_application_data(owner_id: str, filename: str = "birth_certificate.pdf") -> NewApplication:
    return NewApplication(
        owner_id=owner_id,
        full_name="Jane Doe",
        guardian_name="Mary Doe",
        age=30,
        phone="+15555550100",
        email="jane@test.com",
        address="1 Main Street",
        national_id="ID-123456",
        typed_signature="Jane Doe",
        document_type="birth_certificate",
        required_by_date=date(2030, 1, 31),
        document_key=f"uploads/{owner_id}/{filename}",
        document_filename=filename,
        document_size_bytes=2048,
    )


@pytest.fixture
def application_factory(store: SqlAlchemyApplicationStore):
    """Create applications on demand: application_factory(owner, filename="...pdf")."""

    def _create(owner: User, filename: str = "birth_certificate.pdf"):
        return store.create(new_application_data(owner.id, filename))

    return _create


@pytest.fixture
def submitted_application(store: SqlAlchemyApplicationStore, applicant: User):
    """A PDF-backed application owned by ``applicant`` in ``submitted``."""
    return store.create(new_application_data(applicant.id))


@pytest.fixture
def sample_pdf_bytes() -> bytes:
    """Two-page PDF generated with reportlab."""
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    pdf.drawString(72, 770, "Certificate request - page 1")
    pdf.showPage()
    pdf.drawString(72, 770, "Certificate request - page 2")
    pdf.showPage()
    pdf.save()
    return buffer.getvalue()


# =============================================================================
# HTTP CLIENTS
# =============================================================================

@pytest.fixture
def object_storage() -> InMemoryObjectStorage:
    return InMemoryObjectStorage()


@pytest.fixture
def sealing_service() -> RecordingSealingService:
    return RecordingSealingService()


@pytest.fixture
def client(db_session, object_storage, sealing_service) -> Generator[TestClient, None, None]:
    """TestClient with collaborators replaced by in-memory fakes."""
    app.dependency_overrides[get_role_cache] = lambda: NullRoleCache()
    app.dependency_overrides[get_object_storage] = lambda: object_storage
    app.dependency_overrides[get_sealing_service] = lambda: sealing_service

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def auth_headers(user: User) -> Dict[str, str]:
    token = create_access_token(user_id=user.id, role=user.role, email=user.email)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def as_user(client):
    """Return a helper issuing requests with a user's bearer token.

    Example:
        as_user(admin_user).get("/api/v1/users")
    """

    class _AuthenticatedClient:
        def __init__(self, user: User):
            self.headers = auth_headers(user)

        def get(self, url, **kwargs):
            return client.get(url, headers=self.headers, **kwargs)

        def post(self, url, **kwargs):
            return client.post(url, headers=self.headers, **kwargs)

        def delete(self, url, **kwargs):
            return client.delete(url, headers=self.headers, **kwargs)

    return _AuthenticatedClient
