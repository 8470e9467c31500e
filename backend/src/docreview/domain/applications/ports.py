"""Application Store Port - Domain interface for application persistence.

Architecture: Hexagonal - Port interface in domain layer. The SQLAlchemy
repository in infrastructure/repositories implements it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from ...models.application import Application
from .state_machine import ReviewRecord
from .status import ApplicationStatus, WorkflowStep


@dataclass
class NewApplication:
    """Applicant-supplied fields for a new application."""
    owner_id: str
    full_name: str
    guardian_name: str
    age: int
    phone: str
    email: str
    address: str
    national_id: str
    typed_signature: str
    document_type: str
    required_by_date: date
    document_key: str
    document_filename: str
    document_size_bytes: int
    department: Optional[str] = None


class ApplicationStorePort(ABC):
    """Port interface for application persistence.

    Key Design Principles:
    - Reads always hit the store (no caching of applications)
    - Status, current_step and reviews change only through
      append_review_conditionally
    - The sealed document is attached at most once
    """

    @abstractmethod
    def get(self, application_id: str) -> Optional[Application]:
        """Load an application with its reviews, or None if absent."""

    @abstractmethod
    def create(self, data: NewApplication) -> Application:
        """Persist a new application in SUBMITTED, step 1, no reviews."""

    @abstractmethod
    def append_review_conditionally(
        self,
        application_id: str,
        expected_status: ApplicationStatus,
        expected_review_count: int,
        new_status: ApplicationStatus,
        new_step: WorkflowStep,
        review: ReviewRecord,
    ) -> bool:
        """Atomically append a review and move status/step.

        The write applies only if the stored application still has
        ``expected_status`` and ``expected_review_count`` reviews.

        Returns:
            bool: True if applied, False if a concurrent write won the race
        """

    @abstractmethod
    def attach_sealed_document(
        self,
        application_id: str,
        sealed_document_key: str,
        verification_code: str,
    ) -> bool:
        """Attach the sealed artifact to an approved application.

        Returns:
            bool: False if the application is not approved or already sealed
        """

    @abstractmethod
    def list_all(self, status: Optional[ApplicationStatus] = None) -> List[Application]:
        """All applications, newest first, optionally filtered by status."""

    def list_by_status(self, status: ApplicationStatus) -> List[Application]:
        return self.list_all(status=status)

    @abstractmethod
    def list_by_owner(
        self,
        owner_id: str,
        status: Optional[ApplicationStatus] = None,
    ) -> List[Application]:
        """Applications owned by one principal, newest first."""
