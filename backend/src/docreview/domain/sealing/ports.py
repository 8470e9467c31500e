"""Document Sealing Port - produces a stamped copy plus verification code."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class ReviewerNames:
    junior_reviewer_name: str
    compliance_officer_name: str


@dataclass(frozen=True)
class SealedDocument:
    sealed_document_key: str
    verification_code: str


class SealingError(Exception):
    """Raised when a document cannot be sealed."""
    pass


class SealingPort(ABC):
    """Port interface for the document sealing collaborator."""

    @abstractmethod
    def seal(
        self,
        application_id: str,
        document_key: str,
        reviewers: ReviewerNames,
    ) -> SealedDocument:
        """Stamp the original document and store the sealed copy.

        Raises:
            SealingError: If the document cannot be read, stamped or stored
        """
