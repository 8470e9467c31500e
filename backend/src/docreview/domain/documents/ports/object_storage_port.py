"""Object Storage Port - Domain interface for S3-compatible storage.

This port defines the contract for reading and writing documents in object
storage. Uploaded originals are written by the client via presigned URLs
outside this service; the service reads originals, writes sealed copies and
hands out presigned download URLs.

Architecture: Hexagonal - Port interface in domain layer
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional


@dataclass
class StoredFile:
    """Metadata for a file stored in object storage.

    Attributes:
        storage_key: Key in object storage
        size_bytes: File size in bytes
        mime_type: MIME type of the file (e.g., 'application/pdf')
    """
    storage_key: str
    size_bytes: int
    mime_type: str


class ObjectStoragePort(ABC):
    """Port interface for S3-compatible object storage operations."""

    @abstractmethod
    def get_bytes(self, storage_key: str) -> bytes:
        """Read a whole object.

        Raises:
            FileNotFoundError: If the object doesn't exist
            StorageError: If retrieval fails
        """

    @abstractmethod
    def put_bytes(
        self,
        storage_key: str,
        data: bytes,
        mime_type: str,
        metadata: Optional[Dict[str, str]] = None,
    ) -> StoredFile:
        """Write an object, replacing any existing object at that key.

        Raises:
            StorageError: If upload fails
            ValueError: If data is empty
        """

    @abstractmethod
    def file_exists(self, storage_key: str) -> bool:
        """Check if an object exists (HEAD request)."""

    @abstractmethod
    def generate_presigned_url(self, storage_key: str, expires_in_seconds: int = 3600) -> str:
        """Generate a time-limited download URL.

        Raises:
            StorageError: If URL generation fails
        """
