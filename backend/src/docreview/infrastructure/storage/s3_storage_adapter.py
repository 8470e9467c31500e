"""S3 Storage Adapter - Implementation of ObjectStoragePort using boto3.

Works against AWS S3 and S3-compatible services (MinIO in development).

Architecture: Hexagonal - Adapter implementation in infrastructure layer
"""

import logging
from io import BytesIO
from typing import Dict, Optional

import boto3
from botocore.exceptions import ClientError, NoCredentialsError

from ...domain.documents.ports.object_storage_port import (
    ObjectStoragePort,
    StoredFile,
)
from .storage_config import StorageConfig

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class S3StorageAdapter(ObjectStoragePort):
    """S3-compatible storage adapter using boto3.

    Example:
        config = load_storage_config(get_settings())
        storage = S3StorageAdapter.from_config(config)
        original = storage.get_bytes("uploads/abc/passport.pdf")
    """

    def __init__(
        self,
        endpoint_url: Optional[str],
        access_key: str,
        secret_key: str,
        bucket_name: str,
        region: str = "us-east-1",
    ):
        """Initialize S3 storage adapter.

        Args:
            endpoint_url: S3 endpoint URL (None for AWS S3, URL for MinIO)
            access_key: S3 access key ID
            secret_key: S3 secret access key
            bucket_name: S3 bucket name
            region: AWS region (default: 'us-east-1')

        Raises:
            StorageError: If S3 client initialization fails
        """
        try:
            self.s3_client = boto3.client(
                "s3",
                endpoint_url=endpoint_url,
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                region_name=region,
            )
            self.bucket_name = bucket_name
            self.region = region

            logger.info(
                f"Initialized S3 storage adapter: bucket={bucket_name}, "
                f"endpoint={endpoint_url or 'AWS S3'}, region={region}"
            )
        except NoCredentialsError as e:
            raise StorageError(f"Invalid S3 credentials: {e}")
        except Exception as e:
            raise StorageError(f"Failed to initialize S3 client: {e}")

    @classmethod
    def from_config(cls, config: StorageConfig) -> "S3StorageAdapter":
        return cls(
            endpoint_url=config.endpoint_url,
            access_key=config.access_key,
            secret_key=config.secret_key,
            bucket_name=config.bucket_name,
            region=config.region,
        )

    def get_bytes(self, storage_key: str) -> bytes:
        try:
            response = self.s3_client.get_object(
                Bucket=self.bucket_name,
                Key=storage_key,
            )
            data = response["Body"].read()
            logger.info(f"Retrieved file: storage_key={storage_key}, size={len(data)}")
            return data

        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            if error_code in ("NoSuchKey", "404"):
                logger.warning(f"File not found: storage_key={storage_key}")
                raise FileNotFoundError(f"File not found: {storage_key}")
            logger.error(
                f"S3 retrieval failed: storage_key={storage_key}, "
                f"error={error_code}"
            )
            raise StorageError(f"Failed to retrieve file: {error_code}")

    def put_bytes(
        self,
        storage_key: str,
        data: bytes,
        mime_type: str,
        metadata: Optional[Dict[str, str]] = None,
    ) -> StoredFile:
        if not data:
            raise ValueError("Cannot store empty file")

        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=storage_key,
                Body=BytesIO(data),
                ContentType=mime_type,
                Metadata=metadata or {},
            )
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error(
                f"S3 upload failed: storage_key={storage_key}, "
                f"error={error_code}, message={e}"
            )
            raise StorageError(f"Failed to upload file: {error_code}")

        logger.info(
            f"Uploaded file: storage_key={storage_key}, "
            f"size={len(data)}, mime_type={mime_type}"
        )
        return StoredFile(
            storage_key=storage_key,
            size_bytes=len(data),
            mime_type=mime_type,
        )

    def file_exists(self, storage_key: str) -> bool:
        """Check if a file exists in S3 using a HEAD request."""
        try:
            self.s3_client.head_object(
                Bucket=self.bucket_name,
                Key=storage_key,
            )
            return True
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            if error_code not in ("404", "NoSuchKey", "NotFound"):
                logger.warning(
                    f"Error checking file existence: storage_key={storage_key}, "
                    f"error={error_code}"
                )
            return False

    def generate_presigned_url(
        self,
        storage_key: str,
        expires_in_seconds: int = 3600,
    ) -> str:
        try:
            url = self.s3_client.generate_presigned_url(
                "get_object",
                Params={
                    "Bucket": self.bucket_name,
                    "Key": storage_key,
                },
                ExpiresIn=expires_in_seconds,
            )
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error(
                f"Presigned URL generation failed: storage_key={storage_key}, "
                f"error={error_code}"
            )
            raise StorageError(f"Failed to generate presigned URL: {error_code}")

        logger.debug(
            f"Generated presigned URL: storage_key={storage_key}, "
            f"expires_in={expires_in_seconds}s"
        )
        return url

    def verify_bucket_exists(self) -> bool:
        """Verify that the configured bucket exists.

        Called by the health check.

        Raises:
            StorageError: If bucket check fails or bucket doesn't exist
        """
        try:
            self.s3_client.head_bucket(Bucket=self.bucket_name)
            return True
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            if error_code == "404":
                raise StorageError(
                    f"Bucket '{self.bucket_name}' does not exist. "
                    f"Create it first or update S3_BUCKET_NAME."
                )
            raise StorageError(f"Failed to verify bucket: {error_code}")
