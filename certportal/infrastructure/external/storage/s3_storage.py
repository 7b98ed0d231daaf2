"""
S3-compatible storage implementation (AWS S3, MinIO, DigitalOcean Spaces).

Security Features:
- Server-side encryption (AES256)
- Checksum validation (SHA-256) stored in object metadata
- Idempotent uploads
"""

import hashlib
from collections.abc import AsyncIterator
from typing import Any

import aioboto3
from botocore.exceptions import BotoCoreError, ClientError

from certportal.infrastructure.exceptions import (StorageAlreadyExistsError,
                                                  StorageChecksumMismatchError,
                                                  StorageDownloadError,
                                                  StorageNotFoundError,
                                                  StorageUploadError)

_MISSING_CODES = {"404", "NoSuchKey", "NotFound"}


class S3StorageService:
    """
    S3-compatible object storage for application documents.

    Object keys follow the same layout as local storage:
    applications/{application_code}/documents/{document_id}/{document_type}_{filename}
    """

    CHUNK_SIZE = 64 * 1024  # 64KB chunks for streaming

    def __init__(
        self,
        bucket: str,
        region: str = "ap-south-1",
        endpoint_url: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
    ):
        """
        Initialize S3 storage service.

        Args:
            bucket: S3 bucket name
            region: AWS region
            endpoint_url: Custom endpoint for MinIO/DigitalOcean (optional)
            access_key: AWS access key (optional, uses IAM role if not provided)
            secret_key: AWS secret key (optional, uses IAM role if not provided)
        """
        self.bucket = bucket
        self.endpoint_url = endpoint_url
        self.session = aioboto3.Session(
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=region,
        )

    def _client(self):
        config = {}
        if self.endpoint_url:
            config["endpoint_url"] = self.endpoint_url
        return self.session.client("s3", **config)

    @staticmethod
    def _is_missing(error: ClientError) -> bool:
        return error.response.get("Error", {}).get("Code") in _MISSING_CODES

    async def upload(
        self,
        content: bytes,
        storage_ref: str,
        expected_checksum: str,
        content_type: str,
        metadata: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """
        Upload bytes to S3 with checksum validation.

        Raises:
            StorageChecksumMismatchError: If checksum doesn't match
            StorageAlreadyExistsError: If object exists with different checksum
            StorageUploadError: If upload fails
        """
        computed_checksum = hashlib.sha256(content).hexdigest()
        if computed_checksum != expected_checksum:
            raise StorageChecksumMismatchError(storage_ref, expected_checksum, computed_checksum)

        try:
            async with self._client() as s3:
                try:
                    head = await s3.head_object(Bucket=self.bucket, Key=storage_ref)
                except ClientError as e:
                    if not self._is_missing(e):
                        raise
                else:
                    if head.get("Metadata", {}).get("sha256") != expected_checksum:
                        raise StorageAlreadyExistsError(storage_ref)
                    return {
                        "storage_ref": storage_ref,
                        "checksum": expected_checksum,
                        "size": head["ContentLength"],
                        "uploaded_at": head["LastModified"].isoformat(),
                    }

                # S3 metadata keys must be lowercase with hyphens
                s3_metadata = {"sha256": computed_checksum, "original-size": str(len(content))}
                for key, value in (metadata or {}).items():
                    s3_metadata[key.lower().replace("_", "-")] = value

                await s3.put_object(
                    Bucket=self.bucket,
                    Key=storage_ref,
                    Body=content,
                    ContentType=content_type,
                    ServerSideEncryption="AES256",
                    Metadata=s3_metadata,
                )
                head = await s3.head_object(Bucket=self.bucket, Key=storage_ref)

                return {
                    "storage_ref": storage_ref,
                    "checksum": computed_checksum,
                    "size": len(content),
                    "uploaded_at": head["LastModified"].isoformat(),
                }

        except (ClientError, BotoCoreError) as e:
            raise StorageUploadError(storage_ref, str(e)) from e

    async def download(self, storage_ref: str) -> AsyncIterator[bytes]:
        """
        Stream object from S3.

        Raises:
            StorageNotFoundError: If object doesn't exist
            StorageDownloadError: If download fails
        """
        try:
            async with self._client() as s3:
                try:
                    response = await s3.get_object(Bucket=self.bucket, Key=storage_ref)
                except ClientError as e:
                    if self._is_missing(e):
                        raise StorageNotFoundError(storage_ref) from e
                    raise

                async with response["Body"] as stream:
                    while True:
                        chunk = await stream.read(self.CHUNK_SIZE)
                        if not chunk:
                            break
                        yield chunk

        except (ClientError, BotoCoreError) as e:
            raise StorageDownloadError(storage_ref, str(e)) from e

    async def delete(self, storage_ref: str) -> bool:
        """Delete object from S3. Returns False if it didn't exist."""
        if not await self.exists(storage_ref):
            return False
        async with self._client() as s3:
            await s3.delete_object(Bucket=self.bucket, Key=storage_ref)
        return True

    async def exists(self, storage_ref: str) -> bool:
        async with self._client() as s3:
            try:
                await s3.head_object(Bucket=self.bucket, Key=storage_ref)
                return True
            except ClientError as e:
                if self._is_missing(e):
                    return False
                raise
