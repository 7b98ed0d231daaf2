"""Storage service implementations for application documents."""

from certportal.infrastructure.external.storage.factory import StorageFactory
from certportal.infrastructure.external.storage.local_storage import \
    LocalStorageService
from certportal.infrastructure.external.storage.s3_storage import \
    S3StorageService

__all__ = ["LocalStorageService", "S3StorageService", "StorageFactory"]
