"""
Infrastructure exceptions for the certificate portal.

This module defines infrastructure-level exceptions related to
storage, database, and external service operations.
"""

from certportal.domain.exceptions import PortalException


# Persistence Exceptions
class DuplicateKeyError(PortalException):
    """A unique constraint rejected an insert."""

    def __init__(self, table: str, reason: str):
        super().__init__(
            f"Duplicate key on {table}",
            "DUPLICATE_KEY",
            {"table": table, "reason": reason},
        )


# Storage Exceptions
class StorageException(PortalException):
    """Base exception for storage operations."""

    pass


class StorageNotFoundError(StorageException):
    """File not found in storage."""

    def __init__(self, file_path: str):
        super().__init__(
            f"File not found: {file_path}",
            "STORAGE_NOT_FOUND",
            {"file_path": file_path},
        )


class StorageUploadError(StorageException):
    """File upload failed."""

    def __init__(self, file_path: str, reason: str):
        super().__init__(
            f"Failed to upload file: {file_path}",
            "STORAGE_UPLOAD_ERROR",
            {"file_path": file_path, "reason": reason},
        )


class StorageDownloadError(StorageException):
    """File download failed."""

    def __init__(self, file_path: str, reason: str):
        super().__init__(
            f"Failed to download file: {file_path}",
            "STORAGE_DOWNLOAD_ERROR",
            {"file_path": file_path, "reason": reason},
        )


class StorageChecksumMismatchError(StorageException):
    """Checksum validation failed - file corrupted or tampered."""

    def __init__(self, file_path: str, expected: str, actual: str):
        super().__init__(
            f"Checksum mismatch for file: {file_path}",
            "STORAGE_CHECKSUM_ERROR",
            {"file_path": file_path, "expected": expected, "actual": actual},
        )


class StorageAlreadyExistsError(StorageException):
    """File already exists with different content."""

    def __init__(self, file_path: str):
        super().__init__(
            f"File already exists: {file_path}",
            "STORAGE_EXISTS_ERROR",
            {"file_path": file_path},
        )


class StoragePermissionError(StorageException):
    """Insufficient permissions for storage operation."""

    def __init__(self, file_path: str, operation: str):
        super().__init__(
            f"Permission denied for {operation} on {file_path}",
            "STORAGE_PERMISSION_ERROR",
            {"file_path": file_path, "operation": operation},
        )
