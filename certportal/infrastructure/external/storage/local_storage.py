"""
Local filesystem storage for application documents.

Security Features:
- Path traversal protection (resolve + prefix validation)
- Atomic writes (temp file + atomic rename)
- Checksum validation (SHA-256)
- File permissions (0o640 files, 0o750 dirs)
- Idempotent uploads
"""

import hashlib
import json
import os
import tempfile
from collections.abc import AsyncIterator
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import aiofiles
import aiofiles.os

from certportal.infrastructure.exceptions import (
    StorageAlreadyExistsError,
    StorageChecksumMismatchError,
    StorageDownloadError,
    StorageNotFoundError,
    StoragePermissionError,
    StorageUploadError,
)

META_SUFFIX = ".meta.json"


class LocalStorageService:
    """
    Local filesystem storage with atomic writes and path traversal protection.

    Directory Structure:
    {root}/applications/{application_code}/documents/{document_id}/{document_type}_{filename}
    """

    CHUNK_SIZE = 64 * 1024  # 64KB chunks for streaming

    def __init__(self, storage_root: str) -> None:
        self.storage_root = Path(storage_root).resolve()
        self.storage_root.mkdir(parents=True, exist_ok=True, mode=0o750)

    def _get_full_path(self, storage_ref: str) -> Path:
        """
        Get full filesystem path with security validation.

        Raises:
            StoragePermissionError: If path traversal detected
        """
        full_path = (self.storage_root / storage_ref).resolve()

        try:
            full_path.relative_to(self.storage_root)
        except ValueError as e:
            raise StoragePermissionError(storage_ref, "path_validation") from e

        return full_path

    @staticmethod
    def _metadata_path(file_path: Path) -> Path:
        return file_path.with_name(file_path.name + META_SUFFIX)

    async def _compute_checksum(self, file_path: Path) -> str:
        sha256 = hashlib.sha256()

        async with aiofiles.open(file_path, "rb") as f:
            while True:
                chunk = await f.read(self.CHUNK_SIZE)
                if not chunk:
                    break
                sha256.update(chunk)

        return sha256.hexdigest()

    async def _write_metadata(self, file_path: Path, metadata: dict[str, Any]) -> None:
        """Write metadata to JSON sidecar file."""
        metadata_path = self._metadata_path(file_path)

        async with aiofiles.open(metadata_path, "w") as f:
            await f.write(json.dumps(metadata, indent=2))

        os.chmod(metadata_path, 0o640)

    async def _read_metadata(self, file_path: Path) -> dict[str, Any]:
        metadata_path = self._metadata_path(file_path)

        if not metadata_path.exists():
            return {}

        async with aiofiles.open(metadata_path, "r") as f:
            result = json.loads(await f.read())
            return result if isinstance(result, dict) else {}

    async def upload(
        self,
        content: bytes,
        storage_ref: str,
        expected_checksum: str,
        content_type: str,
        metadata: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """
        Upload file with atomic write and checksum validation.

        Raises:
            StorageChecksumMismatchError: If checksum doesn't match
            StorageAlreadyExistsError: If file exists with different checksum
            StorageUploadError: If upload fails
        """
        target_path = self._get_full_path(storage_ref)

        try:
            if target_path.exists():
                existing_checksum = await self._compute_checksum(target_path)
                if existing_checksum != expected_checksum:
                    raise StorageAlreadyExistsError(storage_ref)

                # Idempotent: same bytes already stored
                existing_metadata = await self._read_metadata(target_path)
                return {
                    "storage_ref": storage_ref,
                    "checksum": existing_checksum,
                    "size": target_path.stat().st_size,
                    "uploaded_at": existing_metadata.get("uploaded_at"),
                }

            target_path.parent.mkdir(parents=True, exist_ok=True, mode=0o750)

            temp_fd, temp_path = tempfile.mkstemp(
                dir=target_path.parent, prefix=".tmp_", suffix=target_path.suffix
            )
            os.close(temp_fd)

            try:
                async with aiofiles.open(temp_path, "wb") as f:
                    await f.write(content)
                os.chmod(temp_path, 0o640)

                computed_checksum = await self._compute_checksum(Path(temp_path))
                if computed_checksum != expected_checksum:
                    raise StorageChecksumMismatchError(
                        storage_ref, expected_checksum, computed_checksum
                    )

                os.replace(temp_path, target_path)
            finally:
                if Path(temp_path).exists():
                    os.unlink(temp_path)

            uploaded_at = datetime.now(UTC).isoformat()
            await self._write_metadata(
                target_path,
                {
                    "storage_ref": storage_ref,
                    "checksum": computed_checksum,
                    "size": len(content),
                    "content_type": content_type,
                    "uploaded_at": uploaded_at,
                    "custom": metadata or {},
                },
            )
            return {
                "storage_ref": storage_ref,
                "checksum": computed_checksum,
                "size": len(content),
                "uploaded_at": uploaded_at,
            }

        except (StorageChecksumMismatchError, StorageAlreadyExistsError):
            raise
        except OSError as e:
            raise StorageUploadError(storage_ref, f"Upload failed: {e}") from e

    async def download(self, storage_ref: str) -> AsyncIterator[bytes]:
        """
        Stream file from storage.

        Raises:
            StorageNotFoundError: If file doesn't exist
            StorageDownloadError: If reading fails
        """
        file_path = self._get_full_path(storage_ref)
        if not file_path.exists():
            raise StorageNotFoundError(storage_ref)

        try:
            async with aiofiles.open(file_path, "rb") as f:
                while True:
                    chunk = await f.read(self.CHUNK_SIZE)
                    if not chunk:
                        break
                    yield chunk
        except OSError as e:
            raise StorageDownloadError(storage_ref, f"Download failed: {e}") from e

    async def delete(self, storage_ref: str) -> bool:
        """Delete file and its metadata sidecar. Returns False if it didn't exist."""
        file_path = self._get_full_path(storage_ref)
        if not file_path.exists():
            return False

        await aiofiles.os.remove(file_path)
        metadata_path = self._metadata_path(file_path)
        if metadata_path.exists():
            await aiofiles.os.remove(metadata_path)

        # Clean up empty parent directories
        parent = file_path.parent
        while parent != self.storage_root:
            if any(parent.iterdir()):
                break
            parent.rmdir()
            parent = parent.parent

        return True

    async def exists(self, storage_ref: str) -> bool:
        return self._get_full_path(storage_ref).exists()
