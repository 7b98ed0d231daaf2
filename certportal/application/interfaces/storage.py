"""
Storage port for document bytes.

Implemented by the local filesystem and S3 backends in
``certportal.infrastructure.external.storage``.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any, Protocol


class IFileStorage(Protocol):
    """Protocol for blob storage backends (DIP)"""

    async def upload(
        self,
        content: bytes,
        storage_ref: str,
        expected_checksum: str,
        content_type: str,
        metadata: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """Store bytes under storage_ref after validating their SHA-256 checksum"""
        ...

    def download(self, storage_ref: str) -> AsyncIterator[bytes]:
        """Stream stored bytes in chunks"""
        ...

    async def delete(self, storage_ref: str) -> bool:
        """Remove stored bytes. Returns False if nothing was stored"""
        ...

    async def exists(self, storage_ref: str) -> bool:
        ...
