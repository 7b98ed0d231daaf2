"""
Document operations use case.

Orchestrates document upload/download coordinating storage and database operations.
"""

from __future__ import annotations

import hashlib
import re
from collections.abc import AsyncIterator
from pathlib import PurePath
from typing import TYPE_CHECKING

from certportal.domain.entities.actor import Actor
from certportal.domain.enums import ApplicationStatus, DocumentType
from certportal.domain.exceptions import (AuthorizationException,
                                          PortalException,
                                          ResourceNotFoundException,
                                          ValidationException)
from certportal.infrastructure.exceptions import StorageNotFoundError
from certportal.infrastructure.persistence.models.document import \
    ApplicationDocument
from certportal.shared.telemetry.logging import get_logger
from certportal.shared.telemetry.tracing import traced
from certportal.shared.utils.generators import generate_cuid

if TYPE_CHECKING:
    from certportal.application.interfaces.storage import IFileStorage
    from certportal.infrastructure.persistence.models.application import \
        Application
    from certportal.infrastructure.persistence.repositories.application_repo import \
        ApplicationRepository
    from certportal.infrastructure.persistence.repositories.document_repo import \
        DocumentRepository

logger = get_logger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")
TERMINAL_STATUSES = {ApplicationStatus.APPROVED.value, ApplicationStatus.REJECTED.value}


def sanitize_filename(filename: str) -> str:
    """Keep only the final path component with a conservative character set"""
    name = PurePath((filename or "").replace("\\", "/")).name
    name = _UNSAFE_FILENAME_CHARS.sub("_", name).strip("._")
    return name or "document"


class DocumentService:
    """
    Orchestrates document upload/download coordinating storage + database.

    Responsibilities:
    - Generate storage_ref paths
    - Compute file checksums
    - Reject duplicate content per application
    - Enforce size and MIME type limits
    - Check the actor may see the application
    """

    def __init__(
        self,
        storage_service: IFileStorage,
        document_repo: DocumentRepository,
        application_repo: ApplicationRepository,
        max_upload_size: int,
        allowed_mime_types: str = "*/*",
    ) -> None:
        self.storage = storage_service
        self.document_repo = document_repo
        self.application_repo = application_repo
        self.max_upload_size = max_upload_size
        self.allowed_mime_types = {
            m.strip().lower() for m in allowed_mime_types.split(",") if m.strip()
        }

    def _generate_storage_ref(
        self, application_code: str, document_id: str, document_type: str, filename: str
    ) -> str:
        """
        Generate storage reference path.

        Format: applications/{application_code}/documents/{document_id}/{document_type}_{filename}
        """
        return f"applications/{application_code}/documents/{document_id}/{document_type}_{filename}"

    @staticmethod
    def _compute_checksum(content: bytes) -> str:
        return hashlib.sha256(content).hexdigest()

    def _mime_allowed(self, mime_type: str) -> bool:
        return "*/*" in self.allowed_mime_types or mime_type.lower() in self.allowed_mime_types

    async def _visible_application(self, application_id: str, actor: Actor) -> Application:
        application = await self.application_repo.get_by_id(application_id)
        if application is None:
            raise ResourceNotFoundException("Application", application_id)
        if application.owner_id != actor.user_id and not actor.is_staff:
            raise AuthorizationException(f"application:{application_id}", "documents")
        return application

    @traced("document.upload")
    async def upload_document(
        self,
        application_id: str,
        actor: Actor,
        document_type: str,
        content: bytes,
        filename: str,
        mime_type: str,
    ) -> ApplicationDocument:
        """
        Upload document bytes and record their metadata against the application.

        Workflow:
        1. Validate type, size and MIME type
        2. Check the application is visible to the actor and still open
        3. Compute checksum and reject duplicates on the same application
        4. Upload to storage
        5. Create database record (the stored file is removed if this fails)

        Raises:
            ValidationException: Bad type, size, MIME type, closed application or duplicate
            StorageException: If upload fails
        """
        if document_type not in DocumentType.values():
            raise ValidationException(
                f"document_type must be one of: {', '.join(DocumentType.values())}",
                field="document_type",
            )
        if not content:
            raise ValidationException("Uploaded file is empty", field="file")
        if len(content) > self.max_upload_size:
            raise ValidationException(
                f"File exceeds maximum size of {self.max_upload_size} bytes", field="file"
            )
        mime_type = (mime_type or "application/octet-stream").split(";")[0].strip()
        if not self._mime_allowed(mime_type):
            raise ValidationException(f"File type {mime_type} is not allowed", field="file")

        application = await self._visible_application(application_id, actor)
        if application.status in TERMINAL_STATUSES:
            raise ValidationException(
                f"Documents cannot be added to a {application.status} application"
            )

        checksum = self._compute_checksum(content)
        existing = await self.document_repo.get_by_checksum(application_id, checksum)
        if existing:
            raise ValidationException(
                f"This file is already attached to the application (document {existing.id})",
                field="file",
            )

        document_name = sanitize_filename(filename)
        document_id = generate_cuid()
        storage_ref = self._generate_storage_ref(
            application.application_code, document_id, document_type, document_name
        )

        await self.storage.upload(
            content=content,
            storage_ref=storage_ref,
            expected_checksum=checksum,
            content_type=mime_type,
            metadata={
                "document_id": document_id,
                "application_id": application_id,
                "uploaded_by": actor.user_id,
            },
        )

        document = ApplicationDocument(
            id=document_id,
            application_id=application_id,
            document_type=document_type,
            document_name=document_name,
            mime_type=mime_type,
            file_size=len(content),
            checksum=checksum,
            storage_ref=storage_ref,
            uploaded_by=actor.user_id,
        )
        try:
            created = await self.document_repo.create(document)
        except PortalException:
            await self.storage.delete(storage_ref)
            raise

        logger.info(
            f"Document {document_id} ({document_type}, {len(content)} bytes) "
            f"attached to application {application.application_code}"
        )
        return created

    async def list_documents(self, application_id: str, actor: Actor) -> list[ApplicationDocument]:
        await self._visible_application(application_id, actor)
        return await self.document_repo.list_for_application(application_id)

    async def open_download(
        self, document_id: str, actor: Actor
    ) -> tuple[ApplicationDocument, AsyncIterator[bytes]]:
        """
        Resolve a document the actor may read and open its byte stream.

        Raises:
            ResourceNotFoundException: Unknown document
            AuthorizationException: Actor may not see the owning application
        """
        document = await self.document_repo.get_by_id(document_id)
        if document is None:
            raise ResourceNotFoundException("Document", document_id)
        await self._visible_application(document.application_id, actor)
        if not await self.storage.exists(document.storage_ref):
            raise StorageNotFoundError(document.storage_ref)
        return document, self.storage.download(document.storage_ref)
