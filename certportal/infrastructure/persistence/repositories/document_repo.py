from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from certportal.infrastructure.persistence.models.document import \
    ApplicationDocument
from certportal.infrastructure.persistence.repositories.base import \
    BaseRepository


class DocumentRepository(BaseRepository[ApplicationDocument]):
    """Repository for application document metadata."""

    def __init__(self, db: AsyncSession, timeout: float | None = None):
        super().__init__(db, ApplicationDocument, timeout)

    async def list_for_application(self, application_id: str) -> list[ApplicationDocument]:
        """Get all documents attached to an application"""
        result = await self._execute(
            select(ApplicationDocument)
            .where(ApplicationDocument.application_id == application_id)
            .order_by(ApplicationDocument.created_at.desc()),
            "application_document.list_for_application",
        )
        return list(result.scalars().all())

    async def get_by_checksum(
        self, application_id: str, checksum: str
    ) -> ApplicationDocument | None:
        """Check if a document with the same content is already attached"""
        result = await self._execute(
            select(ApplicationDocument).where(
                and_(
                    ApplicationDocument.application_id == application_id,
                    ApplicationDocument.checksum == checksum,
                )
            ),
            "application_document.get_by_checksum",
        )
        return result.scalars().first()
