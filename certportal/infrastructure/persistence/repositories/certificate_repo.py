from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from certportal.infrastructure.persistence.models.application import \
    Application
from certportal.infrastructure.persistence.models.certificate import \
    Certificate
from certportal.infrastructure.persistence.repositories.base import \
    BaseRepository


class CertificateRepository(BaseRepository[Certificate]):
    """Repository for issued certificates."""

    def __init__(self, db: AsyncSession, timeout: float | None = None):
        super().__init__(db, Certificate, timeout)

    async def get_by_application(self, application_id: str) -> Certificate | None:
        result = await self._execute(
            select(Certificate).where(Certificate.application_id == application_id),
            "certificate.get_by_application",
        )
        return result.scalar_one_or_none()

    async def get_by_number(self, certificate_number: str) -> Certificate | None:
        result = await self._execute(
            select(Certificate).where(Certificate.certificate_number == certificate_number),
            "certificate.get_by_number",
        )
        return result.scalar_one_or_none()

    async def list_for_owner(self, owner_id: str) -> list[Certificate]:
        """Certificates issued on applications a citizen submitted"""
        result = await self._execute(
            select(Certificate)
            .join(Application, Application.id == Certificate.application_id)
            .where(Application.owner_id == owner_id)
            .order_by(Certificate.issued_date.desc()),
            "certificate.list_for_owner",
        )
        return list(result.scalars().all())
