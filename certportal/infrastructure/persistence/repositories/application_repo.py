from collections.abc import Iterable
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from certportal.infrastructure.persistence.models.application import \
    Application
from certportal.infrastructure.persistence.repositories.base import \
    BaseRepository


class ApplicationRepository(BaseRepository[Application]):
    """Repository for certificate applications."""

    def __init__(self, db: AsyncSession, timeout: float | None = None):
        super().__init__(db, Application, timeout)

    async def get_by_code(self, application_code: str) -> Application | None:
        result = await self._execute(
            select(Application).where(Application.application_code == application_code),
            "certificate_application.get_by_code",
        )
        return result.scalar_one_or_none()

    async def list_by_owner(self, owner_id: str, status: str | None = None) -> list[Application]:
        """Applications submitted by one citizen, newest first"""
        query = select(Application).where(Application.owner_id == owner_id)
        if status:
            query = query.where(Application.status == status)
        query = query.order_by(Application.submitted_at.desc())

        result = await self._execute(query, "certificate_application.list_by_owner")
        return list(result.scalars().all())

    async def list_filtered(
        self,
        statuses: Iterable[str] | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[Application]:
        """All applications, optionally restricted to a set of statuses"""
        query = select(Application)
        if statuses is not None:
            query = query.where(Application.status.in_(list(statuses)))
        query = query.order_by(Application.submitted_at.desc()).offset(skip).limit(limit)

        result = await self._execute(query, "certificate_application.list_filtered")
        return list(result.scalars().all())

    async def count_by_status(self) -> dict[str, int]:
        result = await self._execute(
            select(Application.status, func.count(Application.id)).group_by(Application.status),
            "certificate_application.count_by_status",
        )
        return {status: count for status, count in result.all()}

    async def compare_and_set_status(
        self,
        application_id: str,
        expected_status: str,
        expected_version: int,
        values: dict[str, Any],
    ) -> bool:
        """
        Write a new status only if the row still holds the status and version
        the caller validated against.

        Returns:
            True if this call won the update, False if another writer got there first
        """
        result = await self._execute(
            update(Application)
            .where(
                Application.id == application_id,
                Application.status == expected_status,
                Application.version == expected_version,
            )
            .values(**values, version=expected_version + 1)
            .execution_options(synchronize_session=False),
            "certificate_application.compare_and_set_status",
        )
        return result.rowcount == 1
