from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from certportal.infrastructure.persistence.models.audit_entry import \
    ApplicationAuditEntry
from certportal.infrastructure.persistence.repositories.base import \
    BaseRepository


class AuditRepository(BaseRepository[ApplicationAuditEntry]):
    """Append-only access to the application audit trail."""

    def __init__(self, db: AsyncSession, timeout: float | None = None):
        super().__init__(db, ApplicationAuditEntry, timeout)

    async def append(self, entry: ApplicationAuditEntry) -> ApplicationAuditEntry:
        """Number the entry after the application's latest one and insert it"""
        result = await self._execute(
            select(func.coalesce(func.max(ApplicationAuditEntry.sequence), 0)).where(
                ApplicationAuditEntry.application_id == entry.application_id
            ),
            "application_audit_entry.next_sequence",
        )
        entry.sequence = result.scalar_one() + 1
        return await self.create(entry)

    async def list_for_application(self, application_id: str) -> list[ApplicationAuditEntry]:
        """Entries in the order the transitions happened"""
        result = await self._execute(
            select(ApplicationAuditEntry)
            .where(ApplicationAuditEntry.application_id == application_id)
            .order_by(ApplicationAuditEntry.sequence.asc()),
            "application_audit_entry.list_for_application",
        )
        return list(result.scalars().all())

    async def count_transitions_since(self, to_status: str, since: datetime) -> int:
        result = await self._execute(
            select(func.count(ApplicationAuditEntry.id)).where(
                ApplicationAuditEntry.to_status == to_status,
                ApplicationAuditEntry.occurred_at >= since,
            ),
            "application_audit_entry.count_transitions_since",
        )
        return result.scalar_one()
