from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from certportal.infrastructure.persistence.models.user_role import UserRole
from certportal.infrastructure.persistence.repositories.base import \
    BaseRepository


class UserRoleRepository(BaseRepository[UserRole]):
    """Repository for stored role assignments."""

    def __init__(self, db: AsyncSession, timeout: float | None = None):
        super().__init__(db, UserRole, timeout)

    async def get_roles(self, user_id: str) -> list[str]:
        result = await self._execute(
            select(UserRole.role).where(UserRole.user_id == user_id).order_by(UserRole.role),
            "user_role.get_roles",
        )
        return list(result.scalars().all())

    async def get_assignment(self, user_id: str, role: str) -> UserRole | None:
        result = await self._execute(
            select(UserRole).where(UserRole.user_id == user_id, UserRole.role == role),
            "user_role.get_assignment",
        )
        return result.scalar_one_or_none()
