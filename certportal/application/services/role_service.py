from collections.abc import Awaitable, Callable

from certportal.domain.enums import Role
from certportal.domain.exceptions import (ResourceNotFoundException,
                                          ValidationException)
from certportal.infrastructure.cache.redis_cache import CacheService
from certportal.infrastructure.config.settings import get_settings
from certportal.infrastructure.exceptions import DuplicateKeyError
from certportal.infrastructure.persistence.models.user_role import UserRole
from certportal.infrastructure.persistence.repositories.user_role_repo import \
    UserRoleRepository


class RoleService:
    """
    Role lookups and assignments with Redis caching.

    The citizen role is implicit for every authenticated user and is never
    stored, assigned or revoked.
    """

    def __init__(
        self,
        role_repo: UserRoleRepository,
        cache_service: CacheService | None = None,
        on_commit: Callable[[Callable[[], Awaitable[None]]], None] | None = None,
    ):
        self.role_repo = role_repo
        self.cache = cache_service
        self.on_commit = on_commit
        self.cache_ttl = get_settings().cache_ttl_roles

    @staticmethod
    def _cache_key(user_id: str) -> str:
        return f"roles:{user_id}"

    async def get_roles(self, user_id: str) -> set[Role]:
        """
        Stored roles of a user (without the implicit citizen role).

        Uses Redis cache to avoid repeated queries.
        """
        cache_key = self._cache_key(user_id)
        if self.cache and self.cache.is_available():
            cached = await self.cache.get(cache_key)
            if cached is not None:
                return {Role(value) for value in cached}

        stored = await self.role_repo.get_roles(user_id)
        roles = {Role(value) for value in stored if value in Role.values()}

        if self.cache and self.cache.is_available():
            await self.cache.set(cache_key, sorted(r.value for r in roles), ttl=self.cache_ttl)

        return roles

    async def assign_role(self, user_id: str, role: Role, assigned_by: str) -> UserRole:
        """
        Raises:
            ValidationException: Role is citizen or already held
        """
        if role is Role.CITIZEN:
            raise ValidationException("The citizen role is implicit and cannot be assigned", field="role")

        if await self.role_repo.get_assignment(user_id, role.value):
            raise ValidationException("User already has this role", field="role")

        try:
            assignment = await self.role_repo.create_unique(
                UserRole(user_id=user_id, role=role.value, assigned_by=assigned_by)
            )
        except DuplicateKeyError as e:
            raise ValidationException("User already has this role", field="role") from e

        await self._invalidate_now_and_after_commit(user_id)
        return assignment

    async def revoke_role(self, user_id: str, role: Role) -> None:
        if role is Role.CITIZEN:
            raise ValidationException("The citizen role is implicit and cannot be revoked", field="role")

        assignment = await self.role_repo.get_assignment(user_id, role.value)
        if assignment is None:
            raise ResourceNotFoundException("Role assignment", f"{user_id}:{role.value}")

        await self.role_repo.delete(assignment)
        await self._invalidate_now_and_after_commit(user_id)

    async def _invalidate_now_and_after_commit(self, user_id: str) -> None:
        """
        A lookup running before the commit can re-cache the old role set,
        so the entry is dropped again once the change is committed.
        """
        await self.invalidate_user_cache(user_id)
        if self.on_commit is not None:
            self.on_commit(lambda: self.invalidate_user_cache(user_id))

    async def invalidate_user_cache(self, user_id: str) -> None:
        """Invalidate cached roles for a user after assignment changes"""
        if self.cache and self.cache.is_available():
            await self.cache.delete(self._cache_key(user_id))
