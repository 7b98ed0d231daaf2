"""
Actor domain entity.

The authenticated identity on whose behalf an operation runs, together with
the roles resolved for it at request time.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field

from certportal.domain.enums import Role

STAFF_ROLES = frozenset(role for role in Role if role is not Role.CITIZEN)


@dataclass(frozen=True)
class Actor:
    """Identity plus role set. Every actor implicitly holds the citizen role."""

    user_id: str
    roles: frozenset[Role] = field(default_factory=frozenset)
    email: str | None = None

    def __post_init__(self):
        if not self.user_id:
            raise ValueError("Actor user_id is required")
        object.__setattr__(self, "roles", frozenset(self.roles) | {Role.CITIZEN})

    def has_role(self, role: Role) -> bool:
        return role in self.roles

    def has_any_role(self, roles: Iterable[Role]) -> bool:
        return not self.roles.isdisjoint(roles)

    @property
    def is_staff(self) -> bool:
        """True when the actor holds any role beyond citizen."""
        return self.has_any_role(STAFF_ROLES)

    @property
    def role_names(self) -> list[str]:
        return sorted(role.value for role in self.roles)
