from pydantic import BaseModel, Field

from certportal.domain.enums import Role


class UserRoleAssign(BaseModel):
    """Schema for assigning a role to a user"""

    user_id: str = Field(..., min_length=1)
    role: Role


class UserRolesResponse(BaseModel):
    """Roles held by a user, including the implicit citizen role"""

    user_id: str
    roles: list[str]
