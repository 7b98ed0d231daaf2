from typing import Annotated

from fastapi import APIRouter, Depends, status

from certportal.application.services.role_service import RoleService
from certportal.domain.entities.actor import Actor
from certportal.domain.enums import Role
from certportal.presentation.api.dependencies import (
    get_current_actor, get_role_service, get_role_service_transactional,
    require_role)
from certportal.presentation.api.v1.schemas.role import (UserRoleAssign,
                                                         UserRolesResponse)

router = APIRouter()

require_role_admin = require_role(Role.SDO, Role.ADMIN)


@router.get("/me", response_model=UserRolesResponse)
async def get_my_roles(actor: Annotated[Actor, Depends(get_current_actor)]):
    """Roles held by the caller, including the implicit citizen role"""
    return UserRolesResponse(user_id=actor.user_id, roles=actor.role_names)


@router.get("/users/{user_id}", response_model=UserRolesResponse)
async def get_user_roles(
    user_id: str,
    service: Annotated[RoleService, Depends(get_role_service)],
    _: Annotated[Actor, Depends(require_role_admin)],
):
    """Roles assigned to a user (sdo or admin only)"""
    roles = await service.get_roles(user_id)
    return UserRolesResponse(
        user_id=user_id,
        roles=sorted({Role.CITIZEN.value} | {r.value for r in roles}),
    )


@router.post("/assignments", response_model=UserRolesResponse, status_code=status.HTTP_201_CREATED)
async def assign_role(
    data: UserRoleAssign,
    service: Annotated[RoleService, Depends(get_role_service_transactional)],
    actor: Annotated[Actor, Depends(require_role_admin)],
):
    """Assign a processing role to a user (sdo or admin only)"""
    await service.assign_role(data.user_id, data.role, assigned_by=actor.user_id)
    roles = await service.get_roles(data.user_id)
    return UserRolesResponse(
        user_id=data.user_id,
        roles=sorted({Role.CITIZEN.value} | {r.value for r in roles}),
    )


@router.delete("/assignments/{user_id}/{role}", status_code=status.HTTP_204_NO_CONTENT)
async def revoke_role(
    user_id: str,
    role: Role,
    service: Annotated[RoleService, Depends(get_role_service_transactional)],
    _: Annotated[Actor, Depends(require_role_admin)],
):
    """Revoke a processing role (sdo or admin only)"""
    await service.revoke_role(user_id, role)
