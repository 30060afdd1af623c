"""Admin API: user directory and role management."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, HTTPException, Query

from blogkit_service.auth.deps import AdminUserDep
from blogkit_service.db.deps import RolesRepoDep, SessionDep, UsersRepoDep
from blogkit_service.rest.schemas import (
    AdminUserListResponse,
    AdminUserSchema,
    RoleChangeRequest,
    RoleChangeResponse,
    RoleSchema,
)

logger = structlog.get_logger()

router = APIRouter(prefix="/admin", tags=["admin"])

MAX_USER_PAGE = 100


@router.get("/users", response_model=AdminUserListResponse)
async def list_users(
    _admin: AdminUserDep,
    users: UsersRepoDep,
    q: str = "",
    limit: int = Query(default=50),
) -> AdminUserListResponse:
    """Users with their roles. ``limit`` is clamped to 1..100."""
    limit = max(1, min(limit, MAX_USER_PAGE))
    rows = await users.list_users_with_roles(query=q.strip(), limit=limit)
    return AdminUserListResponse(
        users=[
            AdminUserSchema(
                id=user.id,
                email=user.email,
                name=user.name,
                image=user.image,
                roles=roles,
                created_at=user.created_at,
            )
            for user, roles in rows
        ]
    )


@router.get("/roles", response_model=list[RoleSchema])
async def list_roles(_admin: AdminUserDep, roles: RolesRepoDep) -> list[RoleSchema]:
    return [
        RoleSchema(id=r.id, slug=r.slug, name=r.name, description=r.description)
        for r in await roles.list_roles()
    ]


async def _resolve_role_change(user_id: str, request: RoleChangeRequest, users, roles):
    if not request.role:
        raise HTTPException(status_code=400, detail="Role is required")
    if not await users.get_user(user_id):
        raise HTTPException(status_code=404, detail="User not found")
    role = await roles.get_role_by_slug(request.role)
    if not role:
        raise HTTPException(status_code=404, detail="Role not found")
    return role


@router.post("/users/{user_id}/roles", response_model=RoleChangeResponse)
async def assign_role(
    user_id: str,
    request: RoleChangeRequest,
    admin: AdminUserDep,
    users: UsersRepoDep,
    roles: RolesRepoDep,
    session: SessionDep,
) -> RoleChangeResponse:
    role = await _resolve_role_change(user_id, request, users, roles)
    changed = await roles.assign_role(user_id, role.id)
    await session.commit()
    logger.info(
        "role_assigned", user_id=user_id, role=role.slug, changed=changed, by=admin.user.id
    )
    return RoleChangeResponse(user_id=user_id, role=role.slug, changed=changed)


@router.delete("/users/{user_id}/roles", response_model=RoleChangeResponse)
async def revoke_role(
    user_id: str,
    request: RoleChangeRequest,
    admin: AdminUserDep,
    users: UsersRepoDep,
    roles: RolesRepoDep,
    session: SessionDep,
) -> RoleChangeResponse:
    role = await _resolve_role_change(user_id, request, users, roles)
    changed = await roles.revoke_role(user_id, role.id)
    await session.commit()
    logger.info("role_revoked", user_id=user_id, role=role.slug, changed=changed, by=admin.user.id)
    return RoleChangeResponse(user_id=user_id, role=role.slug, changed=changed)
