"""Account endpoints: role summary and profiles."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, HTTPException

from blogkit_service.auth.deps import AccessPolicyDep, CurrentUserDep, OptionalSessionDep
from blogkit_service.auth.rbac import is_admin
from blogkit_service.db.deps import RolesRepoDep, SessionDep, UsersRepoDep
from blogkit_service.rest.schemas import MeRolesResponse, ProfileSchema, ProfileUpdateRequest

logger = structlog.get_logger()

router = APIRouter(tags=["account"])


def _profile_to_schema(user, profile) -> ProfileSchema:
    return ProfileSchema(
        user_id=user.id,
        email=user.email,
        name=user.name,
        image=user.image,
        bio=profile.bio if profile else None,
        location=profile.location if profile else None,
        website=profile.website if profile else None,
        avatar_url=profile.avatar_url if profile else None,
    )


@router.get("/me/roles", response_model=MeRolesResponse)
async def my_roles(
    current: OptionalSessionDep, roles: RolesRepoDep, policy: AccessPolicyDep
) -> MeRolesResponse:
    """Role summary for UI toggles. Lookup failures degrade to no roles."""
    if current is None:
        return MeRolesResponse()
    try:
        user_roles = await roles.get_user_roles(current.user.id)
    except Exception as exc:
        logger.warning("role_lookup_failed", user_id=current.user.id, error=str(exc))
        return MeRolesResponse()
    return MeRolesResponse(
        roles=sorted(user_roles),
        is_admin=is_admin(current.user.email, user_roles, policy.admin_allowlist),
    )


@router.get("/profile/{user_id}", response_model=ProfileSchema)
async def get_profile(user_id: str, users: UsersRepoDep) -> ProfileSchema:
    user = await users.get_user(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return _profile_to_schema(user, await users.get_profile(user_id))


@router.put("/profile/{user_id}", response_model=ProfileSchema)
async def update_profile(
    user_id: str,
    request: ProfileUpdateRequest,
    current_user: CurrentUserDep,
    users: UsersRepoDep,
    session: SessionDep,
) -> ProfileSchema:
    """Update the caller's own name, image and profile fields."""
    if current_user.user.id != user_id:
        raise HTTPException(status_code=403, detail="Forbidden")

    fields = request.model_dump(exclude_unset=True)
    user = await users.update_user(user_id, **fields)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    profile = await users.upsert_profile(user_id, **fields)
    await session.commit()

    logger.info("profile_updated", user_id=user_id, fields=sorted(fields))
    return _profile_to_schema(user, profile)
