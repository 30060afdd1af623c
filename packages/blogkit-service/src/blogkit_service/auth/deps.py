"""FastAPI auth dependencies."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from blogkit_service.auth.gate import AccessPolicy, SessionResolver, resolve_quietly
from blogkit_service.auth.models import RoleSlug, Session, SessionWithRoles
from blogkit_service.auth.rbac import (
    can_edit_any_post,
    can_moderate_reviews,
    has_role,
    is_admin,
    is_allowlisted,
)
from blogkit_service.db.deps import RolesRepoDep


def get_session_resolver(request: Request) -> SessionResolver:
    return request.app.state.session_resolver


def get_access_policy(request: Request) -> AccessPolicy:
    return request.app.state.access_policy


AccessPolicyDep = Annotated[AccessPolicy, Depends(get_access_policy)]


async def get_optional_session(
    request: Request,
    resolver: Annotated[SessionResolver, Depends(get_session_resolver)],
) -> Session | None:
    return await resolve_quietly(resolver, request.headers)


OptionalSessionDep = Annotated[Session | None, Depends(get_optional_session)]


async def get_current_user(session: OptionalSessionDep, roles: RolesRepoDep) -> SessionWithRoles:
    """Resolve the signed-in user and attach their roles once per request."""
    if session is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return SessionWithRoles(session=session, roles=await roles.get_user_roles(session.user.id))


CurrentUserDep = Annotated[SessionWithRoles, Depends(get_current_user)]


async def get_optional_user(
    session: OptionalSessionDep, roles: RolesRepoDep
) -> SessionWithRoles | None:
    if session is None:
        return None
    return SessionWithRoles(session=session, roles=await roles.get_user_roles(session.user.id))


OptionalUserDep = Annotated[SessionWithRoles | None, Depends(get_optional_user)]


async def require_admin(current_user: CurrentUserDep, policy: AccessPolicyDep) -> SessionWithRoles:
    """Admin access with the same precedence as the page gate.

    A configured allowlist replaces the role check entirely.
    """
    if policy.admin_allowlist:
        allowed = is_allowlisted(current_user.user.email, policy.admin_allowlist)
    else:
        allowed = has_role(current_user.roles, RoleSlug.ADMIN)
    if not allowed:
        raise HTTPException(status_code=403, detail="Forbidden")
    return current_user


AdminUserDep = Annotated[SessionWithRoles, Depends(require_admin)]


def user_is_admin(current_user: SessionWithRoles, policy: AccessPolicy) -> bool:
    return is_admin(current_user.user.email, current_user.roles, policy.admin_allowlist)


def user_can_edit_any_post(current_user: SessionWithRoles, policy: AccessPolicy) -> bool:
    return can_edit_any_post(current_user.user.email, current_user.roles, policy.admin_allowlist)


def user_can_moderate_reviews(current_user: SessionWithRoles, policy: AccessPolicy) -> bool:
    return can_moderate_reviews(current_user.user.email, current_user.roles, policy.admin_allowlist)
