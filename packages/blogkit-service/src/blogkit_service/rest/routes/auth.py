"""Auth endpoints: register, login, logout, session."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import structlog
from fastapi import APIRouter, HTTPException, Request, Response

from blogkit_service.auth.deps import OptionalSessionDep, OptionalUserDep
from blogkit_service.auth.models import RoleSlug
from blogkit_service.auth.passwords import verify_password
from blogkit_service.auth.tokens import create_session_token
from blogkit_service.db.deps import RolesRepoDep, SessionDep, UsersRepoDep
from blogkit_service.rest.schemas import (
    LoginRequest,
    RegisterRequest,
    SessionResponse,
    UserSchema,
)
from blogkit_service.settings import settings

logger = structlog.get_logger()

router = APIRouter(prefix="/auth", tags=["auth"])


def _user_to_schema(user) -> UserSchema:
    return UserSchema(id=user.id, email=user.email, name=user.name, image=user.image)


@router.post("/register", response_model=UserSchema, status_code=201)
async def register(
    request: RegisterRequest,
    users: UsersRepoDep,
    roles: RolesRepoDep,
    session: SessionDep,
) -> UserSchema:
    """Create a new user with the default ``user`` role."""
    existing = await users.get_user_by_email(request.email)
    if existing:
        raise HTTPException(status_code=409, detail="Email already registered")

    user = await users.create_user(
        email=request.email, password=request.password, name=request.name
    )
    role = await roles.get_role_by_slug(RoleSlug.USER.value)
    if role is not None:
        await roles.assign_role(user.id, role.id)
    else:
        logger.warning("default_role_missing", role=RoleSlug.USER.value)
    await session.commit()

    logger.info("user_registered", user_id=user.id)
    return _user_to_schema(user)


@router.post("/login", response_model=SessionResponse)
async def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    users: UsersRepoDep,
    roles: RolesRepoDep,
    session: SessionDep,
) -> SessionResponse:
    """Verify credentials, open a session row and set the session cookie."""
    user = await users.get_user_by_email(body.email)
    if not user or not verify_password(body.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password")

    expires_at = datetime.now(UTC) + timedelta(days=settings.session_expire_days)
    row = await users.create_session(
        user_id=user.id,
        expires_at=expires_at,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
    await session.commit()

    token = create_session_token(row.id, user.id, expires_at)
    response.set_cookie(
        settings.session_cookie_name,
        token,
        max_age=settings.session_expire_days * 24 * 60 * 60,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
        path="/",
    )
    user_roles = await roles.get_user_roles(user.id)
    logger.info("user_logged_in", user_id=user.id, session_id=row.id)
    return SessionResponse(
        user=_user_to_schema(user),
        roles=sorted(user_roles),
        expires_at=expires_at,
        token=token,
    )


@router.post("/logout", status_code=204)
async def logout(
    current: OptionalSessionDep,
    response: Response,
    users: UsersRepoDep,
    session: SessionDep,
) -> None:
    """Delete the session row if there is one and clear the cookie."""
    if current is not None:
        await users.delete_session(current.id)
        await session.commit()
        logger.info("user_logged_out", user_id=current.user.id)
    response.delete_cookie(settings.session_cookie_name, path="/")


@router.get("/session", response_model=SessionResponse)
async def get_session_info(current_user: OptionalUserDep) -> SessionResponse:
    if current_user is None:
        return SessionResponse(user=None)
    user = current_user.user
    return SessionResponse(
        user=UserSchema(id=user.id, email=user.email, name=user.name, image=user.image),
        roles=sorted(current_user.roles),
        expires_at=current_user.session.expires_at,
    )
