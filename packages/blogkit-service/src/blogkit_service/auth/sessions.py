"""Database-backed session resolution and role lookup."""

from __future__ import annotations

from collections.abc import Callable, Mapping

import jwt
import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.requests import cookie_parser

from blogkit_service.auth.models import Session, SessionUser
from blogkit_service.auth.tokens import decode_session_token
from blogkit_service.db.engine import get_session_factory
from blogkit_service.db.models import SessionModel
from blogkit_service.db.repositories.roles import RolesRepo
from blogkit_service.db.repositories.users import UsersRepo
from blogkit_service.settings import settings

logger = structlog.get_logger()

SessionFactoryGetter = Callable[[], async_sessionmaker[AsyncSession]]


def extract_session_token(headers: Mapping[str, str], cookie_name: str) -> str | None:
    """Bearer token first, then the session cookie."""
    auth_header = headers.get("authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header.removeprefix("Bearer ").strip() or None
    cookie_header = headers.get("cookie", "")
    if cookie_header:
        return cookie_parser(cookie_header).get(cookie_name) or None
    return None


def session_from_row(row: SessionModel) -> Session:
    user = row.user
    return Session(
        id=row.id,
        user=SessionUser(id=user.id, email=user.email, name=user.name, image=user.image),
        expires_at=row.expires_at,
    )


class DatabaseSessionResolver:
    """Resolve a signed session token to its live session row."""

    def __init__(
        self,
        session_factory: SessionFactoryGetter = get_session_factory,
        cookie_name: str | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._cookie_name = cookie_name or settings.session_cookie_name

    async def resolve(self, headers: Mapping[str, str]) -> Session | None:
        token = extract_session_token(headers, self._cookie_name)
        if not token:
            return None
        try:
            payload = decode_session_token(token)
        except jwt.PyJWTError as exc:
            logger.debug("session_token_rejected", error=str(exc))
            return None

        factory = self._session_factory()
        async with factory() as db:
            row = await UsersRepo(db).get_active_session(payload["sid"], payload["sub"])
            if row is None:
                return None
            return session_from_row(row)


class DatabaseRoleLookup:
    """Role lookup with its own short-lived DB session per call."""

    def __init__(self, session_factory: SessionFactoryGetter = get_session_factory) -> None:
        self._session_factory = session_factory

    async def get_user_roles(self, user_id: str) -> frozenset[str]:
        factory = self._session_factory()
        async with factory() as db:
            return await RolesRepo(db).get_user_roles(user_id)
