"""Repository for users, sessions and profiles."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from blogkit_service.auth.passwords import hash_password
from blogkit_service.db.models import (
    RoleModel,
    SessionModel,
    UserModel,
    UserProfileModel,
    UserRoleModel,
)

PROFILE_FIELDS = ("bio", "location", "website", "avatar_url")


class UsersRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create_user(
        self, email: str, password: str | None, name: str | None = None
    ) -> UserModel:
        """Create a user. Emails are stored lowercased."""
        user = UserModel(
            email=email.strip().lower(),
            name=name,
            password_hash=hash_password(password) if password else None,
        )
        self._session.add(user)
        await self._session.flush()
        await self._session.refresh(user)
        return user

    async def get_user(self, user_id: str) -> UserModel | None:
        return await self._session.get(UserModel, user_id)

    async def get_user_by_email(self, email: str) -> UserModel | None:
        result = await self._session.execute(
            select(UserModel).where(UserModel.email == email.strip().lower())
        )
        return result.scalars().first()

    async def update_user(self, user_id: str, **fields: Any) -> UserModel | None:
        user = await self.get_user(user_id)
        if user is None:
            return None
        for key in ("name", "image"):
            if key in fields and fields[key] is not None:
                setattr(user, key, fields[key])
        await self._session.flush()
        return user

    async def count_users(self) -> int:
        result = await self._session.execute(select(func.count()).select_from(UserModel))
        return result.scalar_one()

    async def list_users_with_roles(
        self, query: str = "", limit: int = 50
    ) -> list[tuple[UserModel, list[str]]]:
        """Users ordered by email, each with its sorted role slugs."""
        stmt = select(UserModel).order_by(UserModel.email).limit(limit)
        if query:
            pattern = f"%{query.lower()}%"
            stmt = stmt.where(
                or_(func.lower(UserModel.name).like(pattern), UserModel.email.like(pattern))
            )
        users = list((await self._session.execute(stmt)).scalars().all())
        if not users:
            return []

        rows = await self._session.execute(
            select(UserRoleModel.user_id, RoleModel.slug)
            .join(RoleModel, UserRoleModel.role_id == RoleModel.id)
            .where(UserRoleModel.user_id.in_([u.id for u in users]))
        )
        roles_by_user: dict[str, set[str]] = {}
        for user_id, slug in rows.all():
            roles_by_user.setdefault(user_id, set()).add(slug)
        return [(u, sorted(roles_by_user.get(u.id, ()))) for u in users]

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    async def create_session(
        self,
        user_id: str,
        expires_at: datetime,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> SessionModel:
        row = SessionModel(
            user_id=user_id,
            expires_at=expires_at,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        self._session.add(row)
        await self._session.flush()
        await self._session.refresh(row)
        return row

    async def get_active_session(self, session_id: str, user_id: str) -> SessionModel | None:
        """Return the session with its user loaded, or None if missing or expired."""
        result = await self._session.execute(
            select(SessionModel)
            .options(selectinload(SessionModel.user))
            .where(
                SessionModel.id == session_id,
                SessionModel.user_id == user_id,
                SessionModel.expires_at > datetime.now(UTC),
            )
        )
        return result.scalars().first()

    async def delete_session(self, session_id: str) -> bool:
        result = await self._session.execute(
            delete(SessionModel).where(SessionModel.id == session_id)
        )
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    async def get_profile(self, user_id: str) -> UserProfileModel | None:
        return await self._session.get(UserProfileModel, user_id)

    async def upsert_profile(self, user_id: str, **fields: Any) -> UserProfileModel:
        profile = await self.get_profile(user_id)
        if profile is None:
            profile = UserProfileModel(user_id=user_id)
            self._session.add(profile)
        for key in PROFILE_FIELDS:
            if key in fields and fields[key] is not None:
                setattr(profile, key, fields[key])
        await self._session.flush()
        return profile
