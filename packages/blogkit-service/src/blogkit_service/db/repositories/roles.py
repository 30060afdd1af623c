"""Repository for roles and role assignments."""

from __future__ import annotations

from collections.abc import Iterable

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from blogkit_service.auth.models import ROLE_NAMES, RoleSlug
from blogkit_service.db.models import RoleModel, UserRoleModel

logger = structlog.get_logger()


class RolesRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_user_roles(self, user_id: str) -> frozenset[str]:
        """Distinct role slugs assigned to a user."""
        result = await self._session.execute(
            select(RoleModel.slug)
            .join(UserRoleModel, UserRoleModel.role_id == RoleModel.id)
            .where(UserRoleModel.user_id == user_id)
        )
        return frozenset(result.scalars().all())

    async def has_any_role(self, user_id: str, required: Iterable[str]) -> bool:
        roles = await self.get_user_roles(user_id)
        return any(r in roles for r in required)

    async def list_roles(self) -> list[RoleModel]:
        result = await self._session.execute(select(RoleModel).order_by(RoleModel.slug))
        return list(result.scalars().all())

    async def get_role_by_slug(self, slug: str) -> RoleModel | None:
        result = await self._session.execute(select(RoleModel).where(RoleModel.slug == slug))
        return result.scalars().first()

    async def assign_role(self, user_id: str, role_id: int) -> bool:
        """Assign a role. Returns False if the user already held it."""
        existing = await self._session.get(UserRoleModel, (user_id, role_id))
        if existing is not None:
            return False
        self._session.add(UserRoleModel(user_id=user_id, role_id=role_id))
        await self._session.flush()
        return True

    async def revoke_role(self, user_id: str, role_id: int) -> bool:
        result = await self._session.execute(
            delete(UserRoleModel).where(
                UserRoleModel.user_id == user_id,
                UserRoleModel.role_id == role_id,
            )
        )
        return result.rowcount > 0

    async def ensure_default_roles(self) -> int:
        """Insert any missing built-in roles. Returns how many were created."""
        result = await self._session.execute(select(RoleModel.slug))
        present = set(result.scalars().all())
        created = 0
        for slug in RoleSlug:
            if slug.value in present:
                continue
            self._session.add(RoleModel(slug=slug.value, name=ROLE_NAMES[slug]))
            created += 1
        if created:
            await self._session.flush()
            logger.info("roles_seeded", created=created)
        return created
