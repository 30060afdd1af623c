"""Repository for affiliate links."""

from __future__ import annotations

from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from blogkit_service.db.models import AffiliateLinkModel

LINK_FIELDS = ("name", "url", "description", "is_active")


class AffiliateLinksRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list(self) -> list[AffiliateLinkModel]:
        result = await self._session.execute(
            select(AffiliateLinkModel).order_by(AffiliateLinkModel.created_at.desc())
        )
        return list(result.scalars().all())

    async def get(self, link_id: int) -> AffiliateLinkModel | None:
        return await self._session.get(AffiliateLinkModel, link_id)

    async def create(self, **fields: Any) -> AffiliateLinkModel:
        link = AffiliateLinkModel(**{k: v for k, v in fields.items() if k in LINK_FIELDS})
        self._session.add(link)
        await self._session.flush()
        await self._session.refresh(link)
        return link

    async def update(self, link_id: int, **fields: Any) -> AffiliateLinkModel | None:
        link = await self.get(link_id)
        if link is None:
            return None
        for key, value in fields.items():
            if key in LINK_FIELDS:
                setattr(link, key, value)
        await self._session.flush()
        await self._session.refresh(link)
        return link

    async def delete(self, link_id: int) -> bool:
        link = await self.get(link_id)
        if link is None:
            return False
        await self._session.delete(link)
        await self._session.flush()
        return True

    async def record_click(self, link_id: int) -> AffiliateLinkModel | None:
        """Atomically bump the click counter of an active link."""
        result = await self._session.execute(
            update(AffiliateLinkModel)
            .where(AffiliateLinkModel.id == link_id, AffiliateLinkModel.is_active.is_(True))
            .values(clicks=AffiliateLinkModel.clicks + 1)
        )
        if result.rowcount == 0:
            return None
        link = await self.get(link_id)
        if link is not None:
            await self._session.refresh(link)
        return link
