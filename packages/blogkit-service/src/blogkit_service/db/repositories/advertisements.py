"""Repository for advertisements."""

from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from blogkit_service.db.models import AdvertisementModel

AD_FIELDS = ("name", "placement", "content", "is_active", "start_date", "end_date")


class AdvertisementsRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list(self) -> list[AdvertisementModel]:
        result = await self._session.execute(
            select(AdvertisementModel).order_by(AdvertisementModel.created_at.desc())
        )
        return list(result.scalars().all())

    async def get(self, ad_id: int) -> AdvertisementModel | None:
        return await self._session.get(AdvertisementModel, ad_id)

    async def create(self, **fields: Any) -> AdvertisementModel:
        ad = AdvertisementModel(**{k: v for k, v in fields.items() if k in AD_FIELDS})
        self._session.add(ad)
        await self._session.flush()
        await self._session.refresh(ad)
        return ad

    async def update(self, ad_id: int, **fields: Any) -> AdvertisementModel | None:
        ad = await self.get(ad_id)
        if ad is None:
            return None
        for key, value in fields.items():
            if key in AD_FIELDS:
                setattr(ad, key, value)
        await self._session.flush()
        await self._session.refresh(ad)
        return ad

    async def delete(self, ad_id: int) -> bool:
        ad = await self.get(ad_id)
        if ad is None:
            return False
        await self._session.delete(ad)
        await self._session.flush()
        return True
