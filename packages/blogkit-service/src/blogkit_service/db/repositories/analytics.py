"""Repository for first-party analytics events."""

from __future__ import annotations

from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from blogkit_service.db.models import AnalyticsEventModel


class AnalyticsRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def record(
        self,
        name: str,
        path: str,
        referrer: str | None = None,
        user_id: str | None = None,
        session_id: str | None = None,
        properties: dict[str, Any] | None = None,
    ) -> AnalyticsEventModel:
        event = AnalyticsEventModel(
            name=name,
            path=path,
            referrer=referrer,
            user_id=user_id,
            session_id=session_id,
            properties=properties,
        )
        self._session.add(event)
        await self._session.flush()
        return event

    async def views_by_path(self, paths: list[str]) -> dict[str, int]:
        """Event counts per path, in one grouped query."""
        if not paths:
            return {}
        result = await self._session.execute(
            select(AnalyticsEventModel.path, func.count())
            .where(AnalyticsEventModel.path.in_(paths))
            .group_by(AnalyticsEventModel.path)
        )
        return {path: count for path, count in result.all()}

    async def count(self) -> int:
        result = await self._session.execute(select(func.count()).select_from(AnalyticsEventModel))
        return result.scalar_one()
