"""Repository for post reactions."""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from blogkit_service.db.models import REACTION_TYPES, PostReactionModel


class ReactionsRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def counts(self, post_id: int) -> dict[str, int]:
        """Reaction totals for a post, with every type present."""
        result = await self._session.execute(
            select(PostReactionModel.type, func.count())
            .where(PostReactionModel.post_id == post_id)
            .group_by(PostReactionModel.type)
        )
        counts = dict.fromkeys(REACTION_TYPES, 0)
        for reaction_type, count in result.all():
            counts[reaction_type] = count
        return counts

    async def user_types(self, post_id: int, user_id: str) -> list[str]:
        result = await self._session.execute(
            select(PostReactionModel.type).where(
                PostReactionModel.post_id == post_id,
                PostReactionModel.user_id == user_id,
            )
        )
        held = set(result.scalars().all())
        return [t for t in REACTION_TYPES if t in held]

    async def toggle(self, post_id: int, user_id: str, reaction_type: str) -> bool:
        """Add the reaction, or remove it if the user already had it.

        Returns True when the reaction was added.
        """
        key = (post_id, user_id, reaction_type)
        existing = await self._session.get(PostReactionModel, key)
        if existing is not None:
            await self._session.delete(existing)
            await self._session.flush()
            return False
        self._session.add(PostReactionModel(post_id=post_id, user_id=user_id, type=reaction_type))
        await self._session.flush()
        return True
