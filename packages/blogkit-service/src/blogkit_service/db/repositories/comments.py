"""Repository for post comments."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from blogkit_service.db.models import CommentModel


class CommentsRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self, post_id: int, author_id: str, content: str, rating: int | None = None
    ) -> CommentModel:
        comment = CommentModel(
            post_id=post_id, author_id=author_id, content=content, rating=rating
        )
        self._session.add(comment)
        await self._session.flush()
        result = await self._session.execute(
            select(CommentModel)
            .options(selectinload(CommentModel.author))
            .where(CommentModel.id == comment.id)
        )
        return result.scalars().one()

    async def get(self, comment_id: int) -> CommentModel | None:
        return await self._session.get(CommentModel, comment_id)

    async def list_for_post(self, post_id: int) -> list[CommentModel]:
        result = await self._session.execute(
            select(CommentModel)
            .options(selectinload(CommentModel.author))
            .where(CommentModel.post_id == post_id, CommentModel.deleted_at.is_(None))
            .order_by(CommentModel.created_at)
        )
        return list(result.scalars().all())

    async def list_for_author(self, author_id: str) -> list[CommentModel]:
        result = await self._session.execute(
            select(CommentModel)
            .options(selectinload(CommentModel.post))
            .where(CommentModel.author_id == author_id, CommentModel.deleted_at.is_(None))
            .order_by(CommentModel.created_at.desc())
        )
        return list(result.scalars().all())

    async def soft_delete(self, comment: CommentModel) -> None:
        comment.deleted_at = datetime.now(UTC)
        await self._session.flush()

    async def count(self) -> int:
        result = await self._session.execute(
            select(func.count())
            .select_from(CommentModel)
            .where(CommentModel.deleted_at.is_(None))
        )
        return result.scalar_one()
