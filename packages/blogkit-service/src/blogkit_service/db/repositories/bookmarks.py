"""Repository for user bookmarks."""

from __future__ import annotations

from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from blogkit_service.db.models import BookmarkModel, PostModel


class BookmarksRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def exists(self, user_id: str, post_id: int) -> bool:
        return await self._session.get(BookmarkModel, (user_id, post_id)) is not None

    async def list_for_user(self, user_id: str) -> list[dict[str, Any]]:
        """Bookmarked posts, newest bookmark first."""
        result = await self._session.execute(
            select(BookmarkModel.post_id, BookmarkModel.created_at, PostModel.title, PostModel.slug)
            .join(PostModel, BookmarkModel.post_id == PostModel.id)
            .where(BookmarkModel.user_id == user_id)
            .order_by(BookmarkModel.created_at.desc())
        )
        return [
            {"post_id": post_id, "created_at": created_at, "title": title, "slug": slug}
            for post_id, created_at, title, slug in result.all()
        ]

    async def add(self, user_id: str, post_id: int) -> bool:
        """Bookmark a post. Returns False if it was already bookmarked."""
        if await self.exists(user_id, post_id):
            return False
        self._session.add(BookmarkModel(user_id=user_id, post_id=post_id))
        await self._session.flush()
        return True

    async def remove(self, user_id: str, post_id: int) -> bool:
        result = await self._session.execute(
            delete(BookmarkModel).where(
                BookmarkModel.user_id == user_id,
                BookmarkModel.post_id == post_id,
            )
        )
        return result.rowcount > 0
