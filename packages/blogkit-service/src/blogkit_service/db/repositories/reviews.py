"""Repository for post reviews and their moderation status."""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from blogkit_service.db.models import ReviewModel


class ReviewsRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, review_id: int) -> ReviewModel | None:
        """A live review with its author loaded. Soft-deleted reviews are missing."""
        result = await self._session.execute(
            select(ReviewModel)
            .options(selectinload(ReviewModel.author))
            .where(ReviewModel.id == review_id, ReviewModel.deleted_at.is_(None))
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def exists_for_author(self, post_id: int, author_id: str) -> bool:
        result = await self._session.execute(
            select(ReviewModel.id).where(
                ReviewModel.post_id == post_id, ReviewModel.author_id == author_id
            )
        )
        return result.first() is not None

    async def page(
        self,
        *,
        post_id: int | None = None,
        author_id: str | None = None,
        status: str | None = None,
        page: int = 1,
        page_size: int = 10,
    ) -> tuple[list[ReviewModel], int]:
        """One page of live reviews, newest first, plus the total match count."""
        conditions = [ReviewModel.deleted_at.is_(None)]
        if post_id is not None:
            conditions.append(ReviewModel.post_id == post_id)
        if author_id is not None:
            conditions.append(ReviewModel.author_id == author_id)
        if status is not None:
            conditions.append(ReviewModel.status == status)

        total = (
            await self._session.execute(
                select(func.count()).select_from(ReviewModel).where(*conditions)
            )
        ).scalar_one()
        result = await self._session.execute(
            select(ReviewModel)
            .options(selectinload(ReviewModel.author))
            .where(*conditions)
            .order_by(ReviewModel.created_at.desc(), ReviewModel.id.desc())
            .limit(page_size)
            .offset((page - 1) * page_size)
        )
        return list(result.scalars().all()), total

    async def create(
        self,
        post_id: int,
        author_id: str,
        body: str,
        title: str | None = None,
        rating: int | None = None,
    ) -> ReviewModel:
        review = ReviewModel(
            post_id=post_id, author_id=author_id, body=body, title=title, rating=rating
        )
        self._session.add(review)
        await self._session.flush()
        return await self.get(review.id)  # type: ignore[return-value]

    async def set_status(self, review: ReviewModel, status: str) -> ReviewModel:
        review.status = status
        await self._session.flush()
        return review
