"""Repository for posts, tags and categories."""

from __future__ import annotations

from typing import Any

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from blogkit_service.db.models import (
    BookmarkModel,
    CategoryModel,
    CommentModel,
    PostModel,
    PostReactionModel,
    PostTagModel,
    ReviewModel,
    TagModel,
)

POST_FIELDS = (
    "title",
    "slug",
    "excerpt",
    "content",
    "image_url",
    "category_id",
    "published",
    "allow_comments",
    "seo_title",
    "seo_description",
    "format",
    "video_url",
    "audio_url",
    "gallery_images",
)

_POST_LOADS = (
    selectinload(PostModel.author),
    selectinload(PostModel.category),
    selectinload(PostModel.tags),
)


class PostsRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list(self, include_drafts: bool = False) -> list[PostModel]:
        stmt = select(PostModel).options(*_POST_LOADS).order_by(PostModel.created_at.desc())
        if not include_drafts:
            stmt = stmt.where(PostModel.published.is_(True))
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def comment_counts(self, post_ids: list[int]) -> dict[int, int]:
        if not post_ids:
            return {}
        result = await self._session.execute(
            select(CommentModel.post_id, func.count())
            .where(CommentModel.post_id.in_(post_ids), CommentModel.deleted_at.is_(None))
            .group_by(CommentModel.post_id)
        )
        return {post_id: count for post_id, count in result.all()}

    async def get(self, post_id: int) -> PostModel | None:
        result = await self._session.execute(
            select(PostModel)
            .options(*_POST_LOADS)
            .where(PostModel.id == post_id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def get_by_slug(self, slug: str, published_only: bool = False) -> PostModel | None:
        stmt = select(PostModel).options(*_POST_LOADS).where(PostModel.slug == slug)
        if published_only:
            stmt = stmt.where(PostModel.published.is_(True))
        result = await self._session.execute(stmt)
        return result.scalars().first()

    async def create(
        self, author_id: str, fields: dict[str, Any], tag_names: list[str] | None = None
    ) -> PostModel:
        values = {k: v for k, v in fields.items() if k in POST_FIELDS}
        post = PostModel(author_id=author_id, **values)
        self._session.add(post)
        await self._session.flush()
        if tag_names:
            await self._set_tags(post.id, tag_names)
        return await self.get(post.id)  # type: ignore[return-value]

    async def update(
        self, post: PostModel, fields: dict[str, Any], tag_names: list[str] | None = None
    ) -> PostModel:
        """Apply the given fields; ``tag_names=None`` leaves tags untouched."""
        for key, value in fields.items():
            if key in POST_FIELDS:
                setattr(post, key, value)
        await self._session.flush()
        if tag_names is not None:
            await self._set_tags(post.id, tag_names)
        return await self.get(post.id)  # type: ignore[return-value]

    async def delete(self, post: PostModel) -> None:
        await self._session.execute(delete(PostTagModel).where(PostTagModel.post_id == post.id))
        await self._session.execute(delete(BookmarkModel).where(BookmarkModel.post_id == post.id))
        await self._session.execute(delete(CommentModel).where(CommentModel.post_id == post.id))
        await self._session.execute(delete(ReviewModel).where(ReviewModel.post_id == post.id))
        await self._session.execute(
            delete(PostReactionModel).where(PostReactionModel.post_id == post.id)
        )
        await self._session.delete(post)
        await self._session.flush()

    async def _set_tags(self, post_id: int, tag_names: list[str]) -> None:
        names = sorted({name.strip() for name in tag_names if name and name.strip()})
        await self._session.execute(delete(PostTagModel).where(PostTagModel.post_id == post_id))
        if not names:
            return
        result = await self._session.execute(select(TagModel).where(TagModel.name.in_(names)))
        tags = {tag.name: tag for tag in result.scalars().all()}
        for name in names:
            if name not in tags:
                tag = TagModel(name=name)
                self._session.add(tag)
                tags[name] = tag
        await self._session.flush()
        for tag in tags.values():
            self._session.add(PostTagModel(post_id=post_id, tag_id=tag.id))
        await self._session.flush()

    async def count(self, published: bool | None = None) -> int:
        stmt = select(func.count()).select_from(PostModel)
        if published is not None:
            stmt = stmt.where(PostModel.published.is_(published))
        return (await self._session.execute(stmt)).scalar_one()

    async def search(self, query: str, limit: int = 20) -> list[PostModel]:
        pattern = f"%{query.lower()}%"
        result = await self._session.execute(
            select(PostModel)
            .options(*_POST_LOADS)
            .where(
                PostModel.published.is_(True),
                or_(
                    func.lower(PostModel.title).like(pattern),
                    func.lower(PostModel.excerpt).like(pattern),
                ),
            )
            .order_by(PostModel.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def list_categories(self) -> list[CategoryModel]:
        result = await self._session.execute(select(CategoryModel).order_by(CategoryModel.name))
        return list(result.scalars().all())
