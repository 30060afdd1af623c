"""RSS feed and sitemap."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Response
from sqlalchemy.exc import SQLAlchemyError

from blogkit_service.db.deps import PostsRepoDep
from blogkit_service.db.engine import get_session_factory
from blogkit_service.db.repositories.posts import PostsRepo
from blogkit_service.feeds import FeedItem, SitemapUrl, render_rss, render_sitemap, summarize
from blogkit_service.settings import settings

logger = structlog.get_logger()

router = APIRouter(tags=["feeds"])

XML_MEDIA_TYPE = "application/xml; charset=utf-8"

SitemapLoader = Callable[[], Awaitable[list[SitemapUrl]]]


async def load_post_urls() -> list[SitemapUrl]:
    factory = get_session_factory()
    async with factory() as db:
        posts = await PostsRepo(db).list()
    return [
        SitemapUrl(
            loc=f"{settings.base_url}/blog/{p.slug}",
            lastmod=p.updated_at or p.created_at,
        )
        for p in posts
    ]


def get_sitemap_loader() -> SitemapLoader:
    return load_post_urls


@router.get("/rss.xml")
async def rss_feed(posts: PostsRepoDep) -> Response:
    rows = sorted(await posts.list(), key=lambda p: p.created_at)
    items = [
        FeedItem(
            title=p.title,
            url=f"{settings.base_url}/blog/{p.slug}",
            guid=str(p.id),
            description=summarize(p.content),
            published_at=p.created_at,
        )
        for p in rows
    ]
    body = render_rss(
        items,
        title=settings.site_title,
        description=settings.site_description,
        site_url=settings.base_url,
    )
    return Response(content=body, media_type=XML_MEDIA_TYPE)


@router.get("/sitemap.xml")
async def sitemap(loader: Annotated[SitemapLoader, Depends(get_sitemap_loader)]) -> Response:
    """Site root plus one entry per post; just the root when the database is down."""
    root = SitemapUrl(loc=settings.base_url, lastmod=datetime.now(UTC))
    try:
        post_urls = await loader()
    except (SQLAlchemyError, OSError, RuntimeError) as exc:
        logger.warning("sitemap_db_unavailable", error=str(exc))
        post_urls = []
    return Response(content=render_sitemap([root, *post_urls]), media_type=XML_MEDIA_TYPE)
