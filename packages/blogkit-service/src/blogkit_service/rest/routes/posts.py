"""Post, category and search endpoints."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, HTTPException, Query, Response

from blogkit_service.auth.deps import (
    AccessPolicyDep,
    CurrentUserDep,
    OptionalUserDep,
    user_can_edit_any_post,
)
from blogkit_service.auth.gate import AccessPolicy
from blogkit_service.auth.models import SessionWithRoles
from blogkit_service.cache import POSTS_PUBLISHED_KEY, POSTS_WITH_DRAFTS_KEY
from blogkit_service.db.deps import AnalyticsRepoDep, PostsRepoDep, SessionDep
from blogkit_service.db.repositories.analytics import AnalyticsRepo
from blogkit_service.db.repositories.posts import PostsRepo
from blogkit_service.rest.deps import CacheDep
from blogkit_service.rest.schemas import (
    CategorySchema,
    PostListResponse,
    PostSchema,
    PostWriteRequest,
    SearchResponse,
)

logger = structlog.get_logger()

router = APIRouter(tags=["posts"])

POST_LIST_TTL = 300
PUBLIC_LIST_CACHE_CONTROL = "public, s-maxage=300, stale-while-revalidate=600"
PRIVATE_CACHE_CONTROL = "private, no-store"

# Columns that reject NULL; an explicit null in a payload leaves them unchanged
_NON_NULL_FIELDS = frozenset({"title", "slug", "content", "published", "allow_comments", "format"})


def post_view_path(slug: str) -> str:
    return f"/blog/{slug}"


def _post_to_schema(post, comment_count: int = 0, view_count: int = 0) -> PostSchema:
    return PostSchema(
        id=post.id,
        title=post.title,
        slug=post.slug,
        excerpt=post.excerpt,
        content=post.content,
        image_url=post.image_url,
        format=post.format or "standard",
        video_url=post.video_url,
        audio_url=post.audio_url,
        gallery_images=post.gallery_images,
        published=post.published,
        allow_comments=post.allow_comments,
        seo_title=post.seo_title,
        seo_description=post.seo_description,
        author_id=post.author_id,
        author_name=post.author.name if post.author else None,
        category_id=post.category_id,
        category_name=post.category.name if post.category else None,
        tags=[tag.name for tag in post.tags],
        comment_count=comment_count,
        view_count=view_count,
        created_at=post.created_at,
        updated_at=post.updated_at,
    )


async def _with_counts(posts: PostsRepo, analytics: AnalyticsRepo, rows: list) -> list[PostSchema]:
    comment_counts = await posts.comment_counts([p.id for p in rows])
    views = await analytics.views_by_path([post_view_path(p.slug) for p in rows])
    return [
        _post_to_schema(p, comment_counts.get(p.id, 0), views.get(post_view_path(p.slug), 0))
        for p in rows
    ]


def _write_fields(request: PostWriteRequest) -> dict:
    fields = request.model_dump(exclude_unset=True, exclude={"tags"})
    return {k: v for k, v in fields.items() if v is not None or k not in _NON_NULL_FIELDS}


async def _load_editable(
    post_id: int,
    current_user: SessionWithRoles,
    policy: AccessPolicy,
    posts: PostsRepo,
):
    post = await posts.get(post_id)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    if post.author_id != current_user.user.id and not user_can_edit_any_post(current_user, policy):
        raise HTTPException(status_code=403, detail="Forbidden")
    return post


@router.get("/posts", response_model=PostListResponse)
async def list_posts(
    response: Response,
    posts: PostsRepoDep,
    analytics: AnalyticsRepoDep,
    cache: CacheDep,
    policy: AccessPolicyDep,
    current_user: OptionalUserDep,
    include_drafts: bool = False,
) -> PostListResponse:
    """Newest-first post list. Drafts are included only for editors."""
    drafts = (
        include_drafts
        and current_user is not None
        and user_can_edit_any_post(current_user, policy)
    )

    async def load() -> list[dict]:
        rows = await posts.list(include_drafts=drafts)
        return [p.model_dump(mode="json") for p in await _with_counts(posts, analytics, rows)]

    key = POSTS_WITH_DRAFTS_KEY if drafts else POSTS_PUBLISHED_KEY
    items = await cache.get_or_set(key, load, ttl=POST_LIST_TTL)
    response.headers["Cache-Control"] = PRIVATE_CACHE_CONTROL if drafts else PUBLIC_LIST_CACHE_CONTROL
    return PostListResponse(posts=[PostSchema.model_validate(i) for i in items], total=len(items))


@router.get("/posts/by-slug/{slug}", response_model=PostSchema)
async def get_post_by_slug(slug: str, posts: PostsRepoDep, analytics: AnalyticsRepoDep) -> PostSchema:
    post = await posts.get_by_slug(slug, published_only=True)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    return (await _with_counts(posts, analytics, [post]))[0]


@router.get("/posts/{post_id}", response_model=PostSchema)
async def get_post(post_id: int, posts: PostsRepoDep, analytics: AnalyticsRepoDep) -> PostSchema:
    post = await posts.get(post_id)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    return (await _with_counts(posts, analytics, [post]))[0]


@router.post("/posts", response_model=PostSchema, status_code=201)
async def create_post(
    request: PostWriteRequest,
    current_user: CurrentUserDep,
    posts: PostsRepoDep,
    session: SessionDep,
    cache: CacheDep,
) -> PostSchema:
    if not request.title or not request.content or not request.slug:
        raise HTTPException(status_code=400, detail="Title, content and slug are required")
    if await posts.get_by_slug(request.slug):
        raise HTTPException(status_code=409, detail="Slug already in use")

    post = await posts.create(current_user.user.id, _write_fields(request), request.tags)
    await session.commit()
    await cache.invalidate(POSTS_PUBLISHED_KEY, POSTS_WITH_DRAFTS_KEY)

    logger.info("post_created", post_id=post.id, author_id=current_user.user.id)
    return _post_to_schema(post)


@router.put("/posts/{post_id}", response_model=PostSchema)
async def update_post(
    post_id: int,
    request: PostWriteRequest,
    current_user: CurrentUserDep,
    policy: AccessPolicyDep,
    posts: PostsRepoDep,
    session: SessionDep,
    cache: CacheDep,
) -> PostSchema:
    post = await _load_editable(post_id, current_user, policy, posts)
    if request.slug and request.slug != post.slug:
        clash = await posts.get_by_slug(request.slug)
        if clash and clash.id != post.id:
            raise HTTPException(status_code=409, detail="Slug already in use")

    post = await posts.update(post, _write_fields(request), request.tags)
    await session.commit()
    await cache.invalidate(POSTS_PUBLISHED_KEY, POSTS_WITH_DRAFTS_KEY)

    logger.info("post_updated", post_id=post_id, user_id=current_user.user.id)
    return _post_to_schema(post)


@router.delete("/posts/{post_id}", status_code=204)
async def delete_post(
    post_id: int,
    current_user: CurrentUserDep,
    policy: AccessPolicyDep,
    posts: PostsRepoDep,
    session: SessionDep,
    cache: CacheDep,
) -> None:
    post = await _load_editable(post_id, current_user, policy, posts)
    await posts.delete(post)
    await session.commit()
    await cache.invalidate(POSTS_PUBLISHED_KEY, POSTS_WITH_DRAFTS_KEY)
    logger.info("post_deleted", post_id=post_id, user_id=current_user.user.id)


@router.get("/categories", response_model=list[CategorySchema])
async def list_categories(posts: PostsRepoDep) -> list[CategorySchema]:
    return [
        CategorySchema(id=c.id, name=c.name, description=c.description)
        for c in await posts.list_categories()
    ]


@router.get("/search", response_model=SearchResponse)
async def search_posts(
    posts: PostsRepoDep,
    q: str = Query(default="", max_length=200),
    limit: int = Query(default=20, ge=1, le=50),
) -> SearchResponse:
    query = q.strip()
    if not query:
        return SearchResponse(query=query, results=[])
    return SearchResponse(
        query=query,
        results=[_post_to_schema(p) for p in await posts.search(query, limit=limit)],
    )
