"""Review endpoints: paginated listing, submission and moderation.

New reviews start as ``pending``. The public listing for a post shows
approved reviews only; authors see all of their own, and moderators may
list any status.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, HTTPException, Query, Response

from blogkit_service.auth.deps import (
    AccessPolicyDep,
    CurrentUserDep,
    OptionalUserDep,
    user_can_moderate_reviews,
)
from blogkit_service.db.deps import PostsRepoDep, ReviewsRepoDep, SessionDep
from blogkit_service.db.models import REVIEW_STATUSES
from blogkit_service.rest.routes.reactions import NO_STORE, parse_post_id
from blogkit_service.rest.schemas import (
    ReviewCreateRequest,
    ReviewListResponse,
    ReviewModerationRequest,
    ReviewSchema,
)

logger = structlog.get_logger()

router = APIRouter(prefix="/reviews", tags=["reviews"])

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 50
MIN_BODY_LENGTH = 2
MAX_BODY_LENGTH = 4000

_ACTIONS = {"approve": "approved", "reject": "rejected"}


def _positive_int(raw: str | None, default: int, maximum: int | None = None) -> int:
    """Lenient paging parameter: anything unusable falls back to the default."""
    try:
        value = int(raw) if raw is not None else default
    except ValueError:
        return default
    if value <= 0 or (maximum is not None and value > maximum):
        return default
    return value


def _review_to_schema(review, viewer_id: str | None = None) -> ReviewSchema:
    return ReviewSchema(
        id=review.id,
        post_id=review.post_id,
        author_id=review.author_id,
        author_name=review.author.name if review.author else None,
        title=review.title,
        body=review.body,
        rating=review.rating,
        status=review.status,
        is_owner=viewer_id is not None and review.author_id == viewer_id,
        created_at=review.created_at,
    )


@router.get("", response_model=ReviewListResponse)
async def list_reviews(
    response: Response,
    current_user: OptionalUserDep,
    policy: AccessPolicyDep,
    reviews: ReviewsRepoDep,
    post_id: str | None = Query(default=None, alias="postId"),
    mine: str | None = None,
    status: str | None = None,
    page: str | None = None,
    page_size: str | None = Query(default=None, alias="pageSize"),
) -> ReviewListResponse:
    own = mine in ("1", "true")
    if not post_id and not own:
        raise HTTPException(status_code=400, detail="postId or mine=1 is required")
    if status is not None and status not in REVIEW_STATUSES:
        raise HTTPException(status_code=400, detail="Invalid status")

    viewer_id = current_user.user.id if current_user else None
    page_num = _positive_int(page, 1)
    size = _positive_int(page_size, DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE)

    if own:
        if current_user is None:
            raise HTTPException(status_code=401, detail="Authentication required")
        rows, total = await reviews.page(
            author_id=viewer_id, status=status, page=page_num, page_size=size
        )
    else:
        if status not in (None, "approved") and not (
            current_user and user_can_moderate_reviews(current_user, policy)
        ):
            raise HTTPException(status_code=403, detail="Forbidden")
        rows, total = await reviews.page(
            post_id=parse_post_id(post_id),
            status=status or "approved",
            page=page_num,
            page_size=size,
        )

    response.headers["Cache-Control"] = NO_STORE
    return ReviewListResponse(
        items=[_review_to_schema(r, viewer_id) for r in rows],
        total=total,
        page=page_num,
        page_size=size,
    )


@router.post("", response_model=ReviewSchema, status_code=201)
async def create_review(
    request: ReviewCreateRequest,
    current_user: CurrentUserDep,
    posts: PostsRepoDep,
    reviews: ReviewsRepoDep,
    session: SessionDep,
) -> ReviewSchema:
    if request.post_id is None or not request.body:
        raise HTTPException(status_code=400, detail="postId and body are required")
    if request.hp and request.hp.strip():
        raise HTTPException(status_code=400, detail="Spam detected")
    if request.rating is not None and not 1 <= request.rating <= 5:
        raise HTTPException(status_code=400, detail="Rating must be between 1 and 5")
    body = request.body.strip()
    if len(body) < MIN_BODY_LENGTH:
        raise HTTPException(status_code=400, detail="Review is too short")
    if len(body) > MAX_BODY_LENGTH:
        raise HTTPException(status_code=400, detail="Review is too long")

    if not await posts.get(request.post_id):
        raise HTTPException(status_code=404, detail="Post not found")
    author_id = current_user.user.id
    if await reviews.exists_for_author(request.post_id, author_id):
        raise HTTPException(status_code=409, detail="You have already reviewed this post")

    review = await reviews.create(
        post_id=request.post_id,
        author_id=author_id,
        body=body,
        title=request.title.strip() if request.title else None,
        rating=request.rating,
    )
    await session.commit()
    logger.info("review_submitted", review_id=review.id, post_id=request.post_id)
    return _review_to_schema(review, author_id)


@router.post("/{review_id}/moderate", response_model=ReviewSchema)
async def moderate_review(
    review_id: int,
    request: ReviewModerationRequest,
    current_user: CurrentUserDep,
    policy: AccessPolicyDep,
    reviews: ReviewsRepoDep,
    session: SessionDep,
) -> ReviewSchema:
    """Approve or reject a review.

    With an allowlist configured only allowlisted users may moderate;
    otherwise admins, editors and moderators may.
    """
    if not user_can_moderate_reviews(current_user, policy):
        raise HTTPException(status_code=403, detail="Forbidden")
    next_status = _ACTIONS.get(request.action or "")
    if next_status is None:
        raise HTTPException(status_code=400, detail="Invalid action")

    review = await reviews.get(review_id)
    if not review:
        raise HTTPException(status_code=404, detail="Review not found")
    review = await reviews.set_status(review, next_status)
    await session.commit()
    logger.info(
        "review_moderated",
        review_id=review_id,
        status=next_status,
        user_id=current_user.user.id,
    )
    return _review_to_schema(review, current_user.user.id)
