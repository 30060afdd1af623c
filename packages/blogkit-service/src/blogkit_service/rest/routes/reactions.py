"""Post reaction endpoints: per-type counts and toggling."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, HTTPException, Query, Response

from blogkit_service.auth.deps import CurrentUserDep, OptionalUserDep
from blogkit_service.db.deps import PostsRepoDep, ReactionsRepoDep, SessionDep
from blogkit_service.db.models import REACTION_TYPES
from blogkit_service.rest.schemas import ReactionsResponse, ReactionToggleRequest

logger = structlog.get_logger()

router = APIRouter(prefix="/reactions", tags=["reactions"])

NO_STORE = "private, no-store"


def parse_post_id(raw: str | None) -> int:
    if not raw:
        raise HTTPException(status_code=400, detail="postId is required")
    try:
        return int(raw)
    except ValueError:
        raise HTTPException(status_code=400, detail="postId must be an integer") from None


async def _summary(reactions, post_id: int, user_id: str | None) -> ReactionsResponse:
    user_types = await reactions.user_types(post_id, user_id) if user_id else []
    return ReactionsResponse(counts=await reactions.counts(post_id), user_types=user_types)


@router.get("", response_model=ReactionsResponse)
async def get_reactions(
    response: Response,
    current_user: OptionalUserDep,
    reactions: ReactionsRepoDep,
    post_id: str | None = Query(default=None, alias="postId"),
) -> ReactionsResponse:
    """Counts for every reaction type, plus the caller's own reactions."""
    pid = parse_post_id(post_id)
    response.headers["Cache-Control"] = NO_STORE
    return await _summary(reactions, pid, current_user.user.id if current_user else None)


@router.post("", response_model=ReactionsResponse)
async def toggle_reaction(
    request: ReactionToggleRequest,
    response: Response,
    current_user: CurrentUserDep,
    reactions: ReactionsRepoDep,
    posts: PostsRepoDep,
    session: SessionDep,
) -> ReactionsResponse:
    if request.post_id is None or request.type is None:
        raise HTTPException(status_code=400, detail="postId and type are required")
    if request.type not in REACTION_TYPES:
        raise HTTPException(status_code=400, detail="Invalid reaction type")
    if not await posts.get(request.post_id):
        raise HTTPException(status_code=404, detail="Post not found")

    user_id = current_user.user.id
    added = await reactions.toggle(request.post_id, user_id, request.type)
    await session.commit()
    logger.info(
        "reaction_toggled", post_id=request.post_id, type=request.type, added=added
    )
    response.headers["Cache-Control"] = NO_STORE
    return await _summary(reactions, request.post_id, user_id)
