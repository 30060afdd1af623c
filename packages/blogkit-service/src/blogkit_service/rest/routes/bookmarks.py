"""Bookmark endpoints for the signed-in user."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Response

from blogkit_service.auth.deps import CurrentUserDep
from blogkit_service.db.deps import BookmarksRepoDep, PostsRepoDep, SessionDep
from blogkit_service.rest.schemas import BookmarkRequest, BookmarkSchema

router = APIRouter(prefix="/bookmarks", tags=["bookmarks"])


@router.get("")
async def get_bookmarks(
    current_user: CurrentUserDep,
    bookmarks: BookmarksRepoDep,
    post_id: int | None = None,
) -> dict[str, Any]:
    """``{exists}`` for a single post, otherwise ``{items}``."""
    if post_id is not None:
        return {"exists": await bookmarks.exists(current_user.user.id, post_id)}
    rows = await bookmarks.list_for_user(current_user.user.id)
    return {"items": [BookmarkSchema(**row).model_dump() for row in rows]}


@router.post("")
async def add_bookmark(
    request: BookmarkRequest,
    response: Response,
    current_user: CurrentUserDep,
    bookmarks: BookmarksRepoDep,
    posts: PostsRepoDep,
    session: SessionDep,
) -> dict[str, bool]:
    if not await posts.get(request.post_id):
        raise HTTPException(status_code=404, detail="Post not found")
    added = await bookmarks.add(current_user.user.id, request.post_id)
    if added:
        await session.commit()
        response.status_code = 201
    return {"added": added}


@router.delete("")
async def remove_bookmark(
    post_id: int,
    current_user: CurrentUserDep,
    bookmarks: BookmarksRepoDep,
    session: SessionDep,
) -> dict[str, bool]:
    removed = await bookmarks.remove(current_user.user.id, post_id)
    if removed:
        await session.commit()
    return {"removed": removed}
