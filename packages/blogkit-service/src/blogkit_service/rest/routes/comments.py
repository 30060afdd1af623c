"""Comment endpoints: per-post threads, own comments and moderation."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, HTTPException

from blogkit_service.auth.deps import AccessPolicyDep, CurrentUserDep, user_is_admin
from blogkit_service.db.deps import CommentsRepoDep, PostsRepoDep, SessionDep
from blogkit_service.rest.schemas import AccountCommentSchema, CommentCreateRequest, CommentSchema

logger = structlog.get_logger()

router = APIRouter(tags=["comments"])


def _comment_to_schema(comment) -> CommentSchema:
    return CommentSchema(
        id=comment.id,
        post_id=comment.post_id,
        author_id=comment.author_id,
        author_name=comment.author.name if comment.author else None,
        content=comment.content,
        rating=comment.rating,
        created_at=comment.created_at,
    )


async def _load_live_comment(comment_id: int, comments):
    comment = await comments.get(comment_id)
    if not comment or comment.deleted_at is not None:
        raise HTTPException(status_code=404, detail="Comment not found")
    return comment


@router.get("/posts/{post_id}/comments", response_model=list[CommentSchema])
async def list_comments(
    post_id: int, posts: PostsRepoDep, comments: CommentsRepoDep
) -> list[CommentSchema]:
    if not await posts.get(post_id):
        raise HTTPException(status_code=404, detail="Post not found")
    return [_comment_to_schema(c) for c in await comments.list_for_post(post_id)]


@router.post("/posts/{post_id}/comments", response_model=CommentSchema, status_code=201)
async def create_comment(
    post_id: int,
    request: CommentCreateRequest,
    current_user: CurrentUserDep,
    posts: PostsRepoDep,
    comments: CommentsRepoDep,
    session: SessionDep,
) -> CommentSchema:
    post = await posts.get(post_id)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    if not post.allow_comments:
        raise HTTPException(status_code=403, detail="Comments are disabled for this post")

    comment = await comments.create(
        post_id=post_id,
        author_id=current_user.user.id,
        content=request.content.strip(),
        rating=request.rating,
    )
    await session.commit()
    logger.info("comment_created", comment_id=comment.id, post_id=post_id)
    return _comment_to_schema(comment)


@router.get("/account/comments", response_model=list[AccountCommentSchema])
async def list_own_comments(
    current_user: CurrentUserDep, comments: CommentsRepoDep
) -> list[AccountCommentSchema]:
    return [
        AccountCommentSchema(
            id=c.id,
            content=c.content,
            rating=c.rating,
            post_id=c.post_id,
            post_title=c.post.title if c.post else None,
            post_slug=c.post.slug if c.post else None,
            created_at=c.created_at,
        )
        for c in await comments.list_for_author(current_user.user.id)
    ]


@router.delete("/account/comments/{comment_id}", status_code=204)
async def delete_own_comment(
    comment_id: int,
    current_user: CurrentUserDep,
    comments: CommentsRepoDep,
    session: SessionDep,
) -> None:
    comment = await _load_live_comment(comment_id, comments)
    if comment.author_id != current_user.user.id:
        raise HTTPException(status_code=403, detail="Forbidden")
    await comments.soft_delete(comment)
    await session.commit()
    logger.info("comment_deleted", comment_id=comment_id, by="author")


@router.delete("/admin/comments/{comment_id}", status_code=204)
async def moderate_comment(
    comment_id: int,
    current_user: CurrentUserDep,
    policy: AccessPolicyDep,
    comments: CommentsRepoDep,
    session: SessionDep,
) -> None:
    """Soft-delete any comment. Allowlisted users and admins may moderate."""
    if not user_is_admin(current_user, policy):
        raise HTTPException(status_code=403, detail="Forbidden")
    comment = await _load_live_comment(comment_id, comments)
    await comments.soft_delete(comment)
    await session.commit()
    logger.info("comment_deleted", comment_id=comment_id, by="admin", user_id=current_user.user.id)
