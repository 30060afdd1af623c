"""Gated page endpoints: sign-in pages, admin dashboard and account overview.

All of these sit behind ``AccessGateMiddleware``. The admin and account
dependencies repeat its check so the handlers are safe when mounted without it.
"""

from __future__ import annotations

from fastapi import APIRouter, Query

from blogkit_service.auth.deps import AccessPolicyDep, AdminUserDep, CurrentUserDep, user_is_admin
from blogkit_service.db.deps import (
    AnalyticsRepoDep,
    BookmarksRepoDep,
    CommentsRepoDep,
    PostsRepoDep,
    UsersRepoDep,
)
from blogkit_service.rest.schemas import AccountOverview, BookmarkSchema, DashboardStats, UserSchema

router = APIRouter(tags=["pages"])


@router.get("/auth/login")
async def login_page(
    callback_url: str | None = Query(default=None, alias="callbackUrl"),
) -> dict[str, str | None]:
    return {"page": "login", "callbackUrl": callback_url}


@router.get("/auth/register")
async def register_page() -> dict[str, str]:
    return {"page": "register"}


@router.get("/admin", response_model=DashboardStats)
async def admin_dashboard(
    _admin: AdminUserDep,
    posts: PostsRepoDep,
    comments: CommentsRepoDep,
    users: UsersRepoDep,
    analytics: AnalyticsRepoDep,
) -> DashboardStats:
    return DashboardStats(
        posts=await posts.count(),
        published_posts=await posts.count(published=True),
        comments=await comments.count(),
        users=await users.count_users(),
        views=await analytics.count(),
    )


@router.get("/account", response_model=AccountOverview)
async def account_overview(
    current_user: CurrentUserDep,
    policy: AccessPolicyDep,
    comments: CommentsRepoDep,
    bookmarks: BookmarksRepoDep,
) -> AccountOverview:
    user = current_user.user
    own_comments = await comments.list_for_author(user.id)
    saved = await bookmarks.list_for_user(user.id)
    return AccountOverview(
        user=UserSchema(id=user.id, email=user.email, name=user.name, image=user.image),
        roles=sorted(current_user.roles),
        is_admin=user_is_admin(current_user, policy),
        comment_count=len(own_comments),
        bookmarks=[BookmarkSchema(**row) for row in saved],
    )
