"""FastAPI dependency injection for database sessions and repositories."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from blogkit_service.db.engine import get_session_factory
from blogkit_service.db.repositories.advertisements import AdvertisementsRepo
from blogkit_service.db.repositories.affiliate_links import AffiliateLinksRepo
from blogkit_service.db.repositories.analytics import AnalyticsRepo
from blogkit_service.db.repositories.bookmarks import BookmarksRepo
from blogkit_service.db.repositories.comments import CommentsRepo
from blogkit_service.db.repositories.posts import PostsRepo
from blogkit_service.db.repositories.reactions import ReactionsRepo
from blogkit_service.db.repositories.reviews import ReviewsRepo
from blogkit_service.db.repositories.roles import RolesRepo
from blogkit_service.db.repositories.users import UsersRepo


async def get_session() -> AsyncIterator[AsyncSession]:
    """Yield an async DB session, auto-closing on exit."""
    factory = get_session_factory()
    async with factory() as session:
        yield session


SessionDep = Annotated[AsyncSession, Depends(get_session)]


def get_users_repo(session: SessionDep) -> UsersRepo:
    return UsersRepo(session)


def get_roles_repo(session: SessionDep) -> RolesRepo:
    return RolesRepo(session)


def get_posts_repo(session: SessionDep) -> PostsRepo:
    return PostsRepo(session)


def get_comments_repo(session: SessionDep) -> CommentsRepo:
    return CommentsRepo(session)


def get_bookmarks_repo(session: SessionDep) -> BookmarksRepo:
    return BookmarksRepo(session)


def get_reactions_repo(session: SessionDep) -> ReactionsRepo:
    return ReactionsRepo(session)


def get_reviews_repo(session: SessionDep) -> ReviewsRepo:
    return ReviewsRepo(session)


def get_advertisements_repo(session: SessionDep) -> AdvertisementsRepo:
    return AdvertisementsRepo(session)


def get_affiliate_links_repo(session: SessionDep) -> AffiliateLinksRepo:
    return AffiliateLinksRepo(session)


def get_analytics_repo(session: SessionDep) -> AnalyticsRepo:
    return AnalyticsRepo(session)


UsersRepoDep = Annotated[UsersRepo, Depends(get_users_repo)]
RolesRepoDep = Annotated[RolesRepo, Depends(get_roles_repo)]
PostsRepoDep = Annotated[PostsRepo, Depends(get_posts_repo)]
CommentsRepoDep = Annotated[CommentsRepo, Depends(get_comments_repo)]
BookmarksRepoDep = Annotated[BookmarksRepo, Depends(get_bookmarks_repo)]
ReactionsRepoDep = Annotated[ReactionsRepo, Depends(get_reactions_repo)]
ReviewsRepoDep = Annotated[ReviewsRepo, Depends(get_reviews_repo)]
AdvertisementsRepoDep = Annotated[AdvertisementsRepo, Depends(get_advertisements_repo)]
AffiliateLinksRepoDep = Annotated[AffiliateLinksRepo, Depends(get_affiliate_links_repo)]
AnalyticsRepoDep = Annotated[AnalyticsRepo, Depends(get_analytics_repo)]
