"""Service test fixtures with in-memory fake repos and a fake session resolver."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from blogkit_service.auth.gate import AccessPolicy
from blogkit_service.auth.models import ROLE_NAMES, RoleSlug, Session, SessionUser
from blogkit_service.auth.passwords import hash_password
from blogkit_service.auth.sessions import extract_session_token
from blogkit_service.db.models import REACTION_TYPES
from blogkit_service.db.deps import (
    get_advertisements_repo,
    get_affiliate_links_repo,
    get_analytics_repo,
    get_bookmarks_repo,
    get_comments_repo,
    get_posts_repo,
    get_reactions_repo,
    get_reviews_repo,
    get_roles_repo,
    get_session,
    get_users_repo,
)
from blogkit_service.rest.app import create_app

# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def make_user(
    email: str = "alice@example.com",
    name: str | None = "Alice",
    password: str | None = None,
) -> MagicMock:
    user = MagicMock()
    user.id = uuid.uuid4().hex
    user.email = email.lower()
    user.name = name
    user.image = None
    user.email_verified = False
    user.password_hash = hash_password(password) if password else None
    user.created_at = datetime.now(UTC)
    return user


def make_session(user, expires_in: timedelta = timedelta(days=1)) -> Session:
    return Session(
        id=uuid.uuid4().hex,
        user=SessionUser(id=user.id, email=user.email, name=user.name, image=user.image),
        expires_at=datetime.now(UTC) + expires_in,
    )


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeSessionResolver:
    """Maps bearer tokens or session cookies to pre-registered sessions."""

    def __init__(self, cookie_name: str = "blogkit_session") -> None:
        self.sessions: dict[str, Session] = {}
        self.cookie_name = cookie_name
        self.calls = 0
        self.error: Exception | None = None

    def sign_in(self, user) -> dict[str, str]:
        token = uuid.uuid4().hex
        self.sessions[token] = make_session(user)
        return {"Authorization": f"Bearer {token}"}

    async def resolve(self, headers) -> Session | None:
        self.calls += 1
        if self.error is not None:
            raise self.error
        token = extract_session_token(headers, self.cookie_name)
        return self.sessions.get(token) if token else None


class FakeRolesRepo:
    """Roles repo that also serves as the gate's role lookup."""

    def __init__(self) -> None:
        self.roles = []
        for index, slug in enumerate(RoleSlug, start=1):
            role = MagicMock()
            role.id = index
            role.slug = slug.value
            role.name = ROLE_NAMES[slug]
            role.description = None
            self.roles.append(role)
        self.assignments: dict[str, set[str]] = {}
        self.lookups = 0

    def grant(self, user_id: str, *slugs: str) -> None:
        self.assignments.setdefault(user_id, set()).update(slugs)

    async def get_user_roles(self, user_id: str) -> frozenset[str]:
        self.lookups += 1
        return frozenset(self.assignments.get(user_id, ()))

    async def has_any_role(self, user_id, required) -> bool:
        roles = await self.get_user_roles(user_id)
        return any(r in roles for r in required)

    async def list_roles(self):
        return sorted(self.roles, key=lambda r: r.slug)

    async def get_role_by_slug(self, slug: str):
        return next((r for r in self.roles if r.slug == slug), None)

    def _slug(self, role_id: int) -> str:
        return next(r.slug for r in self.roles if r.id == role_id)

    async def assign_role(self, user_id: str, role_id: int) -> bool:
        held = self.assignments.setdefault(user_id, set())
        slug = self._slug(role_id)
        if slug in held:
            return False
        held.add(slug)
        return True

    async def revoke_role(self, user_id: str, role_id: int) -> bool:
        held = self.assignments.get(user_id, set())
        slug = self._slug(role_id)
        if slug not in held:
            return False
        held.discard(slug)
        return True


class FakeUsersRepo:
    def __init__(self, roles: FakeRolesRepo) -> None:
        self._roles = roles
        self.users: dict[str, Any] = {}
        self.sessions: dict[str, Any] = {}
        self.profiles: dict[str, Any] = {}

    def add(self, user) -> None:
        self.users[user.id] = user

    async def create_user(self, email: str, password: str | None, name: str | None = None):
        user = make_user(email=email, name=name, password=password)
        self.add(user)
        return user

    async def get_user(self, user_id: str):
        return self.users.get(user_id)

    async def get_user_by_email(self, email: str):
        email = email.strip().lower()
        return next((u for u in self.users.values() if u.email == email), None)

    async def update_user(self, user_id: str, **fields):
        user = self.users.get(user_id)
        if user is None:
            return None
        for key in ("name", "image"):
            if fields.get(key) is not None:
                setattr(user, key, fields[key])
        return user

    async def count_users(self) -> int:
        return len(self.users)

    async def list_users_with_roles(self, query: str = "", limit: int = 50):
        users = sorted(self.users.values(), key=lambda u: u.email)
        if query:
            users = [u for u in users if query.lower() in u.email or query.lower() in (u.name or "").lower()]
        return [(u, sorted(self._roles.assignments.get(u.id, ()))) for u in users[:limit]]

    async def create_session(self, user_id, expires_at, ip_address=None, user_agent=None):
        row = MagicMock()
        row.id = uuid.uuid4().hex
        row.user_id = user_id
        row.expires_at = expires_at
        row.ip_address = ip_address
        row.user_agent = user_agent
        self.sessions[row.id] = row
        return row

    async def delete_session(self, session_id: str) -> bool:
        return self.sessions.pop(session_id, None) is not None

    async def get_profile(self, user_id: str):
        return self.profiles.get(user_id)

    async def upsert_profile(self, user_id: str, **fields):
        profile = self.profiles.get(user_id)
        if profile is None:
            profile = MagicMock(bio=None, location=None, website=None, avatar_url=None)
            self.profiles[user_id] = profile
        for key in ("bio", "location", "website", "avatar_url"):
            if fields.get(key) is not None:
                setattr(profile, key, fields[key])
        return profile


class FakePostsRepo:
    def __init__(self, users: FakeUsersRepo) -> None:
        self._users = users
        self.posts: dict[int, Any] = {}
        self.categories: list[Any] = []
        self.comment_totals: dict[int, int] = {}
        self._next_id = 1

    def _tags(self, names):
        tags = []
        for name in sorted({n.strip() for n in names if n and n.strip()}):
            tag = MagicMock()
            tag.name = name
            tags.append(tag)
        return tags

    def add(self, author, title="Hello", slug="hello", published=True, **fields):
        now = datetime.now(UTC) + timedelta(seconds=self._next_id)
        post = MagicMock()
        post.id = self._next_id
        self._next_id += 1
        post.title = title
        post.slug = slug
        post.content = fields.pop("content", f"Content of {title}")
        post.excerpt = fields.pop("excerpt", None)
        post.image_url = None
        post.format = "standard"
        post.video_url = None
        post.audio_url = None
        post.gallery_images = None
        post.published = published
        post.allow_comments = fields.pop("allow_comments", True)
        post.seo_title = None
        post.seo_description = None
        post.author_id = author.id
        post.author = author
        post.category_id = None
        post.category = None
        post.tags = self._tags(fields.pop("tags", []))
        post.created_at = now
        post.updated_at = now
        for key, value in fields.items():
            setattr(post, key, value)
        self.posts[post.id] = post
        return post

    async def list(self, include_drafts: bool = False):
        rows = [p for p in self.posts.values() if include_drafts or p.published]
        return sorted(rows, key=lambda p: p.created_at, reverse=True)

    async def comment_counts(self, post_ids):
        return {pid: self.comment_totals[pid] for pid in post_ids if pid in self.comment_totals}

    async def get(self, post_id: int):
        return self.posts.get(post_id)

    async def get_by_slug(self, slug: str, published_only: bool = False):
        return next(
            (p for p in self.posts.values() if p.slug == slug and (p.published or not published_only)),
            None,
        )

    async def create(self, author_id: str, fields: dict, tag_names=None):
        author = self._users.users.get(author_id) or make_user()
        fields = dict(fields)
        return self.add(
            author,
            title=fields.pop("title"),
            slug=fields.pop("slug"),
            published=fields.pop("published", False),
            tags=tag_names or [],
            **fields,
        )

    async def update(self, post, fields: dict, tag_names=None):
        for key, value in fields.items():
            setattr(post, key, value)
        if tag_names is not None:
            post.tags = self._tags(tag_names)
        return post

    async def delete(self, post) -> None:
        self.posts.pop(post.id, None)

    async def count(self, published=None) -> int:
        return len([p for p in self.posts.values() if published is None or p.published == published])

    async def search(self, query: str, limit: int = 20):
        q = query.lower()
        rows = [
            p
            for p in await self.list()
            if q in p.title.lower() or q in (p.excerpt or "").lower()
        ]
        return rows[:limit]

    async def list_categories(self):
        return self.categories


class FakeCommentsRepo:
    def __init__(self, users: FakeUsersRepo, posts: FakePostsRepo) -> None:
        self._users = users
        self._posts = posts
        self.comments: dict[int, Any] = {}

    async def create(self, post_id: int, author_id: str, content: str, rating=None):
        comment = MagicMock()
        comment.id = len(self.comments) + 1
        comment.post_id = post_id
        comment.author_id = author_id
        comment.author = self._users.users.get(author_id)
        comment.post = self._posts.posts.get(post_id)
        comment.content = content
        comment.rating = rating
        comment.created_at = datetime.now(UTC)
        comment.deleted_at = None
        self.comments[comment.id] = comment
        return comment

    async def get(self, comment_id: int):
        return self.comments.get(comment_id)

    async def list_for_post(self, post_id: int):
        return [c for c in self.comments.values() if c.post_id == post_id and c.deleted_at is None]

    async def list_for_author(self, author_id: str):
        return [c for c in self.comments.values() if c.author_id == author_id and c.deleted_at is None]

    async def soft_delete(self, comment) -> None:
        comment.deleted_at = datetime.now(UTC)

    async def count(self) -> int:
        return len([c for c in self.comments.values() if c.deleted_at is None])


class FakeBookmarksRepo:
    def __init__(self, posts: FakePostsRepo) -> None:
        self._posts = posts
        self.saved: dict[tuple[str, int], datetime] = {}

    async def exists(self, user_id: str, post_id: int) -> bool:
        return (user_id, post_id) in self.saved

    async def list_for_user(self, user_id: str):
        rows = []
        for (uid, post_id), created_at in self.saved.items():
            post = self._posts.posts.get(post_id)
            if uid == user_id and post is not None:
                rows.append(
                    {"post_id": post_id, "created_at": created_at, "title": post.title, "slug": post.slug}
                )
        return sorted(rows, key=lambda r: r["created_at"], reverse=True)

    async def add(self, user_id: str, post_id: int) -> bool:
        if (user_id, post_id) in self.saved:
            return False
        self.saved[(user_id, post_id)] = datetime.now(UTC)
        return True

    async def remove(self, user_id: str, post_id: int) -> bool:
        return self.saved.pop((user_id, post_id), None) is not None


class FakeReactionsRepo:
    def __init__(self) -> None:
        self.held: set[tuple[int, str, str]] = set()

    async def counts(self, post_id: int) -> dict[str, int]:
        counts = dict.fromkeys(REACTION_TYPES, 0)
        for pid, _, reaction_type in self.held:
            if pid == post_id:
                counts[reaction_type] += 1
        return counts

    async def user_types(self, post_id: int, user_id: str) -> list[str]:
        return [t for t in REACTION_TYPES if (post_id, user_id, t) in self.held]

    async def toggle(self, post_id: int, user_id: str, reaction_type: str) -> bool:
        key = (post_id, user_id, reaction_type)
        if key in self.held:
            self.held.discard(key)
            return False
        self.held.add(key)
        return True


class FakeReviewsRepo:
    def __init__(self, users: FakeUsersRepo) -> None:
        self._users = users
        self.reviews: dict[int, Any] = {}

    async def get(self, review_id: int):
        review = self.reviews.get(review_id)
        return review if review is not None and review.deleted_at is None else None

    async def exists_for_author(self, post_id: int, author_id: str) -> bool:
        return any(r.post_id == post_id and r.author_id == author_id for r in self.reviews.values())

    async def page(self, *, post_id=None, author_id=None, status=None, page=1, page_size=10):
        rows = [
            r
            for r in self.reviews.values()
            if r.deleted_at is None
            and (post_id is None or r.post_id == post_id)
            and (author_id is None or r.author_id == author_id)
            and (status is None or r.status == status)
        ]
        rows.sort(key=lambda r: r.id, reverse=True)
        start = (page - 1) * page_size
        return rows[start : start + page_size], len(rows)

    async def create(self, post_id, author_id, body, title=None, rating=None):
        review = MagicMock()
        review.id = len(self.reviews) + 1
        review.post_id = post_id
        review.author_id = author_id
        review.author = self._users.users.get(author_id)
        review.title = title
        review.body = body
        review.rating = rating
        review.status = "pending"
        review.created_at = datetime.now(UTC)
        review.deleted_at = None
        self.reviews[review.id] = review
        return review

    async def set_status(self, review, status: str):
        review.status = status
        return review


class FakeCrudRepo:
    """Shared shape of the advertisement and affiliate-link repos."""

    def __init__(self, fields: tuple[str, ...], defaults: dict[str, Any]) -> None:
        self._fields = fields
        self._defaults = defaults
        self.items: dict[int, Any] = {}

    async def list(self):
        return list(self.items.values())

    async def get(self, item_id: int):
        return self.items.get(item_id)

    async def create(self, **fields):
        item = MagicMock()
        item.id = len(self.items) + 1
        for key in self._fields:
            setattr(item, key, fields.get(key, self._defaults.get(key)))
        item.created_at = datetime.now(UTC)
        item.updated_at = item.created_at
        self.items[item.id] = item
        return item

    async def update(self, item_id: int, **fields):
        item = self.items.get(item_id)
        if item is None:
            return None
        for key, value in fields.items():
            if key in self._fields:
                setattr(item, key, value)
        return item

    async def delete(self, item_id: int) -> bool:
        return self.items.pop(item_id, None) is not None


class FakeAffiliateLinksRepo(FakeCrudRepo):
    def __init__(self) -> None:
        super().__init__(
            ("name", "url", "description", "is_active", "clicks"),
            {"description": None, "is_active": True, "clicks": 0},
        )

    async def record_click(self, link_id: int):
        link = self.items.get(link_id)
        if link is None or not link.is_active:
            return None
        link.clicks += 1
        return link


class FakeAnalyticsRepo:
    def __init__(self) -> None:
        self.events: list[dict[str, Any]] = []

    async def record(self, name, path, referrer=None, user_id=None, session_id=None, properties=None):
        event = {
            "name": name,
            "path": path,
            "referrer": referrer,
            "user_id": user_id,
            "session_id": session_id,
            "properties": properties,
        }
        self.events.append(event)
        return event

    async def views_by_path(self, paths):
        counts: dict[str, int] = {}
        for event in self.events:
            if event["path"] in paths:
                counts[event["path"]] = counts.get(event["path"], 0) + 1
        return counts

    async def count(self) -> int:
        return len(self.events)


# ---------------------------------------------------------------------------
# App fixture
# ---------------------------------------------------------------------------


@dataclass
class BlogTestEnv:
    app: FastAPI
    client: TestClient
    resolver: FakeSessionResolver
    db: AsyncMock
    users: FakeUsersRepo
    roles: FakeRolesRepo
    posts: FakePostsRepo
    comments: FakeCommentsRepo
    bookmarks: FakeBookmarksRepo
    reactions: FakeReactionsRepo
    reviews: FakeReviewsRepo
    ads: FakeCrudRepo
    links: FakeAffiliateLinksRepo
    analytics: FakeAnalyticsRepo

    def sign_in(
        self, email: str = "alice@example.com", *roles: RoleSlug, name: str = "Alice"
    ) -> tuple[Any, dict[str, str]]:
        """Create a user with the given roles and return it with auth headers."""
        user = make_user(email=email, name=name)
        self.users.add(user)
        self.roles.grant(user.id, *(r.value for r in roles))
        return user, self.resolver.sign_in(user)


def make_env(admin_allowlist: frozenset[str] = frozenset()) -> BlogTestEnv:
    """Build the real app with every repository and the session resolver faked."""
    resolver = FakeSessionResolver()
    roles = FakeRolesRepo()
    users = FakeUsersRepo(roles)
    posts = FakePostsRepo(users)
    comments = FakeCommentsRepo(users, posts)
    bookmarks = FakeBookmarksRepo(posts)
    reactions = FakeReactionsRepo()
    reviews = FakeReviewsRepo(users)
    ads = FakeCrudRepo(
        ("name", "placement", "content", "is_active", "start_date", "end_date"),
        {"is_active": True, "start_date": None, "end_date": None},
    )
    links = FakeAffiliateLinksRepo()
    analytics = FakeAnalyticsRepo()

    app = create_app(
        policy=AccessPolicy(admin_allowlist=admin_allowlist),
        session_resolver=resolver,
        role_lookup=roles,
    )

    # Stub out the DB session so route commits don't hit a real DB
    fake_db = AsyncMock()
    app.dependency_overrides[get_session] = lambda: fake_db
    app.dependency_overrides[get_users_repo] = lambda: users
    app.dependency_overrides[get_roles_repo] = lambda: roles
    app.dependency_overrides[get_posts_repo] = lambda: posts
    app.dependency_overrides[get_comments_repo] = lambda: comments
    app.dependency_overrides[get_bookmarks_repo] = lambda: bookmarks
    app.dependency_overrides[get_reactions_repo] = lambda: reactions
    app.dependency_overrides[get_reviews_repo] = lambda: reviews
    app.dependency_overrides[get_advertisements_repo] = lambda: ads
    app.dependency_overrides[get_affiliate_links_repo] = lambda: links
    app.dependency_overrides[get_analytics_repo] = lambda: analytics

    return BlogTestEnv(
        app=app,
        client=TestClient(app, follow_redirects=False),
        resolver=resolver,
        db=fake_db,
        users=users,
        roles=roles,
        posts=posts,
        comments=comments,
        bookmarks=bookmarks,
        reactions=reactions,
        reviews=reviews,
        ads=ads,
        links=links,
        analytics=analytics,
    )


@pytest.fixture
def env() -> BlogTestEnv:
    return make_env()


@pytest.fixture
def allowlist_env() -> BlogTestEnv:
    return make_env(admin_allowlist=frozenset({"boss@example.com"}))
