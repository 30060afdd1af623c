"""Repository tests against an in-memory SQLite database."""

from __future__ import annotations

from collections.abc import AsyncIterator
from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from blogkit_service.auth.models import RoleSlug
from blogkit_service.auth.passwords import verify_password
from blogkit_service.auth.sessions import DatabaseRoleLookup, DatabaseSessionResolver
from blogkit_service.auth.tokens import create_session_token
from blogkit_service.db.models import Base, CategoryModel
from blogkit_service.db.repositories.affiliate_links import AffiliateLinksRepo
from blogkit_service.db.repositories.analytics import AnalyticsRepo
from blogkit_service.db.repositories.bookmarks import BookmarksRepo
from blogkit_service.db.repositories.comments import CommentsRepo
from blogkit_service.db.repositories.posts import PostsRepo
from blogkit_service.db.repositories.reactions import ReactionsRepo
from blogkit_service.db.repositories.reviews import ReviewsRepo
from blogkit_service.db.repositories.roles import RolesRepo
from blogkit_service.db.repositories.users import UsersRepo


@pytest_asyncio.fixture
async def session_factory() -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session


# ---------------------------------------------------------------------------
# Users, sessions and roles
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_create_user_normalizes_email_and_hashes_password(db):
    repo = UsersRepo(db)
    user = await repo.create_user("Alice@Example.COM", "secret123", name="Alice")
    assert user.email == "alice@example.com"
    assert verify_password("secret123", user.password_hash)
    assert (await repo.get_user_by_email(" ALICE@example.com ")).id == user.id


@pytest.mark.asyncio
async def test_expired_sessions_are_not_active(db):
    repo = UsersRepo(db)
    user = await repo.create_user("a@example.com", None)
    live = await repo.create_session(user.id, datetime.now(UTC) + timedelta(hours=1))
    stale = await repo.create_session(user.id, datetime.now(UTC) - timedelta(hours=1))

    found = await repo.get_active_session(live.id, user.id)
    assert found.user.email == "a@example.com"
    assert await repo.get_active_session(stale.id, user.id) is None
    assert await repo.get_active_session(live.id, "someone-else") is None

    assert await repo.delete_session(live.id) is True
    assert await repo.get_active_session(live.id, user.id) is None


@pytest.mark.asyncio
async def test_profile_upsert(db):
    repo = UsersRepo(db)
    user = await repo.create_user("a@example.com", None)
    await repo.upsert_profile(user.id, bio="Hi", location=None)
    profile = await repo.upsert_profile(user.id, location="Lisbon")
    assert (profile.bio, profile.location) == ("Hi", "Lisbon")


@pytest.mark.asyncio
async def test_default_roles_are_seeded_once(db):
    repo = RolesRepo(db)
    assert await repo.ensure_default_roles() == len(RoleSlug)
    assert await repo.ensure_default_roles() == 0
    assert {r.slug for r in await repo.list_roles()} == {s.value for s in RoleSlug}


@pytest.mark.asyncio
async def test_role_assignment_is_idempotent(db):
    roles = RolesRepo(db)
    await roles.ensure_default_roles()
    user = await UsersRepo(db).create_user("a@example.com", None)
    editor = await roles.get_role_by_slug("editor")

    assert await roles.assign_role(user.id, editor.id) is True
    assert await roles.assign_role(user.id, editor.id) is False
    assert await roles.get_user_roles(user.id) == frozenset({"editor"})
    assert await roles.has_any_role(user.id, ["admin", "editor"]) is True

    assert await roles.revoke_role(user.id, editor.id) is True
    assert await roles.revoke_role(user.id, editor.id) is False
    assert await roles.get_user_roles(user.id) == frozenset()


@pytest.mark.asyncio
async def test_list_users_with_roles_filters_by_query(db):
    roles = RolesRepo(db)
    users = UsersRepo(db)
    await roles.ensure_default_roles()
    alice = await users.create_user("alice@example.com", None, name="Alice")
    await users.create_user("bob@example.com", None, name="Bob")
    admin = await roles.get_role_by_slug("admin")
    await roles.assign_role(alice.id, admin.id)

    rows = await users.list_users_with_roles()
    assert [(u.email, r) for u, r in rows] == [
        ("alice@example.com", ["admin"]),
        ("bob@example.com", []),
    ]
    assert [u.name for u, _ in await users.list_users_with_roles(query="BOB")] == ["Bob"]


@pytest.mark.asyncio
async def test_database_resolver_and_lookup(session_factory):
    async with session_factory() as db:
        roles = RolesRepo(db)
        await roles.ensure_default_roles()
        user = await UsersRepo(db).create_user("a@example.com", None)
        await roles.assign_role(user.id, (await roles.get_role_by_slug("admin")).id)
        expires = datetime.now(UTC) + timedelta(hours=1)
        row = await UsersRepo(db).create_session(user.id, expires)
        await db.commit()

    token = create_session_token(row.id, user.id, expires)
    resolver = DatabaseSessionResolver(lambda: session_factory, cookie_name="sid")
    session = await resolver.resolve({"cookie": f"sid={token}"})
    assert session.user.id == user.id
    assert await resolver.resolve({"authorization": "Bearer garbage"}) is None
    assert await resolver.resolve({}) is None

    lookup = DatabaseRoleLookup(lambda: session_factory)
    assert await lookup.get_user_roles(user.id) == frozenset({"admin"})


# ---------------------------------------------------------------------------
# Posts, comments and bookmarks
# ---------------------------------------------------------------------------


async def _author(db):
    return await UsersRepo(db).create_user("author@example.com", None, name="Author")


@pytest.mark.asyncio
async def test_post_create_with_tags_and_listing(db):
    author = await _author(db)
    db.add(CategoryModel(name="Tech"))
    await db.flush()
    repo = PostsRepo(db)

    post = await repo.create(
        author.id,
        {"title": "Async SQLAlchemy", "slug": "async-sqlalchemy", "content": "...", "published": True},
        ["python", "sql", "python"],
    )
    await repo.create(author.id, {"title": "Draft", "slug": "draft", "content": "..."})

    assert [t.name for t in post.tags] == ["python", "sql"]
    assert post.author.name == "Author"
    assert [p.slug for p in await repo.list()] == ["async-sqlalchemy"]
    assert len(await repo.list(include_drafts=True)) == 2
    assert await repo.count() == 2
    assert await repo.count(published=True) == 1
    assert await repo.get_by_slug("draft", published_only=True) is None
    assert [c.name for c in await repo.list_categories()] == ["Tech"]


@pytest.mark.asyncio
async def test_post_update_replaces_tags(db):
    author = await _author(db)
    repo = PostsRepo(db)
    post = await repo.create(author.id, {"title": "T", "slug": "t", "content": "c"}, ["old"])
    post = await repo.update(post, {"title": "New"}, ["fresh", "new"])
    assert post.title == "New"
    assert [t.name for t in post.tags] == ["fresh", "new"]

    post = await repo.update(post, {"excerpt": "short"})
    assert [t.name for t in post.tags] == ["fresh", "new"]


@pytest.mark.asyncio
async def test_search_is_case_insensitive_and_published_only(db):
    author = await _author(db)
    repo = PostsRepo(db)
    await repo.create(
        author.id,
        {"title": "Python Tips", "slug": "tips", "content": "c", "published": True},
    )
    await repo.create(
        author.id,
        {"title": "Secret", "slug": "secret", "excerpt": "python", "content": "c"},
    )
    assert [p.slug for p in await repo.search("PYTHON")] == ["tips"]


@pytest.mark.asyncio
async def test_comments_soft_delete_and_counts(db):
    author = await _author(db)
    post = await PostsRepo(db).create(
        author.id, {"title": "T", "slug": "t", "content": "c", "published": True}
    )
    comments = CommentsRepo(db)
    first = await comments.create(post.id, author.id, "first", rating=4)
    await comments.create(post.id, author.id, "second")

    assert first.author.name == "Author"
    assert await PostsRepo(db).comment_counts([post.id]) == {post.id: 2}

    await comments.soft_delete(first)
    assert [c.content for c in await comments.list_for_post(post.id)] == ["second"]
    assert await comments.count() == 1
    assert await PostsRepo(db).comment_counts([post.id]) == {post.id: 1}


@pytest.mark.asyncio
async def test_bookmarks_and_post_delete(db):
    author = await _author(db)
    posts = PostsRepo(db)
    post = await posts.create(author.id, {"title": "T", "slug": "t", "content": "c"})
    await CommentsRepo(db).create(post.id, author.id, "hello")
    bookmarks = BookmarksRepo(db)

    assert await bookmarks.add(author.id, post.id) is True
    assert await bookmarks.add(author.id, post.id) is False
    assert (await bookmarks.list_for_user(author.id))[0]["slug"] == "t"

    await posts.delete(post)
    assert await posts.get(post.id) is None
    assert await bookmarks.exists(author.id, post.id) is False
    assert await bookmarks.remove(author.id, post.id) is False


@pytest.mark.asyncio
async def test_reaction_toggle_and_counts(db):
    author = await _author(db)
    post = await PostsRepo(db).create(author.id, {"title": "T", "slug": "t", "content": "c"})
    repo = ReactionsRepo(db)

    assert await repo.toggle(post.id, author.id, "clap") is True
    assert await repo.toggle(post.id, author.id, "like") is True
    assert await repo.counts(post.id) == {
        "like": 1, "love": 0, "insightful": 0, "curious": 0, "clap": 1
    }
    assert await repo.user_types(post.id, author.id) == ["like", "clap"]

    assert await repo.toggle(post.id, author.id, "clap") is False
    assert await repo.user_types(post.id, author.id) == ["like"]


@pytest.mark.asyncio
async def test_review_paging_and_status(db):
    users = UsersRepo(db)
    author = await _author(db)
    post = await PostsRepo(db).create(author.id, {"title": "T", "slug": "t", "content": "c"})
    repo = ReviewsRepo(db)

    created = []
    for i in range(3):
        reviewer = await users.create_user(f"r{i}@example.com", None, name=f"R{i}")
        created.append(await repo.create(post.id, reviewer.id, f"body {i}", rating=4))
    assert created[0].status == "pending"
    assert created[0].author.name == "R0"
    assert await repo.exists_for_author(post.id, created[0].author_id) is True
    assert await repo.exists_for_author(post.id, author.id) is False

    await repo.set_status(created[1], "approved")
    approved, total = await repo.page(post_id=post.id, status="approved")
    assert (total, [r.body for r in approved]) == (1, ["body 1"])

    first, total = await repo.page(post_id=post.id, page=1, page_size=2)
    second, _ = await repo.page(post_id=post.id, page=2, page_size=2)
    assert total == 3
    assert len(first) == 2
    assert len(second) == 1

    mine, total = await repo.page(author_id=created[2].author_id)
    assert (total, mine[0].id) == (1, created[2].id)


@pytest.mark.asyncio
async def test_post_delete_removes_reviews_and_reactions(db):
    author = await _author(db)
    posts = PostsRepo(db)
    post = await posts.create(author.id, {"title": "T", "slug": "t", "content": "c"})
    review = await ReviewsRepo(db).create(post.id, author.id, "nice")
    await ReactionsRepo(db).toggle(post.id, author.id, "love")

    await posts.delete(post)
    assert await ReviewsRepo(db).get(review.id) is None
    assert await ReactionsRepo(db).counts(post.id) == dict.fromkeys(
        ("like", "love", "insightful", "curious", "clap"), 0
    )


# ---------------------------------------------------------------------------
# Monetization and analytics
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_click_counter_skips_inactive_links(db):
    repo = AffiliateLinksRepo(db)
    link = await repo.create(name="Desk", url="https://shop.example.com/desk")

    assert (await repo.record_click(link.id)).clicks == 1
    assert (await repo.record_click(link.id)).clicks == 2

    await repo.update(link.id, is_active=False)
    assert await repo.record_click(link.id) is None
    assert await repo.record_click(9999) is None


@pytest.mark.asyncio
async def test_views_by_path(db):
    repo = AnalyticsRepo(db)
    await repo.record("page_view", "/blog/a")
    await repo.record("page_view", "/blog/a", properties={"x": 1})
    await repo.record("page_view", "/blog/b")
    assert await repo.views_by_path(["/blog/a", "/blog/c"]) == {"/blog/a": 2}
    assert await repo.count() == 3
