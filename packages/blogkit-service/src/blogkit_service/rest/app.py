"""FastAPI application factory."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from blogkit_service.auth.gate import AccessGate, AccessPolicy, RoleLookup, SessionResolver
from blogkit_service.auth.middleware import AccessGateMiddleware
from blogkit_service.auth.sessions import DatabaseRoleLookup, DatabaseSessionResolver
from blogkit_service.cache import Cache, create_redis
from blogkit_service.db.engine import close_db, create_schema, get_session_factory, init_db
from blogkit_service.db.repositories.roles import RolesRepo
from blogkit_service.rest.routes.account import router as account_router
from blogkit_service.rest.routes.admin import router as admin_router
from blogkit_service.rest.routes.advertisements import router as advertisements_router
from blogkit_service.rest.routes.affiliate_links import router as affiliate_links_router
from blogkit_service.rest.routes.analytics import router as analytics_router
from blogkit_service.rest.routes.auth import router as auth_router
from blogkit_service.rest.routes.bookmarks import router as bookmarks_router
from blogkit_service.rest.routes.comments import router as comments_router
from blogkit_service.rest.routes.feeds import router as feeds_router
from blogkit_service.rest.routes.health import router as health_router
from blogkit_service.rest.routes.pages import router as pages_router
from blogkit_service.rest.routes.posts import router as posts_router
from blogkit_service.rest.routes.reactions import router as reactions_router
from blogkit_service.rest.routes.reviews import router as reviews_router
from blogkit_service.settings import settings

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    await init_db()
    await create_schema()
    factory = get_session_factory()
    async with factory() as session:
        await RolesRepo(session).ensure_default_roles()
        await session.commit()

    redis_client = create_redis(settings.redis_url)
    app.state.cache = Cache(redis_client)
    logger.info("cache_configured", enabled=redis_client is not None)
    yield
    await app.state.cache.close()
    await close_db()


def create_app(
    policy: AccessPolicy | None = None,
    session_resolver: SessionResolver | None = None,
    role_lookup: RoleLookup | None = None,
) -> FastAPI:
    """Build the app. The gate capabilities default to the database-backed ones."""
    app = FastAPI(
        title="Blogkit API",
        description="Blog platform service",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.access_policy = policy or AccessPolicy.from_settings(settings)
    app.state.session_resolver = session_resolver or DatabaseSessionResolver()
    app.state.role_lookup = role_lookup or DatabaseRoleLookup()
    app.state.access_gate = AccessGate(
        app.state.access_policy, app.state.session_resolver, app.state.role_lookup
    )
    # Replaced with a Redis-backed cache by the lifespan when REDIS_URL is set
    app.state.cache = Cache()

    app.add_middleware(AccessGateMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.base_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Public routes
    app.include_router(health_router, tags=["health"])
    app.include_router(feeds_router)

    # Page routes, gated by AccessGateMiddleware
    app.include_router(pages_router)

    # JSON API; authorization is enforced per route with auth dependencies
    app.include_router(auth_router, prefix="/api")
    app.include_router(account_router, prefix="/api")
    app.include_router(posts_router, prefix="/api")
    app.include_router(comments_router, prefix="/api")
    app.include_router(bookmarks_router, prefix="/api")
    app.include_router(reactions_router, prefix="/api")
    app.include_router(reviews_router, prefix="/api")
    app.include_router(admin_router, prefix="/api")
    app.include_router(advertisements_router, prefix="/api")
    app.include_router(affiliate_links_router, prefix="/api")
    app.include_router(analytics_router, prefix="/api")

    return app
