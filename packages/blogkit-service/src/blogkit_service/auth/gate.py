"""Route-level access control for page paths.

The gate sorts every request into one of three route classes (public,
authenticated-only, admin-only) and answers with an ``AccessDecision``.
It holds no mutable state; the session resolver and role lookup are
injected capabilities so that each request re-resolves both.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol
from urllib.parse import quote

import structlog

from blogkit_service.auth.models import RoleSlug, Session
from blogkit_service.auth.rbac import has_role, is_allowlisted

logger = structlog.get_logger()

AUTH_PREFIX = "/auth"
LOGIN_PATH = f"{AUTH_PREFIX}/login"
REGISTER_PATH = f"{AUTH_PREFIX}/register"
ADMIN_PREFIX = "/admin"
ACCOUNT_PREFIX = "/account"

# Characters encodeURIComponent leaves alone besides alphanumerics and "-_.~"
_CALLBACK_SAFE = "!*'()"


class SessionResolver(Protocol):
    async def resolve(self, headers: Mapping[str, str]) -> Session | None: ...


class RoleLookup(Protocol):
    async def get_user_roles(self, user_id: str) -> frozenset[str]: ...


class DecisionKind(str, Enum):
    ALLOW = "allow"
    REDIRECT_TO_DEFAULT = "redirect_to_default"
    REDIRECT_TO_LOGIN = "redirect_to_login"
    REDIRECT_TO_LOGIN_WITH_CALLBACK = "redirect_to_login_with_callback"


@dataclass(frozen=True)
class AccessDecision:
    kind: DecisionKind
    location: str | None = None

    @property
    def allowed(self) -> bool:
        return self.kind is DecisionKind.ALLOW


@dataclass(frozen=True)
class AccessPolicy:
    """Immutable route table and admin allowlist."""

    login_path: str = LOGIN_PATH
    admin_prefix: str = ADMIN_PREFIX
    account_prefix: str = ACCOUNT_PREFIX
    default_redirect: str = ADMIN_PREFIX
    # Exact-match patterns, anchored at both ends
    forbidden_when_authenticated: tuple[str, ...] = (LOGIN_PATH, REGISTER_PATH)
    protected_patterns: tuple[str, ...] = (ADMIN_PREFIX, ACCOUNT_PREFIX)
    admin_allowlist: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_settings(cls, settings) -> AccessPolicy:
        return cls(
            default_redirect=settings.default_login_redirect or ADMIN_PREFIX,
            admin_allowlist=settings.admin_allowlist,
        )


def build_callback_url(path: str, query: str = "") -> str | None:
    """Percent-encode ``path?query`` for the ``callbackUrl`` parameter.

    Returns None when there is nothing usable to send back to.
    """
    if not path or not path.startswith("/"):
        return None
    target = f"{path}?{query}" if query else path
    return quote(target, safe=_CALLBACK_SAFE)


async def resolve_quietly(
    resolver: SessionResolver, headers: Mapping[str, str]
) -> Session | None:
    """Resolve a session, treating any resolver failure as "no session"."""
    try:
        return await resolver.resolve(headers)
    except Exception as exc:
        logger.warning("session_resolution_failed", error=str(exc))
        return None


class AccessGate:
    def __init__(self, policy: AccessPolicy, sessions: SessionResolver, roles: RoleLookup) -> None:
        self._policy = policy
        self._sessions = sessions
        self._roles = roles
        self._forbidden = tuple(re.compile(p) for p in policy.forbidden_when_authenticated)
        self._protected = tuple(re.compile(p) for p in policy.protected_patterns)

    @property
    def policy(self) -> AccessPolicy:
        return self._policy

    def is_forbidden_when_authenticated(self, path: str) -> bool:
        return any(pattern.fullmatch(path) for pattern in self._forbidden)

    def is_protected(self, path: str) -> bool:
        return any(pattern.fullmatch(path) for pattern in self._protected)

    async def _admin_allowed(self, session: Session) -> bool:
        allowlist = self._policy.admin_allowlist
        if allowlist:
            return is_allowlisted(session.user.email, allowlist)
        roles = await self._roles.get_user_roles(session.user.id)
        return has_role(roles, RoleSlug.ADMIN)

    async def decide(
        self,
        path: str,
        query: str,
        session: Session | None,
        raw_path: str | None = None,
    ) -> AccessDecision:
        """Apply the routing rules in order; the first match wins.

        ``path`` is the decoded path used for matching. ``raw_path`` is the path
        as the client sent it, still percent-encoded, and is what the login
        callback points back to.
        """
        policy = self._policy
        is_admin_path = path.startswith(policy.admin_prefix)

        if session is not None:
            if self.is_forbidden_when_authenticated(path):
                return AccessDecision(DecisionKind.REDIRECT_TO_DEFAULT, policy.default_redirect)
            if is_admin_path and not await self._admin_allowed(session):
                return AccessDecision(DecisionKind.REDIRECT_TO_LOGIN, policy.login_path)
            return AccessDecision(DecisionKind.ALLOW)

        if self.is_protected(path) or path.startswith(policy.account_prefix) or is_admin_path:
            callback = build_callback_url(raw_path or path, query)
            if callback is None:
                return AccessDecision(DecisionKind.REDIRECT_TO_LOGIN, policy.login_path)
            return AccessDecision(
                DecisionKind.REDIRECT_TO_LOGIN_WITH_CALLBACK,
                f"{policy.login_path}?callbackUrl={callback}",
            )

        return AccessDecision(DecisionKind.ALLOW)

    async def check(
        self,
        path: str,
        query: str,
        headers: Mapping[str, str],
        raw_path: str | None = None,
    ) -> AccessDecision:
        """Resolve the session and decide.

        A resolver failure counts as "no session": protected paths redirect
        to login, public paths pass through.
        """
        session = await resolve_quietly(self._sessions, headers)
        decision = await self.decide(path, query, session, raw_path)
        logger.debug("access_decision", path=path, decision=decision.kind.value)
        return decision
