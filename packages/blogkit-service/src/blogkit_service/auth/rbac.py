"""Admin and editor checks shared by the gate and the API dependencies."""

from __future__ import annotations

from collections.abc import Iterable

from blogkit_service.auth.models import RoleSlug


def parse_allowlist(raw: str | None) -> frozenset[str]:
    """Split a comma-separated email list, trimming and lowercasing entries."""
    if not raw:
        return frozenset()
    return frozenset(value.strip().lower() for value in raw.split(",") if value.strip())


def is_allowlisted(email: str | None, allowlist: frozenset[str]) -> bool:
    if not email or not allowlist:
        return False
    return email.lower() in allowlist


def has_role(roles: Iterable[str], *required: RoleSlug) -> bool:
    wanted = {r.value for r in required}
    return any(role in wanted for role in roles)


def is_admin(email: str | None, roles: Iterable[str], allowlist: frozenset[str]) -> bool:
    """Effective admin status: allowlisted OR holding the admin role."""
    return is_allowlisted(email, allowlist) or has_role(roles, RoleSlug.ADMIN)


def can_edit_any_post(email: str | None, roles: Iterable[str], allowlist: frozenset[str]) -> bool:
    return is_allowlisted(email, allowlist) or has_role(roles, RoleSlug.ADMIN, RoleSlug.EDITOR)


def can_moderate_reviews(
    email: str | None, roles: Iterable[str], allowlist: frozenset[str]
) -> bool:
    """A configured allowlist replaces the role check, as for the admin area."""
    if allowlist:
        return is_allowlisted(email, allowlist)
    return has_role(roles, RoleSlug.ADMIN, RoleSlug.EDITOR, RoleSlug.MODERATOR)
