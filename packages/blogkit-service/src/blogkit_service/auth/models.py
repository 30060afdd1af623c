"""Auth domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class RoleSlug(str, Enum):
    """Stable role identifiers stored in ``roles.slug``."""
    ADMIN = "admin"
    EDITOR = "editor"
    AUTHOR = "author"
    MODERATOR = "moderator"
    USER = "user"


ROLE_NAMES: dict[RoleSlug, str] = {
    RoleSlug.ADMIN: "Administrator",
    RoleSlug.EDITOR: "Editor",
    RoleSlug.AUTHOR: "Author",
    RoleSlug.MODERATOR: "Moderator",
    RoleSlug.USER: "User",
}


@dataclass(frozen=True)
class SessionUser:
    id: str
    email: str | None = None
    name: str | None = None
    image: str | None = None


@dataclass(frozen=True)
class Session:
    """A verified session as seen by the application."""
    id: str
    user: SessionUser
    expires_at: datetime


@dataclass(frozen=True)
class SessionWithRoles:
    session: Session
    roles: frozenset[str] = field(default_factory=frozenset)

    @property
    def user(self) -> SessionUser:
        return self.session.user
