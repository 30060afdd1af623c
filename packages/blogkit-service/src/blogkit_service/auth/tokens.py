"""Signed session tokens.

The token only proves which session row it belongs to; the row itself is the
source of truth for expiry and revocation.
"""

from __future__ import annotations

from datetime import UTC, datetime

import jwt

from blogkit_service.settings import settings


def _now_utc() -> datetime:
    return datetime.now(UTC)


def create_session_token(session_id: str, user_id: str, expires_at: datetime) -> str:
    """Create a signed JWT bound to a session row."""
    payload = {
        "sid": session_id,
        "sub": user_id,
        "iat": _now_utc(),
        "exp": expires_at,
        "type": "session",
    }
    return jwt.encode(payload, settings.session_secret, algorithm=settings.session_algorithm)


def decode_session_token(token: str) -> dict:
    """Decode and verify a session token. Raises jwt.PyJWTError on failure."""
    payload = jwt.decode(
        token, settings.session_secret, algorithms=[settings.session_algorithm]
    )
    if payload.get("type") != "session":
        raise jwt.InvalidTokenError("Not a session token")
    if not payload.get("sid") or not payload.get("sub"):
        raise jwt.InvalidTokenError("Malformed session token payload")
    return payload
