"""HTTP middleware that runs the access gate in front of page routes."""

from __future__ import annotations

import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from blogkit_service.auth.gate import ACCOUNT_PREFIX, ADMIN_PREFIX, AUTH_PREFIX, AccessGate

GATED_PREFIXES: tuple[str, ...] = (ADMIN_PREFIX, AUTH_PREFIX, ACCOUNT_PREFIX)


def raw_request_path(request: Request) -> str:
    """The request path as sent, before percent-decoding."""
    raw = request.scope.get("raw_path")
    if not raw:
        return request.url.path
    return raw.decode("latin-1").split("?", 1)[0]


class AccessGateMiddleware(BaseHTTPMiddleware):
    """Redirect or pass through requests under the gated prefixes.

    The gate is read from ``app.state.access_gate`` so the application
    factory can build it after the middleware stack is declared.
    """

    def __init__(self, app, prefixes: tuple[str, ...] = GATED_PREFIXES) -> None:
        super().__init__(app)
        self._prefixes = prefixes

    def _matches(self, path: str) -> bool:
        return any(path == p or path.startswith(p + "/") for p in self._prefixes)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        if not self._matches(path):
            return await call_next(request)

        started = time.perf_counter()
        gate: AccessGate = request.app.state.access_gate
        decision = await gate.check(
            path, request.url.query, request.headers, raw_path=raw_request_path(request)
        )
        if decision.allowed:
            response = await call_next(request)
        else:
            response = RedirectResponse(decision.location, status_code=307)
        elapsed_ms = int((time.perf_counter() - started) * 1000)
        response.headers["Server-Timing"] = f"gate;desc=auth;dur={elapsed_ms}"
        return response
