from __future__ import annotations

from collections.abc import Awaitable, Callable

from fastapi import Request, Response  # type: ignore[import-not-found]
from starlette.middleware.base import BaseHTTPMiddleware  # type: ignore[import-not-found]

from discs.auth.depends import set_session_cookie


class SlidingSessionCookieMiddleware(BaseHTTPMiddleware):
    """
    Re-issue the session cookie after the server slid the session forward.

    Runs outside the routers and exception handlers, so 204 responses and
    error bodies carry the fresh max-age as well.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        response = await call_next(request)
        token = getattr(request.state, "refreshed_session_token", None)
        if token:
            set_session_cookie(response, token)
        return response
