from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, HTTPException, Request, Response  # type: ignore[import-not-found]
from sqlalchemy.ext.asyncio import AsyncSession  # type: ignore[import-not-found]
from starlette import status  # type: ignore[import-not-found]

from discs.auth.service import AuthService
from discs.commons.caller import AuthenticatedCaller
from discs.commons.depends import database_session
from discs.core.settings import settings


@lru_cache
def get_auth_service() -> AuthService:
    return AuthService.build()


def session_token_from_request(request: Request) -> str | None:
    """Cookie first, then `Authorization: Bearer <token>` for API clients."""
    token = request.cookies.get(settings.AUTH_COOKIE_NAME)
    if token:
        return token
    header = request.headers.get("authorization") or ""
    scheme, _, value = header.partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()
    return None


def set_session_cookie(resp: Response, token: str) -> None:
    resp.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=bool(settings.AUTH_COOKIE_SECURE),
        samesite=str(settings.AUTH_COOKIE_SAMESITE),
        path="/",
        max_age=int(settings.AUTH_SESSION_TTL_HOURS) * 60 * 60,
    )


def clear_session_cookie(resp: Response) -> None:
    resp.delete_cookie(
        key=settings.AUTH_COOKIE_NAME,
        path="/",
    )


async def current_caller_optional(
    request: Request,
    session: Annotated[AsyncSession, Depends(database_session)],
    svc: Annotated[AuthService, Depends(get_auth_service)],
) -> AuthenticatedCaller | None:
    token = session_token_from_request(request)
    if not token:
        return None
    resolved = await svc.resolve_caller(session, token=token)
    if resolved is None:
        return None
    caller, refreshed_until = resolved
    if refreshed_until is not None and request.cookies.get(settings.AUTH_COOKIE_NAME):
        # Picked up by SlidingSessionCookieMiddleware, whatever response the
        # endpoint or an exception handler ends up producing.
        request.state.refreshed_session_token = token
    return caller


async def current_caller_required(
    caller: Annotated[AuthenticatedCaller | None, Depends(current_caller_optional)],
) -> AuthenticatedCaller:
    # Raise at the API layer so a missing, expired, or unknown session is a
    # plain 401 with no hint about which case applied.
    if caller is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated"
        )
    return caller
