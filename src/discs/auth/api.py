from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Request  # type: ignore[import-not-found]
from fastapi.responses import JSONResponse  # type: ignore[import-not-found]
from sqlalchemy.ext.asyncio import AsyncSession  # type: ignore[import-not-found]
from starlette import status  # type: ignore[import-not-found]

from discs.auth.depends import (
    clear_session_cookie,
    current_caller_required,
    get_auth_service,
    session_token_from_request,
    set_session_cookie,
)
from discs.auth.models import User
from discs.auth.schemas import (
    AuthResponse,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    UpdatePasswordRequest,
    UpdateProfileRequest,
    UserPublic,
)
from discs.auth.service import AuthService, IssuedSession
from discs.commons.caller import AuthenticatedCaller
from discs.commons.depends import database_session

router = APIRouter(prefix="/auth", tags=["auth"])


def _to_public(user: User) -> UserPublic:
    return UserPublic(
        id=user.id,
        email=user.email,
        name=user.name,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


def _client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip() or None
    return request.client.host if request.client else None


def _issued_response(user: User, issued: IssuedSession, *, status_code: int) -> JSONResponse:
    data = AuthResponse(
        user=_to_public(user),
        token=issued.token,
        expires_at=issued.session.expires_at,
    ).model_dump(mode="json")
    resp = JSONResponse(status_code=status_code, content=data)
    set_session_cookie(resp, issued.token)
    return resp


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    req: RegisterRequest,
    request: Request,
    session: Annotated[AsyncSession, Depends(database_session)],
    svc: Annotated[AuthService, Depends(get_auth_service)],
) -> JSONResponse:
    user, issued = await svc.register(
        session,
        email=str(req.email),
        name=req.name,
        password=req.password,
        ip_address=_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    return _issued_response(user, issued, status_code=status.HTTP_201_CREATED)


@router.post("/login", response_model=AuthResponse)
async def login(
    req: LoginRequest,
    request: Request,
    session: Annotated[AsyncSession, Depends(database_session)],
    svc: Annotated[AuthService, Depends(get_auth_service)],
) -> JSONResponse:
    user, issued = await svc.login(
        session,
        email=str(req.email),
        password=req.password,
        ip_address=_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    return _issued_response(user, issued, status_code=status.HTTP_200_OK)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    session: Annotated[AsyncSession, Depends(database_session)],
    svc: Annotated[AuthService, Depends(get_auth_service)],
) -> JSONResponse:
    token = session_token_from_request(request)
    if token:
        await svc.logout(session, token=token)
    resp = JSONResponse(status_code=status.HTTP_200_OK, content={"message": "Logged out"})
    clear_session_cookie(resp)
    return resp


@router.get("/me", response_model=AuthResponse)
async def me(
    session: Annotated[AsyncSession, Depends(database_session)],
    svc: Annotated[AuthService, Depends(get_auth_service)],
    caller: Annotated[AuthenticatedCaller, Depends(current_caller_required)],
) -> AuthResponse:
    user = await svc.get_profile(session, caller=caller)
    return AuthResponse(user=_to_public(user))


@router.put("/me", response_model=AuthResponse)
async def update_me(
    req: UpdateProfileRequest,
    session: Annotated[AsyncSession, Depends(database_session)],
    svc: Annotated[AuthService, Depends(get_auth_service)],
    caller: Annotated[AuthenticatedCaller, Depends(current_caller_required)],
) -> AuthResponse:
    user = await svc.update_profile(
        session, caller=caller, email=str(req.email), name=req.name
    )
    return AuthResponse(user=_to_public(user))


@router.put("/password", response_model=MessageResponse)
async def update_password(
    req: UpdatePasswordRequest,
    session: Annotated[AsyncSession, Depends(database_session)],
    svc: Annotated[AuthService, Depends(get_auth_service)],
    caller: Annotated[AuthenticatedCaller, Depends(current_caller_required)],
) -> MessageResponse:
    await svc.update_password(
        session,
        caller=caller,
        current_password=req.current_password,
        new_password=req.new_password,
    )
    return MessageResponse(message="Password updated successfully")
