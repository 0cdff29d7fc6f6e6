from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError  # type: ignore[import-not-found]
from sqlalchemy.ext.asyncio import AsyncSession  # type: ignore[import-not-found]

from discs.auth.crypto import (
    hash_password,
    hash_session_token,
    new_session_token,
    verify_password,
)
from discs.auth.exceptions import (
    AuthServiceConflictException,
    AuthServiceNotFoundException,
    AuthServiceStorageException,
    AuthServiceUnauthorizedException,
    SessionExpiredException,
    SessionNotFoundException,
)
from discs.auth.models import Session, User
from discs.auth.repository import AuthRepository, SessionRepository
from discs.auth.schemas import SessionData
from discs.commons.caller import AuthenticatedCaller
from discs.commons.ids import uuid7_uuid
from discs.commons.logging import get_logger
from discs.core.settings import settings

INVALID_CREDENTIALS = "Invalid email or password"


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.UTC)


def _as_utc(value: dt.datetime) -> dt.datetime:
    # Some drivers (sqlite) hand back naive datetimes; everything is stored as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.UTC)
    return value


def session_ttl() -> dt.timedelta:
    return dt.timedelta(hours=int(settings.AUTH_SESSION_TTL_HOURS))


def refresh_window() -> dt.timedelta:
    return dt.timedelta(hours=int(settings.AUTH_SESSION_REFRESH_WINDOW_HOURS))


@dataclass(frozen=True)
class IssuedSession:
    session: Session
    token: str


@dataclass
class SessionService:
    """
    Server-held sessions.

    Standalone writes (refresh, revocation, sweep, lazy expiry) commit on their
    own. `create` joins the caller's unit of work so that registration can
    insert the user and its first session atomically.
    """

    repo: SessionRepository
    logger: logging.Logger

    @classmethod
    def build(cls) -> "SessionService":
        return cls(repo=SessionRepository(), logger=get_logger("sessions"))

    async def create(
        self,
        session: AsyncSession,
        *,
        user_id: UUID,
        payload: dict[str, Any] | None,
        ip_address: str | None,
        user_agent: str | None,
        ttl: dt.timedelta,
    ) -> IssuedSession:
        token = new_session_token()
        now = _utcnow()
        row = await self.repo.insert_session(
            session,
            session_id=uuid7_uuid(),
            user_id=user_id,
            token_hash=hash_session_token(token),
            data=payload,
            expires_at=now + ttl,
            user_agent=user_agent,
            ip_address=ip_address,
            now=now,
        )
        self.logger.info("Session created user_id=%s session_id=%s", user_id, row.id)
        return IssuedSession(session=row, token=token)

    async def get_by_token(self, session: AsyncSession, *, token: str) -> Session:
        if not token:
            raise SessionNotFoundException("Not authenticated", "empty token")
        try:
            row = await self.repo.get_by_token_hash(
                session, token_hash=hash_session_token(token)
            )
        except SQLAlchemyError as exc:
            raise AuthServiceStorageException("Session lookup failed", str(exc)) from exc
        if row is None:
            raise SessionNotFoundException("Not authenticated", "unknown token")

        if _utcnow() > _as_utc(row.expires_at):
            try:
                await self.repo.delete_by_id(session, session_id=row.id)
                await session.commit()
            except SQLAlchemyError as exc:
                await session.rollback()
                raise AuthServiceStorageException(
                    "Failed to purge expired session", str(exc)
                ) from exc
            self.logger.info("Expired session purged session_id=%s", row.id)
            raise SessionExpiredException("Not authenticated", "session expired")
        return row

    def needs_refresh(
        self, row: Session, *, window: dt.timedelta | None = None
    ) -> bool:
        remaining = _as_utc(row.expires_at) - _utcnow()
        return remaining < (window if window is not None else refresh_window())

    async def refresh(
        self, session: AsyncSession, *, token: str, ttl: dt.timedelta
    ) -> dt.datetime:
        now = _utcnow()
        expires_at = now + ttl
        try:
            await self.repo.set_expiry(
                session,
                token_hash=hash_session_token(token),
                expires_at=expires_at,
                now=now,
            )
            await session.commit()
        except SQLAlchemyError as exc:
            await session.rollback()
            raise AuthServiceStorageException("Failed to refresh session", str(exc)) from exc
        return expires_at

    async def delete_by_token(self, session: AsyncSession, *, token: str) -> int:
        try:
            deleted = await self.repo.delete_by_token_hash(
                session, token_hash=hash_session_token(token)
            )
            await session.commit()
        except SQLAlchemyError as exc:
            await session.rollback()
            raise AuthServiceStorageException("Failed to delete session", str(exc)) from exc
        return deleted

    async def delete_by_user_id(
        self,
        session: AsyncSession,
        *,
        user_id: UUID,
        except_session_id: UUID | None = None,
    ) -> int:
        try:
            deleted = await self.repo.delete_by_user_id(
                session, user_id=user_id, except_session_id=except_session_id
            )
            await session.commit()
        except SQLAlchemyError as exc:
            await session.rollback()
            raise AuthServiceStorageException("Failed to revoke sessions", str(exc)) from exc
        self.logger.info("Sessions revoked user_id=%s count=%d", user_id, deleted)
        return deleted

    async def clean_expired(self, session: AsyncSession) -> int:
        try:
            deleted = await self.repo.delete_expired(session, now=_utcnow())
            await session.commit()
        except SQLAlchemyError as exc:
            await session.rollback()
            raise AuthServiceStorageException(
                "Failed to clean expired sessions", str(exc)
            ) from exc
        self.logger.info("Expired sessions cleaned count=%d", deleted)
        return deleted

    def payload(self, row: Session) -> SessionData:
        return SessionData.model_validate(row.data or {})


@dataclass
class AuthService:
    repo: AuthRepository
    sessions: SessionService
    logger: logging.Logger

    @classmethod
    def build(cls) -> "AuthService":
        return cls(
            repo=AuthRepository(),
            sessions=SessionService.build(),
            logger=get_logger("auth"),
        )

    async def register(
        self,
        session: AsyncSession,
        *,
        email: str,
        name: str,
        password: str,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> tuple[User, IssuedSession]:
        if await self.repo.email_exists(session, email=email):
            raise AuthServiceConflictException(
                "Email already registered", "email_taken"
            )

        pw_hash = hash_password(password)
        try:
            user = await self.repo.insert_user(
                session,
                user_id=uuid7_uuid(),
                email=email,
                name=name,
                password_hash=pw_hash,
                now=_utcnow(),
            )
            issued = await self.sessions.create(
                session,
                user_id=user.id,
                payload=_session_payload(user),
                ip_address=ip_address,
                user_agent=user_agent,
                ttl=session_ttl(),
            )
            await session.commit()
        except IntegrityError as exc:
            # Lost a race against a concurrent registration for the same email.
            await session.rollback()
            raise AuthServiceConflictException(
                "Email already registered", "email_taken"
            ) from exc
        except SQLAlchemyError as exc:
            await session.rollback()
            raise AuthServiceStorageException("Failed to register user", str(exc)) from exc

        self.logger.info("User registered user_id=%s", user.id)
        return user, issued

    async def login(
        self,
        session: AsyncSession,
        *,
        email: str,
        password: str,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> tuple[User, IssuedSession]:
        user = await self.repo.get_user_by_email(session, email=email)
        if user is None:
            self.logger.warning("Login failed: unknown email")
            raise AuthServiceUnauthorizedException(INVALID_CREDENTIALS, "invalid_credentials")

        if not verify_password(password, user.password_hash):
            self.logger.warning("Login failed: bad password user_id=%s", user.id)
            raise AuthServiceUnauthorizedException(INVALID_CREDENTIALS, "invalid_credentials")

        try:
            issued = await self.sessions.create(
                session,
                user_id=user.id,
                payload=_session_payload(user),
                ip_address=ip_address,
                user_agent=user_agent,
                ttl=session_ttl(),
            )
            await session.commit()
        except SQLAlchemyError as exc:
            await session.rollback()
            raise AuthServiceStorageException("Failed to create session", str(exc)) from exc
        return user, issued

    async def logout(self, session: AsyncSession, *, token: str) -> None:
        await self.sessions.delete_by_token(session, token=token)

    async def resolve_caller(
        self, session: AsyncSession, *, token: str
    ) -> tuple[AuthenticatedCaller, dt.datetime | None] | None:
        """
        Map a bearer token to the caller behind it.

        Returns `None` for any missing/expired/unknown token. The second item is
        the new expiry when the session was slid forward on this call.
        """
        try:
            row = await self.sessions.get_by_token(session, token=token)
        except SessionNotFoundException:
            return None

        user = await self.repo.get_user_by_id(session, user_id=row.user_id)
        if user is None:
            return None

        refreshed_until: dt.datetime | None = None
        if self.sessions.needs_refresh(row):
            refreshed_until = await self.sessions.refresh(
                session, token=token, ttl=session_ttl()
            )
            self.logger.info("Session refreshed session_id=%s", row.id)

        caller = AuthenticatedCaller(
            user_id=user.id, session_id=row.id, email=user.email, name=user.name
        )
        return caller, refreshed_until

    async def get_profile(
        self, session: AsyncSession, *, caller: AuthenticatedCaller
    ) -> User:
        user = await self.repo.get_user_by_id(session, user_id=caller.user_id)
        if user is None:
            raise AuthServiceNotFoundException("User not found")
        return user

    async def update_profile(
        self,
        session: AsyncSession,
        *,
        caller: AuthenticatedCaller,
        email: str,
        name: str,
    ) -> User:
        current = await self.get_profile(session, caller=caller)
        if email.lower() != current.email.lower() and await self.repo.email_exists(
            session, email=email
        ):
            raise AuthServiceConflictException("Email already in use", "email_taken")

        try:
            user = await self.repo.update_profile(
                session, user_id=caller.user_id, email=email, name=name, now=_utcnow()
            )
            await session.commit()
        except IntegrityError as exc:
            await session.rollback()
            raise AuthServiceConflictException("Email already in use", "email_taken") from exc
        except SQLAlchemyError as exc:
            await session.rollback()
            raise AuthServiceStorageException("Failed to update profile", str(exc)) from exc
        if user is None:
            raise AuthServiceNotFoundException("User not found")
        return user

    async def update_password(
        self,
        session: AsyncSession,
        *,
        caller: AuthenticatedCaller,
        current_password: str,
        new_password: str,
    ) -> int:
        """
        Change the caller's password and revoke every other live session.

        Returns the number of sessions revoked. The session making the request
        stays valid.
        """
        user = await self.get_profile(session, caller=caller)
        if not verify_password(current_password, user.password_hash):
            raise AuthServiceUnauthorizedException(
                "Current password is incorrect", "invalid_credentials"
            )

        try:
            await self.repo.update_password_hash(
                session,
                user_id=user.id,
                password_hash=hash_password(new_password),
                now=_utcnow(),
            )
            revoked = await self.sessions.repo.delete_by_user_id(
                session, user_id=user.id, except_session_id=caller.session_id
            )
            await session.commit()
        except SQLAlchemyError as exc:
            await session.rollback()
            raise AuthServiceStorageException("Failed to update password", str(exc)) from exc

        self.logger.info("Password changed user_id=%s revoked=%d", user.id, revoked)
        return revoked


def _session_payload(user: User) -> dict[str, Any]:
    return SessionData(user_email=user.email, user_name=user.name).model_dump()
