from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Any
from uuid import UUID

import sqlalchemy as sa  # type: ignore[import-not-found]
from sqlalchemy.ext.asyncio import AsyncSession  # type: ignore[import-not-found]

from discs.auth.models import Session, User


@dataclass(frozen=True)
class AuthRepository:
    async def get_user_by_email(
        self, session: AsyncSession, *, email: str
    ) -> User | None:
        stmt = sa.select(User).where(sa.func.lower(User.email) == email.lower())
        res = await session.execute(stmt)
        return res.scalar_one_or_none()

    async def get_user_by_id(self, session: AsyncSession, *, user_id: UUID) -> User | None:
        stmt = sa.select(User).where(User.id == user_id)
        res = await session.execute(stmt)
        return res.scalar_one_or_none()

    async def email_exists(self, session: AsyncSession, *, email: str) -> bool:
        stmt = sa.select(
            sa.exists().where(sa.func.lower(User.email) == email.lower())
        )
        res = await session.execute(stmt)
        return bool(res.scalar())

    async def insert_user(
        self,
        session: AsyncSession,
        *,
        user_id: UUID,
        email: str,
        name: str,
        password_hash: str,
        now: dt.datetime,
    ) -> User:
        user = User(
            id=user_id,
            email=email.lower(),
            name=name.strip(),
            password_hash=password_hash,
            created_at=now,
            updated_at=now,
        )
        session.add(user)
        await session.flush()
        return user

    async def update_profile(
        self,
        session: AsyncSession,
        *,
        user_id: UUID,
        email: str,
        name: str,
        now: dt.datetime,
    ) -> User | None:
        stmt = (
            sa.update(User)
            .where(User.id == user_id)
            .values(email=email.lower(), name=name.strip(), updated_at=now)
            .returning(User)
        )
        res = await session.execute(stmt)
        await session.flush()
        return res.scalar_one_or_none()

    async def update_password_hash(
        self,
        session: AsyncSession,
        *,
        user_id: UUID,
        password_hash: str,
        now: dt.datetime,
    ) -> int:
        stmt = (
            sa.update(User)
            .where(User.id == user_id)
            .values(password_hash=password_hash, updated_at=now)
        )
        res = await session.execute(stmt)
        await session.flush()
        return int(res.rowcount or 0)


@dataclass(frozen=True)
class SessionRepository:
    async def insert_session(
        self,
        session: AsyncSession,
        *,
        session_id: UUID,
        user_id: UUID,
        token_hash: str,
        data: dict[str, Any] | None,
        expires_at: dt.datetime,
        user_agent: str | None,
        ip_address: str | None,
        now: dt.datetime,
    ) -> Session:
        s = Session(
            id=session_id,
            user_id=user_id,
            token_hash=token_hash,
            data=data,
            expires_at=expires_at,
            user_agent=user_agent,
            ip_address=ip_address,
            created_at=now,
            updated_at=now,
        )
        session.add(s)
        await session.flush()
        return s

    async def get_by_token_hash(
        self, session: AsyncSession, *, token_hash: str
    ) -> Session | None:
        # Expired rows are returned too; the service decides and purges.
        stmt = sa.select(Session).where(Session.token_hash == token_hash)
        res = await session.execute(stmt)
        return res.scalar_one_or_none()

    async def set_expiry(
        self,
        session: AsyncSession,
        *,
        token_hash: str,
        expires_at: dt.datetime,
        now: dt.datetime,
    ) -> int:
        stmt = (
            sa.update(Session)
            .where(Session.token_hash == token_hash)
            .values(expires_at=expires_at, updated_at=now)
        )
        res = await session.execute(stmt)
        await session.flush()
        return int(res.rowcount or 0)

    async def delete_by_id(self, session: AsyncSession, *, session_id: UUID) -> int:
        stmt = sa.delete(Session).where(Session.id == session_id)
        res = await session.execute(stmt)
        await session.flush()
        return int(res.rowcount or 0)

    async def delete_by_token_hash(
        self, session: AsyncSession, *, token_hash: str
    ) -> int:
        stmt = sa.delete(Session).where(Session.token_hash == token_hash)
        res = await session.execute(stmt)
        await session.flush()
        return int(res.rowcount or 0)

    async def delete_by_user_id(
        self,
        session: AsyncSession,
        *,
        user_id: UUID,
        except_session_id: UUID | None = None,
    ) -> int:
        stmt = sa.delete(Session).where(Session.user_id == user_id)
        if except_session_id is not None:
            stmt = stmt.where(Session.id != except_session_id)
        res = await session.execute(stmt)
        await session.flush()
        return int(res.rowcount or 0)

    async def delete_expired(self, session: AsyncSession, *, now: dt.datetime) -> int:
        stmt = (
            sa.delete(Session)
            .where(Session.expires_at < now)
            .execution_options(synchronize_session=False)
        )
        res = await session.execute(stmt)
        await session.flush()
        return int(res.rowcount or 0)
