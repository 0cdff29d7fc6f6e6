"""
Shared persistence/service pattern for the simple user-owned catalog entities
(artists, genres, labels).

Each of those tables has the same shape: id, name, nullable description,
owning user, timestamps. Feature packages bind the generic repository and
service below to their own model and add whatever is specific to them.
"""

from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar
from uuid import UUID

import sqlalchemy as sa  # type: ignore[import-not-found]
from sqlalchemy.exc import IntegrityError, SQLAlchemyError  # type: ignore[import-not-found]
from sqlalchemy.ext.asyncio import AsyncSession  # type: ignore[import-not-found]

from discs.commons.caller import AuthenticatedCaller
from discs.commons.exceptions import (
    BaseServiceConflictException,
    BaseServiceNotFoundException,
    BaseServiceStorageException,
    BaseServiceUnauthorizedException,
    BaseServiceUnProcessableException,
)
from discs.commons.ids import uuid7_uuid

ModelT = TypeVar("ModelT", bound=Any)


def blank_to_none(value: str | None) -> str | None:
    """Blank optional text is stored as NULL, never as ''."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def like_pattern(term: str) -> str:
    return f"%{term}%"


@dataclass(frozen=True)
class NamedEntityRepository(Generic[ModelT]):
    model: type[ModelT]

    async def get_by_id(self, session: AsyncSession, *, entity_id: UUID) -> ModelT | None:
        stmt = sa.select(self.model).where(self.model.id == entity_id)
        res = await session.execute(stmt)
        return res.scalar_one_or_none()

    async def list_for_user(self, session: AsyncSession, *, user_id: UUID) -> list[ModelT]:
        stmt = (
            sa.select(self.model)
            .where(self.model.user_id == user_id)
            .order_by(self.model.name.asc())
        )
        res = await session.execute(stmt)
        return list(res.scalars().all())

    async def search_for_user(
        self, session: AsyncSession, *, user_id: UUID, query: str
    ) -> list[ModelT]:
        stmt = (
            sa.select(self.model)
            .where(self.model.user_id == user_id)
            .where(self.model.name.ilike(like_pattern(query)))
            .order_by(self.model.name.asc())
        )
        res = await session.execute(stmt)
        return list(res.scalars().all())

    async def name_taken(
        self,
        session: AsyncSession,
        *,
        user_id: UUID,
        name: str,
        exclude_id: UUID | None = None,
    ) -> bool:
        cond = sa.and_(self.model.user_id == user_id, self.model.name == name)
        if exclude_id is not None:
            cond = sa.and_(cond, self.model.id != exclude_id)
        res = await session.execute(sa.select(sa.exists().where(cond)))
        return bool(res.scalar())

    async def existing_ids_for_user(
        self, session: AsyncSession, *, user_id: UUID, ids: Iterable[UUID]
    ) -> set[UUID]:
        wanted = set(ids)
        if not wanted:
            return set()
        stmt = (
            sa.select(self.model.id)
            .where(self.model.user_id == user_id)
            .where(self.model.id.in_(wanted))
        )
        res = await session.execute(stmt)
        return set(res.scalars().all())

    async def insert(
        self,
        session: AsyncSession,
        *,
        user_id: UUID,
        name: str,
        description: str | None,
    ) -> ModelT:
        now = dt.datetime.now(dt.UTC)
        row = self.model(
            id=uuid7_uuid(),
            user_id=user_id,
            name=name,
            description=description,
            created_at=now,
            updated_at=now,
        )
        session.add(row)
        await session.flush()
        return row

    async def update_for_user(
        self,
        session: AsyncSession,
        *,
        user_id: UUID,
        entity_id: UUID,
        name: str,
        description: str | None,
    ) -> ModelT | None:
        stmt = (
            sa.update(self.model)
            .where(self.model.id == entity_id)
            .where(self.model.user_id == user_id)
            .values(name=name, description=description, updated_at=dt.datetime.now(dt.UTC))
            .returning(self.model)
        )
        res = await session.execute(stmt)
        await session.flush()
        return res.scalar_one_or_none()

    async def delete_for_user(
        self, session: AsyncSession, *, user_id: UUID, entity_id: UUID
    ) -> int:
        stmt = (
            sa.delete(self.model)
            .where(self.model.id == entity_id)
            .where(self.model.user_id == user_id)
        )
        res = await session.execute(stmt)
        await session.flush()
        return int(res.rowcount or 0)


@dataclass
class NamedEntityService(Generic[ModelT]):
    repo: NamedEntityRepository[ModelT]
    logger: logging.Logger
    entity: str
    # Only artists carry UNIQUE(name, user_id).
    unique_names: bool = False

    def _not_found(self) -> BaseServiceNotFoundException:
        return BaseServiceNotFoundException(f"{self.entity} not found")

    def _normalize_name(self, name: str) -> str:
        cleaned = (name or "").strip()
        if not cleaned:
            raise BaseServiceUnProcessableException(f"{self.entity} name is required")
        return cleaned

    async def get(
        self, session: AsyncSession, *, caller: AuthenticatedCaller, entity_id: UUID
    ) -> ModelT:
        row = await self.repo.get_by_id(session, entity_id=entity_id)
        if row is None:
            raise self._not_found()
        if row.user_id != caller.user_id:
            self.logger.warning(
                "Cross-user %s access entity_id=%s user_id=%s",
                self.entity.lower(),
                entity_id,
                caller.user_id,
            )
            raise BaseServiceUnauthorizedException("Unauthorized")
        return row

    async def list_by_user(
        self, session: AsyncSession, *, caller: AuthenticatedCaller
    ) -> list[ModelT]:
        return await self.repo.list_for_user(session, user_id=caller.user_id)

    async def create(
        self,
        session: AsyncSession,
        *,
        caller: AuthenticatedCaller,
        name: str,
        description: str | None,
    ) -> ModelT:
        name = self._normalize_name(name)
        if self.unique_names and await self.repo.name_taken(
            session, user_id=caller.user_id, name=name
        ):
            raise BaseServiceConflictException(f"{self.entity} already exists", name)
        try:
            row = await self.repo.insert(
                session,
                user_id=caller.user_id,
                name=name,
                description=blank_to_none(description),
            )
            await session.commit()
        except IntegrityError as exc:
            await session.rollback()
            raise BaseServiceConflictException(f"{self.entity} already exists", name) from exc
        except SQLAlchemyError as exc:
            await session.rollback()
            raise BaseServiceStorageException(
                f"Failed to create {self.entity.lower()}", str(exc)
            ) from exc
        self.logger.info("%s created id=%s user_id=%s", self.entity, row.id, caller.user_id)
        return row

    async def update(
        self,
        session: AsyncSession,
        *,
        caller: AuthenticatedCaller,
        entity_id: UUID,
        name: str,
        description: str | None,
    ) -> ModelT:
        await self.get(session, caller=caller, entity_id=entity_id)
        name = self._normalize_name(name)
        if self.unique_names and await self.repo.name_taken(
            session, user_id=caller.user_id, name=name, exclude_id=entity_id
        ):
            raise BaseServiceConflictException(f"{self.entity} already exists", name)
        try:
            row = await self.repo.update_for_user(
                session,
                user_id=caller.user_id,
                entity_id=entity_id,
                name=name,
                description=blank_to_none(description),
            )
            if row is None:
                # Row vanished or changed hands between the check and the write.
                await session.rollback()
                raise self._not_found()
            await session.commit()
        except IntegrityError as exc:
            await session.rollback()
            raise BaseServiceConflictException(f"{self.entity} already exists", name) from exc
        except SQLAlchemyError as exc:
            await session.rollback()
            raise BaseServiceStorageException(
                f"Failed to update {self.entity.lower()}", str(exc)
            ) from exc
        return row

    async def delete(
        self, session: AsyncSession, *, caller: AuthenticatedCaller, entity_id: UUID
    ) -> None:
        await self.get(session, caller=caller, entity_id=entity_id)
        try:
            deleted = await self.repo.delete_for_user(
                session, user_id=caller.user_id, entity_id=entity_id
            )
            await session.commit()
        except SQLAlchemyError as exc:
            await session.rollback()
            raise BaseServiceStorageException(
                f"Failed to delete {self.entity.lower()}", str(exc)
            ) from exc
        if deleted == 0:
            raise self._not_found()
        self.logger.info("%s deleted id=%s user_id=%s", self.entity, entity_id, caller.user_id)
