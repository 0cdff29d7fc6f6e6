"""
Database manager (async SQLAlchemy).

A shared manager owns the engine and sessionmaker; `commons.depends` yields
sessions from it per request.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import event  # type: ignore[import-not-found]
from sqlalchemy.ext.asyncio import (  # type: ignore[import-not-found]
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from discs.commons.exceptions import BaseCoreException
from discs.commons.logging import logger
from discs.core.settings import settings


class DatabaseException(BaseCoreException):
    pass


def build_dsn() -> str:
    if settings.DISCS_DB_URL:
        return settings.DISCS_DB_URL
    # psycopg async driver
    return (
        "postgresql+psycopg://"
        f"{settings.DISCS_DB_USER}:{settings.DISCS_DB_PASSWORD}"
        f"@{settings.DISCS_DB_HOST}:{settings.DISCS_DB_PORT}"
        f"/{settings.DISCS_DB_NAME}"
    )


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    # SQLite ships with FK enforcement off; cascades depend on it.
    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _record: Any) -> None:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


class DatabaseManager:
    def __init__(self) -> None:
        self.engine: AsyncEngine | None = None
        self.sessionmaker: async_sessionmaker[AsyncSession] | None = None

    async def initialize(self, dsn: str | None = None) -> None:
        if self.engine is not None:
            return
        try:
            url = dsn or build_dsn()
            self.engine = create_async_engine(url, echo=settings.DISCS_DB_ECHO)
            if url.startswith("sqlite"):
                enable_sqlite_foreign_keys(self.engine)
            self.sessionmaker = async_sessionmaker(self.engine, expire_on_commit=False)
            logger.info("Database initialized")
        except Exception as exc:
            raise DatabaseException("Failed to initialize database", str(exc)) from exc

    async def create_tables(self) -> None:
        # Imported for their side effect of registering tables on Base.metadata.
        from discs.artists import models as _artists  # noqa: F401
        from discs.auth.models import Base
        from discs.genres import models as _genres  # noqa: F401
        from discs.labels import models as _labels  # noqa: F401
        from discs.records import models as _records  # noqa: F401

        if self.engine is None:
            raise DatabaseException("Database is not initialized")
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def shutdown(self) -> None:
        if self.engine is None:
            return
        await self.engine.dispose()
        self.engine = None
        self.sessionmaker = None
        logger.info("Database shut down")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        if self.sessionmaker is None:
            raise DatabaseException("Database is not initialized")
        async with self.sessionmaker() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()


database_manager = DatabaseManager()
