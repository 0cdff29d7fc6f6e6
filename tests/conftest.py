"""
Global pytest fixtures.

API tests override `database_session` and the service providers with fakes.
Service/repository tests run against an in-memory SQLite database built from
the ORM metadata, with foreign keys enforced so cascades behave as in Postgres.
"""

import datetime as dt

import pytest  # type: ignore[import-not-found]
from fastapi import FastAPI  # type: ignore[import-not-found]
from fastapi.testclient import TestClient  # type: ignore[import-not-found]
from sqlalchemy.ext.asyncio import (  # type: ignore[import-not-found]
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # type: ignore[import-not-found]

from discs.api.main import build_app
from discs.auth.repository import AuthRepository
from discs.commons.caller import AuthenticatedCaller
from discs.commons.ids import uuid7_uuid
from discs.core.db import DatabaseManager, enable_sqlite_foreign_keys


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Default AnyIO backend for async tests."""
    return "asyncio"


@pytest.fixture()
def app() -> FastAPI:
    """Fresh app per test so dependency overrides never leak."""
    return build_app()


@pytest.fixture()
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture()
async def db_engine(anyio_backend: str):
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    enable_sqlite_foreign_keys(engine)
    manager = DatabaseManager()
    manager.engine = engine
    await manager.create_tables()
    yield engine
    await engine.dispose()


@pytest.fixture()
async def db_session(db_engine):
    maker = async_sessionmaker(db_engine, expire_on_commit=False)
    async with maker() as session:
        yield session


async def _make_caller(session, *, email: str, name: str) -> AuthenticatedCaller:
    user = await AuthRepository().insert_user(
        session,
        user_id=uuid7_uuid(),
        email=email,
        name=name,
        password_hash="x",
        now=dt.datetime.now(dt.UTC),
    )
    await session.commit()
    return AuthenticatedCaller(
        user_id=user.id, session_id=uuid7_uuid(), email=user.email, name=user.name
    )


@pytest.fixture()
async def alice(db_session) -> AuthenticatedCaller:
    return await _make_caller(db_session, email="alice@example.com", name="Alice")


@pytest.fixture()
async def bob(db_session) -> AuthenticatedCaller:
    return await _make_caller(db_session, email="bob@example.com", name="Bob")
