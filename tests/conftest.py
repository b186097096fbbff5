# tests/conftest.py

"""Pytest configuration and fixtures."""

import os

# Cheap hashes and no stray database file for the application engine.
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from typing import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
from gipfladder.db.models import Player  # noqa: E402
from gipfladder.db.session import (  # noqa: E402
    build_engine,
    create_schema,
    get_db,
    make_sessionmaker,
    session_scope,
)
from gipfladder.main import app  # noqa: E402
from gipfladder.services import player_service  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

USERNAMES = [
    "baroqueen",
    "cobrag",
    "vikingkong",
    "preaster",
    "fickleSkeleton",
    "SnowTea",
    "AfternoonTerror",
    "JokeCherry",
    "JealousPelican",
    "PositiveLamb",
]


def email_for(login: str) -> str:
    return f"{login}@gipf.example.org"


def password_for(login: str) -> str:
    return f"{login}-s3cret"


@pytest.fixture
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    """
    A fresh in-memory database per test.
    StaticPool keeps the single connection the schema was created on.
    """
    engine = build_engine(TEST_DATABASE_URL, poolclass=StaticPool)
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(test_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Fixture to provide a database session to a test."""
    async with session_scope(make_sessionmaker(test_engine)) as session:
        yield session


@pytest.fixture
async def players(db_session: AsyncSession) -> list[Player]:
    """The ten reference players, registered in order at the default rating."""
    return [
        await player_service.register_player(
            db_session, login, password_for(login), email_for(login)
        )
        for login in USERNAMES
    ]


@pytest.fixture
async def async_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Fixture to provide an async test client for the API."""

    # Override the get_db dependency to use the test database
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    # Clean up the override after the test
    del app.dependency_overrides[get_db]
