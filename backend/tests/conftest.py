import os
import sys
import asyncio
from collections.abc import Iterable

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import sessionmaker

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

# Honour any externally provided DATABASE_URL but fall back to an in-memory
# SQLite database so local runs remain isolated. The app must not create its
# own schema on startup; every test builds a fresh one.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ["CREATE_SCHEMA_ON_STARTUP"] = "false"

from discstats import db  # noqa: E402
from discstats.cache import point_state_cache  # noqa: E402
from discstats.services import points as point_service  # noqa: E402


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def reset_point_state():
    """Drop cached derived state and per-game locks between tests."""

    asyncio.run(point_state_cache.clear())
    point_service._game_locks.clear()
    yield
    asyncio.run(point_state_cache.clear())
    point_service._game_locks.clear()


@pytest.fixture()
def client():
    from discstats.main import app

    engine = db.build_engine("sqlite+aiosqlite:///:memory:")
    async_session_maker = sessionmaker(
        engine, expire_on_commit=False, class_=AsyncSession
    )
    asyncio.run(db.create_schema(engine))

    async def override_get_session() -> Iterable[AsyncSession]:
        async with async_session_maker() as session:
            yield session

    app.dependency_overrides[db.get_session] = override_get_session

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    asyncio.run(engine.dispose())
