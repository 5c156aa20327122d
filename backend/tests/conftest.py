import asyncio
import os
from collections.abc import AsyncIterator, Iterator

# Never ship test events to an error tracker configured in the developer's .env.
os.environ["SENTRY_DSN"] = ""

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

import slugline.models  # noqa: F401,E402
from slugline.core import metrics
from slugline.core.config import settings
from slugline.db.base import Base


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def _reset_metrics() -> Iterator[None]:
    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture(autouse=True)
def _restore_slug_settings() -> Iterator[None]:
    # Tests tweak the process-wide settings object; put it back afterwards.
    saved = {
        "slug_max_attempts": settings.slug_max_attempts,
        "slug_conflict_retries": settings.slug_conflict_retries,
        "slug_exhaustion_policy": settings.slug_exhaustion_policy,
        "allow_handle_changes": settings.allow_handle_changes,
    }
    yield
    for key, value in saved.items():
        setattr(settings, key, value)


async def _create_engine() -> AsyncEngine:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", future=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    return engine


@pytest.fixture
async def session_factory() -> AsyncIterator[async_sessionmaker]:
    engine = await _create_engine()
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def sync_session_factory() -> Iterator[async_sessionmaker]:
    """Same database as ``session_factory`` for sync tests driving a TestClient."""
    engine = asyncio.run(_create_engine())
    yield async_sessionmaker(engine, expire_on_commit=False)
    asyncio.run(engine.dispose())
