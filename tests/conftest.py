"""Pytest configuration and fixtures."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import NullPool

from smileforward.infrastructure.rate_limiter import in_memory_limiter
from smileforward.infrastructure.storage import MediaStorage
from smileforward.llm.gemini_client import GeminiClient
from smileforward.persistence.database import Base, get_db
from smileforward.persistence.models import *  # noqa: F401, F403


@pytest.fixture(autouse=True)
def reset_rate_limits():
    """Rate limit windows are process-global."""
    in_memory_limiter.reset()
    yield
    in_memory_limiter.reset()


@pytest.fixture
async def db_session():
    """Create a test database session."""
    # Use in-memory SQLite for testing
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def db_file(tmp_path):
    """File-backed SQLite shared by the TestClient's loop and sync seeding."""
    path = tmp_path / "test.db"
    sync_engine = create_engine(f"sqlite:///{path}")
    Base.metadata.create_all(sync_engine)

    async_engine = create_async_engine(f"sqlite+aiosqlite:///{path}", poolclass=NullPool)
    factory = async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)

    yield sync_engine, factory

    sync_engine.dispose()


@pytest.fixture
def seed_session(db_file):
    """Synchronous session for arranging route test data."""
    sync_engine, _ = db_file
    with Session(sync_engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
def mock_gemini():
    """GeminiClient with every upstream call mocked."""
    gemini = MagicMock(spec=GeminiClient)
    gemini.validate_image = AsyncMock()
    gemini.analyze_image = AsyncMock()
    gemini.generate_smile_image = AsyncMock(return_value=(b"png-bytes", "image/png"))
    gemini.validate_generated_image = AsyncMock(return_value=True)
    gemini.start_video = AsyncMock(return_value="models/veo/operations/op-1")
    gemini.get_video_operation = AsyncMock()
    gemini.download_video = AsyncMock(return_value=b"mp4-bytes")
    return gemini


@pytest.fixture
def mock_storage():
    """MediaStorage with GCS calls mocked."""
    storage = MagicMock(spec=MediaStorage)
    storage.upload_photo = AsyncMock(return_value="3f1c.jpg")
    storage.upload_generated = AsyncMock(
        side_effect=lambda data, content_type, path=None: (
            path or "smile_abc.png",
            f"https://storage.googleapis.com/generated/{path or 'smile_abc.png'}",
        )
    )
    storage.download_generated = AsyncMock(return_value=(b"png-bytes", "image/png"))
    storage.delete_expired_uploads = AsyncMock(return_value=[])
    return storage


@pytest.fixture
def client(db_file, mock_gemini, mock_storage):
    """Create a test FastAPI client."""
    from fastapi.testclient import TestClient

    from smileforward.api.deps import get_gemini_client
    from smileforward.infrastructure.storage import get_media_storage
    from smileforward.main import app

    _, factory = db_file

    async def override_get_db():
        async with factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_gemini_client] = lambda: mock_gemini
    app.dependency_overrides[get_media_storage] = lambda: mock_storage

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
