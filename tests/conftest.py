"""Shared pytest fixtures for the Memory Sketches test suite.

Provides isolated settings, mock LLM/STT providers, in-memory database
engines and a temporary storage root used across unit and integration tests.
"""

import json
from unittest.mock import AsyncMock

import pytest

from memsketch.core.config import get_settings

TOKENS = {"tok-alice": "alice", "tok-bob": "bob"}

SAMPLE_TRANSCRIPT = (
    "We spent every summer at the lake house. "
    "Every morning my grandfather taught me to fish off the dock."
)


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def settings(monkeypatch, tmp_path):
    """Point every test at a temporary storage root and known tokens.

    Returns:
        Settings: The freshly loaded (and cached) settings object.
    """
    monkeypatch.setenv("STORAGE_DIR", str(tmp_path / "storage"))
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
    monkeypatch.setenv("API_TOKENS", json.dumps(TOKENS))
    monkeypatch.setenv("GATEWAY_API_KEY", "test-gateway-key")
    monkeypatch.setenv("GATEWAY_CONNECT_ATTEMPTS", "2")
    monkeypatch.setenv("CLAUDE_API_KEY", "")
    monkeypatch.setenv("SCENE_PROVIDER", "gateway")
    monkeypatch.setenv("DROP_UNVERIFIED_SCENES", "false")
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()


# ---------------------------------------------------------------------------
# LLM / STT Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_llm():
    """Create a mock LLM provider for unit testing.

    Returns:
        AsyncMock: A mock implementing the BaseLLM interface whose
        ``extract`` yields two scenes quoting ``SAMPLE_TRANSCRIPT``.
    """
    from memsketch.services.llm.base import BaseLLM

    llm = AsyncMock(spec=BaseLLM)
    llm.extract.return_value = {
        "scenes": [
            {
                "sentence": "We spent every summer at the lake house",
                "description": "A wooden cabin beside a calm lake at dusk",
                "mood": "nostalgic",
            },
            {
                "sentence": "my grandfather taught me to fish off the dock",
                "description": "An old man and a child fishing from a wooden dock",
                "mood": "peaceful",
            },
        ]
    }
    return llm


@pytest.fixture
def mock_stt():
    """Create a mock STT provider returning ``SAMPLE_TRANSCRIPT`` with padding."""
    from memsketch.services.transcription.base import BaseSTT

    stt = AsyncMock(spec=BaseSTT)
    stt.transcribe.return_value = f"  {SAMPLE_TRANSCRIPT}\n"
    return stt


@pytest.fixture
def sample_transcript() -> str:
    return SAMPLE_TRANSCRIPT


# ---------------------------------------------------------------------------
# Database Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
async def db_engine():
    """Create an in-memory SQLite async engine with tables, dispose after test."""
    from sqlalchemy.ext.asyncio import create_async_engine

    from memsketch.services.storage import models_db  # noqa: F401
    from memsketch.services.storage.database import Base

    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine):
    """Yield an AsyncSession bound to the test engine; rolls back after test."""
    from sqlalchemy.ext.asyncio import async_sessionmaker

    factory = async_sessionmaker(db_engine, expire_on_commit=False)
    async with factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def repository(db_session):
    """Return a MemoryRepository bound to the test session."""
    from memsketch.services.storage.repository import MemoryRepository

    return MemoryRepository(db_session)


@pytest.fixture
def use_test_db(db_engine):
    """Inject the test engine into the database module.

    Services that open their own ``get_session()`` blocks then share the
    in-memory SQLite with tables already created.
    """
    from memsketch.services.storage import database

    database._engine = db_engine
    database._session_factory = None
    yield db_engine
    database.reset_engine()


# ---------------------------------------------------------------------------
# Storage Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def storage_root(settings):
    """Temporary storage root (already configured as ``storage_dir``)."""
    return settings.storage_dir
