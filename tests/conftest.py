"""
Shared fixtures for the portfolio backend integration tests.

By default every test runs against a fresh in-memory SQLite database
(aiosqlite); set TEST_DATABASE_URL to a postgresql+asyncpg URL to run the
suite against Postgres + pgvector instead.  Tables are created per test and
dropped afterwards.

Network services are stubbed: embeddings return nothing and every LLM call
raises LLMUnavailableError unless a test installs a reply with ``llm_reply``.
"""
from __future__ import annotations

import os
import tempfile
from typing import AsyncGenerator, Callable, List

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool, StaticPool

# Override settings *before* any app module is imported, so that the global
# settings object and engine pick them up.
TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="portfolio-uploads-")
os.environ["ADMIN_USERNAME"] = "admin"
os.environ["ADMIN_PASSWORD"] = "test-password"
os.environ["ADMIN_API_TOKEN"] = "test-admin-token"
os.environ["ANTHROPIC_API_KEY"] = ""
os.environ["EMBEDDING_JOB_DELAY"] = "0"

from app.database import Base, get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.services.embedding import OllamaEmbeddingService  # noqa: E402
from app.services.llm import (  # noqa: E402
    UNAVAILABLE_MESSAGE,
    LLMClient,
    LLMCompletion,
    LLMUnavailableError,
)

_IS_SQLITE = TEST_DATABASE_URL.startswith("sqlite")


# ---------------------------------------------------------------------------
# Per-test fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Provide a DB session for each test on a freshly created schema.
    All tables are dropped after the test.
    """
    if _IS_SQLITE:
        engine = create_async_engine(
            TEST_DATABASE_URL,
            echo=False,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    else:
        engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)

    async with engine.begin() as conn:
        if not _IS_SQLITE:
            await conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    httpx AsyncClient wired to the FastAPI app with the DB dependency
    overridden to use the per-test session (committed per request, like get_db).
    """

    async def _override_get_db():
        try:
            yield db_session
            await db_session.commit()
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_db] = _override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def offline_services(monkeypatch):
    """Keep every test off the network: no embeddings, no LLM."""

    async def _no_embedding(self, text):
        return None

    async def _no_llm(self, prompt, system="", max_tokens=0, temperature=0.3):
        raise LLMUnavailableError(UNAVAILABLE_MESSAGE)

    async def _ollama_down(self):
        return False

    async def _providers_down(self):
        return {"anthropic": False, "ollama": False}

    monkeypatch.setattr(OllamaEmbeddingService, "embed_text", _no_embedding)
    monkeypatch.setattr(OllamaEmbeddingService, "check_ollama_health", _ollama_down)
    monkeypatch.setattr(LLMClient, "complete", _no_llm)
    monkeypatch.setattr(LLMClient, "check_health", _providers_down)


@pytest.fixture
def llm_reply(monkeypatch) -> Callable[[str], List[str]]:
    """
    Install a canned LLM reply.  Returns the list of prompts the stub
    received so tests can inspect what was sent.
    """
    prompts: List[str] = []

    def _install(reply: str) -> List[str]:
        async def _complete(self, prompt, system="", max_tokens=0, temperature=0.3):
            prompts.append(prompt)
            return LLMCompletion(text=reply, provider="ollama", model_used="test-model")

        monkeypatch.setattr(LLMClient, "complete", _complete)
        return prompts

    return _install


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

ADMIN_HEADERS = {"X-Admin-Token": "test-admin-token"}

BAD_ADMIN_HEADERS = {"X-Admin-Token": "wrong-token"}
