"""Tests for GET /api/health."""
import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_health_returns_200(client: AsyncClient):
    resp = await client.get("/api/health/")
    assert resp.status_code == 200
    data = resp.json()
    assert "status" in data
    assert "database" in data
    assert data["database"] == "ok"


@pytest.mark.asyncio
async def test_health_degraded_without_llm(client: AsyncClient):
    resp = await client.get("/api/health/")
    data = resp.json()
    assert data["status"] == "degraded"
    assert data["ollama"] == "error"
    assert data["llm_provider"] == "unavailable"


@pytest.mark.asyncio
async def test_health_reports_first_available_provider(client: AsyncClient, monkeypatch):
    from app.services.llm import LLMClient

    async def _ollama_only(self):
        return {"anthropic": False, "ollama": True}

    monkeypatch.setattr(LLMClient, "check_health", _ollama_only)
    resp = await client.get("/api/health/")
    assert resp.json()["llm_provider"] == "ollama"


@pytest.mark.asyncio
async def test_root_endpoint(client: AsyncClient):
    resp = await client.get("/")
    assert resp.status_code == 200
    data = resp.json()
    assert data["name"] == "Portfolio CMS API"


@pytest.mark.asyncio
async def test_process_time_header(client: AsyncClient):
    resp = await client.get("/")
    assert resp.headers["X-Process-Time"].endswith("ms")


@pytest.mark.asyncio
async def test_health_timestamp_is_utc_aware(client: AsyncClient):
    resp = await client.get("/api/health/")
    stamp = resp.json()["timestamp"]
    assert stamp.endswith("Z") or stamp.endswith("+00:00")


@pytest.mark.asyncio
async def test_startup_reports_unpulled_ollama_models(monkeypatch):
    import httpx

    from app import main
    from app.config import settings

    def _tags(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"models": [{"name": f"{settings.OLLAMA_EMBED_MODEL}:latest"}]})

    real_client = httpx.AsyncClient
    monkeypatch.setattr(
        main.httpx,
        "AsyncClient",
        lambda **kwargs: real_client(transport=httpx.MockTransport(_tags), **kwargs),
    )

    assert await main._missing_ollama_models() == [settings.OLLAMA_LLM_MODEL]
