"""Tests for the LLM provider chain."""
import pytest

from app.config import settings
from app.services.llm import LLMClient, LLMUnavailableError

# Captured at import time, before the autouse offline stub replaces it
_REAL_COMPLETE = LLMClient.complete


@pytest.fixture
def client(monkeypatch) -> LLMClient:
    monkeypatch.setattr(LLMClient, "complete", _REAL_COMPLETE)
    return LLMClient()


def test_chain_without_key(monkeypatch, client: LLMClient):
    monkeypatch.setattr(settings, "ANTHROPIC_API_KEY", "")
    assert client.provider_chain() == ["ollama"]


def test_chain_with_key(monkeypatch, client: LLMClient):
    monkeypatch.setattr(settings, "ANTHROPIC_API_KEY", "sk-test")
    assert client.provider_chain() == ["anthropic", "ollama"]
    assert client.model_for("anthropic") == settings.ANTHROPIC_MODEL
    assert client.model_for("ollama") == settings.OLLAMA_LLM_MODEL


@pytest.mark.asyncio
async def test_falls_back_to_ollama(monkeypatch, client: LLMClient):
    monkeypatch.setattr(settings, "ANTHROPIC_API_KEY", "sk-test")
    calls = []

    async def _anthropic(self, prompt, system, max_tokens, temperature):
        calls.append("anthropic")
        return ""

    async def _ollama(self, prompt, system, max_tokens, temperature):
        calls.append("ollama")
        return "  local answer  "

    monkeypatch.setattr(LLMClient, "_call_anthropic", _anthropic)
    monkeypatch.setattr(LLMClient, "_call_ollama", _ollama)

    completion = await client.complete("hi", system="be brief")
    assert calls == ["anthropic", "ollama"]
    assert completion.text == "local answer"
    assert completion.provider == "ollama"
    assert completion.model_used == settings.OLLAMA_LLM_MODEL


@pytest.mark.asyncio
async def test_all_providers_fail(monkeypatch, client: LLMClient):
    monkeypatch.setattr(settings, "ANTHROPIC_API_KEY", "")

    async def _ollama(self, prompt, system, max_tokens, temperature):
        return ""

    monkeypatch.setattr(LLMClient, "_call_ollama", _ollama)

    with pytest.raises(LLMUnavailableError):
        await client.complete("hi")


@pytest.mark.asyncio
async def test_default_max_tokens(monkeypatch, client: LLMClient):
    monkeypatch.setattr(settings, "ANTHROPIC_API_KEY", "")
    seen = {}

    async def _ollama(self, prompt, system, max_tokens, temperature):
        seen["max_tokens"] = max_tokens
        return "ok"

    monkeypatch.setattr(LLMClient, "_call_ollama", _ollama)
    await client.complete("hi")
    assert seen["max_tokens"] == settings.LLM_MAX_TOKENS
