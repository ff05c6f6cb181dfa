"""
Text-generation client with a provider fallback chain.

Anthropic's Messages API is the primary provider when ANTHROPIC_API_KEY is
configured; the local Ollama /api/generate endpoint is always available as the
fallback.  Each provider call logs and returns an empty string on failure so
that the next provider can be tried; only when every provider fails does
:meth:`LLMClient.complete` raise :class:`LLMUnavailableError`.
"""
from __future__ import annotations

import asyncio
import dataclasses
import logging
import time
from typing import Dict, List

import httpx

from app.config import settings

logger = logging.getLogger(__name__)

UNAVAILABLE_MESSAGE = "AI services temporarily unavailable. Please try again later."


class LLMUnavailableError(RuntimeError):
    """Raised when no configured provider produced a completion."""


@dataclasses.dataclass
class LLMCompletion:
    text: str
    provider: str
    model_used: str
    elapsed_ms: float = 0.0


class LLMClient:
    """
    Concurrency-limited LLM caller.

    MAX_CONCURRENT caps simultaneous provider requests per client instance.
    """

    MAX_CONCURRENT: int = 2

    def __init__(self) -> None:
        self._semaphore = asyncio.Semaphore(self.MAX_CONCURRENT)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def provider_chain(self) -> List[str]:
        """Providers in the order they are tried."""
        chain = []
        if settings.ANTHROPIC_API_KEY:
            chain.append("anthropic")
        chain.append("ollama")
        return chain

    def model_for(self, provider: str) -> str:
        if provider == "anthropic":
            return settings.ANTHROPIC_MODEL
        return settings.OLLAMA_LLM_MODEL

    async def complete(
        self,
        prompt: str,
        system: str = "",
        max_tokens: int = 0,
        temperature: float = 0.3,
    ) -> LLMCompletion:
        """
        Generate a completion for *prompt*, trying each provider in turn.

        Raises:
            LLMUnavailableError: every provider failed or returned nothing.
        """
        max_tokens = max_tokens or settings.LLM_MAX_TOKENS

        for provider in self.provider_chain():
            t0 = time.perf_counter()
            async with self._semaphore:
                if provider == "anthropic":
                    text = await self._call_anthropic(prompt, system, max_tokens, temperature)
                else:
                    text = await self._call_ollama(prompt, system, max_tokens, temperature)
            elapsed_ms = (time.perf_counter() - t0) * 1000

            if text and text.strip():
                logger.info(
                    "LLM completion from %s (%s) in %.0f ms — %d chars",
                    provider,
                    self.model_for(provider),
                    elapsed_ms,
                    len(text),
                )
                return LLMCompletion(
                    text=text.strip(),
                    provider=provider,
                    model_used=self.model_for(provider),
                    elapsed_ms=round(elapsed_ms, 1),
                )

            logger.warning("LLM provider %s returned nothing, trying next provider", provider)

        logger.error("All LLM providers failed: %s", self.provider_chain())
        raise LLMUnavailableError(UNAVAILABLE_MESSAGE)

    async def check_health(self) -> Dict[str, bool]:
        """Reachability of each provider (Anthropic is only checked for a configured key)."""
        health = {"anthropic": bool(settings.ANTHROPIC_API_KEY), "ollama": False}
        try:
            async with httpx.AsyncClient(timeout=5.0) as client:
                resp = await client.get(f"{settings.OLLAMA_BASE_URL}/api/tags")
            health["ollama"] = resp.status_code == 200
        except Exception as exc:
            logger.error("Ollama health check failed: %s", exc)
        return health

    # ------------------------------------------------------------------
    # Providers
    # ------------------------------------------------------------------

    async def _call_anthropic(
        self, prompt: str, system: str, max_tokens: int, temperature: float
    ) -> str:
        """POST to the Anthropic Messages API and return the concatenated text blocks."""
        payload = {
            "model": settings.ANTHROPIC_MODEL,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            payload["system"] = system

        try:
            timeout = httpx.Timeout(float(settings.ANTHROPIC_TIMEOUT), connect=10.0)
            async with httpx.AsyncClient(timeout=timeout) as client:
                resp = await client.post(
                    f"{settings.ANTHROPIC_BASE_URL}/v1/messages",
                    headers={
                        "x-api-key": settings.ANTHROPIC_API_KEY,
                        "anthropic-version": settings.ANTHROPIC_VERSION,
                        "content-type": "application/json",
                    },
                    json=payload,
                )
            if resp.status_code != 200:
                logger.error("_call_anthropic: HTTP %d: %s", resp.status_code, resp.text[:300])
                return ""
            blocks = resp.json().get("content", [])
            return "".join(b.get("text", "") for b in blocks if b.get("type") == "text")
        except httpx.TimeoutException:
            logger.error("_call_anthropic: request timed out after %d s", settings.ANTHROPIC_TIMEOUT)
            return ""
        except Exception as exc:
            logger.error("_call_anthropic error: %s", exc)
            return ""

    async def _call_ollama(
        self, prompt: str, system: str, max_tokens: int, temperature: float
    ) -> str:
        """POST to local Ollama /api/generate and return the response text."""
        payload = {
            "model": settings.OLLAMA_LLM_MODEL,
            "prompt": prompt,
            "stream": False,
            "options": {"num_predict": max_tokens, "temperature": temperature},
        }
        if system:
            payload["system"] = system

        timeout = httpx.Timeout(float(settings.OLLAMA_TIMEOUT), connect=10.0)
        try:
            async with httpx.AsyncClient(timeout=timeout) as client:
                resp = await client.post(
                    f"{settings.OLLAMA_BASE_URL}/api/generate",
                    json=payload,
                )
            if resp.status_code != 200:
                logger.error("_call_ollama returned %d: %s", resp.status_code, resp.text[:200])
                return ""
            return resp.json().get("response", "")
        except httpx.TimeoutException:
            logger.error("_call_ollama: request timed out after %d s", settings.OLLAMA_TIMEOUT)
            return ""
        except httpx.ConnectError as exc:
            logger.error("_call_ollama: connection error — %s", exc)
            return ""
        except Exception as exc:
            logger.error("_call_ollama error: %s", exc)
            return ""


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------
llm_client = LLMClient()
