"""
Embedding generation and vector search for knowledge-base documents.

Provides:
- OllamaEmbeddingService: concurrency-limited, retrying, caching, normalizing embedder
- embed_document: persist a document-level vector and mark the document embedded
- find_similar_documents: cosine similarity search over embedded documents
- get_relevant_context: formatted context block for prompts
- run_embedding_job: background job embedding every processed document
"""
from __future__ import annotations

import asyncio
import hashlib
import logging
import math
import time
from typing import Any, Dict, List, Optional

import httpx
import numpy as np
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.database_models import DocumentStatus, KnowledgeBaseDocument
from app.services.job_manager import JobPhase, JobStatus
from app.utils.helpers import preprocess_for_embedding

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Module-level embedding cache: sha256(text) -> normalized vector
# ---------------------------------------------------------------------------
_embedding_cache: Dict[str, List[float]] = {}


# ---------------------------------------------------------------------------
# Pure vector helpers
# ---------------------------------------------------------------------------

def _hash_text(content: str) -> str:
    """SHA-256 digest of a text string, used as cache key."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def _normalize(vector: List[float]) -> List[float]:
    """Return a unit-length copy of *vector*."""
    magnitude = math.sqrt(sum(x * x for x in vector))
    if magnitude == 0.0:
        return vector
    return [x / magnitude for x in vector]


def _cosine_scores(query: List[float], matrix: np.ndarray) -> np.ndarray:
    """Cosine similarity of *query* against every row of *matrix*."""
    q = np.asarray(query, dtype=np.float32)
    q_norm = np.linalg.norm(q)
    row_norms = np.linalg.norm(matrix, axis=1)
    denom = row_norms * q_norm
    denom[denom == 0] = 1.0
    return (matrix @ q) / denom


def _embedding_source(document: KnowledgeBaseDocument) -> str:
    """Text that represents a document in vector space."""
    parts = [document.original_name, document.category]
    if document.summary:
        parts.append(document.summary)
    if document.content_text:
        parts.append(document.content_text)
    return "\n".join(parts)


# ---------------------------------------------------------------------------
# Main service class
# ---------------------------------------------------------------------------

class OllamaEmbeddingService:
    """
    Embedding generation via Ollama:

    * Semaphore caps concurrent Ollama calls (MAX_CONCURRENT = 3)
    * Exponential-backoff retries on connection / HTTP errors (MAX_RETRIES = 3)
    * Unit-length normalization before storage
    * In-process content-hash cache, identical text is embedded only once
    """

    MAX_CONCURRENT: int = 3
    MAX_RETRIES: int = 3

    def __init__(self) -> None:
        self.base_url = settings.OLLAMA_BASE_URL
        self.model = settings.OLLAMA_EMBED_MODEL
        self.expected_dim = settings.VECTOR_DIMENSION
        self.timeout = httpx.Timeout(60.0, connect=10.0)
        self._semaphore = asyncio.Semaphore(self.MAX_CONCURRENT)

    # ------------------------------------------------------------------
    # Primary API
    # ------------------------------------------------------------------

    async def embed_text(self, text: str) -> Optional[List[float]]:
        """
        Embed a single text string.

        The text is preprocessed (whitespace collapsed, symbols stripped,
        capped at EMBEDDING_MAX_CHARS).  Returns a normalized vector, or
        ``None`` on permanent failure.
        """
        if not text or not text.strip():
            logger.warning("embed_text: received empty/blank text, skipping")
            return None

        text = preprocess_for_embedding(text, settings.EMBEDDING_MAX_CHARS)
        key = _hash_text(text)
        if key in _embedding_cache:
            return _embedding_cache[key]

        embedding = await self._call_ollama_with_retry(text)
        if embedding is not None:
            _embedding_cache[key] = embedding
        return embedding

    async def embed_document(
        self,
        document: KnowledgeBaseDocument,
        db: AsyncSession,
    ) -> bool:
        """
        Embed *document* and store the vector on it.

        On success the status becomes ``embedded``.  A failure leaves the
        document untouched so the bulk job can retry it later.
        """
        vector = await self.embed_text(_embedding_source(document))
        if vector is None:
            logger.warning("embed_document: no vector for document id=%d", document.id)
            return False

        document.embedding = vector
        document.status = DocumentStatus.EMBEDDED.value
        await db.flush()
        logger.info("Document %d embedded (%d dims)", document.id, len(vector))
        return True

    async def find_similar_documents(
        self,
        query: str,
        db: AsyncSession,
        limit: int = 5,
        threshold: Optional[float] = None,
    ) -> List[Dict[str, Any]]:
        """
        Return up to *limit* embedded documents whose cosine similarity to
        *query* is above *threshold* (default DOCUMENT_SIMILARITY_THRESHOLD),
        most similar first.  An empty list is returned when the query cannot
        be embedded.
        """
        threshold = settings.DOCUMENT_SIMILARITY_THRESHOLD if threshold is None else threshold
        query_vector = await self.embed_text(query)
        if query_vector is None:
            return []

        result = await db.execute(
            select(KnowledgeBaseDocument).where(
                KnowledgeBaseDocument.status == DocumentStatus.EMBEDDED.value,
                KnowledgeBaseDocument.embedding.isnot(None),
            )
        )
        documents = result.scalars().all()
        if not documents:
            return []

        matrix = np.vstack([np.asarray(d.embedding, dtype=np.float32) for d in documents])
        scores = _cosine_scores(query_vector, matrix)

        ranked = sorted(
            (
                (float(score), doc)
                for score, doc in zip(scores, documents)
                if float(score) > threshold
            ),
            key=lambda pair: pair[0],
            reverse=True,
        )
        return [
            {
                "id": doc.id,
                "original_name": doc.original_name,
                "category": doc.category,
                "summary": doc.summary,
                "key_insights": doc.key_insights,
                "content_text": doc.content_text,
                "score": round(score, 4),
                "match_type": "vector",
            }
            for score, doc in ranked[:limit]
        ]

    async def get_relevant_context(
        self,
        query: str,
        db: AsyncSession,
        max_documents: int = 3,
    ) -> str:
        """Format the most similar documents as a ``RELEVANT CONTEXT`` prompt block."""
        similar = await self.find_similar_documents(query, db, limit=max_documents)
        if not similar:
            return ""

        blocks = []
        for doc in similar:
            preview = (doc["content_text"] or "")[:500]
            blocks.append(
                f"[{doc['category'].upper()} - {doc['original_name']}]\n{preview}..."
            )
        return "RELEVANT CONTEXT:\n" + "\n\n".join(blocks)

    async def check_ollama_health(self) -> bool:
        """Return ``True`` if Ollama is reachable and returns HTTP 200."""
        try:
            async with httpx.AsyncClient(timeout=5.0) as client:
                resp = await client.get(f"{self.base_url}/api/tags")
                return resp.status_code == 200
        except Exception as exc:
            logger.error("Ollama health check failed: %s", exc)
            return False

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _call_ollama_with_retry(self, text: str) -> Optional[List[float]]:
        """
        POST to Ollama /api/embeddings with up to MAX_RETRIES attempts.
        Exponential backoff on connection failures and non-200 responses.
        """
        async with self._semaphore:
            for attempt in range(1, self.MAX_RETRIES + 1):
                try:
                    t0 = time.perf_counter()
                    async with httpx.AsyncClient(timeout=self.timeout) as client:
                        resp = await client.post(
                            f"{self.base_url}/api/embeddings",
                            json={"model": self.model, "prompt": text},
                        )
                    elapsed_ms = (time.perf_counter() - t0) * 1000

                    if resp.status_code != 200:
                        logger.error(
                            "Ollama /api/embeddings returned %d (attempt %d/%d): %s",
                            resp.status_code,
                            attempt,
                            self.MAX_RETRIES,
                            resp.text[:300],
                        )
                        if attempt < self.MAX_RETRIES:
                            await asyncio.sleep(2 ** (attempt - 1))
                        continue

                    raw: Optional[List[float]] = resp.json().get("embedding")
                    if not raw:
                        logger.error(
                            "Ollama response missing 'embedding' field (attempt %d/%d)",
                            attempt,
                            self.MAX_RETRIES,
                        )
                        if attempt < self.MAX_RETRIES:
                            await asyncio.sleep(2 ** (attempt - 1))
                        continue

                    if len(raw) != self.expected_dim:
                        logger.error(
                            "Dimension mismatch: expected %d, got %d",
                            self.expected_dim,
                            len(raw),
                        )
                        return None

                    logger.debug(
                        "Embedded %d chars -> %d-dim in %.1f ms",
                        len(text),
                        self.expected_dim,
                        elapsed_ms,
                    )
                    return _normalize(raw)

                except (httpx.ConnectError, httpx.TimeoutException) as exc:
                    logger.warning(
                        "Ollama embedding request failed (attempt %d/%d): %s",
                        attempt,
                        self.MAX_RETRIES,
                        exc,
                    )
                    if attempt < self.MAX_RETRIES:
                        await asyncio.sleep(2 ** (attempt - 1))

                except Exception as exc:
                    logger.error("Unexpected error calling Ollama: %s", exc)
                    return None

        logger.error(
            "All %d embedding attempts failed for text (length=%d)",
            self.MAX_RETRIES,
            len(text),
        )
        return None


# ---------------------------------------------------------------------------
# Background job
# ---------------------------------------------------------------------------

async def run_embedding_job(status: JobStatus) -> None:
    """
    Embed every processed-but-unembedded document, one at a time, pausing
    EMBEDDING_JOB_DELAY seconds between documents.  Progress is written into
    *status* so pollers see it live.
    """
    from app.database import AsyncSessionLocal

    service = OllamaEmbeddingService()
    status.phase = JobPhase.RUNNING

    async with AsyncSessionLocal() as db:
        result = await db.execute(
            select(KnowledgeBaseDocument)
            .where(KnowledgeBaseDocument.status == DocumentStatus.PROCESSED.value)
            .order_by(KnowledgeBaseDocument.id)
        )
        pending = result.scalars().all()
        status.total_items = len(pending)
        logger.info("Embedding job: %d documents pending", len(pending))

        for index, document in enumerate(pending):
            status.current_item = document.original_name
            if await service.embed_document(document, db):
                status.items_done += 1
            else:
                status.items_failed += 1
                status.errors.append(f"{document.original_name}: embedding failed")
            await db.commit()

            if index < len(pending) - 1 and settings.EMBEDDING_JOB_DELAY > 0:
                await asyncio.sleep(settings.EMBEDDING_JOB_DELAY)

    status.current_item = None
    status.phase = JobPhase.COMPLETED
    logger.info(
        "Embedding job finished: %d embedded, %d failed",
        status.items_done,
        status.items_failed,
    )


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------
embedding_service = OllamaEmbeddingService()
