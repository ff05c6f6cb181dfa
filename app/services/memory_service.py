"""
Conversation memory storage and retrieval.

Memories are plain rows in ``conversation_memory``; retrieval ranks them by
importance, recency of access and keyword overlap with the current query.
"""
from __future__ import annotations

import logging
from collections import Counter, OrderedDict
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.database_models import ConversationMemory
from app.utils.helpers import query_terms

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _not_expired(now: datetime):
    return or_(ConversationMemory.expires_at.is_(None), ConversationMemory.expires_at > now)


class MemoryService:
    """Stateless service; every method takes the session it should use."""

    async def store_memory(
        self,
        db: AsyncSession,
        session_id: int,
        memory_type: str,
        content: str,
        importance: int = 5,
        context_tags: Optional[List[str]] = None,
        related_documents: Optional[List[int]] = None,
        expires_at: Optional[datetime] = None,
    ) -> ConversationMemory:
        memory = ConversationMemory(
            session_id=session_id,
            memory_type=memory_type,
            content=content,
            importance_score=max(1, min(10, importance)),
            context_tags=list(context_tags or []),
            related_documents=list(related_documents or []),
            expires_at=expires_at,
        )
        db.add(memory)
        await db.flush()
        logger.debug(
            "Stored %s memory id=%d (importance %d) for session %d",
            memory_type,
            memory.id,
            memory.importance_score,
            session_id,
        )
        return memory

    async def get_recent_memories(
        self, db: AsyncSession, session_id: int, limit: int = 5
    ) -> List[ConversationMemory]:
        """Most important, most recently accessed unexpired memories first."""
        result = await db.execute(
            select(ConversationMemory)
            .where(
                ConversationMemory.session_id == session_id,
                _not_expired(_utcnow()),
            )
            .order_by(
                ConversationMemory.importance_score.desc(),
                ConversationMemory.last_accessed.desc(),
                ConversationMemory.id.desc(),
            )
            .limit(limit)
        )
        return list(result.scalars().all())

    async def get_contextual_memories(
        self,
        db: AsyncSession,
        session_id: int,
        query: str,
        limit: int = 10,
    ) -> List[Tuple[ConversationMemory, int]]:
        """
        Rank memories against *query*.

        The top ``2 * limit`` candidates by importance are rescored:
        importance + 2 for every query word (longer than 3 chars) found in the
        content + 3 for every context tag equal to a query word.  The best
        *limit* are returned with their score and have ``last_accessed`` touched.
        """
        candidates = await self.get_recent_memories(db, session_id, limit * 2)
        words = query_terms(query)

        scored = []
        for memory in candidates:
            score = memory.importance_score
            content = memory.content.lower()
            score += 2 * sum(1 for w in words if w in content)
            score += 3 * sum(1 for tag in memory.context_tags or [] if tag.lower() in words)
            scored.append((memory, score))

        # sorted() is stable, so ties keep importance/recency order
        top = sorted(scored, key=lambda pair: pair[1], reverse=True)[:limit]

        now = _utcnow()
        for memory, _score in top:
            memory.last_accessed = now
        await db.flush()
        return top

    async def get_session_memory_summary(self, db: AsyncSession, session_id: int) -> str:
        """Top ten memories grouped by type: ``type: a; b; c | other: d``."""
        result = await db.execute(
            select(ConversationMemory)
            .where(ConversationMemory.session_id == session_id)
            .order_by(ConversationMemory.importance_score.desc(), ConversationMemory.id)
            .limit(10)
        )
        grouped: "OrderedDict[str, List[str]]" = OrderedDict()
        for memory in result.scalars().all():
            grouped.setdefault(memory.memory_type, []).append(memory.content)

        return " | ".join(
            f"{memory_type}: {'; '.join(contents[:3])}"
            for memory_type, contents in grouped.items()
        )

    async def cleanup_old_memories(
        self, db: AsyncSession, session_id: int, days_old: int = 30
    ) -> int:
        """Delete memories of *session_id* created more than *days_old* days ago."""
        cutoff = _utcnow() - timedelta(days=days_old)
        result = await db.execute(
            delete(ConversationMemory).where(
                ConversationMemory.session_id == session_id,
                ConversationMemory.created_at < cutoff,
            )
        )
        logger.info(
            "Removed %d memories older than %d days from session %d",
            result.rowcount,
            days_old,
            session_id,
        )
        return result.rowcount or 0

    async def get_memory_stats(self, db: AsyncSession, session_id: int) -> Dict[str, object]:
        result = await db.execute(
            select(ConversationMemory.memory_type).where(
                ConversationMemory.session_id == session_id
            )
        )
        by_type = Counter(result.scalars().all())
        return {"total": sum(by_type.values()), "by_type": dict(by_type)}


# Module-level singleton
memory_service = MemoryService()
