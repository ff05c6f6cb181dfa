"""
Conversation sessions for the career assistant.

One chat turn (process_message):
    touch session -> build context -> add attached documents -> generate reply
    -> store both messages -> extract memories -> update running summary
"""
from __future__ import annotations

import dataclasses
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.database_models import (
    ConversationMemory,
    ConversationSession,
    KnowledgeBaseDocument,
    MemoryType,
)
from app.services.ai_service import AIService, ConversationContext, document_to_context
from app.services.embedding import OllamaEmbeddingService, embedding_service
from app.services.memory_extraction import (
    extract_topics,
    extract_turn_memories,
    merge_summary,
)

logger = logging.getLogger(__name__)

USER_MESSAGE_IMPORTANCE = 6
ASSISTANT_MESSAGE_IMPORTANCE = 4
_MESSAGE_TYPES = (MemoryType.USER_INPUT.value, MemoryType.ASSISTANT_RESPONSE.value)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclasses.dataclass
class ConversationMessage:
    """Assistant reply returned for one processed turn."""

    id: str
    content: str
    timestamp: datetime
    session_id: int
    model_used: str
    context_used: List[str] = dataclasses.field(default_factory=list)
    role: str = "assistant"


class ConversationManager:
    """Session lifecycle plus the per-turn memory pipeline."""

    def __init__(
        self,
        ai_service: Optional[AIService] = None,
        embedder: Optional[OllamaEmbeddingService] = None,
    ) -> None:
        self.ai_service = ai_service or AIService()
        self.embedder = embedder or embedding_service

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    async def start_session(
        self,
        db: AsyncSession,
        user_id: Optional[str] = None,
        session_type: Optional[str] = None,
    ) -> ConversationSession:
        """Resume the user's most recent active session of this type, or open a new one."""
        user_id = user_id or settings.DEFAULT_USER_ID
        session_type = session_type or settings.DEFAULT_SESSION_TYPE

        result = await db.execute(
            select(ConversationSession)
            .where(
                ConversationSession.user_id == user_id,
                ConversationSession.session_type == session_type,
                ConversationSession.is_active.is_(True),
            )
            .order_by(ConversationSession.last_activity.desc(), ConversationSession.id.desc())
            .limit(1)
        )
        session = result.scalar_one_or_none()

        if session is not None:
            session.last_activity = _utcnow()
            await db.flush()
            logger.info("Resumed session %d for %s", session.id, user_id)
            return session

        session = ConversationSession(
            user_id=user_id,
            session_type=session_type,
            total_messages=0,
            is_active=True,
        )
        db.add(session)
        await db.flush()
        logger.info("Started session %d (%s) for %s", session.id, session_type, user_id)
        return session

    async def get_session(self, db: AsyncSession, session_id: int) -> ConversationSession:
        session = await db.get(ConversationSession, session_id)
        if session is None:
            raise ValueError(f"Session {session_id} not found")
        return session

    async def end_session(self, db: AsyncSession, session_id: int) -> ConversationSession:
        session = await self.get_session(db, session_id)
        session.is_active = False
        await db.flush()
        logger.info("Ended session %d", session_id)
        return session

    # ------------------------------------------------------------------
    # Chat turn
    # ------------------------------------------------------------------

    async def process_message(
        self,
        db: AsyncSession,
        session_id: int,
        message: str,
        attached_documents: Optional[List[int]] = None,
    ) -> ConversationMessage:
        """
        Run one chat turn and persist everything it produces.

        Raises:
            ValueError: unknown session.
            LLMUnavailableError: no provider could answer; nothing is stored.
        """
        session = await self.get_session(db, session_id)
        session.last_activity = _utcnow()

        context = await self.build_session_context(db, session, message)

        attached_ids = list(dict.fromkeys(attached_documents or []))
        if attached_ids:
            context.relevant_documents.extend(
                await self._load_attached_documents(db, attached_ids, context.relevant_documents)
            )

        response = await self.ai_service.generate_response(message, context)

        await self.ai_service.store_memory(
            db,
            session_id,
            MemoryType.USER_INPUT.value,
            message,
            importance=USER_MESSAGE_IMPORTANCE,
            related_documents=attached_ids,
        )
        assistant_memory = await self.ai_service.store_memory(
            db,
            session_id,
            MemoryType.ASSISTANT_RESPONSE.value,
            response.content,
            importance=ASSISTANT_MESSAGE_IMPORTANCE,
            related_documents=[d["id"] for d in context.relevant_documents],
        )

        await self.extract_and_store_memories(db, session_id, message, response.content)
        self.update_session_summary(session, message, response.content)
        await db.flush()

        return ConversationMessage(
            id=f"{assistant_memory.id}-{uuid.uuid4().hex[:8]}",
            content=response.content,
            timestamp=_utcnow(),
            session_id=session_id,
            model_used=response.model_used,
            context_used=response.context_used,
        )

    async def build_session_context(
        self,
        db: AsyncSession,
        session: ConversationSession,
        message: str = "",
    ) -> ConversationContext:
        """
        Gather recent memories, the user profile, the running summary and
        documents similar to the latest stored messages.  Keyword retrieval
        over the same text is used when vector search finds nothing.
        """
        memories = await self.ai_service.get_recent_memories(
            db, session.id, settings.CONTEXT_MEMORY_LIMIT
        )
        profile = await self.ai_service.get_user_profile(db, session.user_id)

        latest = await db.execute(
            select(ConversationMemory.content)
            .where(
                ConversationMemory.session_id == session.id,
                ConversationMemory.memory_type.in_(_MESSAGE_TYPES),
            )
            .order_by(ConversationMemory.created_at.desc(), ConversationMemory.id.desc())
            .limit(3)
        )
        query = " ".join(latest.scalars().all())[:500] or message[:500]

        documents: List[Dict[str, Any]] = []
        if query:
            documents = await self.embedder.find_similar_documents(
                query, db, limit=settings.CONTEXT_DOCUMENT_LIMIT
            )
            if not documents:
                documents = await self.ai_service.get_relevant_documents(
                    db, f"{query} {message}", settings.CONTEXT_DOCUMENT_LIMIT
                )

        return ConversationContext(
            session_id=session.id,
            user_id=session.user_id,
            session_type=session.session_type,
            session_summary=session.context_summary,
            user_profile=profile,
            recent_memories=memories,
            relevant_documents=documents,
        )

    async def extract_and_store_memories(
        self,
        db: AsyncSession,
        session_id: int,
        user_message: str,
        assistant_response: str,
    ) -> List[ConversationMemory]:
        stored = []
        for insight in extract_turn_memories(user_message, assistant_response):
            stored.append(
                await self.ai_service.store_memory(
                    db, session_id, insight.memory_type, insight.content, importance=insight.importance
                )
            )
        if stored:
            logger.info("Session %d: stored %d extracted memories", session_id, len(stored))
        return stored

    def update_session_summary(
        self,
        session: ConversationSession,
        user_message: str,
        assistant_response: str,
    ) -> None:
        """Append the discussed topics and count the user + assistant messages."""
        topics = extract_topics(user_message, assistant_response)
        session.context_summary = merge_summary(
            session.context_summary or "", topics, settings.SESSION_SUMMARY_MAX_CHARS
        )
        session.total_messages = (session.total_messages or 0) + 2

    # ------------------------------------------------------------------
    # History & stats
    # ------------------------------------------------------------------

    async def get_conversation_history(
        self, db: AsyncSession, session_id: int, limit: int = 20
    ) -> List[ConversationMemory]:
        """The last *limit* exchanges (2 * limit messages), oldest first."""
        await self.get_session(db, session_id)
        result = await db.execute(
            select(ConversationMemory)
            .where(
                ConversationMemory.session_id == session_id,
                ConversationMemory.memory_type.in_(_MESSAGE_TYPES),
            )
            .order_by(ConversationMemory.created_at.desc(), ConversationMemory.id.desc())
            .limit(limit * 2)
        )
        return list(reversed(result.scalars().all()))

    async def get_session_stats(self, db: AsyncSession, session_id: int) -> Dict[str, Any]:
        session = await self.get_session(db, session_id)
        total = await db.scalar(
            select(func.count(ConversationMemory.id)).where(
                ConversationMemory.session_id == session_id
            )
        )
        top = await db.execute(
            select(ConversationMemory)
            .where(ConversationMemory.session_id == session_id)
            .order_by(ConversationMemory.importance_score.desc(), ConversationMemory.id)
            .limit(5)
        )
        return {
            "session": session,
            "total_memories": total or 0,
            "top_memories": list(top.scalars().all()),
        }

    async def cleanup_old_sessions(self, db: AsyncSession, days_old: int = 30) -> int:
        """Delete inactive sessions idle for more than *days_old* days, with their memories."""
        cutoff = _utcnow() - timedelta(days=days_old)
        stale = select(ConversationSession.id).where(
            ConversationSession.is_active.is_(False),
            ConversationSession.last_activity < cutoff,
        )
        stale_ids = list((await db.execute(stale)).scalars().all())
        if not stale_ids:
            return 0

        await db.execute(
            delete(ConversationMemory).where(ConversationMemory.session_id.in_(stale_ids))
        )
        await db.execute(
            delete(ConversationSession).where(ConversationSession.id.in_(stale_ids))
        )
        logger.info("Cleaned up %d sessions older than %d days", len(stale_ids), days_old)
        return len(stale_ids)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _load_attached_documents(
        self,
        db: AsyncSession,
        document_ids: List[int],
        already_included: List[Dict[str, Any]],
    ) -> List[Dict[str, Any]]:
        seen = {d["id"] for d in already_included}
        wanted = [i for i in document_ids if i not in seen]
        if not wanted:
            return []
        result = await db.execute(
            select(KnowledgeBaseDocument).where(KnowledgeBaseDocument.id.in_(wanted))
        )
        return [document_to_context(doc) for doc in result.scalars().all()]


# Module-level singleton
conversation_manager = ConversationManager()
