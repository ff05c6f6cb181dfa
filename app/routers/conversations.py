"""
Career-assistant conversation endpoints (admin only).

Route summary
-------------
POST   /sessions                          — resume or start a session.
POST   /sessions/cleanup                  — delete stale inactive sessions.
POST   /sessions/{id}/messages            — one chat turn.
GET    /sessions/{id}/history             — recent messages, oldest first.
POST   /sessions/{id}/end                 — mark a session inactive.
GET    /sessions/{id}/stats               — memory count + most important memories.
GET    /sessions/{id}/memories            — recent or query-ranked memories.
GET    /sessions/{id}/memories/summary    — memories grouped by type.
GET    /sessions/{id}/memories/stats      — memory counts by type.
DELETE /sessions/{id}/memories            — delete memories older than N days.
POST   /insights/preview                  — what the extractor would remember.
GET    /profile                           — the user's career profile.
PUT    /profile                           — create or update it.
"""
from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.dependencies.auth import get_user_id, require_admin
from app.models.database_models import ConversationMemory, ConversationSession, UserProfile
from app.models.schemas import (
    CleanupResponse,
    ConversationMessageResponse,
    ExtractedInsight,
    InsightPreviewRequest,
    MemoryResponse,
    MemoryStatsResponse,
    MemorySummaryResponse,
    MessageRequest,
    SessionResponse,
    SessionStartRequest,
    SessionStatsResponse,
    UserProfileResponse,
    UserProfileUpdate,
)
from app.services.conversation_manager import conversation_manager
from app.services.llm import LLMUnavailableError
from app.services.memory_extraction import extract_insights
from app.services.memory_service import memory_service

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_admin)])


async def _session_or_404(db: AsyncSession, session_id: int) -> ConversationSession:
    try:
        return await conversation_manager.get_session(db, session_id)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------

@router.post("/sessions", response_model=SessionResponse)
async def start_session(
    body: Optional[SessionStartRequest] = None,
    user_id: str = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
) -> ConversationSession:
    body = body or SessionStartRequest()
    session = await conversation_manager.start_session(
        db, body.user_id or user_id, body.session_type
    )
    await db.refresh(session)
    return session


@router.post("/sessions/cleanup", response_model=CleanupResponse)
async def cleanup_sessions(
    days_old: int = Query(settings.SESSION_RETENTION_DAYS, ge=0),
    db: AsyncSession = Depends(get_db),
) -> CleanupResponse:
    deleted = await conversation_manager.cleanup_old_sessions(db, days_old)
    return CleanupResponse(
        deleted=deleted,
        message=f"Deleted {deleted} inactive session(s) older than {days_old} days.",
    )


@router.post("/sessions/{session_id}/messages", response_model=ConversationMessageResponse)
async def send_message(
    session_id: int,
    body: MessageRequest,
    db: AsyncSession = Depends(get_db),
) -> ConversationMessageResponse:
    """
    Run one chat turn.  Returns 503 when no LLM provider can answer; in that
    case nothing is stored for the turn.
    """
    await _session_or_404(db, session_id)
    try:
        reply = await conversation_manager.process_message(
            db, session_id, body.message, body.attached_documents
        )
    except LLMUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))

    return ConversationMessageResponse(
        id=reply.id,
        role=reply.role,
        content=reply.content,
        timestamp=reply.timestamp,
        session_id=reply.session_id,
        context_used=reply.context_used,
        model_used=reply.model_used,
    )


@router.get("/sessions/{session_id}/history", response_model=List[MemoryResponse])
async def get_history(
    session_id: int,
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
) -> List[ConversationMemory]:
    await _session_or_404(db, session_id)
    return await conversation_manager.get_conversation_history(db, session_id, limit)


@router.post("/sessions/{session_id}/end", response_model=SessionResponse)
async def end_session(session_id: int, db: AsyncSession = Depends(get_db)) -> ConversationSession:
    await _session_or_404(db, session_id)
    session = await conversation_manager.end_session(db, session_id)
    await db.refresh(session)
    return session


@router.get("/sessions/{session_id}/stats", response_model=SessionStatsResponse)
async def session_stats(session_id: int, db: AsyncSession = Depends(get_db)) -> SessionStatsResponse:
    await _session_or_404(db, session_id)
    stats = await conversation_manager.get_session_stats(db, session_id)
    return SessionStatsResponse(
        session=SessionResponse.model_validate(stats["session"]),
        total_memories=stats["total_memories"],
        top_memories=[MemoryResponse.model_validate(m) for m in stats["top_memories"]],
    )


# ---------------------------------------------------------------------------
# Memories
# ---------------------------------------------------------------------------

@router.get("/sessions/{session_id}/memories", response_model=List[MemoryResponse])
async def get_memories(
    session_id: int,
    query: Optional[str] = Query(None),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
) -> List[ConversationMemory]:
    """Query-ranked memories when ``query`` is given, otherwise the most important recent ones."""
    await _session_or_404(db, session_id)
    if query:
        ranked = await memory_service.get_contextual_memories(db, session_id, query, limit)
        return [memory for memory, _score in ranked]
    return await memory_service.get_recent_memories(db, session_id, limit)


@router.get("/sessions/{session_id}/memories/summary", response_model=MemorySummaryResponse)
async def memory_summary(session_id: int, db: AsyncSession = Depends(get_db)) -> MemorySummaryResponse:
    await _session_or_404(db, session_id)
    summary = await memory_service.get_session_memory_summary(db, session_id)
    return MemorySummaryResponse(session_id=session_id, summary=summary)


@router.get("/sessions/{session_id}/memories/stats", response_model=MemoryStatsResponse)
async def memory_stats(session_id: int, db: AsyncSession = Depends(get_db)) -> MemoryStatsResponse:
    await _session_or_404(db, session_id)
    stats = await memory_service.get_memory_stats(db, session_id)
    return MemoryStatsResponse(**stats)


@router.delete("/sessions/{session_id}/memories", response_model=CleanupResponse)
async def cleanup_memories(
    session_id: int,
    days_old: int = Query(settings.SESSION_RETENTION_DAYS, ge=0),
    db: AsyncSession = Depends(get_db),
) -> CleanupResponse:
    await _session_or_404(db, session_id)
    deleted = await memory_service.cleanup_old_memories(db, session_id, days_old)
    return CleanupResponse(
        deleted=deleted,
        message=f"Deleted {deleted} memories older than {days_old} days.",
    )


@router.post("/insights/preview", response_model=List[ExtractedInsight])
async def preview_insights(body: InsightPreviewRequest) -> List[ExtractedInsight]:
    return [
        ExtractedInsight(
            memory_type=insight.memory_type,
            content=insight.content,
            importance=insight.importance,
        )
        for insight in extract_insights(body.user_message, body.assistant_response)
    ]


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------

async def _load_profile(db: AsyncSession, user_id: str) -> Optional[UserProfile]:
    result = await db.execute(select(UserProfile).where(UserProfile.user_id == user_id))
    return result.scalar_one_or_none()


@router.get("/profile", response_model=UserProfileResponse)
async def get_profile(
    user_id: str = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
) -> UserProfile:
    profile = await _load_profile(db, user_id)
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No profile for user '{user_id}'.",
        )
    return profile


@router.put("/profile", response_model=UserProfileResponse)
async def upsert_profile(
    body: UserProfileUpdate,
    user_id: str = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
) -> UserProfile:
    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    profile = await _load_profile(db, user_id)
    if profile is None:
        profile = UserProfile(user_id=user_id, **changes)
        db.add(profile)
        logger.info("Created profile for %s", user_id)
    else:
        for field, value in changes.items():
            setattr(profile, field, value)
        logger.info("Updated profile for %s (%s)", user_id, ", ".join(changes) or "no changes")
    await db.flush()
    await db.refresh(profile)
    return profile
