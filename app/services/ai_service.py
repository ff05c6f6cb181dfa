"""
Career-assistant AI service.

Builds the system prompt and contextual message for a chat turn from the
assembled ConversationContext (profile, memories, documents, session
summary), calls the LLM provider chain, retrieves knowledge-base documents by
keyword overlap, and runs targeted document analyses.
"""
from __future__ import annotations

import dataclasses
import json
import logging
import re
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.database_models import (
    AiAnalysisResult,
    ConversationMemory,
    DocumentStatus,
    KnowledgeBaseDocument,
    UserProfile,
)
from app.services.llm import LLMClient, llm_client
from app.services.memory_extraction import extract_tags
from app.services.memory_service import memory_service
from app.utils.helpers import query_terms

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Prompt templates
# ---------------------------------------------------------------------------

_SYSTEM_PROMPT = """\
You are an expert AI Career Assistant helping {owner}, an accomplished professional \
who keeps a personal portfolio and a private knowledge base of career documents.

CORE RESPONSIBILITIES:
1. Career advancement strategy and planning
2. Resume optimization and interview preparation
3. Personal brand analysis and improvement
4. Professional development guidance
5. Industry insights and networking advice

COMMUNICATION STYLE:
- Professional yet approachable
- Specific and actionable recommendations
- Reference concrete examples from the user's documents when relevant
- Ask clarifying questions when needed for better personalization"""

_RESUME_ANALYSIS_PROMPT = """\
Analyze this resume and provide structured feedback:
{content}

Provide analysis in this format:
- Overall Score (1-10)
- Strengths (list)
- Areas for Improvement (list)
- ATS Compatibility Score (1-10)
- Keyword Optimization Suggestions
- Industry-specific Recommendations"""

_INTERVIEW_ANALYSIS_PROMPT = """\
Analyze this interview transcript and provide feedback:
{content}

Provide analysis in this format:
- Performance Score (1-10)
- Strong Responses (list)
- Areas for Improvement (list)
- Communication Effectiveness
- Technical Knowledge Assessment
- Follow-up Action Items"""

_GENERIC_ANALYSIS_PROMPT = """\
Analyze this document and provide relevant insights:
{content}

Focus on career development, skill assessment, and actionable recommendations."""

_ANALYSIS_PROMPTS = {
    "resume_analysis": _RESUME_ANALYSIS_PROMPT,
    "interview_analysis": _INTERVIEW_ANALYSIS_PROMPT,
}

# Provider-level confidence reported with each reply
_PROVIDER_CONFIDENCE = {"anthropic": 9, "ollama": 7}

_SCORE_RE = re.compile(r"(?:overall|performance)\s+score(?:\s*\(1\s*-\s*10\))?\W*(\d{1,2})", re.I)
_BULLET_RE = re.compile(r"^(?:[-*•]|\d+[.)])\s+")
_ANALYSIS_HEADINGS = (
    "overall score", "performance score", "strengths", "strong responses",
    "areas for improvement", "ats compatibility", "keyword optimization",
    "industry-specific", "communication effectiveness", "technical knowledge",
    "follow-up action", "recommendations",
)


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

@dataclasses.dataclass
class ConversationContext:
    """Everything known about the conversation when a reply is generated."""

    session_id: Optional[int] = None
    user_id: Optional[str] = None
    session_type: Optional[str] = None
    session_summary: Optional[str] = None
    user_profile: Optional[UserProfile] = None
    recent_memories: List[ConversationMemory] = dataclasses.field(default_factory=list)
    relevant_documents: List[Dict[str, Any]] = dataclasses.field(default_factory=list)


@dataclasses.dataclass
class AIResponse:
    content: str
    model_used: str
    context_used: List[str]
    confidence_score: int = 0


def document_to_context(document: KnowledgeBaseDocument, score: float = 0.0, match_type: str = "attached") -> Dict[str, Any]:
    """Dict shape shared by keyword, vector and attached document results."""
    return {
        "id": document.id,
        "original_name": document.original_name,
        "category": document.category,
        "summary": document.summary,
        "key_insights": document.key_insights,
        "content_text": document.content_text,
        "score": score,
        "match_type": match_type,
    }


def _section_items(text: str, headings: List[str]) -> List[str]:
    """Bullet items listed under the first line that starts with one of *headings*."""
    items: List[str] = []
    capturing = False
    for line in text.splitlines():
        stripped = line.strip()
        bare = re.sub(r"^[#*\-\d.)\s•]+", "", stripped).strip("*: ").lower()
        if not capturing:
            if any(bare.startswith(h) for h in headings):
                capturing = True
            continue
        if not stripped:
            if items:
                break
            continue
        if any(bare.startswith(h) for h in _ANALYSIS_HEADINGS):
            break
        if _BULLET_RE.match(stripped):
            items.append(_BULLET_RE.sub("", stripped).strip("* "))
        elif items:
            break
    return items[:10]


def parse_analysis(text: str) -> Dict[str, Any]:
    """Pull the score, strengths and improvements out of a free-text analysis."""
    score_match = _SCORE_RE.search(text)
    score = int(score_match.group(1)) if score_match else None
    if score is not None and not 1 <= score <= 10:
        score = None
    return {
        "score": score,
        "strengths": _section_items(text, ["strengths", "strong responses"]),
        "improvements": _section_items(text, ["areas for improvement"]),
        "recommendations": _section_items(
            text, ["keyword optimization", "industry-specific", "follow-up action", "recommendations"]
        ),
    }


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class AIService:
    """LLM-backed assistant; every DB-touching method takes the session to use."""

    SYSTEM_PROMPT = _SYSTEM_PROMPT
    ANALYSIS_PROMPTS = _ANALYSIS_PROMPTS
    GENERIC_ANALYSIS_PROMPT = _GENERIC_ANALYSIS_PROMPT

    def __init__(self, client: Optional[LLMClient] = None) -> None:
        self.client = client or llm_client

    # ------------------------------------------------------------------
    # Chat
    # ------------------------------------------------------------------

    async def generate_response(self, message: str, context: ConversationContext) -> AIResponse:
        """
        Generate the assistant reply for *message*.

        Raises:
            LLMUnavailableError: no provider could answer.
        """
        system_prompt = self.build_system_prompt(context)
        contextual_message = self.build_contextual_message(message, context)

        completion = await self.client.complete(contextual_message, system=system_prompt)
        return AIResponse(
            content=completion.text,
            model_used=completion.model_used,
            context_used=self.extract_context_used(context),
            confidence_score=_PROVIDER_CONFIDENCE.get(completion.provider, 5),
        )

    def build_system_prompt(self, context: ConversationContext) -> str:
        prompt = self.SYSTEM_PROMPT.format(owner=settings.PORTFOLIO_OWNER_NAME)

        profile = context.user_profile
        if profile is not None:
            prompt += (
                "\n\nUSER PROFILE:"
                f"\n- Career Stage: {profile.career_stage or 'Senior Professional'}"
                f"\n- Current Goals: {', '.join(profile.current_goals or []) or 'Career advancement'}"
                f"\n- Communication Style: {profile.communication_style or 'Professional'}"
                f"\n- Target Roles: {', '.join(profile.target_roles or []) or 'Leadership positions'}"
                f"\n- Skills to Improve: {', '.join(profile.skills_to_improve or []) or 'Leadership, Strategy'}"
            )

        if context.recent_memories:
            prompt += "\n\nRECENT CONVERSATION CONTEXT:"
            for memory in context.recent_memories:
                prompt += f"\n- {memory.memory_type}: {memory.content}"

        if context.relevant_documents:
            prompt += "\n\nRELEVANT DOCUMENTS:"
            for doc in context.relevant_documents:
                prompt += f"\n- {doc['category']}: {doc.get('summary') or doc['original_name']}"
                if doc.get("key_insights"):
                    prompt += f" | Key insights: {json.dumps(doc['key_insights'])}"

        return prompt

    def build_contextual_message(self, message: str, context: ConversationContext) -> str:
        if context.session_id and context.session_summary:
            return f"[Previous conversation context: {context.session_summary}]\n\n{message}"
        return message

    @staticmethod
    def extract_context_used(context: ConversationContext) -> List[str]:
        used = []
        if context.user_profile is not None:
            used.append("user_profile")
        if context.recent_memories:
            used.append("conversation_history")
        if context.relevant_documents:
            used.append("knowledge_base")
        if context.session_id:
            used.append("session_context")
        return used

    # ------------------------------------------------------------------
    # Memory & retrieval
    # ------------------------------------------------------------------

    async def store_memory(
        self,
        db: AsyncSession,
        session_id: int,
        memory_type: str,
        content: str,
        importance: int = 5,
        related_documents: Optional[List[int]] = None,
    ) -> ConversationMemory:
        """Store a memory tagged with the career vocabulary it mentions."""
        return await memory_service.store_memory(
            db,
            session_id,
            memory_type,
            content,
            importance=importance,
            context_tags=extract_tags(content),
            related_documents=related_documents,
        )

    async def get_recent_memories(
        self, db: AsyncSession, session_id: int, limit: int = 5
    ) -> List[ConversationMemory]:
        return await memory_service.get_recent_memories(db, session_id, limit)

    async def get_relevant_documents(
        self, db: AsyncSession, query: str, limit: int = 3
    ) -> List[Dict[str, Any]]:
        """
        Keyword retrieval over processed documents.

        Each query word longer than three characters scores +2 when it occurs
        in the text, +3 in the summary and +4 in the category.
        """
        words = query_terms(query)
        if not words:
            return []

        result = await db.execute(
            select(KnowledgeBaseDocument).where(
                KnowledgeBaseDocument.status.in_(
                    [DocumentStatus.PROCESSED.value, DocumentStatus.EMBEDDED.value]
                )
            )
        )

        scored = []
        for doc in result.scalars().all():
            text = (doc.content_text or "").lower()
            summary = (doc.summary or "").lower()
            category = (doc.category or "").lower()
            score = 0
            for word in words:
                if word in text:
                    score += 2
                if word in summary:
                    score += 3
                if word in category:
                    score += 4
            if score > 0:
                scored.append((score, doc))

        scored.sort(key=lambda pair: pair[0], reverse=True)
        return [
            document_to_context(doc, float(score), "keyword") for score, doc in scored[:limit]
        ]

    async def get_user_profile(self, db: AsyncSession, user_id: str) -> Optional[UserProfile]:
        result = await db.execute(select(UserProfile).where(UserProfile.user_id == user_id))
        return result.scalar_one_or_none()

    # ------------------------------------------------------------------
    # Document analysis
    # ------------------------------------------------------------------

    async def analyze_document(
        self, db: AsyncSession, document_id: int, analysis_type: str
    ) -> AiAnalysisResult:
        """
        Run a targeted analysis (resume, interview or generic) of a stored
        document and persist the result.

        Raises:
            ValueError: the document does not exist or has no text.
            LLMUnavailableError: no provider could answer.
        """
        document = await db.get(KnowledgeBaseDocument, document_id)
        if document is None:
            raise ValueError("Document not found")
        if not document.content_text:
            raise ValueError("Document has no extracted text to analyze")

        template = self.ANALYSIS_PROMPTS.get(analysis_type, self.GENERIC_ANALYSIS_PROMPT)
        prompt = template.format(content=document.content_text[: settings.ANALYSIS_MAX_CHARS])

        response = await self.generate_response(
            prompt, ConversationContext(session_type="document_analysis")
        )
        parsed = parse_analysis(response.content)

        analysis = AiAnalysisResult(
            document_id=document.id,
            analysis_type=analysis_type,
            results={"analysis": response.content},
            recommendations=parsed["recommendations"],
            score=parsed["score"],
            strengths=parsed["strengths"],
            improvements=parsed["improvements"],
            model_used=response.model_used,
        )
        db.add(analysis)
        await db.flush()
        logger.info(
            "Stored %s analysis id=%d for document %d (score=%s)",
            analysis_type,
            analysis.id,
            document.id,
            parsed["score"],
        )
        return analysis
