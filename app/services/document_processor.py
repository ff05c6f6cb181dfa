"""
Knowledge-base ingestion: text extraction -> LLM summary/insights -> storage -> embedding.

Public API
----------
DocumentProcessor.process_document(db, upload, category)          -> KnowledgeBaseDocument
DocumentProcessor.process_multiple_documents(db, uploads, category) -> List[UploadOutcome]
DocumentProcessor.generate_summary_and_insights(db, text, category) -> DocumentAnalysis
DocumentProcessor.initialize_categories(db)                        -> int (categories created)
DocumentProcessor.delete_document(db, document_id)
parse_analysis_response(text)                                      -> DocumentAnalysis
"""
from __future__ import annotations

import dataclasses
import logging
import os
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.database_models import (
    DocumentCategory,
    DocumentStatus,
    KnowledgeBaseDocument,
)
from app.services.ai_service import AIService, ConversationContext
from app.services.document_parser import DocumentParser, get_content_type
from app.services.embedding import OllamaEmbeddingService, embedding_service
from app.services.llm import LLMUnavailableError
from app.services.memory_extraction import extract_tags
from app.utils.helpers import extract_json_structure, fix_json_issues, safe_remove, try_json

logger = logging.getLogger(__name__)


DEFAULT_ANALYSIS_FOCUS = "Focus on career development, skills, achievements, and actionable insights."
DEFAULT_SUMMARY = "Document processed successfully."
PENDING_SUMMARY = "Document uploaded successfully. Analysis pending."

# ---------------------------------------------------------------------------
# Prompt template
# ---------------------------------------------------------------------------

_ANALYSIS_PROMPT = """\
Analyze this {category} document and provide:

1. A concise summary (2-3 sentences)
2. Key insights structured as JSON

Document content:
{content}

{focus}

Provide response in this format:
SUMMARY: [2-3 sentence summary]

KEY_INSIGHTS: {{
  "strengths": ["list of strengths"],
  "skills": ["key skills mentioned"],
  "achievements": ["notable achievements"],
  "areas_for_improvement": ["areas to improve"],
  "keywords": ["important keywords for ATS"],
  "recommendations": ["actionable recommendations"]
}}"""

_DEFAULT_CATEGORIES: List[Dict[str, Any]] = [
    {
        "name": "resume",
        "description": "Resume and CV documents",
        "processing_rules": {
            "extractSections": ["experience", "education", "skills", "achievements"],
            "keywordAnalysis": True,
            "atsCompatibility": True,
        },
        "ai_prompts": {
            "analysisPrompt": (
                "Focus on professional experience, skills, achievements, ATS compatibility, "
                "and areas for improvement. Identify keywords that align with the target roles."
            )
        },
    },
    {
        "name": "interview_transcript",
        "description": "Interview recordings and transcripts",
        "processing_rules": {
            "speakerIdentification": True,
            "responseAnalysis": True,
            "performanceMetrics": True,
        },
        "ai_prompts": {
            "analysisPrompt": (
                "Analyze interview performance, communication effectiveness, technical knowledge "
                "demonstration, and areas for improvement. Rate responses and provide specific feedback."
            )
        },
    },
    {
        "name": "performance_review",
        "description": "Performance reviews and feedback documents",
        "processing_rules": {
            "goalTracking": True,
            "strengthsWeaknesses": True,
            "developmentPlans": True,
        },
        "ai_prompts": {
            "analysisPrompt": (
                "Extract performance metrics, feedback themes, development goals, and career "
                "progression insights. Identify patterns and growth opportunities."
            )
        },
    },
    {
        "name": "career_plan",
        "description": "Career planning and strategy documents",
        "processing_rules": {
            "goalExtraction": True,
            "timelineAnalysis": True,
            "milestoneTracking": True,
        },
        "ai_prompts": {
            "analysisPrompt": (
                "Analyze career goals, strategic plans, timeline feasibility, and actionable steps. "
                "Provide recommendations for goal achievement."
            )
        },
    },
    {
        "name": "cover_letter",
        "description": "Cover letters and application documents",
        "processing_rules": {
            "companyResearch": True,
            "roleAlignment": True,
            "personalBranding": True,
        },
        "ai_prompts": {
            "analysisPrompt": (
                "Evaluate cover letter effectiveness, company-role alignment, personal branding, "
                "and persuasive elements. Suggest improvements for better impact."
            )
        },
    },
    {
        "name": "reference_letter",
        "description": "Reference letters and recommendations",
        "processing_rules": {
            "strengthsExtraction": True,
            "impactAnalysis": True,
            "credibilityAssessment": True,
        },
        "ai_prompts": {
            "analysisPrompt": (
                "Extract key strengths, accomplishments, and endorsements. Analyze the impact and "
                "credibility of the reference for career advancement."
            )
        },
    },
]

_SUMMARY_RE = re.compile(r"SUMMARY:\s*(.*?)(?=KEY_INSIGHTS:|$)", re.S)
_INSIGHTS_MARKER = "KEY_INSIGHTS:"


# ---------------------------------------------------------------------------
# Result dataclasses
# ---------------------------------------------------------------------------

@dataclasses.dataclass
class DocumentAnalysis:
    summary: str
    key_insights: Dict[str, Any]


@dataclasses.dataclass
class StoredUpload:
    """A file already written to UPLOAD_DIR."""

    file_path: str
    stored_name: str
    original_name: str
    size: int


@dataclasses.dataclass
class UploadOutcome:
    original_name: str
    status: str
    document_id: Optional[int] = None
    summary: Optional[str] = None
    error: Optional[str] = None


class DocumentProcessingError(RuntimeError):
    """Text could not be extracted from an upload; the row is marked failed."""

    def __init__(self, message: str, document_id: Optional[int] = None) -> None:
        super().__init__(message)
        self.document_id = document_id


# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------

def parse_analysis_response(content: str) -> DocumentAnalysis:
    """
    Split an LLM reply of the form ``SUMMARY: ... KEY_INSIGHTS: {...}``.

    The summary defaults to "Document processed successfully."; unparsable
    or missing insights are replaced by a ``status: processed`` record that
    keeps the first 500 characters of the raw reply.
    """
    summary_match = _SUMMARY_RE.search(content)
    summary = summary_match.group(1).strip() if summary_match else ""
    summary = summary or DEFAULT_SUMMARY

    marker = content.find(_INSIGHTS_MARKER)
    fragment = ""
    if marker != -1:
        fragment = extract_json_structure(content[marker + len(_INSIGHTS_MARKER):])

    if not fragment:
        return DocumentAnalysis(
            summary=summary,
            key_insights={
                "status": "processed",
                "analysis": content[:500],
                "processing_note": "Document analyzed successfully",
            },
        )

    ok, insights = try_json(fix_json_issues(fragment))
    if not ok or not isinstance(insights, dict):
        logger.warning("Failed to parse key insights JSON, keeping raw analysis")
        insights = {
            "status": "processed",
            "analysis": content[:500],
            "processing_note": "Full analysis available in raw format",
        }
    return DocumentAnalysis(summary=summary, key_insights=insights)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Processor
# ---------------------------------------------------------------------------

class DocumentProcessor:
    """Turns uploaded files into analyzed, embedded knowledge-base rows."""

    ANALYSIS_PROMPT = _ANALYSIS_PROMPT
    DEFAULT_CATEGORIES = _DEFAULT_CATEGORIES

    def __init__(
        self,
        parser: Optional[DocumentParser] = None,
        ai_service: Optional[AIService] = None,
        embedder: Optional[OllamaEmbeddingService] = None,
    ) -> None:
        self.parser = parser or DocumentParser()
        self.ai_service = ai_service or AIService()
        self.embedder = embedder or embedding_service

    async def process_document(
        self,
        db: AsyncSession,
        upload: StoredUpload,
        category: str,
    ) -> KnowledgeBaseDocument:
        """
        Ingest one stored upload.

        The row is created as ``processing``; after extraction and analysis it
        becomes ``processed`` and, once a vector is stored, ``embedded``.

        Raises:
            DocumentProcessingError: no text could be extracted; the row is
                kept with status ``failed``.
        """
        content_type = get_content_type(upload.original_name)
        document = KnowledgeBaseDocument(
            filename=upload.stored_name,
            original_name=upload.original_name,
            content_type=content_type,
            category=category,
            size=upload.size,
            status=DocumentStatus.PROCESSING.value,
            tags=[],
        )
        db.add(document)
        await db.flush()
        logger.info(
            "Processing %r as document id=%d (%s, %s)",
            upload.original_name,
            document.id,
            content_type,
            category,
        )

        try:
            extracted = await self.parser.extract_text(upload.file_path, content_type)
            if not extracted.full_text.strip():
                raise ValueError("Document contains no extractable text.")
        except (ValueError, RuntimeError) as exc:
            document.status = DocumentStatus.FAILED.value
            await db.flush()
            logger.error("Text extraction failed for document %d: %s", document.id, exc)
            raise DocumentProcessingError(
                f"Failed to process document: {exc}", document_id=document.id
            ) from exc

        text = extracted.full_text
        analysis = await self.generate_summary_and_insights(db, text, category)

        document.content_text = text
        document.summary = analysis.summary
        document.key_insights = analysis.key_insights
        document.metadata_json = extracted.metadata
        document.tags = extract_tags(f"{category} {analysis.summary} {text[:2000]}")
        document.status = DocumentStatus.PROCESSED.value
        document.processed_at = _utcnow()
        await db.flush()

        await self.embedder.embed_document(document, db)
        return document

    async def process_multiple_documents(
        self,
        db: AsyncSession,
        uploads: List[StoredUpload],
        category: str,
    ) -> List[UploadOutcome]:
        """Process each upload in turn; a failure is recorded and the batch continues."""
        outcomes: List[UploadOutcome] = []
        for upload in uploads:
            try:
                document = await self.process_document(db, upload, category)
                outcomes.append(
                    UploadOutcome(
                        original_name=upload.original_name,
                        status=document.status,
                        document_id=document.id,
                        summary=document.summary,
                    )
                )
            except DocumentProcessingError as exc:
                outcomes.append(
                    UploadOutcome(
                        original_name=upload.original_name,
                        status=DocumentStatus.FAILED.value,
                        document_id=exc.document_id,
                        error=str(exc),
                    )
                )
        return outcomes

    async def generate_summary_and_insights(
        self,
        db: AsyncSession,
        content: str,
        category: str,
    ) -> DocumentAnalysis:
        """Ask the LLM for a summary and structured insights; never raises on LLM failure."""
        rules = await self.get_category(db, category)
        focus = ((rules.ai_prompts or {}).get("analysisPrompt") if rules else None) or DEFAULT_ANALYSIS_FOCUS

        prompt = self.ANALYSIS_PROMPT.format(
            category=category,
            content=content[: settings.ANALYSIS_MAX_CHARS],
            focus=focus,
        )

        try:
            response = await self.ai_service.generate_response(
                prompt, ConversationContext(session_type="document_processing")
            )
        except LLMUnavailableError as exc:
            logger.error("Summary generation failed: %s", exc)
            return DocumentAnalysis(
                summary=PENDING_SUMMARY,
                key_insights={"status": "analysis_failed", "error": str(exc)},
            )

        return parse_analysis_response(response.content)

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    async def get_category(self, db: AsyncSession, name: str) -> Optional[DocumentCategory]:
        result = await db.execute(select(DocumentCategory).where(DocumentCategory.name == name))
        return result.scalar_one_or_none()

    async def initialize_categories(self, db: AsyncSession) -> int:
        """Create any default category that does not exist yet; returns how many were added."""
        result = await db.execute(select(DocumentCategory.name))
        existing = set(result.scalars().all())

        created = 0
        for defaults in self.DEFAULT_CATEGORIES:
            if defaults["name"] in existing:
                continue
            db.add(DocumentCategory(**defaults))
            created += 1

        if created:
            await db.flush()
            logger.info("Seeded %d document categories", created)
        return created

    async def get_categories(self, db: AsyncSession) -> List[DocumentCategory]:
        result = await db.execute(select(DocumentCategory).order_by(DocumentCategory.name))
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    async def get_document(self, db: AsyncSession, document_id: int) -> KnowledgeBaseDocument:
        document = await db.get(KnowledgeBaseDocument, document_id)
        if document is None:
            raise ValueError("Document not found")
        return document

    async def get_document_analysis(self, db: AsyncSession, document_id: int) -> Dict[str, Any]:
        """Stored summary and key insights of one document."""
        document = await self.get_document(db, document_id)
        return {
            "id": document.id,
            "original_name": document.original_name,
            "category": document.category,
            "status": document.status,
            "summary": document.summary,
            "key_insights": document.key_insights,
            "processed_at": document.processed_at,
        }

    async def delete_document(self, db: AsyncSession, document_id: int) -> None:
        """Remove the stored file and the row (analyses cascade)."""
        document = await self.get_document(db, document_id)
        safe_remove(os.path.join(settings.UPLOAD_DIR, document.filename))
        await db.delete(document)
        await db.flush()
        logger.info("Deleted document %d (%s)", document_id, document.original_name)
