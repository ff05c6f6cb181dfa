"""
Knowledge-base endpoints (admin only).

POST   /upload                       — multipart upload of one or more files + category.
GET    /documents                    — list (optional category / status filters).
GET    /documents/{id}               — metadata + extracted text.
DELETE /documents/{id}               — delete row, analyses and stored file.
GET    /documents/{id}/analysis      — stored summary + key insights.
POST   /documents/{id}/analyze       — run a targeted LLM analysis (resume, interview ...).
GET    /documents/{id}/analyses      — previous targeted analyses.
GET    /stats                        — counts by category and status.
GET    /categories                   — categories (seeded on first call).
POST   /categories/initialize        — seed any missing default category.
GET    /search?q=                    — vector search with keyword fallback.
POST   /embed-all                    — background job embedding every processed document.
GET    /embed-all/status             — progress of that job.
"""
from __future__ import annotations

import logging
import os
import uuid
from collections import Counter
from pathlib import Path
from typing import List, Optional

import aiofiles
from fastapi import (
    APIRouter,
    Depends,
    File,
    Form,
    HTTPException,
    Query,
    Response,
    UploadFile,
    status,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.dependencies.auth import require_admin
from app.models.database_models import AiAnalysisResult, KnowledgeBaseDocument
from app.models.schemas import (
    AiAnalysisResultResponse,
    AnalyzeDocumentRequest,
    DocumentAnalysisResponse,
    DocumentCategoryResponse,
    DocumentSearchResponse,
    DocumentSearchResult,
    EmbeddingJobStatusResponse,
    KnowledgeBaseDocumentDetail,
    KnowledgeBaseDocumentResponse,
    KnowledgeBaseStatsResponse,
    KnowledgeBaseUploadResponse,
    UploadResult,
)
from app.services.ai_service import AIService
from app.services.document_processor import DocumentProcessor, StoredUpload
from app.services.embedding import embedding_service, run_embedding_job
from app.services.job_manager import JobPhase, JobStatus, job_manager
from app.services.llm import LLMUnavailableError
from app.utils.helpers import safe_remove

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_admin)])

EMBED_JOB_NAME = "embed-all"

processor = DocumentProcessor()
ai_service = AIService()


def _document_response(
    document: KnowledgeBaseDocument, detail: bool = False
) -> KnowledgeBaseDocumentResponse:
    fields = dict(
        id=document.id,
        filename=document.filename,
        original_name=document.original_name,
        content_type=document.content_type,
        category=document.category,
        size=document.size,
        status=document.status,
        tags=document.tags or [],
        summary=document.summary,
        key_insights=document.key_insights,
        metadata_json=document.metadata_json,
        has_embedding=document.embedding is not None,
        uploaded_at=document.uploaded_at,
        processed_at=document.processed_at,
    )
    if detail:
        return KnowledgeBaseDocumentDetail(content_text=document.content_text, **fields)
    return KnowledgeBaseDocumentResponse(**fields)


async def _get_document_or_404(db: AsyncSession, document_id: int) -> KnowledgeBaseDocument:
    try:
        return await processor.get_document(db, document_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Document {document_id} not found.",
        )


async def _store_upload(file: UploadFile) -> StoredUpload:
    """Stream *file* into UPLOAD_DIR under a UUID name, enforcing MAX_FILE_SIZE."""
    file_ext = Path(file.filename).suffix.lower()
    stored_name = f"{uuid.uuid4().hex}{file_ext}"
    file_path = os.path.join(settings.UPLOAD_DIR, stored_name)
    file_size = 0

    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
    async with aiofiles.open(file_path, "wb") as out:
        while True:
            chunk = await file.read(1024 * 1024)   # 1 MB slices
            if not chunk:
                break
            file_size += len(chunk)
            if file_size > settings.MAX_FILE_SIZE:
                await out.close()
                safe_remove(file_path)
                raise HTTPException(
                    status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                    detail=(
                        f"{file.filename!r} exceeds the "
                        f"{settings.MAX_FILE_SIZE // (1024 * 1024)} MB size limit."
                    ),
                )
            await out.write(chunk)

    logger.info("Saved %r -> %s (%s bytes)", file.filename, file_path, f"{file_size:,}")
    return StoredUpload(
        file_path=file_path,
        stored_name=stored_name,
        original_name=file.filename,
        size=file_size,
    )


# ---------------------------------------------------------------------------
# Upload
# ---------------------------------------------------------------------------

@router.post(
    "/upload",
    response_model=KnowledgeBaseUploadResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_documents(
    files: List[UploadFile] = File(...),
    category: str = Form(..., min_length=1, max_length=100),
    db: AsyncSession = Depends(get_db),
) -> KnowledgeBaseUploadResponse:
    """
    Upload PDF, DOCX or TXT files into one category.

    Every file is extracted, summarized by the LLM and embedded.  A file
    whose text cannot be extracted is reported as ``failed`` without
    aborting the rest of the batch.
    """
    for file in files:
        if not file.filename:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Upload must include a filename.",
            )
        file_ext = Path(file.filename).suffix.lower()
        if file_ext not in settings.SUPPORTED_FILE_TYPES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=(
                    f"Unsupported file type '{file_ext}'. "
                    f"Accepted: {', '.join(settings.SUPPORTED_FILE_TYPES)}"
                ),
            )

    stored: List[StoredUpload] = []
    try:
        for file in files:
            stored.append(await _store_upload(file))
    except HTTPException:
        for upload in stored:
            safe_remove(upload.file_path)
        raise

    outcomes = await processor.process_multiple_documents(db, stored, category)
    failed = sum(1 for o in outcomes if o.error)
    logger.info(
        "Knowledge-base upload: %d file(s) into %r, %d failed",
        len(outcomes),
        category,
        failed,
    )

    return KnowledgeBaseUploadResponse(
        uploaded=len(outcomes) - failed,
        failed=failed,
        results=[
            UploadResult(
                original_name=o.original_name,
                status=o.status,
                document_id=o.document_id,
                summary=o.summary,
                error=o.error,
            )
            for o in outcomes
        ],
    )


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------

@router.get("/documents", response_model=List[KnowledgeBaseDocumentResponse])
async def list_documents(
    category: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
) -> List[KnowledgeBaseDocumentResponse]:
    query = select(KnowledgeBaseDocument)
    if category:
        query = query.where(KnowledgeBaseDocument.category == category)
    if status_filter:
        query = query.where(KnowledgeBaseDocument.status == status_filter)
    result = await db.execute(
        query.order_by(KnowledgeBaseDocument.uploaded_at.desc(), KnowledgeBaseDocument.id.desc())
    )
    return [_document_response(doc) for doc in result.scalars().all()]


@router.get("/documents/{document_id}", response_model=KnowledgeBaseDocumentDetail)
async def get_document(
    document_id: int, db: AsyncSession = Depends(get_db)
) -> KnowledgeBaseDocumentResponse:
    document = await _get_document_or_404(db, document_id)
    return _document_response(document, detail=True)


@router.delete("/documents/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(document_id: int, db: AsyncSession = Depends(get_db)) -> Response:
    await _get_document_or_404(db, document_id)
    await processor.delete_document(db, document_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/documents/{document_id}/analysis", response_model=DocumentAnalysisResponse)
async def get_document_analysis(
    document_id: int, db: AsyncSession = Depends(get_db)
) -> DocumentAnalysisResponse:
    try:
        analysis = await processor.get_document_analysis(db, document_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Document {document_id} not found.",
        )
    return DocumentAnalysisResponse(**analysis)


@router.post(
    "/documents/{document_id}/analyze",
    response_model=AiAnalysisResultResponse,
    status_code=status.HTTP_201_CREATED,
)
async def analyze_document(
    document_id: int,
    body: AnalyzeDocumentRequest,
    db: AsyncSession = Depends(get_db),
) -> AiAnalysisResult:
    await _get_document_or_404(db, document_id)
    try:
        analysis = await ai_service.analyze_document(db, document_id, body.analysis_type)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    except LLMUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
    await db.refresh(analysis)
    return analysis


@router.get("/documents/{document_id}/analyses", response_model=List[AiAnalysisResultResponse])
async def list_document_analyses(
    document_id: int, db: AsyncSession = Depends(get_db)
) -> List[AiAnalysisResult]:
    await _get_document_or_404(db, document_id)
    result = await db.execute(
        select(AiAnalysisResult)
        .where(AiAnalysisResult.document_id == document_id)
        .order_by(AiAnalysisResult.created_at.desc(), AiAnalysisResult.id.desc())
    )
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Stats & categories
# ---------------------------------------------------------------------------

@router.get("/stats", response_model=KnowledgeBaseStatsResponse)
async def knowledge_base_stats(db: AsyncSession = Depends(get_db)) -> KnowledgeBaseStatsResponse:
    result = await db.execute(
        select(
            KnowledgeBaseDocument.category,
            KnowledgeBaseDocument.status,
            KnowledgeBaseDocument.embedding.isnot(None),
        )
    )
    rows = result.all()
    return KnowledgeBaseStatsResponse(
        total_documents=len(rows),
        embedded_documents=sum(1 for _cat, _status, has_vec in rows if has_vec),
        by_category=dict(Counter(cat for cat, _status, _vec in rows)),
        by_status=dict(Counter(doc_status for _cat, doc_status, _vec in rows)),
    )


@router.get("/categories", response_model=List[DocumentCategoryResponse])
async def list_categories(db: AsyncSession = Depends(get_db)):
    categories = await processor.get_categories(db)
    if not categories:
        await processor.initialize_categories(db)
        categories = await processor.get_categories(db)
    return categories


@router.post("/categories/initialize", response_model=List[DocumentCategoryResponse])
async def initialize_categories(db: AsyncSession = Depends(get_db)):
    created = await processor.initialize_categories(db)
    logger.info("Category initialization created %d categories", created)
    return await processor.get_categories(db)


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------

@router.get("/search", response_model=DocumentSearchResponse)
async def search_documents(
    q: str = Query(..., min_length=1),
    limit: int = Query(5, ge=1, le=20),
    db: AsyncSession = Depends(get_db),
) -> DocumentSearchResponse:
    """Semantic search over embedded documents; keyword overlap when nothing matches."""
    matches = await embedding_service.find_similar_documents(q, db, limit=limit)
    context = ""
    if matches:
        context = await embedding_service.get_relevant_context(q, db, max_documents=limit)
    else:
        matches = await ai_service.get_relevant_documents(db, q, limit)

    return DocumentSearchResponse(
        query=q,
        results=[
            DocumentSearchResult(
                id=m["id"],
                original_name=m["original_name"],
                category=m["category"],
                summary=m.get("summary"),
                score=m["score"],
                match_type=m["match_type"],
            )
            for m in matches
        ],
        context=context,
    )


# ---------------------------------------------------------------------------
# Bulk embedding job
# ---------------------------------------------------------------------------

def _job_response(job: Optional[JobStatus]) -> EmbeddingJobStatusResponse:
    if job is None:
        return EmbeddingJobStatusResponse(phase=JobPhase.IDLE.value)
    return EmbeddingJobStatusResponse(
        phase=job.phase.value,
        total_documents=job.total_items,
        documents_embedded=job.items_done,
        documents_failed=job.items_failed,
        current_document=job.current_item,
        errors=job.errors,
        elapsed_seconds=job.elapsed_seconds,
    )


@router.post(
    "/embed-all",
    response_model=EmbeddingJobStatusResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def embed_all_documents() -> EmbeddingJobStatusResponse:
    """Start embedding every ``processed`` document in the background."""
    job = JobStatus(name=EMBED_JOB_NAME)
    try:
        job_manager.start(EMBED_JOB_NAME, run_embedding_job(job), job)
    except RuntimeError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    return _job_response(job)


@router.get("/embed-all/status", response_model=EmbeddingJobStatusResponse)
async def embed_all_status() -> EmbeddingJobStatusResponse:
    return _job_response(job_manager.get_status(EMBED_JOB_NAME))
