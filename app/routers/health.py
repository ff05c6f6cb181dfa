"""
Health check endpoint.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import text
from datetime import datetime, timezone
import logging

from app.database import get_db
from app.models.schemas import HealthCheckResponse
from app.services.embedding import embedding_service
from app.services.llm import llm_client

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_model=HealthCheckResponse)
async def health_check(db: AsyncSession = Depends(get_db)):
    """
    Health check endpoint to verify system status.

    Returns:
        HealthCheckResponse with status of database, Ollama and the LLM provider
    """
    # Check database connection
    db_status = "ok"
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error("Database health check failed: %s", e)
        db_status = "error"

    # Check Ollama connection (embeddings)
    ollama_status = "ok"
    try:
        if not await embedding_service.check_ollama_health():
            ollama_status = "error"
    except Exception as e:
        logger.error("Ollama health check failed: %s", e)
        ollama_status = "error"

    # LLM provider: the first reachable provider in the chain
    providers = await llm_client.check_health()
    available = [name for name in llm_client.provider_chain() if providers.get(name)]
    llm_status = available[0] if available else "unavailable"

    overall_status = (
        "healthy"
        if db_status == "ok" and ollama_status == "ok" and available
        else "degraded"
    )

    return HealthCheckResponse(
        status=overall_status,
        database=db_status,
        ollama=ollama_status,
        llm_provider=llm_status,
        timestamp=datetime.now(timezone.utc),
    )
