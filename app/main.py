"""
FastAPI entry point: lifespan checks, middleware, error handling and routers.
"""
import logging
import os
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import List

import httpx
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.database import AsyncSessionLocal, close_db, init_db
from app.routers import admin, contact, content, conversations, health, knowledge_base, portfolio
from app.routers import cms
from app.services.document_processor import DocumentProcessor

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

_QUIET_PATHS = ("/api/health", "/api/health/", "/")


async def _missing_ollama_models() -> List[str]:
    """
    Return the configured Ollama models that are not pulled.
    Raises ``httpx.HTTPError`` when Ollama cannot be reached.
    """
    async with httpx.AsyncClient(timeout=10.0) as client:
        resp = await client.get(f"{settings.OLLAMA_BASE_URL}/api/tags")
        resp.raise_for_status()
    pulled = {m["name"].split(":")[0] for m in resp.json().get("models", [])}
    wanted = [settings.OLLAMA_EMBED_MODEL, settings.OLLAMA_LLM_MODEL]
    return [name for name in wanted if name.split(":")[0] not in pulled]


async def _seed_categories() -> None:
    async with AsyncSessionLocal() as session:
        created = await DocumentProcessor().initialize_categories(session)
        await session.commit()
    if created:
        logger.info("Seeded %d document categories", created)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    await _seed_categories()

    if not settings.ANTHROPIC_API_KEY:
        logger.info("ANTHROPIC_API_KEY not set; Ollama is the only LLM provider")
    try:
        missing = await _missing_ollama_models()
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("Ollama unreachable (%s); embeddings are disabled until it is up", exc)
    else:
        for name in missing:
            logger.warning("Ollama model %r not pulled (ollama pull %s)", name, name)

    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
    logger.info("Portfolio backend ready on http://%s:%d", settings.HOST, settings.PORT)

    yield

    await close_db()
    logger.info("Shutdown complete")


app = FastAPI(
    title="Portfolio CMS API",
    description="Portfolio content management with a private AI career assistant.",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log each request and set ``X-Process-Time`` in milliseconds."""
    t0 = time.monotonic()
    response = await call_next(request)
    elapsed_ms = round((time.monotonic() - t0) * 1000, 2)

    if request.url.path not in _QUIET_PATHS:
        logger.info(
            "%s %s → %d  (%.2f ms)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )

    response.headers["X-Process-Time"] = f"{elapsed_ms}ms"
    return response


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(
        "Unhandled exception on %s %s: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=True,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Internal server error",
            "error": str(exc),
            "path": str(request.url.path),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


# Public
app.include_router(health.router,     prefix="/api/health",    tags=["Health"])
app.include_router(portfolio.router,  prefix="/api/portfolio", tags=["Portfolio"])
app.include_router(contact.router,    prefix="/api/contact",   tags=["Contact"])
app.include_router(admin.router,      prefix="/api/admin",     tags=["Admin"])

# Admin CMS
app.include_router(cms.case_studies_router,     prefix="/api/admin/case-studies",     tags=["CMS"])
app.include_router(cms.experience_router,       prefix="/api/admin/experience",       tags=["CMS"])
app.include_router(cms.core_values_router,      prefix="/api/admin/core-values",      tags=["CMS"])
app.include_router(cms.skill_categories_router, prefix="/api/admin/skill-categories", tags=["CMS"])
app.include_router(cms.skills_router,           prefix="/api/admin/skills",           tags=["CMS"])
app.include_router(cms.metrics_router,          prefix="/api/admin/metrics",          tags=["CMS"])
app.include_router(cms.images_router,           prefix="/api/admin/images",           tags=["CMS"])
app.include_router(cms.seo_router,              prefix="/api/admin/seo",              tags=["CMS"])
app.include_router(content.router,              prefix="/api/admin/content",          tags=["Content"])

# Admin AI
app.include_router(
    knowledge_base.router, prefix="/api/admin/knowledge-base", tags=["Knowledge Base"]
)
app.include_router(conversations.router, prefix="/api/admin/ai", tags=["AI Assistant"])


@app.get("/", include_in_schema=False)
async def root():
    return {
        "name": "Portfolio CMS API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/api/health",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host=settings.HOST, port=settings.PORT, reload=True)
