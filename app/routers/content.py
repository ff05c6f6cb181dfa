"""
Editable content sections (admin).

GET  /sections                      — every section with its draft content.
GET  /sections/{section_id}         — one section.
PUT  /sections/{section_id}         — save a new draft revision.
POST /sections/{section_id}/publish — publish the current draft.
GET  /sections/{section_id}/versions — revision history, newest first.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies.auth import require_admin
from app.models.database_models import ContentSection, ContentStatus, ContentVersion
from app.models.schemas import (
    ContentSectionResponse,
    ContentSectionSave,
    ContentVersionResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_admin)])


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


async def _get_section(db: AsyncSession, section_id: str) -> ContentSection:
    section = await db.get(ContentSection, section_id)
    if section is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Content section '{section_id}' not found.",
        )
    return section


@router.get("/sections", response_model=List[ContentSectionResponse])
async def list_sections(db: AsyncSession = Depends(get_db)) -> List[ContentSection]:
    result = await db.execute(select(ContentSection).order_by(ContentSection.id))
    return list(result.scalars().all())


@router.get("/sections/{section_id}", response_model=ContentSectionResponse)
async def get_section(section_id: str, db: AsyncSession = Depends(get_db)) -> ContentSection:
    return await _get_section(db, section_id)


@router.put("/sections/{section_id}", response_model=ContentSectionResponse)
async def save_section(
    section_id: str,
    body: ContentSectionSave,
    admin: str = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ContentSection:
    """
    Store *content* as the section's new draft.

    The section is created on first save.  Each save bumps ``version`` by one
    and records a history row; the published snapshot is left untouched.
    """
    section = await db.get(ContentSection, section_id)
    if section is None:
        section = ContentSection(
            id=section_id,
            name=body.name or section_id.replace("_", " ").title(),
            content={},
            version=0,
        )
        db.add(section)
    elif body.name:
        section.name = body.name

    section.content = body.content
    section.version = (section.version or 0) + 1
    section.status = ContentStatus.DRAFT.value
    section.last_modified = _utcnow()

    db.add(
        ContentVersion(
            section_id=section_id,
            content=body.content,
            version=section.version,
            change_summary=body.change_summary,
            created_by=admin,
        )
    )
    await db.flush()
    logger.info("Saved content section %r as version %d", section_id, section.version)
    return section


@router.post("/sections/{section_id}/publish", response_model=ContentSectionResponse)
async def publish_section(section_id: str, db: AsyncSession = Depends(get_db)) -> ContentSection:
    """Copy the draft into the public snapshot and stamp the matching revision."""
    section = await _get_section(db, section_id)
    now = _utcnow()

    section.published_content = section.content
    section.status = ContentStatus.PUBLISHED.value
    section.last_modified = now

    result = await db.execute(
        select(ContentVersion).where(
            ContentVersion.section_id == section_id,
            ContentVersion.version == section.version,
        )
    )
    latest = result.scalar_one_or_none()
    if latest is not None:
        latest.published_at = now

    await db.flush()
    logger.info("Published content section %r (version %d)", section_id, section.version)
    return section


@router.get("/sections/{section_id}/versions", response_model=List[ContentVersionResponse])
async def list_versions(
    section_id: str, db: AsyncSession = Depends(get_db)
) -> List[ContentVersion]:
    await _get_section(db, section_id)
    result = await db.execute(
        select(ContentVersion)
        .where(ContentVersion.section_id == section_id)
        .order_by(ContentVersion.version.desc())
    )
    return list(result.scalars().all())
