"""
Public read-only portfolio endpoints. Only published content is served.
"""
from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.database import get_db
from app.models.database_models import (
    CaseStudy,
    CaseStudyStatus,
    ContentSection,
    CoreValue,
    ExperienceEntry,
    PortfolioImage,
    PortfolioMetric,
    SeoSettings,
    SkillCategory,
)
from app.models.schemas import (
    CaseStudyResponse,
    CoreValueResponse,
    ExperienceEntryResponse,
    PortfolioImageResponse,
    PortfolioMetricResponse,
    PublishedSectionResponse,
    SeoSettingsResponse,
    SkillGroupResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _not_found(what: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{what} not found.")


@router.get("/case-studies", response_model=List[CaseStudyResponse])
async def list_case_studies(
    featured: Optional[bool] = Query(None),
    db: AsyncSession = Depends(get_db),
) -> List[CaseStudy]:
    query = select(CaseStudy).where(CaseStudy.status == CaseStudyStatus.PUBLISHED.value)
    if featured is not None:
        query = query.where(CaseStudy.featured.is_(featured))
    result = await db.execute(query.order_by(CaseStudy.display_order, CaseStudy.id))
    return list(result.scalars().all())


@router.get("/case-studies/{slug}", response_model=CaseStudyResponse)
async def get_case_study(slug: str, db: AsyncSession = Depends(get_db)) -> CaseStudy:
    result = await db.execute(
        select(CaseStudy).where(
            CaseStudy.slug == slug,
            CaseStudy.status == CaseStudyStatus.PUBLISHED.value,
        )
    )
    case_study = result.scalar_one_or_none()
    if case_study is None:
        raise _not_found(f"Case study '{slug}'")
    return case_study


@router.get("/experience", response_model=List[ExperienceEntryResponse])
async def get_timeline(db: AsyncSession = Depends(get_db)) -> List[ExperienceEntry]:
    result = await db.execute(
        select(ExperienceEntry).order_by(ExperienceEntry.order_index, ExperienceEntry.id)
    )
    return list(result.scalars().all())


@router.get("/core-values", response_model=List[CoreValueResponse])
async def get_core_values(db: AsyncSession = Depends(get_db)) -> List[CoreValue]:
    result = await db.execute(select(CoreValue).order_by(CoreValue.order_index, CoreValue.id))
    return list(result.scalars().all())


@router.get("/images", response_model=List[PortfolioImageResponse])
async def get_images(
    section: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
) -> List[PortfolioImage]:
    """Active images, optionally restricted to one page section."""
    query = select(PortfolioImage).where(PortfolioImage.is_active.is_(True))
    if section:
        query = query.where(PortfolioImage.section == section)
    result = await db.execute(query.order_by(PortfolioImage.order_index, PortfolioImage.id))
    return list(result.scalars().all())


@router.get("/skills", response_model=List[SkillGroupResponse])
async def get_skills(db: AsyncSession = Depends(get_db)) -> List[SkillCategory]:
    """Skill categories in display order, each with its skills."""
    result = await db.execute(
        select(SkillCategory)
        .options(selectinload(SkillCategory.skills))
        .order_by(SkillCategory.order_index, SkillCategory.id)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


@router.get("/metrics", response_model=List[PortfolioMetricResponse])
async def get_metrics(db: AsyncSession = Depends(get_db)) -> List[PortfolioMetric]:
    result = await db.execute(
        select(PortfolioMetric).order_by(PortfolioMetric.display_order, PortfolioMetric.id)
    )
    return list(result.scalars().all())


@router.get("/seo/{page}", response_model=SeoSettingsResponse)
async def get_seo(page: str, db: AsyncSession = Depends(get_db)) -> SeoSettings:
    result = await db.execute(select(SeoSettings).where(SeoSettings.page == page))
    seo = result.scalar_one_or_none()
    if seo is None:
        raise _not_found(f"SEO settings for '{page}'")
    return seo


@router.get("/content", response_model=List[PublishedSectionResponse])
async def list_published_sections(db: AsyncSession = Depends(get_db)) -> List[PublishedSectionResponse]:
    result = await db.execute(select(ContentSection).order_by(ContentSection.id))
    return [
        _published(section)
        for section in result.scalars().all()
        if section.published_content is not None
    ]


@router.get("/content/{section_id}", response_model=PublishedSectionResponse)
async def get_published_section(
    section_id: str, db: AsyncSession = Depends(get_db)
) -> PublishedSectionResponse:
    section = await db.get(ContentSection, section_id)
    if section is None or section.published_content is None:
        raise _not_found(f"Published section '{section_id}'")
    return _published(section)


def _published(section: ContentSection) -> PublishedSectionResponse:
    return PublishedSectionResponse(
        id=section.id,
        name=section.name,
        content=section.published_content,
        version=section.version,
    )
