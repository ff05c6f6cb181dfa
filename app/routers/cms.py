"""
Admin CRUD routers for the portfolio tables, built by the shared factory.
"""
from __future__ import annotations

import uuid
from typing import Any, Dict

from app.models.database_models import (
    CaseStudy,
    CoreValue,
    ExperienceEntry,
    PortfolioImage,
    PortfolioMetric,
    SeoSettings,
    Skill,
    SkillCategory,
)
from app.models.schemas import (
    CaseStudyCreate,
    CaseStudyResponse,
    CaseStudyUpdate,
    CoreValueCreate,
    CoreValueResponse,
    CoreValueUpdate,
    ExperienceEntryCreate,
    ExperienceEntryResponse,
    ExperienceEntryUpdate,
    PortfolioImageCreate,
    PortfolioImageResponse,
    PortfolioImageUpdate,
    PortfolioMetricCreate,
    PortfolioMetricResponse,
    PortfolioMetricUpdate,
    SeoSettingsCreate,
    SeoSettingsResponse,
    SeoSettingsUpdate,
    SkillCategoryCreate,
    SkillCategoryResponse,
    SkillCategoryUpdate,
    SkillCreate,
    SkillResponse,
    SkillUpdate,
)
from app.routers.crud import build_crud_router
from app.utils.helpers import slugify


def _with_slug(data: Dict[str, Any]) -> Dict[str, Any]:
    """Derive the slug from the title when none was sent."""
    if not data.get("slug"):
        # Titles with no ASCII letters slugify to ""
        data["slug"] = slugify(data["title"]) or f"case-study-{uuid.uuid4().hex[:8]}"
    return data


case_studies_router = build_crud_router(
    CaseStudy,
    CaseStudyCreate,
    CaseStudyUpdate,
    CaseStudyResponse,
    "Case study",
    order_by=[CaseStudy.display_order, CaseStudy.id],
    prepare_create=_with_slug,
)

experience_router = build_crud_router(
    ExperienceEntry,
    ExperienceEntryCreate,
    ExperienceEntryUpdate,
    ExperienceEntryResponse,
    "Experience entry",
    order_by=[ExperienceEntry.order_index, ExperienceEntry.id],
)

core_values_router = build_crud_router(
    CoreValue,
    CoreValueCreate,
    CoreValueUpdate,
    CoreValueResponse,
    "Core value",
    order_by=[CoreValue.order_index, CoreValue.id],
)

images_router = build_crud_router(
    PortfolioImage,
    PortfolioImageCreate,
    PortfolioImageUpdate,
    PortfolioImageResponse,
    "Image",
    order_by=[PortfolioImage.section, PortfolioImage.order_index, PortfolioImage.id],
)

seo_router = build_crud_router(
    SeoSettings,
    SeoSettingsCreate,
    SeoSettingsUpdate,
    SeoSettingsResponse,
    "SEO settings",
    order_by=[SeoSettings.page],
)

skill_categories_router = build_crud_router(
    SkillCategory,
    SkillCategoryCreate,
    SkillCategoryUpdate,
    SkillCategoryResponse,
    "Skill category",
    order_by=[SkillCategory.order_index, SkillCategory.id],
)

skills_router = build_crud_router(
    Skill,
    SkillCreate,
    SkillUpdate,
    SkillResponse,
    "Skill",
    order_by=[Skill.category_id, Skill.order_index, Skill.id],
)

metrics_router = build_crud_router(
    PortfolioMetric,
    PortfolioMetricCreate,
    PortfolioMetricUpdate,
    PortfolioMetricResponse,
    "Metric",
    order_by=[PortfolioMetric.display_order, PortfolioMetric.id],
)
