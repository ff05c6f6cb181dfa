"""
Pydantic schemas for request/response validation.
"""
from pydantic import BaseModel, EmailStr, Field, ConfigDict, model_validator
from typing import ClassVar, Optional, List, Dict, Any, Tuple
from datetime import datetime
from enum import Enum


class PartialUpdate(BaseModel):
    """
    Base for PATCH payloads: every field is optional, but the columns listed
    in ``not_null`` may not be sent as an explicit ``null``.
    """

    not_null: ClassVar[Tuple[str, ...]] = ()

    @model_validator(mode="after")
    def reject_nulls(self):
        nulls = [
            name for name in self.not_null
            if name in self.model_fields_set and getattr(self, name) is None
        ]
        if nulls:
            raise ValueError(f"{', '.join(nulls)} cannot be null")
        return self


# Enums (matching database enums)
class CaseStudyStatusSchema(str, Enum):
    """Case study states for API requests/responses."""

    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


# ---------------------------------------------------------------------------
# Admin auth
# ---------------------------------------------------------------------------

class LoginRequest(BaseModel):
    """Admin credentials."""

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    """Token returned after a successful admin login."""

    token: str
    message: str = "Login successful"


class AdminStatusResponse(BaseModel):
    is_admin: bool


# ---------------------------------------------------------------------------
# Contact submissions
# ---------------------------------------------------------------------------

class ContactSubmissionCreate(BaseModel):
    """Public contact form payload."""

    name: str = Field(..., min_length=2, max_length=255)
    email: EmailStr = Field(..., max_length=255)
    company: Optional[str] = Field(None, max_length=255)
    project_type: str = Field("General Inquiry", max_length=255)
    message: str = Field(..., min_length=10)


class ContactSubmissionResponse(BaseModel):
    id: int
    name: str
    email: str
    company: Optional[str] = None
    project_type: str
    message: str
    submitted_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ContactAcknowledgement(BaseModel):
    """Returned to the visitor after a successful submission."""

    success: bool = True
    message: str = "Thank you for your message! I will get back to you soon."
    id: int


# ---------------------------------------------------------------------------
# Case studies
# ---------------------------------------------------------------------------

class CaseStudyCreate(BaseModel):
    """Schema for creating a case study. The slug is derived from the title when omitted."""

    title: str = Field(..., min_length=1, max_length=255)
    subtitle: Optional[str] = None
    challenge: str = Field(..., min_length=1)
    approach: str = Field(..., min_length=1)
    solution: str = Field(..., min_length=1)
    impact: str = Field(..., min_length=1)
    metrics: List[str] = Field(default_factory=list)
    technologies: List[str] = Field(default_factory=list)
    status: CaseStudyStatusSchema = CaseStudyStatusSchema.DRAFT
    featured: bool = False
    display_order: int = 0
    image_url: Optional[str] = None
    image_file: Optional[str] = None
    external_url: Optional[str] = None
    client_name: Optional[str] = None
    project_duration: Optional[str] = None
    team_size: Optional[str] = None
    technical_details: Optional[Dict[str, Any]] = None
    slug: Optional[str] = Field(None, max_length=255)


class CaseStudyUpdate(PartialUpdate):
    """Partial update; only the fields sent are changed."""

    not_null = (
        "title", "challenge", "approach", "solution", "impact", "metrics",
        "technologies", "status", "featured", "display_order", "slug",
    )

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    subtitle: Optional[str] = None
    challenge: Optional[str] = None
    approach: Optional[str] = None
    solution: Optional[str] = None
    impact: Optional[str] = None
    metrics: Optional[List[str]] = None
    technologies: Optional[List[str]] = None
    status: Optional[CaseStudyStatusSchema] = None
    featured: Optional[bool] = None
    display_order: Optional[int] = None
    image_url: Optional[str] = None
    image_file: Optional[str] = None
    external_url: Optional[str] = None
    client_name: Optional[str] = None
    project_duration: Optional[str] = None
    team_size: Optional[str] = None
    technical_details: Optional[Dict[str, Any]] = None
    slug: Optional[str] = Field(None, min_length=1, max_length=255)


class CaseStudyResponse(BaseModel):
    id: int
    title: str
    subtitle: Optional[str] = None
    challenge: str
    approach: str
    solution: str
    impact: str
    metrics: List[str] = []
    technologies: List[str] = []
    status: str
    featured: bool
    display_order: int
    image_url: Optional[str] = None
    image_file: Optional[str] = None
    external_url: Optional[str] = None
    client_name: Optional[str] = None
    project_duration: Optional[str] = None
    team_size: Optional[str] = None
    technical_details: Optional[Dict[str, Any]] = None
    slug: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# Experience timeline
# ---------------------------------------------------------------------------

class ExperienceEntryCreate(BaseModel):
    year: str = Field(..., min_length=1, max_length=50)
    title: str = Field(..., min_length=1, max_length=255)
    company: str = Field(..., min_length=1, max_length=255)
    location: Optional[str] = None
    description: Optional[str] = None
    highlight: Optional[str] = None
    order_index: int = 0
    color: str = "blue"
    level: int = Field(1, ge=1)
    experience_points: int = Field(0, ge=0)
    impact_metrics: Optional[Dict[str, Any]] = None
    achievements: List[str] = Field(default_factory=list)


class ExperienceEntryUpdate(PartialUpdate):
    not_null = (
        "year", "title", "company", "order_index", "color", "level",
        "experience_points", "achievements",
    )

    year: Optional[str] = Field(None, min_length=1, max_length=50)
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    company: Optional[str] = Field(None, min_length=1, max_length=255)
    location: Optional[str] = None
    description: Optional[str] = None
    highlight: Optional[str] = None
    order_index: Optional[int] = None
    color: Optional[str] = None
    level: Optional[int] = Field(None, ge=1)
    experience_points: Optional[int] = Field(None, ge=0)
    impact_metrics: Optional[Dict[str, Any]] = None
    achievements: Optional[List[str]] = None


class ExperienceEntryResponse(BaseModel):
    id: int
    year: str
    title: str
    company: str
    location: Optional[str] = None
    description: Optional[str] = None
    highlight: Optional[str] = None
    order_index: int
    color: str
    level: int
    experience_points: int
    impact_metrics: Optional[Dict[str, Any]] = None
    achievements: List[str] = []
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# Core values
# ---------------------------------------------------------------------------

class CoreValueCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    icon: str = "target"
    order_index: int = 0


class CoreValueUpdate(PartialUpdate):
    not_null = ("title", "description", "icon", "order_index")

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    icon: Optional[str] = None
    order_index: Optional[int] = None


class CoreValueResponse(BaseModel):
    id: int
    title: str
    description: str
    icon: str
    order_index: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# Skills and headline metrics
# ---------------------------------------------------------------------------

class SkillCategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    order_index: int = 0


class SkillCategoryUpdate(PartialUpdate):
    not_null = ("name", "order_index")

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    order_index: Optional[int] = None


class SkillCategoryResponse(BaseModel):
    id: int
    name: str
    order_index: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SkillCreate(BaseModel):
    category_id: int
    name: str = Field(..., min_length=1, max_length=255)
    proficiency_level: int = Field(5, ge=1, le=10)
    order_index: int = 0


class SkillUpdate(PartialUpdate):
    not_null = ("category_id", "name", "proficiency_level", "order_index")

    category_id: Optional[int] = None
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    proficiency_level: Optional[int] = Field(None, ge=1, le=10)
    order_index: Optional[int] = None


class SkillResponse(BaseModel):
    id: int
    category_id: int
    name: str
    proficiency_level: int
    order_index: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SkillGroupResponse(SkillCategoryResponse):
    """Public view: a category with its skills in display order."""

    skills: List[SkillResponse] = []


class PortfolioMetricCreate(BaseModel):
    metric_name: str = Field(..., min_length=1, max_length=100)
    metric_value: str = Field(..., min_length=1, max_length=100)
    metric_label: str = Field(..., min_length=1, max_length=255)
    display_order: int = 0


class PortfolioMetricUpdate(PartialUpdate):
    not_null = ("metric_name", "metric_value", "metric_label", "display_order")

    metric_name: Optional[str] = Field(None, min_length=1, max_length=100)
    metric_value: Optional[str] = Field(None, min_length=1, max_length=100)
    metric_label: Optional[str] = Field(None, min_length=1, max_length=255)
    display_order: Optional[int] = None


class PortfolioMetricResponse(BaseModel):
    id: int
    metric_name: str
    metric_value: str
    metric_label: str
    display_order: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# Portfolio images
# ---------------------------------------------------------------------------

class PortfolioImageCreate(BaseModel):
    section: str = Field(..., min_length=1, max_length=100)
    image_url: str = Field(..., min_length=1)
    alt_text: str = Field(..., min_length=1)
    caption: Optional[str] = None
    order_index: int = 0
    is_active: bool = True
    case_study_id: Optional[int] = None


class PortfolioImageUpdate(PartialUpdate):
    not_null = ("section", "image_url", "alt_text", "order_index", "is_active")

    section: Optional[str] = Field(None, min_length=1, max_length=100)
    image_url: Optional[str] = Field(None, min_length=1)
    alt_text: Optional[str] = Field(None, min_length=1)
    caption: Optional[str] = None
    order_index: Optional[int] = None
    is_active: Optional[bool] = None
    case_study_id: Optional[int] = None


class PortfolioImageResponse(BaseModel):
    id: int
    section: str
    image_url: str
    alt_text: str
    caption: Optional[str] = None
    order_index: int
    is_active: bool
    case_study_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# SEO settings
# ---------------------------------------------------------------------------

class SeoSettingsCreate(BaseModel):
    page: str = Field(..., min_length=1, max_length=100)
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    keywords: List[str] = Field(default_factory=list)
    og_title: Optional[str] = None
    og_description: Optional[str] = None
    og_image: Optional[str] = None
    twitter_title: Optional[str] = None
    twitter_description: Optional[str] = None
    twitter_image: Optional[str] = None
    canonical_url: Optional[str] = None
    robots_directive: str = "index,follow"
    structured_data: Optional[Dict[str, Any]] = None


class SeoSettingsUpdate(PartialUpdate):
    not_null = ("page", "title", "description", "keywords", "robots_directive")

    page: Optional[str] = Field(None, min_length=1, max_length=100)
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    keywords: Optional[List[str]] = None
    og_title: Optional[str] = None
    og_description: Optional[str] = None
    og_image: Optional[str] = None
    twitter_title: Optional[str] = None
    twitter_description: Optional[str] = None
    twitter_image: Optional[str] = None
    canonical_url: Optional[str] = None
    robots_directive: Optional[str] = None
    structured_data: Optional[Dict[str, Any]] = None


class SeoSettingsResponse(BaseModel):
    id: int
    page: str
    title: str
    description: str
    keywords: List[str] = []
    og_title: Optional[str] = None
    og_description: Optional[str] = None
    og_image: Optional[str] = None
    twitter_title: Optional[str] = None
    twitter_description: Optional[str] = None
    twitter_image: Optional[str] = None
    canonical_url: Optional[str] = None
    robots_directive: str
    structured_data: Optional[Dict[str, Any]] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# Content sections
# ---------------------------------------------------------------------------

class ContentSectionSave(BaseModel):
    """Save a new revision of a content section (creates the section if needed)."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    content: Dict[str, Any]
    change_summary: Optional[str] = None


class ContentSectionResponse(BaseModel):
    id: str
    name: str
    content: Dict[str, Any]
    published_content: Optional[Dict[str, Any]] = None
    status: str
    version: int
    last_modified: datetime

    model_config = ConfigDict(from_attributes=True)


class ContentVersionResponse(BaseModel):
    id: int
    section_id: str
    content: Dict[str, Any]
    version: int
    change_summary: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime
    published_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class PublishedSectionResponse(BaseModel):
    """Public view of a section: only the published snapshot."""

    id: str
    name: str
    content: Dict[str, Any]
    version: int


# ---------------------------------------------------------------------------
# Knowledge base
# ---------------------------------------------------------------------------

class DocumentCategoryResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    processing_rules: Optional[Dict[str, Any]] = None
    ai_prompts: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(from_attributes=True)


class KnowledgeBaseDocumentResponse(BaseModel):
    """Document metadata (no full text, no vector)."""

    id: int
    filename: str
    original_name: str
    content_type: str
    category: str
    size: int
    status: str
    tags: List[str] = []
    summary: Optional[str] = None
    key_insights: Optional[Dict[str, Any]] = None
    metadata_json: Optional[Dict[str, Any]] = None
    has_embedding: bool = False
    uploaded_at: datetime
    processed_at: Optional[datetime] = None


class KnowledgeBaseDocumentDetail(KnowledgeBaseDocumentResponse):
    content_text: Optional[str] = None


class UploadResult(BaseModel):
    """Outcome of one file in a (possibly multi-file) upload."""

    original_name: str
    status: str
    document_id: Optional[int] = None
    summary: Optional[str] = None
    error: Optional[str] = None


class KnowledgeBaseUploadResponse(BaseModel):
    uploaded: int
    failed: int
    results: List[UploadResult]


class KnowledgeBaseStatsResponse(BaseModel):
    total_documents: int
    embedded_documents: int
    by_category: Dict[str, int]
    by_status: Dict[str, int]


class DocumentAnalysisResponse(BaseModel):
    """Stored LLM summary + insights for one document."""

    id: int
    original_name: str
    category: str
    status: str
    summary: Optional[str] = None
    key_insights: Optional[Dict[str, Any]] = None
    processed_at: Optional[datetime] = None


class AnalyzeDocumentRequest(BaseModel):
    analysis_type: str = Field("resume_analysis", min_length=1, max_length=100)


class AiAnalysisResultResponse(BaseModel):
    id: int
    document_id: int
    analysis_type: str
    results: Dict[str, Any]
    recommendations: List[str] = []
    score: Optional[int] = None
    strengths: List[str] = []
    improvements: List[str] = []
    model_used: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DocumentSearchResult(BaseModel):
    id: int
    original_name: str
    category: str
    summary: Optional[str] = None
    score: float
    match_type: str  # "vector" or "keyword"


class DocumentSearchResponse(BaseModel):
    query: str
    results: List[DocumentSearchResult]
    context: str = ""


class EmbeddingJobStatusResponse(BaseModel):
    """Progress of the background embedding job."""

    phase: str
    total_documents: int = 0
    documents_embedded: int = 0
    documents_failed: int = 0
    current_document: Optional[str] = None
    errors: List[str] = []
    elapsed_seconds: float = 0.0


# ---------------------------------------------------------------------------
# Conversations & memory
# ---------------------------------------------------------------------------

class SessionStartRequest(BaseModel):
    user_id: Optional[str] = None
    session_type: Optional[str] = None


class SessionResponse(BaseModel):
    id: int
    user_id: str
    session_type: str
    session_start: datetime
    last_activity: datetime
    context_summary: Optional[str] = None
    total_messages: int
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class MessageRequest(BaseModel):
    message: str = Field(..., min_length=1)
    attached_documents: List[int] = Field(default_factory=list)


class ConversationMessageResponse(BaseModel):
    """Assistant reply to one chat turn."""

    id: str
    role: str = "assistant"
    content: str
    timestamp: datetime
    session_id: int
    context_used: List[str] = []
    model_used: str


class MemoryResponse(BaseModel):
    id: int
    session_id: int
    memory_type: str
    content: str
    importance_score: int
    context_tags: List[str] = []
    related_documents: List[int] = []
    created_at: datetime
    last_accessed: datetime
    expires_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class SessionStatsResponse(BaseModel):
    session: SessionResponse
    total_memories: int
    top_memories: List[MemoryResponse]


class MemorySummaryResponse(BaseModel):
    session_id: int
    summary: str


class MemoryStatsResponse(BaseModel):
    total: int
    by_type: Dict[str, int]


class InsightPreviewRequest(BaseModel):
    user_message: str = Field(..., min_length=1)
    assistant_response: str = ""


class ExtractedInsight(BaseModel):
    memory_type: str
    content: str
    importance: int


class CleanupResponse(BaseModel):
    deleted: int
    message: str


class UserProfileUpdate(BaseModel):
    career_stage: Optional[str] = None
    current_goals: Optional[List[str]] = None
    preferences: Optional[Dict[str, Any]] = None
    skills_to_improve: Optional[List[str]] = None
    target_roles: Optional[List[str]] = None
    target_companies: Optional[List[str]] = None
    personality_type: Optional[str] = None
    communication_style: Optional[str] = None


class UserProfileResponse(BaseModel):
    id: int
    user_id: str
    career_stage: Optional[str] = None
    current_goals: List[str] = []
    preferences: Optional[Dict[str, Any]] = None
    skills_to_improve: List[str] = []
    target_roles: List[str] = []
    target_companies: List[str] = []
    personality_type: Optional[str] = None
    communication_style: str
    last_updated: datetime

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

class HealthCheckResponse(BaseModel):
    """Schema for health check response."""

    status: str
    database: str
    ollama: str
    llm_provider: str
    timestamp: datetime
    version: str = "1.0.0"
