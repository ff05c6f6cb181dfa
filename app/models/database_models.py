"""
SQLAlchemy ORM models for the portfolio database.
Covers the CMS content tables and the AI knowledge-base / memory tables.
Includes pgvector support for document embeddings.
"""
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    DateTime,
    ForeignKey,
    Boolean,
    JSON,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from pgvector.sqlalchemy import Vector
import enum

from app.database import Base
from app.config import settings


# Enums
class CaseStudyStatus(str, enum.Enum):
    """Publication state of a case study."""

    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class ContentStatus(str, enum.Enum):
    """Publication state of an editable content section."""

    DRAFT = "draft"
    PUBLISHED = "published"


class DocumentStatus(str, enum.Enum):
    """Lifecycle of a knowledge-base document."""

    PROCESSING = "processing"
    PROCESSED = "processed"   # text + analysis stored, no vector yet
    EMBEDDED = "embedded"     # vector stored as well
    FAILED = "failed"


class MemoryType(str, enum.Enum):
    """Kinds of conversation memory rows."""

    USER_INPUT = "user_input"
    ASSISTANT_RESPONSE = "assistant_response"
    PREFERENCE = "preference"
    GOAL = "goal"
    FACT = "fact"
    ACHIEVEMENT = "achievement"
    SKILL = "skill"
    INSIGHT = "insight"


# ---------------------------------------------------------------------------
# CMS content
# ---------------------------------------------------------------------------

class ContactSubmission(Base):
    """Message sent through the public contact form."""

    __tablename__ = "contact_submissions"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    company = Column(String(255), nullable=True)
    project_type = Column(String(255), nullable=False, default="General Inquiry")
    message = Column(Text, nullable=False)
    submitted_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class CaseStudy(Base):
    """Portfolio case study."""

    __tablename__ = "case_studies"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    subtitle = Column(String(255), nullable=True)
    challenge = Column(Text, nullable=False)
    approach = Column(Text, nullable=False)
    solution = Column(Text, nullable=False)
    impact = Column(Text, nullable=False)
    metrics = Column(JSON, nullable=False, default=list)
    technologies = Column(JSON, nullable=False, default=list)
    status = Column(String(20), nullable=False, default=CaseStudyStatus.DRAFT.value, index=True)
    featured = Column(Boolean, nullable=False, default=False)
    display_order = Column(Integer, nullable=False, default=0)
    image_url = Column(String(1024), nullable=True)
    image_file = Column(String(512), nullable=True)
    external_url = Column(String(1024), nullable=True)
    client_name = Column(String(255), nullable=True)
    project_duration = Column(String(100), nullable=True)
    team_size = Column(String(100), nullable=True)
    technical_details = Column(JSON, nullable=True)
    slug = Column(String(255), nullable=False, unique=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    # Relationships
    images = relationship("PortfolioImage", back_populates="case_study")


class ExperienceEntry(Base):
    """Timeline entry on the experience page."""

    __tablename__ = "experience_entries"

    id = Column(Integer, primary_key=True, index=True)
    year = Column(String(50), nullable=False)
    title = Column(String(255), nullable=False)
    company = Column(String(255), nullable=False)
    location = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    highlight = Column(Text, nullable=True)
    order_index = Column(Integer, nullable=False, default=0)
    color = Column(String(50), nullable=False, default="blue")
    level = Column(Integer, nullable=False, default=1)
    experience_points = Column(Integer, nullable=False, default=0)
    impact_metrics = Column(JSON, nullable=True)
    achievements = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class CoreValue(Base):
    """Core value card."""

    __tablename__ = "core_values"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    icon = Column(String(100), nullable=False, default="target")
    order_index = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class SkillCategory(Base):
    """Group of skills shown together (e.g. "Leadership", "Platforms")."""

    __tablename__ = "skill_categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, unique=True)
    order_index = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    skills = relationship(
        "Skill",
        back_populates="category",
        cascade="all, delete-orphan",
        order_by="Skill.order_index",
    )


class Skill(Base):
    __tablename__ = "skills"

    id = Column(Integer, primary_key=True, index=True)
    category_id = Column(
        Integer, ForeignKey("skill_categories.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(255), nullable=False)
    proficiency_level = Column(Integer, nullable=False, default=5)  # 1-10
    order_index = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    category = relationship("SkillCategory", back_populates="skills")


class PortfolioMetric(Base):
    """Headline number on the portfolio (e.g. "12 / teams led")."""

    __tablename__ = "portfolio_metrics"

    id = Column(Integer, primary_key=True, index=True)
    metric_name = Column(String(100), nullable=False, unique=True)
    metric_value = Column(String(100), nullable=False)
    metric_label = Column(String(255), nullable=False)
    display_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class PortfolioImage(Base):
    """Image shown in a page section, optionally attached to a case study."""

    __tablename__ = "portfolio_images"

    id = Column(Integer, primary_key=True, index=True)
    section = Column(String(100), nullable=False, index=True)
    image_url = Column(String(1024), nullable=False)
    alt_text = Column(String(512), nullable=False)
    caption = Column(Text, nullable=True)
    order_index = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    case_study_id = Column(
        Integer, ForeignKey("case_studies.id", ondelete="SET NULL"), nullable=True, index=True
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    # Relationships
    case_study = relationship("CaseStudy", back_populates="images")


class SeoSettings(Base):
    """Per-page SEO metadata."""

    __tablename__ = "seo_settings"

    id = Column(Integer, primary_key=True, index=True)
    page = Column(String(100), nullable=False, unique=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    keywords = Column(JSON, nullable=False, default=list)
    og_title = Column(String(255), nullable=True)
    og_description = Column(Text, nullable=True)
    og_image = Column(String(1024), nullable=True)
    twitter_title = Column(String(255), nullable=True)
    twitter_description = Column(Text, nullable=True)
    twitter_image = Column(String(1024), nullable=True)
    canonical_url = Column(String(1024), nullable=True)
    robots_directive = Column(String(100), nullable=False, default="index,follow")
    structured_data = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class ContentSection(Base):
    """Editable page section (hero, about, stats ...) keyed by a text id."""

    __tablename__ = "content_sections"

    id = Column(String(100), primary_key=True)
    name = Column(String(255), nullable=False)
    content = Column(JSON, nullable=False, default=dict)
    published_content = Column(JSON, nullable=True)
    status = Column(String(20), nullable=False, default=ContentStatus.DRAFT.value)
    version = Column(Integer, nullable=False, default=0)
    last_modified = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    versions = relationship(
        "ContentVersion",
        back_populates="section",
        cascade="all, delete-orphan",
        order_by="ContentVersion.version",
    )


class ContentVersion(Base):
    """Saved revision of a content section."""

    __tablename__ = "content_versions"

    id = Column(Integer, primary_key=True, index=True)
    section_id = Column(
        String(100), ForeignKey("content_sections.id", ondelete="CASCADE"), nullable=False, index=True
    )
    content = Column(JSON, nullable=False)
    version = Column(Integer, nullable=False)
    change_summary = Column(Text, nullable=True)
    created_by = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    published_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    section = relationship("ContentSection", back_populates="versions")


# ---------------------------------------------------------------------------
# Knowledge base
# ---------------------------------------------------------------------------

class DocumentCategory(Base):
    """Knowledge-base category with its processing rules and analysis prompt."""

    __tablename__ = "document_categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, unique=True, index=True)
    description = Column(Text, nullable=True)
    processing_rules = Column(JSON, nullable=True)
    ai_prompts = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class KnowledgeBaseDocument(Base):
    """Uploaded career document with extracted text, LLM analysis and embedding."""

    __tablename__ = "knowledge_base_documents"

    id = Column(Integer, primary_key=True, index=True)
    filename = Column(String(255), nullable=False)          # UUID name on disk
    original_name = Column(String(255), nullable=False)
    content_type = Column(String(20), nullable=False)       # pdf, docx, txt
    content_text = Column(Text, nullable=True)
    category = Column(String(100), nullable=False, index=True)
    size = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default=DocumentStatus.PROCESSING.value, index=True)
    embedding = Column(Vector(settings.VECTOR_DIMENSION), nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    summary = Column(Text, nullable=True)
    key_insights = Column(JSON, nullable=True)
    metadata_json = Column(JSON, nullable=True)  # page count, language, word count ...
    uploaded_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    processed_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    analyses = relationship(
        "AiAnalysisResult", back_populates="document", cascade="all, delete-orphan"
    )


class AiAnalysisResult(Base):
    """Stored output of a targeted document analysis (resume, interview ...)."""

    __tablename__ = "ai_analysis_results"

    id = Column(Integer, primary_key=True, index=True)
    document_id = Column(
        Integer,
        ForeignKey("knowledge_base_documents.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    analysis_type = Column(String(100), nullable=False)
    results = Column(JSON, nullable=False)
    recommendations = Column(JSON, nullable=False, default=list)
    score = Column(Integer, nullable=True)
    strengths = Column(JSON, nullable=False, default=list)
    improvements = Column(JSON, nullable=False, default=list)
    model_used = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    document = relationship("KnowledgeBaseDocument", back_populates="analyses")


# ---------------------------------------------------------------------------
# Conversation memory
# ---------------------------------------------------------------------------

class ConversationSession(Base):
    """A run of assistant chat turns for one user."""

    __tablename__ = "conversation_sessions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), nullable=False, default="admin", index=True)
    session_type = Column(String(100), nullable=False, default="career_assistant")
    session_start = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    last_activity = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    context_summary = Column(Text, nullable=True)
    total_messages = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    # Relationships
    memories = relationship(
        "ConversationMemory", back_populates="session", cascade="all, delete-orphan"
    )


class ConversationMemory(Base):
    """Single remembered item: a chat message or an extracted fact about the user."""

    __tablename__ = "conversation_memory"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(
        Integer,
        ForeignKey("conversation_sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    memory_type = Column(String(50), nullable=False, index=True)
    content = Column(Text, nullable=False)
    importance_score = Column(Integer, nullable=False, default=5)
    context_tags = Column(JSON, nullable=False, default=list)
    related_documents = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    last_accessed = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    session = relationship("ConversationSession", back_populates="memories")


class UserProfile(Base):
    """Long-lived facts about the assistant's user."""

    __tablename__ = "user_profile"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), nullable=False, unique=True, default="admin")
    career_stage = Column(String(100), nullable=True)
    current_goals = Column(JSON, nullable=False, default=list)
    preferences = Column(JSON, nullable=True)
    skills_to_improve = Column(JSON, nullable=False, default=list)
    target_roles = Column(JSON, nullable=False, default=list)
    target_companies = Column(JSON, nullable=False, default=list)
    personality_type = Column(String(100), nullable=True)
    communication_style = Column(String(100), nullable=False, default="professional")
    last_updated = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
