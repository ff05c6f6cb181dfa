"""Database and schema models for the portfolio backend."""
from app.models.database_models import (
    AiAnalysisResult,
    CaseStudy,
    CaseStudyStatus,
    ContactSubmission,
    ContentSection,
    ContentStatus,
    ContentVersion,
    ConversationMemory,
    ConversationSession,
    CoreValue,
    DocumentCategory,
    DocumentStatus,
    ExperienceEntry,
    KnowledgeBaseDocument,
    MemoryType,
    PortfolioImage,
    PortfolioMetric,
    SeoSettings,
    Skill,
    SkillCategory,
    UserProfile,
)
from app.models.schemas import (
    CaseStudyResponse,
    ContactSubmissionResponse,
    ConversationMessageResponse,
    HealthCheckResponse,
    KnowledgeBaseDocumentResponse,
    MemoryResponse,
    SessionResponse,
)

__all__ = [
    # Database models
    "AiAnalysisResult",
    "CaseStudy",
    "CaseStudyStatus",
    "ContactSubmission",
    "ContentSection",
    "ContentStatus",
    "ContentVersion",
    "ConversationMemory",
    "ConversationSession",
    "CoreValue",
    "DocumentCategory",
    "DocumentStatus",
    "ExperienceEntry",
    "KnowledgeBaseDocument",
    "MemoryType",
    "PortfolioImage",
    "PortfolioMetric",
    "SeoSettings",
    "Skill",
    "SkillCategory",
    "UserProfile",
    # Pydantic schemas
    "CaseStudyResponse",
    "ContactSubmissionResponse",
    "ConversationMessageResponse",
    "HealthCheckResponse",
    "KnowledgeBaseDocumentResponse",
    "MemoryResponse",
    "SessionResponse",
]
