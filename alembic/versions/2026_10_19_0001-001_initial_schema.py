"""initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-19

The original 14 tables of app/models/database_models.py:
contact_submissions, case_studies, experience_entries, core_values,
portfolio_images, seo_settings, content_sections, content_versions,
document_categories, knowledge_base_documents, ai_analysis_results,
conversation_sessions, conversation_memory, user_profile.
"""
from alembic import op
import sqlalchemy as sa
from pgvector.sqlalchemy import Vector

# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None

VECTOR_DIM = 768


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    # pgvector extension
    op.execute("CREATE EXTENSION IF NOT EXISTS vector")

    # ── contact_submissions ───────────────────────────────────────────────
    op.create_table(
        "contact_submissions",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("company", sa.String(255), nullable=True),
        sa.Column("project_type", sa.String(255), nullable=False, server_default="General Inquiry"),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("submitted_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # ── case_studies ──────────────────────────────────────────────────────
    op.create_table(
        "case_studies",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("subtitle", sa.String(255), nullable=True),
        sa.Column("challenge", sa.Text, nullable=False),
        sa.Column("approach", sa.Text, nullable=False),
        sa.Column("solution", sa.Text, nullable=False),
        sa.Column("impact", sa.Text, nullable=False),
        sa.Column("metrics", sa.JSON, nullable=False),
        sa.Column("technologies", sa.JSON, nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="draft", index=True),
        sa.Column("featured", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("display_order", sa.Integer, nullable=False, server_default="0"),
        sa.Column("image_url", sa.String(1024), nullable=True),
        sa.Column("image_file", sa.String(512), nullable=True),
        sa.Column("external_url", sa.String(1024), nullable=True),
        sa.Column("client_name", sa.String(255), nullable=True),
        sa.Column("project_duration", sa.String(100), nullable=True),
        sa.Column("team_size", sa.String(100), nullable=True),
        sa.Column("technical_details", sa.JSON, nullable=True),
        sa.Column("slug", sa.String(255), nullable=False, unique=True, index=True),
        *_timestamps(),
    )

    # ── experience_entries ────────────────────────────────────────────────
    op.create_table(
        "experience_entries",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("year", sa.String(50), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("company", sa.String(255), nullable=False),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("highlight", sa.Text, nullable=True),
        sa.Column("order_index", sa.Integer, nullable=False, server_default="0"),
        sa.Column("color", sa.String(50), nullable=False, server_default="blue"),
        sa.Column("level", sa.Integer, nullable=False, server_default="1"),
        sa.Column("experience_points", sa.Integer, nullable=False, server_default="0"),
        sa.Column("impact_metrics", sa.JSON, nullable=True),
        sa.Column("achievements", sa.JSON, nullable=False),
        *_timestamps(),
    )

    # ── core_values ───────────────────────────────────────────────────────
    op.create_table(
        "core_values",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("icon", sa.String(100), nullable=False, server_default="target"),
        sa.Column("order_index", sa.Integer, nullable=False, server_default="0"),
        *_timestamps(),
    )

    # ── portfolio_images ──────────────────────────────────────────────────
    op.create_table(
        "portfolio_images",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("section", sa.String(100), nullable=False, index=True),
        sa.Column("image_url", sa.String(1024), nullable=False),
        sa.Column("alt_text", sa.String(512), nullable=False),
        sa.Column("caption", sa.Text, nullable=True),
        sa.Column("order_index", sa.Integer, nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("case_study_id", sa.Integer, sa.ForeignKey("case_studies.id", ondelete="SET NULL"), nullable=True, index=True),
        *_timestamps(),
    )

    # ── seo_settings ──────────────────────────────────────────────────────
    op.create_table(
        "seo_settings",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("page", sa.String(100), nullable=False, unique=True, index=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("keywords", sa.JSON, nullable=False),
        sa.Column("og_title", sa.String(255), nullable=True),
        sa.Column("og_description", sa.Text, nullable=True),
        sa.Column("og_image", sa.String(1024), nullable=True),
        sa.Column("twitter_title", sa.String(255), nullable=True),
        sa.Column("twitter_description", sa.Text, nullable=True),
        sa.Column("twitter_image", sa.String(1024), nullable=True),
        sa.Column("canonical_url", sa.String(1024), nullable=True),
        sa.Column("robots_directive", sa.String(100), nullable=False, server_default="index,follow"),
        sa.Column("structured_data", sa.JSON, nullable=True),
        *_timestamps(),
    )

    # ── content_sections / content_versions ───────────────────────────────
    op.create_table(
        "content_sections",
        sa.Column("id", sa.String(100), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("content", sa.JSON, nullable=False),
        sa.Column("published_content", sa.JSON, nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="draft"),
        sa.Column("version", sa.Integer, nullable=False, server_default="0"),
        sa.Column("last_modified", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_table(
        "content_versions",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("section_id", sa.String(100), sa.ForeignKey("content_sections.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("content", sa.JSON, nullable=False),
        sa.Column("version", sa.Integer, nullable=False),
        sa.Column("change_summary", sa.Text, nullable=True),
        sa.Column("created_by", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
    )

    # ── knowledge base ────────────────────────────────────────────────────
    op.create_table(
        "document_categories",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("name", sa.String(100), nullable=False, unique=True, index=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("processing_rules", sa.JSON, nullable=True),
        sa.Column("ai_prompts", sa.JSON, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_table(
        "knowledge_base_documents",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("filename", sa.String(255), nullable=False),
        sa.Column("original_name", sa.String(255), nullable=False),
        sa.Column("content_type", sa.String(20), nullable=False),
        sa.Column("content_text", sa.Text, nullable=True),
        sa.Column("category", sa.String(100), nullable=False, index=True),
        sa.Column("size", sa.Integer, nullable=False, server_default="0"),
        sa.Column("status", sa.String(20), nullable=False, server_default="processing", index=True),
        sa.Column("embedding", Vector(VECTOR_DIM), nullable=True),
        sa.Column("tags", sa.JSON, nullable=False),
        sa.Column("summary", sa.Text, nullable=True),
        sa.Column("key_insights", sa.JSON, nullable=True),
        sa.Column("metadata_json", sa.JSON, nullable=True),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_table(
        "ai_analysis_results",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("document_id", sa.Integer, sa.ForeignKey("knowledge_base_documents.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("analysis_type", sa.String(100), nullable=False),
        sa.Column("results", sa.JSON, nullable=False),
        sa.Column("recommendations", sa.JSON, nullable=False),
        sa.Column("score", sa.Integer, nullable=True),
        sa.Column("strengths", sa.JSON, nullable=False),
        sa.Column("improvements", sa.JSON, nullable=False),
        sa.Column("model_used", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # ── conversation memory ───────────────────────────────────────────────
    op.create_table(
        "conversation_sessions",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("user_id", sa.String(255), nullable=False, server_default="admin", index=True),
        sa.Column("session_type", sa.String(100), nullable=False, server_default="career_assistant"),
        sa.Column("session_start", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("last_activity", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("context_summary", sa.Text, nullable=True),
        sa.Column("total_messages", sa.Integer, nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true(), index=True),
    )
    op.create_table(
        "conversation_memory",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("session_id", sa.Integer, sa.ForeignKey("conversation_sessions.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("memory_type", sa.String(50), nullable=False, index=True),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("importance_score", sa.Integer, nullable=False, server_default="5"),
        sa.Column("context_tags", sa.JSON, nullable=False),
        sa.Column("related_documents", sa.JSON, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("last_accessed", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_table(
        "user_profile",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("user_id", sa.String(255), nullable=False, unique=True, server_default="admin"),
        sa.Column("career_stage", sa.String(100), nullable=True),
        sa.Column("current_goals", sa.JSON, nullable=False),
        sa.Column("preferences", sa.JSON, nullable=True),
        sa.Column("skills_to_improve", sa.JSON, nullable=False),
        sa.Column("target_roles", sa.JSON, nullable=False),
        sa.Column("target_companies", sa.JSON, nullable=False),
        sa.Column("personality_type", sa.String(100), nullable=True),
        sa.Column("communication_style", sa.String(100), nullable=False, server_default="professional"),
        sa.Column("last_updated", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("user_profile")
    op.drop_table("conversation_memory")
    op.drop_table("conversation_sessions")
    op.drop_table("ai_analysis_results")
    op.drop_table("knowledge_base_documents")
    op.drop_table("document_categories")
    op.drop_table("content_versions")
    op.drop_table("content_sections")
    op.drop_table("seo_settings")
    op.drop_table("portfolio_images")
    op.drop_table("core_values")
    op.drop_table("experience_entries")
    op.drop_table("case_studies")
    op.drop_table("contact_submissions")
