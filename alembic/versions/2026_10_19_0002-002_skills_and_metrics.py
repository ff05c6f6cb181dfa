"""skills and headline metrics

Revision ID: 002
Revises: 001
Create Date: 2026-10-19

Adds skill_categories, skills and portfolio_metrics.
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "002"
down_revision = "001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    # ── skill_categories ──────────────────────────────────────────────────
    op.create_table(
        "skill_categories",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("name", sa.String(255), nullable=False, unique=True),
        sa.Column("order_index", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # ── skills ────────────────────────────────────────────────────────────
    op.create_table(
        "skills",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column(
            "category_id",
            sa.Integer,
            sa.ForeignKey("skill_categories.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("proficiency_level", sa.Integer, nullable=False, server_default="5"),
        sa.Column("order_index", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # ── portfolio_metrics ─────────────────────────────────────────────────
    op.create_table(
        "portfolio_metrics",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("metric_name", sa.String(100), nullable=False, unique=True),
        sa.Column("metric_value", sa.String(100), nullable=False),
        sa.Column("metric_label", sa.String(255), nullable=False),
        sa.Column("display_order", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("portfolio_metrics")
    op.drop_table("skills")
    op.drop_table("skill_categories")
