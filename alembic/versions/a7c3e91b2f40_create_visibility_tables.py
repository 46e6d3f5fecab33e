"""create brands, prompt_runs and mentions tables

Revision ID: a7c3e91b2f40
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import JSONB

revision: str = "a7c3e91b2f40"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # =========================================================
    # 1. brands
    # =========================================================
    op.create_table(
        "brands",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False, unique=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    # Case-insensitive uniqueness; get-or-create relies on it under concurrent inserts
    op.execute("CREATE UNIQUE INDEX uq_brands_name_lower ON brands (lower(name))")

    # =========================================================
    # 2. prompt_runs
    # =========================================================
    op.create_table(
        "prompt_runs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("category", sa.Text(), nullable=False),
        sa.Column("prompt", sa.Text(), nullable=False),
        sa.Column("raw_response", sa.Text(), nullable=False),
        sa.Column("ai_provider", sa.String(50), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_prompt_runs_category", "prompt_runs", ["category"])
    op.create_index("ix_prompt_runs_created_at", "prompt_runs", ["created_at"])

    # =========================================================
    # 3. mentions
    # =========================================================
    op.create_table(
        "mentions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "prompt_run_id",
            sa.Integer(),
            sa.ForeignKey("prompt_runs.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("brand_id", sa.Integer(), sa.ForeignKey("brands.id", ondelete="CASCADE"), nullable=False),
        sa.Column("mentioned", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("mention_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("context", JSONB(), nullable=True),
        sa.Column("citation_urls", JSONB(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("prompt_run_id", "brand_id", name="uq_mention_run_brand"),
        sa.CheckConstraint("mention_count >= 0", name="ck_mentions_count_non_negative"),
    )
    op.create_index("ix_mentions_prompt_run_id", "mentions", ["prompt_run_id"])
    op.create_index("ix_mentions_brand_id", "mentions", ["brand_id"])


def downgrade() -> None:
    op.drop_index("ix_mentions_brand_id", table_name="mentions")
    op.drop_index("ix_mentions_prompt_run_id", table_name="mentions")
    op.drop_table("mentions")

    op.drop_index("ix_prompt_runs_created_at", table_name="prompt_runs")
    op.drop_index("ix_prompt_runs_category", table_name="prompt_runs")
    op.drop_table("prompt_runs")

    op.execute("DROP INDEX IF EXISTS uq_brands_name_lower")
    op.drop_table("brands")
