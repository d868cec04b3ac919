"""create estimator tables

Revision ID: 5a1c0e7d2b9f
Revises:
Create Date: 2026-10-18 10:02:41.118203

The app also calls Base.metadata.create_all() at import, so every table may
already exist. Creates only what is missing — safe to run on any database.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5a1c0e7d2b9f'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _table_exists(table_name):
    """Check if a table exists."""
    bind = op.get_bind()
    insp = sa.inspect(bind)
    return table_name in insp.get_table_names()


def upgrade() -> None:
    if not _table_exists("users"):
        op.create_table(
            "users",
            sa.Column("id", sa.Integer(), primary_key=True, index=True),
            sa.Column("email", sa.String(), nullable=False, unique=True),
            sa.Column("password_hash", sa.String(), nullable=False),
            sa.Column("full_name", sa.String(), nullable=True),
            sa.Column("phone", sa.String(), nullable=True),
            sa.Column("preferred_locale", sa.String(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
        )

    if not _table_exists("auth_tokens"):
        op.create_table(
            "auth_tokens",
            sa.Column("id", sa.Integer(), primary_key=True, index=True),
            sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
            sa.Column("token_hash", sa.String(), nullable=False),
            sa.Column("token_type", sa.String(), nullable=True),
            sa.Column("expires_at", sa.DateTime(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=True),
        )

    if not _table_exists("material_categories"):
        op.create_table(
            "material_categories",
            sa.Column("id", sa.Integer(), primary_key=True, index=True),
            sa.Column("name_es", sa.String(), nullable=False),
            sa.Column("name_en", sa.String(), nullable=False),
            sa.Column("sort_order", sa.Integer(), nullable=True),
        )

    if not _table_exists("materials"):
        op.create_table(
            "materials",
            sa.Column("id", sa.Integer(), primary_key=True, index=True),
            sa.Column("name_es", sa.String(), nullable=False),
            sa.Column("name_en", sa.String(), nullable=False),
            sa.Column("category_id", sa.Integer(), sa.ForeignKey("material_categories.id"), nullable=True),
            sa.Column("price", sa.Numeric(14, 2), nullable=False),
            sa.Column("unit", sa.String(), nullable=True),
            sa.Column("image_url", sa.String(), nullable=True),
            sa.Column("is_active", sa.Boolean(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
        )

    if not _table_exists("projects"):
        op.create_table(
            "projects",
            sa.Column("id", sa.Integer(), primary_key=True, index=True),
            sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
            sa.Column("name", sa.String(), nullable=False),
            sa.Column("area", sa.Numeric(14, 2), nullable=False),
            sa.Column("project_type", sa.String(), nullable=False),
            sa.Column("base_cost", sa.Numeric(14, 2), nullable=False),
            sa.Column("materials_cost", sa.Numeric(14, 2), nullable=False),
            sa.Column("total_cost", sa.Numeric(14, 2), nullable=False),
            sa.Column("materials", sa.JSON(), nullable=True),
            sa.Column("locale", sa.String(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
        )

    if not _table_exists("analytics_events"):
        op.create_table(
            "analytics_events",
            sa.Column("id", sa.Integer(), primary_key=True, index=True),
            sa.Column("event_type", sa.String(), nullable=False),
            sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
            sa.Column("metadata_json", sa.JSON(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
        )

    if not _table_exists("calculator_sessions"):
        op.create_table(
            "calculator_sessions",
            sa.Column("id", sa.String(), primary_key=True),
            sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
            sa.Column("stage", sa.String(), nullable=True),
            sa.Column("locale", sa.String(), nullable=True),
            sa.Column("state_json", sa.JSON(), nullable=True),
            sa.Column("saving", sa.Boolean(), nullable=True),
            sa.Column("project_id", sa.Integer(), sa.ForeignKey("projects.id"), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
        )


def downgrade() -> None:
    for table in ("calculator_sessions", "analytics_events", "projects", "materials",
                  "material_categories", "auth_tokens", "users"):
        if _table_exists(table):
            op.drop_table(table)
