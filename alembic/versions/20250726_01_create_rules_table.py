"""create rules table

Revision ID: 20250726_01
Revises: 
Create Date: 2025-07-26
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "20250726_01"
down_revision = None
branch_labels = None
depends_on = None

_JSON = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    op.create_table(
        "rules",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=150), nullable=False),
        sa.Column("salience", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("stackable", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("condition_json", _JSON, nullable=False),
        sa.Column("action_json", _JSON, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("name", name="uq_rules_name"),
    )
    op.create_index("ix_rules_salience", "rules", ["salience"])
    op.create_index("ix_rules_stackable", "rules", ["stackable"])
    op.create_index("ix_rules_is_active", "rules", ["is_active"])


def downgrade() -> None:
    op.drop_index("ix_rules_is_active", table_name="rules")
    op.drop_index("ix_rules_stackable", table_name="rules")
    op.drop_index("ix_rules_salience", table_name="rules")
    op.drop_table("rules")
