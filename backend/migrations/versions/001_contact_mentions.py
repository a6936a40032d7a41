"""Add contact mention audit table

Revision ID: 001_contact_mentions
Revises:
Create Date: 2026-10-18

Creates:
- contact_mentions: One row per resolved mention per enrichment run,
  reviewed later (PENDING -> CONFIRMED / REJECTED)

The contacts table itself is owned by the CRM and is only read.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision: str = "001_contact_mentions"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "contact_mentions",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("source_contact_id", sa.String(64), nullable=False),
        sa.Column("mentioned_contact_id", sa.String(64), nullable=True),
        sa.Column("mentioned_name", sa.String(200), nullable=False),
        sa.Column("normalized_name", sa.String(100), nullable=False),
        sa.Column("extracted_context", sa.Text, nullable=False),
        sa.Column("inferred_fields", postgresql.JSONB, nullable=True),
        sa.Column("match_type", sa.String(10), nullable=False),
        sa.Column("match_confidence", sa.Float, nullable=False),
        sa.Column(
            "match_reasons",
            postgresql.JSONB,
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column(
            "alternative_matches",
            postgresql.JSONB,
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column("resolution_error", sa.Text, nullable=True),
        sa.Column(
            "status",
            sa.String(20),
            nullable=False,
            server_default=sa.text("'PENDING'"),
        ),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "status IN ('PENDING', 'CONFIRMED', 'REJECTED')",
            name="ck_mention_status",
        ),
        sa.CheckConstraint(
            "match_type IN ('EXACT', 'FUZZY', 'NONE')",
            name="ck_mention_match_type",
        ),
        sa.CheckConstraint(
            "match_confidence >= 0 AND match_confidence <= 1",
            name="ck_mention_confidence",
        ),
        sa.CheckConstraint(
            "mentioned_contact_id IS NULL OR mentioned_contact_id <> source_contact_id",
            name="ck_mention_not_self",
        ),
    )

    op.create_index(
        "idx_mention_owner_source",
        "contact_mentions",
        ["user_id", "source_contact_id"],
    )
    op.create_index("idx_mention_status", "contact_mentions", ["status"])
    op.create_index("idx_mention_normalized", "contact_mentions", ["normalized_name"])
    op.create_index("idx_mention_created", "contact_mentions", ["created_at"])


def downgrade() -> None:
    op.drop_table("contact_mentions")
