"""Initial schema: intents, swipes, matches, match_anomalies

Revision ID: 20261017_001
Revises:
Create Date: 2026-10-17 10:00:00

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "20261017_001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "intents",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("owner_id", sa.String(length=64), nullable=False),
        sa.Column("type", sa.String(length=16), nullable=False),
        sa.Column("title", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("visibility", sa.String(length=16), nullable=False),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("metadata", sa.JSON(), nullable=False),
        sa.Column("duration_hours", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("payment_tx_hash", sa.String(length=128), nullable=True),
        sa.Column("burn_tx_hash", sa.String(length=128), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("payment_expires_at", sa.DateTime(), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("published_at", sa.DateTime(), nullable=True),
        sa.Column("matched_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_intents_owner_id"), "intents", ["owner_id"], unique=False)
    op.create_index(op.f("ix_intents_expires_at"), "intents", ["expires_at"], unique=False)
    op.create_index("idx_intents_status_expires", "intents", ["status", "expires_at"], unique=False)

    op.create_table(
        "swipes",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("intent_id", sa.BigInteger(), nullable=False),
        sa.Column("target_intent_id", sa.BigInteger(), nullable=False),
        sa.Column("action", sa.String(length=16), nullable=False),
        sa.Column("view_duration", sa.Integer(), nullable=True),
        sa.Column("media_viewed", sa.JSON(), nullable=False),
        sa.Column("swiped_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["intent_id"], ["intents.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["target_intent_id"], ["intents.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("intent_id", "target_intent_id", name="uq_swipes_pair"),
        sa.CheckConstraint("intent_id <> target_intent_id", name="chk_swipe_no_self"),
    )
    op.create_index(op.f("ix_swipes_intent_id"), "swipes", ["intent_id"], unique=False)
    op.create_index(op.f("ix_swipes_target_intent_id"), "swipes", ["target_intent_id"], unique=False)

    op.create_table(
        "matches",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("owner_a", sa.String(length=64), nullable=False),
        sa.Column("owner_b", sa.String(length=64), nullable=False),
        sa.Column("intent_a", sa.BigInteger(), nullable=False),
        sa.Column("intent_b", sa.BigInteger(), nullable=False),
        sa.Column("intent_lo", sa.BigInteger(), nullable=False),
        sa.Column("intent_hi", sa.BigInteger(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("matched_at", sa.DateTime(), nullable=False),
        sa.Column("finalize_tx_hash", sa.String(length=128), nullable=True),
        sa.Column("finalized_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["intent_a"], ["intents.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["intent_b"], ["intents.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        # One match per unordered intent pair, whatever its status
        sa.UniqueConstraint("intent_lo", "intent_hi", name="uq_match_intent_pair"),
        sa.CheckConstraint("intent_a <> intent_b", name="chk_match_no_self"),
    )
    op.create_index(op.f("ix_matches_owner_a"), "matches", ["owner_a"], unique=False)
    op.create_index(op.f("ix_matches_owner_b"), "matches", ["owner_b"], unique=False)

    op.create_table(
        "match_anomalies",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("match_id", sa.BigInteger(), nullable=False),
        sa.Column("intent_id", sa.BigInteger(), nullable=False),
        sa.Column("reason", sa.String(length=32), nullable=False),
        sa.Column("detail", sa.Text(), nullable=True),
        sa.Column("detected_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["match_id"], ["matches.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_match_anomalies_match_id"), "match_anomalies", ["match_id"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_match_anomalies_match_id"), table_name="match_anomalies")
    op.drop_table("match_anomalies")
    op.drop_index(op.f("ix_matches_owner_b"), table_name="matches")
    op.drop_index(op.f("ix_matches_owner_a"), table_name="matches")
    op.drop_table("matches")
    op.drop_index(op.f("ix_swipes_target_intent_id"), table_name="swipes")
    op.drop_index(op.f("ix_swipes_intent_id"), table_name="swipes")
    op.drop_table("swipes")
    op.drop_index("idx_intents_status_expires", table_name="intents")
    op.drop_index(op.f("ix_intents_expires_at"), table_name="intents")
    op.drop_index(op.f("ix_intents_owner_id"), table_name="intents")
    op.drop_table("intents")
