"""One current intent per owner

Revision ID: 20261017_002
Revises: 20261017_001
Create Date: 2026-10-17 12:00:00

Problem:
    "One current intent per owner" was only a derived query. Two concurrent create requests
    from the same owner could both pass the check and insert.

Solution:
    Partial unique index over owner_id for pending_payment/active rows. Historical
    (matched/expired/burned) intents are not constrained.

"""

from collections.abc import Sequence

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "20261017_002"
down_revision: str | None = "20261017_001"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Add partial unique index on current intents."""
    # Lapsed rows would otherwise collide with the new index
    op.execute(
        """
        UPDATE intents SET status = 'expired'
        WHERE (status = 'active' AND expires_at <= (now() AT TIME ZONE 'utc'))
           OR (status = 'pending_payment' AND payment_expires_at <= (now() AT TIME ZONE 'utc'));
    """
    )
    op.execute(
        """
        CREATE UNIQUE INDEX uq_intents_owner_current
        ON intents(owner_id)
        WHERE status IN ('pending_payment', 'active');
    """
    )


def downgrade() -> None:
    op.drop_index("uq_intents_owner_current", table_name="intents")
