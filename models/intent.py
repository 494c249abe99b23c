from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from core.db import Base, BigIntPK
from core.timeutils import utcnow
from models.enums import IntentStatus, IntentType, Visibility, status_column


class Intent(Base):
    """A time-boxed offer by one participant, swipeable by others."""

    __tablename__ = "intents"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    owner_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)  # wallet address
    type: Mapped[IntentType] = mapped_column(status_column(IntentType, "intent_type"), nullable=False)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    visibility: Mapped[Visibility] = mapped_column(
        status_column(Visibility, "intent_visibility"), nullable=False, default=Visibility.PUBLIC
    )
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    extra: Mapped[dict[str, Any]] = mapped_column("metadata", JSON, nullable=False, default=dict)
    duration_hours: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[IntentStatus] = mapped_column(
        status_column(IntentStatus, "intent_status"), nullable=False, default=IntentStatus.PENDING_PAYMENT
    )
    payment_tx_hash: Mapped[str | None] = mapped_column(String(128), nullable=True)
    burn_tx_hash: Mapped[str | None] = mapped_column(String(128), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    payment_expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    published_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    matched_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    __table_args__ = (
        # At most one current (pending_payment or active) intent per owner
        Index(
            "uq_intents_owner_current",
            "owner_id",
            unique=True,
            postgresql_where=text("status IN ('pending_payment', 'active')"),
            sqlite_where=text("status IN ('pending_payment', 'active')"),
        ),
        Index("idx_intents_status_expires", "status", "expires_at"),
    )

    def __repr__(self) -> str:
        return f"<Intent(id={self.id}, owner_id={self.owner_id}, status={self.status})>"
