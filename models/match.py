from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from core.db import Base, BigIntPK
from core.timeutils import utcnow
from models.enums import MatchStatus, status_column


class Match(Base):
    """Mutual right swipes between two intents."""

    __tablename__ = "matches"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    owner_a: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    owner_b: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    intent_a: Mapped[int] = mapped_column(BigInteger, ForeignKey("intents.id", ondelete="CASCADE"), nullable=False)
    intent_b: Mapped[int] = mapped_column(BigInteger, ForeignKey("intents.id", ondelete="CASCADE"), nullable=False)
    # Ordered pair for deduplication: intent_lo = min(intent_a, intent_b), intent_hi = max(intent_a, intent_b)
    intent_lo: Mapped[int] = mapped_column(BigInteger, nullable=False)
    intent_hi: Mapped[int] = mapped_column(BigInteger, nullable=False)
    status: Mapped[MatchStatus] = mapped_column(
        status_column(MatchStatus, "match_status"), nullable=False, default=MatchStatus.PENDING
    )
    matched_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    finalize_tx_hash: Mapped[str | None] = mapped_column(String(128), nullable=True)
    finalized_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    __table_args__ = (
        CheckConstraint("intent_a <> intent_b", name="chk_match_no_self"),
        UniqueConstraint("intent_lo", "intent_hi", name="uq_match_intent_pair"),
    )

    def intent_ids(self) -> tuple[int, int]:
        return self.intent_a, self.intent_b

    def __repr__(self) -> str:
        return f"<Match(id={self.id}, intents=({self.intent_a}, {self.intent_b}), status={self.status})>"
