"""Operator-visible record of finalize inconsistencies."""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from core.db import Base, BigIntPK
from core.timeutils import utcnow


class MatchAnomaly(Base):
    """A finalized match referencing an intent that could not be marked matched."""

    __tablename__ = "match_anomalies"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    match_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("matches.id", ondelete="CASCADE"), nullable=False, index=True
    )
    intent_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    reason: Mapped[str] = mapped_column(String(32), nullable=False)  # error code, e.g. invalid_state
    detail: Mapped[str | None] = mapped_column(Text, nullable=True)
    detected_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<MatchAnomaly(id={self.id}, match_id={self.match_id}, intent_id={self.intent_id})>"
