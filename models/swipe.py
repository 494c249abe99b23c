from datetime import datetime

from sqlalchemy import JSON, BigInteger, CheckConstraint, DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from core.db import Base, BigIntPK
from core.timeutils import utcnow
from models.enums import SwipeAction, status_column


class Swipe(Base):
    """One directional decision from a source intent about a target intent. Immutable."""

    __tablename__ = "swipes"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    intent_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("intents.id", ondelete="CASCADE"), nullable=False, index=True
    )
    target_intent_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("intents.id", ondelete="CASCADE"), nullable=False, index=True
    )
    action: Mapped[SwipeAction] = mapped_column(status_column(SwipeAction, "swipe_action"), nullable=False)
    view_duration: Mapped[int | None] = mapped_column(Integer, nullable=True)  # milliseconds, informational
    media_viewed: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    swiped_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("intent_id", "target_intent_id", name="uq_swipes_pair"),
        CheckConstraint("intent_id <> target_intent_id", name="chk_swipe_no_self"),
    )

    def __repr__(self) -> str:
        return f"<Swipe(id={self.id}, {self.intent_id}->{self.target_intent_id}, action={self.action})>"
