"""Swipe ledger: exactly one recorded decision per ordered (source intent, target intent) pair."""

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy import and_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.metrics import swipes_recorded_total, swipes_rejected_total
from core.timeutils import Clock, utcnow
from models.enums import SwipeAction
from models.intent import Intent
from models.swipe import Swipe
from services.errors import DuplicateSwipeError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def _parse_action(action: SwipeAction | str) -> SwipeAction:
    try:
        return SwipeAction(action)
    except ValueError:
        raise ValidationError(f"Invalid swipe action: {action!r}") from None


def _parse_metadata(metadata: Mapping[str, Any] | None) -> tuple[int | None, list[str]]:
    metadata = metadata or {}
    view_duration = metadata.get("view_duration")
    if view_duration is not None and (
        isinstance(view_duration, bool) or not isinstance(view_duration, int) or view_duration < 0
    ):
        raise ValidationError("view_duration must be a non-negative integer")
    media_viewed = metadata.get("media_viewed") or []
    if not isinstance(media_viewed, list | tuple) or not all(isinstance(m, str) for m in media_viewed):
        raise ValidationError("media_viewed must be a list of strings")
    return view_duration, list(media_viewed)


class SwipeLedger:
    """
    Records swipes and answers reciprocity queries.

    `record` relies on the uq_swipes_pair constraint for atomicity: concurrent submissions for
    the same ordered pair both attempt the INSERT and the storage layer rejects the loser.
    """

    def __init__(self, db: AsyncSession, clock: Clock = utcnow) -> None:
        self.db = db
        self.clock = clock

    async def record(
        self,
        source_intent_id: int,
        target_intent_id: int,
        action: SwipeAction | str,
        metadata: Mapping[str, Any] | None = None,
    ) -> Swipe:
        """
        Record a decision from source toward target.

        Args:
            source_intent_id: Swiping intent
            target_intent_id: Intent being decided on
            action: right (interested) or left (not interested)
            metadata: Optional view_duration (ms) and media_viewed (list of media refs)

        Returns:
            The recorded Swipe

        Raises:
            ValidationError: Self-swipe, bad action or bad metadata
            NotFoundError: Source or target intent does not exist
            DuplicateSwipeError: A swipe already exists for this ordered pair
        """
        if source_intent_id == target_intent_id:
            swipes_rejected_total.labels(reason="self_swipe").inc()
            raise ValidationError("An intent cannot swipe on itself")
        swipe_action = _parse_action(action)
        view_duration, media_viewed = _parse_metadata(metadata)

        for intent_id, reason in ((source_intent_id, "source_not_found"), (target_intent_id, "target_not_found")):
            if await self.db.get(Intent, intent_id) is None:
                swipes_rejected_total.labels(reason=reason).inc()
                raise NotFoundError(f"Intent {intent_id} not found")

        swipe = Swipe(
            intent_id=source_intent_id,
            target_intent_id=target_intent_id,
            action=swipe_action,
            view_duration=view_duration,
            media_viewed=media_viewed,
            swiped_at=self.clock(),
        )

        try:
            self.db.add(swipe)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            if await self.find_swipe(source_intent_id, target_intent_id) is None:
                raise
            swipes_rejected_total.labels(reason="duplicate").inc()
            logger.warning(f"Duplicate swipe rejected: {source_intent_id}->{target_intent_id}")
            raise DuplicateSwipeError(
                f"Intent {source_intent_id} already swiped on intent {target_intent_id}"
            ) from None

        swipes_recorded_total.labels(action=swipe_action.value).inc()
        logger.info(f"Swipe recorded: {source_intent_id}->{target_intent_id} action={swipe_action.value}")
        return swipe

    async def has_reciprocal_right(self, source_intent_id: int, target_intent_id: int) -> bool:
        """True iff target has swiped right on source (the opposite direction)."""
        result = await self.db.execute(
            select(Swipe.id).where(
                and_(
                    Swipe.intent_id == target_intent_id,
                    Swipe.target_intent_id == source_intent_id,
                    Swipe.action == SwipeAction.RIGHT,
                )
            )
        )
        return result.first() is not None

    async def find_swipe(self, source_intent_id: int, target_intent_id: int) -> Swipe | None:
        result = await self.db.execute(
            select(Swipe).where(Swipe.intent_id == source_intent_id, Swipe.target_intent_id == target_intent_id)
        )
        return result.scalar_one_or_none()

    async def is_mutual_right(self, intent_a: int, intent_b: int) -> bool:
        """Both directions recorded and both are right swipes."""
        a_to_b = await self.find_swipe(intent_a, intent_b)
        b_to_a = await self.find_swipe(intent_b, intent_a)
        return (
            a_to_b is not None
            and b_to_a is not None
            and a_to_b.action == SwipeAction.RIGHT
            and b_to_a.action == SwipeAction.RIGHT
        )

    async def swiped_target_ids(self, intent_id: int) -> list[int]:
        """Targets already decided from this intent."""
        result = await self.db.execute(select(Swipe.target_intent_id).where(Swipe.intent_id == intent_id))
        return [row[0] for row in result.all()]

    async def list_for_intent(self, intent_id: int) -> list[Swipe]:
        result = await self.db.execute(
            select(Swipe).where(Swipe.intent_id == intent_id).order_by(Swipe.swiped_at.desc(), Swipe.id.desc())
        )
        return list(result.scalars().all())
