"""Intent lifecycle: creation, payment activation, expiry, match and burn transitions."""

import logging
from collections.abc import Mapping, Sequence
from datetime import timedelta
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.metrics import intent_transitions_total, intents_created_total, intents_expired_total
from core.timeutils import Clock, utcnow
from models.enums import CURRENT_INTENT_STATUSES, IntentStatus, IntentType, Visibility, sources_for_intent
from models.intent import Intent
from services.errors import ExpiredError, InvalidStateError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


class IntentAttributes(BaseModel):
    """Caller-supplied intent fields."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    type: IntentType
    title: str = Field(min_length=3, max_length=100)
    description: str = Field(min_length=10, max_length=500)
    visibility: Visibility = Visibility.PUBLIC
    tags: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("tags")
    @classmethod
    def _tags_are_bounded_set(cls, tags: list[str]) -> list[str]:
        unique: list[str] = []
        for tag in tags:
            tag = tag.strip()
            if tag and tag.lower() not in {t.lower() for t in unique}:
                unique.append(tag)
        if len(unique) > settings.max_tags:
            raise ValueError(f"Maximum {settings.max_tags} tags allowed")
        return unique


def _validate_duration(duration_hours: Any) -> int:
    if isinstance(duration_hours, bool) or not isinstance(duration_hours, int):
        raise ValidationError("Duration must be a whole number of hours")
    if not settings.min_duration_hours <= duration_hours <= settings.max_duration_hours:
        raise ValidationError(
            f"Duration must be between {settings.min_duration_hours} and {settings.max_duration_hours} hours"
        )
    return duration_hours


class IntentLifecycle:
    """Owns the intent state machine. Every mutation is one guarded UPDATE or constrained INSERT."""

    def __init__(self, db: AsyncSession, clock: Clock = utcnow) -> None:
        self.db = db
        self.clock = clock

    async def get(self, intent_id: int) -> Intent:
        result = await self.db.execute(
            select(Intent).where(Intent.id == intent_id).execution_options(populate_existing=True)
        )
        intent = result.scalar_one_or_none()
        if intent is None:
            raise NotFoundError(f"Intent {intent_id} not found")
        return intent

    async def create(
        self, owner_id: str, attributes: Mapping[str, Any] | IntentAttributes, duration_hours: int
    ) -> Intent:
        """
        Create an intent awaiting payment.

        Args:
            owner_id: Wallet address of the creator
            attributes: type, title, description, visibility, tags, metadata
            duration_hours: Lifetime of the intent, 1-168

        Returns:
            Intent in pending_payment

        Raises:
            ValidationError: Bad attributes or duration
            InvalidStateError: Owner already has a current intent
        """
        if not owner_id:
            raise ValidationError("Owner is required")
        duration = _validate_duration(duration_hours)
        try:
            attrs = (
                attributes
                if isinstance(attributes, IntentAttributes)
                else IntentAttributes.model_validate(dict(attributes))
            )
        except PydanticValidationError as e:
            raise ValidationError(str(e)) from e

        now = self.clock()

        # Lapsed intents must not hold the owner's current slot
        lapsed = await self._expire_lapsed(now, owner_id=owner_id)
        if lapsed:
            await self.db.commit()

        if await self.find_active_for_owner(owner_id) is not None:
            raise InvalidStateError(f"Owner {owner_id} already has a current intent")

        intent = Intent(
            owner_id=owner_id,
            type=attrs.type,
            title=attrs.title,
            description=attrs.description,
            visibility=attrs.visibility,
            tags=attrs.tags,
            extra=attrs.metadata,
            duration_hours=duration,
            status=IntentStatus.PENDING_PAYMENT,
            created_at=now,
            payment_expires_at=now + timedelta(minutes=settings.payment_window_minutes),
            expires_at=now + timedelta(hours=duration),
        )

        try:
            self.db.add(intent)
            await self.db.commit()
        except IntegrityError as e:
            # Concurrent creation by the same owner lost on uq_intents_owner_current
            await self.db.rollback()
            logger.warning(f"Concurrent intent creation rejected: owner={owner_id}")
            raise InvalidStateError(f"Owner {owner_id} already has a current intent") from e

        intents_created_total.labels(type=attrs.type.value).inc()
        logger.info(f"Intent created: id={intent.id}, owner={owner_id}, type={attrs.type.value}, hours={duration}")
        return intent

    async def confirm_payment(self, intent_id: int, tx_ref: str) -> Intent:
        """
        Activate an intent once its payment is observed confirmed.

        Raises:
            NotFoundError: Intent absent
            InvalidStateError: Intent not in pending_payment
            ExpiredError: Payment window lapsed; the intent is moved to expired
        """
        if not tx_ref:
            raise ValidationError("Transaction reference is required")

        now = self.clock()
        updated = await self._transition(
            intent_id,
            IntentStatus.ACTIVE,
            {"published_at": now, "payment_tx_hash": tx_ref},
            Intent.payment_expires_at > now,
        )
        if updated:
            await self.db.commit()
            logger.info(f"Intent activated: id={intent_id}, tx={tx_ref}")
            return await self.get(intent_id)

        intent = await self.get(intent_id)
        if intent.status != IntentStatus.PENDING_PAYMENT:
            raise InvalidStateError(f"Intent {intent_id} is {intent.status.value}, not pending_payment")

        if await self._transition(intent_id, IntentStatus.EXPIRED, {}):
            await self.db.commit()
            intents_expired_total.labels(from_state=IntentStatus.PENDING_PAYMENT.value).inc()
        logger.info(f"Payment arrived after window closed: id={intent_id}, tx={tx_ref}")
        raise ExpiredError(f"Payment window for intent {intent_id} has lapsed")

    async def find_active_for_owner(self, owner_id: str) -> Intent | None:
        """Most recent pending_payment/active intent of the owner that has not yet expired."""
        result = await self.db.execute(
            select(Intent)
            .where(
                Intent.owner_id == owner_id,
                Intent.status.in_(CURRENT_INTENT_STATUSES),
                Intent.expires_at > self.clock(),
            )
            .order_by(Intent.created_at.desc(), Intent.id.desc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def expire_overdue(self) -> int:
        """Move lapsed intents to expired. Idempotent; safe to run concurrently."""
        count = await self._expire_lapsed(self.clock())
        await self.db.commit()
        if count:
            logger.info(f"Expired {count} overdue intents")
        return count

    async def mark_matched(self, intent_id: int) -> Intent:
        """active -> matched. An intent past expires_at is no longer active, swept or not."""
        now = self.clock()
        if await self._transition(intent_id, IntentStatus.MATCHED, {"matched_at": now}, Intent.expires_at > now):
            await self.db.commit()
            return await self.get(intent_id)

        raise self._not_active(await self.get(intent_id), now)

    async def mark_burned(self, intent_id: int, tx_ref: str) -> Intent:
        """active -> burned, after a voluntary withdrawal is confirmed."""
        if not tx_ref:
            raise ValidationError("Transaction reference is required")
        now = self.clock()
        if await self._transition(intent_id, IntentStatus.BURNED, {"burn_tx_hash": tx_ref}, Intent.expires_at > now):
            await self.db.commit()
            logger.info(f"Intent burned: id={intent_id}, tx={tx_ref}")
            return await self.get(intent_id)

        raise self._not_active(await self.get(intent_id), now)

    async def list_feed(
        self,
        viewer_owner_id: str,
        exclude_ids: Sequence[int] = (),
        intent_type: IntentType | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Intent]:
        """Active public intents the viewer may swipe on."""
        query = select(Intent).where(
            Intent.status == IntentStatus.ACTIVE,
            Intent.visibility == Visibility.PUBLIC,
            Intent.expires_at > self.clock(),
            Intent.owner_id != viewer_owner_id,
        )
        if exclude_ids:
            query = query.where(Intent.id.not_in(list(exclude_ids)))
        if intent_type is not None:
            query = query.where(Intent.type == intent_type)

        result = await self.db.execute(
            query.order_by(Intent.published_at.desc(), Intent.id.desc()).limit(limit).offset(offset)
        )
        return list(result.scalars().all())

    @staticmethod
    def _not_active(intent: Intent, now) -> InvalidStateError:
        if intent.status == IntentStatus.ACTIVE and intent.expires_at <= now:
            return InvalidStateError(f"Intent {intent.id} expired at {intent.expires_at.isoformat()}")
        return InvalidStateError(f"Intent {intent.id} is {intent.status.value}, not active")

    async def _transition(self, intent_id: int, target: IntentStatus, values: dict[str, Any], *conditions: Any) -> bool:
        """Guarded single-row transition. Returns False when the row is absent or not in a source state."""
        result = await self.db.execute(
            update(Intent)
            .where(Intent.id == intent_id, Intent.status.in_(sources_for_intent(target)), *conditions)
            .values(status=target, **values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 1:
            intent_transitions_total.labels(to_state=target.value).inc()
            return True
        return False

    async def _expire_lapsed(self, now, owner_id: str | None = None) -> int:
        """Expire active intents past expires_at and unpaid intents past their payment window."""
        windows = (
            (IntentStatus.ACTIVE, Intent.expires_at <= now),
            (IntentStatus.PENDING_PAYMENT, Intent.payment_expires_at <= now),
        )
        total = 0
        for state, lapsed in windows:
            query = update(Intent).where(Intent.status == state, lapsed)
            if owner_id is not None:
                query = query.where(Intent.owner_id == owner_id)
            result = await self.db.execute(
                query.values(status=IntentStatus.EXPIRED).execution_options(synchronize_session=False)
            )
            if result.rowcount:
                intents_expired_total.labels(from_state=state.value).inc(result.rowcount)
                intent_transitions_total.labels(to_state=IntentStatus.EXPIRED.value).inc(result.rowcount)
                total += result.rowcount
        return total
