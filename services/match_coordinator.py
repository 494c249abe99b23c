"""Turns reciprocal right swipes into exactly one Match per intent pair and drives its finalization."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.metrics import (
    match_anomalies_total,
    matches_created_total,
    matches_expired_total,
    matches_finalized_total,
)
from core.timeutils import Clock, utcnow
from models.anomaly import MatchAnomaly
from models.enums import IntentStatus, MatchStatus, SwipeAction, sources_for_match
from models.intent import Intent
from models.match import Match
from models.swipe import Swipe
from services.errors import (
    AlreadyFinalizedError,
    CoreError,
    InvalidStateError,
    MatchAlreadyExistsError,
    NoActiveIntentError,
    NotFoundError,
    ValidationError,
)
from services.intent_lifecycle import IntentLifecycle
from services.swipe_ledger import SwipeLedger

logger = logging.getLogger(__name__)

UNMATCHABLE_INTENT_STATUSES = (IntentStatus.EXPIRED, IntentStatus.BURNED, IntentStatus.MATCHED)


@dataclass
class SwipeResult:
    swipe: Swipe
    is_match: bool
    match: Match | None = None
    created: bool = False  # this call inserted the match (race winner)


def canonical_pair(intent_a: int, intent_b: int) -> tuple[int, int]:
    """Order-independent key of an intent pair."""
    return (intent_a, intent_b) if intent_a < intent_b else (intent_b, intent_a)


class MatchCoordinator:
    """
    Coordinates swipes, match creation and finalization.

    No in-process locking: the uq_match_intent_pair constraint rejects the losing insert and the
    loser re-reads the winner's row.
    """

    def __init__(
        self,
        db: AsyncSession,
        lifecycle: IntentLifecycle | None = None,
        ledger: SwipeLedger | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self.db = db
        self.clock = clock
        self.lifecycle = lifecycle or IntentLifecycle(db, clock=clock)
        self.ledger = ledger or SwipeLedger(db, clock=clock)

    async def process_swipe(
        self,
        user_id: str,
        intent_id: int,
        target_intent_id: int,
        action: SwipeAction | str,
        metadata: Mapping[str, Any] | None = None,
    ) -> SwipeResult:
        """
        Record a swipe and report whether it completed a match.

        Args:
            user_id: Wallet address of the swiping participant
            intent_id: The participant's own active intent
            target_intent_id: Intent being swiped on
            action: right or left
            metadata: Informational view metadata

        Returns:
            SwipeResult with the recorded swipe, and the match when one exists for the pair

        Raises:
            NoActiveIntentError: intent_id is not an active, unexpired intent owned by user_id
            DuplicateSwipeError: This ordered pair was already decided
        """
        await self._require_active_intent(user_id, intent_id)

        swipe = await self.ledger.record(intent_id, target_intent_id, action, metadata)

        # A left swipe never completes a match, whatever the other side decided
        if swipe.action == SwipeAction.LEFT:
            return SwipeResult(swipe=swipe, is_match=False)

        if not await self.ledger.has_reciprocal_right(intent_id, target_intent_id):
            return SwipeResult(swipe=swipe, is_match=False)

        try:
            match = await self.create_match(intent_id, target_intent_id)
            matches_created_total.labels(outcome="created").inc()
            created = True
        except MatchAlreadyExistsError:
            match = await self.find_for_pair(intent_id, target_intent_id)
            if match is None:
                raise
            # The losing insert rolled back the session, which expired the swipe
            await self.db.refresh(swipe)
            matches_created_total.labels(outcome="recovered").inc()
            created = False
            logger.info(f"Match race lost, returning existing match {match.id} for {intent_id}<->{target_intent_id}")
        except InvalidStateError as e:
            # Counterpart is no longer active: the swipe stands but there is no match
            logger.info(f"Reciprocal swipe without match: {intent_id}<->{target_intent_id}: {e.message}")
            return SwipeResult(swipe=swipe, is_match=False)

        return SwipeResult(swipe=swipe, is_match=True, match=match, created=created)

    async def create_match(self, intent_a_id: int, intent_b_id: int) -> Match:
        """
        Create the pending Match for two active intents.

        Raises:
            ValidationError: Same intent or same owner on both sides
            NotFoundError: Either intent absent
            InvalidStateError: Either intent not currently active
            MatchAlreadyExistsError: A match for this unordered pair already exists
        """
        if intent_a_id == intent_b_id:
            raise ValidationError("An intent cannot match with itself")

        now = self.clock()
        intent_a = await self.lifecycle.get(intent_a_id)
        intent_b = await self.lifecycle.get(intent_b_id)
        for intent in (intent_a, intent_b):
            if intent.status != IntentStatus.ACTIVE or intent.expires_at <= now:
                raise InvalidStateError(f"Intent {intent.id} is not active")
        if intent_a.owner_id == intent_b.owner_id:
            raise ValidationError("Both intents belong to the same participant")

        intent_lo, intent_hi = canonical_pair(intent_a_id, intent_b_id)
        match = Match(
            owner_a=intent_a.owner_id,
            owner_b=intent_b.owner_id,
            intent_a=intent_a_id,
            intent_b=intent_b_id,
            intent_lo=intent_lo,
            intent_hi=intent_hi,
            status=MatchStatus.PENDING,
            matched_at=now,
        )

        try:
            self.db.add(match)
            await self.db.commit()
        except IntegrityError:
            # Handle duplicate match race condition (unique constraint violation)
            await self.db.rollback()
            if await self.find_for_pair(intent_a_id, intent_b_id) is None:
                raise
            logger.warning(f"Match creation lost race: pair=({intent_lo}, {intent_hi})")
            raise MatchAlreadyExistsError(f"Match already exists for intents {intent_lo} and {intent_hi}") from None

        logger.info(f"Match created: id={match.id}, intents=({intent_a_id}, {intent_b_id})")
        return match

    async def request_finalize(self, match_id: int) -> Match:
        """pending -> finalizing. Repeating the request on a finalizing match returns it unchanged."""
        if await self._transition(match_id, MatchStatus.FINALIZING, {}):
            await self.db.commit()
            logger.info(f"Match finalizing: id={match_id}")
            return await self.get(match_id)

        match = await self.get(match_id)
        if match.status == MatchStatus.FINALIZING:
            return match
        if match.status == MatchStatus.FINALIZED:
            raise AlreadyFinalizedError(f"Match {match_id} is already finalized")
        raise InvalidStateError(f"Match {match_id} is {match.status.value}")

    async def finalize(self, match_id: int, on_chain_tx_hash: str) -> Match:
        """
        Record the confirmed on-chain finalize transaction and mark both intents matched.

        The match is committed as finalized before the intents are touched. An intent that
        cannot move to matched is recorded as a MatchAnomaly and does not fail the call.

        Raises:
            NotFoundError: Match absent
            AlreadyFinalizedError: Match already finalized
            InvalidStateError: Match expired before finalization was requested
        """
        if not on_chain_tx_hash:
            raise ValidationError("Transaction hash is required")

        now = self.clock()
        await self._transition(match_id, MatchStatus.FINALIZING, {})
        finalized = await self._transition(
            match_id, MatchStatus.FINALIZED, {"finalize_tx_hash": on_chain_tx_hash, "finalized_at": now}
        )
        if not finalized:
            match = await self.get(match_id)
            if match.status == MatchStatus.FINALIZED:
                raise AlreadyFinalizedError(f"Match {match_id} is already finalized")
            raise InvalidStateError(f"Match {match_id} is {match.status.value}")
        await self.db.commit()
        matches_finalized_total.inc()
        logger.info(f"Match finalized: id={match_id}, tx={on_chain_tx_hash}")

        match = await self.get(match_id)
        for intent_id in match.intent_ids():
            try:
                await self.lifecycle.mark_matched(intent_id)
            except (InvalidStateError, NotFoundError) as e:
                await self._record_anomaly(match, intent_id, e)

        return match

    async def expire_stale_matches(self) -> int:
        """
        Mark pending matches expired when either intent can no longer be matched: expired, past
        expires_at, burned, or already matched through another finalized match. Finalizing
        matches are left alone.
        """
        now = self.clock()
        lapsed = select(Intent.id).where(or_(Intent.status.in_(UNMATCHABLE_INTENT_STATUSES), Intent.expires_at <= now))
        result = await self.db.execute(
            update(Match)
            .where(
                Match.status == MatchStatus.PENDING,
                or_(Match.intent_a.in_(lapsed), Match.intent_b.in_(lapsed)),
            )
            .values(status=MatchStatus.EXPIRED)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        count = result.rowcount or 0
        if count:
            matches_expired_total.inc(count)
            logger.info(f"Expired {count} pending matches")
        return count

    async def get(self, match_id: int) -> Match:
        result = await self.db.execute(
            select(Match).where(Match.id == match_id).execution_options(populate_existing=True)
        )
        match = result.scalar_one_or_none()
        if match is None:
            raise NotFoundError(f"Match {match_id} not found")
        return match

    async def find_for_pair(self, intent_a_id: int, intent_b_id: int) -> Match | None:
        intent_lo, intent_hi = canonical_pair(intent_a_id, intent_b_id)
        result = await self.db.execute(
            select(Match)
            .where(Match.intent_lo == intent_lo, Match.intent_hi == intent_hi)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_for_owner(self, owner_id: str, status: MatchStatus | None = None) -> list[Match]:
        query = select(Match).where(or_(Match.owner_a == owner_id, Match.owner_b == owner_id))
        if status is not None:
            query = query.where(Match.status == status)
        result = await self.db.execute(query.order_by(Match.matched_at.desc(), Match.id.desc()))
        return list(result.scalars().all())

    async def list_anomalies(self, match_id: int) -> list[MatchAnomaly]:
        result = await self.db.execute(
            select(MatchAnomaly).where(MatchAnomaly.match_id == match_id).order_by(MatchAnomaly.id)
        )
        return list(result.scalars().all())

    async def _require_active_intent(self, user_id: str, intent_id: int) -> Intent:
        try:
            intent = await self.lifecycle.get(intent_id)
        except NotFoundError:
            raise NoActiveIntentError(f"Intent {intent_id} not found") from None
        if intent.owner_id != user_id:
            raise NoActiveIntentError(f"Intent {intent_id} is not owned by {user_id}")
        if intent.status != IntentStatus.ACTIVE or intent.expires_at <= self.clock():
            raise NoActiveIntentError(f"Intent {intent_id} is not active")
        return intent

    async def _transition(self, match_id: int, target: MatchStatus, values: dict[str, Any]) -> bool:
        result = await self.db.execute(
            update(Match)
            .where(Match.id == match_id, Match.status.in_(sources_for_match(target)))
            .values(status=target, **values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def _record_anomaly(self, match: Match, intent_id: int, error: CoreError) -> None:
        self.db.add(MatchAnomaly(match_id=match.id, intent_id=intent_id, reason=error.code, detail=error.message))
        await self.db.commit()
        match_anomalies_total.labels(reason=error.code).inc()
        logger.warning(
            f"Finalized match {match.id} references intent {intent_id} that could not be marked matched: "
            f"{error.message}"
        )
