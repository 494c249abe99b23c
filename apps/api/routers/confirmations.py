"""Payment, finalize and burn confirmation callbacks from the chain watcher."""

import logging

import redis.asyncio as redis
from fastapi import APIRouter, Depends

from apps.api.deps import get_coordinator, get_lifecycle, get_redis_client
from apps.api.schemas import BurnConfirmation, FinalizeConfirmation, IntentOut, MatchOut, PaymentConfirmation
from core.auth import feed_auth
from core.redis import MATCH_FINALIZED_STREAM, publish_event
from services.intent_lifecycle import IntentLifecycle
from services.match_coordinator import MatchCoordinator

router = APIRouter(prefix="/confirmations", tags=["confirmations"], dependencies=[Depends(feed_auth)])
logger = logging.getLogger(__name__)


@router.post("/payment", response_model=IntentOut)
async def confirm_payment(
    body: PaymentConfirmation, lifecycle: IntentLifecycle = Depends(get_lifecycle)
) -> IntentOut:
    """Activate an intent once its activation payment is confirmed."""
    return IntentOut.model_validate(await lifecycle.confirm_payment(body.intent_id, body.tx_hash))


@router.post("/finalize", response_model=MatchOut)
async def confirm_finalize(
    body: FinalizeConfirmation,
    coordinator: MatchCoordinator = Depends(get_coordinator),
    redis_client: redis.Redis = Depends(get_redis_client),
) -> MatchOut:
    """
    Finalize a match after its on-chain transaction is confirmed.

    Publishes match.finalized for the chat service.
    """
    match = MatchOut.model_validate(await coordinator.finalize(body.match_id, body.tx_hash))
    try:
        await publish_event(redis_client, MATCH_FINALIZED_STREAM, match.model_dump(mode="json"))
    except Exception as e:
        logger.error(f"Failed to publish match.finalized for match {match.id}: {e}")
    return match


@router.post("/burn", response_model=IntentOut)
async def confirm_burn(body: BurnConfirmation, lifecycle: IntentLifecycle = Depends(get_lifecycle)) -> IntentOut:
    """Withdraw an active intent after its burn transaction is confirmed."""
    return IntentOut.model_validate(await lifecycle.mark_burned(body.intent_id, body.tx_hash))
