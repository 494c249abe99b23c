"""Swipe endpoint."""

import logging
from typing import Any

import redis.asyncio as redis
from fastapi import APIRouter, Depends

from apps.api.deps import get_coordinator, get_redis_client
from apps.api.schemas import MatchOut, SwipeOut, SwipeRequest, SwipeResultOut
from core.auth import gateway_auth
from core.redis import MATCH_CREATED_STREAM, publish_event
from services.errors import NoActiveIntentError
from services.match_coordinator import MatchCoordinator

router = APIRouter(prefix="/swipes", tags=["swipes"])
logger = logging.getLogger(__name__)


@router.post("", response_model=SwipeResultOut)
async def submit_swipe(
    body: SwipeRequest,
    coordinator: MatchCoordinator = Depends(get_coordinator),
    redis_client: redis.Redis = Depends(get_redis_client),
    caller: str = Depends(gateway_auth),
) -> SwipeResultOut:
    """
    Swipe on a target intent from the caller's current intent.

    Returns the match when this swipe completed a reciprocal pair. A repeated swipe on the same
    target is rejected with 409 duplicate_swipe.
    """
    intent = await coordinator.lifecycle.find_active_for_owner(caller)
    if intent is None:
        raise NoActiveIntentError(f"No current intent for {caller}")

    metadata: dict[str, Any] = {"view_duration": body.view_duration, "media_viewed": body.media_viewed}
    result = await coordinator.process_swipe(caller, intent.id, body.target_intent_id, body.action, metadata)

    match_out = MatchOut.model_validate(result.match) if result.match is not None else None
    if result.created and match_out is not None:
        try:
            await publish_event(redis_client, MATCH_CREATED_STREAM, match_out.model_dump(mode="json"))
        except Exception as e:
            logger.error(f"Failed to publish match.created for match {match_out.id}: {e}")

    return SwipeResultOut(swipe=SwipeOut.model_validate(result.swipe), is_match=result.is_match, match=match_out)
