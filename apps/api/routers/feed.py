"""Ranked discovery feed."""

from fastapi import APIRouter, Depends

from apps.api.deps import get_coordinator
from apps.api.schemas import FeedRequest, IntentOut
from core.auth import gateway_auth
from models.enums import IntentType
from services.errors import NoActiveIntentError, ValidationError
from services.match_coordinator import MatchCoordinator
from services.ranking import Viewer, rank_intents

router = APIRouter(prefix="/feed", tags=["feed"])

MAX_FEED_LIMIT = 50
# Candidates fetched before ranking
FEED_WINDOW = 200


@router.post("", response_model=list[IntentOut])
async def get_feed(
    body: FeedRequest,
    coordinator: MatchCoordinator = Depends(get_coordinator),
    caller: str = Depends(gateway_auth),
) -> list[IntentOut]:
    """Active public intents the caller has not decided on yet, best match first."""
    if not 1 <= body.limit <= MAX_FEED_LIMIT:
        raise ValidationError(f"limit must be between 1 and {MAX_FEED_LIMIT}")
    try:
        intent_type = IntentType(body.type) if body.type else None
    except ValueError:
        raise ValidationError(f"Unknown intent type: {body.type}") from None

    intent = await coordinator.lifecycle.find_active_for_owner(caller)
    if intent is None:
        raise NoActiveIntentError(f"No current intent for {caller}")

    seen = await coordinator.ledger.swiped_target_ids(intent.id)
    candidates = await coordinator.lifecycle.list_feed(
        caller, exclude_ids=[*seen, intent.id], intent_type=intent_type, limit=FEED_WINDOW
    )
    ranked = rank_intents(candidates, Viewer(interests=body.interests, skills=body.skills))
    return [IntentOut.model_validate(i) for i in ranked[: body.limit]]
