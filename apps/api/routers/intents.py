"""Intent endpoints."""

from fastapi import APIRouter, Depends

from apps.api.deps import get_lifecycle
from apps.api.schemas import CreateIntentRequest, IntentOut
from core.auth import gateway_auth
from services.errors import NotFoundError
from services.intent_lifecycle import IntentLifecycle

router = APIRouter(prefix="/intents", tags=["intents"])


@router.post("", status_code=201, response_model=IntentOut)
async def create_intent(
    body: CreateIntentRequest,
    lifecycle: IntentLifecycle = Depends(get_lifecycle),
    caller: str = Depends(gateway_auth),
) -> IntentOut:
    """
    Create an intent awaiting its activation payment.

    The intent becomes swipeable once the payment feed confirms it.
    """
    intent = await lifecycle.create(caller, body.model_dump(exclude={"duration"}), body.duration)
    return IntentOut.model_validate(intent)


@router.get("/current", response_model=IntentOut)
async def get_current_intent(
    lifecycle: IntentLifecycle = Depends(get_lifecycle),
    caller: str = Depends(gateway_auth),
) -> IntentOut:
    """The caller's current swiping identity."""
    intent = await lifecycle.find_active_for_owner(caller)
    if intent is None:
        raise NotFoundError(f"No current intent for {caller}")
    return IntentOut.model_validate(intent)


@router.get("/{intent_id}", response_model=IntentOut)
async def get_intent(
    intent_id: int,
    lifecycle: IntentLifecycle = Depends(get_lifecycle),
    caller: str = Depends(gateway_auth),
) -> IntentOut:
    return IntentOut.model_validate(await lifecycle.get(intent_id))
