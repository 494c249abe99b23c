"""Match endpoints."""

from fastapi import APIRouter, Depends

from apps.api.deps import get_coordinator
from apps.api.schemas import MatchOut
from core.auth import gateway_auth
from models.enums import MatchStatus
from models.match import Match
from services.errors import NotFoundError, ValidationError
from services.match_coordinator import MatchCoordinator

router = APIRouter(prefix="/matches", tags=["matches"])


async def _participant_match(coordinator: MatchCoordinator, match_id: int, caller: str) -> Match:
    match = await coordinator.get(match_id)
    if caller not in (match.owner_a, match.owner_b):
        raise NotFoundError(f"Match {match_id} not found")
    return match


@router.get("", response_model=list[MatchOut])
async def list_matches(
    status: str | None = None,
    coordinator: MatchCoordinator = Depends(get_coordinator),
    caller: str = Depends(gateway_auth),
) -> list[MatchOut]:
    try:
        match_status = MatchStatus(status) if status else None
    except ValueError:
        raise ValidationError(f"Unknown match status: {status}") from None
    matches = await coordinator.list_for_owner(caller, match_status)
    return [MatchOut.model_validate(m) for m in matches]


@router.get("/{match_id}", response_model=MatchOut)
async def get_match(
    match_id: int,
    coordinator: MatchCoordinator = Depends(get_coordinator),
    caller: str = Depends(gateway_auth),
) -> MatchOut:
    return MatchOut.model_validate(await _participant_match(coordinator, match_id, caller))


@router.post("/{match_id}/finalize", response_model=MatchOut)
async def request_finalize(
    match_id: int,
    coordinator: MatchCoordinator = Depends(get_coordinator),
    caller: str = Depends(gateway_auth),
) -> MatchOut:
    """
    Mark the match as finalizing while the participant's burn transaction is submitted.

    Finalization completes when the finalize feed confirms the transaction.
    """
    await _participant_match(coordinator, match_id, caller)
    return MatchOut.model_validate(await coordinator.request_finalize(match_id))
