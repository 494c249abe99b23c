"""Request and response models."""

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from models.enums import IntentStatus, IntentType, MatchStatus, SwipeAction, Visibility


class IntentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    owner_id: str
    type: IntentType
    title: str
    description: str
    visibility: Visibility
    tags: list[str]
    metadata: dict[str, Any] = Field(default_factory=dict, validation_alias=AliasChoices("extra", "metadata"))
    duration_hours: int
    status: IntentStatus
    created_at: datetime
    payment_expires_at: datetime
    expires_at: datetime
    published_at: datetime | None = None
    matched_at: datetime | None = None


class SwipeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    intent_id: int
    target_intent_id: int
    action: SwipeAction
    swiped_at: datetime


class MatchOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    owner_a: str
    owner_b: str
    intent_a: int
    intent_b: int
    status: MatchStatus
    matched_at: datetime
    finalize_tx_hash: str | None = None
    finalized_at: datetime | None = None


class SwipeResultOut(BaseModel):
    swipe: SwipeOut
    is_match: bool
    match: MatchOut | None = None


class CreateIntentRequest(BaseModel):
    """Request to create an intent. Field rules are enforced by the lifecycle service."""

    type: str
    title: str
    description: str
    visibility: str = "public"
    tags: list[str] = []
    duration: int = 24  # hours
    metadata: dict[str, Any] = {}


class SwipeRequest(BaseModel):
    target_intent_id: int
    action: str  # "right" or "left"
    view_duration: int | None = None  # milliseconds
    media_viewed: list[str] | None = None


class FeedRequest(BaseModel):
    interests: list[str] = []
    skills: list[str] = []
    type: str | None = None
    limit: int = 20


class TxConfirmation(BaseModel):
    tx_hash: str


class PaymentConfirmation(TxConfirmation):
    intent_id: int


class FinalizeConfirmation(TxConfirmation):
    match_id: int


class BurnConfirmation(TxConfirmation):
    intent_id: int
