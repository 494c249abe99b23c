"""Closed value sets and state machines for intents, swipes and matches."""

import enum

from sqlalchemy import Enum


class IntentType(str, enum.Enum):
    COLLABORATION = "collaboration"
    HIRING = "hiring"
    NETWORKING = "networking"
    DATING = "dating"


class Visibility(str, enum.Enum):
    PUBLIC = "public"
    PRIVATE = "private"


class SwipeAction(str, enum.Enum):
    RIGHT = "right"
    LEFT = "left"


class IntentStatus(str, enum.Enum):
    PENDING_PAYMENT = "pending_payment"
    ACTIVE = "active"
    MATCHED = "matched"
    EXPIRED = "expired"
    BURNED = "burned"


class MatchStatus(str, enum.Enum):
    PENDING = "pending"
    FINALIZING = "finalizing"
    FINALIZED = "finalized"
    EXPIRED = "expired"


INTENT_TRANSITIONS: dict[IntentStatus, frozenset[IntentStatus]] = {
    IntentStatus.PENDING_PAYMENT: frozenset({IntentStatus.ACTIVE, IntentStatus.EXPIRED}),
    IntentStatus.ACTIVE: frozenset({IntentStatus.MATCHED, IntentStatus.EXPIRED, IntentStatus.BURNED}),
    IntentStatus.MATCHED: frozenset(),
    IntentStatus.EXPIRED: frozenset(),
    IntentStatus.BURNED: frozenset(),
}

MATCH_TRANSITIONS: dict[MatchStatus, frozenset[MatchStatus]] = {
    MatchStatus.PENDING: frozenset({MatchStatus.FINALIZING, MatchStatus.EXPIRED}),
    MatchStatus.FINALIZING: frozenset({MatchStatus.FINALIZED}),
    MatchStatus.FINALIZED: frozenset(),
    MatchStatus.EXPIRED: frozenset(),
}

# Intents that can still be the owner's current swiping identity
CURRENT_INTENT_STATUSES = (IntentStatus.PENDING_PAYMENT, IntentStatus.ACTIVE)


def can_transition_intent(current: IntentStatus, target: IntentStatus) -> bool:
    return target in INTENT_TRANSITIONS[current]


def can_transition_match(current: MatchStatus, target: MatchStatus) -> bool:
    return target in MATCH_TRANSITIONS[current]


def sources_for_intent(target: IntentStatus) -> tuple[IntentStatus, ...]:
    """States from which an intent may move to `target`."""
    return tuple(state for state, targets in INTENT_TRANSITIONS.items() if target in targets)


def sources_for_match(target: MatchStatus) -> tuple[MatchStatus, ...]:
    """States from which a match may move to `target`."""
    return tuple(state for state, targets in MATCH_TRANSITIONS.items() if target in targets)


def status_column(enum_cls: type[enum.Enum], name: str):
    """Store an enum by value in a plain VARCHAR column."""
    return Enum(
        enum_cls,
        name=name,
        native_enum=False,
        create_constraint=False,
        length=16,
        values_callable=lambda members: [member.value for member in members],
    )
