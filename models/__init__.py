"""Database models."""

from models.anomaly import MatchAnomaly
from models.enums import IntentStatus, IntentType, MatchStatus, SwipeAction, Visibility
from models.intent import Intent
from models.match import Match
from models.swipe import Swipe

__all__ = [
    "Intent",
    "Swipe",
    "Match",
    "MatchAnomaly",
    "IntentStatus",
    "IntentType",
    "MatchStatus",
    "SwipeAction",
    "Visibility",
]
