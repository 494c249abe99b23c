"""Intent lifecycle, swipe ledger, match coordination and feed ranking."""

from services.intent_lifecycle import IntentLifecycle
from services.match_coordinator import MatchCoordinator, SwipeResult
from services.ranking import RankingCandidate, Viewer, candidate_from_intent, rank_candidates, rank_intents, score
from services.swipe_ledger import SwipeLedger

__all__ = [
    "IntentLifecycle",
    "SwipeLedger",
    "MatchCoordinator",
    "SwipeResult",
    "RankingCandidate",
    "Viewer",
    "candidate_from_intent",
    "rank_candidates",
    "rank_intents",
    "score",
]
