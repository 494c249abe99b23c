"""Rule-based feed ranking of candidate intents against a viewer's interests and skills."""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from models.intent import Intent

INTEREST_POINTS = 3
SKILL_POINTS = 2


@dataclass(frozen=True)
class Viewer:
    interests: Sequence[str] = ()
    skills: Sequence[str] = ()


@dataclass(frozen=True)
class RankingCandidate:
    """The fields of a feed item the scorer looks at."""

    created_at: datetime
    category: str = ""
    tags: Sequence[str] = ()
    role: str = ""
    sub_roles: Sequence[str] = ()
    item: Any = field(default=None, compare=False)


def _normalize(value: Any) -> str:
    return value.strip().lower() if isinstance(value, str) else ""


def _overlaps(term: str, value: str) -> bool:
    """Bidirectional substring match. Empty strings never match."""
    return bool(term) and bool(value) and (term in value or value in term)


def _matches_any(term: str, values: Iterable[str]) -> bool:
    return any(_overlaps(term, _normalize(value)) for value in values)


def score(candidate: RankingCandidate, viewer_interests: Sequence[str], viewer_skills: Sequence[str]) -> int:
    """
    Score a candidate for a viewer.

    Each interest earns 3 points for every candidate field it matches (category, tags, role).
    Each skill earns 2 points for every field it matches (tags, role, sub-roles). A list field
    counts once however many of its entries match.
    """
    category = _normalize(candidate.category)
    role = _normalize(candidate.role)
    total = 0

    for interest in map(_normalize, viewer_interests):
        if _overlaps(interest, category):
            total += INTEREST_POINTS
        if _matches_any(interest, candidate.tags):
            total += INTEREST_POINTS
        if _overlaps(interest, role):
            total += INTEREST_POINTS

    for skill in map(_normalize, viewer_skills):
        if _matches_any(skill, candidate.tags):
            total += SKILL_POINTS
        if _overlaps(skill, role):
            total += SKILL_POINTS
        if _matches_any(skill, candidate.sub_roles):
            total += SKILL_POINTS

    return total


def rank_candidates(candidates: Iterable[RankingCandidate], viewer: Viewer) -> list[RankingCandidate]:
    """Highest score first; ties newest first; remaining ties keep input order."""
    scored = [(score(c, viewer.interests, viewer.skills), c) for c in candidates]
    scored.sort(key=lambda pair: pair[1].created_at, reverse=True)
    scored.sort(key=lambda pair: pair[0], reverse=True)
    return [candidate for _, candidate in scored]


def candidate_from_intent(intent: Intent) -> RankingCandidate:
    extra = intent.extra or {}
    collaborators = extra.get("collaborators") or []
    return RankingCandidate(
        created_at=intent.created_at,
        category=extra.get("category") or intent.type.value,
        tags=tuple(intent.tags or ()),
        role=extra.get("role") or "",
        sub_roles=tuple(c.get("role", "") for c in collaborators if isinstance(c, dict)),
        item=intent,
    )


def rank_intents(intents: Iterable[Intent], viewer: Viewer) -> list[Intent]:
    return [candidate.item for candidate in rank_candidates(map(candidate_from_intent, intents), viewer)]
