"""Interest vectors and lightweight content-based re-ranking."""

from __future__ import annotations

import math
from typing import Iterable, Mapping, Sequence

from ..models import Candidate, InteractionEvent, InterestVector

EVENT_WEIGHTS: dict[str, float] = {
    "complete": 3.0,
    "like": 2.5,
    "start": 1.0,
    "abandon": -0.5,
}
DEFAULT_EVENT_WEIGHT = 0.5

RATING_WEIGHT = 0.7
SIMILARITY_WEIGHT = 2.5
RECENCY_WEIGHT = 0.3
RECENCY_PIVOT_YEAR = 2015
RECENCY_STEP = 0.03


def event_weight(event: InteractionEvent) -> float:
    base = EVENT_WEIGHTS.get(event.kind, DEFAULT_EVENT_WEIGHT)
    return base * (1.0 + event.progress)


def build_vector(events: Iterable[InteractionEvent]) -> InterestVector:
    """Fold a user's events into a tag → weight mapping.

    Each event adds its full weight to every tag it carries; weights are not
    split between tags and do not decay with age.
    """

    vector: InterestVector = {}
    for event in events:
        weight = event_weight(event)
        for tag in event.tags:
            key = tag.strip().lower()
            if not key:
                continue
            vector[key] = vector.get(key, 0.0) + weight
    return vector


def tag_vector(tags: Iterable[str]) -> InterestVector:
    vector: InterestVector = {}
    for tag in tags:
        key = tag.strip().lower()
        if key:
            vector[key] = 1.0
    return vector


def cosine_similarity(left: Mapping[str, float], right: Mapping[str, float]) -> float:
    """Cosine similarity over the union of keys; 0 when either side has no magnitude."""

    keys = set(left) | set(right)
    dot = sum(left.get(key, 0.0) * right.get(key, 0.0) for key in keys)
    left_norm = math.sqrt(sum(value * value for value in left.values()))
    right_norm = math.sqrt(sum(value * value for value in right.values()))
    denominator = left_norm * right_norm
    if denominator == 0:
        return 0.0
    return dot / denominator


def recency_factor(year: int | None) -> float:
    if year is None:
        return 1.0
    return 1.0 + (year - RECENCY_PIVOT_YEAR) * RECENCY_STEP


def score_candidate(candidate: Candidate, vector: Mapping[str, float]) -> float:
    return (
        candidate.rating * RATING_WEIGHT
        + cosine_similarity(vector, tag_vector(candidate.genres)) * SIMILARITY_WEIGHT
        + recency_factor(candidate.year) * RECENCY_WEIGHT
    )


def genre_signature(candidate: Candidate) -> str:
    # Genres keep their enrichment order, so the same set in another order
    # yields a different signature.
    return "|".join(candidate.genres)


def diversify_by_genre(candidates: Sequence[Candidate]) -> list[Candidate]:
    """Front-load one item per genre signature, then the rest in score order."""

    head: list[Candidate] = []
    placed: set[int] = set()
    signatures: set[str] = set()
    for index, candidate in enumerate(candidates):
        signature = genre_signature(candidate)
        if signature in signatures:
            continue
        signatures.add(signature)
        head.append(candidate)
        placed.add(index)
    tail = [
        candidate for index, candidate in enumerate(candidates) if index not in placed
    ]
    return head + tail


def rank(
    candidates: Sequence[Candidate],
    vector: Mapping[str, float],
    *,
    diversify: bool = False,
) -> list[Candidate]:
    """Sort candidates by personal relevance; ties keep their input order."""

    scored = sorted(
        candidates,
        key=lambda candidate: score_candidate(candidate, vector),
        reverse=True,
    )
    if diversify:
        return diversify_by_genre(scored)
    return scored
