"""Tests for interest vectors and the re-ranker."""

from __future__ import annotations

import math

import pytest

from app.models import InteractionEvent
from app.services.ranking import (
    build_vector,
    cosine_similarity,
    diversify_by_genre,
    rank,
    recency_factor,
    score_candidate,
)
from fakes import movie


def _event(kind: str, tags: list[str], progress: float | None = None) -> InteractionEvent:
    payload: dict = {
        "userId": "user-1",
        "subjectId": "tt0000001",
        "type": kind,
        "tags": tags,
        "timestampMs": 1_700_000_000_000,
    }
    if progress is not None:
        payload["progress"] = progress
    return InteractionEvent.model_validate(payload)


def test_completed_event_weight_scales_with_progress() -> None:
    vector = build_vector([_event("complete", ["drama"], 0.5)])

    assert vector == {"drama": 4.5}


def test_unknown_event_kind_uses_default_weight() -> None:
    vector = build_vector([_event("share", ["comedy"])])

    assert vector == {"comedy": 0.5}


def test_each_tag_receives_full_weight_and_tags_are_lowercased() -> None:
    vector = build_vector(
        [
            _event("like", ["Drama", "Crime"], 0.0),
            _event("abandon", ["crime"], 1.0),
            _event("start", ["DRAMA", "  "], 0.2),
        ]
    )

    assert vector["drama"] == pytest.approx(2.5 + 1.2)
    assert vector["crime"] == pytest.approx(2.5 - 1.0)
    assert "" not in vector


def test_empty_history_gives_empty_vector() -> None:
    assert build_vector([]) == {}


def test_cosine_similarity_handles_zero_vectors() -> None:
    assert cosine_similarity({}, {"drama": 1.0}) == 0.0
    assert cosine_similarity({"drama": 0.0}, {"drama": 1.0}) == 0.0
    assert cosine_similarity({"drama": 2.0}, {"drama": 1.0}) == pytest.approx(1.0)
    assert cosine_similarity({"drama": 1.0}, {"comedy": 1.0}) == 0.0


def test_recency_factor() -> None:
    assert recency_factor(None) == 1.0
    assert recency_factor(2015) == 1.0
    assert recency_factor(2025) == pytest.approx(1.3)
    assert recency_factor(2005) == pytest.approx(0.7)


def test_score_combines_rating_similarity_and_recency() -> None:
    candidate = movie("tt0000001", genres=["Drama", "Crime"], rating=8.0, year=2020)
    vector = {"drama": 3.0, "comedy": 4.0}

    expected_similarity = 3.0 / (5.0 * math.sqrt(2))
    expected = 8.0 * 0.7 + expected_similarity * 2.5 + (1 + 5 * 0.03) * 0.3

    assert score_candidate(candidate, vector) == pytest.approx(expected)


def test_rank_orders_by_interest() -> None:
    comedy = movie("tt0000001", genres=["Comedy"])
    drama = movie("tt0000002", genres=["Drama"])

    ranked = rank([comedy, drama], {"drama": 4.5})

    assert [item.id for item in ranked] == ["tt0000002", "tt0000001"]


def test_rank_is_stable_for_equal_scores() -> None:
    items = [movie(f"tt000000{index}", genres=["Drama"], rating=7.0) for index in range(1, 6)]

    ranked = rank(items, {})

    assert [item.id for item in ranked] == [item.id for item in items]


def test_diversify_front_loads_one_item_per_signature() -> None:
    a1 = movie("tt0000001", genres=["Action"])
    a2 = movie("tt0000002", genres=["Action"])
    d1 = movie("tt0000003", genres=["Drama"])
    a3 = movie("tt0000004", genres=["Action"])
    c1 = movie("tt0000005", genres=["Comedy"])

    result = diversify_by_genre([a1, a2, d1, a3, c1])

    assert [item.id for item in result] == [
        "tt0000001",
        "tt0000003",
        "tt0000005",
        "tt0000002",
        "tt0000004",
    ]


def test_diversify_signature_respects_genre_order() -> None:
    first = movie("tt0000001", genres=["Action", "Drama"])
    same_set_other_order = movie("tt0000002", genres=["Drama", "Action"])
    duplicate = movie("tt0000003", genres=["Action", "Drama"])

    result = diversify_by_genre([first, duplicate, same_set_other_order])

    assert [item.id for item in result] == ["tt0000001", "tt0000002", "tt0000003"]


def test_rank_with_diversify_keeps_every_item_once() -> None:
    items = [
        movie("tt0000001", genres=["Drama"], rating=9.0),
        movie("tt0000002", genres=["Drama"], rating=8.0),
        movie("tt0000003", genres=["Comedy"], rating=5.0),
    ]

    ranked = rank(items, {}, diversify=True)

    assert [item.id for item in ranked] == ["tt0000001", "tt0000003", "tt0000002"]
