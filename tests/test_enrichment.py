"""Tests for failure-tolerant metadata enrichment."""

from __future__ import annotations

import pytest

from app.cache import TTLCache
from app.services.enrichment import MetadataEnricher
from fakes import FakeMetadataClient, movie, poster_record, show


def _enricher(client: FakeMetadataClient, cache: TTLCache | None = None) -> MetadataEnricher:
    return MetadataEnricher(client, cache if cache is not None else TTLCache(100, 3_600))  # type: ignore[arg-type]


@pytest.mark.anyio("asyncio")
async def test_enrich_fills_display_fields() -> None:
    client = FakeMetadataClient(
        {
            "tt0000001": poster_record(
                "tt0000001",
                "Alpha",
                description="First",
                genres=["Drama", "Crime"],
                year=2001,
                rating=8.1,
            )
        }
    )
    original = movie("tt0000001", "alpha (raw)")

    enriched = await _enricher(client).enrich(original)

    assert enriched.title == "Alpha"
    assert enriched.description == "First"
    assert enriched.poster == "https://images.example.com/tt0000001.jpg"
    assert enriched.genres == ["Drama", "Crime"]
    assert enriched.year == 2001
    assert enriched.rating == 8.1
    assert original.title == "alpha (raw)"
    assert original.poster is None


@pytest.mark.anyio("asyncio")
async def test_enrich_returns_original_when_lookup_fails() -> None:
    client = FakeMetadataClient(failing={"tt0000002"})
    original = movie("tt0000002", "B")

    result = await _enricher(client).enrich(original)

    assert result is original


@pytest.mark.anyio("asyncio")
async def test_enrich_many_preserves_order_and_keeps_failed_items() -> None:
    client = FakeMetadataClient(
        {
            "tt0000001": poster_record("tt0000001", "One"),
            "tt0000003": poster_record("tt0000003", "Three"),
        },
        failing={"tt0000002"},
        raising={"tt0000004"},
    )
    items = [
        movie("tt0000001", "1"),
        movie("tt0000002", "2"),
        movie("tt0000003", "3"),
        movie("tt0000004", "4"),
    ]

    result = await _enricher(client).enrich_many(items, "movie")

    assert [item.id for item in result] == ["tt0000001", "tt0000002", "tt0000003", "tt0000004"]
    assert [item.title for item in result] == ["One", "2", "Three", "4"]
    assert result[1] is items[1]
    assert result[3] is items[3]


@pytest.mark.anyio("asyncio")
async def test_enrich_many_drops_only_duplicate_ids() -> None:
    client = FakeMetadataClient({"tt0000001": poster_record("tt0000001", "One")})
    items = [
        movie("tt0000001", "first"),
        movie("tt0000009", "nine"),
        movie("tt0000001", "second"),
    ]

    result = await _enricher(client).enrich_many(items)

    assert [item.id for item in result] == ["tt0000001", "tt0000009"]
    assert result[0].title == "One"


@pytest.mark.anyio("asyncio")
async def test_cache_hit_bypasses_metadata_service() -> None:
    client = FakeMetadataClient({"tt0000001": poster_record("tt0000001", "One")})
    cache = TTLCache(100, 3_600)
    enricher = _enricher(client, cache)

    await enricher.enrich(movie("tt0000001"))
    await enricher.enrich(movie("tt0000001"))

    assert client.calls == [("movie", "tt0000001")]
    assert "meta:movie:tt0000001" in cache


@pytest.mark.anyio("asyncio")
async def test_failures_are_not_cached() -> None:
    client = FakeMetadataClient(failing={"tt0000002"})
    cache = TTLCache(100, 3_600)
    enricher = _enricher(client, cache)

    await enricher.enrich(movie("tt0000002"))
    await enricher.enrich(movie("tt0000002"))

    assert len(client.calls) == 2
    assert len(cache) == 0


@pytest.mark.anyio("asyncio")
async def test_type_hint_selects_cache_namespace() -> None:
    client = FakeMetadataClient({"tt0944947": poster_record("tt0944947", "Show")})
    cache = TTLCache(100, 3_600)

    await _enricher(client, cache).enrich_many([show("tt0944947")], "series")

    assert client.calls == [("series", "tt0944947")]
    assert "meta:series:tt0944947" in cache


@pytest.mark.anyio("asyncio")
async def test_enrich_many_with_no_candidates() -> None:
    assert await _enricher(FakeMetadataClient()).enrich_many([]) == []
