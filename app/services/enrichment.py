"""Failure-tolerant metadata enrichment for candidate pools."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable

from ..cache import TTLCache, cache_key
from ..models import Candidate, ContentType
from .metadata_addon import MetadataAddonClient, MetadataRecord

logger = logging.getLogger(__name__)

META_NAMESPACE = "meta"


class MetadataEnricher:
    """Fill display fields on candidates from the metadata add-on.

    A failed lookup never removes a candidate: the original, unenriched item
    is kept in its place so rows do not shrink during metadata outages.
    """

    def __init__(self, metadata_client: MetadataAddonClient, cache: TTLCache):
        self._metadata_client = metadata_client
        self._cache = cache

    async def enrich(
        self, candidate: Candidate, *, content_type: ContentType | None = None
    ) -> Candidate:
        """Return an enriched copy of ``candidate`` or the candidate itself on failure."""

        record = await self.lookup(content_type or candidate.type, candidate.id)
        if record is None:
            return candidate
        return self.apply(candidate, record)

    async def lookup(self, content_type: ContentType, imdb_id: str) -> MetadataRecord | None:
        """Return the metadata record for an id, caching successful lookups only."""

        key = cache_key(META_NAMESPACE, content_type, imdb_id)
        record = self._cache.get(key)
        if record is None:
            record = await self._metadata_client.fetch_meta(content_type, imdb_id)
            if record is None:
                return None
            self._cache.set(key, record)
        return record

    def is_enriched(self, candidate: Candidate, content_type: ContentType | None = None) -> bool:
        return cache_key(META_NAMESPACE, content_type or candidate.type, candidate.id) in self._cache

    async def enrich_many(
        self,
        candidates: Iterable[Candidate],
        content_type: ContentType | None = None,
    ) -> list[Candidate]:
        """Enrich candidates concurrently, preserving order and dropping only duplicate ids."""

        originals = list(candidates)
        if not originals:
            return []

        results = await asyncio.gather(
            *(self.enrich(item, content_type=content_type) for item in originals),
            return_exceptions=True,
        )

        enriched: list[Candidate] = []
        seen: set[str] = set()
        for original, result in zip(originals, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.warning("Metadata enrichment failed for %s: %s", original.id, result)
                item = original
            else:
                item = result
            if item.id in seen:
                continue
            seen.add(item.id)
            enriched.append(item)
        return enriched

    @staticmethod
    def apply(candidate: Candidate, record: MetadataRecord) -> Candidate:
        updates: dict[str, Any] = {}
        if record.name:
            updates["title"] = record.name
        if record.description:
            updates["description"] = record.description
        if record.poster:
            updates["poster"] = record.poster
        if record.background:
            updates["background"] = record.background
        if record.genres:
            updates["genres"] = list(record.genres)
        if record.year:
            updates["year"] = record.year
        if record.rating is not None:
            updates["rating"] = record.rating
        if not updates:
            return candidate
        return candidate.model_copy(update=updates)
