"""Builds the named candidate pools served as catalog rows."""

from __future__ import annotations

import asyncio
import logging
from typing import Sequence

from ..cache import TTLCache, cache_key
from ..config import Settings
from ..models import Candidate, ContentType, Row
from ..rows import PoolSource, RowDefinition
from .enrichment import MetadataEnricher
from .trakt import TraktClient

logger = logging.getLogger(__name__)

ROWS_NAMESPACE = "rows"


class RowBuilder:
    """Coordinates Trakt list fetching and metadata enrichment into rows."""

    def __init__(
        self,
        settings: Settings,
        trakt_client: TraktClient,
        enricher: MetadataEnricher,
        cache: TTLCache,
        *,
        definitions: Sequence[RowDefinition] | None = None,
    ):
        self._settings = settings
        self._trakt = trakt_client
        self._enricher = enricher
        self._cache = cache
        self._definitions = tuple(
            definitions if definitions is not None else settings.row_definitions
        )

    @property
    def definitions(self) -> tuple[RowDefinition, ...]:
        return self._definitions

    async def build_rows(self, want_large_pool: bool = False) -> list[Row]:
        """Return one row per configured definition, in configuration order.

        Pools keep upstream ranking order. A large pool serves full-catalog
        paging; the small pool feeds personalised re-ranking.
        """

        capacity = (
            self._settings.large_pool_size if want_large_pool else self._settings.pool_size
        )
        key = cache_key(ROWS_NAMESPACE, "large" if want_large_pool else "small")
        cached = self._cache.get(key)
        if cached is not None:
            return list(cached)

        movies_trending, movies_popular, shows_trending = await asyncio.gather(
            self._fetch_pool("movie", "trending"),
            self._fetch_pool("movie", "popular"),
            self._fetch_pool("series", "trending"),
        )
        pools: dict[PoolSource, list[Candidate]] = {
            "movies-trending": movies_trending,
            "shows-trending": shows_trending,
            "quality": self._quality_pool(movies_trending, movies_popular),
        }

        results = await asyncio.gather(
            *(
                self._enricher.enrich_many(
                    pools[definition.source], definition.content_type
                )
                for definition in self._definitions
            ),
            return_exceptions=True,
        )

        rows: list[Row] = []
        empty_pools = [
            name
            for name, pool in (
                ("movies/trending", movies_trending),
                ("movies/popular", movies_popular),
                ("shows/trending", shows_trending),
            )
            if not pool
        ]
        failed_rows: list[str] = []
        for definition, result in zip(self._definitions, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.warning("Enrichment of row %s failed: %s", definition.key, result)
                failed_rows.append(definition.key)
                items = list(pools[definition.source])
            else:
                items = result
            rows.append(
                Row(
                    key=definition.key,
                    label=definition.label,
                    type=definition.content_type,
                    items=items[:capacity],
                )
            )

        logger.info(
            "Built %s rows (capacity %s): %s",
            len(rows),
            capacity,
            ", ".join(f"{row.key}={len(row.items)}" for row in rows),
        )
        unenriched = sum(
            1
            for row in rows
            for item in row.items
            if not self._enricher.is_enriched(item, row.type)
        )
        if empty_pools or failed_rows or unenriched:
            # Degraded builds are rebuilt on the next request.
            logger.info(
                "Not caching degraded row build (empty pools: %s, failed rows: %s, "
                "unenriched items: %s)",
                empty_pools,
                failed_rows,
                unenriched,
            )
        else:
            self._cache.set(key, tuple(rows))
        return rows

    def invalidate(self) -> None:
        """Forget cached row builds so the next request refetches upstream."""

        self._cache.clear(prefix=f"{ROWS_NAMESPACE}:")

    async def _fetch_pool(self, content_type: ContentType, list_path: str) -> list[Candidate]:
        try:
            return await self._trakt.fetch_list(
                content_type, list_path, limit=self._settings.upstream_limit
            )
        except Exception as exc:
            logger.warning(
                "Trakt %s pool for %s unavailable: %s", list_path, content_type, exc
            )
            return []

    def _quality_pool(
        self, trending: list[Candidate], popular: list[Candidate]
    ) -> list[Candidate]:
        popular_ids = {item.id for item in popular}
        overlap = [item for item in trending if item.id in popular_ids]
        if len(overlap) < self._settings.quality_min_overlap:
            logger.debug(
                "Quality overlap too small (%s < %s); using trending pool",
                len(overlap),
                self._settings.quality_min_overlap,
            )
            return list(trending)
        return overlap


def select_row(rows: Sequence[Row], key: str) -> Row | None:
    """Return the row named ``key``, falling back to the first non-empty row."""

    named = next((row for row in rows if row.key == key), None)
    if named is not None and not named.is_empty():
        return named
    fallback = next((row for row in rows if not row.is_empty()), None)
    if fallback is not None:
        return fallback
    return named
