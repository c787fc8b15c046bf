"""High level orchestration behind the Stremio catalog and feed endpoints."""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from typing import Any, Mapping

from ..config import Settings
from ..models import Candidate, ContentType, InteractionEvent, Row
from ..rows import RowDefinition
from ..utils import normalize_imdb_id
from .enrichment import MetadataEnricher
from .events import EventStore
from .ranking import build_vector, rank
from .row_builder import RowBuilder, select_row

logger = logging.getLogger(__name__)


class DiscoveryService:
    """Serves paginated rows and personalised feeds built by the row pipeline."""

    def __init__(
        self,
        settings: Settings,
        row_builder: RowBuilder,
        enricher: MetadataEnricher,
        event_store: EventStore,
    ):
        self._settings = settings
        self._rows = row_builder
        self._enricher = enricher
        self._events = event_store
        self._definition_map: dict[tuple[str, str], RowDefinition] = {
            (definition.content_type, definition.catalog_id): definition
            for definition in row_builder.definitions
        }
        self._refresh_task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        """Launch the background loop that keeps row pools warm."""

        if self._refresh_task is None:
            self._refresh_task = asyncio.create_task(self._refresh_loop())

    async def stop(self) -> None:
        """Stop the background refresh loop."""

        if self._refresh_task is None:
            return
        self._refresh_task.cancel()
        with suppress(asyncio.CancelledError):
            await self._refresh_task
        self._refresh_task = None

    async def refresh(self) -> None:
        """Drop cached rows and rebuild both pool sizes."""

        logger.info("Refreshing row pools")
        self._rows.invalidate()
        await self._rows.build_rows(want_large_pool=True)
        await self._rows.build_rows(want_large_pool=False)

    async def _refresh_loop(self) -> None:
        while True:
            try:
                await self.refresh()
            except Exception as exc:  # pragma: no cover - background safety net
                logger.exception("Scheduled row refresh failed: %s", exc)
            await asyncio.sleep(self._settings.refresh_interval_seconds)

    def manifest_catalogs(self) -> list[dict[str, Any]]:
        """Return manifest catalog entries for the configured rows."""

        return [
            {
                "type": definition.content_type,
                "id": definition.catalog_id,
                "name": definition.label,
                "extra": [{"name": "skip", "isRequired": False}],
            }
            for definition in self._rows.definitions
        ]

    async def get_catalog_payload(
        self, content_type: str, catalog_id: str, *, skip: int = 0
    ) -> dict[str, Any]:
        """Return one page of a row, falling back to the first non-empty row."""

        definition = self._definition_map.get((content_type, catalog_id))
        if definition is None:
            if any(key[1] == catalog_id for key in self._definition_map):
                raise ValueError(
                    f"Catalog {catalog_id} is not available for type {content_type}"
                )
            raise KeyError(f"Catalog {catalog_id} not found")

        rows = await self._rows.build_rows(want_large_pool=True)
        presentable = [
            row.model_copy(update={"items": self._presentable(row.items)}) for row in rows
        ]
        row = select_row(presentable, definition.key)
        items = row.items if row is not None else []
        return {"metas": [item.to_meta() for item in self._page(items, skip)]}

    async def get_meta(self, content_type: ContentType, imdb_id: str) -> dict[str, Any]:
        normalized = normalize_imdb_id(imdb_id)
        if normalized is None:
            raise ValueError(f"Invalid IMDb id: {imdb_id}")
        record = await self._enricher.lookup(content_type, normalized)
        if record is None:
            raise KeyError(f"No metadata available for {normalized}")
        candidate = self._enricher.apply(Candidate(id=normalized, type=content_type), record)
        return {"meta": candidate.to_meta()}

    def record_event(self, payload: Mapping[str, Any] | InteractionEvent) -> InteractionEvent:
        """Validate and append an interaction event.

        Raises ``pydantic.ValidationError`` for malformed payloads.
        """

        if isinstance(payload, InteractionEvent):
            event = payload
        else:
            event = InteractionEvent.model_validate(dict(payload))
        self._events.append(event)
        return event

    async def get_feed(
        self,
        user_id: str,
        *,
        skip: int = 0,
        diversify: bool = True,
        content_type: ContentType | None = None,
    ) -> dict[str, Any]:
        """Return a personalised, re-ranked page drawn from every row."""

        rows = await self._rows.build_rows(want_large_pool=False)
        candidates = self._merge_rows(rows, content_type=content_type)
        vector = build_vector(self._events.list_by_user(user_id))
        ranked = rank(candidates, vector, diversify=diversify)
        items = self._presentable(ranked)
        return {
            "userId": user_id,
            "metas": [item.to_meta() for item in self._page(items, skip)],
        }

    @staticmethod
    def _merge_rows(
        rows: list[Row], *, content_type: ContentType | None = None
    ) -> list[Candidate]:
        merged: list[Candidate] = []
        seen: set[str] = set()
        for row in rows:
            if content_type is not None and row.type != content_type:
                continue
            for item in row.items:
                if item.id in seen:
                    continue
                seen.add(item.id)
                merged.append(item)
        return merged

    @staticmethod
    def _presentable(items: list[Candidate]) -> list[Candidate]:
        return [item for item in items if item.poster]

    def _page(self, items: list[Candidate], skip: int) -> list[Candidate]:
        start = max(0, skip)
        return items[start : start + self._settings.catalog_page_size]
