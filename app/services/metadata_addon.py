"""Helper client for fetching metadata from Cinemeta-compatible add-ons."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote

import httpx

from ..utils import ensure_url, parse_year

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class MetadataRecord:
    """Represents the useful fields returned from a meta lookup."""

    id: str
    name: str | None = None
    description: str | None = None
    poster: str | None = None
    background: str | None = None
    genres: list[str] = field(default_factory=list)
    year: int | None = None
    rating: float | None = None


class MetadataAddonClient:
    """Wrapper around the Cinemeta-compatible ``/meta`` endpoint."""

    _META_PATH = "/meta/{type}/{id}.json"

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        default_base_url: str | None = None,
        *,
        max_concurrency: int = 8,
    ) -> None:
        self._client = http_client
        self._default_base_url = self._normalize_base_url(default_base_url)
        self._semaphore = asyncio.Semaphore(max_concurrency)

    @property
    def default_base_url(self) -> str | None:
        """Return the default metadata add-on URL, if configured."""

        return self._default_base_url

    async def fetch_meta(
        self,
        content_type: str,
        imdb_id: str,
        *,
        base_url: str | None = None,
    ) -> MetadataRecord | None:
        """Return the metadata record for ``imdb_id`` or ``None`` on any failure."""

        effective_base = self._normalize_base_url(base_url) or self._default_base_url
        if not effective_base or not imdb_id:
            return None

        path = self._META_PATH.format(
            type=quote(content_type, safe=""),
            id=quote(imdb_id, safe=""),
        )
        url = f"{effective_base}{path}"

        try:
            async with self._semaphore:
                response = await self._client.get(url)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as exc:
            logger.warning(
                "Metadata add-on lookup failed for %s via %s: %s",
                imdb_id,
                effective_base,
                exc,
            )
            return None
        except ValueError:
            logger.warning("Metadata add-on returned non-JSON payload for %s", imdb_id)
            return None

        meta = payload.get("meta") if isinstance(payload, dict) else None
        if not isinstance(meta, dict) or not meta:
            logger.warning("Metadata add-on has no meta for %s", imdb_id)
            return None
        return self._parse_meta(imdb_id, meta)

    @classmethod
    def _parse_meta(cls, imdb_id: str, meta: dict[str, Any]) -> MetadataRecord:
        name = meta.get("name")
        description = meta.get("description")
        genres = meta.get("genres") or meta.get("genre") or []
        return MetadataRecord(
            id=imdb_id,
            name=name.strip() if isinstance(name, str) and name.strip() else None,
            description=description if isinstance(description, str) and description else None,
            poster=ensure_url(meta.get("poster") or meta.get("thumbnail")),
            background=ensure_url(meta.get("background") or meta.get("fanart")),
            genres=[g for g in genres if isinstance(g, str) and g.strip()]
            if isinstance(genres, list)
            else [],
            year=parse_year(meta.get("releaseInfo") or meta.get("year")),
            rating=cls._parse_rating(meta.get("imdbRating")),
        )

    @staticmethod
    def _parse_rating(value: Any) -> float | None:
        if value is None or isinstance(value, bool):
            return None
        try:
            rating = float(value)
        except (TypeError, ValueError):
            return None
        if rating < 0:
            return None
        return rating

    @staticmethod
    def _normalize_base_url(value: str | None) -> str | None:
        if not value:
            return None
        normalized = value.strip()
        if not normalized:
            return None
        normalized = normalized.split("?", 1)[0].rstrip("/")
        lowered = normalized.lower()
        for suffix in ("/manifest.json", "/manifest"):
            if lowered.endswith(suffix):
                normalized = normalized[: -len(suffix)].rstrip("/")
                break
        return normalized or None
