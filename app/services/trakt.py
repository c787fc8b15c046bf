"""Utilities for communicating with the Trakt API."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from ..config import Settings
from ..models import Candidate, ContentType
from ..utils import normalize_imdb_id

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


class TraktClient:
    """Thin wrapper around the public Trakt list endpoints."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self._settings = settings
        self._client = http_client

    def _headers(self, *, client_id: str | None = None) -> dict[str, str]:
        headers = {
            "trakt-api-version": "2",
            "User-Agent": f"{self._settings.app_name} (smartrows)",
        }
        resolved_client_id = client_id or self._settings.trakt_client_id
        if resolved_client_id:
            headers["trakt-api-key"] = resolved_client_id
        return headers

    async def fetch_list(
        self,
        content_type: ContentType,
        list_path: str,
        *,
        limit: int = MAX_PAGE_SIZE,
        page: int = 1,
        client_id: str | None = None,
    ) -> list[Candidate]:
        """Fetch one page of a ranked Trakt list (trending/popular/...).

        Returns an empty list when Trakt is unavailable; callers should treat
        that as "temporarily unavailable" rather than "no results". Rows that
        do not resolve to an IMDb id are dropped.
        """

        kind = "movies" if content_type == "movie" else "shows"
        path = f"/{kind}/{list_path.strip('/')}"
        params: dict[str, Any] = {
            "limit": max(1, min(int(limit), MAX_PAGE_SIZE)),
            "page": max(1, int(page or 1)),
            "extended": "full",
        }

        try:
            response = await self._client.get(
                path,
                headers=self._headers(client_id=client_id),
                params=params,
            )
        except httpx.HTTPError as exc:
            logger.warning(
                "Failed to fetch Trakt %s listing for %s: %s",
                list_path,
                content_type,
                exc,
            )
            return []
        if response.status_code >= 400:
            logger.warning(
                "Failed to fetch Trakt %s listing for %s: %s",
                list_path,
                content_type,
                response.status_code,
            )
            return []
        try:
            data = response.json()
        except ValueError:
            logger.warning("Unexpected non-JSON Trakt response for %s %s", content_type, list_path)
            return []
        if not isinstance(data, list):
            logger.warning("Unexpected Trakt response structure for %s %s", content_type, list_path)
            return []

        key = "movie" if content_type == "movie" else "show"
        candidates: list[Candidate] = []
        dropped = 0
        for entry in data:
            candidate = self._normalize_entry(entry, key=key, content_type=content_type)
            if candidate is None:
                dropped += 1
                continue
            candidates.append(candidate)
        if dropped:
            logger.debug(
                "Dropped %s Trakt %s rows without an IMDb id for %s",
                dropped,
                list_path,
                content_type,
            )
        return candidates

    @staticmethod
    def _normalize_entry(
        entry: Any, *, key: str, content_type: ContentType
    ) -> Candidate | None:
        if not isinstance(entry, dict):
            return None
        if isinstance(entry.get(key), dict):
            media = entry[key]
        elif entry.get("ids"):
            media = entry
        else:
            return None

        ids = media.get("ids") or {}
        if not isinstance(ids, dict):
            return None
        imdb_id = normalize_imdb_id(ids.get("imdb"))
        if imdb_id is None:
            return None

        year = media.get("year") if isinstance(media.get("year"), int) else None
        genres = [g for g in (media.get("genres") or []) if isinstance(g, str)]
        rating = media.get("rating")
        try:
            return Candidate(
                id=imdb_id,
                title=str(media.get("title") or ""),
                type=content_type,
                year=year,
                genres=genres,
                rating=float(rating) if isinstance(rating, (int, float)) and rating > 0 else 0.0,
            )
        except ValidationError:
            return None
