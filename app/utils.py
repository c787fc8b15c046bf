"""Utility helpers for the SmartRows service."""

from __future__ import annotations

import re
from typing import Any


IMDB_ID_RE = re.compile(r"^tt\d+$")
YEAR_RE = re.compile(r"(19|20|21)\d{2}")


def normalize_imdb_id(value: Any) -> str | None:
    """Return the identifier if it looks like an IMDb id, otherwise ``None``."""

    if not isinstance(value, str):
        return None
    candidate = value.strip()
    if IMDB_ID_RE.match(candidate):
        return candidate
    return None


def parse_year(value: Any) -> int | None:
    """Extract a plausible release year from ints or strings like ``2019–2023``."""

    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if 1900 <= value <= 2100 else None
    if not value:
        return None
    match = YEAR_RE.search(str(value))
    if not match:
        return None
    year = int(match.group(0))
    if 1900 <= year <= 2100:
        return year
    return None


def ensure_url(value: Any) -> str | None:
    if isinstance(value, str) and value.startswith("http"):
        return value
    return None


def parse_skip(extra: str | None) -> int:
    """Parse the ``skip`` value out of a Stremio ``extra`` path segment."""

    if not extra:
        return 0
    for part in extra.split("&"):
        key, _, raw = part.partition("=")
        if key.strip() != "skip":
            continue
        try:
            return max(0, int(raw))
        except ValueError:
            return 0
    return 0
