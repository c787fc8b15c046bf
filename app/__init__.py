"""SmartRows: Trakt-sourced Stremio rows with metadata enrichment and re-ranking."""

from __future__ import annotations

__version__ = "1.0.0"
