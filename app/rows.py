"""Fixed row definitions served as Stremio catalogs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal


ContentType = Literal["movie", "series"]
PoolSource = Literal["movies-trending", "shows-trending", "quality"]


@dataclass(frozen=True)
class RowDefinition:
    """Describes a catalog track built from one of the upstream pools."""

    key: str
    label: str
    content_type: ContentType
    catalog_id: str
    source: PoolSource


ROW_DEFINITIONS: tuple[RowDefinition, ...] = (
    RowDefinition(
        key="movie-picks",
        label="AI Recommended Movies",
        content_type="movie",
        catalog_id="ai-recommendations",
        source="movies-trending",
    ),
    RowDefinition(
        key="series-picks",
        label="AI Recommended Series",
        content_type="series",
        catalog_id="ai-recommendations",
        source="shows-trending",
    ),
    RowDefinition(
        key="trending",
        label="Trending Movies",
        content_type="movie",
        catalog_id="trending-movies",
        source="movies-trending",
    ),
    RowDefinition(
        key="quality",
        label="Quality Picks",
        content_type="movie",
        catalog_id="quality-picks",
        source="quality",
    ),
)

ROW_DEFINITION_MAP: dict[str, RowDefinition] = {
    definition.key: definition for definition in ROW_DEFINITIONS
}
