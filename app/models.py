"""Pydantic models shared by the row pipeline and the Stremio adapter."""

from __future__ import annotations

import time
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

ContentType = Literal["movie", "series"]
InterestVector = dict[str, float]

IMDB_ID_PATTERN = r"^tt\d+$"


class Candidate(BaseModel):
    """A media item identified by its IMDb id, optionally enriched."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(pattern=IMDB_ID_PATTERN)
    title: str = Field(
        default="",
        validation_alias=AliasChoices("title", "name"),
        serialization_alias="name",
    )
    type: ContentType = "movie"
    year: int | None = None
    poster: str | None = None
    background: str | None = None
    description: str | None = None
    genres: list[str] = Field(default_factory=list)
    rating: float = Field(default=0.0, ge=0)

    def display_title(self) -> str:
        title = (self.title or "").strip()
        return title or self.id

    def to_meta(self) -> dict[str, object]:
        """Return a Stremio-compatible meta object."""

        meta: dict[str, object] = {
            "id": self.id,
            "type": self.type,
            "name": self.display_title(),
        }
        if self.poster:
            meta["poster"] = self.poster
        if self.background:
            meta["background"] = self.background
        if self.description:
            meta["description"] = self.description
        if self.year:
            meta["year"] = self.year
            meta["releaseInfo"] = str(self.year)
        if self.genres:
            meta["genres"] = list(self.genres)
        if self.rating:
            meta["imdbRating"] = f"{self.rating:.1f}"
        return meta


class Row(BaseModel):
    """A named, ordered list of candidates representing one catalog track."""

    model_config = ConfigDict(frozen=True)

    key: str
    label: str
    type: ContentType
    items: list[Candidate] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.items


class InteractionEvent(BaseModel):
    """A single timestamped user interaction with a title."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(min_length=1, validation_alias=AliasChoices("userId", "user_id"))
    subject_id: str = Field(
        pattern=IMDB_ID_PATTERN,
        validation_alias=AliasChoices("subjectId", "subject_id", "imdbId"),
    )
    kind: str = Field(
        min_length=1, validation_alias=AliasChoices("type", "kind", "event")
    )
    media_type: ContentType = Field(
        default="movie",
        validation_alias=AliasChoices("mediaKind", "mediaType", "media_type"),
    )
    progress: float = Field(
        default=0.0,
        ge=0.0,
        le=1.0,
        validation_alias=AliasChoices("progress", "progressFraction"),
    )
    timestamp_ms: int = Field(
        default_factory=lambda: int(time.time() * 1000),
        ge=0,
        validation_alias=AliasChoices("timestampMs", "timestamp", "ts"),
    )
    tags: list[str] = Field(default_factory=list)

    @field_validator("kind", mode="before")
    @classmethod
    def _normalize_kind(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("progress", mode="before")
    @classmethod
    def _default_progress(cls, value: object) -> object:
        if value is None or value == "":
            return 0.0
        return value
