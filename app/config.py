"""Application configuration models."""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, Iterable, Literal

from pydantic import AliasChoices, Field, HttpUrl, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .rows import ROW_DEFINITION_MAP, ROW_DEFINITIONS, RowDefinition


DEFAULT_ROW_KEYS: tuple[str, ...] = tuple(definition.key for definition in ROW_DEFINITIONS)


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="SmartRows", alias="APP_NAME")
    server_host: str = Field(default="0.0.0.0", alias="HOST")
    server_port: int = Field(default=3000, alias="PORT")

    trakt_client_id: str | None = Field(default=None, alias="TRAKT_CLIENT_ID")
    trakt_api_url: HttpUrl = Field(
        default="https://api.trakt.tv", alias="TRAKT_API_URL"
    )
    metadata_addon_url: HttpUrl = Field(
        default="https://v3-cinemeta.strem.io",
        alias="METADATA_ADDON_URL",
        validation_alias=AliasChoices("METADATA_ADDON_URL", "CINEMETA_API_URL"),
    )

    row_keys: Annotated[tuple[str, ...], NoDecode] = Field(
        default=DEFAULT_ROW_KEYS, alias="ROW_KEYS"
    )

    cache_max_entries: int = Field(
        default=1_500, alias="CACHE_MAX_ENTRIES", ge=100, le=100_000
    )
    cache_ttl_seconds: int = Field(default=21_600, alias="CACHE_TTL", ge=60)
    upstream_limit: int = Field(default=100, alias="UPSTREAM_LIMIT", ge=1, le=100)
    quality_min_overlap: int = Field(default=30, alias="QUALITY_MIN_OVERLAP", ge=0)
    pool_size: int = Field(default=50, alias="POOL_SIZE", ge=1)
    large_pool_size: int = Field(default=200, alias="LARGE_POOL_SIZE", ge=1)
    catalog_page_size: int = Field(
        default=20, alias="CATALOG_PAGE_SIZE", ge=1, le=100
    )
    refresh_interval_seconds: int = Field(
        default=21_600, alias="REFRESH_INTERVAL", ge=3_600
    )

    environment: Literal["development", "production"] = Field(
        default="development", alias="ENVIRONMENT"
    )

    @field_validator("row_keys", mode="before")
    @classmethod
    def _parse_row_keys(cls, value: object) -> tuple[str, ...]:
        """Normalise row key selections from environment values."""

        if value is None:
            return DEFAULT_ROW_KEYS
        if isinstance(value, str):
            raw_values = [part.strip() for part in value.split(",")]
        elif isinstance(value, Iterable):
            raw_values = [str(part).strip() for part in value]
        else:
            raise TypeError("ROW_KEYS must be a string or iterable of strings")

        cleaned: list[str] = []
        for entry in raw_values:
            if not entry:
                continue
            slug = entry.replace("_", "-").replace(" ", "-").lower()
            slug = "-".join(filter(None, slug.split("-")))
            if not slug:
                continue
            if slug not in ROW_DEFINITION_MAP:
                raise ValueError("Unknown row keys configured")
            if slug not in cleaned:
                cleaned.append(slug)
        if not cleaned:
            return DEFAULT_ROW_KEYS
        return tuple(cleaned)

    @model_validator(mode="after")
    def _check_pool_sizes(self) -> "Settings":
        if self.large_pool_size < self.pool_size:
            raise ValueError("LARGE_POOL_SIZE must not be smaller than POOL_SIZE")
        return self

    @property
    def row_definitions(self) -> tuple[RowDefinition, ...]:
        """Return ordered row definitions for the selected keys."""

        return tuple(ROW_DEFINITION_MAP[key] for key in self.row_keys)

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]


settings = get_settings()
