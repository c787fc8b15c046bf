"""Entry point for the FastAPI-powered Stremio addon."""

from __future__ import annotations

import json
import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any

import httpx
from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from .cache import TTLCache
from .config import settings
from .services.discovery import DiscoveryService
from .services.enrichment import MetadataEnricher
from .services.events import InMemoryEventStore
from .services.metadata_addon import MetadataAddonClient
from .services.row_builder import RowBuilder
from .services.trakt import TraktClient
from .utils import parse_skip

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

CONTENT_TYPES = {"movie", "series"}

app: FastAPI


@asynccontextmanager
async def lifespan(_: FastAPI):
    exit_stack = AsyncExitStack()
    trakt_http_client = await exit_stack.enter_async_context(
        httpx.AsyncClient(
            base_url=str(settings.trakt_api_url),
            timeout=httpx.Timeout(20.0, connect=10.0),
        )
    )
    metadata_http_client = await exit_stack.enter_async_context(
        httpx.AsyncClient(timeout=httpx.Timeout(15.0, connect=5.0))
    )

    cache = TTLCache(settings.cache_max_entries, settings.cache_ttl_seconds)
    trakt = TraktClient(settings, trakt_http_client)
    metadata_client = MetadataAddonClient(
        metadata_http_client, str(settings.metadata_addon_url)
    )
    enricher = MetadataEnricher(metadata_client, cache)
    row_builder = RowBuilder(settings, trakt, enricher, cache)
    discovery_service = DiscoveryService(
        settings, row_builder, enricher, InMemoryEventStore()
    )

    app.state.discovery_service = discovery_service
    await discovery_service.start()

    try:
        yield
    finally:  # pragma: no cover - teardown path exercised at runtime
        await discovery_service.stop()
        await exit_stack.aclose()


def create_app() -> FastAPI:
    fastapi_app = FastAPI(
        title=settings.app_name,
        description="Trending, popular and personalised rows for Stremio",
        version="1.0.0",
        lifespan=lifespan,
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    register_routes(fastapi_app)
    return fastapi_app


def get_discovery_service(app: FastAPI) -> DiscoveryService:
    service = getattr(app.state, "discovery_service", None)
    if not isinstance(service, DiscoveryService):
        raise RuntimeError("Discovery service not initialised")
    return service


def register_routes(fastapi_app: FastAPI) -> None:
    def _check_content_type(content_type: str) -> None:
        if content_type not in CONTENT_TYPES:
            raise HTTPException(status_code=400, detail="Unsupported content type")

    async def _catalog_endpoint(
        content_type: str, catalog_id: str, *, skip: int = 0
    ) -> JSONResponse:
        _check_content_type(content_type)
        service = get_discovery_service(fastapi_app)
        try:
            payload = await service.get_catalog_payload(
                content_type, catalog_id, skip=skip
            )
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return JSONResponse(payload)

    @fastapi_app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @fastapi_app.get("/manifest.json")
    async def manifest() -> dict[str, Any]:
        service = get_discovery_service(fastapi_app)
        return {
            "id": "com.smartrows.python",
            "version": "1.0.0",
            "name": settings.app_name,
            "description": "Trending, quality and personalised picks from Trakt.",
            "catalogs": service.manifest_catalogs(),
            "resources": ["catalog", "meta", "stream"],
            "types": ["movie", "series"],
            "idPrefixes": ["tt"],
        }

    @fastapi_app.get("/catalog/{content_type}/{catalog_id}.json")
    async def catalog(
        content_type: str, catalog_id: str, skip: int = 0
    ) -> JSONResponse:
        return await _catalog_endpoint(content_type, catalog_id, skip=max(0, skip))

    @fastapi_app.get("/catalog/{content_type}/{catalog_id}/{extra}.json")
    async def catalog_with_extra(
        content_type: str, catalog_id: str, extra: str
    ) -> JSONResponse:
        return await _catalog_endpoint(
            content_type, catalog_id, skip=parse_skip(extra)
        )

    @fastapi_app.get("/meta/{content_type}/{meta_id}.json")
    async def meta(content_type: str, meta_id: str) -> JSONResponse:
        _check_content_type(content_type)
        service = get_discovery_service(fastapi_app)
        try:
            payload = await service.get_meta(content_type, meta_id)  # type: ignore[arg-type]
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return JSONResponse(payload)

    @fastapi_app.get("/stream/{content_type}/{meta_id}.json")
    async def stream(content_type: str, meta_id: str) -> dict[str, Any]:
        _check_content_type(content_type)
        return {"streams": []}

    @fastapi_app.post("/api/events")
    async def record_event(request: Request) -> JSONResponse:
        service = get_discovery_service(fastapi_app)
        try:
            payload = await request.json()
        except json.JSONDecodeError as exc:
            raise HTTPException(status_code=400, detail="Invalid JSON payload") from exc
        if not isinstance(payload, dict):
            raise HTTPException(status_code=400, detail="Invalid payload")
        try:
            event = service.record_event(payload)
        except ValidationError as exc:
            raise HTTPException(
                status_code=400, detail=exc.errors(include_url=False, include_context=False)
            ) from exc
        return JSONResponse(
            event.model_dump(mode="json", by_alias=False), status_code=201
        )

    @fastapi_app.get("/api/feed/{user_id}")
    async def feed(
        user_id: str,
        skip: int = 0,
        diversify: bool = True,
        content_type: str | None = Query(default=None, alias="type"),
    ) -> JSONResponse:
        if content_type is not None:
            _check_content_type(content_type)
        service = get_discovery_service(fastapi_app)
        payload = await service.get_feed(
            user_id,
            skip=max(0, skip),
            diversify=diversify,
            content_type=content_type,  # type: ignore[arg-type]
        )
        return JSONResponse(payload)


app = create_app()


if __name__ == "__main__":  # pragma: no cover - manual execution
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.environment == "development",
    )
