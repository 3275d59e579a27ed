"""Entry point for the FastAPI-powered group list and Stremio addon."""

from __future__ import annotations

import json
import logging
import time
from contextlib import AsyncExitStack, asynccontextmanager
from datetime import datetime, timezone
from typing import Any
from urllib.parse import quote, urlencode

import httpx
from fastapi import FastAPI, Query, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from pydantic import ValidationError

from .config import settings
from .database import Database
from .errors import ContentNotFound, GroupNotFound, GroupsError, InvalidRequest
from .models import (
    AddContentRequest,
    CatalogSettings,
    CreateGroupRequest,
    JoinGroupRequest,
    UpdateSettingsRequest,
)
from .services.content import ContentService
from .services.groups import GroupService
from .services.kitsu import KitsuClient
from .services.notifications import GroupNotifier, subscribed_event
from .services.omdb import OMDbClient
from .services.resolver import MetadataResolver
from .services.store import CatalogStore
from .web import render_home_page, render_not_found_page, render_result_page

logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))
logger = logging.getLogger(__name__)

VERSION = "1.0.0"
CATALOG_CONTENT_TYPES = {"shared-movies": "movie", "shared-series": "series"}

app: FastAPI


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    exit_stack = AsyncExitStack()
    timeout = httpx.Timeout(
        settings.http_timeout_seconds, connect=settings.http_connect_timeout_seconds
    )
    omdb_http_client = await exit_stack.enter_async_context(
        httpx.AsyncClient(base_url=str(settings.omdb_api_url), timeout=timeout)
    )
    kitsu_http_client = await exit_stack.enter_async_context(
        httpx.AsyncClient(base_url=str(settings.kitsu_api_url), timeout=timeout)
    )
    database = Database(settings.database_url)
    await database.create_all()

    if not settings.omdb_api_key:
        logger.warning("OMDB_API_KEY is not set; adding content will fail")

    resolver = MetadataResolver(
        OMDbClient(settings, omdb_http_client), KitsuClient(kitsu_http_client)
    )
    install_services(fastapi_app, database, resolver)

    try:
        yield
    finally:  # pragma: no cover - teardown path exercised at runtime
        await database.dispose()
        await exit_stack.aclose()


def install_services(
    fastapi_app: FastAPI, database: Database, resolver: MetadataResolver
) -> None:
    """Wire the services onto ``app.state`` for the route handlers."""

    store = CatalogStore(database.session_factory)
    notifier = GroupNotifier()
    fastapi_app.state.database = database
    fastapi_app.state.notifier = notifier
    fastapi_app.state.group_service = GroupService(
        store, id_length=settings.group_id_length
    )
    fastapi_app.state.content_service = ContentService(resolver, store, notifier)


def create_app() -> FastAPI:
    fastapi_app = FastAPI(
        title=settings.app_name,
        description="Shared movie and series lists for groups, served as a Stremio addon",
        version=VERSION,
        lifespan=lifespan,
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
    )

    register_routes(fastapi_app)
    return fastapi_app


def get_content_service(app: FastAPI) -> ContentService:
    service = getattr(app.state, "content_service", None)
    if not isinstance(service, ContentService):
        raise RuntimeError("Content service not initialised")
    return service


def get_group_service(app: FastAPI) -> GroupService:
    service = getattr(app.state, "group_service", None)
    if not isinstance(service, GroupService):
        raise RuntimeError("Group service not initialised")
    return service


def get_notifier(app: FastAPI) -> GroupNotifier:
    notifier = getattr(app.state, "notifier", None)
    if not isinstance(notifier, GroupNotifier):
        raise RuntimeError("Notifier not initialised")
    return notifier


def register_routes(fastapi_app: FastAPI) -> None:
    started_at = time.monotonic()

    async def _groups_error_handler(_: Request, exc: GroupsError) -> JSONResponse:
        return JSONResponse({"error": exc.message}, status_code=exc.status_code)

    fastapi_app.add_exception_handler(GroupsError, _groups_error_handler)

    def _addon_url(request: Request, group_id: str) -> str:
        return f"{_public_base(request)}/{group_id}/manifest.json"

    @fastapi_app.get("/", response_class=HTMLResponse)
    async def home_page() -> HTMLResponse:
        return HTMLResponse(render_home_page(settings))

    @fastapi_app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @fastapi_app.get("/health")
    async def health() -> dict[str, Any]:
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime": int(time.monotonic() - started_at),
            "environment": settings.environment,
            "version": VERSION,
        }

    # --- Group API ---

    @fastapi_app.post("/api/groups")
    async def create_group(request: Request) -> JSONResponse:
        payload = await _read_json(request)
        try:
            body = CreateGroupRequest.model_validate(payload)
        except ValidationError as exc:
            raise InvalidRequest("Name and password are required") from exc
        group = await get_group_service(fastapi_app).create_group(
            body.name, body.password
        )
        return JSONResponse(
            {
                "groupId": group.id,
                "name": group.name,
                "addonUrl": _addon_url(request, group.id),
            },
            status_code=201,
        )

    @fastapi_app.post("/api/groups/{group_id}/join")
    async def join_group(request: Request, group_id: str) -> dict[str, str]:
        payload = await _read_json(request)
        try:
            body = JoinGroupRequest.model_validate(payload)
        except ValidationError as exc:
            raise InvalidRequest("Password is required") from exc
        group = await get_group_service(fastapi_app).verify_password(
            group_id, body.password
        )
        return {
            "groupId": group.id,
            "name": group.name,
            "addonUrl": _addon_url(request, group.id),
        }

    @fastapi_app.get("/api/groups/{group_id}")
    async def get_group(group_id: str) -> dict[str, Any]:
        group = await get_group_service(fastapi_app).get_group(group_id)
        return group.to_payload()

    @fastapi_app.put("/api/groups/{group_id}/settings")
    async def update_settings(request: Request, group_id: str) -> dict[str, Any]:
        payload = await _read_json(request)
        try:
            body = UpdateSettingsRequest.model_validate(payload)
        except ValidationError as exc:
            raise InvalidRequest("Catalog settings are invalid") from exc
        catalog_settings = await get_group_service(
            fastapi_app
        ).update_catalog_settings(group_id, body.catalog_settings)
        return {
            "message": "Catalog settings updated successfully",
            "catalog_settings": catalog_settings,
        }

    # --- Content API ---

    @fastapi_app.get("/api/groups/{group_id}/content")
    async def list_content(
        group_id: str, content_type: str | None = Query(default=None, alias="type")
    ) -> list[dict[str, Any]]:
        entries = await get_content_service(fastapi_app).list_content(
            group_id, content_type
        )
        return [entry.to_payload() for entry in entries]

    @fastapi_app.post("/api/groups/{group_id}/content")
    async def add_content(request: Request, group_id: str) -> JSONResponse:
        payload = await _read_json(request)
        try:
            body = AddContentRequest.model_validate(payload)
        except ValidationError as exc:
            raise InvalidRequest("contentId is required") from exc
        outcome = await get_content_service(fastapi_app).add_content(
            group_id, body.content_id
        )
        if outcome.is_duplicate:
            return JSONResponse({"error": outcome.message}, status_code=409)
        return JSONResponse(outcome.to_payload(), status_code=201)

    @fastapi_app.delete("/api/groups/{group_id}/content/{entry_id}")
    async def delete_content(group_id: str, entry_id: str) -> dict[str, Any]:
        if not (entry_id.isascii() and entry_id.isdigit()):
            raise ContentNotFound()
        entry = await get_content_service(fastapi_app).remove_content(
            group_id, int(entry_id)
        )
        return {
            "success": True,
            "message": f'"{entry.title}" was removed from the group.',
            "deletedContent": {
                "id": entry.id,
                "title": entry.title,
                "type": entry.type,
            },
        }

    @fastapi_app.get("/api/content/info/{content_id}")
    async def content_info(content_id: str) -> dict[str, Any]:
        preview = await get_content_service(fastapi_app).preview(content_id)
        return preview.to_payload()

    # --- Stremio addon ---

    @fastapi_app.get("/{group_id}/manifest.json")
    async def manifest(group_id: str) -> dict[str, Any]:
        try:
            group = await get_group_service(fastapi_app).get_group(group_id)
        except GroupNotFound as exc:
            raise GroupNotFound("Addon not found.") from exc

        catalog_settings = CatalogSettings.from_stored(group.catalog_settings)
        catalogs: list[dict[str, Any]] = []
        if catalog_settings.movies:
            catalogs.append(
                {
                    "id": "shared-movies",
                    "type": "movie",
                    "name": f"{group.name} - Shared List",
                    "extra": [],
                }
            )
        if catalog_settings.series:
            catalogs.append(
                {
                    "id": "shared-series",
                    "type": "series",
                    "name": f"{group.name} - Shared List",
                    "extra": [],
                }
            )
        return {
            "id": f"stremio.groups.{group.id}",
            "version": VERSION,
            "name": f"{group.name} - Group List",
            "description": f"Shared movie and series catalog for the group: {group.name}",
            "resources": ["catalog", "stream"],
            "types": ["movie", "series"],
            "idPrefixes": ["tt", "kitsu"],
            "catalogs": catalogs,
        }

    @fastapi_app.get("/{group_id}/catalog/{content_type}/{catalog_id}.json")
    async def catalog(group_id: str, content_type: str, catalog_id: str) -> JSONResponse:
        catalog_type = CATALOG_CONTENT_TYPES.get(catalog_id)
        if catalog_type is None:
            return JSONResponse({"metas": []}, status_code=404)
        entries = await get_content_service(fastapi_app).list_content(
            group_id, catalog_type
        )
        return JSONResponse({"metas": [entry.to_meta() for entry in entries]})

    @fastapi_app.get("/{group_id}/stream/{content_type}/{stream_id}.json")
    async def stream(
        request: Request, group_id: str, content_type: str, stream_id: str
    ) -> JSONResponse:
        try:
            probe = await get_content_service(fastapi_app).probe_stream(
                group_id, stream_id
            )
        except GroupNotFound:
            return JSONResponse({"streams": []}, status_code=404)
        if probe is None:
            logger.info("Ignoring unsupported stream id %s", stream_id)
            return JSONResponse({"streams": []})

        base = _public_base(request)
        group = probe.group
        if probe.existing is not None:
            title = probe.existing.title
            query = urlencode({"existing": title})
            descriptor = {
                "name": f"[{group.name}]",
                "title": f'✅ Already in group: "{title}"',
                "externalUrl": f"{base}/success/{group.id}?{query}",
                "behaviorHints": {
                    "notWebReady": True,
                    "bingeGroup": f"{group.id}-already-added",
                },
            }
        else:
            content_id = quote(probe.content_id, safe="")
            descriptor = {
                "name": f"[{group.name}]",
                "title": "✨ Add to Group List",
                "externalUrl": (
                    f"{base}/api/groups/{group.id}/add-from-stremio/{content_id}"
                ),
                "behaviorHints": {
                    "notWebReady": True,
                    "bingeGroup": f"{group.id}-add-to-list",
                },
            }
        return JSONResponse({"streams": [descriptor]})

    @fastapi_app.get("/api/groups/{group_id}/add-from-stremio/{content_id}")
    async def add_from_stremio(
        request: Request, group_id: str, content_id: str
    ) -> RedirectResponse:
        logger.info(
            "Add from Stremio: group=%s content=%s agent=%s",
            group_id,
            content_id,
            request.headers.get("user-agent"),
        )
        try:
            outcome = await get_content_service(fastapi_app).add_content(
                group_id, content_id
            )
        except GroupsError as exc:
            query = urlencode({"error": exc.message})
        else:
            query = urlencode(
                {
                    "added": outcome.title or "content",
                    "duplicate": "true" if outcome.is_duplicate else "false",
                }
            )
        return RedirectResponse(f"/success/{quote(group_id)}?{query}", status_code=302)

    @fastapi_app.get("/success/{group_id}", response_class=HTMLResponse)
    async def result_page(
        group_id: str,
        added: str | None = None,
        duplicate: str | None = None,
        existing: str | None = None,
        error: str | None = None,
    ) -> HTMLResponse:
        try:
            group = await get_group_service(fastapi_app).get_group(group_id)
        except GroupNotFound:
            return HTMLResponse(render_not_found_page(), status_code=404)
        entries = await get_content_service(fastapi_app).list_content(group_id)
        return HTMLResponse(
            render_result_page(
                group,
                entries,
                added=added,
                duplicate=(duplicate or "").lower() == "true",
                existing=existing,
                error=error,
            )
        )

    # --- Real-time updates ---

    @fastapi_app.websocket("/ws/groups/{group_id}")
    async def group_events(websocket: WebSocket, group_id: str) -> None:
        try:
            await get_group_service(fastapi_app).get_group(group_id)
        except GroupNotFound:
            await websocket.close(code=4404, reason="Group not found")
            return

        await websocket.accept()
        notifier = get_notifier(fastapi_app)

        async def forward(event: dict[str, Any]) -> None:
            await websocket.send_json(event)

        subscription_id = notifier.subscribe(group_id, forward)
        try:
            await websocket.send_json(subscribed_event(group_id).to_dict())
            while True:
                # Clients only listen; reading detects the disconnect.
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
        except WebSocketDisconnect:
            pass
        finally:
            logger.debug("WebSocket for group %s closed", group_id)
            notifier.unsubscribe(group_id, subscription_id)


async def _read_json(request: Request) -> dict[str, Any]:
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        payload = {}
    if not isinstance(payload, dict):
        raise InvalidRequest("Invalid payload")
    return payload


def _public_base(request: Request) -> str:
    if settings.public_base:
        return settings.public_base
    _, base = _resolve_external_base(request)
    return base


def _resolve_external_base(request: Request) -> tuple[str, str]:
    headers = request.headers
    scheme = _first_forwarded_value(headers.get("x-forwarded-proto")) or request.url.scheme

    host = _first_forwarded_value(headers.get("x-forwarded-host"))
    if not host:
        host_header = headers.get("host")
        host = _first_forwarded_value(host_header) if host_header else None
    if not host:
        host = request.url.netloc

    port = _first_forwarded_value(headers.get("x-forwarded-port"))
    if port and ":" not in host:
        default_port = "443" if scheme == "https" else "80"
        if port != default_port:
            host = f"{host}:{port}"

    origin = f"{scheme}://{host}".rstrip("/")

    prefix = (
        _first_forwarded_value(headers.get("x-forwarded-prefix"))
        or request.scope.get("root_path")
        or ""
    )
    if prefix and not prefix.startswith("/"):
        prefix = f"/{prefix}"
    prefix = prefix.rstrip("/")

    base = f"{origin}{prefix}" if prefix else origin
    return origin, base


def _first_forwarded_value(header_value: str | None) -> str | None:
    if not header_value:
        return None
    return header_value.split(",", 1)[0].strip()


app = create_app()


if __name__ == "__main__":  # pragma: no cover - manual execution
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.environment == "development",
    )
