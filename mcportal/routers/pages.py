"""HTML pages: server listing, server details and the not-found fallback."""

import asyncio
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from ..dependencies import (
    get_page_renderer,
    get_registry,
    get_status_cache,
    get_status_engine,
)
from ..files import build_mod_tree
from ..rendering import PageRenderer
from ..servers import ServerConfig, ServerRegistry, ServerState, mod_root_path
from ..status import StatusCache, StatusQueryEngine, StatusResult, get_server_status

router = APIRouter(tags=["pages"])


def visible_servers(registry: ServerRegistry) -> list[ServerConfig]:
    """Servers shown to visitors. Offline servers are hidden."""
    return [s for s in registry.all() if s.status != ServerState.OFFLINE]


async def listing_statuses(
    servers: list[ServerConfig], cache: StatusCache, engine: StatusQueryEngine
) -> dict[str, Optional[StatusResult]]:
    results = await asyncio.gather(
        *(
            get_server_status(cache, engine, server, lightweight_only=True)
            for server in servers
        )
    )
    return {server.name: result for server, result in zip(servers, results)}


async def _render_listing(
    request: Request,
    registry: ServerRegistry,
    cache: StatusCache,
    engine: StatusQueryEngine,
    renderer: PageRenderer,
    not_found: bool = False,
) -> HTMLResponse:
    servers = visible_servers(registry)
    statuses = await listing_statuses(servers, cache, engine)
    if not_found:
        return renderer.render_not_found(request, servers, statuses)
    return renderer.render_listing(request, servers, statuses)


@router.get("/", response_class=HTMLResponse)
async def index(
    request: Request,
    registry: ServerRegistry = Depends(get_registry),
    cache: StatusCache = Depends(get_status_cache),
    engine: StatusQueryEngine = Depends(get_status_engine),
    renderer: PageRenderer = Depends(get_page_renderer),
):
    return await _render_listing(request, registry, cache, engine, renderer)


@router.get("/{name}", response_class=HTMLResponse)
@router.get("/{name}/", response_class=HTMLResponse)
async def server_detail(
    request: Request,
    name: str,
    registry: ServerRegistry = Depends(get_registry),
    cache: StatusCache = Depends(get_status_cache),
    engine: StatusQueryEngine = Depends(get_status_engine),
    renderer: PageRenderer = Depends(get_page_renderer),
):
    server = registry.lookup(name)
    if server is None or server.status == ServerState.OFFLINE:
        return await _render_listing(
            request, registry, cache, engine, renderer, not_found=True
        )

    status, tree = await asyncio.gather(
        get_server_status(cache, engine, server),
        build_mod_tree(mod_root_path(server.name), server.current_version_path),
    )
    return renderer.render_server_detail(request, server, status, tree)


@router.get("/{full_path:path}", response_class=HTMLResponse)
async def not_found(
    request: Request,
    full_path: str,
    registry: ServerRegistry = Depends(get_registry),
    cache: StatusCache = Depends(get_status_cache),
    engine: StatusQueryEngine = Depends(get_status_engine),
    renderer: PageRenderer = Depends(get_page_renderer),
):
    return await _render_listing(
        request, registry, cache, engine, renderer, not_found=True
    )
