"""
BlueMap route: `/{name}/map` and everything below it.

Live data (`live/...`) is always proxied to the server's map backend.
Other paths are served from the local web-root mirror, or proxied when
no mirror exists on disk. Any HTTP method is accepted, so the routes are
registered as plain ASGI endpoints instead of FastAPI operations.
"""

from aiofiles import os as aioos
from fastapi import Request
from starlette.responses import FileResponse, RedirectResponse, Response
from starlette.routing import Route
from starlette.types import Receive, Scope, Send

from ..dependencies import get_context, get_registry
from ..errors import NotFoundError
from ..files import resolve_asset
from ..logger import logger
from ..servers import ServerConfig, map_webroot_path

LIVE_PREFIX = "live/"


async def _proxy_to_backend(request: Request, backend_host: str, rest: str) -> Response:
    gateway = get_context(request).proxy_gateway
    return await gateway.forward(
        method=request.method,
        backend_host=backend_host,
        sub_path="/" + rest,
        query_string=request.scope.get("query_string", b"").decode("latin-1"),
        inbound_headers=request.headers.items(),
        inbound_body=request.stream(),
    )


async def serve_map(request: Request, server: ServerConfig, rest: str) -> Response:
    if not server.has_map:
        raise NotFoundError("BlueMap is not configured for this server.")

    if rest.startswith(LIVE_PREFIX):
        if not server.map_backend_host:
            raise NotFoundError("BlueMap live data is not available for this server.")
        return await _proxy_to_backend(request, server.map_backend_host, rest)

    web_root = map_webroot_path(server.name)
    if await aioos.path.isdir(web_root):
        asset = await resolve_asset(web_root, rest)
        return FileResponse(asset.absolute_path, media_type=asset.mime_type)

    if server.map_backend_host:
        return await _proxy_to_backend(request, server.map_backend_host, rest)

    # Legacy: servers that only publish an external map URL
    if server.map_public_url and not rest:
        logger.debug(f"Redirecting map of {server.name} to its public URL")
        return RedirectResponse(server.map_public_url, status_code=302)

    raise NotFoundError("File not found.")


class MapEndpoint:
    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        request = Request(scope, receive, send)
        name = request.path_params["name"]
        rest = request.path_params.get("rest", "")

        server = get_registry(request).lookup(name)
        if server is None:
            raise NotFoundError("Server not found")

        response = await serve_map(request, server, rest)
        await response(scope, receive, send)


map_endpoint = MapEndpoint()

routes = [
    Route("/{name}/map", endpoint=map_endpoint, name="map_root"),
    Route("/{name}/map/{rest:path}", endpoint=map_endpoint, name="map"),
]
