from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from .proxy import ProxyGateway
from .rendering import MarkdownRenderer, PageRenderer
from .servers import ServerRegistry
from .status import StatusCache, StatusQueryEngine


@dataclass
class PortalContext:
    """Collaborators shared by the site and the API sub-application."""

    registry: Optional[ServerRegistry]
    status_engine: StatusQueryEngine
    status_cache: StatusCache
    proxy_gateway: ProxyGateway
    page_renderer: PageRenderer
    markdown_renderer: MarkdownRenderer


def get_context(request: Request) -> PortalContext:
    return request.app.state.portal


def get_registry(request: Request) -> ServerRegistry:
    registry = get_context(request).registry
    if registry is None:
        # Only happens when the app is used without running its lifespan
        raise RuntimeError("Server registry has not been loaded")
    return registry


def get_status_engine(request: Request) -> StatusQueryEngine:
    return get_context(request).status_engine


def get_status_cache(request: Request) -> StatusCache:
    return get_context(request).status_cache


def get_proxy_gateway(request: Request) -> ProxyGateway:
    return get_context(request).proxy_gateway


def get_page_renderer(request: Request) -> PageRenderer:
    return get_context(request).page_renderer


def get_markdown_renderer(request: Request) -> MarkdownRenderer:
    return get_context(request).markdown_renderer
