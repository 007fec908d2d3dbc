from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from .config import settings
from .dependencies import PortalContext
from .errors import PortalError, portal_error_handler
from .logger import logger
from .middleware import RequestPathValidationMiddleware
from .proxy import ProxyGateway, proxy_gateway as default_proxy_gateway
from .rendering import MarkdownRenderer, PageRenderer, create_templates
from .routers import api, bluemap, mods, pages
from .servers import ServerRegistry
from .status import StatusCache, StatusQueryEngine, status_engine as default_engine


def create_app(
    registry: Optional[ServerRegistry] = None,
    proxy_gateway: Optional[ProxyGateway] = None,
    status_engine: Optional[StatusQueryEngine] = None,
    status_cache: Optional[StatusCache] = None,
    page_renderer: Optional[PageRenderer] = None,
    markdown_renderer: Optional[MarkdownRenderer] = None,
) -> FastAPI:
    """Build the site. Without a `registry`, it is loaded from
    `settings.servers_file` at startup."""
    templates = create_templates()
    context = PortalContext(
        registry=registry,
        status_engine=status_engine or default_engine,
        status_cache=status_cache
        or StatusCache(
            ttl_seconds=settings.status.cache_seconds,
            error_ttl_seconds=settings.status.error_cache_seconds,
        ),
        proxy_gateway=proxy_gateway or default_proxy_gateway,
        page_renderer=page_renderer or PageRenderer(templates),
        markdown_renderer=markdown_renderer or MarkdownRenderer(templates),
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting up and loading the server registry...")
        if context.registry is None:
            context.registry = ServerRegistry.from_file(settings.servers_file)
        logger.info("Startup complete.")
        yield

    api_app = FastAPI(root_path="/api")
    api_app.state.portal = context
    api_app.add_exception_handler(PortalError, portal_error_handler)
    api_app.include_router(api.router)

    app = FastAPI(lifespan=lifespan, title=settings.site_title)
    app.state.portal = context
    app.add_exception_handler(PortalError, portal_error_handler)
    app.add_middleware(RequestPathValidationMiddleware)

    app.mount("/api", api_app)
    # Order matters: the map and mod routes win over the page patterns
    app.router.routes.extend(bluemap.routes)
    app.include_router(mods.router)
    app.include_router(pages.router)
    return app


app = create_app()
