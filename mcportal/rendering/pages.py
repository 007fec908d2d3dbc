"""
HTML pages for the server listing and server details.

The gateway only hands data to these renderers; any other page
implementation with the same methods can be swapped in.
"""

from pathlib import Path
from typing import Mapping, Optional, Sequence

from fastapi import Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from ..config import settings
from ..files import FileTreeNode
from ..servers import ServerConfig
from ..status import StatusResult

TEMPLATES_DIR = Path(__file__).parent / "templates"
MARKDOWN_EXTENSIONS = (".md", ".markdown")


def first_line(value: str) -> str:
    return value.split("\n", 1)[0]


def create_templates(directory: Path = TEMPLATES_DIR) -> Jinja2Templates:
    templates = Jinja2Templates(directory=directory)
    templates.env.filters["first_line"] = first_line
    templates.env.globals["site_title"] = settings.site_title
    templates.env.globals["markdown_extensions"] = MARKDOWN_EXTENSIONS
    return templates


class PageRenderer:
    def __init__(self, templates: Jinja2Templates) -> None:
        self.templates = templates

    def render_listing(
        self,
        request: Request,
        servers: Sequence[ServerConfig],
        statuses: Mapping[str, Optional[StatusResult]],
        status_code: int = 200,
    ) -> HTMLResponse:
        return self.templates.TemplateResponse(
            request,
            "index.html",
            {"servers": servers, "statuses": statuses},
            status_code=status_code,
        )

    def render_not_found(
        self,
        request: Request,
        servers: Sequence[ServerConfig],
        statuses: Mapping[str, Optional[StatusResult]],
    ) -> HTMLResponse:
        """The listing page, answered with 404."""
        return self.render_listing(request, servers, statuses, status_code=404)

    def render_server_detail(
        self,
        request: Request,
        server: ServerConfig,
        status: Optional[StatusResult],
        tree: Sequence[FileTreeNode],
    ) -> HTMLResponse:
        return self.templates.TemplateResponse(
            request,
            "server.html",
            {"server": server, "status": status, "tree": tree},
        )
