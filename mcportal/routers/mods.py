import re
from pathlib import PurePosixPath

import aiofiles
from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse, HTMLResponse, Response

from ..dependencies import get_markdown_renderer, get_registry
from ..errors import ForbiddenError, NotFoundError
from ..files import resolve_asset
from ..logger import logger
from ..rendering import MARKDOWN_EXTENSIONS, MarkdownContext, MarkdownRenderer
from ..servers import ServerRegistry, mod_root_path

router = APIRouter(tags=["mods"])

_SEGMENT_SEPARATORS = re.compile(r"[\\/]")


def has_parent_segment(path: str) -> bool:
    """Whether any `/` or `\\` separated segment of `path` is `..`."""
    return ".." in _SEGMENT_SEPARATORS.split(path)


@router.get("/{name}/mods/{rest:path}")
async def get_mod_file(
    name: str,
    rest: str,
    registry: ServerRegistry = Depends(get_registry),
    markdown_renderer: MarkdownRenderer = Depends(get_markdown_renderer),
) -> Response:
    """Download a mod file, or render it when it is a markdown document"""
    # `rest` arrives percent-decoded exactly once
    if has_parent_segment(rest):
        logger.warning(f"Rejected traversal attempt in mod path of {name}: {rest!r}")
        raise ForbiddenError()

    server = registry.lookup(name)
    if server is None:
        raise NotFoundError("Server not found")
    if not rest:
        raise NotFoundError("File not found.")

    asset = await resolve_asset(mod_root_path(server.name), rest, index_fallback=False)
    file_name = PurePosixPath(rest).name

    if file_name.lower().endswith(MARKDOWN_EXTENSIONS):
        async with aiofiles.open(asset.absolute_path, "rb") as f:
            data = await f.read()
        html = markdown_renderer.render(
            data, MarkdownContext(server_name=server.name, file_name=file_name)
        )
        return HTMLResponse(html)

    return FileResponse(
        asset.absolute_path, media_type=asset.mime_type, filename=file_name
    )
