from typing import List

from fastapi import APIRouter, Depends

from ..dependencies import get_registry, get_status_cache, get_status_engine
from ..errors import NotFoundError
from ..files import FileTreeNode, build_mod_tree
from ..servers import ServerConfig, ServerRegistry, mod_root_path
from ..status import (
    ServerStatusResponse,
    StatusCache,
    StatusQueryEngine,
    get_server_status,
)

router = APIRouter(
    prefix="/servers",
    tags=["servers"],
)


def _get_server(registry: ServerRegistry, name: str) -> ServerConfig:
    server = registry.lookup(name)
    if server is None:
        raise NotFoundError(f"Server '{name}' not found")
    return server


@router.get("", response_model=List[ServerConfig])
async def list_servers(registry: ServerRegistry = Depends(get_registry)):
    """All configured servers, offline ones included"""
    return registry.all()


@router.get("/{name}/status", response_model=ServerStatusResponse)
async def server_status(
    name: str,
    registry: ServerRegistry = Depends(get_registry),
    cache: StatusCache = Depends(get_status_cache),
    engine: StatusQueryEngine = Depends(get_status_engine),
):
    server = _get_server(registry, name)
    result = await get_server_status(cache, engine, server)
    return ServerStatusResponse(online=result is not None, status=result)


@router.get("/{name}/mods", response_model=List[FileTreeNode])
async def server_mods(name: str, registry: ServerRegistry = Depends(get_registry)):
    """Mod directory tree, current version first"""
    server = _get_server(registry, name)
    return await build_mod_tree(mod_root_path(server.name), server.current_version_path)
