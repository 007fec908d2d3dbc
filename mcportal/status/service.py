from typing import Optional

from ..servers import ServerConfig
from .cache import StatusCache
from .map_players import fetch_map_players, merge_player_sample
from .models import StatusResult
from .query import StatusQueryEngine


async def get_server_status(
    cache: StatusCache,
    engine: StatusQueryEngine,
    server: ServerConfig,
    lightweight_only: bool = False,
) -> Optional[StatusResult]:
    """Cached live status of `server`, with players seen by its map added.

    Map players are only merged into an available result; a server that
    does not answer stays unavailable.
    """
    result = await cache.get_or_query(engine, server, lightweight_only)
    if result is None or not server.map_backend_host or lightweight_only:
        return result
    names = await fetch_map_players(server.map_backend_host)
    return merge_player_sample(result, names)
