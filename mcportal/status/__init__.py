from .cache import CachedStatus, StatusCache
from .map_players import fetch_map_players, merge_player_sample
from .models import PlayerSample, ServerStatusResponse, StatusResult
from .query import QueryProtocol, StatusQueryEngine, plan_attempts, status_engine
from .service import get_server_status

__all__ = [
    "CachedStatus",
    "StatusCache",
    "fetch_map_players",
    "merge_player_sample",
    "PlayerSample",
    "ServerStatusResponse",
    "StatusResult",
    "QueryProtocol",
    "StatusQueryEngine",
    "plan_attempts",
    "status_engine",
    "get_server_status",
]
