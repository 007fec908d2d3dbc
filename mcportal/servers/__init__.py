from .models import DEFAULT_GAME_PORT, ServerConfig, ServerState
from .registry import ServerRegistry, map_webroot_path, mod_root_path

__all__ = [
    "DEFAULT_GAME_PORT",
    "ServerConfig",
    "ServerState",
    "ServerRegistry",
    "map_webroot_path",
    "mod_root_path",
]
