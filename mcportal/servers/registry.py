"""
Read-only registry of configured servers, loaded from a YAML document of
the form::

    servers:
      - name: survival
        status: online
        server_address: mc.example.org:25565
        map_backend_host: 10.0.0.5:8100
"""

from pathlib import Path
from typing import Iterable, Optional

import yaml

from ..config import settings
from ..logger import logger
from .models import ServerConfig


class ServerRegistry:
    def __init__(self, servers: Iterable[ServerConfig] = ()) -> None:
        self._servers: dict[str, ServerConfig] = {}
        for server in servers:
            if server.name in self._servers:
                raise ValueError(f"Duplicate server name '{server.name}'")
            self._servers[server.name] = server

    def lookup(self, name: str) -> Optional[ServerConfig]:
        return self._servers.get(name)

    def all(self) -> list[ServerConfig]:
        """All servers in configuration order."""
        return list(self._servers.values())

    def __len__(self) -> int:
        return len(self._servers)

    @classmethod
    def from_yaml(cls, content: str) -> "ServerRegistry":
        document = yaml.safe_load(content) or {}
        if not isinstance(document, dict):
            raise ValueError("Server registry must be a mapping with a 'servers' list")
        entries = document.get("servers") or []
        if not isinstance(entries, list):
            raise ValueError("'servers' must be a list")
        return cls(ServerConfig.model_validate(entry) for entry in entries)

    @classmethod
    def from_file(cls, path: Path) -> "ServerRegistry":
        if not path.is_file():
            logger.warning(f"Server registry {path} not found, starting with no servers")
            return cls()
        registry = cls.from_yaml(path.read_text(encoding="utf-8"))
        logger.info(f"Loaded {len(registry)} servers from {path}")
        return registry


def server_data_path(name: str) -> Path:
    return settings.data_path / name


def map_webroot_path(name: str) -> Path:
    """Local mirror of the BlueMap web UI for a server."""
    return server_data_path(name) / "bluemap" / "webroot"


def mod_root_path(name: str) -> Path:
    return server_data_path(name) / "mods"
