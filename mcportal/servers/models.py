import re
from enum import Enum
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

_SAFE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")

DEFAULT_GAME_PORT = 25565

# First path segments taken by the site itself
RESERVED_SERVER_NAMES = frozenset({"api"})


class ServerState(str, Enum):
    """Operator-declared availability of a server"""

    ONLINE = "online"
    PLANNED = "planned"
    OFFLINE = "offline"


class ServerConfig(BaseModel):
    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    name: str
    status: ServerState = ServerState.OFFLINE
    server_address: Optional[str] = None  # host or host:port
    enable_query: bool = False
    # host[:port] of the BlueMap webserver
    map_backend_host: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("map_backend_host", "bluemap_proxy")
    )
    # Legacy redirect target for servers without a local mirror
    map_public_url: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("map_public_url", "bluemap_url")
    )
    current_version_path: Optional[str] = None
    description: str = ""
    minecraft_version: Optional[str] = None
    modloader: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        if value in (".", "..") or not _SAFE_NAME_PATTERN.match(value):
            raise ValueError(f"server name {value!r} is not a safe path segment")
        if value in RESERVED_SERVER_NAMES:
            raise ValueError(f"server name {value!r} is reserved")
        return value

    @field_validator("description", mode="before")
    @classmethod
    def _empty_description(cls, value):
        return "" if value is None else value

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("current_version_path")
    @classmethod
    def _normalize_version_path(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.replace("\\", "/").strip("/")
        return value or None

    @property
    def has_map(self) -> bool:
        """Whether any BlueMap integration is configured."""
        return bool(self.map_backend_host or self.map_public_url)

    def game_endpoint(self) -> Optional[tuple[str, int]]:
        """Split `server_address` into host and port, defaulting to 25565."""
        if not self.server_address:
            return None
        address = self.server_address.strip()
        if ":" not in address:
            return address, DEFAULT_GAME_PORT
        host, _, port = address.rpartition(":")
        return host, int(port)
