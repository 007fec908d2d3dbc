"""
Live status queries against Minecraft servers.

Two wire protocols are tried in a fixed order, one attempt each:

- FULL_QUERY: the UDP query protocol (needs `enable-query` on the server),
  which reports the full player list, software and plugins.
- PING: the TCP Server List Ping, which every server answers but which
  only carries counts, version and a player sample.

Any failure degrades to `None` ("unavailable") and never raises.
"""

import asyncio
import struct
from enum import Enum
from typing import Any, Callable, Optional

from mcstatus import JavaServer

from ..config import settings
from ..logger import log_exception, logger
from ..servers import ServerConfig, ServerState
from .models import PlayerSample, StatusResult

# Errors a misbehaving or unreachable server can cause inside mcstatus
_PROTOCOL_ERRORS = (
    OSError,
    TimeoutError,
    EOFError,
    ValueError,
    KeyError,
    TypeError,
    struct.error,
)


class QueryProtocol(str, Enum):
    FULL_QUERY = "query"
    PING = "ping"


def plan_attempts(server: ServerConfig, lightweight_only: bool) -> list[QueryProtocol]:
    """Protocols to try, in order. Empty when no online check is possible."""
    if server.status != ServerState.ONLINE or not server.server_address:
        return []
    attempts = []
    if not lightweight_only and server.enable_query:
        attempts.append(QueryProtocol.FULL_QUERY)
    attempts.append(QueryProtocol.PING)
    return attempts


def _plain_text(value: Any) -> str:
    if value is None:
        return ""
    if hasattr(value, "to_plain"):
        return value.to_plain()
    return str(value)


def _query_player_names(players: Any) -> list[str]:
    # mcstatus 11 renamed `names` to `list`
    names = getattr(players, "list", None)
    if names is None:
        names = getattr(players, "names", None)
    return list(names or [])


def status_from_query(response: Any) -> StatusResult:
    players = response.players
    software = response.software
    return StatusResult(
        version_name=software.version or "",
        # The query protocol has no protocol version
        protocol=0,
        players_online=players.online,
        players_max=players.max,
        player_sample=[PlayerSample(name=name) for name in _query_player_names(players)],
        description=_plain_text(response.motd),
        software=software.brand,
        plugins=list(software.plugins or []),
    )


def status_from_ping(response: Any) -> StatusResult:
    players = getattr(response, "players", None)
    version = getattr(response, "version", None)
    sample = getattr(players, "sample", None) or []
    return StatusResult(
        version_name=getattr(version, "name", None) or "",
        protocol=getattr(version, "protocol", None) or 0,
        players_online=getattr(players, "online", None) or 0,
        players_max=getattr(players, "max", None) or 0,
        player_sample=[
            PlayerSample(name=player.name)
            for player in sample
            if getattr(player, "name", None)
        ],
        description=_plain_text(getattr(response, "motd", None)),
        software=None,
        plugins=None,
        favicon=getattr(response, "icon", None) or None,
    )


class StatusQueryEngine:
    def __init__(
        self,
        query_timeout: Optional[float] = None,
        ping_timeout: Optional[float] = None,
        server_factory: Callable[..., JavaServer] = JavaServer,
    ) -> None:
        self._timeouts = {
            QueryProtocol.FULL_QUERY: query_timeout
            if query_timeout is not None
            else settings.status.query_timeout_seconds,
            QueryProtocol.PING: ping_timeout
            if ping_timeout is not None
            else settings.status.ping_timeout_seconds,
        }
        self._server_factory = server_factory

    async def _run(self, protocol: QueryProtocol, host: str, port: int) -> StatusResult:
        timeout = self._timeouts[protocol]
        server = self._server_factory(host, port, timeout)
        async with asyncio.timeout(timeout):
            if protocol is QueryProtocol.FULL_QUERY:
                return status_from_query(await server.async_query(tries=1))
            return status_from_ping(await server.async_status(tries=1))

    async def _attempt(
        self, protocol: QueryProtocol, host: str, port: int
    ) -> Optional[StatusResult]:
        try:
            return await self._run(protocol, host, port)
        except _PROTOCOL_ERRORS as e:
            logger.debug(
                f"{protocol.value} of {host}:{port} failed: {type(e).__name__}: {e}"
            )
            return None

    @log_exception("Status query for {server.name}")
    async def query(
        self, server: ServerConfig, lightweight_only: bool = False
    ) -> Optional[StatusResult]:
        """Query the live status of `server`, or return None if unavailable."""
        attempts = plan_attempts(server, lightweight_only)
        if not attempts:
            return None

        try:
            endpoint = server.game_endpoint()
        except ValueError:
            logger.warning(
                f"Invalid server address '{server.server_address}' for {server.name}"
            )
            return None
        if endpoint is None:
            return None
        host, port = endpoint

        for protocol in attempts:
            result = await self._attempt(protocol, host, port)
            if result is not None:
                return result
        return None


status_engine = StatusQueryEngine()
