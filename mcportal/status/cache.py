import time
from dataclasses import dataclass
from typing import Callable, Optional

from ..servers import ServerConfig
from .models import StatusResult
from .query import StatusQueryEngine


@dataclass(frozen=True)
class CachedStatus:
    result: Optional[StatusResult]
    stored_at: float


class StatusCache:
    """Short-lived per-server cache for the page and API layers.

    Unavailable results expire sooner so a recovering server shows up
    quickly, while an unreachable one is not queried on every request.
    """

    def __init__(
        self,
        ttl_seconds: float,
        error_ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._error_ttl = error_ttl_seconds
        self._clock = clock
        self._entries: dict[tuple[str, bool], CachedStatus] = {}

    def get(self, server_name: str, lightweight_only: bool) -> Optional[CachedStatus]:
        entry = self._entries.get((server_name, lightweight_only))
        if entry is None:
            return None
        ttl = self._ttl if entry.result is not None else self._error_ttl
        if self._clock() - entry.stored_at >= ttl:
            return None
        return entry

    def set(
        self, server_name: str, lightweight_only: bool, result: Optional[StatusResult]
    ) -> None:
        self._entries[(server_name, lightweight_only)] = CachedStatus(
            result=result, stored_at=self._clock()
        )

    def clear(self) -> None:
        self._entries.clear()

    async def get_or_query(
        self, engine: StatusQueryEngine, server: ServerConfig, lightweight_only: bool
    ) -> Optional[StatusResult]:
        entry = self.get(server.name, lightweight_only)
        if entry is not None:
            return entry.result
        result = await engine.query(server, lightweight_only)
        self.set(server.name, lightweight_only, result)
        return result
