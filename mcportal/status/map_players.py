"""Player names from a BlueMap backend's live data."""

from typing import Optional

import httpx

from ..config import settings
from ..logger import logger
from .models import PlayerSample, StatusResult

MAP_PLAYERS_PATH = "/maps/world/live/players.json"


async def fetch_map_players(
    backend_host: str,
    timeout: Optional[float] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> list[str]:
    """Names of players currently shown on the map. Failures yield []."""
    url = f"http://{backend_host}{MAP_PLAYERS_PATH}"
    request_timeout = (
        timeout if timeout is not None else settings.status.map_players_timeout_seconds
    )
    try:
        async with httpx.AsyncClient(
            timeout=request_timeout, transport=transport
        ) as client:
            response = await client.get(url)
        if response.status_code != 200:
            logger.debug(f"Map players request to {url} returned {response.status_code}")
            return []
        data = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.debug(f"Failed to fetch map players from {url}: {e}")
        return []

    players = data.get("players") if isinstance(data, dict) else None
    if not isinstance(players, list):
        return []
    return [
        player["name"]
        for player in players
        if isinstance(player, dict) and isinstance(player.get("name"), str)
    ]


def merge_player_sample(result: StatusResult, names: list[str]) -> StatusResult:
    """Append map-only player names to the sample; counts stay untouched."""
    known = {player.name for player in result.player_sample}
    extra = []
    for name in names:
        if name not in known:
            known.add(name)
            extra.append(PlayerSample(name=name))
    if not extra:
        return result
    return result.model_copy(update={"player_sample": [*result.player_sample, *extra]})
