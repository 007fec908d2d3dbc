from typing import List, Optional

from pydantic import BaseModel, Field


class PlayerSample(BaseModel):
    name: str


class StatusResult(BaseModel):
    """Live status of a game server as reported by one of the wire protocols.

    A failed query is represented by `None`, never by a zero-filled result,
    so "0 players online" stays distinguishable from "unreachable".
    """

    version_name: str = ""
    protocol: int = 0
    players_online: int = 0
    players_max: int = 0
    player_sample: List[PlayerSample] = Field(default_factory=list)
    description: str = ""
    # Only the full query protocol reports these
    software: Optional[str] = None
    plugins: Optional[List[str]] = None
    # data:image/png;base64 URI, only sent in ping responses
    favicon: Optional[str] = None


class ServerStatusResponse(BaseModel):
    online: bool
    status: Optional[StatusResult] = None
