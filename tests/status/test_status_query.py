"""
Tests for the status query engine: protocol planning, the query to ping
fallback and degradation to "unavailable".
"""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from mcportal.servers import ServerConfig
from mcportal.status import QueryProtocol, StatusQueryEngine, plan_attempts


def make_query_response():
    return SimpleNamespace(
        motd=SimpleNamespace(to_plain=lambda: "A Minecraft Server"),
        players=SimpleNamespace(online=2, max=20, list=["Steve", "Alex"]),
        software=SimpleNamespace(
            version="1.20.1", brand="Paper", plugins=["BlueMap", "LuckPerms"]
        ),
    )


def make_ping_response():
    return SimpleNamespace(
        version=SimpleNamespace(name="1.20.1", protocol=763),
        players=SimpleNamespace(
            online=3, max=50, sample=[SimpleNamespace(name="Notch", id="abc")]
        ),
        motd="Welcome",
        icon="data:image/png;base64,iVBORw0KGgo=",
    )


class FakeServerFactory:
    """Stands in for mcstatus.JavaServer and records every lookup."""

    def __init__(self, query=None, status=None):
        self.server = MagicMock()
        self.server.async_query = query or AsyncMock(return_value=make_query_response())
        self.server.async_status = status or AsyncMock(return_value=make_ping_response())
        self.calls = []

    def __call__(self, host, port, timeout):
        self.calls.append((host, port, timeout))
        return self.server


@pytest.fixture
def online_server():
    return ServerConfig(
        name="survival",
        status="online",
        server_address="mc.example.org:25570",
        enable_query=True,
    )


class TestPlanAttempts:
    def test_full_query_then_ping(self, online_server):
        assert plan_attempts(online_server, False) == [
            QueryProtocol.FULL_QUERY,
            QueryProtocol.PING,
        ]

    def test_lightweight_only_pings(self, online_server):
        assert plan_attempts(online_server, True) == [QueryProtocol.PING]

    def test_query_disabled(self):
        server = ServerConfig(name="s", status="online", server_address="host")
        assert plan_attempts(server, False) == [QueryProtocol.PING]

    @pytest.mark.parametrize("status", ["offline", "planned"])
    def test_not_online(self, status):
        server = ServerConfig(name="s", status=status, server_address="host")
        assert plan_attempts(server, False) == []

    def test_no_address(self):
        assert plan_attempts(ServerConfig(name="s", status="online"), False) == []


class TestStatusQueryEngine:
    async def test_full_query(self, online_server):
        factory = FakeServerFactory()
        engine = StatusQueryEngine(server_factory=factory)

        result = await engine.query(online_server)

        assert result is not None
        assert result.version_name == "1.20.1"
        assert result.protocol == 0
        assert result.players_online == 2
        assert result.players_max == 20
        assert [p.name for p in result.player_sample] == ["Steve", "Alex"]
        assert result.description == "A Minecraft Server"
        assert result.software == "Paper"
        assert result.plugins == ["BlueMap", "LuckPerms"]
        assert result.favicon is None
        assert factory.calls[0][:2] == ("mc.example.org", 25570)
        factory.server.async_status.assert_not_called()

    async def test_offline_server_never_touches_network(self):
        factory = FakeServerFactory()
        engine = StatusQueryEngine(server_factory=factory)
        server = ServerConfig(
            name="archive",
            status="offline",
            server_address="mc.example.org",
            enable_query=True,
        )

        assert await engine.query(server) is None
        assert factory.calls == []

    async def test_falls_back_to_ping(self, online_server):
        factory = FakeServerFactory(query=AsyncMock(side_effect=TimeoutError()))
        engine = StatusQueryEngine(server_factory=factory)

        result = await engine.query(online_server)

        assert result is not None
        assert result.software is None
        assert result.plugins is None
        assert result.players_online == 3
        assert result.players_max == 50
        assert result.protocol == 763
        assert [p.name for p in result.player_sample] == ["Notch"]
        assert result.description == "Welcome"
        assert result.favicon == "data:image/png;base64,iVBORw0KGgo="
        factory.server.async_query.assert_awaited_once_with(tries=1)
        factory.server.async_status.assert_awaited_once_with(tries=1)

    async def test_lightweight_only_skips_full_query(self, online_server):
        factory = FakeServerFactory()
        engine = StatusQueryEngine(server_factory=factory)

        result = await engine.query(online_server, lightweight_only=True)

        assert result is not None
        assert result.software is None
        factory.server.async_query.assert_not_called()

    async def test_both_protocols_fail(self, online_server):
        factory = FakeServerFactory(
            query=AsyncMock(side_effect=ConnectionRefusedError()),
            status=AsyncMock(side_effect=OSError("unreachable")),
        )
        engine = StatusQueryEngine(server_factory=factory)

        assert await engine.query(online_server) is None
        # One attempt per protocol, no retries
        assert factory.server.async_query.await_count == 1
        assert factory.server.async_status.await_count == 1

    async def test_slow_server_times_out(self, online_server):
        async def hang(**kwargs):
            await asyncio.sleep(10)

        factory = FakeServerFactory(
            query=AsyncMock(side_effect=hang), status=AsyncMock(side_effect=hang)
        )
        engine = StatusQueryEngine(
            query_timeout=0.05, ping_timeout=0.05, server_factory=factory
        )

        assert await engine.query(online_server) is None

    async def test_sparse_ping_response(self, online_server):
        factory = FakeServerFactory(
            status=AsyncMock(
                return_value=SimpleNamespace(
                    version=None, players=SimpleNamespace(online=None, max=None)
                )
            )
        )
        engine = StatusQueryEngine(server_factory=factory)

        result = await engine.query(online_server, lightweight_only=True)

        assert result is not None
        assert result.version_name == ""
        assert result.protocol == 0
        assert result.players_online == 0
        assert result.players_max == 0
        assert result.player_sample == []
        assert result.description == ""

    async def test_invalid_address(self, caplog):
        factory = FakeServerFactory()
        engine = StatusQueryEngine(server_factory=factory)
        server = ServerConfig(name="s", status="online", server_address="host:port")

        assert await engine.query(server) is None
        assert factory.calls == []
        assert "Invalid server address" in caplog.text

    async def test_unexpected_error_degrades_to_unavailable(self, online_server, caplog):
        def exploding_factory(host, port, timeout):
            raise RuntimeError("defect")

        engine = StatusQueryEngine(server_factory=exploding_factory)

        assert await engine.query(online_server) is None
        assert "Status query for survival: RuntimeError: defect" in caplog.text

    async def test_default_port(self):
        factory = FakeServerFactory()
        engine = StatusQueryEngine(server_factory=factory)
        server = ServerConfig(name="s", status="online", server_address="mc.example.org")

        await engine.query(server, lightweight_only=True)

        assert factory.calls[0][:2] == ("mc.example.org", 25565)
