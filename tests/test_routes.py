"""
HTTP-level tests for the site routes: map mirror, mod downloads, pages
and request path validation.
"""

import shutil
import tempfile
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from fastapi.testclient import TestClient

from mcportal.main import create_app
from mcportal.middleware import validate_raw_path
from mcportal.proxy import ProxyGateway
from mcportal.servers import ServerConfig, ServerRegistry
from mcportal.status import StatusResult

REGISTRY = ServerRegistry(
    [
        ServerConfig(
            name="survival",
            status="online",
            server_address="mc.example.org",
            map_backend_host="10.0.0.5:8100",
            current_version_path="1.20.1/forge",
            description="Long-running survival world\nwith a second line",
            minecraft_version="1.20.1",
            modloader="Forge",
        ),
        ServerConfig(
            name="creative",
            status="planned",
            map_public_url="https://map.example.org/creative",
        ),
        ServerConfig(
            name="archive", status="offline", server_address="old.example.org"
        ),
        ServerConfig(name="lobby", status="online"),
    ]
)


@pytest.fixture
def data_dir():
    with tempfile.TemporaryDirectory(prefix="mcportal_routes_test_") as temp_dir:
        root = Path(temp_dir)
        mods = root / "survival" / "mods"
        (mods / "1.20.1" / "forge").mkdir(parents=True)
        (mods / "1.19.2").mkdir(parents=True)
        (mods / "1.20.1" / "forge" / "mymod.jar").write_bytes(b"PK\x03\x04jar")
        (mods / "1.20.1" / "README.md").write_text("# Install\n\nDrop the jar.\n")
        (mods / "Modpack.url").write_text("URL=https://example.com/modpack\n")
        (root / "secrets.txt").write_text("top secret")

        webroot = root / "survival" / "bluemap" / "webroot"
        (webroot / "maps" / "world").mkdir(parents=True)
        (webroot / "index.html").write_text("<html>bluemap</html>")
        (webroot / "maps" / "world" / "index.html").write_text("<html>world</html>")
        (webroot / "settings.json").write_text('{"maps":["world"]}')

        with patch("mcportal.config.settings.data_path", root):
            yield root


@pytest.fixture
def status_engine():
    engine = MagicMock()
    engine.query = AsyncMock(
        return_value=StatusResult(
            version_name="1.20.1", players_online=3, players_max=20
        )
    )
    return engine


class BackendBody(httpx.AsyncByteStream):
    async def __aiter__(self):
        yield b"from "
        yield b"backend"


@pytest.fixture
def backend_requests():
    return []


@pytest.fixture
def test_client(data_dir, status_engine, backend_requests):
    def backend(request: httpx.Request) -> httpx.Response:
        backend_requests.append(request)
        return httpx.Response(200, stream=BackendBody())

    app = create_app(
        registry=REGISTRY,
        status_engine=status_engine,
        proxy_gateway=ProxyGateway(transport=httpx.MockTransport(backend)),
    )
    with patch(
        "mcportal.status.service.fetch_map_players", AsyncMock(return_value=[])
    ):
        yield TestClient(app, raise_server_exceptions=False)


class TestMapRoute:
    def test_unknown_server(self, test_client):
        response = test_client.get("/nope/map/")

        assert response.status_code == 404
        assert response.text == "Server not found"

    def test_map_not_configured(self, test_client, backend_requests):
        response = test_client.get("/lobby/map/index.html")

        assert response.status_code == 404
        assert response.text == "BlueMap is not configured for this server."
        assert backend_requests == []

    def test_mirror_index(self, test_client, data_dir):
        for path in ("/survival/map", "/survival/map/"):
            response = test_client.get(path)

            assert response.status_code == 200
            assert response.text == "<html>bluemap</html>"
            assert response.headers["content-type"].startswith("text/html")
            assert response.headers["content-length"] == str(
                len("<html>bluemap</html>")
            )

    def test_mirror_file(self, test_client, backend_requests):
        response = test_client.get("/survival/map/settings.json")

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/json"
        assert response.json() == {"maps": ["world"]}
        assert "content-disposition" not in response.headers
        assert backend_requests == []

    def test_mirror_directory_index(self, test_client):
        response = test_client.get("/survival/map/maps/world/")

        assert response.status_code == 200
        assert response.text == "<html>world</html>"

    def test_mirror_missing_file(self, test_client, backend_requests):
        response = test_client.get("/survival/map/maps/nether/tile.png")

        assert response.status_code == 404
        assert backend_requests == []

    def test_mirror_traversal(self, test_client):
        response = test_client.get("/survival/map/..%2f..%2f..%2fsecrets.txt")

        assert response.status_code == 404
        assert "top secret" not in response.text

    def test_without_mirror_proxies(self, test_client, data_dir, backend_requests):
        shutil.rmtree(data_dir / "survival" / "bluemap")

        response = test_client.get("/survival/map/assets/index.js")

        assert response.status_code == 200
        assert response.content == b"from backend"
        assert str(backend_requests[0].url) == "http://10.0.0.5:8100/assets/index.js"

    def test_legacy_public_url_redirect(self, test_client):
        response = test_client.get("/creative/map", follow_redirects=False)

        assert response.status_code == 302
        assert response.headers["location"] == "https://map.example.org/creative"

    def test_legacy_public_url_with_sub_path(self, test_client):
        response = test_client.get(
            "/creative/map/assets/index.js", follow_redirects=False
        )

        assert response.status_code == 404

    def test_live_without_backend(self, test_client):
        response = test_client.get("/creative/map/live/players.json")

        assert response.status_code == 404


class TestModRoute:
    def test_download(self, test_client):
        response = test_client.get("/survival/mods/1.20.1/forge/mymod.jar")

        assert response.status_code == 200
        assert response.content == b"PK\x03\x04jar"
        assert response.headers["content-disposition"].startswith("attachment")
        assert 'filename="mymod.jar"' in response.headers["content-disposition"]
        assert response.headers["content-length"] == "7"

    def test_encoded_path(self, test_client):
        response = test_client.get("/survival/mods/1.20.1%2Fforge%2Fmymod.jar")

        assert response.status_code == 200
        assert response.content == b"PK\x03\x04jar"

    def test_markdown_is_rendered(self, test_client):
        response = test_client.get("/survival/mods/1.20.1/README.md")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert "content-disposition" not in response.headers
        assert "<h1>Install</h1>" in response.text
        assert "README.md" in response.text

    def test_traversal_is_forbidden_before_filesystem_access(self, test_client):
        with patch("mcportal.routers.mods.resolve_asset", AsyncMock()) as resolve:
            response = test_client.get(
                "/survival/mods/1.20.1/forge/mymod.jar..%2f..%2fsecrets.txt"
            )

        assert response.status_code == 403
        assert "top secret" not in response.text
        resolve.assert_not_called()

    def test_backslash_traversal_is_forbidden(self, test_client):
        response = test_client.get("/survival/mods/1.20.1%5C..%5C..%5Csecrets.txt")

        assert response.status_code == 403

    def test_dots_inside_names_are_allowed(self, test_client, data_dir):
        (data_dir / "survival" / "mods" / "notes..txt").write_text("ok")

        response = test_client.get("/survival/mods/notes..txt")

        assert response.status_code == 200

    def test_missing_file(self, test_client):
        response = test_client.get("/survival/mods/1.20.1/forge/other.jar")

        assert response.status_code == 404

    def test_directory_is_not_downloadable(self, test_client):
        response = test_client.get("/survival/mods/1.20.1")

        assert response.status_code == 404

    def test_unknown_server(self, test_client):
        response = test_client.get("/nope/mods/mymod.jar")

        assert response.status_code == 404


class TestPages:
    def test_listing_hides_offline_servers(self, test_client, status_engine):
        response = test_client.get("/")

        assert response.status_code == 200
        assert "survival" in response.text
        assert "creative" in response.text
        assert "archive" not in response.text
        assert "3 / 20" in response.text
        assert "Long-running survival world" in response.text
        assert "with a second line" not in response.text

        # The listing only pings
        for call in status_engine.query.await_args_list:
            assert call.args[1] is True

    def test_server_detail(self, test_client, status_engine):
        response = test_client.get("/survival/")

        assert response.status_code == 200
        assert 'href="/survival/mods/1.20.1/forge/mymod.jar"' in response.text
        assert 'href="https://example.com/modpack"' in response.text
        assert "Modpack" in response.text
        assert "Version 1.20.1" in response.text
        assert 'href="/survival/map/"' in response.text
        status_engine.query.assert_awaited_once_with(REGISTRY.lookup("survival"), False)

    def test_server_detail_without_slash(self, test_client):
        response = test_client.get("/survival", follow_redirects=False)

        assert response.status_code == 200

    def test_current_version_comes_first(self, test_client):
        text = test_client.get("/survival/").text

        assert text.index("1.20.1/") < text.index("1.19.2/")

    def test_unavailable_status_still_renders(self, test_client, status_engine):
        status_engine.query.return_value = None

        response = test_client.get("/survival/")

        assert response.status_code == 200
        assert "Version" not in response.text

    def test_offline_server_detail_is_404(self, test_client):
        response = test_client.get("/archive/")

        assert response.status_code == 404
        assert "survival" in response.text

    def test_unknown_server_is_404(self, test_client):
        response = test_client.get("/missing/")

        assert response.status_code == 404

    def test_unmatched_path_is_404(self, test_client):
        response = test_client.get("/survival/something/else")

        assert response.status_code == 404


class TestPathValidation:
    @pytest.mark.parametrize(
        "raw_path",
        [b"/", b"/survival/map/", b"/a%20b", b"/caf%C3%A9", b"/x?q=%zz"],
    )
    def test_valid(self, raw_path):
        assert validate_raw_path(raw_path)

    @pytest.mark.parametrize(
        "raw_path",
        [b"", b"survival", b"/%zz", b"/%4", b"/%ff", b"/survival%00", b"/a%C3"],
    )
    def test_invalid(self, raw_path):
        assert not validate_raw_path(raw_path)

    def test_invalid_utf8_is_400(self, test_client):
        response = test_client.get("/%ff")

        assert response.status_code == 400
        assert response.text == "Bad Request"

    def test_nul_byte_is_400(self, test_client):
        response = test_client.get("/survival%00/map/")

        assert response.status_code == 400

    def test_independent_of_registry(self, test_client):
        assert test_client.get("/survival/mods/%ff.jar").status_code == 400
        assert test_client.get("/nope/mods/%ff.jar").status_code == 400
