"""
Streaming reverse proxy to per-server map backends.

Requests and responses are streamed in both directions; neither body is
buffered in memory. Failures before the upstream status line arrives turn
into a 502; failures after streaming began abort the client connection.
"""

import asyncio
from typing import AsyncIterator, Awaitable, Callable, Iterable, Optional
from urllib.parse import quote

import anyio
import httpx
from starlette.background import BackgroundTask
from starlette.responses import StreamingResponse

from ..config import settings
from ..errors import UpstreamError
from ..logger import logger

BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})

# The gateway frames the response itself
STRIPPED_RESPONSE_HEADERS = frozenset({"transfer-encoding", "connection"})

_BODY_FRAMING_HEADERS = frozenset({"content-length", "transfer-encoding"})
_PATH_SAFE_CHARS = "/:@!$&'()*+,;=-._~"

HeaderList = list[tuple[str, str]]


def build_target_url(backend_host: str, sub_path: str, query_string: str = "") -> str:
    if not sub_path.startswith("/"):
        sub_path = "/" + sub_path
    url = f"http://{backend_host}{quote(sub_path, safe=_PATH_SAFE_CHARS)}"
    if query_string:
        url += f"?{query_string}"
    return url


def build_upstream_headers(
    inbound_headers: Iterable[tuple[str, str]], backend_host: str, forward_body: bool
) -> HeaderList:
    """Inbound headers minus Host, which is replaced by the backend host."""
    headers = []
    for name, value in inbound_headers:
        lowered = name.lower()
        if lowered == "host":
            continue
        if not forward_body and lowered in _BODY_FRAMING_HEADERS:
            continue
        headers.append((name, value))
    headers.append(("Host", backend_host))
    return headers


def filter_response_headers(
    raw_headers: Iterable[tuple[bytes, bytes]],
) -> list[tuple[bytes, bytes]]:
    return [
        (name, value)
        for name, value in raw_headers
        if name.decode("latin-1").lower() not in STRIPPED_RESPONSE_HEADERS
    ]


def describe_upstream_error(error: Exception) -> str:
    """User-safe description of a proxy failure, without addresses or internals."""
    if isinstance(error, httpx.ConnectTimeout):
        return "Proxy error: timed out connecting to map backend"
    if isinstance(error, (httpx.TimeoutException, TimeoutError)):
        return "Proxy error: map backend timed out"
    if isinstance(error, httpx.ConnectError):
        return "Proxy error: could not connect to map backend"
    return "Proxy error: map backend request failed"


async def _stream_body(
    upstream: httpx.Response,
    url: str,
    deadline: float,
    close: Callable[[], Awaitable[None]],
) -> AsyncIterator[bytes]:
    chunks = upstream.aiter_raw()
    try:
        while True:
            async with asyncio.timeout_at(deadline):
                chunk = await anext(chunks, None)
            if chunk is None:
                break
            yield chunk
    except (httpx.HTTPError, TimeoutError) as e:
        # Headers are already sent; all we can do is drop the connection
        logger.warning(f"Proxy stream from {url} aborted: {type(e).__name__}: {e}")
        raise
    finally:
        with anyio.CancelScope(shield=True):
            await close()


class ProxyGateway:
    def __init__(
        self,
        connect_timeout: Optional[float] = None,
        total_timeout: Optional[float] = None,
        verify_tls: Optional[bool] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._connect_timeout = (
            connect_timeout
            if connect_timeout is not None
            else settings.proxy.connect_timeout_seconds
        )
        self._total_timeout = (
            total_timeout
            if total_timeout is not None
            else settings.proxy.total_timeout_seconds
        )
        self._verify_tls = (
            verify_tls if verify_tls is not None else settings.proxy.verify_tls
        )
        self._transport = transport

    def _create_client(self) -> httpx.AsyncClient:
        client = httpx.AsyncClient(
            timeout=httpx.Timeout(self._total_timeout, connect=self._connect_timeout),
            verify=self._verify_tls,
            follow_redirects=False,
            transport=self._transport,
        )
        # Only the client's own headers go upstream, not httpx defaults
        client.headers.clear()
        return client

    async def forward(
        self,
        method: str,
        backend_host: str,
        sub_path: str,
        query_string: str,
        inbound_headers: Iterable[tuple[str, str]],
        inbound_body: Optional[AsyncIterator[bytes]] = None,
    ) -> StreamingResponse:
        """Forward a request to `backend_host` and stream the answer back.

        Raises:
            UpstreamError: If the backend cannot be reached or does not answer
                within the timeouts.
        """
        url = build_target_url(backend_host, sub_path, query_string)
        forward_body = method.upper() in BODY_METHODS
        headers = build_upstream_headers(inbound_headers, backend_host, forward_body)

        client = self._create_client()
        deadline = asyncio.get_running_loop().time() + self._total_timeout
        try:
            request = client.build_request(
                method,
                url,
                headers=headers,
                content=inbound_body if forward_body else None,
            )
            async with asyncio.timeout_at(deadline):
                upstream = await client.send(request, stream=True)
        except (httpx.HTTPError, httpx.InvalidURL, TimeoutError) as e:
            await client.aclose()
            logger.warning(f"Proxy request {method} {url} failed: {type(e).__name__}: {e}")
            raise UpstreamError(describe_upstream_error(e)) from e

        async def close_upstream() -> None:
            await upstream.aclose()
            await client.aclose()

        response = StreamingResponse(
            _stream_body(upstream, url, deadline, close_upstream),
            status_code=upstream.status_code,
            background=BackgroundTask(close_upstream),
        )
        response.raw_headers = filter_response_headers(upstream.headers.raw)
        return response


proxy_gateway = ProxyGateway()
