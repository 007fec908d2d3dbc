"""
Rejects structurally invalid request paths before routing.

Runs as plain ASGI middleware so that streamed proxy responses and client
disconnects pass through untouched.
"""

import re
from urllib.parse import unquote_to_bytes

from starlette.responses import PlainTextResponse
from starlette.types import ASGIApp, Receive, Scope, Send

from .errors import BadRequestError
from .logger import logger

_BAD_PERCENT_ESCAPE = re.compile(rb"%(?![0-9A-Fa-f]{2})")


def validate_raw_path(raw_path: bytes) -> bool:
    """Whether a raw request target path is well-formed.

    It must be absolute, use only complete percent escapes and decode to
    UTF-8 text without NUL bytes.
    """
    path = raw_path.split(b"?", 1)[0]
    if not path.startswith(b"/"):
        return False
    if _BAD_PERCENT_ESCAPE.search(path):
        return False
    decoded = unquote_to_bytes(path)
    try:
        text = decoded.decode("utf-8")
    except UnicodeDecodeError:
        return False
    return "\x00" not in text


class RequestPathValidationMiddleware:
    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        raw_path = scope.get("raw_path")
        if raw_path is None:
            raw_path = scope["path"].encode("utf-8", errors="surrogateescape")

        if not validate_raw_path(raw_path):
            logger.info(f"Rejected malformed request path: {raw_path!r}")
            error = BadRequestError()
            response = PlainTextResponse(error.message, status_code=error.status_code)
            await response(scope, receive, send)
            return

        await self.app(scope, receive, send)
