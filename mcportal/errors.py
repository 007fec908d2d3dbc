"""
Error taxonomy for the request gateway.

Every error carries the HTTP status it maps to and a short, user-safe
message. Components raise these at their boundary instead of leaking
OSError or httpx errors to the routes.
"""

from fastapi import Request
from fastapi.responses import PlainTextResponse


class PortalError(Exception):
    status_code: int = 500
    default_message: str = "Internal Server Error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class BadRequestError(PortalError):
    status_code = 400
    default_message = "Bad Request"


class ForbiddenError(PortalError):
    status_code = 403
    default_message = "Access denied"


class NotFoundError(PortalError):
    status_code = 404
    default_message = "Not found"


class UpstreamError(PortalError):
    status_code = 502
    default_message = "Proxy error: upstream request failed"


async def portal_error_handler(request: Request, exc: PortalError) -> PlainTextResponse:
    return PlainTextResponse(exc.message, status_code=exc.status_code)
