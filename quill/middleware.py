"""Middleware: request IDs, security headers, request-aware logging."""

import logging
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Current request id, read by the log filter
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s [%(request_id)s]: %(message)s"

# Responses with these content types are full pages that the web client
# embeds in an iframe on its own origin.
_EMBEDDABLE_TYPES = ("text/html",)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id, taken from ``X-Request-ID`` or generated.

    The id is set on ``request_id_var`` for the duration of the request and
    returned to the caller in the ``X-Request-ID`` response header.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        token = request_id_var.set(rid)
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        response.headers["X-Request-ID"] = rid
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add standard security headers to every response.

    Served post pages may be framed by the same origin; everything else
    is never framed.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        response = await call_next(request)
        content_type = response.headers.get("content-type", "")
        embeddable = content_type.startswith(_EMBEDDABLE_TYPES)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "SAMEORIGIN" if embeddable else "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response


class RequestIDLogFilter(logging.Filter):
    """Stamp the current request ID onto log records as ``request_id``."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or "-"
        return True


def configure_logging(level: int = logging.INFO) -> None:
    """Root logging with request IDs; safe to call more than once."""
    root = logging.getLogger()
    if any(isinstance(f, RequestIDLogFilter) for h in root.handlers for f in h.filters):
        return
    logging.basicConfig(level=level, format=LOG_FORMAT)
    for handler in root.handlers:
        handler.addFilter(RequestIDLogFilter())
