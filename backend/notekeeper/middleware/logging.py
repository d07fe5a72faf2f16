"""
NoteKeeper — Request Logging Middleware
=======================================

What:  One access log line per request: method, path, status, duration,
       request ID, client IP and, once known, the signed-in user.
Level: 5xx → ERROR, 4xx → WARNING, everything else → INFO.

Not logged: request bodies (note text, image bytes), cookies, tokens.
/health and the local /files/ blobs are skipped; both are polled far more
often than they are interesting.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from notekeeper.middleware.request_id import request_id_var

logger = logging.getLogger("notekeeper.access")

QUIET_PREFIXES = ("/health", "/files/")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs each HTTP request with its outcome and timing."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path.startswith(QUIET_PREFIXES):
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"
        method = request.method
        rid = request_id_var.get("")

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        # Set by AuthenticatorMiddleware, which runs inside this one
        session = getattr(request.state, "user_session", None)
        username = session.username if session else "-"

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] %s from %s",
            method,
            path,
            status,
            duration_ms,
            rid,
            username,
            client_ip,
            extra={
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
                "username": username,
            },
        )

        return response
