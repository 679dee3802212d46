"""Request context middleware: request id, timing, one summary line.

Concurrent requests share a thread under asyncio, so the request id lives
in a ContextVar (changemaker/core/logging.py) rather than a thread-local.
Every log line emitted while handling the request carries it, together
with the acting user and workspace once the access guard has resolved
them.
"""

from __future__ import annotations

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from changemaker.core.logging import request_id_var, user_id_var, workspace_id_var

logger = logging.getLogger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Assign a request id, time the request, log completion.

    Honors an incoming X-Request-ID and echoes the id back on the response.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        req_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request_id_var.set(req_id)
        # Filled in by the access guard for authenticated requests.
        user_id_var.set("-")
        workspace_id_var.set("-")

        start = time.monotonic()
        response = await call_next(request)
        duration_ms = round((time.monotonic() - start) * 1000, 1)

        logger.info(
            "%s %s -> %d (%.1fms)",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )

        response.headers["X-Request-ID"] = req_id
        return response
