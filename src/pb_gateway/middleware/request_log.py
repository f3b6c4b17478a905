"""Request logging middleware.

Every request gets a correlation id: the caller's X-Request-ID when it sends
one, otherwise a fresh ``req_<12 hex>``. The id is put on request.state (the
routers copy it into ApiResponse.request_id) and echoed back in the
X-Request-ID response header.

Log format:
    INFO [POST] /api/v1/markets/abc/bets → 201 (4ms) req_a1b2c3d4e5f6
Server errors (5xx) are logged at WARNING.
"""

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("pb.request")

REQUEST_ID_HEADER = "X-Request-ID"
_MAX_INBOUND_ID = 64


def _request_id(request: Request) -> str:
    inbound = request.headers.get(REQUEST_ID_HEADER, "").strip()
    if inbound and len(inbound) <= _MAX_INBOUND_ID:
        return inbound
    return f"req_{uuid.uuid4().hex[:12]}"


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = _request_id(request)
        request.state.request_id = request_id

        start = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        response.headers[REQUEST_ID_HEADER] = request_id

        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "[%s] %s → %d (%.0fms) %s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            request_id,
        )
        return response
