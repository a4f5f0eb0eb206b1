import time
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from indexing_gateway.main.config import get_settings
from indexing_gateway.main.logging import get_logger
from indexing_gateway.main.request_context import request_context

logger = get_logger(__name__)

CORRELATION_ID_HEADER = "X-Correlation-ID"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Binds a correlation id to the request's log context and writes the access log."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        correlation_id = request.headers.get(CORRELATION_ID_HEADER) or uuid4().hex

        with request_context(
            correlation_id=correlation_id,
            method=request.method,
            path=request.url.path,
        ):
            started = time.perf_counter()
            response = await call_next(request)
            latency_ms = round((time.perf_counter() - started) * 1000, 2)

            if get_settings().enable_request_logging:
                logger.info(
                    f"{request.method} {request.url.path} {response.status_code}",
                    extra={
                        "status_code": response.status_code,
                        "client_ip": request.client.host if request.client else "unknown",
                        "user_agent": request.headers.get("user-agent", ""),
                        "latency_ms": latency_ms,
                    },
                )

        response.headers[CORRELATION_ID_HEADER] = correlation_id
        return response
