import time
import uuid
import logging
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from moviehub_api.core.trace import set_trace_id, set_user_id

alog = logging.getLogger("access")

TRACE_HEADER = "X-Request-Id"
# health checks hit these every few seconds
QUIET_PATHS = frozenset({"/health"})


def _access_record(request: Request, status: int, started: float) -> dict:
    return {
        "method": request.method,
        "path": request.url.path,
        "query": request.url.query or "",
        "status": status,
        "latency_ms": int((time.perf_counter() - started) * 1000),
        "client_ip": request.client.host if request.client else None,
    }


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind a trace id to the request and write one access record."""

    async def dispatch(self, request: Request, call_next):
        trace_id = request.headers.get(TRACE_HEADER) or uuid.uuid4().hex
        set_trace_id(trace_id)
        set_user_id("-")
        started = time.perf_counter()
        status = 500
        try:
            response = await call_next(request)
            status = response.status_code
            response.headers[TRACE_HEADER] = trace_id
            return response
        finally:
            level = (logging.DEBUG if request.url.path in QUIET_PATHS
                     and status < 400 else logging.INFO)
            alog.log(level, "access",
                     extra=_access_record(request, status, started))
