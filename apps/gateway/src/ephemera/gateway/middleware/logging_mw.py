"""LoggingMiddleware -- 请求级日志

为每个 HTTP 请求生成 request_id 并绑定到 structlog contextvars，
记录耗时与状态码；健康检查探针只记 DEBUG。
WebSocket 连接不经过此中间件，由路由自行绑定 connection_id。
"""

import time

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from ulid import ULID

_PROBE_PATHS = frozenset({"/health", "/ready"})

log = structlog.get_logger()


class LoggingMiddleware(BaseHTTPMiddleware):
    """请求级日志中间件"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = str(ULID())
        path = request.url.path

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=path,
        )

        is_probe = path in _PROBE_PATHS
        started = time.perf_counter()
        if not is_probe:
            await log.ainfo("request_started")

        response = await call_next(request)

        duration_ms = round((time.perf_counter() - started) * 1000, 2)
        if is_probe:
            await log.adebug("request_completed", status_code=response.status_code)
        elif response.status_code >= 500:
            await log.awarning(
                "request_completed",
                status_code=response.status_code,
                duration_ms=duration_ms,
            )
        else:
            await log.ainfo(
                "request_completed",
                status_code=response.status_code,
                duration_ms=duration_ms,
            )

        response.headers["X-Request-ID"] = request_id
        return response
