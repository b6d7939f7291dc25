"""TraceMiddleware -- 单条消息操作的日志关联

从 /api/messages/{message_id} 路径提取 message_id 绑定到 structlog contextvars。
"""

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# ULID 长度
_MESSAGE_ID_LENGTH = 26


class TraceMiddleware(BaseHTTPMiddleware):
    """消息级追踪中间件 -- 为单条消息操作绑定 message_id"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        parts = request.url.path.strip("/").split("/")

        # api / messages / {message_id}
        if len(parts) == 3 and parts[:2] == ["api", "messages"]:
            message_id = parts[2]
            if len(message_id) == _MESSAGE_ID_LENGTH:
                structlog.contextvars.bind_contextvars(message_id=message_id)

        return await call_next(request)
