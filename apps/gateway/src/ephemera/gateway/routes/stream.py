"""SSE 事件流路由 -- 只读订阅入口

GET /api/stream: 实时推送 newMessage / messageDeleted / userTyping 事件。
不推送历史，客户端连接后应通过 GET /api/messages 获取当前状态。
"""

import asyncio
import json

from ephemera.core.config import SSE_HEARTBEAT_INTERVAL
from ephemera.core.exceptions import BroadcastError
from ephemera.core.models import HubEvent
from fastapi import APIRouter, Depends
from sse_starlette.sse import EventSourceResponse

from ..deps import get_event_hub
from .messages import error_response

router = APIRouter()


def _event_to_sse(event: HubEvent) -> dict:
    """将 HubEvent 转换为 SSE 帧"""
    return {
        "id": event.event_id,
        "event": event.kind.value,
        "data": json.dumps(event.payload, ensure_ascii=False),
    }


@router.get("/api/stream")
async def stream_events(
    event_hub=Depends(get_event_hub),
):
    """SSE 事件流端点

    1. 注册到 EventHub
    2. 实时推送新事件
    3. 心跳保活；订阅因积压被移除或广播器关闭时结束流
    """
    try:
        queue = await event_hub.subscribe()
    except BroadcastError as e:
        # 服务正在关闭
        return error_response(503, e)

    async def event_generator():
        try:
            while True:
                try:
                    event = await asyncio.wait_for(
                        queue.get(), timeout=SSE_HEARTBEAT_INTERVAL
                    )
                except TimeoutError:
                    if not event_hub.is_subscribed(queue):
                        return
                    yield {"comment": "heartbeat"}
                    continue
                if event is None:
                    return
                yield _event_to_sse(event)
        finally:
            await event_hub.unsubscribe(queue)

    return EventSourceResponse(event_generator())
