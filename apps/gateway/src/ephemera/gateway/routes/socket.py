"""WebSocket 路由 -- 双向推送入口

WS /ws，帧格式 {"event": <name>, "data": <payload>}。

客户端 -> 服务端：
- sendMessage: 与 POST /api/messages 相同的请求体，走同一条写入管线
- typingStart / typingStop: 输入状态，透传给其他连接，不落盘

服务端 -> 客户端：
- connected: 连接建立确认
- newMessage / messageDeleted: EventHub 广播（包括发送方自己）
- userTyping: 其他连接的输入状态
- error: 校验或存储失败的可读描述
"""

import asyncio
import contextlib
import json
from datetime import UTC, datetime
from typing import Any

import structlog
from ephemera.core.config import SSE_HEARTBEAT_INTERVAL
from ephemera.core.exceptions import BroadcastError, StorageError, ValidationError
from ephemera.core.models import (
    ClientEvent,
    ConnectedPayload,
    ErrorPayload,
    EventKind,
    MessageRequest,
    TypingPayload,
)
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from pydantic import ValidationError as PydanticValidationError
from ulid import ULID

from ..deps import get_event_hub, get_store_group
from ..services.event_hub import EventHub
from ..services.message_service import MessageService

log = structlog.get_logger()

router = APIRouter()

# 服务端关闭连接使用的 close code
_CLOSE_GOING_AWAY = 1001
_CLOSE_TRY_AGAIN_LATER = 1013


async def _send(websocket: WebSocket, event: str, data: dict[str, Any]) -> None:
    await websocket.send_json({"event": event, "data": data})


async def _send_error(websocket: WebSocket, payload: ErrorPayload) -> None:
    await _send(websocket, EventKind.ERROR.value, payload.to_wire())


async def _receive_frame(websocket: WebSocket) -> str:
    """接收一帧文本，二进制帧按 UTF-8 解码"""
    message = await websocket.receive()
    if message["type"] == "websocket.disconnect":
        raise WebSocketDisconnect(message.get("code", 1000))
    if message.get("text") is not None:
        return message["text"]
    return (message.get("bytes") or b"").decode("utf-8", errors="replace")


async def _forward_events(
    websocket: WebSocket,
    event_hub: EventHub,
    queue: asyncio.Queue,
    connection_id: str,
) -> None:
    """将 EventHub 事件按发布顺序转发到当前连接"""
    try:
        while True:
            try:
                event = await asyncio.wait_for(
                    queue.get(), timeout=SSE_HEARTBEAT_INTERVAL
                )
            except TimeoutError:
                if not event_hub.is_subscribed(queue):
                    # 积压被移除：关闭连接，由客户端重连后重新拉取
                    await websocket.close(code=_CLOSE_TRY_AGAIN_LATER)
                    return
                continue
            if event is None:
                await websocket.close(code=_CLOSE_GOING_AWAY)
                return
            await _send(websocket, event.kind.value, event.payload)
    except (WebSocketDisconnect, RuntimeError) as e:
        # 连接已断开，接收循环会负责清理
        log.debug(
            "websocket_forward_stopped",
            connection_id=connection_id,
            error_type=type(e).__name__,
        )


async def _handle_send_message(
    websocket: WebSocket,
    service: MessageService,
    data: Any,
) -> None:
    try:
        request = MessageRequest.model_validate(data if data is not None else {})
    except PydanticValidationError as e:
        await _send_error(
            websocket,
            ErrorPayload(
                message="Invalid message payload",
                error=str(e.errors()[0]["msg"]) if e.errors() else "",
                code=ValidationError.code,
            ),
        )
        return

    try:
        await service.ingest(request, channel="websocket")
    except ValidationError as e:
        await _send_error(
            websocket,
            ErrorPayload(message=e.message, error=e.rule, code=e.code),
        )
    except StorageError as e:
        log.error(
            "storage_operation_failed",
            operation=e.operation,
            error_type=type(e.original_error).__name__,
            error=str(e.original_error),
        )
        await _send_error(
            websocket,
            ErrorPayload(
                message="Failed to send message",
                error="storage unavailable",
                code=e.code,
            ),
        )


async def _handle_typing(
    event_hub: EventHub,
    queue: asyncio.Queue,
    data: Any,
    is_typing: bool,
) -> None:
    sender = data.get("sender") if isinstance(data, dict) else None
    try:
        await event_hub.publish(
            EventKind.USER_TYPING,
            TypingPayload(
                sender=sender if isinstance(sender, str) else None,
                is_typing=is_typing,
            ).to_wire(),
            exclude=queue,
        )
    except BroadcastError as e:
        log.debug("typing_dropped", reason=e.message)


@router.websocket("/ws")
async def message_socket(
    websocket: WebSocket,
    store_group=Depends(get_store_group),
    event_hub=Depends(get_event_hub),
):
    """WebSocket 会话：订阅广播 + 处理上行事件"""
    await websocket.accept()
    try:
        queue = await event_hub.subscribe()
    except BroadcastError as e:
        # 服务正在关闭
        await _send_error(
            websocket,
            ErrorPayload(message="Server is shutting down", error=e.message, code=e.code),
        )
        await websocket.close(code=_CLOSE_GOING_AWAY)
        return

    connection_id = str(ULID())
    structlog.contextvars.bind_contextvars(connection_id=connection_id)
    log.info("websocket_connected", subscribers=event_hub.subscriber_count)
    service = MessageService(store_group, event_hub)
    forwarder: asyncio.Task | None = None

    try:
        # connected 必须是连接收到的第一帧，之后才开始转发广播
        await _send(
            websocket,
            EventKind.CONNECTED.value,
            ConnectedPayload(
                timestamp=datetime.now(UTC),
                connection_id=connection_id,
            ).to_wire(),
        )
        forwarder = asyncio.create_task(
            _forward_events(websocket, event_hub, queue, connection_id)
        )

        while True:
            raw = await _receive_frame(websocket)
            try:
                frame = json.loads(raw)
            except ValueError:
                frame = None
            if not isinstance(frame, dict) or not isinstance(frame.get("event"), str):
                await _send_error(
                    websocket,
                    ErrorPayload(
                        message='Invalid frame: expected {"event": ..., "data": ...}',
                        code=ValidationError.code,
                    ),
                )
                continue

            event_name = frame["event"]
            data = frame.get("data")

            if event_name == ClientEvent.SEND_MESSAGE:
                await _handle_send_message(websocket, service, data)
            elif event_name == ClientEvent.TYPING_START:
                await _handle_typing(event_hub, queue, data, is_typing=True)
            elif event_name == ClientEvent.TYPING_STOP:
                await _handle_typing(event_hub, queue, data, is_typing=False)
            else:
                await _send_error(
                    websocket,
                    ErrorPayload(
                        message=f"Unknown event: {event_name}",
                        code=ValidationError.code,
                    ),
                )
    except WebSocketDisconnect as e:
        log.info("websocket_disconnected", code=e.code)
    finally:
        if forwarder is not None:
            forwarder.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await forwarder
        await event_hub.unsubscribe(queue)
        structlog.contextvars.unbind_contextvars("connection_id")
