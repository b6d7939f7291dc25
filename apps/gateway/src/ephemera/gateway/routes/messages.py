"""消息路由 -- REST 入口

GET    /api/messages: 最近未过期消息（正序，最多 50 条）
POST   /api/messages: 创建消息
GET    /api/messages/{message_id}: 查询单条消息（404 不存在 / 410 已过期）
DELETE /api/messages/{message_id}: 删除消息（幂等）
"""

import structlog
from ephemera.core.exceptions import (
    EphemeraError,
    ExpiredError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from ephemera.core.models import MessageRequest
from fastapi import APIRouter, Depends
from starlette.responses import JSONResponse

from ..deps import get_event_hub, get_store_group
from ..services.message_service import MessageService

log = structlog.get_logger()

router = APIRouter()


def error_response(status_code: int, error: EphemeraError, **extra) -> JSONResponse:
    """统一错误响应体"""
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "code": error.code,
                "message": error.message,
                **extra,
            }
        },
    )


def storage_failure(action: str, error: StorageError) -> JSONResponse:
    """存储失败：记录细节，对外只返回概要"""
    log.error(
        "storage_operation_failed",
        operation=error.operation,
        error_type=type(error.original_error).__name__,
        error=str(error.original_error),
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": error.code,
                "message": f"Failed to {action}",
            }
        },
    )


@router.get("/api/messages")
async def list_messages(
    store_group=Depends(get_store_group),
):
    """查询最近未过期消息，按创建时间正序"""
    service = MessageService(store_group)
    try:
        messages = await service.list_recent()
    except StorageError as e:
        return storage_failure("fetch messages", e)

    return {
        "count": len(messages),
        "messages": [m.to_wire() for m in messages],
    }


@router.post("/api/messages")
async def create_message(
    body: MessageRequest,
    store_group=Depends(get_store_group),
    event_hub=Depends(get_event_hub),
):
    """创建消息

    - 成功返回 201 + 投递形态的消息
    - 校验失败返回 400，附违反的规则
    - 存储失败返回 500
    """
    service = MessageService(store_group, event_hub)
    try:
        message = await service.ingest(body, channel="rest")
    except ValidationError as e:
        return error_response(400, e, rule=e.rule)
    except StorageError as e:
        return storage_failure("save message", e)

    return JSONResponse(status_code=201, content={"message": message.to_wire()})


@router.get("/api/messages/{message_id}")
async def get_message(
    message_id: str,
    store_group=Depends(get_store_group),
):
    """查询单条消息"""
    service = MessageService(store_group)
    try:
        message = await service.get_message(message_id)
    except NotFoundError as e:
        return error_response(404, e)
    except ExpiredError as e:
        return error_response(410, e)
    except StorageError as e:
        return storage_failure("fetch message", e)

    return {"message": message.to_wire()}


@router.delete("/api/messages/{message_id}")
async def delete_message(
    message_id: str,
    store_group=Depends(get_store_group),
    event_hub=Depends(get_event_hub),
):
    """删除消息 -- 已不存在的消息同样返回 200（deleted=false）"""
    service = MessageService(store_group, event_hub)
    try:
        deleted = await service.delete_message(message_id)
    except StorageError as e:
        return storage_failure("delete message", e)

    return {"id": message_id, "deleted": deleted}
