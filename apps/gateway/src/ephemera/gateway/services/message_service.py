"""MessageService -- 消息写入/查询/删除业务逻辑

REST 与 WebSocket 两条入口共用同一条写入管线：
1. 校验并补全默认值
2. 附件编码为持久化形态
3. 写入存储（分配 id / created_at / expires_at）
4. 广播投递形态的 newMessage 事件

步骤 3 之前的任何失败都不产生副作用；写入成功后广播失败只记录日志，
不回滚、不重试，订阅者可通过最近消息查询恢复状态。
"""

from typing import Any

import structlog
from ephemera.core.codec import encode_attachment, to_deliverable
from ephemera.core.config import RECENT_MESSAGES_LIMIT
from ephemera.core.exceptions import ExpiredError, NotFoundError
from ephemera.core.models import (
    DeliverableMessage,
    EventKind,
    MessageDeletedPayload,
    MessageDraft,
    MessageRequest,
)
from ephemera.core.store import MessageStore, StoreGroup
from ephemera.core.validation import validate_message

from .event_hub import EventHub

log = structlog.get_logger()


class MessageService:
    """消息业务服务"""

    def __init__(self, store_group: StoreGroup, event_hub: EventHub | None = None) -> None:
        self._store: MessageStore = store_group.message_store
        self._event_hub = event_hub

    async def ingest(
        self,
        request: MessageRequest,
        channel: str = "rest",
    ) -> DeliverableMessage:
        """写入管线入口

        Args:
            request: 入站消息请求
            channel: 入口标识（rest / websocket），仅用于日志

        Returns:
            已落盘消息的投递形态

        Raises:
            ValidationError: 校验失败（未落盘、未广播）
            StorageError: 写入失败（未广播）
        """
        candidate = validate_message(request)
        draft = MessageDraft(
            text=candidate.text,
            sender=candidate.sender,
            attachments=[encode_attachment(a) for a in candidate.attachments],
        )

        message = await self._store.insert(draft)
        deliverable = to_deliverable(message)

        log.info(
            "message_created",
            message_id=message.message_id,
            sender=message.sender.value,
            attachment_count=len(message.attachments),
            channel=channel,
        )

        await self._notify(EventKind.MESSAGE_CREATED, deliverable.to_wire())
        return deliverable

    async def get_message(self, message_id: str) -> DeliverableMessage:
        """查询单条消息

        Raises:
            NotFoundError: 消息不存在
            ExpiredError: 消息已过期但尚未被物理删除
        """
        message = await self._store.get_by_id(message_id)
        if message is None:
            raise NotFoundError(message_id)
        if self._store.now() >= message.expires_at:
            raise ExpiredError(message_id)
        return to_deliverable(message)

    async def delete_message(self, message_id: str) -> bool:
        """删除消息（幂等）

        Returns:
            True 表示本次确有记录被删除，此时广播 messageDeleted
        """
        removed = await self._store.delete_by_id(message_id)
        if removed:
            log.info("message_deleted", message_id=message_id, reason="explicit")
            await self._notify(
                EventKind.MESSAGE_DELETED,
                MessageDeletedPayload(id=message_id).to_wire(),
            )
        return removed

    async def list_recent(
        self,
        limit: int = RECENT_MESSAGES_LIMIT,
    ) -> list[DeliverableMessage]:
        """查询最近未过期消息，按创建时间正序"""
        messages = await self._store.list_recent(limit)
        return [to_deliverable(m) for m in messages]

    async def _notify(self, kind: EventKind, payload: dict[str, Any]) -> None:
        """广播事件，失败只记录日志"""
        if self._event_hub is None:
            return
        try:
            await self._event_hub.publish(kind, payload)
        except Exception as e:
            log.error(
                "broadcast_failed",
                event_kind=kind.value,
                error_type=type(e).__name__,
                error=str(e),
            )
