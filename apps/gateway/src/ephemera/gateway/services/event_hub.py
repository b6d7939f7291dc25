"""EventHub -- 内存中事件广播器

每个订阅者持有一个 asyncio.Queue，支持 subscribe/unsubscribe/publish。
只向发布时已连接的订阅者投递，不回放历史；新连接通过最近消息查询获取当前状态。
"""

import asyncio
import contextlib
from datetime import UTC, datetime
from typing import Any

import structlog
from ephemera.core.config import HUB_QUEUE_MAXSIZE
from ephemera.core.exceptions import BroadcastError
from ephemera.core.models import EventKind, HubEvent
from ulid import ULID

log = structlog.get_logger()


class EventHub:
    """事件广播器 -- 基于 asyncio.Queue 的发布/订阅模式

    同一订阅者按发布顺序接收事件。队列写满的订阅者被移除，
    close() 后向所有订阅者投递 None 作为结束信号。
    """

    def __init__(self, queue_maxsize: int = HUB_QUEUE_MAXSIZE) -> None:
        self._subscribers: set[asyncio.Queue] = set()
        self._queue_maxsize = queue_maxsize
        self._closed = False

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    @property
    def closed(self) -> bool:
        return self._closed

    async def subscribe(self) -> asyncio.Queue:
        """订阅事件流

        Returns:
            asyncio.Queue 实例，新事件会被推送到此队列

        Raises:
            BroadcastError: 广播器已关闭
        """
        if self._closed:
            raise BroadcastError("event hub is closed")
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._queue_maxsize)
        self._subscribers.add(queue)
        return queue

    async def unsubscribe(self, queue: asyncio.Queue) -> None:
        """取消订阅（重复调用无副作用）"""
        self._subscribers.discard(queue)

    def is_subscribed(self, queue: asyncio.Queue) -> bool:
        """订阅是否仍有效（写满被移除后返回 False）"""
        return queue in self._subscribers

    async def publish(
        self,
        kind: EventKind,
        payload: dict[str, Any],
        exclude: asyncio.Queue | None = None,
    ) -> HubEvent:
        """向所有订阅者广播事件

        Args:
            kind: 事件类型
            payload: JSON 兼容 payload
            exclude: 不投递的订阅者（如输入状态事件的发起方）

        Returns:
            已发布的 HubEvent

        Raises:
            BroadcastError: 广播器已关闭
        """
        if self._closed:
            raise BroadcastError(f"event hub is closed, dropping {kind}")

        event = HubEvent(
            event_id=str(ULID()),
            kind=kind,
            ts=datetime.now(UTC),
            payload=payload,
        )

        dead_queues = []
        for queue in self._subscribers:
            if queue is exclude:
                continue
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                dead_queues.append(queue)

        # 清理已满的队列
        for q in dead_queues:
            self._subscribers.discard(q)
        if dead_queues:
            log.warning(
                "slow_subscribers_dropped",
                dropped=len(dead_queues),
                event_kind=kind.value,
            )

        return event

    async def close(self) -> None:
        """关闭广播器，唤醒所有订阅者结束推送"""
        self._closed = True
        for queue in self._subscribers:
            # 队列已满的订阅者由心跳检查 is_subscribed 发现
            with contextlib.suppress(asyncio.QueueFull):
                queue.put_nowait(None)
        self._subscribers.clear()
