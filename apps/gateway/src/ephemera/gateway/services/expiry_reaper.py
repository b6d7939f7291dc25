"""ExpiryReaper -- 后台定时清理过期消息

存储层原生过期只保证数据消失，不会通知在线订阅者；
清理任务的作用是主动删除过期消息并逐条广播 messageDeleted。
每轮独立执行：失败只记录日志，不补跑、不积压。
"""

import asyncio
import contextlib

import structlog
from ephemera.core.config import DEFAULT_REAPER_INTERVAL_S
from ephemera.core.models import EventKind, MessageDeletedPayload
from ephemera.core.store import MessageStore, StoreGroup

from .event_hub import EventHub

log = structlog.get_logger()


class ExpiryReaper:
    """过期消息清理任务"""

    def __init__(
        self,
        store_group: StoreGroup,
        event_hub: EventHub | None = None,
        interval_s: float = DEFAULT_REAPER_INTERVAL_S,
    ) -> None:
        self._store: MessageStore = store_group.message_store
        self._event_hub = event_hub
        self._interval_s = interval_s
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def tick(self) -> list[str]:
        """执行一轮清理

        Returns:
            本轮实际删除的 message_id 列表；存储失败时为空列表
        """
        try:
            removed = await self._store.delete_expired(self._store.now())
        except Exception as e:
            log.error(
                "reaper_tick_failed",
                error_type=type(e).__name__,
                error=str(e),
            )
            return []

        if removed:
            log.info("expired_messages_reaped", count=len(removed))

        for message_id in removed:
            if self._event_hub is None:
                break
            try:
                await self._event_hub.publish(
                    EventKind.MESSAGE_DELETED,
                    MessageDeletedPayload(id=message_id).to_wire(),
                )
            except Exception as e:
                log.error(
                    "broadcast_failed",
                    event_kind=EventKind.MESSAGE_DELETED.value,
                    message_id=message_id,
                    error_type=type(e).__name__,
                    error=str(e),
                )
        return removed

    async def run(self) -> None:
        """按固定间隔循环执行，首轮在一个间隔之后"""
        while True:
            await asyncio.sleep(self._interval_s)
            await self.tick()

    def start(self) -> None:
        """启动后台任务（重复调用无副作用）"""
        if self.running:
            return
        self._task = asyncio.create_task(self.run(), name="expiry-reaper")
        log.info("expiry_reaper_started", interval_s=self._interval_s)

    async def stop(self) -> None:
        """停止后台任务"""
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        log.info("expiry_reaper_stopped")
