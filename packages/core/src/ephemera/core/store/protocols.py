"""Store Protocol 接口定义

使用 Python Protocol 实现结构化子类型（duck typing），
服务层只依赖此接口，便于替换存储实现。
"""

from datetime import datetime
from typing import Protocol

from ..models import Message, MessageDraft


class MessageStore(Protocol):
    """Message 存储接口

    所有读写操作须容忍记录在检查与使用之间消失。
    """

    def now(self) -> datetime:
        """存储使用的当前时间"""
        ...

    async def insert(self, draft: MessageDraft) -> Message:
        """写入消息并分配 id / created_at / expires_at"""
        ...

    async def get_by_id(self, message_id: str) -> Message | None:
        """根据 message_id 查询消息"""
        ...

    async def delete_by_id(self, message_id: str) -> bool:
        """删除消息，返回是否确有记录被删除"""
        ...

    async def delete_expired(self, before: datetime) -> list[str]:
        """批量删除 expires_at < before 的消息，返回被删除的 id"""
        ...

    async def count_by_expiry(self, now: datetime) -> dict[str, int]:
        """统计未过期 / 已过期消息数量"""
        ...

    async def list_recent(self, limit: int) -> list[Message]:
        """查询未过期的最近消息，按创建时间正序"""
        ...
