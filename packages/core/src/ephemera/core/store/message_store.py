"""MessageStore SQLite 实现

连接以 autocommit 模式打开：每条语句即一个原子事务，
不同协程的写入互不卷入对方的事务，无需进程内锁。

记录可能在任意两次调用之间因删除或过期而消失，
读操作对此一律返回 None / 空结果，而不是抛错。
"""

import json
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import aiosqlite
from ulid import ULID

from ..config import MESSAGE_RETENTION
from ..exceptions import StorageError
from ..models import Message, MessageDraft, Sender, StoredAttachment

# aiosqlite 在连接关闭后抛 ValueError；行数据损坏时 json/pydantic 也抛 ValueError 子类
_STORE_ERRORS = (aiosqlite.Error, ValueError)

_COLUMNS = (
    "message_id, text, sender, created_at, is_attachment_message, attachments, expires_at"
)


def utc_now() -> datetime:
    """默认时钟"""
    return datetime.now(UTC)


def format_ts(ts: datetime) -> str:
    """统一为 UTC + 微秒精度的 ISO 字符串，保证字典序即时间序"""
    return ts.astimezone(UTC).isoformat(timespec="microseconds")


class SqliteMessageStore:
    """MessageStore 的 SQLite 实现"""

    def __init__(
        self,
        conn: aiosqlite.Connection,
        clock: Callable[[], datetime] = utc_now,
        retention: timedelta = MESSAGE_RETENTION,
    ) -> None:
        self._conn = conn
        self._clock = clock
        self._retention = retention

    def now(self) -> datetime:
        """当前时间（与写入 created_at 使用同一时钟）"""
        return self._clock()

    async def insert(self, draft: MessageDraft) -> Message:
        """写入消息，分配 message_id / created_at / expires_at

        返回后记录对 get_by_id / list_recent 立即可见。

        Raises:
            StorageError: 写入失败
        """
        created_at = self._clock()
        message = Message(
            message_id=str(ULID()),
            text=draft.text,
            sender=draft.sender,
            created_at=created_at,
            is_attachment_message=bool(draft.attachments),
            attachments=draft.attachments,
            expires_at=created_at + self._retention,
        )
        attachments_json = json.dumps(
            [a.model_dump() for a in message.attachments],
            ensure_ascii=False,
        )
        try:
            await self._conn.execute(
                f"""
                INSERT INTO messages ({_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    message.message_id,
                    message.text,
                    message.sender.value,
                    format_ts(message.created_at),
                    int(message.is_attachment_message),
                    attachments_json,
                    format_ts(message.expires_at),
                ),
            )
        except _STORE_ERRORS as e:
            raise StorageError("insert", e) from e
        return message

    async def get_by_id(self, message_id: str) -> Message | None:
        """根据 message_id 查询消息（不过滤过期，由调用方区分过期与不存在）"""
        try:
            rows = await self._conn.execute_fetchall(
                f"SELECT {_COLUMNS} FROM messages WHERE message_id = ?",
                (message_id,),
            )
            rows = list(rows)
            if not rows:
                return None
            return self._row_to_message(rows[0])
        except _STORE_ERRORS as e:
            raise StorageError("get_by_id", e) from e

    async def delete_by_id(self, message_id: str) -> bool:
        """删除消息

        Returns:
            True 表示确有记录被删除；记录已不存在返回 False（不是错误）
        """
        try:
            cursor = await self._conn.execute(
                "DELETE FROM messages WHERE message_id = ?",
                (message_id,),
            )
        except _STORE_ERRORS as e:
            raise StorageError("delete_by_id", e) from e
        return cursor.rowcount > 0

    async def delete_expired(self, before: datetime) -> list[str]:
        """单条语句批量删除 expires_at < before 的消息

        Returns:
            实际被删除的 message_id 列表（长度即删除条数）
        """
        try:
            rows = await self._conn.execute_fetchall(
                "DELETE FROM messages WHERE expires_at < ? RETURNING message_id",
                (format_ts(before),),
            )
        except _STORE_ERRORS as e:
            raise StorageError("delete_expired", e) from e
        return [row[0] for row in rows]

    async def count_by_expiry(self, now: datetime) -> dict[str, int]:
        """按是否过期统计消息数量（运维用）"""
        try:
            rows = await self._conn.execute_fetchall(
                """
                SELECT
                    COALESCE(SUM(expires_at > ?), 0),
                    COALESCE(SUM(expires_at <= ?), 0)
                FROM messages
                """,
                (format_ts(now), format_ts(now)),
            )
        except _STORE_ERRORS as e:
            raise StorageError("count_by_expiry", e) from e
        live, expired = next(iter(rows))
        return {"live": live, "expired": expired}

    async def list_recent(self, limit: int) -> list[Message]:
        """查询未过期的最近 limit 条消息，按创建时间正序返回"""
        now = format_ts(self._clock())
        try:
            rows = await self._conn.execute_fetchall(
                f"""
                SELECT {_COLUMNS} FROM messages
                WHERE expires_at > ?
                ORDER BY created_at DESC, message_id DESC
                LIMIT ?
                """,
                (now, limit),
            )
            messages = [self._row_to_message(row) for row in rows]
        except _STORE_ERRORS as e:
            raise StorageError("list_recent", e) from e
        messages.reverse()
        return messages

    @staticmethod
    def _row_to_message(row) -> Message:
        """将数据库行转换为 Message 模型"""
        attachments_data = json.loads(row[5]) if row[5] else []  # attachments 列
        return Message(
            message_id=row[0],
            text=row[1],
            sender=Sender(row[2]),
            created_at=datetime.fromisoformat(row[3]),
            is_attachment_message=bool(row[4]),
            attachments=[StoredAttachment(**a) for a in attachments_data],
            expires_at=datetime.fromisoformat(row[6]),
        )
