"""SQLite 数据库初始化

PRAGMA 配置 + messages 表 DDL + 索引 + 原生过期触发器。
使用 aiosqlite 异步操作。
"""

import aiosqlite

from ..models.enums import Sender

_SENDER_VALUES = ", ".join(f"'{s.value}'" for s in Sender)

# messages 表 DDL（附件以 JSON 数组整体存储，删除消息即删除附件）
_MESSAGES_DDL = f"""
CREATE TABLE IF NOT EXISTS messages (
    message_id            TEXT PRIMARY KEY,
    text                  TEXT NOT NULL,
    sender                TEXT NOT NULL CHECK (sender IN ({_SENDER_VALUES})),
    created_at            TEXT NOT NULL,
    is_attachment_message INTEGER NOT NULL DEFAULT 0,
    attachments           TEXT NOT NULL DEFAULT '[]',
    expires_at            TEXT NOT NULL
);
"""

_MESSAGES_INDEXES = [
    # 过期清理与原生过期的范围删除
    "CREATE INDEX IF NOT EXISTS idx_messages_expires_at ON messages(expires_at);",
    # 最近消息查询
    "CREATE INDEX IF NOT EXISTS idx_messages_created_at ON messages(created_at DESC);",
]

# 存储层原生过期：每次写入时顺带清除已过期记录，不产生删除广播
_NATIVE_TTL_TRIGGER = """
CREATE TRIGGER IF NOT EXISTS trg_messages_native_ttl
AFTER INSERT ON messages
BEGIN
    DELETE FROM messages WHERE expires_at < NEW.created_at;
END;
"""


async def init_db(conn: aiosqlite.Connection) -> None:
    """初始化数据库：设置 PRAGMA + 创建表 + 创建索引 + 创建触发器

    Args:
        conn: aiosqlite 数据库连接
    """
    # 设置 PRAGMA
    await conn.execute("PRAGMA journal_mode = WAL;")
    await conn.execute("PRAGMA busy_timeout = 5000;")

    # 创建表
    await conn.execute(_MESSAGES_DDL)

    # 创建索引
    for idx_sql in _MESSAGES_INDEXES:
        await conn.execute(idx_sql)

    await conn.execute(_NATIVE_TTL_TRIGGER)

    await conn.commit()


async def verify_wal_mode(conn: aiosqlite.Connection) -> bool:
    """验证 WAL 模式是否生效

    Returns:
        True 如果 WAL 模式已启用
    """
    cursor = await conn.execute("PRAGMA journal_mode;")
    row = await cursor.fetchone()
    return row is not None and row[0].lower() == "wal"
