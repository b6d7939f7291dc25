"""Ephemera Core Store -- SQLite 持久化实现

提供工厂函数创建共享数据库连接的 Store 实例组。
"""

from collections.abc import Callable
from datetime import datetime
from pathlib import Path

import aiosqlite

from ..exceptions import StorageError
from .message_store import SqliteMessageStore, format_ts, utc_now
from .protocols import MessageStore
from .sqlite_init import init_db, verify_wal_mode


class StoreGroup:
    """Store 实例组 -- 共享同一个数据库连接"""

    def __init__(
        self,
        conn: aiosqlite.Connection,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.conn = conn
        self.clock = clock
        self.message_store = SqliteMessageStore(conn, clock=clock)


async def create_store_group(
    db_path: str,
    clock: Callable[[], datetime] = utc_now,
) -> StoreGroup:
    """创建 Store 实例组

    连接以 autocommit 模式打开，并执行一次连通性探测；
    存储不可用时直接抛出，调用方不应继续对外服务。

    Args:
        db_path: SQLite 数据库文件路径
        clock: 时钟函数（测试可注入固定时钟）

    Returns:
        StoreGroup 实例

    Raises:
        StorageError: 数据库无法打开或初始化
    """
    try:
        # 确保数据库目录存在
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        conn = await aiosqlite.connect(db_path, isolation_level=None)
    except (OSError, aiosqlite.Error) as e:
        raise StorageError("connect", e) from e

    try:
        await init_db(conn)
        cursor = await conn.execute("SELECT 1")
        await cursor.fetchone()
    except aiosqlite.Error as e:
        await conn.close()
        raise StorageError("init_db", e) from e

    return StoreGroup(conn=conn, clock=clock)


__all__ = [
    "StoreGroup",
    "create_store_group",
    "MessageStore",
    "SqliteMessageStore",
    "format_ts",
    "utc_now",
    "init_db",
    "verify_wal_mode",
]
