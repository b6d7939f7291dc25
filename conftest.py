"""全局 pytest 配置 -- 临时 SQLite 数据库 fixture + 可控时钟"""

from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta
from pathlib import Path

import aiosqlite
import pytest
import pytest_asyncio


class FakeClock:
    """可手动推进的时钟，注入 Store 以测试过期行为"""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current = self.current + timedelta(**kwargs)


@pytest.fixture
def fake_clock() -> FakeClock:
    """提供可推进的固定时钟"""
    return FakeClock()


@pytest_asyncio.fixture
async def tmp_db_path(tmp_path: Path) -> Path:
    """提供临时 SQLite 数据库路径"""
    return tmp_path / "test.db"


@pytest_asyncio.fixture
async def db_conn(tmp_db_path: Path) -> AsyncGenerator[aiosqlite.Connection, None]:
    """提供已初始化的临时 SQLite 数据库连接（autocommit 模式）"""
    from ephemera.core.store.sqlite_init import init_db

    conn = await aiosqlite.connect(str(tmp_db_path), isolation_level=None)
    await init_db(conn)
    yield conn
    await conn.close()
