"""packages/core 测试配置 -- 核心层 fixture"""

import base64
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from ephemera.core.store import StoreGroup, create_store_group


@pytest_asyncio.fixture
async def core_db_path(tmp_path: Path) -> Path:
    """核心层临时数据库路径"""
    return tmp_path / "core_test.db"


@pytest_asyncio.fixture
async def store_group(core_db_path: Path, fake_clock) -> AsyncGenerator[StoreGroup, None]:
    """使用可推进时钟的 StoreGroup"""
    group = await create_store_group(str(core_db_path), clock=fake_clock)
    yield group
    await group.conn.close()


@pytest.fixture
def png_data_url() -> str:
    """一个很小的 inline 附件"""
    payload = base64.b64encode(b"\x89PNG\r\n\x1a\nfake-image").decode()
    return f"data:image/png;base64,{payload}"
