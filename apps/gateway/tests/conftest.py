"""apps/gateway 测试配置 -- FastAPI app + httpx AsyncClient fixture

app fixture 绕过 lifespan，手动注入使用可推进时钟的 StoreGroup 与 EventHub。
"""

import base64
import time
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from ephemera.core.store import StoreGroup, create_store_group
from ephemera.gateway.services.event_hub import EventHub
from httpx import ASGITransport, AsyncClient


@pytest.fixture(autouse=True)
def gateway_env(tmp_path: Path, monkeypatch):
    """测试环境变量：临时数据库 + 关闭 Logfire"""
    monkeypatch.setenv("EPHEMERA_DB_PATH", str(tmp_path / "sqlite" / "test.db"))
    monkeypatch.setenv("LOGFIRE_SEND_TO_LOGFIRE", "false")

    # sse-starlette 的退出事件绑定在首次创建时的事件循环上，逐个测试重置
    from sse_starlette.sse import AppStatus

    AppStatus.should_exit_event = None


@pytest_asyncio.fixture
async def store_group(tmp_path: Path, fake_clock) -> AsyncGenerator[StoreGroup, None]:
    """使用可推进时钟的 StoreGroup"""
    group = await create_store_group(str(tmp_path / "sqlite" / "test.db"), clock=fake_clock)
    yield group
    await group.conn.close()


@pytest.fixture
def event_hub() -> EventHub:
    return EventHub()


@pytest_asyncio.fixture
async def app(store_group: StoreGroup, event_hub: EventHub):
    """创建测试用 FastAPI app 实例（手动初始化 lifespan 状态）"""
    from ephemera.gateway.main import create_app

    application = create_app()
    application.state.store_group = store_group
    application.state.event_hub = event_hub
    application.state.started_at = time.monotonic()
    return application


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """提供 httpx AsyncClient 用于测试"""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def text_data_url() -> str:
    payload = base64.b64encode(b"hello attachment").decode()
    return f"data:text/plain;base64,{payload}"
