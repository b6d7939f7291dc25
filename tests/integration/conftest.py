"""集成测试共享 fixture"""

import time
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest_asyncio
from ephemera.core.store import create_store_group
from ephemera.gateway.services.event_hub import EventHub
from ephemera.gateway.services.expiry_reaper import ExpiryReaper
from httpx import ASGITransport, AsyncClient


@pytest_asyncio.fixture
async def integration_app(tmp_path: Path, monkeypatch, fake_clock):
    """集成测试用 FastAPI app

    清理任务不在后台启动，由测试显式调用 tick()。
    """
    db_path = str(tmp_path / "test.db")
    monkeypatch.setenv("EPHEMERA_DB_PATH", db_path)
    monkeypatch.setenv("LOGFIRE_SEND_TO_LOGFIRE", "false")

    from ephemera.gateway.main import create_app

    app = create_app()

    store_group = await create_store_group(db_path, clock=fake_clock)
    event_hub = EventHub()
    app.state.store_group = store_group
    app.state.event_hub = event_hub
    app.state.expiry_reaper = ExpiryReaper(store_group, event_hub)
    app.state.started_at = time.monotonic()

    yield app

    await event_hub.close()
    await store_group.conn.close()


@pytest_asyncio.fixture
async def client(integration_app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=integration_app),
        base_url="http://test",
    ) as ac:
        yield ac
