"""健康检查测试

测试内容：
1. GET / 返回服务信息
2. GET /health 永远返回 200，附存储状态
3. GET /ready 正常时 200，SQLite 不可用时 503
"""

from httpx import ASGITransport, AsyncClient


class TestServiceInfo:
    async def test_root(self, client: AsyncClient):
        resp = await client.get("/")
        assert resp.status_code == 200
        data = resp.json()
        assert data["name"] == "Ephemera Gateway"
        assert data["endpoints"]["websocket"] == "/ws"
        assert data["endpoints"]["messages"]["list"] == "GET /api/messages"


class TestHealthCheck:
    """Liveness / Readiness"""

    async def test_health_returns_200(self, client: AsyncClient):
        """GET /health 永远返回 200"""
        resp = await client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert data["storage"] == "connected"
        assert data["uptime_s"] >= 0
        assert "timestamp" in data

    async def test_health_reports_storage_down(self, app):
        """存储不可用时 /health 仍返回 200，标记 disconnected"""
        await app.state.store_group.conn.close()

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            resp = await ac.get("/health")
        assert resp.status_code == 200
        assert resp.json()["storage"] == "disconnected"

    async def test_ready_returns_200(self, client: AsyncClient):
        """GET /ready 正常时返回 200 + checks 结构"""
        resp = await client.get("/ready")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ready"
        checks = data["checks"]
        assert checks["sqlite"] == "ok"
        assert isinstance(checks["disk_space_mb"], int)
        assert checks["disk_space_mb"] > 0

    async def test_ready_sqlite_failure(self, app):
        """GET /ready SQLite 不可用时返回 503"""
        # 关闭数据库连接模拟不可用
        await app.state.store_group.conn.close()

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            resp = await ac.get("/ready")
        assert resp.status_code == 503
        data = resp.json()
        assert data["status"] == "not_ready"
        assert data["checks"]["sqlite"] == "unavailable"
