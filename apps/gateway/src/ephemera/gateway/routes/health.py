"""健康检查路由

GET /: 服务信息
GET /health: Liveness 检查，永远返回 200，附存储连通状态。
GET /ready: Readiness 检查，SQLite 连通性 + 磁盘空间，不满足返回 503。
"""

import shutil
import time
from datetime import UTC, datetime
from pathlib import Path

import structlog
from ephemera.core.config import MESSAGE_RETENTION, get_db_path
from fastapi import APIRouter, Request
from starlette.responses import JSONResponse

log = structlog.get_logger()

router = APIRouter()


async def _sqlite_ok(request: Request) -> bool:
    try:
        store_group = request.app.state.store_group
        cursor = await store_group.conn.execute("SELECT 1")
        await cursor.fetchone()
    except Exception as e:
        log.warning("sqlite_check_failed", error_type=type(e).__name__)
        return False
    return True


@router.get("/")
async def service_info(request: Request):
    """服务信息与接口列表"""
    return {
        "name": request.app.title,
        "version": request.app.version,
        "features": [
            "Real-time messaging (WebSocket + SSE)",
            "Inline and referenced attachments",
            f"Auto-delete after {int(MESSAGE_RETENTION.total_seconds() // 3600)} hours",
        ],
        "endpoints": {
            "health": "/health",
            "ready": "/ready",
            "messages": {
                "list": "GET /api/messages",
                "create": "POST /api/messages",
                "get": "GET /api/messages/{id}",
                "delete": "DELETE /api/messages/{id}",
            },
            "stream": "/api/stream",
            "websocket": "/ws",
        },
    }


@router.get("/health")
async def health(request: Request):
    """Liveness 检查 -- 永远返回 200"""
    started_at = getattr(request.app.state, "started_at", None)
    uptime_s = round(time.monotonic() - started_at, 3) if started_at else 0.0
    storage = "connected" if await _sqlite_ok(request) else "disconnected"
    return {
        "status": "ok",
        "timestamp": datetime.now(UTC).isoformat(),
        "uptime_s": uptime_s,
        "storage": storage,
    }


@router.get("/ready")
async def ready(request: Request):
    """Readiness 检查 -- 验证核心依赖可用性

    检查项：
    1. sqlite: 数据库连通性
    2. disk_space_mb: 数据库所在磁盘剩余空间
    """
    checks = {}
    all_ok = True

    # 1. SQLite 连通性检查（不向外暴露底层错误信息）
    if await _sqlite_ok(request):
        checks["sqlite"] = "ok"
    else:
        checks["sqlite"] = "unavailable"
        all_ok = False

    # 2. 磁盘空间检查
    try:
        db_dir = Path(get_db_path()).resolve().parent
        probe = db_dir if db_dir.exists() else Path("/")
        disk_usage = shutil.disk_usage(probe)
        checks["disk_space_mb"] = disk_usage.free // (1024 * 1024)
    except OSError:
        checks["disk_space_mb"] = 0
        all_ok = False

    status_code = 200 if all_ok else 503
    status_text = "ready" if all_ok else "not_ready"

    return JSONResponse(
        status_code=status_code,
        content={
            "status": status_text,
            "checks": checks,
        },
    )
