"""FastAPI 应用主文件

app 创建 + lifespan 管理：DB 初始化/关闭 + EventHub + 过期清理任务 + 路由注册。
"""

import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from ephemera.core.config import (
    MESSAGE_RETENTION,
    get_cors_origins,
    get_db_path,
    get_reaper_interval,
)
from ephemera.core.store import create_store_group
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .middleware.logging_config import setup_logfire, setup_logging
from .middleware.logging_mw import LoggingMiddleware
from .middleware.trace_mw import TraceMiddleware
from .routes import health, messages, socket, stream
from .services.event_hub import EventHub
from .services.expiry_reaper import ExpiryReaper

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理

    存储不可用时 create_store_group 直接抛出，进程不对外服务。
    """
    db_path = get_db_path()
    store_group = await create_store_group(db_path)
    app.state.store_group = store_group

    # 广播器与清理任务显式构造后注入，不使用全局单例
    event_hub = EventHub()
    app.state.event_hub = event_hub

    reaper = ExpiryReaper(store_group, event_hub, interval_s=get_reaper_interval())
    reaper.start()
    app.state.expiry_reaper = reaper
    app.state.started_at = time.monotonic()

    log.info(
        "gateway_started",
        db_path=db_path,
        retention_s=int(MESSAGE_RETENTION.total_seconds()),
    )

    yield

    # 关闭：停止清理任务 -> 结束所有推送 -> 关闭数据库连接
    await reaper.stop()
    await event_hub.close()
    await store_group.conn.close()
    log.info("gateway_stopped")


def create_app() -> FastAPI:
    """创建 FastAPI 应用实例"""
    app = FastAPI(
        title="Ephemera Gateway",
        version="0.1.0",
        description="两人限时消息服务：消息与附件 2 小时后自动清除",
        lifespan=lifespan,
    )

    # 注册中间件（顺序：先 Trace 后 Logging，Logging 位于最外层）
    app.add_middleware(TraceMiddleware)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_cors_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
    )

    # 初始化日志
    setup_logging()
    setup_logfire(app)

    # 注册路由
    app.include_router(messages.router, tags=["messages"])
    app.include_router(stream.router, tags=["stream"])
    app.include_router(socket.router, tags=["socket"])
    app.include_router(health.router, tags=["health"])

    return app


# 默认 app 实例（uvicorn 入口）
app = create_app()
