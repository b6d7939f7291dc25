"""配置常量模块 -- 可通过环境变量覆盖

包含数据库路径、清理任务间隔、SSE 心跳等可配置项，
以及消息保留窗口、附件大小上限等固定业务常量。
"""

import os
from datetime import timedelta
from pathlib import Path

import structlog

log = structlog.get_logger()


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("EPHEMERA_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "EPHEMERA_DB_PATH",
        str(_get_base_dir() / "sqlite" / "ephemera.db"),
    )


# 过期清理任务默认间隔（秒）
DEFAULT_REAPER_INTERVAL_S: int = 30 * 60


def get_reaper_interval() -> float:
    """获取过期清理任务间隔（秒）

    非法值记录告警并回退到默认值，不阻塞启动。
    """
    val = os.environ.get("EPHEMERA_REAPER_INTERVAL_S")
    if not val:
        return float(DEFAULT_REAPER_INTERVAL_S)
    try:
        interval = float(val)
    except ValueError:
        interval = 0.0
    if interval <= 0:
        log.warning(
            "invalid_reaper_interval_config",
            env_var="EPHEMERA_REAPER_INTERVAL_S",
            value=val,
            fallback=DEFAULT_REAPER_INTERVAL_S,
        )
        return float(DEFAULT_REAPER_INTERVAL_S)
    return interval


# SSE 心跳间隔（秒）
SSE_HEARTBEAT_INTERVAL: int = int(
    os.environ.get("EPHEMERA_SSE_HEARTBEAT_INTERVAL", "15")
)

# 每个订阅者的事件缓冲上限，写满即视为掉线
HUB_QUEUE_MAXSIZE: int = int(os.environ.get("EPHEMERA_HUB_QUEUE_MAXSIZE", "100"))

# 消息保留窗口（固定 2 小时，不可配置）
MESSAGE_RETENTION: timedelta = timedelta(hours=2)

# 最近消息查询窗口
RECENT_MESSAGES_LIMIT: int = 50

# 文本长度上限（字符）
MAX_TEXT_LENGTH: int = 5000

# 单个附件大小上限（字节，10 MiB）
MAX_ATTACHMENT_BYTES: int = 10 * 1024 * 1024


def get_cors_origins() -> list[str]:
    """获取允许的跨域来源（逗号分隔，默认全部允许）"""
    raw = os.environ.get("EPHEMERA_CORS_ORIGINS", "*")
    return [origin.strip() for origin in raw.split(",") if origin.strip()]
