"""structlog 配置模块

dev 模式：pretty print 可读输出
json 模式：结构化 JSON 输出
inline 附件的 data URL 在任何模式下都不会原样写入日志。
Logfire APM：LOGFIRE_SEND_TO_LOGFIRE 环境变量控制，false 时降级为纯本地日志。
"""

import logging
import os
from typing import Any

import structlog
from fastapi import FastAPI

# 日志中保留的 data URL 前缀长度
_DATA_URL_PREVIEW = 48

# 逐条操作都会打 DEBUG 日志的第三方 logger
_NOISY_LOGGERS = ("aiosqlite", "uvicorn.access")


def _redact_value(value: Any) -> Any:
    if isinstance(value, str) and value.startswith("data:") and len(value) > _DATA_URL_PREVIEW:
        return f"{value[:_DATA_URL_PREVIEW]}...<{len(value)} chars>"
    if isinstance(value, dict):
        return {k: _redact_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_redact_value(v) for v in value]
    return value


def redact_inline_payloads(
    logger: Any, method_name: str, event_dict: structlog.types.EventDict
) -> structlog.types.EventDict:
    """截断事件中的 data URL，避免附件内容进入日志"""
    return {key: _redact_value(value) for key, value in event_dict.items()}


def setup_logging(log_format: str | None = None, log_level: str | None = None) -> None:
    """初始化 structlog 配置

    Args:
        log_format: "json"（生产环境）或 "dev"（默认），缺省读取 EPHEMERA_LOG_FORMAT
        log_level: 日志级别，缺省读取 EPHEMERA_LOG_LEVEL
    """
    log_format = log_format or os.environ.get("EPHEMERA_LOG_FORMAT", "dev")
    log_level = log_level or os.environ.get("EPHEMERA_LOG_LEVEL", "INFO")
    level = getattr(logging, log_level.upper(), logging.INFO)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        redact_inline_payloads,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer(
            ensure_ascii=False
        )
        shared_processors.append(structlog.processors.format_exc_info)
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # 标准库 logging 与 uvicorn 日志走同一 renderer
    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=shared_processors,
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def setup_logfire(app: FastAPI) -> bool:
    """Logfire 可选初始化

    LOGFIRE_SEND_TO_LOGFIRE="true" 时启用（需要 LOGFIRE_TOKEN），
    初始化失败只记录告警，不影响服务启动。

    Returns:
        是否已启用 Logfire
    """
    if os.environ.get("LOGFIRE_SEND_TO_LOGFIRE", "false").lower() != "true":
        return False
    try:
        import logfire

        logfire.configure(service_name="ephemera-gateway")
        logfire.instrument_fastapi(app)
    except Exception as e:
        structlog.get_logger().warning(
            "logfire_init_failed",
            error_type=type(e).__name__,
            message="Logfire 初始化失败，降级为纯本地日志",
        )
        return False
    return True
