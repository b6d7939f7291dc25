"""依赖注入模块 -- 通过 FastAPI Depends 注入 Store 与 EventHub 实例

实例通过 app.state 管理，在 lifespan 中初始化/清理。
参数类型为 HTTPConnection，HTTP 与 WebSocket 路由均可使用。
"""

from ephemera.core.store import StoreGroup
from starlette.requests import HTTPConnection

from .services.event_hub import EventHub


def get_store_group(conn: HTTPConnection) -> StoreGroup:
    """从 app.state 获取 StoreGroup 实例"""
    return conn.app.state.store_group


def get_event_hub(conn: HTTPConnection) -> EventHub:
    """从 app.state 获取 EventHub 实例"""
    return conn.app.state.event_hub
