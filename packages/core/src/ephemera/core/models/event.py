"""HubEvent -- 广播事件模型

event_id 使用 ULID，同一订阅者按发布顺序接收。
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from .enums import EventKind


class HubEvent(BaseModel):
    """广播事件"""

    event_id: str = Field(description="唯一标识，ULID 格式，时间有序")
    kind: EventKind = Field(description="事件类型")
    ts: datetime = Field(description="发布时间")
    payload: dict[str, Any] = Field(default_factory=dict, description="JSON 兼容 payload")
