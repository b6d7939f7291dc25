"""推送事件 payload 定义

线上字段统一 camelCase。
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _WirePayload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class ConnectedPayload(_WirePayload):
    """connected 事件 payload（连接建立确认）"""

    message: str = Field(default="Connected to ephemera server")
    timestamp: datetime
    connection_id: str


class MessageDeletedPayload(_WirePayload):
    """messageDeleted 事件 payload"""

    id: str


class TypingPayload(_WirePayload):
    """userTyping 事件 payload（透传，不落盘）"""

    sender: str | None = None
    is_typing: bool


class ErrorPayload(_WirePayload):
    """error 事件 payload"""

    message: str = Field(description="面向用户的错误描述")
    error: str = Field(default="", description="错误详情")
    code: str = Field(default="", description="错误码")
