"""Message Domain Model

三种形态：
- 入站请求（MessageRequest）：字段宽松，业务规则由 validation 模块校验；
- 持久化形态（Message / StoredAttachment）：附件只保存 base64 原文与 MIME；
- 投递形态（DeliverableMessage）：附件还原为 data URL 或外部引用，camelCase 输出。
"""

from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from .enums import Sender


class AttachmentRequest(BaseModel):
    """入站附件 -- 兼容旧客户端的 type/data/url 字段名"""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str | None = Field(default=None, description="文件名")
    size: int | None = Field(default=None, description="文件大小（字节）")
    mime_type: str | None = Field(
        default=None,
        validation_alias=AliasChoices("mimeType", "mime_type", "type"),
        description="MIME 类型",
    )
    inline_payload: str | None = Field(
        default=None,
        validation_alias=AliasChoices("inlinePayload", "inline_payload", "data"),
        description="inline 内容，data:<mime>;base64,<payload> 格式",
    )
    reference: str | None = Field(
        default=None,
        validation_alias=AliasChoices("reference", "url"),
        description="外部引用 URL",
    )


class MessageRequest(BaseModel):
    """入站消息请求 -- REST 与 WebSocket 两条入口共用"""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    text: str | None = Field(default=None, description="消息文本")
    sender: str | None = Field(default=None, description="发送者")
    is_attachment_message: bool | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "isAttachmentMessage", "is_attachment_message", "isFile"
        ),
        description="客户端声明的附件标记（服务端按附件列表重新推导）",
    )
    attachments: list[AttachmentRequest] | None = Field(
        default=None,
        validation_alias=AliasChoices("attachments", "files"),
        description="附件列表",
    )


class MessageCandidate(BaseModel):
    """校验通过、已补全默认值的候选消息"""

    text: str
    sender: Sender
    attachments: list[AttachmentRequest] = Field(default_factory=list)


class StoredAttachment(BaseModel):
    """附件持久化形态

    payload 与 reference 有且仅有一个。
    """

    name: str
    size: int
    mime_type: str
    payload: str | None = Field(default=None, description="base64 原文（不含 data: 前缀）")
    reference: str | None = Field(default=None, description="外部引用 URL")

    @model_validator(mode="after")
    def _exactly_one_source(self) -> "StoredAttachment":
        if (self.payload is None) == (self.reference is None):
            raise ValueError("attachment must carry exactly one of payload or reference")
        return self


class MessageDraft(BaseModel):
    """待写入存储的消息（附件已编码）"""

    text: str
    sender: Sender
    attachments: list[StoredAttachment] = Field(default_factory=list)


class Message(BaseModel):
    """Message 数据模型

    创建后不可变，只能整体删除。
    expires_at 恒等于 created_at + 保留窗口，写入时计算，不再重算。
    """

    message_id: str = Field(description="唯一标识，ULID 格式")
    text: str = Field(description="消息文本")
    sender: Sender = Field(description="发送者")
    created_at: datetime = Field(description="落盘时间")
    is_attachment_message: bool = Field(description="是否带附件")
    attachments: list[StoredAttachment] = Field(default_factory=list)
    expires_at: datetime = Field(description="过期时间")


class DeliverableAttachment(BaseModel):
    """附件投递形态 -- url 为 data URL 或外部引用"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str
    size: int
    mime_type: str
    url: str


class DeliverableMessage(BaseModel):
    """消息投递形态 -- REST 响应与广播共用"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    text: str
    sender: Sender
    created_at: datetime
    is_attachment_message: bool
    attachments: list[DeliverableAttachment] = Field(default_factory=list)
    expires_at: datetime

    def to_wire(self) -> dict:
        """序列化为 JSON 兼容的 camelCase 字典"""
        return self.model_dump(mode="json", by_alias=True)
