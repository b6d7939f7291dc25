"""Ephemera Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .enums import ClientEvent, EventKind, Sender, parse_sender
from .event import HubEvent
from .message import (
    AttachmentRequest,
    DeliverableAttachment,
    DeliverableMessage,
    Message,
    MessageCandidate,
    MessageDraft,
    MessageRequest,
    StoredAttachment,
)
from .payloads import (
    ConnectedPayload,
    ErrorPayload,
    MessageDeletedPayload,
    TypingPayload,
)

__all__ = [
    # 枚举
    "Sender",
    "EventKind",
    "ClientEvent",
    "parse_sender",
    # Message
    "MessageRequest",
    "AttachmentRequest",
    "MessageCandidate",
    "MessageDraft",
    "Message",
    "StoredAttachment",
    "DeliverableMessage",
    "DeliverableAttachment",
    # Event
    "HubEvent",
    # Payloads
    "ConnectedPayload",
    "MessageDeletedPayload",
    "TypingPayload",
    "ErrorPayload",
]
