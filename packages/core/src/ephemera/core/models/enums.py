"""枚举定义

Sender 为封闭的两人白名单；EventKind 为广播/推送事件名，
取值即线上协议中的事件名称。
"""

from enum import StrEnum


class Sender(StrEnum):
    """消息发送者 -- 仅允许这两位参与者"""

    RAFAT_FATIMA = "Rafat Fatima"
    ADEEB = "Adeeb"


class EventKind(StrEnum):
    """推送事件类型"""

    # 经 EventHub 广播
    MESSAGE_CREATED = "newMessage"
    MESSAGE_DELETED = "messageDeleted"
    USER_TYPING = "userTyping"

    # 仅发给单个连接
    CONNECTED = "connected"
    ERROR = "error"


class ClientEvent(StrEnum):
    """WebSocket 客户端上行事件"""

    SEND_MESSAGE = "sendMessage"
    TYPING_START = "typingStart"
    TYPING_STOP = "typingStop"


def parse_sender(value: str | None) -> Sender | None:
    """将原始字符串转换为 Sender，不在白名单内返回 None"""
    if value is None:
        return None
    try:
        return Sender(value)
    except ValueError:
        return None
