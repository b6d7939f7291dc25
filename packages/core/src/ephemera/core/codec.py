"""附件编解码

inline 附件以 data URL（data:<media-type>;base64,<payload>）入站，
存储时只保留 payload 与 media-type；投递时重新拼装为 data URL。
外部引用附件原样存储、原样投递。
"""

import base64
import binascii

from .config import MAX_ATTACHMENT_BYTES
from .exceptions import ValidationError
from .models import (
    AttachmentRequest,
    DeliverableAttachment,
    DeliverableMessage,
    Message,
    StoredAttachment,
)

_DATA_URL_PREFIX = "data:"
_BASE64_MARKER = ";base64"


def split_data_url(data_url: str) -> tuple[str, str]:
    """拆分 data URL

    Returns:
        (media_type, payload) 元组，media_type 可能为空字符串

    Raises:
        ValidationError: 不是 base64 data URL 或缺少分隔符
    """
    if not data_url.startswith(_DATA_URL_PREFIX) or "," not in data_url:
        raise ValidationError(
            "attachment_payload",
            "Malformed inline payload: expected data:<mime>;base64,<payload>",
        )
    header, payload = data_url[len(_DATA_URL_PREFIX):].split(",", 1)
    if not header.endswith(_BASE64_MARKER):
        raise ValidationError(
            "attachment_payload",
            "Malformed inline payload: only base64 data URLs are supported",
        )
    return header[: -len(_BASE64_MARKER)], payload


def build_data_url(mime_type: str, payload: str) -> str:
    """拼装 data URL"""
    return f"{_DATA_URL_PREFIX}{mime_type}{_BASE64_MARKER},{payload}"


def encode_attachment(attachment: AttachmentRequest) -> StoredAttachment:
    """入站附件 -> 持久化形态

    data URL 内嵌的 media-type 优先于声明的 mimeType，保证投递时可原样还原。

    Raises:
        ValidationError: inline 内容格式错误或解码后超出大小上限
    """
    if attachment.inline_payload is None:
        return StoredAttachment(
            name=attachment.name,
            size=attachment.size,
            mime_type=attachment.mime_type,
            reference=attachment.reference,
        )

    media_type, payload = split_data_url(attachment.inline_payload)
    try:
        raw = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError(
            "attachment_payload",
            "Malformed inline payload: invalid base64 content",
        ) from e

    if len(raw) > MAX_ATTACHMENT_BYTES:
        raise ValidationError(
            "attachment_size",
            f"Attachment {attachment.name} exceeds {MAX_ATTACHMENT_BYTES} bytes",
        )

    return StoredAttachment(
        name=attachment.name,
        size=attachment.size,
        mime_type=media_type or attachment.mime_type,
        payload=payload,
    )


def decode_attachment(stored: StoredAttachment) -> DeliverableAttachment:
    """持久化形态 -> 投递形态"""
    if stored.payload is not None:
        url = build_data_url(stored.mime_type, stored.payload)
    else:
        url = stored.reference
    return DeliverableAttachment(
        name=stored.name,
        size=stored.size,
        mime_type=stored.mime_type,
        url=url,
    )


def to_deliverable(message: Message) -> DeliverableMessage:
    """Message -> DeliverableMessage"""
    return DeliverableMessage(
        id=message.message_id,
        text=message.text,
        sender=message.sender,
        created_at=message.created_at,
        is_attachment_message=message.is_attachment_message,
        attachments=[decode_attachment(a) for a in message.attachments],
        expires_at=message.expires_at,
    )
