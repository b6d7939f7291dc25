"""入站消息校验 -- 纯函数，无副作用

校验顺序：
1. sender 在白名单内
2. 文本与附件至少有一项
3. 文本长度
4. 每个附件：名称、类型、大小、有且仅有一个内容来源
通过后补全默认值（无文本时生成 "File: <name>" 占位文本）。
"""

from .config import MAX_ATTACHMENT_BYTES, MAX_TEXT_LENGTH
from .exceptions import ValidationError
from .models import AttachmentRequest, MessageCandidate, MessageRequest, Sender, parse_sender


def _present(value: str | None) -> bool:
    return value is not None and value.strip() != ""


def validate_attachment(attachment: AttachmentRequest, index: int = 0) -> AttachmentRequest:
    """校验单个附件，返回内容来源规范化后的副本

    Raises:
        ValidationError: 附件不满足规则
    """
    label = f"Attachment #{index + 1}"
    if not _present(attachment.name):
        raise ValidationError("attachment_name", f"{label} is missing a name")
    if not _present(attachment.mime_type):
        raise ValidationError("attachment_type", f"{label} is missing a MIME type")
    if attachment.size is None:
        raise ValidationError("attachment_size", f"{label} is missing a size")
    if not 0 <= attachment.size <= MAX_ATTACHMENT_BYTES:
        raise ValidationError(
            "attachment_size",
            f"{label} size must be between 0 and {MAX_ATTACHMENT_BYTES} bytes",
        )

    has_inline = _present(attachment.inline_payload)
    has_reference = _present(attachment.reference)
    if has_inline == has_reference:
        raise ValidationError(
            "attachment_source",
            f"{label} must carry exactly one of inline payload or reference",
        )

    # 空字符串视为未提供
    return attachment.model_copy(
        update={
            "inline_payload": attachment.inline_payload if has_inline else None,
            "reference": attachment.reference if has_reference else None,
        }
    )


def validate_message(request: MessageRequest) -> MessageCandidate:
    """校验入站消息并补全默认值

    Args:
        request: 原始入站请求

    Returns:
        MessageCandidate 实例

    Raises:
        ValidationError: 第一条被违反的规则
    """
    sender = parse_sender(request.sender)
    if sender is None:
        allowed = " or ".join(f'"{s.value}"' for s in Sender)
        raise ValidationError("sender", f"Invalid sender. Must be {allowed}")

    text = request.text if _present(request.text) else None
    attachments = request.attachments or []
    if text is None and not attachments:
        raise ValidationError("content", "Message text or attachment is required")

    if text is not None and len(text) > MAX_TEXT_LENGTH:
        raise ValidationError(
            "text_length",
            f"Message text must be at most {MAX_TEXT_LENGTH} characters",
        )

    checked = [validate_attachment(a, i) for i, a in enumerate(attachments)]

    if text is None:
        # 多附件时取第一个附件名
        text = f"File: {checked[0].name}"

    return MessageCandidate(text=text, sender=sender, attachments=checked)
