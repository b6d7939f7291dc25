"""Domain Models 单元测试

测试内容：
1. 枚举取值与 sender 解析
2. 入站请求的字段别名兼容
3. 持久化附件的来源约束
4. 投递形态与事件 payload 的 camelCase 输出
"""

from datetime import UTC, datetime, timedelta

import pytest
from ephemera.core.models import (
    ClientEvent,
    ConnectedPayload,
    DeliverableAttachment,
    DeliverableMessage,
    ErrorPayload,
    EventKind,
    MessageDeletedPayload,
    MessageRequest,
    Sender,
    StoredAttachment,
    TypingPayload,
    parse_sender,
)
from pydantic import ValidationError as PydanticValidationError


class TestEnums:
    """枚举测试"""

    def test_sender_values(self):
        """Sender 只有两位参与者"""
        assert Sender.RAFAT_FATIMA == "Rafat Fatima"
        assert Sender.ADEEB == "Adeeb"
        assert len(list(Sender)) == 2

    def test_event_kind_wire_names(self):
        """EventKind 取值即线上事件名"""
        assert EventKind.MESSAGE_CREATED == "newMessage"
        assert EventKind.MESSAGE_DELETED == "messageDeleted"
        assert EventKind.USER_TYPING == "userTyping"
        assert EventKind.CONNECTED == "connected"
        assert EventKind.ERROR == "error"
        assert ClientEvent.SEND_MESSAGE == "sendMessage"

    def test_parse_sender(self):
        """白名单内返回 Sender，其余返回 None"""
        assert parse_sender("Adeeb") is Sender.ADEEB
        assert parse_sender("Rafat Fatima") is Sender.RAFAT_FATIMA
        assert parse_sender("adeeb") is None
        assert parse_sender("Mallory") is None
        assert parse_sender(None) is None


class TestMessageRequest:
    """入站请求别名测试"""

    def test_camel_case_fields(self):
        """标准 camelCase 字段"""
        req = MessageRequest.model_validate(
            {
                "text": "hi",
                "sender": "Adeeb",
                "isAttachmentMessage": True,
                "attachments": [
                    {
                        "name": "a.txt",
                        "size": 3,
                        "mimeType": "text/plain",
                        "reference": "https://example.com/a.txt",
                    }
                ],
            }
        )
        assert req.is_attachment_message is True
        assert req.attachments[0].mime_type == "text/plain"
        assert req.attachments[0].reference == "https://example.com/a.txt"

    def test_legacy_field_names(self):
        """旧客户端的 isFile/files/type/data/url 字段"""
        req = MessageRequest.model_validate(
            {
                "sender": "Rafat Fatima",
                "isFile": True,
                "files": [
                    {"name": "a.txt", "size": 3, "type": "text/plain", "data": "data:text/plain;base64,YWJj"},
                    {"name": "b.pdf", "size": 9, "type": "application/pdf", "url": "https://example.com/b.pdf"},
                ],
            }
        )
        assert req.is_attachment_message is True
        assert len(req.attachments) == 2
        assert req.attachments[0].inline_payload == "data:text/plain;base64,YWJj"
        assert req.attachments[1].reference == "https://example.com/b.pdf"

    def test_unknown_fields_ignored(self):
        """未知字段被忽略"""
        req = MessageRequest.model_validate({"text": "x", "sender": "Adeeb", "id": "client-side"})
        assert req.text == "x"
        assert not hasattr(req, "id")

    def test_all_fields_optional(self):
        """结构上全部可选，业务规则由校验模块负责"""
        req = MessageRequest.model_validate({})
        assert req.text is None
        assert req.sender is None
        assert req.attachments is None


class TestStoredAttachment:
    """持久化附件测试"""

    def test_payload_only(self):
        att = StoredAttachment(name="a", size=1, mime_type="text/plain", payload="YQ==")
        assert att.reference is None

    def test_reference_only(self):
        att = StoredAttachment(name="a", size=1, mime_type="text/plain", reference="https://x")
        assert att.payload is None

    def test_both_sources_rejected(self):
        """payload 与 reference 同时存在被拒绝"""
        with pytest.raises(PydanticValidationError):
            StoredAttachment(
                name="a", size=1, mime_type="text/plain", payload="YQ==", reference="https://x"
            )

    def test_no_source_rejected(self):
        with pytest.raises(PydanticValidationError):
            StoredAttachment(name="a", size=1, mime_type="text/plain")


class TestWireShapes:
    """投递形态序列化测试"""

    def test_deliverable_message_camel_case(self):
        """投递形态输出 camelCase 字段"""
        created = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)
        msg = DeliverableMessage(
            id="01JTEST0000000000000000001",
            text="File: a.png",
            sender=Sender.ADEEB,
            created_at=created,
            is_attachment_message=True,
            attachments=[
                DeliverableAttachment(
                    name="a.png", size=4, mime_type="image/png", url="data:image/png;base64,AAAA"
                )
            ],
            expires_at=created + timedelta(hours=2),
        )
        wire = msg.to_wire()
        assert set(wire) == {
            "id",
            "text",
            "sender",
            "createdAt",
            "isAttachmentMessage",
            "attachments",
            "expiresAt",
        }
        assert wire["sender"] == "Adeeb"
        assert wire["attachments"][0] == {
            "name": "a.png",
            "size": 4,
            "mimeType": "image/png",
            "url": "data:image/png;base64,AAAA",
        }
        assert datetime.fromisoformat(wire["expiresAt"]) - datetime.fromisoformat(
            wire["createdAt"]
        ) == timedelta(hours=2)

    def test_event_payloads(self):
        """事件 payload camelCase 输出"""
        connected = ConnectedPayload(
            timestamp=datetime(2026, 1, 1, tzinfo=UTC), connection_id="c1"
        ).to_wire()
        assert connected["connectionId"] == "c1"
        assert connected["message"]

        assert MessageDeletedPayload(id="m1").to_wire() == {"id": "m1"}
        assert TypingPayload(sender="Adeeb", is_typing=True).to_wire() == {
            "sender": "Adeeb",
            "isTyping": True,
        }
        err = ErrorPayload(message="bad", error="sender", code="VALIDATION_FAILED").to_wire()
        assert err == {"message": "bad", "error": "sender", "code": "VALIDATION_FAILED"}
