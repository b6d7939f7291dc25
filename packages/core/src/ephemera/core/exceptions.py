"""Ephemera 异常体系

每个异常携带稳定的 code，供 REST 响应与 WebSocket error 事件复用。
"""


class EphemeraError(Exception):
    """基础异常"""

    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(EphemeraError):
    """入站消息不满足结构或业务规则

    不落盘、不广播，直接拒绝请求。
    """

    code = "VALIDATION_FAILED"

    def __init__(self, rule: str, message: str) -> None:
        """
        Args:
            rule: 违反的规则标识（如 sender、content、attachment_size）
            message: 面向调用方的错误描述
        """
        super().__init__(message)
        self.rule = rule


class NotFoundError(EphemeraError):
    """消息不存在（包括已被显式删除或已被物理清理）"""

    code = "MESSAGE_NOT_FOUND"

    def __init__(self, message_id: str) -> None:
        super().__init__(f"Message with id {message_id} does not exist")
        self.message_id = message_id


class ExpiredError(EphemeraError):
    """消息已过期但尚未被物理删除"""

    code = "MESSAGE_EXPIRED"

    def __init__(self, message_id: str) -> None:
        super().__init__(f"Message with id {message_id} has expired")
        self.message_id = message_id


class StorageError(EphemeraError):
    """存储连接或持久化失败"""

    code = "STORAGE_ERROR"

    def __init__(self, operation: str, original_error: Exception) -> None:
        """
        Args:
            operation: 失败的存储操作名
            original_error: 原始异常
        """
        super().__init__(f"Storage operation {operation} failed -- {original_error}")
        self.operation = operation
        self.original_error = original_error


class BroadcastError(EphemeraError):
    """写入成功后通知订阅者失败

    只记录日志，不影响原请求，也不重试。
    """

    code = "BROADCAST_ERROR"
