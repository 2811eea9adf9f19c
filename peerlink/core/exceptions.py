"""
peerlink.core.exceptions
~~~~~~~~~~~~~~~~~~~~~~~~

中继层的业务异常。

所有拒绝都是局部、非致命的：``SignalingRelay.dispatch`` 捕获 ``RelayError``
并只向出错的连接发送 ``error`` 事件，会话继续保持。
"""
from __future__ import annotations


class RelayError(Exception):
    """被拒绝的客户端操作。

    Attributes:
        category: 发给客户端的错误类别（``error`` 事件中的 ``type``）。
        message: 人类可读的拒绝原因。
    """

    category: str = "relay"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_payload(self) -> dict[str, str]:
        return {"type": self.category, "message": self.message}


class RoomError(RelayError):
    category = "room"


class SignalError(RelayError):
    category = "signal"


class UserNameError(RelayError):
    category = "username"


class ChatError(RelayError):
    category = "chat"
