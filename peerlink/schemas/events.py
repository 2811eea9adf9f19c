"""
peerlink.schemas.events
~~~~~~~~~~~~~~~~~~~~~~~

信令协议的 Pydantic 模型。

线上格式为 JSON 文本帧 ``{"event": "<事件名>", "data": <载荷>}``，双向一致。
字段名沿用浏览器客户端的 camelCase（``socketId`` / ``userName``），
服务端内部使用 snake_case，序列化时统一 ``by_alias=True``。

信令载荷（``signal.data``）对服务端是不透明的，原样转发，不做任何解析。
"""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


# ── 帧 ────────────────────────────────────────────────────────────────

class ClientFrame(BaseModel):
    """客户端 → 服务端的事件帧。"""

    event: str = Field(..., min_length=1, description="事件名")
    data: Any = Field(default=None, description="事件载荷")


class ServerFrame(BaseModel):
    """服务端 → 客户端的事件帧。"""

    event: str = Field(..., description="事件名")
    data: dict[str, Any] = Field(default_factory=dict, description="事件载荷")


# ── 入站载荷 ──────────────────────────────────────────────────────────
# 字段类型保持宽松，格式判定交给 peerlink.core.validation，
# 这样错误提示与分类都由中继统一给出。

class SignalRequest(_WireModel):
    """``signal`` 事件载荷。"""

    to: Any = Field(default=None, description="目标连接 ID")
    data: Any = Field(default=None, description="不透明的协商数据（SDP / ICE candidate）")


class SetUserNameRequest(_WireModel):
    """``set-user-name`` 事件载荷。"""

    user_name: Any = Field(default=None, alias="userName", description="新昵称")


class ChatMessageRequest(_WireModel):
    """``chat-message`` 事件载荷。"""

    text: Any = Field(default=None, description="消息文本")
    timestamp: Any = Field(default=None, description="客户端时间戳（毫秒）")


# ── 出站载荷 ──────────────────────────────────────────────────────────

class ConnectedData(_WireModel):
    """``connected``：握手完成后告知客户端自己的连接 ID。"""

    socket_id: str = Field(..., alias="socketId")


class PeersListData(_WireModel):
    """``peers-list``：加入房间后发给本人的其他成员列表。"""

    peers: list[str] = Field(default_factory=list)


class PeerData(_WireModel):
    """``peer-joined`` / ``peer-left``。"""

    socket_id: str = Field(..., alias="socketId")


class SignalData(_WireModel):
    """转发给目标连接的 ``signal``。"""

    from_: str = Field(..., alias="from")
    data: Any = None


class UserNameSetData(_WireModel):
    """``user-name-set``。"""

    socket_id: str = Field(..., alias="socketId")
    user_name: str = Field(..., alias="userName")


class ChatMessageData(_WireModel):
    """广播的 ``chat-message``，``author`` 由服务端决定。"""

    author: str
    text: str
    timestamp: int | float


class ErrorData(_WireModel):
    """``error``：被拒绝的操作。"""

    type: str = Field(..., description="错误类别：room / signal / username / chat")
    message: str = Field(..., description="人类可读的原因")


# ── HTTP ──────────────────────────────────────────────────────────────

class RelayStats(BaseModel):
    """中继运行状态摘要。"""

    rooms: int = Field(..., description="当前房间数")
    connections: int = Field(..., description="当前连接数")
    sockets: int = Field(default=0, description="打开的 WebSocket 出站队列数")
