"""
peerlink.schemas
~~~~~~~~~~~~~~~~
WebSocket 帧、事件载荷与 HTTP 应答的 Pydantic 模型。
"""
from peerlink.schemas.api_response import ApiResponse
from peerlink.schemas.events import (
    ChatMessageData,
    ChatMessageRequest,
    ClientFrame,
    ConnectedData,
    ErrorData,
    PeerData,
    PeersListData,
    RelayStats,
    ServerFrame,
    SetUserNameRequest,
    SignalData,
    SignalRequest,
    UserNameSetData,
)

# Call model_rebuild to resolve forward references in generic Pydantic models.
ApiResponse.model_rebuild()
