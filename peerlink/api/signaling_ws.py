"""
peerlink.api.signaling_ws
~~~~~~~~~~~~~~~~~~~~~~~~~

WebSocket 信令端点 ``/ws``。

每个连接分配一个 ``uuid4().hex`` 作为连接 ID，握手后先收到
``connected {socketId}``。之后双向交换 JSON 文本帧::

    {"event": "join", "data": "room_1"}
    {"event": "signal", "data": {"to": "<socketId>", "data": {...}}}

接收与发送拆成两个协程：接收协程把事件交给中继同步处理，
发送协程从 ``ConnectionHub`` 的队列取帧写回客户端。
"""
from __future__ import annotations

import asyncio
import uuid

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from peerlink.core.logging import connection_id_ctx_var, get_logger
from peerlink.schemas.events import ClientFrame, ConnectedData
from peerlink.services.connection_hub import ConnectionHub
from peerlink.services.relay import SignalingRelay

logger = get_logger(__name__)

router: APIRouter = APIRouter()


@router.websocket("/ws")
async def signaling_endpoint(websocket: WebSocket) -> None:
    """WebSocket 信令端点。

    无论连接以何种方式结束（正常关闭、网络中断、处理异常），
    接收协程的 ``finally`` 都会调用 ``relay.disconnect()`` 清理房间成员关系。

    Args:
        websocket: FastAPI WebSocket 连接对象。
    """
    connection_id = uuid.uuid4().hex
    token = connection_id_ctx_var.set(connection_id)

    try:
        relay: SignalingRelay = websocket.app.state.relay
        hub: ConnectionHub = websocket.app.state.hub

        await websocket.accept()
        outbox = hub.open(connection_id)
        relay.connect(connection_id)
        hub.emit(connection_id, "connected", ConnectedData(socket_id=connection_id).to_wire())

        async def receive_loop() -> None:
            try:
                while True:
                    raw: str = await websocket.receive_text()
                    try:
                        frame = ClientFrame.model_validate_json(raw)
                    except ValidationError:
                        logger.warning("丢弃无法解析的帧 | size=%d", len(raw))
                        continue
                    relay.dispatch(connection_id, frame.event, frame.data)
            except WebSocketDisconnect:
                pass  # 正常断开
            except Exception as e:
                logger.error("WebSocket 接收异常: %s", e, exc_info=True)
            finally:
                try:
                    relay.disconnect(connection_id)
                finally:
                    # 清理失败也要让发送协程退出
                    hub.close(connection_id)

        async def send_loop() -> None:
            while True:
                message = await outbox.get()
                if message is None:
                    break
                try:
                    await websocket.send_text(message)
                except Exception as e:
                    logger.warning("WebSocket 发送失败: %s", e)
                    break

        await asyncio.gather(receive_loop(), send_loop())
    finally:
        connection_id_ctx_var.reset(token)
