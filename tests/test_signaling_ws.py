"""
tests.test_signaling_ws
~~~~~~~~~~~~~~~~~~~~~~~

直接调用 ``signaling_endpoint``（mock WebSocket），验证连接结束时的清理顺序。
"""
from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import WebSocket, WebSocketDisconnect

from peerlink.api.signaling_ws import signaling_endpoint
from peerlink.services.connection_hub import ConnectionHub


def _mock_websocket(relay: MagicMock, hub: ConnectionHub) -> AsyncMock:
    mock_ws = AsyncMock(spec=WebSocket)
    mock_ws.app = MagicMock()
    mock_ws.app.state.relay = relay
    mock_ws.app.state.hub = hub
    mock_ws.receive_text.side_effect = [WebSocketDisconnect(code=1000)]
    return mock_ws


@pytest.mark.asyncio
async def test_disconnect_runs_and_outbox_closes() -> None:
    hub = ConnectionHub()
    relay = MagicMock()
    mock_ws = _mock_websocket(relay, hub)

    await asyncio.wait_for(signaling_endpoint(mock_ws), timeout=2.0)

    mock_ws.accept.assert_awaited_once()
    connection_id = relay.connect.call_args[0][0]
    relay.disconnect.assert_called_once_with(connection_id)
    assert hub.online_count == 0


@pytest.mark.asyncio
async def test_outbox_closes_even_if_relay_cleanup_fails() -> None:
    """disconnect 抛异常时发送协程仍要退出，端点不能一直挂起。"""
    hub = ConnectionHub()
    relay = MagicMock()
    relay.disconnect.side_effect = RuntimeError("cleanup failed")
    mock_ws = _mock_websocket(relay, hub)

    with pytest.raises(RuntimeError, match="cleanup failed"):
        await asyncio.wait_for(signaling_endpoint(mock_ws), timeout=2.0)

    assert hub.online_count == 0
