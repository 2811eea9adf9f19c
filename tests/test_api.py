"""
tests.test_api
~~~~~~~~~~~~~~

HTTP 接口与 ``/ws`` 信令端点的集成测试（FastAPI TestClient）。
"""
from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import pytest
from fastapi.testclient import TestClient
from starlette.testclient import WebSocketTestSession

from peerlink.main import app


@pytest.fixture()
def client() -> Iterator[TestClient]:
    # with 语句触发 lifespan，每个测试一套全新的中继状态
    with TestClient(app) as c:
        yield c


def _handshake(ws: WebSocketTestSession) -> str:
    frame = ws.receive_json()
    assert frame["event"] == "connected"
    return frame["data"]["socketId"]


def _send(ws: WebSocketTestSession, event: str, data: Any = None) -> None:
    ws.send_json({"event": event, "data": data})


class TestHttp:

    def test_health(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["environment"] == "test"

    def test_stats_when_idle(self, client: TestClient) -> None:
        response = client.get("/api/stats")

        assert response.status_code == 200
        assert response.json() == {
            "code": 200,
            "data": {"rooms": 0, "connections": 0, "sockets": 0},
            "msg": "success",
        }


class TestSignalingWebSocket:

    def test_connection_ids_are_unique(self, client: TestClient) -> None:
        with client.websocket_connect("/ws") as a, client.websocket_connect("/ws") as b:
            assert _handshake(a) != _handshake(b)

    def test_two_peers_negotiate_through_relay(self, client: TestClient) -> None:
        with client.websocket_connect("/ws") as a:
            a_id = _handshake(a)
            _send(a, "join", "room_1")
            assert a.receive_json() == {"event": "peers-list", "data": {"peers": []}}

            with client.websocket_connect("/ws") as b:
                b_id = _handshake(b)
                _send(b, "join", "room_1")
                assert b.receive_json() == {"event": "peers-list", "data": {"peers": [a_id]}}
                assert a.receive_json() == {"event": "peer-joined", "data": {"socketId": b_id}}

                offer = {"type": "offer", "sdp": "v=0"}
                _send(b, "signal", {"to": a_id, "data": offer})
                assert a.receive_json() == {"event": "signal", "data": {"from": b_id, "data": offer}}

                stats = client.get("/api/stats").json()["data"]
                assert stats == {"rooms": 1, "connections": 2, "sockets": 2}

            # b 断开后 a 收到 peer-left
            assert a.receive_json() == {"event": "peer-left", "data": {"socketId": b_id}}

    def test_rejections_arrive_as_error_events(self, client: TestClient) -> None:
        with client.websocket_connect("/ws") as a:
            _handshake(a)
            _send(a, "join", "ab")
            frame = a.receive_json()
            assert frame["event"] == "error"
            assert frame["data"]["type"] == "room"

            _send(a, "signal", {"to": "nobody", "data": {"type": "offer"}})
            assert a.receive_json()["data"]["type"] == "signal"

            # 会话仍然可用
            _send(a, "join", "room_1")
            assert a.receive_json() == {"event": "peers-list", "data": {"peers": []}}

    def test_malformed_frames_are_dropped(self, client: TestClient) -> None:
        with client.websocket_connect("/ws") as a:
            _handshake(a)
            a.send_text("not json at all")
            a.send_json({"data": "room_1"})
            _send(a, "join", "room_1")
            assert a.receive_json()["event"] == "peers-list"

    def test_chat_and_names_between_peers(self, client: TestClient) -> None:
        with client.websocket_connect("/ws") as a, client.websocket_connect("/ws") as b:
            a_id = _handshake(a)
            _handshake(b)
            _send(a, "join", "room_1")
            a.receive_json()
            _send(b, "join", "room_1")
            b.receive_json()
            a.receive_json()

            _send(a, "set-user-name", {"userName": "Alice"})
            expected = {"event": "user-name-set", "data": {"socketId": a_id, "userName": "Alice"}}
            assert a.receive_json() == expected
            assert b.receive_json() == expected

            _send(a, "chat-message", {"text": "hello", "timestamp": 1700000000000})
            assert b.receive_json() == {
                "event": "chat-message",
                "data": {"author": "Alice", "text": "hello", "timestamp": 1700000000000},
            }

    def test_disconnect_cleans_up_state(self, client: TestClient) -> None:
        with client.websocket_connect("/ws") as a:
            _handshake(a)
            _send(a, "join", "room_1")
            a.receive_json()

        assert client.get("/api/stats").json()["data"] == {"rooms": 0, "connections": 0, "sockets": 0}
