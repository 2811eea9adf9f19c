"""
tests.conftest
~~~~~~~~~~~~~~

共享 pytest fixtures —— 记录出站事件的假投递器、可手动推进的假时钟，
以及基于二者组装的 ``SignalingRelay``，单元测试无需任何网络连接。
"""
from __future__ import annotations

import os
from typing import Any

import pytest

# ── 在所有测试导入前设置环境变量 ─────────────────────────────────────
os.environ.setdefault("ENVIRONMENT", "test")

from peerlink.services.activity import ActivityTracker  # noqa: E402
from peerlink.services.directory import RoomDirectory  # noqa: E402
from peerlink.services.relay import SignalingRelay  # noqa: E402

START_MS: float = 1_700_000_000_000.0


class RecordingEmitter:
    """把 ``emit()`` 调用按顺序记录下来，替代真实的 ``ConnectionHub``。"""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str, dict[str, Any]]] = []

    def emit(self, connection_id: str, event: str, data: dict[str, Any]) -> None:
        self.sent.append((connection_id, event, data))

    def events_for(self, connection_id: str, event: str | None = None) -> list[tuple[str, dict[str, Any]]]:
        """返回发给某个连接的 ``(event, data)`` 列表，可按事件名过滤。"""
        return [
            (name, data)
            for target, name, data in self.sent
            if target == connection_id and (event is None or name == event)
        ]

    def clear(self) -> None:
        self.sent.clear()


class FakeClock:
    """毫秒时钟，只在调用 ``advance()`` 时前进。"""

    def __init__(self, start: float = START_MS) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def emitter() -> RecordingEmitter:
    return RecordingEmitter()


@pytest.fixture()
def tracker(clock: FakeClock) -> ActivityTracker:
    return ActivityTracker(clock=clock)


@pytest.fixture()
def relay(emitter: RecordingEmitter, tracker: ActivityTracker, clock: FakeClock) -> SignalingRelay:
    return SignalingRelay(RoomDirectory(), tracker, emitter, clock=clock)
