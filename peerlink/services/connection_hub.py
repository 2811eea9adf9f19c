"""
peerlink.services.connection_hub
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

连接出站队列 —— 每个 WebSocket 连接一个有界 ``asyncio.Queue``。

中继处理器调用 ``emit()`` 只做入队，不等待网络发送；
真正的发送由各连接自己的发送协程完成（见 ``peerlink.api.signaling_ws``）。
"""
from __future__ import annotations

import asyncio
from typing import Any

from peerlink.core.logging import get_logger
from peerlink.schemas.events import ServerFrame

logger = get_logger(__name__)


class ConnectionHub:
    """按连接 ID 管理出站队列。

    队列中的 ``None`` 是结束标记，发送协程读到后退出。

    Attributes:
        max_queue_size: 单个连接最多积压的帧数，超出后丢弃新帧。
    """

    def __init__(self, max_queue_size: int = 256) -> None:
        self.max_queue_size = max_queue_size
        self._outboxes: dict[str, asyncio.Queue[str | None]] = {}

    def open(self, connection_id: str) -> asyncio.Queue[str | None]:
        """为新连接创建出站队列。"""
        queue: asyncio.Queue[str | None] = asyncio.Queue(maxsize=self.max_queue_size)
        self._outboxes[connection_id] = queue
        return queue

    def close(self, connection_id: str) -> None:
        """移除连接的队列并投递结束标记（可重复调用）。

        未发送的帧直接丢弃，连接已经不在了。
        """
        queue = self._outboxes.pop(connection_id, None)
        if queue is None:
            return
        while not queue.empty():
            queue.get_nowait()
        queue.put_nowait(None)

    def emit(self, connection_id: str, event: str, data: dict[str, Any]) -> None:
        """把事件序列化后放入目标连接的队列，不等待发送结果。"""
        queue = self._outboxes.get(connection_id)
        if queue is None:
            logger.debug("目标连接已不存在，丢弃事件 | to=%s | event=%s", connection_id, event)
            return
        frame = ServerFrame(event=event, data=data).model_dump_json()
        try:
            queue.put_nowait(frame)
        except asyncio.QueueFull:
            logger.warning("出站队列已满，丢弃事件 | to=%s | event=%s", connection_id, event)

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._outboxes

    @property
    def online_count(self) -> int:
        """当前打开的连接数。"""
        return len(self._outboxes)
