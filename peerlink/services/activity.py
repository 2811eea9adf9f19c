"""
peerlink.services.activity
~~~~~~~~~~~~~~~~~~~~~~~~~~

连接活动计数器 —— 每个连接两套独立的窗口限流策略：

- 聊天消息：最小发送间隔 + 每分钟上限（窗口 60 秒）
- 加入房间：每小时上限（窗口 1 小时）

只有 ``join`` 和 ``chat-message`` 会查询本模块，``leave`` / ``signal`` /
``set-user-name`` / 断开连接都不受限。
"""
from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

from peerlink.core.logging import get_logger

logger = get_logger(__name__)

MESSAGE_WINDOW_MS: int = 60_000
ROOM_JOIN_WINDOW_MS: int = 3_600_000


def now_ms() -> float:
    """当前毫秒时间戳。"""
    return time.time() * 1000


@dataclass
class ActivityRecord:
    """单个连接的限流计数（时间均为毫秒时间戳）。

    Attributes:
        created_at: 连接建立时间。
        message_window_start: 当前分钟窗口的起点。
        room_join_window_start: 当前小时窗口的起点。
        last_message_at: 上一条被接受的聊天消息时间，尚未发言时为 None。
        message_count: 当前分钟窗口内被接受的消息数。
        room_joins: 当前小时窗口内成功加入房间的次数。
    """

    created_at: float
    message_window_start: float
    room_join_window_start: float
    last_message_at: float | None = None
    message_count: int = 0
    room_joins: int = 0


class ActivityTracker:
    """按连接 ID 保存 ``ActivityRecord`` 并执行限流判定。

    ``clock`` 返回毫秒时间戳，测试中可注入假时钟。
    """

    def __init__(
        self,
        max_messages_per_minute: int = 10,
        max_room_joins_per_hour: int = 5,
        min_message_interval_ms: int = 1000,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.max_messages_per_minute = max_messages_per_minute
        self.max_room_joins_per_hour = max_room_joins_per_hour
        self.min_message_interval_ms = min_message_interval_ms
        self._clock: Callable[[], float] = clock or now_ms
        self._records: dict[str, ActivityRecord] = {}

    def start(self, connection_id: str) -> ActivityRecord:
        """为新连接创建计数记录。"""
        now = self._clock()
        record = ActivityRecord(
            created_at=now,
            message_window_start=now,
            room_join_window_start=now,
        )
        self._records[connection_id] = record
        return record

    def stop(self, connection_id: str) -> None:
        """删除连接的计数记录（可重复调用）。"""
        self._records.pop(connection_id, None)

    def get(self, connection_id: str) -> ActivityRecord | None:
        return self._records.get(connection_id)

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._records

    def __len__(self) -> int:
        return len(self._records)

    def check_message_rate(self, connection_id: str) -> bool:
        """判定一条聊天消息是否放行。放行时同时计数并记录发送时间。"""
        record = self._records.get(connection_id)
        if record is None:
            logger.warning("未找到活动记录，跳过消息限流 | conn=%s", connection_id)
            return True

        now = self._clock()
        if (
            record.last_message_at is not None
            and now - record.last_message_at < self.min_message_interval_ms
        ):
            return False

        # 固定窗口：距窗口起点超过 60 秒才清零，窗口交界处可能连续放行两批
        if now - record.message_window_start > MESSAGE_WINDOW_MS:
            record.message_count = 0
            record.message_window_start = now

        if record.message_count >= self.max_messages_per_minute:
            return False

        record.message_count += 1
        record.last_message_at = now
        return True

    def check_room_join_rate(self, connection_id: str) -> bool:
        """判定一次加入房间是否放行。放行时同时计数。"""
        record = self._records.get(connection_id)
        if record is None:
            logger.warning("未找到活动记录，跳过加入房间限流 | conn=%s", connection_id)
            return True

        now = self._clock()
        if now - record.room_join_window_start > ROOM_JOIN_WINDOW_MS:
            record.room_joins = 0
            record.room_join_window_start = now

        if record.room_joins >= self.max_room_joins_per_hour:
            return False

        record.room_joins += 1
        return True
