"""
peerlink.services.relay
~~~~~~~~~~~~~~~~~~~~~~~

信令中继 —— 连接事件处理器，是房间目录与活动计数的唯一修改方。

- ``join`` / ``leave`` / 断开连接 → 维护房间成员并通知其他成员
- ``signal``       → 仅在双方处于同一房间时原样转发协商数据
- ``set-user-name`` → 房间内昵称唯一，成功后广播（含本人确认）
- ``chat-message`` → 校验 + 限流后广播给房间内其他成员

所有处理器都是同步函数，出站消息通过 ``emitter.emit()`` 入队即返回，
因此单个事件在事件循环中一次性处理完毕，不会与其他事件交错执行。
"""
from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol

from pydantic import BaseModel, ValidationError

from peerlink.core.exceptions import (
    ChatError,
    RelayError,
    RoomError,
    SignalError,
    UserNameError,
)
from peerlink.core.logging import get_logger
from peerlink.core.validation import (
    DEFAULT_MAX_MESSAGE_LENGTH,
    DEFAULT_MAX_USERNAME_LENGTH,
    is_valid_chat_text,
    is_valid_room_id,
    is_valid_user_name,
)
from peerlink.schemas.events import (
    ChatMessageData,
    ChatMessageRequest,
    ErrorData,
    PeerData,
    PeersListData,
    RelayStats,
    SetUserNameRequest,
    SignalData,
    SignalRequest,
    UserNameSetData,
)
from peerlink.services.activity import ActivityTracker, now_ms
from peerlink.services.directory import RoomDirectory

if TYPE_CHECKING:
    from peerlink.core.settings import Settings

logger = get_logger(__name__)

EventHandler = Callable[[str, Any], None]


class Emitter(Protocol):
    """出站投递接口：把事件发给指定连接，不等待结果。"""

    def emit(self, connection_id: str, event: str, data: dict[str, Any]) -> None: ...


def _is_empty_payload(data: Any) -> bool:
    if data is None:
        return True
    return isinstance(data, (str, bytes, dict, list)) and not data


def _payload_kind(data: Any) -> str:
    """只为日志读取协商数据的类型字段（offer / answer / candidate）。"""
    if isinstance(data, dict):
        kind = data.get("type") or data.get("kind")
        if isinstance(kind, str) and kind:
            return kind
    return "candidate"


class SignalingRelay:
    """信令中继服务。

    每个实例独占一套 ``RoomDirectory`` 与 ``ActivityTracker``，
    多个实例之间互不影响，便于单元测试。

    Attributes:
        directory: 房间目录。
        tracker: 连接活动计数器。
        emitter: 出站投递对象（生产环境为 ``ConnectionHub``）。
        guest_name: 未设置昵称时的聊天作者名。
    """

    def __init__(
        self,
        directory: RoomDirectory,
        tracker: ActivityTracker,
        emitter: Emitter,
        *,
        guest_name: str = "Guest",
        max_user_name_length: int = DEFAULT_MAX_USERNAME_LENGTH,
        max_message_length: int = DEFAULT_MAX_MESSAGE_LENGTH,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.directory = directory
        self.tracker = tracker
        self.emitter = emitter
        self.guest_name = guest_name
        self.max_user_name_length = max_user_name_length
        self.max_message_length = max_message_length
        self._clock: Callable[[], float] = clock or now_ms
        self._handlers: dict[str, EventHandler] = {
            "join": self._on_join,
            "leave": self._on_leave,
            "signal": self._on_signal,
            "set-user-name": self._on_set_user_name,
            "chat-message": self._on_chat_message,
        }

    @classmethod
    def from_settings(cls, emitter: Emitter, config: Settings) -> SignalingRelay:
        """按全局配置组装中继实例。"""
        tracker = ActivityTracker(
            max_messages_per_minute=config.MAX_MESSAGES_PER_MINUTE,
            max_room_joins_per_hour=config.MAX_ROOMS_PER_HOUR,
            min_message_interval_ms=config.MIN_TIME_BETWEEN_MESSAGES_MS,
        )
        return cls(
            RoomDirectory(),
            tracker,
            emitter,
            guest_name=config.GUEST_NAME,
            max_user_name_length=config.MAX_USERNAME_LENGTH,
            max_message_length=config.MAX_MESSAGE_LENGTH,
        )

    # ── 事件分发 ──────────────────────────────────────────────────────

    def dispatch(self, connection_id: str, event: str, data: Any = None) -> None:
        """按事件名分发一条入站事件。

        ``RelayError`` 转换为只发给本连接的 ``error`` 事件；
        其他异常向上抛出，由传输层负责记录并断开连接。
        """
        if connection_id not in self.directory:
            logger.debug("忽略未登记连接的事件 | conn=%s | event=%s", connection_id, event)
            return
        handler = self._handlers.get(event)
        if handler is None:
            logger.info("忽略未知事件 | conn=%s | event=%s", connection_id, event)
            return
        try:
            handler(connection_id, data)
        except RelayError as exc:
            logger.info(
                "操作被拒绝 | conn=%s | event=%s | type=%s | reason=%s",
                connection_id, event, exc.category, exc.message,
            )
            self._send(connection_id, "error", ErrorData(**exc.to_payload()))

    @staticmethod
    def _parse(model: type[BaseModel], data: Any, error: type[RelayError]) -> Any:
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise error("请求格式错误")
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            raise error("请求格式错误") from exc

    def _on_join(self, connection_id: str, data: Any) -> None:
        self.join(connection_id, data)

    def _on_leave(self, connection_id: str, data: Any) -> None:
        self.leave(connection_id, data)

    def _on_signal(self, connection_id: str, data: Any) -> None:
        request = self._parse(SignalRequest, data, SignalError)
        self.signal(connection_id, request.to, request.data)

    def _on_set_user_name(self, connection_id: str, data: Any) -> None:
        request = self._parse(SetUserNameRequest, data, UserNameError)
        self.set_user_name(connection_id, request.user_name)

    def _on_chat_message(self, connection_id: str, data: Any) -> None:
        request = self._parse(ChatMessageRequest, data, ChatError)
        self.chat_message(connection_id, request.text, request.timestamp)

    # ── 投递 ──────────────────────────────────────────────────────────

    def _send(self, connection_id: str, event: str, payload: Any) -> None:
        self.emitter.emit(connection_id, event, payload.to_wire())

    def _send_many(self, connection_ids: list[str], event: str, payload: Any) -> None:
        wire = payload.to_wire()
        for connection_id in connection_ids:
            self.emitter.emit(connection_id, event, wire)

    # ── 连接生命周期 ──────────────────────────────────────────────────

    def connect(self, connection_id: str) -> None:
        """登记新连接并创建活动记录。"""
        self.directory.register(connection_id)
        self.tracker.start(connection_id)
        logger.info("连接建立 | conn=%s | 在线: %d", connection_id, self.directory.connection_count)

    def disconnect(self, connection_id: str) -> None:
        """断开连接：离开当前房间并清除昵称、活动记录与会话。可重复调用。"""
        room_id = self.directory.room_of(connection_id)
        if room_id is not None:
            self._leave_room(connection_id, room_id)
        session = self.directory.unregister(connection_id)
        self.tracker.stop(connection_id)
        if session is not None:
            logger.info(
                "连接断开 | conn=%s | room=%s | 在线: %d",
                connection_id, room_id, self.directory.connection_count,
            )

    # ── 房间 ──────────────────────────────────────────────────────────

    def join(self, connection_id: str, room_id: Any) -> list[str]:
        """加入房间，返回房间内其他成员（按加入顺序）。

        已在某个房间（包括同一房间）时先执行一次普通的离开，
        保证客户端每次加入都能拿到最新的 ``peers-list``。

        Raises:
            RoomError: 房间 ID 无效或加入过于频繁。
        """
        if not is_valid_room_id(room_id):
            raise RoomError("无效的房间 ID")
        if not self.tracker.check_room_join_rate(connection_id):
            logger.warning("加入房间超过频率限制 | conn=%s", connection_id)
            raise RoomError("加入房间过于频繁，请稍后再试")

        current = self.directory.room_of(connection_id)
        if current is not None:
            self._leave_room(connection_id, current)

        peers = self.directory.add_member(connection_id, room_id)
        logger.info("加入房间 | conn=%s | room=%s | 已有成员: %d", connection_id, room_id, len(peers))
        self._send(connection_id, "peers-list", PeersListData(peers=peers))
        self._send_many(peers, "peer-joined", PeerData(socket_id=connection_id))
        return peers

    def leave(self, connection_id: str, room_id: Any) -> None:
        """离开指定房间。不在该房间时什么也不做。

        Raises:
            RoomError: 房间 ID 无效。
        """
        if not is_valid_room_id(room_id):
            raise RoomError("无效的房间 ID")
        if self._leave_room(connection_id, room_id):
            self.directory.clear_name(connection_id)
        else:
            logger.debug("不在房间中，忽略离开 | conn=%s | room=%s", connection_id, room_id)

    def _leave_room(self, connection_id: str, room_id: str) -> bool:
        remaining = self.directory.remove_member(connection_id, room_id)
        if remaining is None:
            return False
        logger.info("离开房间 | conn=%s | room=%s | 剩余成员: %d", connection_id, room_id, len(remaining))
        self._send_many(remaining, "peer-left", PeerData(socket_id=connection_id))
        return True

    # ── 信令 ──────────────────────────────────────────────────────────

    def signal(self, connection_id: str, to: Any, data: Any) -> None:
        """把协商数据原样转发给同房间的目标连接。

        Raises:
            SignalError: 缺少目标或数据，或目标不在同一房间。
        """
        if not to or not isinstance(to, str):
            raise SignalError("缺少目标用户")
        if _is_empty_payload(data):
            raise SignalError("信令数据为空")
        if not self.directory.same_room(connection_id, to):
            logger.info("信令被拒绝，双方不在同一房间 | from=%s | to=%s", connection_id, to)
            raise SignalError("目标用户不在你的房间中")

        logger.debug("转发信令 | from=%s | to=%s | kind=%s", connection_id, to, _payload_kind(data))
        self._send(to, "signal", SignalData(from_=connection_id, data=data))

    # ── 昵称 ──────────────────────────────────────────────────────────

    def set_user_name(self, connection_id: str, user_name: Any) -> None:
        """设置昵称。在房间内时向全体成员（含本人）广播。

        Raises:
            UserNameError: 昵称无效或已被同房间成员占用。
        """
        if not is_valid_user_name(user_name, self.max_user_name_length):
            raise UserNameError("无效的用户名")
        room_id = self.directory.room_of(connection_id)
        if room_id is not None and self.directory.name_taken(room_id, user_name, exclude=connection_id):
            raise UserNameError("该用户名在房间内已被占用")

        self.directory.set_name(connection_id, user_name)
        logger.info("设置昵称 | conn=%s | name=%s", connection_id, user_name)
        if room_id is not None:
            self._send_many(
                self.directory.members(room_id),
                "user-name-set",
                UserNameSetData(socket_id=connection_id, user_name=user_name),
            )

    # ── 聊天 ──────────────────────────────────────────────────────────

    def chat_message(self, connection_id: str, text: Any, timestamp: Any = None) -> None:
        """向房间内其他成员广播聊天消息。不在房间时直接丢弃。

        作者名取服务端登记的昵称，不信任客户端提供的任何身份信息。

        Raises:
            ChatError: 消息无效或发送过于频繁。
        """
        room_id = self.directory.room_of(connection_id)
        if room_id is None:
            logger.debug("未加入房间，丢弃聊天消息 | conn=%s", connection_id)
            return
        if not is_valid_chat_text(text, self.max_message_length):
            raise ChatError("无效的消息")
        if not self.tracker.check_message_rate(connection_id):
            logger.warning("聊天消息超过频率限制 | conn=%s", connection_id)
            raise ChatError("发送消息过于频繁")

        if not isinstance(timestamp, (int, float)) or isinstance(timestamp, bool):
            timestamp = int(self._clock())
        author = self.directory.display_name(connection_id) or self.guest_name
        logger.debug("聊天消息 | conn=%s | author=%s | room=%s", connection_id, author, room_id)

        peers = [peer for peer in self.directory.members(room_id) if peer != connection_id]
        self._send_many(
            peers,
            "chat-message",
            ChatMessageData(author=author, text=text, timestamp=timestamp),
        )

    # ── 统计 ──────────────────────────────────────────────────────────

    def stats(self) -> RelayStats:
        return RelayStats(
            rooms=self.directory.room_count,
            connections=self.directory.connection_count,
        )
