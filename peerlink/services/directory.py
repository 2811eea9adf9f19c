"""
peerlink.services.directory
~~~~~~~~~~~~~~~~~~~~~~~~~~~

房间目录 —— 维护连接会话、房间成员集合与昵称登记。

目录本身只负责数据一致性，不发送任何事件；通知由 ``SignalingRelay`` 负责。

始终成立的约束:
  - 一个连接同一时刻至多属于一个房间；
  - 房间成员集合与 ``ConnectionSession.room_id`` 互相一致；
  - 不存在成员为空的房间。
"""
from __future__ import annotations

import time
from dataclasses import dataclass, field


@dataclass
class ConnectionSession:
    """单个连接的显式会话记录。

    Attributes:
        connection_id: 传输层分配的连接唯一标识。
        room_id: 当前所在房间，未加入时为 None。
        user_name: 已设置的昵称，未设置时为 None。
        connected_at: 连接建立时间（秒级时间戳）。
    """

    connection_id: str
    room_id: str | None = None
    user_name: str | None = None
    connected_at: float = field(default_factory=time.time)


class RoomDirectory:
    """房间成员目录。

    房间成员使用 ``dict[str, None]`` 保存，兼顾去重与加入顺序，
    保证 ``peers-list`` 的返回顺序稳定。
    """

    def __init__(self) -> None:
        self._sessions: dict[str, ConnectionSession] = {}
        self._rooms: dict[str, dict[str, None]] = {}

    # ── 会话 ──────────────────────────────────────────────────────────

    def register(self, connection_id: str) -> ConnectionSession:
        """登记新连接。重复登记返回已有会话。"""
        session = self._sessions.get(connection_id)
        if session is None:
            session = ConnectionSession(connection_id=connection_id)
            self._sessions[connection_id] = session
        return session

    def unregister(self, connection_id: str) -> ConnectionSession | None:
        """删除连接会话。调用方需先让连接离开房间。"""
        return self._sessions.pop(connection_id, None)

    def session(self, connection_id: str) -> ConnectionSession | None:
        return self._sessions.get(connection_id)

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._sessions

    # ── 成员关系 ──────────────────────────────────────────────────────

    def add_member(self, connection_id: str, room_id: str) -> list[str]:
        """把连接加入房间，返回房间内其他成员（按加入顺序）。

        Raises:
            KeyError: 连接未登记。
            ValueError: 连接仍在其他房间中。
        """
        session = self._sessions[connection_id]
        if session.room_id is not None:
            raise ValueError(
                f"connection {connection_id} is still in room {session.room_id}",
            )
        members = self._rooms.setdefault(room_id, {})
        members[connection_id] = None
        session.room_id = room_id
        return [peer for peer in members if peer != connection_id]

    def remove_member(self, connection_id: str, room_id: str) -> list[str] | None:
        """把连接移出房间，返回剩余成员；连接不在该房间时返回 None。

        房间变空时立即删除。
        """
        members = self._rooms.get(room_id)
        if members is None or connection_id not in members:
            return None
        del members[connection_id]
        if not members:
            del self._rooms[room_id]
        session = self._sessions.get(connection_id)
        if session is not None and session.room_id == room_id:
            session.room_id = None
        return list(members)

    def room_of(self, connection_id: str) -> str | None:
        session = self._sessions.get(connection_id)
        return session.room_id if session else None

    def members(self, room_id: str) -> list[str]:
        return list(self._rooms.get(room_id, ()))

    def same_room(self, a: str, b: str) -> bool:
        """两个连接当前是否在同一房间。"""
        room_id = self.room_of(a)
        return room_id is not None and room_id == self.room_of(b)

    # ── 昵称 ──────────────────────────────────────────────────────────

    def name_taken(self, room_id: str, user_name: str, exclude: str | None = None) -> bool:
        """房间内除 ``exclude`` 外是否已有成员使用完全相同的昵称。"""
        for peer in self._rooms.get(room_id, ()):
            if peer == exclude:
                continue
            session = self._sessions.get(peer)
            if session is not None and session.user_name == user_name:
                return True
        return False

    def set_name(self, connection_id: str, user_name: str) -> None:
        self._sessions[connection_id].user_name = user_name

    def clear_name(self, connection_id: str) -> None:
        session = self._sessions.get(connection_id)
        if session is not None:
            session.user_name = None

    def display_name(self, connection_id: str) -> str | None:
        session = self._sessions.get(connection_id)
        return session.user_name if session else None

    # ── 统计 ──────────────────────────────────────────────────────────

    @property
    def room_count(self) -> int:
        return len(self._rooms)

    @property
    def connection_count(self) -> int:
        return len(self._sessions)

    def snapshot(self) -> dict[str, list[str]]:
        """返回 ``room_id -> 成员列表`` 的拷贝。"""
        return {room_id: list(members) for room_id, members in self._rooms.items()}
