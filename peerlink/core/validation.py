"""
peerlink.core.validation
~~~~~~~~~~~~~~~~~~~~~~~~

输入校验 —— 房间 ID、用户名、聊天文本的纯函数判定，无任何状态。
"""
from __future__ import annotations

import re
from typing import Any

ROOM_ID_MIN_LENGTH: int = 3
ROOM_ID_MAX_LENGTH: int = 32
DEFAULT_MAX_USERNAME_LENGTH: int = 20
DEFAULT_MAX_MESSAGE_LENGTH: int = 500
MIN_USERNAME_TRIMMED_LENGTH: int = 2

_ROOM_ID_RE = re.compile(r"[A-Za-z0-9_-]+")
_USERNAME_FORBIDDEN_RE = re.compile(r"[<>\"'&]")

# 聊天垃圾消息特征，命中任意一条即整条拒绝
SPAM_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"(.)\1{10,}"),  # 重复字符
    re.compile(r"https?://\S+", re.IGNORECASE),  # 链接
    re.compile(r"[A-Z]{10,}"),  # 连续大写
    re.compile(r"[0-9]{10,}"),  # 连续数字
)


def is_valid_room_id(room_id: Any) -> bool:
    """房间 ID：3-32 位，仅允许字母、数字、连字符、下划线（区分大小写）。"""
    if not room_id or not isinstance(room_id, str):
        return False
    if not ROOM_ID_MIN_LENGTH <= len(room_id) <= ROOM_ID_MAX_LENGTH:
        return False
    return _ROOM_ID_RE.fullmatch(room_id) is not None


def is_valid_user_name(
    user_name: Any, max_length: int = DEFAULT_MAX_USERNAME_LENGTH,
) -> bool:
    """用户名：非空、不超过 ``max_length``、去空白后至少 2 个字符、不含 HTML 特殊字符。"""
    if not user_name or not isinstance(user_name, str):
        return False
    if len(user_name) > max_length:
        return False
    if len(user_name.strip()) < MIN_USERNAME_TRIMMED_LENGTH:
        return False
    return _USERNAME_FORBIDDEN_RE.search(user_name) is None


def is_spam(text: str) -> bool:
    return any(pattern.search(text) for pattern in SPAM_PATTERNS)


def is_valid_chat_text(
    text: Any, max_length: int = DEFAULT_MAX_MESSAGE_LENGTH,
) -> bool:
    """聊天文本：非空白、不超过 ``max_length``、不命中任何垃圾消息特征。

    只做判定，不截断也不清洗。
    """
    if not text or not isinstance(text, str):
        return False
    if len(text) > max_length:
        return False
    if not text.strip():
        return False
    return not is_spam(text)
