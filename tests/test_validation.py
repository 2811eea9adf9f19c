"""
tests.test_validation
~~~~~~~~~~~~~~~~~~~~~

房间 ID / 用户名 / 聊天文本校验函数的单元测试。
"""
from __future__ import annotations

import pytest

from peerlink.core.validation import (
    is_spam,
    is_valid_chat_text,
    is_valid_room_id,
    is_valid_user_name,
)


class TestRoomId:

    @pytest.mark.parametrize("room_id", ["room_1", "abc", "A-b_9", "x" * 32])
    def test_accepts(self, room_id: str) -> None:
        assert is_valid_room_id(room_id) is True

    @pytest.mark.parametrize(
        "room_id",
        ["", "ab", "x" * 33, "room 1", "room/1", "комната", None, 123, ["room_1"]],
    )
    def test_rejects(self, room_id: object) -> None:
        assert is_valid_room_id(room_id) is False

    def test_case_sensitive_ids_are_both_valid(self) -> None:
        assert is_valid_room_id("Room_1")
        assert is_valid_room_id("room_1")


class TestUserName:

    @pytest.mark.parametrize("name", ["Al", "Alice", "  Bo ", "x" * 20, "Мария"])
    def test_accepts(self, name: str) -> None:
        assert is_valid_user_name(name) is True

    @pytest.mark.parametrize(
        "name",
        ["", "A", " A ", "x" * 21, "<b>", 'Al"ice', "Al'ice", "A&B", "a>b", None, 42],
    )
    def test_rejects(self, name: object) -> None:
        assert is_valid_user_name(name) is False

    def test_custom_max_length(self) -> None:
        assert is_valid_user_name("abcdef", max_length=5) is False
        assert is_valid_user_name("abcde", max_length=5) is True


class TestChatText:

    def test_plain_message_accepted(self) -> None:
        assert is_valid_chat_text("привет, как дела?") is True
        assert is_valid_chat_text("Hello there, see you at 10:30") is True

    @pytest.mark.parametrize("text", ["", "   ", "\n\t", None, 5, {"text": "hi"}])
    def test_empty_or_wrong_type_rejected(self, text: object) -> None:
        assert is_valid_chat_text(text) is False

    def test_length_limit(self) -> None:
        assert is_valid_chat_text("ab " * 166 + "ab") is True  # 500
        assert is_valid_chat_text("ab " * 167) is False  # 501

    @pytest.mark.parametrize(
        "text",
        [
            "a" * 11,
            "l" + "o" * 12 + "l",
            "visit http://spam.example now",
            "HTTPS://EXAMPLE.COM",
            "this is SOLOUDNOWOK",
            "call 1234567890",
        ],
    )
    def test_spam_rejected(self, text: str) -> None:
        assert is_spam(text) is True
        assert is_valid_chat_text(text) is False

    @pytest.mark.parametrize(
        "text",
        ["a" * 10, "ABCDEFGHI", "123456789", "see example.com", "NASA and ESA"],
    )
    def test_below_spam_thresholds_accepted(self, text: str) -> None:
        assert is_valid_chat_text(text) is True
