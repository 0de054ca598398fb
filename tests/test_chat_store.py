"""Tests for the message log, viewport arithmetic and color decoding."""
import json

import pytest

from chat_errors import DecodeError
from chat_store import RGB, WHITE, ChatMessage, MessageStore, decode_color
from fakes import chat


def filled(n):
    store = MessageStore()
    for i in range(n):
        store.append(chat(f"m{i}"))
    return store


class TestVisibleWindow:
    @pytest.mark.parametrize("total,height", [(0, 5), (3, 5), (5, 5), (12, 5), (40, 1)])
    def test_bottom_window(self, total, height):
        """With no scroll the newest min(height, total) messages are shown oldest first."""
        store = filled(total)
        window = store.visible_window(height)
        assert len(window) == min(height, total)
        assert [m.content for m in window] == [f"m{i}" for i in range(total - len(window), total)]

    @pytest.mark.parametrize("offset", [0, 1, 4, 7])
    def test_last_message_tracks_offset(self, offset):
        """The last visible message sits at total - 1 - offset."""
        store = filled(12)
        store.visible_window(5)
        store.scroll_offset = offset
        window = store.visible_window(5)
        assert len(window) == 5
        assert window[-1].content == f"m{12 - 1 - offset}"

    def test_reflects_new_appends(self):
        store = filled(3)
        assert len(store.visible_window(10)) == 3
        store.append(chat("late"))
        assert store.visible_window(10)[-1].content == "late"

    def test_offset_clamped_when_height_grows(self):
        store = filled(10)
        store.visible_window(4)
        store.scroll_to_top()
        assert store.scroll_offset == 6
        store.visible_window(8)
        assert store.scroll_offset == 2

    def test_zero_height(self):
        assert filled(3).visible_window(0) == []


class TestScrolling:
    def test_scroll_up_clamped(self):
        store = filled(7)
        store.visible_window(5)
        for _ in range(10):
            store.scroll_up()
        assert store.scroll_offset == 2
        assert [m.content for m in store.visible_window(5)] == ["m0", "m1", "m2", "m3", "m4"]

    def test_scroll_down_stops_at_bottom(self):
        store = filled(7)
        store.visible_window(5)
        store.scroll_up()
        store.scroll_down()
        store.scroll_down()
        assert store.scroll_offset == 0
        assert store.at_bottom

    def test_no_scroll_when_everything_fits(self):
        store = filled(3)
        store.visible_window(5)
        store.scroll_up()
        assert store.scroll_offset == 0

    def test_page_moves_by_height_minus_one(self):
        store = filled(30)
        store.visible_window(6)
        store.page_up()
        assert store.scroll_offset == 5
        store.page_down()
        assert store.scroll_offset == 0

    def test_top_and_bottom(self):
        store = filled(30)
        store.visible_window(6)
        store.scroll_to_top()
        assert store.visible_window(6)[0].content == "m0"
        store.scroll_to_bottom()
        assert store.visible_window(6)[-1].content == "m29"


class TestClear:
    def test_clear_empties_log_and_resets_offset(self):
        store = filled(20)
        store.visible_window(5)
        store.scroll_up(3)
        store.clear()
        assert len(store) == 0
        assert store.scroll_offset == 0
        for height in (0, 1, 5, 50):
            assert store.visible_window(height) == []

    def test_append_keeps_order_and_duplicates(self):
        store = MessageStore()
        msgs = [chat("a"), chat("b"), chat("a")]
        for m in msgs:
            store.append(m)
        assert store.messages == msgs


class TestDecodeColor:
    def test_valid(self):
        assert decode_color("ff00ff") == RGB(255, 0, 255)
        assert decode_color("0A1b2C") == RGB(10, 27, 44)

    def test_bad_channel_fails_bright(self):
        assert decode_color("zz0000") == RGB(255, 0, 0)
        assert decode_color("00 f00") == RGB(0, 255, 0)

    @pytest.mark.parametrize("value", ["", "abc", "#ff00ff", "ff00ff00"])
    def test_wrong_length_is_white(self, value):
        assert decode_color(value) == WHITE == RGB(255, 255, 255)


class TestChatMessageDecoding:
    payload = {
        "msg_type": "chat",
        "sender": "alice",
        "color": "ff0000",
        "content": "hi",
        "room": "general",
        "client_count": 3,
    }

    def test_from_json(self):
        msg = ChatMessage.from_json(json.dumps(self.payload))
        assert msg == ChatMessage("chat", "alice", "ff0000", "hi", "general", 3)

    def test_immutable(self):
        msg = ChatMessage.from_json(json.dumps(self.payload))
        with pytest.raises(AttributeError):
            msg.content = "changed"

    @pytest.mark.parametrize(
        "text",
        [
            "not json",
            "[1, 2]",
            json.dumps({"msg_type": "chat"}),
            json.dumps({**payload, "client_count": -1}),
            json.dumps({**payload, "client_count": "3"}),
            json.dumps({**payload, "client_count": True}),
            json.dumps({**payload, "sender": None}),
        ],
    )
    def test_rejects_malformed(self, text):
        with pytest.raises(DecodeError):
            ChatMessage.from_json(text)

    def test_status(self):
        msg = ChatMessage.status("Disconnected from server")
        assert msg.msg_type == "status"
        assert msg.client_count == 0
        assert msg.content == "Disconnected from server"
