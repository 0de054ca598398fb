"""Tests for the viewport control and line formatting."""
from prompt_toolkit.mouse_events import MouseEvent, MouseEventType

from chat_client_tui import MessageLogControl, clip_by_width, format_line, visible_width
from chat_store import ChatMessage, MessageStore
from fakes import chat


def test_clip_by_width_counts_wide_chars():
    assert clip_by_width("你好嗎", 4) == "你好"
    assert clip_by_width("abc", 0) == ""
    assert visible_width("你好") == 4


def test_format_line_colors_sender():
    msg = ChatMessage("chat", "alice", "ff00ff", "hello", "general", 0)
    assert format_line(msg, 80) == [("fg:#ff00ff", "alice: "), ("", "hello")]


def test_format_line_invalid_color_is_white_and_clipped():
    msg = ChatMessage("chat", "bob", "xyz", "a long line of text", "general", 0)
    frags = format_line(msg, 10)
    assert frags[0] == ("fg:#ffffff", "bob: ")
    assert frags[1] == ("", "a lon")


class TestMessageLogControl:
    def test_renders_latest_messages(self):
        store = MessageStore()
        for i in range(10):
            store.append(chat(f"m{i}"))
        content = MessageLogControl(store).create_content(40, 3)
        assert content.line_count == 3
        assert content.get_line(2)[1] == ("", "m9")

    def test_empty_store_has_one_blank_line(self):
        content = MessageLogControl(MessageStore()).create_content(40, 5)
        assert content.line_count == 1

    def test_mouse_wheel_scrolls(self):
        store = MessageStore()
        for i in range(10):
            store.append(chat(f"m{i}"))
        control = MessageLogControl(store)
        control.create_content(40, 3)
        event = MouseEvent(position=None, event_type=MouseEventType.SCROLL_UP, button=None, modifiers=frozenset())
        assert control.mouse_handler(event) is None
        assert store.scroll_offset == 3
