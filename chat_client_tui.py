# chat_client_tui.py
# 需求: pip install prompt_toolkit wcwidth websockets
import logging
import sys
from typing import List, Optional, Tuple

from prompt_toolkit import Application
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.layout import HSplit, Layout, Window
from prompt_toolkit.layout.controls import FormattedTextControl, UIContent, UIControl
from prompt_toolkit.mouse_events import MouseEventType
from prompt_toolkit.styles import Style
from prompt_toolkit.widgets import TextArea
from wcwidth import wcswidth

from chat_config import ClientConfig, parse_args, setup_logging
from chat_connection import ConnectionManager
from chat_session import SessionController
from chat_store import ChatMessage, MessageStore, decode_color

logger = logging.getLogger(__name__)

Fragments = List[Tuple[str, str]]


def visible_width(s: str) -> int:
    # 更精確的可見寬度估算（CJK/符號）
    w = wcswidth(s)
    return w if w >= 0 else len(s)


def clip_by_width(s: str, maxw: int) -> str:
    # 依可見寬度裁切字串到 maxw
    if maxw <= 0:
        return ""
    out, w = [], 0
    for ch in s:
        cw = wcswidth(ch)
        cw = cw if cw > 0 else 1
        if w + cw > maxw:
            break
        out.append(ch)
        w += cw
    return "".join(out)


def sender_style(msg: ChatMessage) -> str:
    r, g, b = decode_color(msg.color)
    return f"fg:#{r:02x}{g:02x}{b:02x}"


def format_line(msg: ChatMessage, term_cols: int) -> Fragments:
    """
    "sender: content"，sender 用訊息帶的顏色，整行裁到 term_cols 可見寬度。
    """
    prefix = clip_by_width(f"{msg.sender}: ", term_cols)
    rest_w = max(0, term_cols - visible_width(prefix))
    return [
        (sender_style(msg), prefix),
        ("", clip_by_width(msg.content, rest_w)),
    ]


class MessageLogControl(UIControl):
    def __init__(self, store: MessageStore):
        self.store = store
        self._last_height = 1

    def is_focusable(self) -> bool:
        return False

    def create_content(self, width: int, height: Optional[int]) -> UIContent:
        real_height = height if height and height > 0 else self._last_height
        real_height = max(1, real_height)
        self._last_height = real_height
        # 每次重算，不快取
        lines = [format_line(m, width) for m in self.store.visible_window(real_height)]

        if not lines:
            lines = [[("", "")]]

        def get_line(i: int) -> Fragments:
            return lines[i]

        return UIContent(
            get_line=get_line,
            line_count=len(lines),
            show_cursor=False,
        )

    def mouse_handler(self, mouse_event) -> object:
        if mouse_event.event_type == MouseEventType.SCROLL_UP:
            self.store.scroll_up(3)
            return None
        if mouse_event.event_type == MouseEventType.SCROLL_DOWN:
            self.store.scroll_down(3)
            return None
        return NotImplemented


class ChatClientTUI:
    def __init__(self, cfg: ClientConfig, connections: Optional[ConnectionManager] = None):
        self.cfg = cfg
        self.store = MessageStore()
        self.connections = connections or ConnectionManager(
            self.store,
            connect_timeout=cfg.connect_timeout,
        )
        self.controller = SessionController(self.connections, self.store, initial_room=cfg.room)

        # UI：標題 + 訊息窗 + 分隔線 + 輸入提示 + 輸入列
        self.log_control = MessageLogControl(self.store)
        self.output_window = Window(
            content=self.log_control,
            wrap_lines=False,
            always_hide_cursor=True,
        )
        self.title_bar = Window(
            height=1,
            content=FormattedTextControl(lambda: [("class:title", self.controller.title)]),
            dont_extend_height=True,
        )
        self.prompt_bar = Window(
            height=1,
            content=FormattedTextControl(self._prompt_text),
            dont_extend_height=True,
        )
        self.input = TextArea(
            height=1,
            prompt="❯ ",
            multiline=False,
        )

        kb = KeyBindings()

        @kb.add("enter")
        def _(event):
            txt = self.input.text
            self.input.text = ""  # 清空輸入列
            if not self.controller.submit(txt):
                event.app.exit()

        @kb.add("escape", eager=True)
        @kb.add("c-c")
        def _(event):
            self.controller.quit()
            event.app.exit()

        @kb.add("up")
        def _(event):
            self.store.scroll_up()

        @kb.add("down")
        def _(event):
            self.store.scroll_down()

        @kb.add("pageup")
        def _(event):
            self.store.page_up()

        @kb.add("pagedown")
        def _(event):
            self.store.page_down()

        @kb.add("c-home")
        def _(event):
            self.store.scroll_to_top()

        @kb.add("c-end")
        def _(event):
            self.store.scroll_to_bottom()

        root = HSplit([
            self.title_bar,
            self.output_window,
            Window(height=1, char="-"),
            self.prompt_bar,
            self.input,
        ])

        style = Style.from_dict({
            "title": "bold",
            "prompt": "bold",
            "scrolled": "reverse",
            "offline": "reverse fg:ansired",
        })
        self.app = Application(
            layout=Layout(root, focused_element=self.input),
            key_bindings=kb,
            style=style,
            full_screen=True,
            mouse_support=True,
            refresh_interval=cfg.poll_interval,
        )
        self.app.before_render += self._on_before_render

    def start(self) -> None:
        self.connections.open(self.cfg.url)
        try:
            self.app.run()
        finally:
            self.controller.quit()
            self.connections.close()
            logger.info("session ended")

    def _on_before_render(self, _app) -> None:
        self.controller.tick()

    def _prompt_text(self) -> Fragments:
        frags = [("class:prompt", self.controller.prompt_title)]
        if not self.connections.connected:
            frags.append(("", "  "))
            frags.append(("class:offline", " offline "))
        if not self.store.at_bottom:
            frags.append(("", "  "))
            frags.append(("class:scrolled", f" scrolled +{self.store.scroll_offset} "))
        return frags


def main(argv: Optional[List[str]] = None) -> int:
    cfg = parse_args(argv)
    setup_logging(cfg)
    logger.info("starting client for %s", cfg.url)
    ChatClientTUI(cfg).start()
    return 0


if __name__ == "__main__":
    sys.exit(main())
