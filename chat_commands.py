# chat_commands.py
from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Quit:
    pass


@dataclass(frozen=True)
class Clear:
    pass


@dataclass(frozen=True)
class Join:
    room: str
    text: str


@dataclass(frozen=True)
class ColorCmd:
    text: str


@dataclass(frozen=True)
class ServerCmd:
    url: str


@dataclass(frozen=True)
class PlainText:
    text: str


Command = Union[Quit, Clear, Join, ColorCmd, ServerCmd, PlainText]


def parse_command(line: str) -> Command:
    """
    把聊天階段的一行輸入分類。判斷用去掉前後空白的內容，
    轉送上游的文字則保留原樣（/color 例外，先拿掉第一個 '#'）。
    """
    txt = line.strip()
    if not txt:
        raise ValueError("empty input line")

    if txt == "/quit":
        return Quit()
    if txt == "/clear":
        return Clear()

    if txt.startswith("/join "):
        parts = txt.split()
        if len(parts) >= 2:
            return Join(room=parts[1], text=line)
        return PlainText(line)

    if txt.startswith("/color "):
        return ColorCmd(line.replace("#", "", 1))

    if txt.startswith("/server "):
        parts = txt.split()
        if len(parts) >= 2:
            return ServerCmd(parts[1])
        return PlainText(line)

    return PlainText(line)
