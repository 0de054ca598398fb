# chat_store.py
import json
import re
from dataclasses import dataclass
from typing import List, NamedTuple, Optional

from chat_errors import DecodeError

STATUS_SENDER = "System"

_FIELDS = ("msg_type", "sender", "color", "content", "room", "client_count")
_HEX_PAIR = re.compile(r"[0-9a-fA-F]{2}")


class RGB(NamedTuple):
    r: int
    g: int
    b: int


WHITE = RGB(255, 255, 255)


@dataclass(frozen=True)
class ChatMessage:
    msg_type: str
    sender: str
    color: str
    content: str
    room: str
    client_count: int = 0

    @classmethod
    def from_json(cls, text: str) -> "ChatMessage":
        """
        解析一個文字 frame。六個欄位全部必填，client_count 必須是非負整數。
        任何不符都丟 DecodeError。
        """
        try:
            obj = json.loads(text)
        except (json.JSONDecodeError, TypeError) as err:
            raise DecodeError(f"invalid json: {err}") from err
        if not isinstance(obj, dict):
            raise DecodeError("frame is not a json object")

        missing = [k for k in _FIELDS if k not in obj]
        if missing:
            raise DecodeError(f"missing fields: {', '.join(missing)}")
        for key in _FIELDS[:-1]:
            if not isinstance(obj[key], str):
                raise DecodeError(f"{key} must be a string")
        count = obj["client_count"]
        # bool 是 int 的子類別，要排除
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            raise DecodeError("client_count must be a non-negative integer")

        return cls(**{k: obj[k] for k in _FIELDS})

    @classmethod
    def status(cls, text: str) -> "ChatMessage":
        return cls(
            msg_type="status",
            sender=STATUS_SENDER,
            color="",
            content=text,
            room="",
            client_count=0,
        )


def decode_color(hex_str: str) -> RGB:
    # 長度不對直接白色；單一通道解析失敗則該通道給 255
    if len(hex_str) != 6:
        return WHITE

    def channel(pair: str) -> int:
        if not _HEX_PAIR.fullmatch(pair):
            return 255
        return int(pair, 16)

    return RGB(channel(hex_str[0:2]), channel(hex_str[2:4]), channel(hex_str[4:6]))


class MessageStore:
    """
    訊息紀錄 + 視窗位移。scroll_offset 從最新一筆往回算，0 代表貼齊底部。
    只由 session loop 讀寫，不需要鎖。
    """

    def __init__(self):
        self.entries: List[ChatMessage] = []
        self.scroll_offset = 0
        self.height = 0

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def messages(self) -> List[ChatMessage]:
        return list(self.entries)

    def append(self, msg: ChatMessage) -> None:
        self.entries.append(msg)

    def clear(self) -> None:
        self.entries.clear()
        self.scroll_offset = 0

    def visible_window(self, height: int) -> List[ChatMessage]:
        height = max(0, height)
        self.height = height
        self.scroll_offset = self._clamp_offset(self.scroll_offset, height)

        total = len(self.entries)
        if total > height:
            start = max(0, total - height - self.scroll_offset)
        else:
            start = 0
        end = min(total, start + height)
        return self.entries[start:end]

    def max_offset(self, height: Optional[int] = None) -> int:
        height = self.height if height is None else height
        return max(0, len(self.entries) - height)

    def scroll_up(self, amount: int = 1) -> None:
        if amount <= 0:
            return
        self.scroll_offset = self._clamp_offset(self.scroll_offset + amount)

    def scroll_down(self, amount: int = 1) -> None:
        if amount <= 0:
            return
        self.scroll_offset = self._clamp_offset(self.scroll_offset - amount)

    def page_up(self) -> None:
        self.scroll_up(max(1, self.height - 1))

    def page_down(self) -> None:
        self.scroll_down(max(1, self.height - 1))

    def scroll_to_top(self) -> None:
        self.scroll_offset = self.max_offset()

    def scroll_to_bottom(self) -> None:
        self.scroll_offset = 0

    @property
    def at_bottom(self) -> bool:
        return self.scroll_offset == 0

    def _clamp_offset(self, value: int, height: Optional[int] = None) -> int:
        return max(0, min(value, self.max_offset(height)))
