# chat_session.py
import enum
import logging
import queue

from chat_commands import Clear, ColorCmd, Join, PlainText, Quit, ServerCmd, parse_command
from chat_connection import ConnectionManager
from chat_store import MessageStore

logger = logging.getLogger(__name__)

DEFAULT_ROOM = "general"


class SessionPhase(enum.Enum):
    AWAITING_NICKNAME = "nickname"
    AWAITING_COLOR = "color"
    CHATTING = "chat"


_PROMPT_TITLES = {
    SessionPhase.AWAITING_NICKNAME: "Enter nickname",
    SessionPhase.AWAITING_COLOR: "Enter hex color",
    SessionPhase.CHATTING: "Input",
}


class SessionController:
    """
    暱稱 → 顏色 → 聊天 的狀態機。phase 只往前走；
    連線那一格由 ConnectionManager 管，/server 換連線不影響 phase。
    """

    def __init__(
        self,
        connections: ConnectionManager,
        store: MessageStore,
        initial_room: str = DEFAULT_ROOM,
    ):
        self.connections = connections
        self.store = store
        self.phase = SessionPhase.AWAITING_NICKNAME
        self.current_room = initial_room
        self.client_count = 0
        self.running = True

    @property
    def prompt_title(self) -> str:
        return _PROMPT_TITLES[self.phase]

    @property
    def title(self) -> str:
        return f"Room: {self.current_room}[{self.client_count}]"

    def tick(self) -> int:
        """把 inbox 裡目前有的訊息全部搬進 store，不等待。回傳搬了幾筆。"""
        drained = 0
        while True:
            try:
                msg = self.connections.inbox.get_nowait()
            except queue.Empty:
                break
            # 0 代表對方沒回報人數，不是 0 人
            if msg.client_count > 0:
                self.client_count = msg.client_count
            self.store.append(msg)
            drained += 1
        self.connections.refresh()
        return drained

    def quit(self) -> None:
        self.running = False

    def submit(self, line: str) -> bool:
        if not self.running:
            return False
        if not line.strip():
            return True
        # 先把已收到的訊息搬進來，狀態訊息才會排在它們後面
        self.tick()

        if self.phase is SessionPhase.AWAITING_NICKNAME:
            # 清掉握手前的連線狀態訊息
            self.store.clear()
            self.connections.send(line.strip())
            self.phase = SessionPhase.AWAITING_COLOR
        elif self.phase is SessionPhase.AWAITING_COLOR:
            self.connections.send(line.strip())
            self.phase = SessionPhase.CHATTING
        else:
            self._handle_chat(line)
        return self.running

    def _handle_chat(self, line: str) -> None:
        cmd = parse_command(line)
        if isinstance(cmd, Quit):
            self.quit()
        elif isinstance(cmd, Clear):
            self.store.clear()
        elif isinstance(cmd, Join):
            self.current_room = cmd.room
            self.connections.send(cmd.text)
        elif isinstance(cmd, ColorCmd):
            self.connections.send(cmd.text)
        elif isinstance(cmd, ServerCmd):
            logger.info("switching server to %s", cmd.url)
            self.connections.switch(cmd.url)
        elif isinstance(cmd, PlainText):
            self.connections.send(cmd.text)
