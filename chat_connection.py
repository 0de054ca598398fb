# chat_connection.py
# 需求: pip install websockets
import enum
import functools
import logging
import queue
import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

from websockets.exceptions import ConnectionClosed, WebSocketException
from websockets.sync.client import connect as ws_connect

from chat_errors import ConnectError, DecodeError, SendError, StreamEnded
from chat_store import ChatMessage, MessageStore

logger = logging.getLogger(__name__)

DISCONNECTED_TEXT = "Disconnected from server"

Connector = Callable[[str], Any]


class LinkPhase(enum.Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


@dataclass
class ConnectionState:
    phase: LinkPhase = LinkPhase.DISCONNECTED
    # 整個 manager 生命週期只會自動重連一次，手動 /server 也不會重置
    reconnect_attempted: bool = False


class Connection:
    """一條已開啟的 websocket 連線，記住它連到哪個 URL。"""

    def __init__(self, url: str, socket: Any):
        self.url = url
        self._socket = socket

    def send(self, text: str) -> None:
        try:
            self._socket.send(text)
        except (ConnectionClosed, OSError) as err:
            raise SendError(str(err) or err.__class__.__name__) from err

    def recv(self) -> Union[str, bytes]:
        try:
            return self._socket.recv()
        except (ConnectionClosed, OSError) as err:
            raise StreamEnded(str(err) or err.__class__.__name__) from err

    def close(self) -> None:
        try:
            self._socket.close()
        except Exception as err:
            logger.debug("close of %s failed: %s", self.url, err)


class IngestTask:
    """
    每條連線一個背景執行緒：讀 frame → 解成 ChatMessage → 丟進 inbox。
    不碰 MessageStore，串流結束時補一筆 Disconnected 狀態訊息後結束。
    """

    def __init__(self, connection: Connection, inbox: "queue.Queue[ChatMessage]"):
        self.connection = connection
        self.inbox = inbox
        self.thread: Optional[threading.Thread] = None

    def start(self) -> "IngestTask":
        self.thread = threading.Thread(
            target=self.run,
            name=f"ingest-{self.connection.url}",
            daemon=True,
        )
        self.thread.start()
        return self

    @property
    def alive(self) -> bool:
        return self.thread is not None and self.thread.is_alive()

    def run(self) -> None:
        while True:
            try:
                frame = self.connection.recv()
            except StreamEnded as err:
                logger.info("stream from %s ended: %s", self.connection.url, err)
                break
            if not isinstance(frame, str):
                logger.debug("dropping binary frame (%d bytes)", len(frame))
                continue
            try:
                msg = ChatMessage.from_json(frame)
            except DecodeError as err:
                logger.debug("dropping undecodable frame: %s", err)
                continue
            self.inbox.put(msg)
        self.inbox.put(ChatMessage.status(DISCONNECTED_TEXT))


class ConnectionManager:
    """
    持有目前使用中的連線。send 失敗時依「只自動重連一次」的規則處理；
    /server 走 switch()。所有失敗都轉成狀態訊息，不會讓程式結束。
    """

    def __init__(
        self,
        store: MessageStore,
        inbox: Optional["queue.Queue[ChatMessage]"] = None,
        connector: Optional[Connector] = None,
        connect_timeout: Optional[float] = 10.0,
    ):
        self.store = store
        self.inbox: "queue.Queue[ChatMessage]" = inbox if inbox is not None else queue.Queue()
        self.state = ConnectionState()
        self.url: Optional[str] = None
        self.active: Optional[Connection] = None
        self.ingest: Optional[IngestTask] = None
        if connector is None:
            # open_timeout=None 代表無限等待
            connector = functools.partial(ws_connect, open_timeout=connect_timeout)
        self._connector = connector

    def connect(self, url: str) -> Connection:
        logger.info("connecting to %s", url)
        try:
            socket = self._connector(url)
        except (OSError, ValueError, WebSocketException) as err:
            # ValueError: 壞掉的 port 或 IDNA 主機名稱（UnicodeError）
            logger.warning("connect to %s failed: %s", url, err)
            raise ConnectError(url, str(err) or err.__class__.__name__) from err
        return Connection(url, socket)

    def open(self, url: str) -> bool:
        """啟動時的第一次連線。失敗也只記一筆狀態，之後的 send 會走重連。"""
        self.url = url
        try:
            conn = self.connect(url)
        except ConnectError as err:
            self._post(f"Failed to connect to {url}: {err.reason}")
            return False
        self._replace(conn)
        self._post(f"Connected to {url}")
        return True

    def send(self, text: str) -> bool:
        conn = self.active
        if conn is not None:
            try:
                conn.send(text)
                return True
            except SendError as err:
                logger.warning("send to %s failed: %s", conn.url, err)
        else:
            logger.warning("send without an active connection")

        self.state.phase = LinkPhase.DISCONNECTED
        if self.state.reconnect_attempted or self.url is None:
            return False

        url = self.url
        try:
            new_conn = self.connect(url)
        except ConnectError as err:
            self._post(f"Failed to connect to {url}: {err.reason}")
            return False
        self._replace(new_conn)
        self.state.reconnect_attempted = True
        # 原本那則訊息不重送
        self._post(f"Reconnected to {url}")
        return True

    def switch(self, url: str) -> bool:
        if self.active is not None:
            self.active.close()
        self.state.phase = LinkPhase.DISCONNECTED
        try:
            conn = self.connect(url)
        except ConnectError as err:
            # 保留已關閉的舊連線，之後 send 會失敗直到再次重連
            self._post(f"Failed to connect to {url}: {err.reason}")
            return False
        self._replace(conn)
        self.url = url
        self._post(f"Connected to {url}")
        return True

    def close(self) -> None:
        if self.active is not None:
            self.active.close()
        self.state.phase = LinkPhase.DISCONNECTED

    def refresh(self) -> LinkPhase:
        """接收執行緒結束後把 phase 標成 DISCONNECTED。只在 session loop 呼叫。"""
        if self.state.phase is LinkPhase.CONNECTED and self.ingest is not None and not self.ingest.alive:
            logger.info("receive thread for %s has ended", self.ingest.connection.url)
            self.state.phase = LinkPhase.DISCONNECTED
        return self.state.phase

    @property
    def connected(self) -> bool:
        return self.state.phase is LinkPhase.CONNECTED

    def _replace(self, conn: Connection) -> None:
        old = self.active
        self.active = conn
        if old is not None and old is not conn:
            old.close()
        self.ingest = IngestTask(conn, self.inbox).start()
        self.state.phase = LinkPhase.CONNECTED
        logger.info("active connection is now %s", conn.url)

    def _post(self, text: str) -> None:
        self.store.append(ChatMessage.status(text))
