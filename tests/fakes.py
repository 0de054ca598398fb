"""Fakes for the websocket transport."""
import queue

from websockets.exceptions import ConnectionClosedOK

from chat_store import ChatMessage

_CLOSED = object()


class FakeSocket:
    """Stands in for a websockets ClientConnection."""

    def __init__(self, frames=(), fail_send=False):
        self.sent = []
        self.closed = False
        self.fail_send = fail_send
        self._frames = queue.Queue()
        for frame in frames:
            self._frames.put(frame)

    def push(self, frame):
        self._frames.put(frame)

    def send(self, text):
        if self.fail_send or self.closed:
            raise OSError("broken pipe")
        self.sent.append(text)

    def recv(self):
        frame = self._frames.get()
        if frame is _CLOSED:
            raise ConnectionClosedOK(None, None)
        return frame

    def close(self):
        if not self.closed:
            self.closed = True
            self._frames.put(_CLOSED)


class FakeConnector:
    """Hands out queued sockets; an exception in the queue is raised instead."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = []

    def __call__(self, url):
        self.calls.append(url)
        result = self.results.pop(0)
        if isinstance(result, BaseException):
            raise result
        return result


def chat(content, sender="bob", client_count=0):
    return ChatMessage(
        msg_type="chat",
        sender=sender,
        color="00ff00",
        content=content,
        room="general",
        client_count=client_count,
    )
