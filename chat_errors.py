# chat_errors.py


class ChatClientError(Exception):
    """Base class for errors raised by the chat client core."""


class ConnectError(ChatClientError):
    def __init__(self, url: str, reason: str):
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


class SendError(ChatClientError):
    pass


class DecodeError(ChatClientError):
    pass


class StreamEnded(ChatClientError):
    """Peer closed the stream or reading from it failed."""
