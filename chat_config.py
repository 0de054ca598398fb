# chat_config.py
import argparse
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional
from urllib.parse import urlparse

DEFAULT_URL = "ws://127.0.0.1:9001"


@dataclass
class ClientConfig:
    url: str = DEFAULT_URL
    room: str = "general"
    # None = 無限等待（原本的行為）
    connect_timeout: Optional[float] = 10.0
    poll_interval: float = 0.05
    log_file: Optional[str] = None
    debug: bool = False


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="terminal client for a websocket chat relay")
    ap.add_argument(
        "url",
        nargs="?",
        default=None,
        help=f"relay url (default: {DEFAULT_URL})",
    )
    ap.add_argument(
        "--ask",
        action="store_true",
        help="prompt for the relay url before starting",
    )
    ap.add_argument("--room", default="general", help="initial room label (default: general)")
    ap.add_argument(
        "--connect-timeout",
        type=float,
        default=10.0,
        help="seconds to wait for a connection, 0 waits forever (default: 10)",
    )
    ap.add_argument(
        "--poll-interval",
        type=float,
        default=0.05,
        help="screen refresh / inbox drain interval in seconds (default: 0.05)",
    )
    ap.add_argument("--log-file", help="write logs to this file")
    ap.add_argument("--debug", action="store_true", help="enable debug logging")
    return ap


def parse_args(
    argv: Optional[List[str]] = None,
    ask: Optional[Callable[[str], str]] = None,
) -> ClientConfig:
    """
    解析命令列。指定 --ask 時用 ask(default_url) 互動詢問 URL，
    空字串回到預設值。
    """
    ap = build_parser()
    args = ap.parse_args(argv)

    url = args.url or DEFAULT_URL
    if args.ask:
        if ask is None:
            ask = _ask_url
        url = ask(url).strip() or url

    parsed = urlparse(url)
    if parsed.scheme not in ("ws", "wss"):
        ap.error(f"url must start with ws:// or wss:// (got {url!r})")
    try:
        parsed.port
    except ValueError as err:
        ap.error(f"bad port in {url!r}: {err}")
    if args.connect_timeout < 0:
        ap.error("--connect-timeout must be >= 0")
    if args.poll_interval <= 0:
        ap.error("--poll-interval must be > 0")

    return ClientConfig(
        url=url,
        room=args.room,
        connect_timeout=args.connect_timeout or None,
        poll_interval=args.poll_interval,
        log_file=args.log_file,
        debug=args.debug,
    )


def _ask_url(default: str) -> str:
    from prompt_toolkit import prompt

    return prompt("Server URL: ", default=default)


def setup_logging(cfg: ClientConfig) -> None:
    # 全螢幕 UI 佔用終端機，log 只能寫檔
    root = logging.getLogger()
    if not cfg.log_file:
        root.addHandler(logging.NullHandler())
        return
    logging.basicConfig(
        filename=cfg.log_file,
        level=logging.DEBUG if cfg.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
