"""
Transport interfaces shared by the ConnectionManager and its transports.

A transport hands out connections. A connection is created idle, then
started with three event handlers; the transport decides when to call them.
"""

from collections.abc import Callable
from typing import Protocol

OpenHandler = Callable[[], None]
MessageHandler = Callable[[bytes | str], None]
CloseHandler = Callable[[int], None]


class Connection(Protocol):
    url: str

    def start(
        self, on_open: OpenHandler, on_message: MessageHandler, on_close: CloseHandler
    ) -> None: ...

    def send(self, text: str) -> None: ...

    def close(self) -> None: ...


class Transport(Protocol):
    def create_connection(self, url: str) -> Connection: ...
