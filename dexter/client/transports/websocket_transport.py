"""
WebSocket transport for the Dexter job engine.

Each connection runs as one asyncio task on the caller's event loop. Text
lines sent before the handshake completes are queued and flushed in order
once the socket is open; closing a connection discards anything still queued.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging

import websockets
from websockets.exceptions import ConnectionClosed

from dexter import config as cfg
from dexter.client.transports.base import CloseHandler, MessageHandler, OpenHandler

logger = logging.getLogger(__name__)


class WebSocketConnection:
    """
    A single client connection.

    Failures to connect and drops without a close frame are reported to
    on_close with code 1006, the same way a browser WebSocket reports them.
    """

    def __init__(self, url: str, open_timeout: float | None = 10.0):
        self.url = url
        self.open_timeout = open_timeout
        self._ws = None
        self._task: asyncio.Task | None = None
        self._writer: asyncio.Task | None = None
        self._outbox: asyncio.Queue[str] = asyncio.Queue()
        self._closed = False

    @property
    def is_open(self) -> bool:
        return self._ws is not None and not self._closed

    def start(self, on_open: OpenHandler, on_message: MessageHandler, on_close: CloseHandler) -> None:
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run(on_open, on_message, on_close))

    def send(self, text: str) -> None:
        if self._closed:
            logger.debug(f"Dropping send on closed connection {self.url}: {text}")
            return
        self._outbox.put_nowait(text)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        # Abandon queued lines
        while not self._outbox.empty():
            self._outbox.get_nowait()
        if self._task is not None and not self._task.done():
            self._task.cancel()
        logger.debug(f"WebSocket connection to {self.url} closed by client")

    def _dispatch(self, handler, *args) -> None:
        # Handler bugs are local; they must not read as a dropped socket
        try:
            handler(*args)
        except Exception as e:
            logger.error(f"Event handler failed on {self.url}: {e}", exc_info=True)

    async def _drain(self, ws) -> None:
        while True:
            text = await self._outbox.get()
            await ws.send(text)

    async def _run(self, on_open: OpenHandler, on_message: MessageHandler, on_close: CloseHandler) -> None:
        code = cfg.ABNORMAL_CLOSE_CODE
        try:
            async with websockets.connect(self.url, open_timeout=self.open_timeout) as ws:
                self._ws = ws
                logger.info(f"WebSocket connected: {self.url}")
                self._dispatch(on_open)
                self._writer = asyncio.create_task(self._drain(ws))
                try:
                    async for message in ws:
                        self._dispatch(on_message, message)
                except ConnectionClosed:
                    pass
                finally:
                    self._writer.cancel()
                    with contextlib.suppress(asyncio.CancelledError, ConnectionClosed):
                        await self._writer
            if ws.close_code is not None:
                code = ws.close_code
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"WebSocket {self.url} failed: {e}")
        finally:
            self._ws = None

        logger.info(f"WebSocket {self.url} closed with code {code}")
        on_close(code)


class WebSocketTransport:
    """Hands out WebSocketConnection instances."""

    def __init__(self, open_timeout: float | None = 10.0):
        self.open_timeout = open_timeout

    def create_connection(self, url: str) -> WebSocketConnection:
        return WebSocketConnection(url, open_timeout=self.open_timeout)
