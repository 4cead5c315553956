"""
WebSocket supervisor for the CLOB market channel. Never gives up: reconnects
after a fixed delay, forever, with a fresh ask view each time.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Protocol

import websockets
from websockets.asyncio.client import connect

from book.ask_state import AskState
from book.classifier import FeedHandler
from book.models import PairedUpdate, Token, subscription_message
from monitor.display import print_paired_update

logger = logging.getLogger(__name__)

RECONNECT_DELAY_SEC = 5.0
OPEN_TIMEOUT_SEC = 10.0
# Largest accepted frame. Subscribe-time book batches can exceed the library's
# 1 MiB default. A bigger frame closes the connection with 1009, which the
# supervisor treats as a transport error.
MAX_FRAME_BYTES = 4 * 1024 * 1024

TRANSPORT_ERRORS = (
    websockets.WebSocketException,
    ConnectionError,
    OSError,
    asyncio.TimeoutError,
)


class FrameKind(Enum):
    TEXT = "text"
    BINARY = "binary"
    PING = "ping"
    PONG = "pong"
    CLOSE = "close"


@dataclass(frozen=True)
class Frame:
    kind: FrameKind
    data: str | bytes = b""


class Transport(Protocol):
    async def recv(self) -> Frame: ...
    async def send(self, text: str) -> None: ...
    async def pong(self, payload: bytes) -> None: ...
    async def close(self) -> None: ...


Connector = Callable[[str], Awaitable[Transport]]


class WebsocketsTransport:
    """
    Transport over a ``websockets`` client connection.

    The library answers protocol pings on its own and only hands data frames
    to recv(), so PING frames never surface here. A clean close from the
    server is reported as a CLOSE frame; abnormal closes raise.
    """

    def __init__(self, ws) -> None:
        self._ws = ws

    async def recv(self) -> Frame:
        try:
            msg = await self._ws.recv()
        except websockets.ConnectionClosedOK as e:
            reason = e.rcvd.reason if e.rcvd is not None else ""
            return Frame(FrameKind.CLOSE, reason)
        if isinstance(msg, str):
            return Frame(FrameKind.TEXT, msg)
        return Frame(FrameKind.BINARY, bytes(msg))

    async def send(self, text: str) -> None:
        await self._ws.send(text)

    async def pong(self, payload: bytes) -> None:
        await self._ws.pong(payload)

    async def close(self) -> None:
        await self._ws.close()


async def open_websocket(
    url: str,
    open_timeout: float = OPEN_TIMEOUT_SEC,
    max_size: int = MAX_FRAME_BYTES,
) -> WebsocketsTransport:
    ws = await connect(url, open_timeout=open_timeout, max_size=max_size)
    return WebsocketsTransport(ws)


class SupervisorState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    SUBSCRIBED = "subscribed"
    STREAMING = "streaming"
    CLOSED = "closed"
    ERRORED = "errored"


@dataclass
class FeedSupervisor:
    """
    Owns the feed connection lifecycle:
    connect -> subscribe -> stream -> (closed | errored) -> wait -> connect.

    The AskState is created per connection and only touched from this
    task's receive loop.
    """
    url: str
    tokens: list[Token]
    reconnect_delay: float = RECONNECT_DELAY_SEC
    on_update: Callable[[PairedUpdate], None] = print_paired_update
    connector: Connector = open_websocket
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    state: SupervisorState = SupervisorState.DISCONNECTED
    ask_state: AskState = field(default_factory=AskState)
    # Health tracking
    connect_count: int = 0
    error_count: int = 0
    last_message_time: float = 0.0

    @property
    def token_ids(self) -> list[str]:
        return [t.id for t in self.tokens]

    @property
    def names(self) -> dict[str, str]:
        return {t.id: t.display_name for t in self.tokens}

    async def run(self) -> None:
        """Stream forever. Only external cancellation ends this coroutine."""
        while True:
            logger.info("Connecting to %s...", self.url)
            try:
                await self.run_once()
                logger.info("Stream ended, reconnecting in %.0fs...", self.reconnect_delay)
            except TRANSPORT_ERRORS as e:
                self.state = SupervisorState.ERRORED
                self.error_count += 1
                logger.warning(
                    "Connection error: %s, reconnecting in %.0fs...",
                    str(e) or type(e).__name__, self.reconnect_delay,
                )
            await self.sleep(self.reconnect_delay)

    async def run_once(self) -> None:
        """One connection lifetime. Raises transport errors to the caller."""
        self.state = SupervisorState.CONNECTING
        self.ask_state = AskState()
        handler = FeedHandler(self.ask_state, self.names, on_update=self.on_update)

        transport = await self.connector(self.url)
        try:
            self.connect_count += 1
            token_ids = self.token_ids
            logger.info("Connected, subscribing to %d tokens", len(token_ids))
            await transport.send(json.dumps(subscription_message(token_ids)))
            self.state = SupervisorState.SUBSCRIBED
            logger.info("Subscribed. Streaming live prices...")

            self.state = SupervisorState.STREAMING
            await self._receive_loop(transport, handler)
            self.state = SupervisorState.CLOSED
        finally:
            logger.debug("Ask view at disconnect: %s", self.ask_state.snapshot())
            try:
                await transport.close()
            except TRANSPORT_ERRORS as e:
                logger.debug("Ignoring error while closing transport: %s", e)

    async def _receive_loop(self, transport: Transport, handler: FeedHandler) -> None:
        while True:
            frame = await transport.recv()
            self.last_message_time = time.time()

            if frame.kind is FrameKind.TEXT:
                handler.handle_text(frame.data)
            elif frame.kind is FrameKind.PING:
                await transport.pong(frame.data)
            elif frame.kind is FrameKind.CLOSE:
                logger.info("Server closed connection (%d tokens priced)", len(self.ask_state))
                return
