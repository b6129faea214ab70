"""
Test configuration and fixtures for RoomChat client tests.

Provides:
- An in-memory transport and connector standing in for the WebSocket layer
- A scripted renderer that feeds keys and records what was drawn
- Session and event loop builders
"""

import asyncio
import json
from collections import deque
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Union

import pytest
from websockets.exceptions import ConnectionClosedOK

from RoomChat.core.client.connection import ConnectionManager
from RoomChat.core.client.event_loop import EventLoop
from RoomChat.core.client.session import Identity, SessionState
from RoomChat.core.client.ui.renderer import RenderView

SERVER_A = "ws://chat-a.test:9001"
SERVER_B = "ws://chat-b.test:9001"

_PEER_CLOSE = object()


class FakeTransport:
    """In-memory stand-in for a client WebSocket connection."""

    def __init__(self, url: str, log: List[Tuple]):
        self.url = url
        self.log = log
        self.sent: List[dict] = []
        self.closed = False
        self._incoming: asyncio.Queue = asyncio.Queue()

    def feed(self, payload: Union[dict, str]) -> None:
        """Queue a frame as if the server had sent it."""
        self._incoming.put_nowait(json.dumps(payload) if isinstance(payload, dict) else payload)

    def peer_close(self) -> None:
        """Make the next recv fail as if the server closed the connection."""
        self._incoming.put_nowait(_PEER_CLOSE)

    async def send(self, message: str) -> None:
        if self.closed:
            raise ConnectionClosedOK(None, None)
        frame = json.loads(message)
        self.sent.append(frame)
        self.log.append(("send", self.url, frame["type"]))

    async def recv(self) -> str:
        item = await self._incoming.get()
        if item is _PEER_CLOSE:
            self.closed = True
            raise ConnectionClosedOK(None, None)
        return item

    async def close(self) -> None:
        if not self.closed:
            self.log.append(("close", self.url))
        self.closed = True
        self._incoming.put_nowait(_PEER_CLOSE)


class FakeConnector:
    """
    Connector that hands out FakeTransports.

    Attributes:
        log: Ordered ("connect"|"send"|"close", url, ...) records
        failures: url -> exception raised instead of connecting
        delays: url -> seconds to wait before the handshake completes
    """

    def __init__(self):
        self.log: List[Tuple] = []
        self.transports: Dict[str, FakeTransport] = {}
        self.failures: Dict[str, BaseException] = {}
        self.delays: Dict[str, float] = {}

    async def __call__(self, url: str) -> FakeTransport:
        self.log.append(("connect", url))
        if url in self.delays:
            await asyncio.sleep(self.delays[url])
        if url in self.failures:
            raise self.failures[url]
        transport = FakeTransport(url, self.log)
        self.transports[url] = transport
        return transport

    def lifecycle(self) -> List[Tuple]:
        """Connect and close records only."""
        return [entry for entry in self.log if entry[0] in ("connect", "close")]


class FakeRenderer:
    """
    Renderer that replays scripted keys and keeps every drawn view.

    Keys are held back while ``ready()`` is false, so a test can script
    input that only arrives once, say, the connection is up.
    """

    def __init__(self, rows: int = 5, keys: Iterable = ()):
        self.rows = rows
        self.keys: deque = deque(keys)
        self.views: List[RenderView] = []
        self.prompts: List[Tuple[List[str], str]] = []
        self.ready: Callable[[], bool] = lambda: True

    @property
    def visible_rows(self) -> int:
        return self.rows

    def type(self, text: str, enter: bool = True) -> None:
        self.keys.extend(text)
        if enter:
            self.keys.append("\n")

    def draw(self, view: RenderView) -> None:
        self.views.append(view)

    def draw_prompt(self, lines: List[str], input_text: str) -> None:
        self.prompts.append((list(lines), input_text))

    async def poll_key(self, timeout: float) -> Optional[Union[int, str]]:
        await asyncio.sleep(0)
        if not self.keys or not self.ready():
            return None
        return self.keys.popleft()


async def wait_for_inbound(manager: ConnectionManager, count: int, timeout: float = 1.0) -> None:
    """Yield to the reader task until ``count`` events are queued."""
    async def _poll():
        while manager.inbound.qsize() < count:
            await asyncio.sleep(0)
    await asyncio.wait_for(_poll(), timeout)


async def wait_until(condition: Callable[[], bool], timeout: float = 1.0) -> None:
    """Yield to other tasks until ``condition()`` holds."""
    async def _poll():
        while not condition():
            await asyncio.sleep(0)
    await asyncio.wait_for(_poll(), timeout)


def make_session(url: str = SERVER_A, nickname: str = "alice", color: str = "00FF00",
                 room: str = "general", rows: int = 5) -> SessionState:
    return SessionState.create(Identity(nickname, color), url, room, rows)


def make_loop(connector: FakeConnector, renderer: FakeRenderer, url: str = SERVER_A,
              **session_args) -> EventLoop:
    session = make_session(url, rows=renderer.visible_rows, **session_args)
    manager = ConnectionManager(connector, handshake_timeout=1.0, close_timeout=0.5)
    return EventLoop(session, manager, renderer, tick_interval=0, shutdown_timeout=1.0)


@pytest.fixture
def connector() -> FakeConnector:
    return FakeConnector()


@pytest.fixture
def renderer() -> FakeRenderer:
    return FakeRenderer()
