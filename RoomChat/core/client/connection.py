"""
Connection management for the terminal client.

The ConnectionManager owns at most one live connection. A reader task per
connection receives frames and hands them to the event loop through a bounded
queue; it never touches session state. Status transitions are published on a
separate queue for display.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Dict, FrozenSet, Optional, Protocol, Union

from websockets.asyncio.client import connect
from websockets.exceptions import ConnectionClosed, InvalidHandshake, InvalidURI

from RoomChat.config import config
from RoomChat.core.logging import get_logger
from RoomChat.core.logging.utils import LogTimer
from RoomChat.core.message.protocol import Frame
from .utils import (
    CLOSE_TIMEOUT_SECONDS,
    INBOUND_QUEUE_SIZE,
    ConnectionErrorKind,
    ProtocolError,
    WsConnectionError,
)

logger = get_logger(__name__)

__all__ = [
    'ConnectionStatus', 'ConnectionHandle', 'ConnectionManager', 'Connector',
    'FrameEvent', 'ProtocolErrorEvent', 'PeerClosedEvent', 'StatusEvent',
    'Transport', 'websocket_connector',
]


class ConnectionStatus(Enum):
    """Lifecycle states of a connection handle."""
    DISCONNECTED = "Disconnected"
    CONNECTING = "Connecting"
    CONNECTED = "Connected"
    CLOSING = "Closing"
    FAILED = "Failed"


_TRANSITIONS: Dict[ConnectionStatus, FrozenSet[ConnectionStatus]] = {
    ConnectionStatus.DISCONNECTED: frozenset({ConnectionStatus.CONNECTING}),
    ConnectionStatus.CONNECTING: frozenset({ConnectionStatus.CONNECTED, ConnectionStatus.FAILED}),
    ConnectionStatus.CONNECTED: frozenset({ConnectionStatus.CLOSING, ConnectionStatus.FAILED}),
    ConnectionStatus.CLOSING: frozenset({ConnectionStatus.DISCONNECTED}),
    ConnectionStatus.FAILED: frozenset({ConnectionStatus.DISCONNECTED}),
}


@dataclass
class ConnectionHandle:
    """The manager's reference to one connection attempt."""
    server_url: str
    status: ConnectionStatus = ConnectionStatus.DISCONNECTED

    @property
    def is_live(self) -> bool:
        return self.status in (
            ConnectionStatus.CONNECTING,
            ConnectionStatus.CONNECTED,
            ConnectionStatus.CLOSING,
        )


@dataclass(frozen=True)
class StatusEvent:
    """Published on every state transition."""
    server_url: str
    status: ConnectionStatus
    error: Optional[WsConnectionError] = None


@dataclass(frozen=True)
class FrameEvent:
    """A decoded frame received from the server."""
    handle: ConnectionHandle
    frame: Frame


@dataclass(frozen=True)
class ProtocolErrorEvent:
    """An inbound frame that could not be decoded."""
    handle: ConnectionHandle
    error: ProtocolError


@dataclass(frozen=True)
class PeerClosedEvent:
    """The server closed the connection; the reader task has stopped."""
    handle: ConnectionHandle
    error: WsConnectionError


InboundEvent = Union[FrameEvent, ProtocolErrorEvent, PeerClosedEvent]


class Transport(Protocol):
    """Message-oriented connection to the chat service."""

    async def send(self, message: str) -> None: ...

    async def recv(self) -> Union[str, bytes]: ...

    async def close(self) -> None: ...


Connector = Callable[[str], Awaitable[Transport]]


async def websocket_connector(url: str) -> Transport:
    """Open a WebSocket connection; the caller bounds the handshake time."""
    return await connect(url, open_timeout=None, close_timeout=CLOSE_TIMEOUT_SECONDS)


class ConnectionManager:
    """
    Owns the single live connection slot.

    Attributes:
        inbound: Bounded queue of InboundEvent written by the reader task
        status_events: Queue of StatusEvent, one per state transition
    """

    def __init__(
        self,
        connector: Optional[Connector] = None,
        handshake_timeout: Optional[float] = None,
        close_timeout: float = CLOSE_TIMEOUT_SECONDS,
        queue_size: int = INBOUND_QUEUE_SIZE,
        shutdown_event: Optional[asyncio.Event] = None,
    ):
        self._connector = connector or websocket_connector
        self._handshake_timeout = (
            config.HANDSHAKE_TIMEOUT_SECONDS if handshake_timeout is None else handshake_timeout
        )
        self._close_timeout = close_timeout
        self.inbound: asyncio.Queue = asyncio.Queue(maxsize=queue_size)
        self.status_events: asyncio.Queue = asyncio.Queue()
        self.shutdown_event = shutdown_event or asyncio.Event()

        self._handle: Optional[ConnectionHandle] = None
        self._transport: Optional[Transport] = None
        self._reader: Optional[asyncio.Task] = None
        self._switch_task: Optional[asyncio.Task] = None

    @property
    def handle(self) -> Optional[ConnectionHandle]:
        return self._handle

    @property
    def connected(self) -> bool:
        return self._handle is not None and self._handle.status is ConnectionStatus.CONNECTED

    def _transition(
        self,
        handle: ConnectionHandle,
        status: ConnectionStatus,
        error: Optional[WsConnectionError] = None
    ) -> None:
        if status not in _TRANSITIONS[handle.status]:
            raise RuntimeError(f"Illegal transition {handle.status.value} -> {status.value}")
        logger.info("Connection %s: %s -> %s", handle.server_url, handle.status.value, status.value)
        handle.status = status
        self.status_events.put_nowait(StatusEvent(handle.server_url, status, error))

    async def connect(self, url: str, greeting: Optional[Frame] = None) -> ConnectionHandle:
        """
        Open a connection to ``url`` and start its reader task.

        Args:
            url: Server URL
            greeting: Frame sent right after the handshake (our join)

        Returns:
            The new live handle

        Raises:
            WsConnectionError: Timeout, Unreachable or Rejected
        """
        if self._handle is not None and self._handle.is_live:
            raise RuntimeError("A connection is already live; close it first")

        handle = ConnectionHandle(url)
        self._handle = handle
        self._transition(handle, ConnectionStatus.CONNECTING)

        transport: Optional[Transport] = None
        error: Optional[WsConnectionError] = None
        try:
            with LogTimer(f"Handshake with {url}", logger, slow_after=1.0):
                transport = await asyncio.wait_for(self._connector(url), self._handshake_timeout)
            if greeting is not None:
                await transport.send(greeting.serialize())
        except asyncio.CancelledError:
            logger.info("Connection attempt to %s abandoned", url)
            await self._abandon(handle, transport)
            raise
        except asyncio.TimeoutError:
            error = WsConnectionError(
                ConnectionErrorKind.TIMEOUT,
                f"No handshake from {url} within {self._handshake_timeout:g}s",
            )
        except InvalidURI as exc:
            error = WsConnectionError(ConnectionErrorKind.UNREACHABLE, f"Invalid server URL: {exc}")
        except InvalidHandshake as exc:
            error = WsConnectionError(ConnectionErrorKind.REJECTED, f"Server rejected the connection: {exc}")
        except ConnectionClosed as exc:
            error = WsConnectionError(ConnectionErrorKind.REJECTED, f"Server closed during join: {exc}")
        except OSError as exc:
            error = WsConnectionError(
                ConnectionErrorKind.UNREACHABLE,
                f"Cannot reach {url}: {exc.strerror or exc}",
            )

        if error is not None:
            logger.warning("Connection to %s failed: %s", url, error.message)
            await self._abandon(handle, transport, error)
            raise error

        self._transport = transport
        self._transition(handle, ConnectionStatus.CONNECTED)
        self._reader = asyncio.create_task(self._receive(handle, transport), name=f"reader {url}")
        return handle

    async def _abandon(
        self,
        handle: ConnectionHandle,
        transport: Optional[Transport],
        error: Optional[WsConnectionError] = None
    ) -> None:
        """Fail a handle that never reached Connected."""
        self._transition(handle, ConnectionStatus.FAILED, error)
        self._transition(handle, ConnectionStatus.DISCONNECTED)
        if transport is not None:
            try:
                await asyncio.wait_for(transport.close(), self._close_timeout)
            except asyncio.TimeoutError:
                logger.warning("Transport did not close within %.1fs", self._close_timeout)

    async def _receive(self, handle: ConnectionHandle, transport: Transport) -> None:
        """Reader task: forward frames until the transport closes."""
        try:
            while not self.shutdown_event.is_set():
                raw = await transport.recv()
                if handle.status is not ConnectionStatus.CONNECTED or self.shutdown_event.is_set():
                    logger.debug("Dropping in-flight frame from %s", handle.server_url)
                    continue
                try:
                    frame = Frame.deserialize(raw)
                except ProtocolError as exc:
                    logger.warning("Malformed frame from %s: %s", handle.server_url, exc)
                    await self.inbound.put(ProtocolErrorEvent(handle, exc))
                    continue
                await self.inbound.put(FrameEvent(handle, frame))
        except ConnectionClosed as exc:
            if handle.status is ConnectionStatus.CONNECTED:
                error = WsConnectionError(
                    ConnectionErrorKind.CLOSED_BY_PEER,
                    f"Server closed the connection ({exc})",
                )
                await self.inbound.put(PeerClosedEvent(handle, error))
        finally:
            logger.debug("Reader for %s stopped", handle.server_url)

    async def acknowledge_peer_close(self, event: PeerClosedEvent) -> None:
        """
        Finish a connection the server closed. Called from the event loop.

        Stale events for an already replaced handle are ignored.
        """
        handle = event.handle
        if handle is not self._handle or handle.status is not ConnectionStatus.CONNECTED:
            logger.debug("Ignoring stale close notice for %s", handle.server_url)
            return
        self._transition(handle, ConnectionStatus.FAILED, event.error)
        await self._release()
        self._transition(handle, ConnectionStatus.DISCONNECTED)

    async def send(self, frame: Frame) -> None:
        """
        Send a frame over the live connection.

        Raises:
            WsConnectionError: If there is no live connection or it just closed
        """
        if not self.connected or self._transport is None:
            raise WsConnectionError(ConnectionErrorKind.CLOSED_BY_PEER, "Not connected")
        try:
            await self._transport.send(frame.serialize())
        except ConnectionClosed as exc:
            raise WsConnectionError(
                ConnectionErrorKind.CLOSED_BY_PEER,
                f"Connection closed while sending ({exc})",
            ) from exc

    async def close(self, handle: Optional[ConnectionHandle] = None, farewell: Optional[Frame] = None) -> None:
        """
        Close the live connection and wait for its reader task to finish.

        Args:
            handle: Handle to close; defaults to the current one
            farewell: Frame sent before closing (our leave)
        """
        handle = handle or self._handle
        if handle is None or handle is not self._handle or handle.status is not ConnectionStatus.CONNECTED:
            return

        self._transition(handle, ConnectionStatus.CLOSING)
        try:
            if farewell is not None and self._transport is not None:
                try:
                    await self._transport.send(farewell.serialize())
                except ConnectionClosed as exc:
                    logger.debug("Could not send leave to %s: %s", handle.server_url, exc)
            await self._release()
        finally:
            self._transition(handle, ConnectionStatus.DISCONNECTED)

    async def _release(self) -> None:
        """
        Close the transport and wait (bounded) for the reader to stop.

        The references are dropped only once both are done, so an interrupted
        release can be finished by calling it again.
        """
        transport, reader = self._transport, self._reader

        if transport is not None:
            try:
                await asyncio.wait_for(transport.close(), self._close_timeout)
            except asyncio.TimeoutError:
                logger.warning("Transport did not close within %.1fs", self._close_timeout)

        if reader is not None:
            done, _ = await asyncio.wait({reader}, timeout=self._close_timeout)
            if not done:
                logger.warning("Reader task did not stop; cancelling it")
                reader.cancel()
                await asyncio.wait({reader})
            elif not reader.cancelled() and reader.exception() is not None:
                logger.error("Reader task failed", exc_info=reader.exception())

        if self._transport is transport:
            self._transport = None
        if self._reader is reader:
            self._reader = None

    async def switch(
        self,
        url: str,
        greeting: Optional[Frame] = None,
        farewell: Optional[Frame] = None
    ) -> ConnectionHandle:
        """
        Replace the current connection with one to ``url``.

        The old connection is fully closed, and its reader task has terminated,
        before the new handshake starts. No retry on failure.
        """
        await self.close(farewell=farewell)
        return await self.connect(url, greeting)

    @property
    def switching(self) -> bool:
        """True while a switch started with ``start_switch`` is running."""
        return self._switch_task is not None and not self._switch_task.done()

    def start_switch(
        self,
        url: str,
        greeting: Optional[Frame] = None,
        farewell: Optional[Frame] = None
    ) -> asyncio.Task:
        """
        Run ``switch`` in the background and return its task.

        The caller keeps running while the old connection closes and the new
        handshake completes; progress arrives on ``status_events`` and the
        outcome (the new handle or a WsConnectionError) on the task.

        Raises:
            RuntimeError: If a switch is already running
        """
        if self.switching:
            raise RuntimeError("A server switch is already in progress")
        self._switch_task = asyncio.create_task(self.switch(url, greeting, farewell), name=f"switch {url}")
        return self._switch_task

    async def _cancel_switch(self) -> None:
        task = self._switch_task
        if task is None or task.done():
            return
        logger.info("Cancelling server switch in progress")
        task.cancel()
        await asyncio.wait({task})
        if not task.cancelled() and task.exception() is not None:
            logger.debug("Server switch ended with: %s", task.exception())

    async def shutdown(self, farewell: Optional[Frame] = None) -> None:
        """Raise the shutdown flag, stop any switch and close the live connection."""
        self.shutdown_event.set()
        await self._cancel_switch()
        await self.close(farewell=farewell)
        # Finish a release an interrupted switch left behind
        await self._release()
