"""
Event loop for the terminal client.

One cooperative loop owns the session: each tick it drains the network
queue, polls at most one key, applies the resulting command and redraws.
Network frames waiting at the start of a tick are always applied before
that tick's keyboard input.
"""

import asyncio
from collections import deque
from typing import Deque, Optional

from RoomChat.core.logging import get_logger
from RoomChat.core.message.protocol import Frame, FrameType, chat_frame, join_frame, leave_frame
from .command import Chat, Clear, Color, Command, CommandDispatcher, Help, Join, Quit, Server
from .connection import (
    ConnectionManager,
    ConnectionStatus,
    FrameEvent,
    PeerClosedEvent,
    ProtocolErrorEvent,
    StatusEvent,
)
from .input import InputHandler, InputResult
from .input.key_mappings import Key
from .session import SessionState, is_valid_color
from .ui.message_buffer import Message
from .ui.renderer import Renderer, RenderView
from .utils import (
    HELP_TEXT,
    SHUTDOWN_TIMEOUT_SECONDS,
    SYSTEM_COLOR,
    SYSTEM_SENDER,
    TICK_INTERVAL_SECONDS,
    CommandParseError,
    ProtocolError,
    WsConnectionError,
)

logger = get_logger(__name__)

DEFAULT_SENDER_COLOR = "FFFFFF"
MAX_PENDING_ECHOES = 64


class EventLoop:
    """
    Merges keyboard and network events into the session.

    Attributes:
        status: Text of the inline status line
        client_count: Last client count reported for the current room
    """

    def __init__(
        self,
        session: SessionState,
        manager: ConnectionManager,
        renderer: Renderer,
        dispatcher: Optional[CommandDispatcher] = None,
        tick_interval: float = TICK_INTERVAL_SECONDS,
        shutdown_timeout: float = SHUTDOWN_TIMEOUT_SECONDS,
    ):
        self.session = session
        self.manager = manager
        self.renderer = renderer
        self.dispatcher = dispatcher or CommandDispatcher()
        self.input = InputHandler(session.buffer)
        self.tick_interval = tick_interval
        self.shutdown_timeout = shutdown_timeout

        self.status: str = ""
        self.client_count: Optional[int] = None
        self._room_password: Optional[str] = None
        self._pending_echoes: Deque[str] = deque(maxlen=MAX_PENDING_ECHOES)
        self._last_status: Optional[ConnectionStatus] = None
        self._switch: Optional[asyncio.Task] = None

    @property
    def shutdown_event(self) -> asyncio.Event:
        return self.manager.shutdown_event

    def request_shutdown(self) -> None:
        """Raise the shutdown flag; the loop stops at the top of the next tick."""
        self.shutdown_event.set()

    async def run(self) -> int:
        """
        Connect to the initial server and tick until shutdown.

        Returns:
            Process exit code (0, the user asked to quit)
        """
        self.switch_server(self.session.handle.server_url)
        self.render()
        try:
            while not self.shutdown_event.is_set():
                await self.tick()
        finally:
            await self._close_for_shutdown()
        logger.info("Event loop stopped")
        return 0

    async def tick(self) -> None:
        """One iteration: network, keyboard, command, render."""
        await self.drain_network()
        key = await self.renderer.poll_key(self.tick_interval)
        if key is not None:
            await self.handle_key(key)
        self.render()

    # Network side

    async def drain_network(self) -> int:
        """
        Apply every event currently waiting in the inbound queue, in order,
        and pick up the outcome of a finished server switch.

        Returns:
            Number of events applied
        """
        self._collect_switch()
        applied = 0
        while True:
            try:
                event = self.manager.inbound.get_nowait()
            except asyncio.QueueEmpty:
                break
            applied += 1

            match event:
                case FrameEvent(frame=frame):
                    self._apply_frame(frame)
                case ProtocolErrorEvent(error=error):
                    self.show_status(f"Dropped malformed frame: {error.message}")
                case PeerClosedEvent():
                    await self.manager.acknowledge_peer_close(event)
                    self._pending_echoes.clear()
                    self.client_count = None
        self._sync_handle()
        return applied

    def _collect_switch(self) -> None:
        """Pick up the outcome of a finished server switch."""
        task = self._switch
        if task is None or not task.done():
            return
        self._switch = None
        if task.cancelled():
            return
        try:
            task.result()
        except WsConnectionError as exc:
            # Already on the status line through the Failed transition
            logger.warning("Could not connect: %s", exc.message)

    def _sync_handle(self) -> None:
        if self.manager.handle is not None:
            self.session.handle = self.manager.handle

    def _apply_frame(self, frame: Frame) -> None:
        match frame.type:
            case FrameType.CHAT:
                if (
                    frame.nickname == self.session.nickname
                    and self._pending_echoes
                    and self._pending_echoes[0] == frame.text
                ):
                    # Our own message coming back; it is already in the buffer
                    self._pending_echoes.popleft()
                    return
                color = frame.color if frame.color and is_valid_color(frame.color) else DEFAULT_SENDER_COLOR
                self.session.buffer.append(Message(
                    sender=frame.nickname or "?",
                    color=color,
                    room=frame.room or self.session.current_room,
                    text=frame.text,
                ))

            case FrameType.CLIENT_COUNT:
                self.client_count = frame.count

            case FrameType.ERROR:
                error = ProtocolError(f"Server error: {frame.text}")
                logger.warning("%s", error)
                self.show_status(error.message)

            case FrameType.JOIN:
                self._system_message(f"{frame.nickname or 'Someone'} joined #{frame.room or self.session.current_room}")

            case FrameType.LEAVE:
                self._system_message(f"{frame.nickname or 'Someone'} left #{frame.room or self.session.current_room}")

    def _system_message(self, text: str) -> None:
        self.session.buffer.append(Message(
            sender=SYSTEM_SENDER,
            color=SYSTEM_COLOR,
            room=self.session.current_room,
            text=text,
        ))

    def _apply_status_event(self, event: StatusEvent) -> None:
        previous, self._last_status = self._last_status, event.status

        if event.error is not None:
            self.show_status(f"Connection {event.error.kind.value}: {event.error.message}")
            return

        match event.status:
            case ConnectionStatus.CONNECTING:
                self.show_status(f"Connecting to {event.server_url}...")
            case ConnectionStatus.CONNECTED:
                self.show_status(f"Connected to {event.server_url} as {self.session.nickname}")
            case ConnectionStatus.CLOSING:
                self.show_status(f"Closing connection to {event.server_url}...")
            case ConnectionStatus.DISCONNECTED if previous is not ConnectionStatus.FAILED:
                self.show_status(f"Disconnected from {event.server_url}")

    def _drain_status_events(self) -> None:
        while True:
            try:
                event = self.manager.status_events.get_nowait()
            except asyncio.QueueEmpty:
                break
            self._apply_status_event(event)

    # Keyboard side

    async def handle_key(self, key: Key) -> None:
        result, line = self.input.process_key(key)
        match result:
            case InputResult.SUBMIT:
                await self.handle_line(line)
            case InputResult.QUIT:
                await self.apply(Quit())
            case InputResult.HELP:
                await self.apply(Help())

    async def handle_line(self, line: str) -> None:
        """Parse a submitted line and apply it, reporting errors inline."""
        try:
            command = self.dispatcher.parse(line)
            if command is None:
                return
            self.dispatcher.check_deliverable(command, self.session.connected, self.manager.switching)
        except CommandParseError as exc:
            logger.debug("Command rejected (%s): %s", exc.kind.value, exc.message)
            self.show_status(exc.message)
            return
        await self.apply(command)

    async def apply(self, command: Command) -> None:
        """Carry out one command."""
        match command:
            case Quit():
                self.show_status("Quitting...")
                self.request_shutdown()

            case Clear():
                self.session.buffer.clear()

            case Help():
                self.show_status(HELP_TEXT)

            case Join(room=room, password=password):
                self.session.join_room(room)
                self._room_password = password
                self.client_count = None
                if self.manager.connected:
                    if await self._send(join_frame(self.session.nickname, self.session.color, room, password)):
                        self.show_status(f"Joining #{room}")
                else:
                    self.show_status(f"Room set to #{room}; it is joined on the next connection")

            case Color(hex=hex_color):
                self.session.set_color(hex_color)
                self.show_status(f"Color set to #{self.session.color}")

            case Server(url=url):
                self.switch_server(url)

            case Chat(text=text):
                frame = chat_frame(self.session.nickname, self.session.color, self.session.current_room, text)
                if await self._send(frame):
                    self._pending_echoes.append(text)
                    self.session.buffer.append(Message(
                        sender=self.session.nickname,
                        color=self.session.color,
                        room=self.session.current_room,
                        text=text,
                    ))

            case _:
                raise TypeError(f"Unhandled command: {command!r}")

    async def _send(self, frame: Frame) -> bool:
        try:
            await self.manager.send(frame)
        except WsConnectionError as exc:
            logger.warning("Send failed: %s", exc.message)
            self.show_status(f"Send failed: {exc.message}")
            return False
        return True

    def switch_server(self, url: str) -> bool:
        """
        Start connecting to ``url``, closing the current connection first.

        The switch runs in the background while the loop keeps ticking; its
        progress shows up through status events and its outcome is collected
        by ``drain_network``. Failures are shown in the status line and the
        session stays alive.

        Returns:
            False if another switch is still in flight
        """
        if self.manager.switching:
            self.show_status("Already switching servers; wait for the connection to settle")
            return False

        farewell = None
        if self.manager.connected:
            farewell = leave_frame(self.session.nickname, self.session.current_room)
        greeting = join_frame(
            self.session.nickname,
            self.session.color,
            self.session.current_room,
            self._room_password,
        )

        self._pending_echoes.clear()
        self.client_count = None
        logger.info("Switching to %s", url)
        self._switch = self.manager.start_switch(url, greeting=greeting, farewell=farewell)
        return True

    async def wait_for_switch(self) -> None:
        """Wait until the switch in flight, if any, has finished and been collected."""
        if self._switch is not None:
            await asyncio.wait({self._switch})
        self._collect_switch()
        self._sync_handle()

    async def _close_for_shutdown(self) -> None:
        farewell = None
        if self.manager.connected:
            farewell = leave_frame(self.session.nickname, self.session.current_room)
        try:
            await asyncio.wait_for(self.manager.shutdown(farewell), self.shutdown_timeout)
        except asyncio.TimeoutError:
            logger.warning("Connection did not close within %.1fs; exiting anyway", self.shutdown_timeout)
        self._collect_switch()

    # Display

    def show_status(self, text: str) -> None:
        self.status = text

    def render(self) -> None:
        """Redraw the terminal from the current session."""
        self._drain_status_events()
        self._sync_handle()
        self.session.buffer.resize(self.renderer.visible_rows)

        count = "" if self.client_count is None else f"[{self.client_count}]"
        handle = self.session.handle
        self.renderer.draw(RenderView(
            title=f"Room: {self.session.current_room}{count}",
            connection=f"{handle.status.value} {handle.server_url}",
            nickname=self.session.nickname,
            messages=self.session.buffer.visible_window(),
            status=self.status,
            input_text=self.input.input_buffer,
        ))
