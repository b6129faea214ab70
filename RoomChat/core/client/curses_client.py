"""
Curses chat client for RoomChat.
Acquires the terminal, runs the identity prompts and then the event loop.
"""

import asyncio
import curses
import os
import signal
from typing import Optional

from RoomChat.core.logging import get_logger
from .client_base import Client
from .connection import ConnectionManager, Connector
from .event_loop import EventLoop
from .identity import IdentityFlow, IdentityResult
from .session import SessionState
from .ui.renderer import CursesRenderer

__all__ = ['CursesClient']

logger = get_logger(__name__)

_SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class CursesClient(Client):
    """
    Curses-based chat client.
    The terminal is restored by ``curses.wrapper`` on every exit path.
    """

    def __init__(self, server_url: str, room: str, connector: Optional[Connector] = None):
        super().__init__(server_url, room)
        self._connector = connector

    @staticmethod
    def _install_signal_handlers(loop: asyncio.AbstractEventLoop, shutdown: asyncio.Event) -> None:
        for sig in _SHUTDOWN_SIGNALS:
            try:
                loop.add_signal_handler(sig, shutdown.set)
            except (NotImplementedError, RuntimeError):
                # Windows event loops have no signal support; Ctrl-C arrives as a key
                logger.debug("Signal handler for %s not available", sig)

    @staticmethod
    def _remove_signal_handlers(loop: asyncio.AbstractEventLoop) -> None:
        for sig in _SHUTDOWN_SIGNALS:
            try:
                loop.remove_signal_handler(sig)
            except (NotImplementedError, RuntimeError):
                pass

    async def async_run(self, stdscr) -> int:
        """Asynchronous main method for the curses client."""
        renderer = CursesRenderer(stdscr)
        shutdown = asyncio.Event()
        loop = asyncio.get_running_loop()
        self._install_signal_handlers(loop, shutdown)

        try:
            flow = IdentityFlow(renderer, shutdown)
            if await flow.run() is not IdentityResult.SUCCESS:
                logger.info("Identity setup aborted")
                return 1

            session = SessionState.create(flow.identity, self.server_url, self.room, renderer.visible_rows)
            manager = ConnectionManager(self._connector, shutdown_event=shutdown)
            return await EventLoop(session, manager, renderer).run()
        finally:
            self._remove_signal_handlers(loop)

    def run(self) -> int:
        """Start the curses-based client and return the exit code."""
        # Escape should quit without the default one second delay
        os.environ.setdefault("ESCDELAY", "25")
        try:
            return curses.wrapper(lambda stdscr: asyncio.run(self.async_run(stdscr)))
        except KeyboardInterrupt:
            logger.info("Interrupted before the session started")
            return 1
        except curses.error as exc:
            logger.error("Terminal setup failed: %s", exc)
            print(f"Cannot start the terminal interface: {exc}")
            return 1
