"""
Client startup module for RoomChat.
Provides the entry point for starting the chat client.
"""

from typing import Optional

from RoomChat.config import config
from RoomChat.core.client.curses_client import CursesClient
from RoomChat.core.logging import auto_configure, get_logger, get_logging_manager

__all__ = ['client']

logger = get_logger(__name__)


def client(server_url: Optional[str] = None, room: Optional[str] = None,
           env: Optional[str] = None, log_level: Optional[str] = None) -> int:
    """
    Start the chat client with specified connection parameters.

    Args:
        server_url (str): WebSocket URL of the server (default: Config.DEFAULT_SERVER_ADDRESS)
        room (str): Room joined on the first connection (default: Config.DEFAULT_ROOM)
        env (str): Logging environment (development, production, testing)
        log_level (str): Overrides the environment's log level

    Returns:
        int: Process exit code
    """
    server_url = server_url or config.DEFAULT_SERVER_ADDRESS
    room = room or config.DEFAULT_ROOM

    auto_configure(env or config.LOG_ENV, config.LOG_DIR)
    if log_level:
        get_logging_manager().set_level(log_level)

    logger.info("Starting client: server=%s room=%s", server_url, room)
    try:
        code = CursesClient(server_url, room).run()
    except Exception:
        logger.exception("Client terminated by an unexpected error")
        raise
    logger.info("Client exited with code %d", code)
    return code
