"""
Session state for the terminal client.
Holds the local identity, the current room, the scrollback and the connection handle.
"""

import re
from dataclasses import dataclass, field

from .connection import ConnectionHandle, ConnectionStatus
from .ui.message_buffer import ScrollBuffer
from .utils import InputValidationError, MAX_MESSAGE_HISTORY

COLOR_PATTERN = re.compile(r"[0-9A-Fa-f]{6}")


def is_valid_color(value: str) -> bool:
    """True iff ``value`` is exactly six hex digits."""
    return COLOR_PATTERN.fullmatch(value) is not None


def validate_nickname(value: str) -> str:
    """
    Check a nickname entered at startup.

    Returns:
        The nickname without surrounding whitespace

    Raises:
        InputValidationError: If nothing but whitespace was entered
    """
    nickname = value.strip()
    if not nickname:
        raise InputValidationError("Nickname cannot be empty")
    return nickname


def validate_color(value: str) -> str:
    """
    Check a display color entered at startup.

    Returns:
        The color in upper case

    Raises:
        InputValidationError: If the value is not six hex digits
    """
    color = value.strip()
    if not is_valid_color(color):
        raise InputValidationError(
            "Color must be six hex digits, e.g. 00FF00",
            {"value": value},
        )
    return color.upper()


@dataclass
class Identity:
    """Nickname and color chosen at startup."""
    nickname: str
    color: str


@dataclass
class SessionState:
    """
    Everything the client knows about the running session.

    Only the event loop mutates it.
    """
    nickname: str
    color: str
    current_room: str
    handle: ConnectionHandle
    buffer: ScrollBuffer = field(default_factory=lambda: ScrollBuffer(max_history=MAX_MESSAGE_HISTORY))

    def __post_init__(self):
        validate_nickname(self.nickname)
        if not is_valid_color(self.color):
            raise InputValidationError("Color must be six hex digits", {"value": self.color})
        if not self.current_room:
            raise InputValidationError("Room name cannot be empty")

    @classmethod
    def create(cls, identity: Identity, server_url: str, room: str, visible_rows: int = 1) -> 'SessionState':
        """Build the session once the identity prompts have succeeded."""
        return cls(
            nickname=identity.nickname,
            color=identity.color,
            current_room=room,
            handle=ConnectionHandle(server_url),
            buffer=ScrollBuffer(visible_rows=visible_rows, max_history=MAX_MESSAGE_HISTORY),
        )

    @property
    def connected(self) -> bool:
        return self.handle.status is ConnectionStatus.CONNECTED

    def set_color(self, color: str) -> None:
        if not is_valid_color(color):
            raise InputValidationError("Color must be six hex digits", {"value": color})
        self.color = color.upper()

    def join_room(self, room: str) -> None:
        if not room:
            raise InputValidationError("Room name cannot be empty")
        self.current_room = room
