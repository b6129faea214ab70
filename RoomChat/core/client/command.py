"""
Command dispatcher for the terminal client.
Turns a typed line into a Command, or reports why it cannot.
"""

from dataclasses import dataclass
from typing import Optional, Union

from .session import is_valid_color
from .utils import COMMAND_PREFIX, CommandErrorKind, CommandParseError


@dataclass(frozen=True)
class Quit:
    pass


@dataclass(frozen=True)
class Clear:
    pass


@dataclass(frozen=True)
class Help:
    pass


@dataclass(frozen=True)
class Join:
    room: str
    password: Optional[str] = None


@dataclass(frozen=True)
class Color:
    hex: str


@dataclass(frozen=True)
class Server:
    url: str


@dataclass(frozen=True)
class Chat:
    text: str


Command = Union[Quit, Clear, Help, Join, Color, Server, Chat]


class CommandDispatcher:
    """
    Parses input lines into commands.

    Lines that do not start with the prefix are chat text. Every error is
    raised before anything reaches the network.
    """

    def __init__(self, prefix: str = COMMAND_PREFIX):
        self.prefix = prefix

    def parse(self, line: str) -> Optional[Command]:
        """
        Parse one line of input.

        Args:
            line: Raw line as typed

        Returns:
            The command, or None for a blank line

        Raises:
            CommandParseError: Unknown command, missing argument or invalid format
        """
        if not line.strip():
            return None

        if not line.startswith(self.prefix):
            return Chat(text=line)

        parts = line[len(self.prefix):].split()
        if not parts:
            raise CommandParseError(CommandErrorKind.UNKNOWN, f"Unknown command: {line.strip()}")

        token, args = parts[0].lower(), parts[1:]

        match [token, *args]:
            case ["quit", *_]:
                return Quit()

            case ["clear", *_]:
                return Clear()

            case ["help", *_]:
                return Help()

            case ["join"]:
                raise CommandParseError(CommandErrorKind.MISSING_ARGUMENT, "Usage: /join <room> [password]")

            case ["join", room]:
                return Join(room=room)

            case ["join", room, *password]:
                return Join(room=room, password=" ".join(password))

            case ["color"]:
                raise CommandParseError(CommandErrorKind.MISSING_ARGUMENT, "Usage: /color <rrggbb>")

            case ["color", value, *_]:
                if not is_valid_color(value):
                    raise CommandParseError(
                        CommandErrorKind.INVALID_FORMAT,
                        f"Invalid color '{value}': expected six hex digits",
                        {"value": value},
                    )
                return Color(hex=value.upper())

            case ["server"]:
                raise CommandParseError(CommandErrorKind.MISSING_ARGUMENT, "Usage: /server <url>")

            case ["server", url, *_]:
                return Server(url=url)

            case _:
                raise CommandParseError(CommandErrorKind.UNKNOWN, f"Unknown command: {self.prefix}{token}")

    @staticmethod
    def check_deliverable(command: Command, connected: bool, switching: bool = False) -> None:
        """
        Refuse commands the connection cannot take right now.

        Chat needs a live connection. While a server switch is in flight,
        chat, /join and a second /server are refused.

        Raises:
            CommandParseError: NOT_CONNECTED for chat without a live connection,
                BUSY for /join or /server during a switch
        """
        if isinstance(command, Chat) and (switching or not connected):
            raise CommandParseError(
                CommandErrorKind.NOT_CONNECTED,
                "Not connected yet; wait for the server switch to finish" if switching
                else "Not connected; use /server <url> to connect",
            )
        if switching and isinstance(command, (Join, Server)):
            raise CommandParseError(
                CommandErrorKind.BUSY,
                "Already switching servers; wait for the connection to settle",
            )


__all__ = [
    'Command', 'CommandDispatcher',
    'Quit', 'Clear', 'Help', 'Join', 'Color', 'Server', 'Chat',
]
