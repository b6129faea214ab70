"""
Custom exceptions for the terminal client.
"""

from enum import Enum


class ClientError(Exception):
    """Base exception for client errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


class InputValidationError(ClientError):
    """Raised when a nickname or color entered at startup is invalid."""
    pass


class CommandErrorKind(Enum):
    """Reasons a typed line could not become a command."""
    UNKNOWN = "unknown command"
    MISSING_ARGUMENT = "missing argument"
    INVALID_FORMAT = "invalid format"
    NOT_CONNECTED = "not connected"
    BUSY = "busy"


class CommandParseError(ClientError):
    """Exception raised for lines that produce no network action."""

    def __init__(self, kind: CommandErrorKind, message: str, details: dict = None):
        super().__init__(message, details)
        self.kind = kind


class ConnectionErrorKind(Enum):
    """Reasons a connection attempt or a live connection failed."""
    UNREACHABLE = "unreachable"
    TIMEOUT = "timeout"
    REJECTED = "rejected"
    CLOSED_BY_PEER = "closed by peer"


class WsConnectionError(ClientError):
    """Exception raised for connection-related errors."""

    def __init__(self, kind: ConnectionErrorKind, message: str, details: dict = None):
        super().__init__(message, details)
        self.kind = kind


class ProtocolError(ClientError):
    """Exception raised for malformed or error frames from the server."""
    pass
