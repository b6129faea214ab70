"""
Utility functions and shared components for the terminal client.
"""

from .constants import (
    CLOSE_TIMEOUT_SECONDS,
    COMMAND_PREFIX,
    HELP_TEXT,
    INBOUND_QUEUE_SIZE,
    INPUT_PROMPT,
    MAX_MESSAGE_HISTORY,
    SHUTDOWN_TIMEOUT_SECONDS,
    SYSTEM_COLOR,
    SYSTEM_SENDER,
    TICK_INTERVAL_SECONDS,
)
from .exceptions import (
    ClientError,
    CommandErrorKind,
    CommandParseError,
    ConnectionErrorKind,
    InputValidationError,
    ProtocolError,
    WsConnectionError,
)

__all__ = [
    'ClientError',
    'CommandErrorKind',
    'CommandParseError',
    'ConnectionErrorKind',
    'InputValidationError',
    'ProtocolError',
    'WsConnectionError',
    'CLOSE_TIMEOUT_SECONDS',
    'COMMAND_PREFIX',
    'HELP_TEXT',
    'INBOUND_QUEUE_SIZE',
    'INPUT_PROMPT',
    'MAX_MESSAGE_HISTORY',
    'SHUTDOWN_TIMEOUT_SECONDS',
    'SYSTEM_COLOR',
    'SYSTEM_SENDER',
    'TICK_INTERVAL_SECONDS',
]
