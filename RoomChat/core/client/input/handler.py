"""
Input handler for processing keyboard input.
Manages the input line being composed and turns key presses into results.
"""

from enum import Enum, auto
from typing import Optional, Tuple

from .key_mappings import InputAction, Key, get_action_for_key, get_char
from ..ui.message_buffer import ScrollBuffer, ScrollDirection

_SCROLL_ACTIONS = {
    InputAction.SCROLL_UP: ScrollDirection.UP,
    InputAction.SCROLL_DOWN: ScrollDirection.DOWN,
    InputAction.SCROLL_PAGE_UP: ScrollDirection.PAGE_UP,
    InputAction.SCROLL_PAGE_DOWN: ScrollDirection.PAGE_DOWN,
    InputAction.SCROLL_HOME: ScrollDirection.HOME,
    InputAction.SCROLL_END: ScrollDirection.END,
}


class InputResult(Enum):
    """Result of processing an input action."""
    HANDLED = auto()
    SUBMIT = auto()
    HELP = auto()
    QUIT = auto()


class InputHandler:
    """
    Handles keyboard input for the chat client.
    Composes the input line and applies scroll keys to the message buffer.
    """

    def __init__(self, message_buffer: Optional[ScrollBuffer] = None):
        """
        Initialize input handler.

        Args:
            message_buffer: Buffer that scroll keys act on (prompts have none)
        """
        self._message_buffer = message_buffer
        self._input_buffer: str = ""

    @property
    def input_buffer(self) -> str:
        """Get current input buffer content."""
        return self._input_buffer

    def clear_buffer(self) -> None:
        """Clear the input buffer."""
        self._input_buffer = ""

    def process_key(self, key: Key) -> Tuple[InputResult, Optional[str]]:
        """
        Process a single key press.

        Args:
            key: Curses key code or character

        Returns:
            The result and, on SUBMIT, the composed line (the buffer is reset)
        """
        action = get_action_for_key(key)

        match action:
            case InputAction.TYPE_CHAR:
                self._input_buffer += get_char(key)
                return InputResult.HANDLED, None

            case InputAction.BACKSPACE:
                self._input_buffer = self._input_buffer[:-1]
                return InputResult.HANDLED, None

            case InputAction.SUBMIT:
                line = self._input_buffer
                self._input_buffer = ""
                return InputResult.SUBMIT, line

            case InputAction.QUIT:
                return InputResult.QUIT, None

            case InputAction.HELP:
                return InputResult.HELP, None

            case _ if action in _SCROLL_ACTIONS:
                if self._message_buffer is not None:
                    self._message_buffer.scroll_to(_SCROLL_ACTIONS[action])
                return InputResult.HANDLED, None

            case _:
                return InputResult.HANDLED, None
