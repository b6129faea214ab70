"""
Key code mappings and action definitions for input handling.
Maps curses key codes and characters to semantic actions.
"""

import curses
from enum import Enum, auto
from typing import Union

Key = Union[int, str]


class KeyCode:
    """Constants for curses key codes."""
    CTRL_C = 3
    BACKSPACE = 8
    ENTER = 10
    ENTER_ALT = 13
    ESCAPE = 27
    BACKSPACE_ALT = 127

    KEY_ENTER = curses.KEY_ENTER
    KEY_BACKSPACE = curses.KEY_BACKSPACE
    DELETE = curses.KEY_DC

    # Arrow keys
    UP = curses.KEY_UP
    DOWN = curses.KEY_DOWN

    # Page keys
    PAGE_UP = curses.KEY_PPAGE
    PAGE_DOWN = curses.KEY_NPAGE
    HOME = curses.KEY_HOME
    END = curses.KEY_END

    # Function keys
    F1 = curses.KEY_F1


class InputAction(Enum):
    """Semantic actions that can result from key presses."""
    # Text input
    TYPE_CHAR = auto()
    BACKSPACE = auto()
    SUBMIT = auto()

    # Navigation
    SCROLL_UP = auto()
    SCROLL_DOWN = auto()
    SCROLL_PAGE_UP = auto()
    SCROLL_PAGE_DOWN = auto()
    SCROLL_HOME = auto()
    SCROLL_END = auto()

    # Commands
    QUIT = auto()
    HELP = auto()
    IGNORE = auto()


def get_action_for_key(key: Key) -> InputAction:
    """
    Map a key to an input action.

    Args:
        key: Curses key code, or a character as returned by ``get_wch``

    Returns:
        Corresponding input action
    """
    if isinstance(key, str):
        if len(key) != 1:
            return InputAction.IGNORE
        if key.isprintable():
            return InputAction.TYPE_CHAR
        key = ord(key)

    match key:
        case KeyCode.ENTER | KeyCode.ENTER_ALT | KeyCode.KEY_ENTER:
            return InputAction.SUBMIT

        case KeyCode.BACKSPACE | KeyCode.BACKSPACE_ALT | KeyCode.KEY_BACKSPACE | KeyCode.DELETE:
            return InputAction.BACKSPACE

        case KeyCode.UP:
            return InputAction.SCROLL_UP

        case KeyCode.DOWN:
            return InputAction.SCROLL_DOWN

        case KeyCode.PAGE_UP:
            return InputAction.SCROLL_PAGE_UP

        case KeyCode.PAGE_DOWN:
            return InputAction.SCROLL_PAGE_DOWN

        case KeyCode.HOME:
            return InputAction.SCROLL_HOME

        case KeyCode.END:
            return InputAction.SCROLL_END

        case KeyCode.F1:
            return InputAction.HELP

        case KeyCode.ESCAPE | KeyCode.CTRL_C:
            return InputAction.QUIT

        case k if is_printable(k):
            return InputAction.TYPE_CHAR

        case _:
            return InputAction.IGNORE


def is_printable(key: Key) -> bool:
    """
    Check if a key represents a printable character.

    Args:
        key: Key code or character to check

    Returns:
        True if printable, False otherwise
    """
    if isinstance(key, str):
        return len(key) == 1 and key.isprintable()
    return 32 <= key < 127


def get_char(key: Key) -> str:
    """
    Convert a key to its character representation.

    Args:
        key: Key code or character

    Returns:
        Character string, empty if the key is not printable
    """
    if not is_printable(key):
        return ""
    return key if isinstance(key, str) else chr(key)
