"""
Curses UI renderer for the terminal chat interface.
Handles all screen drawing and keyboard polling.
"""

import asyncio
import curses
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol

from .message_buffer import Message
from ..input.key_mappings import Key
from ..utils import INPUT_PROMPT

# Title bar, status line and input line
_CHROME_ROWS = 3


@dataclass
class RenderView:
    """Everything one frame shows."""
    title: str
    connection: str
    nickname: str
    messages: List[Message] = field(default_factory=list)
    status: str = ""
    input_text: str = ""


class Renderer(Protocol):
    """What the event loop needs from a terminal."""

    @property
    def visible_rows(self) -> int: ...

    def draw(self, view: RenderView) -> None: ...

    def draw_prompt(self, lines: List[str], input_text: str) -> None: ...

    async def poll_key(self, timeout: float) -> Optional[Key]: ...


class CursesRenderer:
    """
    Handles all curses rendering operations.
    Manages screen layout, colors, and display updates.
    """

    def __init__(self, stdscr):
        """
        Initialize renderer with curses window.

        Args:
            stdscr: Main curses window object
        """
        self._stdscr = stdscr
        self._height: int = 0
        self._width: int = 0
        self._pairs: Dict[int, int] = {}
        self._colors: bool = False
        self._init_curses()

    def _init_curses(self) -> None:
        """Initialize curses settings and configuration."""
        curses.cbreak()
        curses.noecho()
        self._stdscr.keypad(True)
        self._stdscr.nodelay(True)

        if curses.has_colors():
            curses.start_color()
            curses.use_default_colors()
            self._colors = True

        self._update_dimensions()

    def _update_dimensions(self) -> None:
        """Update stored screen dimensions."""
        self._height, self._width = self._stdscr.getmaxyx()

    @property
    def visible_rows(self) -> int:
        """Rows available for messages."""
        self._update_dimensions()
        return max(1, self._height - _CHROME_ROWS)

    def _palette_index(self, hex_color: str) -> int:
        """Nearest terminal palette entry for a six-digit hex color."""
        r, g, b = (int(hex_color[i:i + 2], 16) for i in (0, 2, 4))
        if curses.COLORS >= 256:
            def level(value: int) -> int:
                if value < 48:
                    return 0
                if value < 115:
                    return 1
                return (value - 35) // 40
            return 16 + 36 * level(r) + 6 * level(g) + level(b)

        index = (r >= 128) | (g >= 128) << 1 | (b >= 128) << 2
        # Black on a dark terminal is unreadable
        return index or curses.COLOR_WHITE

    def _color_attr(self, hex_color: str) -> int:
        """Curses attribute for a hex color, allocating a pair on first use."""
        if not self._colors:
            return 0
        try:
            index = self._palette_index(hex_color)
        except ValueError:
            return 0

        pair = self._pairs.get(index)
        if pair is None:
            pair = len(self._pairs) + 1
            if pair >= curses.COLOR_PAIRS:
                return 0
            curses.init_pair(pair, index, -1)
            self._pairs[index] = pair
        return curses.color_pair(pair)

    def _put(self, y: int, x: int, text: str, attr: int = 0) -> None:
        """Write clipped text, ignoring writes past the screen edge."""
        if y >= self._height or x >= self._width - 1:
            return
        try:
            self._stdscr.addstr(y, x, text[:self._width - 1 - x], attr)
        except curses.error:
            pass

    def draw(self, view: RenderView) -> None:
        """
        Draw a full chat frame.

        Args:
            view: Title, messages, status and input to show
        """
        self._update_dimensions()
        self._stdscr.erase()

        header = f" {view.title}  |  {view.connection}  |  {view.nickname} "
        self._put(0, 0, header.ljust(self._width), curses.A_REVERSE)

        rows = max(1, self._height - _CHROME_ROWS)
        for i, message in enumerate(view.messages[:rows]):
            sender = f"{message.sender}: "
            self._put(1 + i, 0, sender, self._color_attr(message.color) | curses.A_BOLD)
            self._put(1 + i, len(sender), message.text)

        self._put(self._height - 2, 0, view.status, curses.A_DIM)
        self._draw_input_line(view.input_text)
        self._stdscr.refresh()

    def _draw_input_line(self, input_text: str) -> None:
        """
        Draw the input line at the bottom of the screen.

        Args:
            input_text: Current input text
        """
        input_line = f"{INPUT_PROMPT}{input_text}"
        # Keep the cursor end of long input visible
        visible = input_line[-(self._width - 1):] if self._width > 1 else ""
        self._put(self._height - 1, 0, visible)
        try:
            self._stdscr.move(self._height - 1, min(len(visible), self._width - 1))
        except curses.error:
            pass

    def draw_prompt(self, lines: List[str], input_text: str) -> None:
        """
        Draw a prompt screen (for the identity questions).

        Args:
            lines: Lines to display above the input line
            input_text: Current input text
        """
        self._update_dimensions()
        self._stdscr.erase()

        for i, line in enumerate(lines):
            if i >= self._height - 1:
                break
            self._put(i, 0, line)

        self._draw_input_line(input_text)
        self._stdscr.refresh()

    def _read_key(self) -> Optional[Key]:
        try:
            return self._stdscr.get_wch()
        except curses.error:
            return None

    async def poll_key(self, timeout: float) -> Optional[Key]:
        """
        Return the next key, waiting at most ``timeout`` seconds for one.

        The terminal is in no-delay mode, so reads never block the event loop.
        """
        key = self._read_key()
        if key is None:
            await asyncio.sleep(timeout)
            key = self._read_key()
        else:
            await asyncio.sleep(0)
        return key
