"""
Message buffer management for the terminal client.
Handles message storage, the viewport offset and scroll-lock.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class ScrollDirection(Enum):
    """Direction for scrolling operations."""
    UP = "up"
    DOWN = "down"
    HOME = "home"
    END = "end"
    PAGE_UP = "page_up"
    PAGE_DOWN = "page_down"


@dataclass(frozen=True)
class Message:
    """Represents a chat message. Immutable once created."""
    sender: str
    color: str
    room: str
    text: str
    timestamp: float = field(default_factory=time.time)

    def format(self) -> str:
        """Format message for display."""
        return f"{self.sender}: {self.text}"


class ScrollBuffer:
    """
    Ordered, append-only message store with a movable viewport.

    The offset is the index of the top visible message and always stays in
    ``[0, max(0, len - visible_rows)]``. While the viewport sits at the bottom
    it follows new messages; once the user scrolls up it stays put.
    """

    def __init__(self, visible_rows: int = 1, max_history: Optional[int] = None):
        """
        Initialize message buffer.

        Args:
            visible_rows: Number of message rows the viewport shows
            max_history: Oldest messages are dropped beyond this many (None keeps all)
        """
        self._messages: List[Message] = []
        self._offset: int = 0
        self._follow: bool = True
        self._visible_rows: int = max(1, visible_rows)
        self._max_history: Optional[int] = max_history

    @property
    def messages(self) -> List[Message]:
        """Get all messages."""
        return self._messages.copy()

    @property
    def offset(self) -> int:
        """Get current viewport offset."""
        return self._offset

    @property
    def visible_rows(self) -> int:
        return self._visible_rows

    @property
    def bottom(self) -> int:
        """Largest valid offset."""
        return max(0, len(self._messages) - self._visible_rows)

    @property
    def at_bottom(self) -> bool:
        return self._offset >= self.bottom

    def append(self, message: Message) -> None:
        """
        Append a message, advancing the viewport only if it was at the bottom.

        A scrolled-up viewport keeps its offset, so the history limit is only
        enforced while following; the backlog is trimmed on the first append
        after the user returns to the bottom.

        Args:
            message: Message to store
        """
        self._messages.append(message)
        if not self._follow:
            return

        if self._max_history is not None and len(self._messages) > self._max_history:
            del self._messages[:len(self._messages) - self._max_history]
        self._offset = self.bottom

    def scroll(self, delta: int) -> None:
        """
        Move the viewport by ``delta`` rows, saturating at both ends.

        Args:
            delta: Negative values move toward older messages
        """
        self._offset = min(max(0, self._offset + delta), self.bottom)
        self._follow = self._offset >= self.bottom

    def scroll_to(self, direction: ScrollDirection) -> None:
        """
        Scroll the message view by a key-sized step.

        Args:
            direction: Direction to scroll
        """
        match direction:
            case ScrollDirection.UP:
                self.scroll(-1)
            case ScrollDirection.DOWN:
                self.scroll(1)
            case ScrollDirection.PAGE_UP:
                self.scroll(-self._visible_rows)
            case ScrollDirection.PAGE_DOWN:
                self.scroll(self._visible_rows)
            case ScrollDirection.HOME:
                self.scroll(-self._offset)
            case ScrollDirection.END:
                self.scroll(self.bottom - self._offset)

    def resize(self, visible_rows: int) -> None:
        """
        Change the viewport height, re-clamping the offset.

        Args:
            visible_rows: New number of message rows
        """
        self._visible_rows = max(1, visible_rows)
        if self._follow:
            self._offset = self.bottom
        else:
            self._offset = min(self._offset, self.bottom)
            self._follow = self._offset >= self.bottom

    def visible_window(self) -> List[Message]:
        """
        Get messages visible in the current view.

        Returns:
            Slice of messages starting at the offset
        """
        return self._messages[self._offset:self._offset + self._visible_rows]

    def clear(self) -> None:
        """Clear all messages."""
        self._messages.clear()
        self._offset = 0
        self._follow = True

    def __len__(self) -> int:
        """Return number of messages."""
        return len(self._messages)
