"""
Identity flow for the curses client.
Asks for a nickname and a display color before any connection is made.
"""

import asyncio
from enum import Enum, auto
from typing import Callable, Optional, TYPE_CHECKING

from RoomChat.core.logging import get_logger
from ..input import InputHandler, InputResult
from ..session import Identity, validate_color, validate_nickname
from ..utils import InputValidationError, TICK_INTERVAL_SECONDS

if TYPE_CHECKING:
    from RoomChat.core.client.ui.renderer import Renderer

logger = get_logger(__name__)


class IdentityResult(Enum):
    """Result of the identity prompts."""
    SUCCESS = auto()
    CANCELLED = auto()


class IdentityFlow:
    """
    Runs the startup prompts.
    Each answer is validated and asked again until it is acceptable.
    """

    def __init__(
        self,
        renderer: 'Renderer',
        shutdown_event: Optional[asyncio.Event] = None,
        tick_interval: float = TICK_INTERVAL_SECONDS
    ):
        """
        Initialize identity flow.

        Args:
            renderer: UI renderer for displaying prompts
            shutdown_event: Set by the interrupt handler to abort the prompts
            tick_interval: How long to wait for a key per poll
        """
        self._renderer = renderer
        self._shutdown = shutdown_event or asyncio.Event()
        self._tick_interval = tick_interval
        self._identity: Optional[Identity] = None

    @property
    def identity(self) -> Optional[Identity]:
        return self._identity

    async def run(self) -> IdentityResult:
        """
        Ask for nickname, then color.

        Returns:
            SUCCESS with ``identity`` set, or CANCELLED if the user aborted
        """
        nickname = await self._ask(["Welcome to RoomChat", "", "Enter nickname:"], validate_nickname)
        if nickname is None:
            return IdentityResult.CANCELLED

        color = await self._ask(
            [f"Nickname: {nickname}", "", "Enter hex color (rrggbb, e.g. 00FF00):"],
            validate_color,
        )
        if color is None:
            return IdentityResult.CANCELLED

        self._identity = Identity(nickname=nickname, color=color)
        logger.info("Identity set: %s (#%s)", nickname, color)
        return IdentityResult.SUCCESS

    async def _ask(self, lines: list, validate: Callable[[str], str]) -> Optional[str]:
        """
        Prompt until ``validate`` accepts the answer.

        Returns:
            The validated answer, or None on Escape / interrupt
        """
        handler = InputHandler()
        error = ""

        while not self._shutdown.is_set():
            self._renderer.draw_prompt(lines + ["", error] if error else lines, handler.input_buffer)

            key = await self._renderer.poll_key(self._tick_interval)
            if key is None:
                continue

            result, line = handler.process_key(key)
            match result:
                case InputResult.QUIT:
                    return None
                case InputResult.SUBMIT:
                    try:
                        return validate(line)
                    except InputValidationError as exc:
                        logger.debug("Rejected identity input: %s", exc)
                        error = exc.message

        return None
