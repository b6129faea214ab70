"""
Logging helpers for RoomChat.
"""

import logging
import time
from typing import Optional

from RoomChat.core.logging import get_logger


class LogTimer:
    """
    Context manager that logs how long an operation took.

    Failures are logged at WARNING and re-raised. Operations that succeed but
    take ``slow_after`` seconds or more are logged at WARNING as well.

    Example:
        with LogTimer(f"handshake {url}", logger, slow_after=1.0):
            transport = await connector(url)
    """

    def __init__(
        self,
        operation: str,
        logger: Optional[logging.Logger] = None,
        level: int = logging.DEBUG,
        slow_after: Optional[float] = None
    ):
        self.operation = operation
        self.logger = logger or get_logger(__name__)
        self.level = level
        self.slow_after = slow_after
        self.duration: Optional[float] = None
        self._started: float = 0.0

    def __enter__(self) -> 'LogTimer':
        self._started = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.duration = time.perf_counter() - self._started

        if exc_type is not None:
            self.logger.warning("%s failed after %.3fs: %s", self.operation, self.duration, str(exc_val) or exc_type.__name__)
        elif self.slow_after is not None and self.duration >= self.slow_after:
            self.logger.warning("%s was slow: %.3fs", self.operation, self.duration)
        else:
            self.logger.log(self.level, "%s took %.3fs", self.operation, self.duration)


__all__ = ['LogTimer']
