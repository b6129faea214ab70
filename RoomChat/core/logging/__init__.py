"""
Unified logging system for RoomChat.

Every module logs through ``get_logger(__name__)``; the entry point picks one
of the environment presets with ``auto_configure``. While curses owns the
terminal nothing may write to it, so only the testing preset logs to stderr.

Usage:
    from RoomChat.core.logging import get_logger

    logger = get_logger(__name__)
    logger.info("Joined #%s", room)

Configuration:
    from RoomChat.core.logging import configure_logging, LogConfig

    configure_logging(LogConfig(level="DEBUG", log_dir="./logs/dev"))
"""

import logging
import logging.handlers
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DETAILED_FORMAT = (
    "%(asctime)s - %(name)s - %(levelname)s - "
    "[%(filename)s:%(lineno)d - %(funcName)s] - %(message)s"
)

LOG_FILE = "roomchat.log"
ERROR_LOG_FILE = "roomchat_errors.log"


@dataclass
class LogConfig:
    """
    Configuration for the logging system.

    Attributes:
        level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for log files
        console_output: Whether to log to stderr
        file_output: Whether to log to ``roomchat.log`` (and errors to ``roomchat_errors.log``)
        max_bytes: Size at which a log file is rotated
        backup_count: Rotated files kept per log
        format_string: Overrides the format of every handler
        date_format: ``asctime`` format
        component_levels: Logger name -> level, applied after the root level
    """
    level: str = "INFO"
    log_dir: str = "./logs"
    console_output: bool = False
    file_output: bool = True
    max_bytes: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5
    format_string: Optional[str] = None
    date_format: str = "%Y-%m-%d %H:%M:%S"
    component_levels: Dict[str, str] = field(default_factory=dict)

    @property
    def numeric_level(self) -> int:
        return getattr(logging, self.level.upper())


class ColoredFormatter(logging.Formatter):
    """Formatter that colors the level name on ANSI terminals."""

    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
    }
    RESET = '\033[0m'

    def __init__(self, fmt: str, datefmt: str = None, use_colors: bool = True):
        super().__init__(fmt, datefmt)
        self.use_colors = use_colors and sys.platform != 'win32'

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname) if self.use_colors else None
        if color is None:
            return super().format(record)
        # Other handlers share the record; color a copy
        record = logging.makeLogRecord(record.__dict__)
        record.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(record)


def _rotating_handler(path: str, config: LogConfig, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path,
        maxBytes=config.max_bytes,
        backupCount=config.backup_count,
        encoding='utf-8'
    )
    handler.setFormatter(formatter)
    return handler


class LoggingManager:
    """
    Process-wide owner of the handlers RoomChat installs on the root logger.

    Reconfiguring replaces only those handlers, so handlers added by a host
    (pytest's capture, for instance) survive.
    """

    _instance: Optional['LoggingManager'] = None
    _initialized: bool = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self._config: Optional[LogConfig] = None
        self._handlers: List[logging.Handler] = []
        self._initialized = True

    @property
    def config(self) -> Optional[LogConfig]:
        """The configuration last applied, if any."""
        return self._config

    def _install(self, root: logging.Logger, handler: logging.Handler) -> None:
        root.addHandler(handler)
        self._handlers.append(handler)

    def configure(self, config: LogConfig) -> None:
        """
        Apply ``config`` to the root logger.

        Args:
            config: Logging configuration
        """
        root = logging.getLogger()
        for handler in self._handlers:
            root.removeHandler(handler)
            handler.close()
        self._handlers = []

        self._config = config
        root.setLevel(config.numeric_level)

        if config.console_output:
            console = logging.StreamHandler(sys.stderr)
            console.setLevel(config.numeric_level)
            console.setFormatter(ColoredFormatter(config.format_string or DEFAULT_FORMAT, config.date_format))
            self._install(root, console)

        if config.file_output:
            Path(config.log_dir).mkdir(parents=True, exist_ok=True)
            formatter = logging.Formatter(config.format_string or DETAILED_FORMAT, config.date_format)

            main_log = _rotating_handler(os.path.join(config.log_dir, LOG_FILE), config, formatter)
            main_log.setLevel(config.numeric_level)
            self._install(root, main_log)

            error_log = _rotating_handler(os.path.join(config.log_dir, ERROR_LOG_FILE), config, formatter)
            error_log.setLevel(logging.ERROR)
            self._install(root, error_log)

        for component, level in config.component_levels.items():
            logging.getLogger(component).setLevel(getattr(logging, level.upper()))

        logging.getLogger(__name__).info("Logging configured with level %s", config.level)

    def set_level(self, level: Union[str, int]) -> None:
        """
        Change the root level and every handler except the error log.

        Args:
            level: Log level (string or logging constant)
        """
        if isinstance(level, str):
            level = getattr(logging, level.upper())

        logging.getLogger().setLevel(level)
        for handler in self._handlers:
            if handler.level != logging.ERROR:
                handler.setLevel(level)


_logging_manager = LoggingManager()


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Logger name (typically __name__)
    """
    return logging.getLogger(name)


def configure_logging(config: LogConfig) -> None:
    _logging_manager.configure(config)


def get_logging_manager() -> LoggingManager:
    """Get the global logging manager instance."""
    return _logging_manager


def create_development_config(log_dir: str = "./logs/dev") -> LogConfig:
    """Everything at DEBUG in files, key handling excepted."""
    return LogConfig(
        level="DEBUG",
        log_dir=log_dir,
        max_bytes=5 * 1024 * 1024,  # 5MB
        backup_count=3,
        component_levels={
            "websockets": "WARNING",
            "asyncio": "WARNING",
            "RoomChat.core.client.input": "INFO",
        }
    )


def create_production_config(log_dir: str = "./logs/prod") -> LogConfig:
    """Connection lifecycle and errors only."""
    return LogConfig(
        level="INFO",
        log_dir=log_dir,
        max_bytes=50 * 1024 * 1024,  # 50MB
        backup_count=10,
        component_levels={
            "websockets": "ERROR",
            "asyncio": "ERROR",
        }
    )


def create_testing_config(log_dir: str = "./logs/test") -> LogConfig:
    """Short lines on stderr and no files; for runs without curses."""
    return LogConfig(
        level="DEBUG",
        log_dir=log_dir,
        console_output=True,
        file_output=False,
        format_string="%(levelname)s - %(name)s - %(message)s",
        component_levels={
            "websockets": "ERROR",
        }
    )


# Environment name -> (preset, subdirectory of the log dir)
_PRESETS: Dict[str, tuple] = {
    "development": (create_development_config, "dev"),
    "production": (create_production_config, "prod"),
    "testing": (create_testing_config, "test"),
}
_ALIASES = {"dev": "development", "prod": "production", "test": "testing"}


def auto_configure(env: Optional[str] = None, log_dir: Optional[str] = None) -> str:
    """
    Configure logging for an environment.

    Args:
        env: development, production or testing (or dev/prod/test). Defaults
             to ``$ROOMCHAT_ENV``; unknown names fall back to development.
        log_dir: Base directory; each environment logs to its own subdirectory

    Returns:
        The environment name as given (lower-cased)
    """
    if env is None:
        env = os.environ.get("ROOMCHAT_ENV", "development")
    env = env.lower()

    preset, subdir = _PRESETS.get(_ALIASES.get(env, env), _PRESETS["development"])
    configure_logging(preset(os.path.join(log_dir or "./logs", subdir)))

    get_logger(__name__).info("Logging auto-configured for environment: %s", env)
    return env


__all__ = [
    'LogConfig',
    'LoggingManager',
    'ColoredFormatter',
    'DEFAULT_FORMAT',
    'DETAILED_FORMAT',
    'get_logger',
    'configure_logging',
    'get_logging_manager',
    'create_development_config',
    'create_production_config',
    'create_testing_config',
    'auto_configure',
]
