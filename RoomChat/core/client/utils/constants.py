"""
Constants for the terminal client runtime.
"""

# Event loop
TICK_INTERVAL_SECONDS = 0.05  # 20 ticks per second
INBOUND_QUEUE_SIZE = 256

# Connection lifecycle
CLOSE_TIMEOUT_SECONDS = 2.0
SHUTDOWN_TIMEOUT_SECONDS = 3.0

# UI settings
MAX_MESSAGE_HISTORY = 5000
INPUT_PROMPT = "> "
COMMAND_PREFIX = "/"

# Message display
SYSTEM_SENDER = "*"
SYSTEM_COLOR = "AAAAAA"

HELP_TEXT = (
    "Commands: /join <room> [password], /color <rrggbb>, "
    "/server <url>, /clear, /quit"
)
