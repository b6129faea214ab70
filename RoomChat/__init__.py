r"""
    ____                        ________          __
   / __ \____  ____  ____ ___  / ____/ /_  ____ _/ /_
  / /_/ / __ \/ __ \/ __ `__ \/ /   / __ \/ __ `/ __/
 / _, _/ /_/ / /_/ / / / / / / /___/ / / / /_/ / /_
/_/ |_|\____/\____/_/ /_/ /_/\____/_/ /_/\__,_/\__/

RoomChat - a terminal client for room-based WebSocket chat services.

Keeps a live session with a chat server: identity, current room,
scrollback and connection status, while the keyboard stays responsive.
"""

__version__ = "1.0.0"
