"""
Startup entry points for RoomChat.
"""
