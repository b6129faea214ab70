"""
Client package for RoomChat.

Submodules are imported where they are used so that the wire protocol and the
runtime can be loaded without a terminal (tests, scripts).
"""
