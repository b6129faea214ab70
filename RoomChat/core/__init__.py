"""
Core packages of RoomChat: the client runtime, the wire protocol and logging.
"""
