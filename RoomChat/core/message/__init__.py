"""
Wire protocol for the chat service.
"""

from .protocol import Frame, FrameType, chat_frame, join_frame, leave_frame

__all__ = ['Frame', 'FrameType', 'chat_frame', 'join_frame', 'leave_frame']
