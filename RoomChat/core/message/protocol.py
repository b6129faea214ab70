"""
Frame protocol module for RoomChat.
Defines the frame types and the JSON wire structure exchanged with the chat server.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from RoomChat.core.client.utils.exceptions import ProtocolError


class FrameType(Enum):
    """
    Enumeration of frame kinds understood by the chat service.
    """
    JOIN = "join"  # Enter a room (or announce someone entering)
    LEAVE = "leave"  # Leave a room (or announce someone leaving)
    CHAT = "chat"  # Regular chat text
    CLIENT_COUNT = "client_count"  # Number of clients in the room
    ERROR = "error"  # Server-side error report


@dataclass(frozen=True)
class Frame:
    """
    One discrete message exchanged with the chat service.

    Attributes:
        type (FrameType): Kind of the frame
        nickname (str, optional): Sender nickname
        color (str, optional): Sender display color, six hex digits
        room (str, optional): Room the frame belongs to
        password (str, optional): Room password, join frames only
        text (str, optional): Chat text or error description
        count (int, optional): Client count, client_count frames only
    """
    type: FrameType
    nickname: Optional[str] = None
    color: Optional[str] = None
    room: Optional[str] = None
    password: Optional[str] = None
    text: Optional[str] = None
    count: Optional[int] = None

    def serialize(self) -> str:
        """
        Serialize a frame to a JSON string, leaving out unset fields.

        Returns:
            str: JSON representation of the frame
        """
        payload = {"type": self.type.value}
        for name in ("nickname", "color", "room", "password", "text", "count"):
            value = getattr(self, name)
            if value is not None:
                payload[name] = value
        return json.dumps(payload)

    @classmethod
    def deserialize(cls, data) -> 'Frame':
        """
        Create a Frame from a JSON string.

        Args:
            data (str | bytes): JSON text received from the server

        Returns:
            Frame: Deserialized frame

        Raises:
            ProtocolError: If the data is not a well-formed frame
        """
        try:
            obj = json.loads(data)
        except (TypeError, ValueError) as exc:
            raise ProtocolError("Frame is not valid JSON", {"error": str(exc)}) from exc

        if not isinstance(obj, dict):
            raise ProtocolError("Frame is not a JSON object")

        try:
            frame_type = FrameType(obj.get("type"))
        except ValueError:
            raise ProtocolError("Unknown frame type", {"type": obj.get("type")}) from None

        for name in ("nickname", "sender", "color", "room", "password", "text"):
            value = obj.get(name)
            if value is not None and not isinstance(value, str):
                raise ProtocolError(f"Field '{name}' must be a string", {"type": frame_type.value})

        count = obj.get("count")
        if count is not None and (isinstance(count, bool) or not isinstance(count, int)):
            raise ProtocolError("Field 'count' must be an integer", {"type": frame_type.value})

        match frame_type:
            case FrameType.CHAT | FrameType.ERROR if obj.get("text") is None:
                raise ProtocolError("Frame is missing 'text'", {"type": frame_type.value})
            case FrameType.CLIENT_COUNT if count is None:
                raise ProtocolError("Frame is missing 'count'", {"type": frame_type.value})

        # Some servers name the author "sender"
        nickname = obj.get("nickname")
        if nickname is None:
            nickname = obj.get("sender")

        return cls(
            type=frame_type,
            nickname=nickname,
            color=obj.get("color"),
            room=obj.get("room"),
            password=obj.get("password"),
            text=obj.get("text"),
            count=count,
        )


def join_frame(nickname: str, color: str, room: str, password: Optional[str] = None) -> Frame:
    """Build the frame that announces us in ``room``."""
    return Frame(FrameType.JOIN, nickname=nickname, color=color, room=room, password=password)


def leave_frame(nickname: str, room: str) -> Frame:
    """Build the frame that takes us out of ``room``."""
    return Frame(FrameType.LEAVE, nickname=nickname, room=room)


def chat_frame(nickname: str, color: str, room: str, text: str) -> Frame:
    """Build an outgoing chat frame."""
    return Frame(FrameType.CHAT, nickname=nickname, color=color, room=room, text=text)


__all__ = ['Frame', 'FrameType', 'ProtocolError', 'join_frame', 'leave_frame', 'chat_frame']
