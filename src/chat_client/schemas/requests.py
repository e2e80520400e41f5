"""
Request Schema Definitions

This module defines the requests a client sends: declaring a display name,
joining and leaving rooms, posting messages and asking for the room list.
"""

from dataclasses import dataclass

from .base import BaseRequest


@dataclass
class IdentifyRequest(BaseRequest):
    """
    Declare the display name for this connection.

    Attributes:
        name: The display name
    """

    name: str

    EVENT_TYPE = "identify"


@dataclass
class JoinRequest(BaseRequest):
    """
    Join a room, creating it if nobody is in it yet.

    Attributes:
        room: Name of the room
    """

    room: str

    EVENT_TYPE = "join"


@dataclass
class LeaveRequest(BaseRequest):
    """
    Leave a room.

    Attributes:
        room: Name of the room
    """

    room: str

    EVENT_TYPE = "leave"


@dataclass
class SendMessageRequest(BaseRequest):
    """
    Post a message to a room.

    Attributes:
        room: Name of the room
        text: The message text
    """

    room: str
    text: str

    EVENT_TYPE = "sendMessage"


@dataclass
class GetRoomListRequest(BaseRequest):
    """Ask for the summary of the rooms this connection has joined."""

    EVENT_TYPE = "getRoomList"
