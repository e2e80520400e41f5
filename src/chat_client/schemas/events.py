"""
Event Schema Definitions

This module defines the events pushed by the server: chat messages, room
history, room list summaries and member lists.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .base import BaseEvent

SYSTEM_AUTHOR = "admin"


@dataclass
class ChatMessage(BaseEvent):
    """
    A message posted to a room.

    Attributes:
        author: Display name of the sender ("admin" for system notices)
        text: The message text
        timestamp: ISO 8601 timestamp set by the server
        room: Name of the room
    """

    author: str
    text: str
    timestamp: str
    room: str

    EVENT_TYPE = "message"

    @property
    def is_system(self) -> bool:
        """True for join/leave notices generated by the server."""
        return self.author == SYSTEM_AUTHOR


@dataclass
class RoomHistory(BaseEvent):
    """
    Full message history of a room, sent once after joining it.

    Attributes:
        room: Name of the room
        messages: Messages, oldest first
    """

    room: str
    messages: List[ChatMessage] = field(default_factory=list)

    EVENT_TYPE = "roomHistory"

    @classmethod
    def _from_data(cls, data: Dict[str, Any]) -> "RoomHistory":
        return cls(
            room=data["room"],
            messages=[
                ChatMessage._from_data(m) for m in data.get("messages", [])
            ],
        )


@dataclass
class RoomListEntry:
    """
    Summary of one joined room.

    Attributes:
        name: Name of the room
        member_count: Number of members
        last_message: Most recent message, if any
    """

    name: str
    member_count: int
    last_message: Optional[ChatMessage] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RoomListEntry":
        last = data.get("lastMessage")
        return cls(
            name=data["name"],
            member_count=data.get("memberCount", 0),
            last_message=ChatMessage._from_data(last) if last else None,
        )


@dataclass
class RoomList(BaseEvent):
    """
    Summaries of the rooms this connection has joined.

    Attributes:
        rooms: One entry per joined room
    """

    rooms: List[RoomListEntry] = field(default_factory=list)

    EVENT_TYPE = "roomList"

    @classmethod
    def _from_data(cls, data: Dict[str, Any]) -> "RoomList":
        return cls(
            rooms=[RoomListEntry.from_dict(r) for r in data.get("rooms", [])]
        )


@dataclass
class RoomMembers(BaseEvent):
    """
    Current member list of a room.

    Attributes:
        room: Name of the room
        members: Display names of the members
    """

    room: str
    members: List[str] = field(default_factory=list)

    EVENT_TYPE = "roomMembers"
