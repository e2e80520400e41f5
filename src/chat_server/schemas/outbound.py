"""
Outbound Event Definitions

Contains functions for creating the events the server pushes to clients,
and the Broadcast value pairing an event with its recipients.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..room_store import Message, RoomSummary

MESSAGE = "message"
ROOM_HISTORY = "roomHistory"
ROOM_LIST = "roomList"
ROOM_MEMBERS = "roomMembers"


@dataclass(frozen=True)
class Broadcast:
    """
    One outbound event and the connections it is delivered to.

    Attributes:
        event: Outbound event type
        payload: Event data
        recipients: Connection ids, resolved after the state change
        room: Room the broadcast is scoped to, None for a direct send
    """

    event: str
    payload: Dict[str, Any]
    recipients: Tuple[str, ...]
    room: Optional[str] = None

    def to_frame(self) -> Dict[str, Any]:
        """Wire representation of the event."""
        return {"type": self.event, "data": self.payload}


def format_timestamp(timestamp: datetime) -> str:
    """Format a timestamp as ISO 8601 UTC with millisecond precision."""
    return (
        timestamp.astimezone(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


def create_message_data(message: Message) -> Dict[str, Any]:
    """
    Create a message event payload.

    Args:
        message: The stored message

    Returns:
        dict: {author, text, timestamp, room}
    """
    return {
        "author": message.author,
        "text": message.text,
        "timestamp": format_timestamp(message.timestamp),
        "room": message.room,
    }


def create_room_history(room: str, messages: Iterable[Message]) -> Dict[str, Any]:
    """
    Create a roomHistory payload.

    Args:
        room: Room name
        messages: Full history, oldest first

    Returns:
        dict: {room, messages}
    """
    return {
        "room": room,
        "messages": [create_message_data(m) for m in messages],
    }


def create_room_list(summaries: Iterable[RoomSummary]) -> Dict[str, Any]:
    """
    Create a roomList payload.

    Args:
        summaries: One summary per joined room

    Returns:
        dict: {rooms: [{name, memberCount, lastMessage}]}
    """
    rooms: List[Dict[str, Any]] = []
    for summary in summaries:
        last = summary.last_message
        rooms.append(
            {
                "name": summary.name,
                "memberCount": summary.member_count,
                "lastMessage": create_message_data(last) if last else None,
            }
        )
    return {"rooms": rooms}


def create_room_members(room: str, members: Iterable[str]) -> Dict[str, Any]:
    """
    Create a roomMembers payload.

    Args:
        room: Room name
        members: Display names of the current members

    Returns:
        dict: {room, members}
    """
    return {"room": room, "members": list(members)}
