"""
Room State Management

This module manages the in-memory state of chat rooms. A room exists only
while it has members: it is created by the first join to an unknown name
and deleted the moment its last member leaves, taking its history with it.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)

SYSTEM_AUTHOR = "admin"


@dataclass(frozen=True)
class Message:
    """
    A chat message stored in a room's history.

    Attributes:
        author: Display name of the sender, or SYSTEM_AUTHOR
        text: The message text
        timestamp: Timezone-aware creation time
        room: Name of the room the message belongs to
    """

    author: str
    text: str
    timestamp: datetime
    room: str

    @property
    def is_system(self) -> bool:
        return self.author == SYSTEM_AUTHOR


@dataclass
class Room:
    """
    A named chat room.

    Attributes:
        name: Unique room name
        members: Connection id -> time the connection joined, in join order
        messages: Message history, oldest first
    """

    name: str
    members: Dict[str, datetime] = field(default_factory=dict)
    messages: List[Message] = field(default_factory=list)

    @property
    def member_count(self) -> int:
        return len(self.members)

    @property
    def last_message(self) -> Optional[Message]:
        return self.messages[-1] if self.messages else None


@dataclass(frozen=True)
class RoomView:
    """Read-only copy of a room for composing outbound events."""

    name: str
    members: List[str]
    messages: List[Message]


@dataclass(frozen=True)
class RoomSummary:
    """Member count and latest message of one room."""

    name: str
    member_count: int
    last_message: Optional[Message]


class RoomStore:
    """
    Manages the state of all active rooms.

    Absence from the internal dict is the only representation of a room
    that does not exist; no empty room is ever kept.
    """

    def __init__(self):
        self._rooms: Dict[str, Room] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)

    def names(self) -> List[str]:
        return list(self._rooms)

    def get(self, name: str) -> Optional[Room]:
        return self._rooms.get(name)

    def is_member(self, name: str, connection_id: str) -> bool:
        room = self._rooms.get(name)
        return room is not None and connection_id in room.members

    def ensure_room(self, name: str) -> Room:
        """
        Get a room, creating an empty one if it does not exist.

        Args:
            name: The room name

        Returns:
            The existing or newly created Room
        """
        room = self._rooms.get(name)
        if room is None:
            room = Room(name=name)
            self._rooms[name] = room
            logger.info(f"Created room '{name}'")
        return room

    def add_member(
        self, name: str, connection_id: str, joined_at: datetime
    ) -> bool:
        """
        Add a connection to a room.

        Returns:
            True if the connection was added, False if the room doesn't
            exist or the connection was already a member
        """
        room = self._rooms.get(name)
        if room is None or connection_id in room.members:
            return False
        room.members[connection_id] = joined_at
        return True

    def remove_member(self, name: str, connection_id: str) -> bool:
        """
        Remove a connection from a room, deleting the room if it empties.

        Returns:
            True if the room was deleted as a result
        """
        room = self._rooms.get(name)
        if room is None or connection_id not in room.members:
            return False

        del room.members[connection_id]
        if not room.members:
            del self._rooms[name]
            logger.info(
                f"Room '{name}' deleted (empty, "
                f"{len(room.messages)} messages discarded)"
            )
            return True
        return False

    def append(self, name: str, message: Message) -> bool:
        """
        Append a message to a room's history.

        Returns:
            True if appended, False if the room doesn't exist
        """
        room = self._rooms.get(name)
        if room is None:
            logger.warning(
                f"Dropped message from {message.author}: "
                f"room '{name}' does not exist"
            )
            return False
        room.messages.append(message)
        return True

    def snapshot(self, name: str) -> RoomView:
        """Copy of a room's members and history; empty for unknown rooms."""
        room = self._rooms.get(name)
        if room is None:
            return RoomView(name=name, members=[], messages=[])
        return RoomView(
            name=name,
            members=list(room.members),
            messages=list(room.messages),
        )

    def summaries(self, names: Iterable[str]) -> List[RoomSummary]:
        """
        Summarize rooms for a room list.

        Args:
            names: Room names to summarize, in the order to report them

        Returns:
            One RoomSummary per name; unknown rooms report zero members
        """
        result = []
        for name in names:
            room = self._rooms.get(name)
            if room is None:
                result.append(RoomSummary(name, 0, None))
            else:
                result.append(
                    RoomSummary(name, room.member_count, room.last_message)
                )
        return result
