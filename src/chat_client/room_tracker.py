"""
Room Tracker for Client-Side Room State

This module keeps the client's view of the rooms it has joined, built from
the events the server pushes. A presentation layer reads from it to render
the room list, the active room's messages and member list, and per-room
unread counters.

Unread counting:
    - Messages for the active room are never counted
    - System notices (author "admin") are never counted
    - Selecting a room resets its counter

Usage:
    tracker = RoomTracker()
    tracker.apply_message(message)
    tracker.select_room("general")
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .schemas import ChatMessage, RoomHistory, RoomList, RoomMembers

logger = logging.getLogger(__name__)


@dataclass
class TrackedRoom:
    """
    Client-side state of one joined room.

    Attributes:
        name: Name of the room
        messages: Messages received for the room, oldest first
        members: Display names from the latest member list
        member_count: Member count from the latest room list or member list
        last_message: Latest message known for the room
        unread: Messages received while the room was not active
    """

    name: str
    messages: List[ChatMessage] = field(default_factory=list)
    members: List[str] = field(default_factory=list)
    member_count: int = 0
    last_message: Optional[ChatMessage] = None
    unread: int = 0


class RoomTracker:
    """
    Tracks joined rooms, their messages and unread counts.

    Attributes:
        rooms: Room name -> TrackedRoom, in the order rooms became known
        active_room: Name of the room currently shown, if any
    """

    def __init__(self):
        self.rooms: Dict[str, TrackedRoom] = {}
        self.active_room: Optional[str] = None

    def _room(self, name: str) -> TrackedRoom:
        room = self.rooms.get(name)
        if room is None:
            room = TrackedRoom(name=name)
            self.rooms[name] = room
        return room

    def get_room(self, name: str) -> Optional[TrackedRoom]:
        return self.rooms.get(name)

    def room_names(self) -> List[str]:
        return list(self.rooms)

    def select_room(self, name: Optional[str]) -> None:
        """
        Make a room the active one and clear its unread counter.

        Args:
            name: Room to show, or None to show no room
        """
        self.active_room = name
        if name is not None:
            self._room(name).unread = 0

    def unread_count(self, name: str) -> int:
        room = self.rooms.get(name)
        return room.unread if room else 0

    def total_unread(self) -> int:
        return sum(room.unread for room in self.rooms.values())

    def apply_message(self, message: ChatMessage) -> TrackedRoom:
        """
        Record a message pushed by the server.

        Returns:
            The room the message belongs to
        """
        room = self._room(message.room)
        room.messages.append(message)
        room.last_message = message
        if not message.is_system and message.room != self.active_room:
            room.unread += 1
        return room

    def apply_history(self, history: RoomHistory) -> TrackedRoom:
        """Replace a room's messages with the server's full history."""
        room = self._room(history.room)
        room.messages = list(history.messages)
        if history.messages:
            room.last_message = history.messages[-1]
        return room

    def apply_room_list(self, room_list: RoomList) -> None:
        """
        Sync with the server's summary of joined rooms.

        Rooms missing from the list are forgotten; if the active room is
        among them, no room is active afterwards.
        """
        listed = {entry.name for entry in room_list.rooms}
        for name in list(self.rooms):
            if name not in listed:
                del self.rooms[name]
                logger.debug("Dropped room %s (no longer joined)", name)

        for entry in room_list.rooms:
            room = self._room(entry.name)
            room.member_count = entry.member_count
            if entry.last_message is not None:
                room.last_message = entry.last_message

        if self.active_room is not None and self.active_room not in self.rooms:
            self.active_room = None

    def apply_members(self, members: RoomMembers) -> TrackedRoom:
        """Replace a room's member list."""
        room = self._room(members.room)
        room.members = list(members.members)
        room.member_count = len(members.members)
        return room

    def forget_room(self, name: str) -> None:
        """Drop a room the user left."""
        self.rooms.pop(name, None)
        if self.active_room == name:
            self.active_room = None
