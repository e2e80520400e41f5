"""
Coordinator State

Bundles the session store and the room store into a single value owned by
one CoordinationEngine.
"""

from .room_store import RoomStore
from .session_store import SessionStore


class InvariantViolation(RuntimeError):
    """Raised when the session and room stores disagree."""


class CoordinatorState:
    """
    Holds all in-memory state of a chat server.

    Responsibilities:
    - Own the SessionStore and RoomStore
    - Check that the two stores agree on membership
    """

    def __init__(self, sessions=None, rooms=None):
        self.sessions = sessions if sessions is not None else SessionStore()
        self.rooms = rooms if rooms is not None else RoomStore()

    def check_invariants(self):
        """
        Verify membership symmetry, room existence and history ordering.

        Raises:
            InvariantViolation: describing the first inconsistency found
        """
        for connection_id in self.sessions.connection_ids():
            for name in self.sessions.rooms_of(connection_id):
                if not self.rooms.is_member(name, connection_id):
                    raise InvariantViolation(
                        f"Session {connection_id} lists room '{name}' "
                        f"but is not one of its members"
                    )

        for name in self.rooms.names():
            room = self.rooms.get(name)
            if not room.members:
                raise InvariantViolation(f"Room '{name}' exists with no members")
            for connection_id in room.members:
                if name not in self.sessions.rooms_of(connection_id):
                    raise InvariantViolation(
                        f"Room '{name}' lists {connection_id} as a member "
                        f"but the session does not list the room"
                    )
            for message in room.messages:
                if message.room != name:
                    raise InvariantViolation(
                        f"Room '{name}' holds a message for '{message.room}'"
                    )
            for earlier, later in zip(room.messages, room.messages[1:]):
                if later.timestamp < earlier.timestamp:
                    raise InvariantViolation(
                        f"Room '{name}' history is out of order"
                    )
