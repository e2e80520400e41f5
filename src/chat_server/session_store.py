"""
Session Store

Tracks, for each live connection, the display name the client declared and
the set of rooms it has joined. Sessions are created by the first identify
on a connection and removed when the connection goes away.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Set

from .utils.validation import clean_text

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """
    Server-side state bound to one connection.

    Attributes:
        connection_id: Transport-assigned id of the connection
        display_name: Name declared by the client
        rooms: Names of the rooms this connection currently belongs to
    """

    connection_id: str
    display_name: str
    rooms: Set[str] = field(default_factory=set)


class SessionStore:
    """
    Maps connection ids to sessions.

    The room set of a session must only be changed together with the
    matching RoomStore membership change; the coordination engine is the
    only caller that does so.
    """

    def __init__(self):
        self._sessions: Dict[str, Session] = {}

    def __contains__(self, connection_id: str) -> bool:
        return connection_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, connection_id: str) -> Optional[Session]:
        return self._sessions.get(connection_id)

    def connection_ids(self):
        return list(self._sessions)

    def display_name(self, connection_id: str) -> Optional[str]:
        session = self._sessions.get(connection_id)
        return session.display_name if session else None

    def set_identity(self, connection_id: str, name: str) -> Optional[Session]:
        """
        Create or rename the session for a connection.

        Args:
            connection_id: The connection id
            name: Declared display name

        Returns:
            The session, or None if the name was empty after trimming
        """
        name = clean_text(name)
        if not name:
            return None

        session = self._sessions.get(connection_id)
        if session is None:
            session = Session(connection_id=connection_id, display_name=name)
            self._sessions[connection_id] = session
            logger.info(f"Connection {connection_id} identified as {name}")
        else:
            logger.info(
                f"Connection {connection_id} renamed from "
                f"{session.display_name} to {name}"
            )
            session.display_name = name
        return session

    def record_join(self, connection_id: str, room: str) -> bool:
        session = self._sessions.get(connection_id)
        if session is None:
            return False
        session.rooms.add(room)
        return True

    def record_leave(self, connection_id: str, room: str) -> bool:
        session = self._sessions.get(connection_id)
        if session is None or room not in session.rooms:
            return False
        session.rooms.discard(room)
        return True

    def remove_session(self, connection_id: str) -> Set[str]:
        """
        Delete the session for a connection.

        Returns:
            The rooms the session belonged to (empty if there was none)
        """
        session = self._sessions.pop(connection_id, None)
        if session is None:
            return set()
        logger.info(
            f"Removed session for {session.display_name} ({connection_id})"
        )
        return session.rooms

    def rooms_of(self, connection_id: str) -> Set[str]:
        """Return a copy of the connection's rooms, empty if unknown."""
        session = self._sessions.get(connection_id)
        if session is None:
            return set()
        return set(session.rooms)
