"""
Coordination Engine

Turns inbound client events into state changes and outbound broadcasts.

The engine is a synchronous state-transition object: dispatch() applies one
event to the CoordinatorState and returns the broadcasts to deliver. It never
touches the network, so the caller decides how broadcasts reach clients and
the engine can be driven directly in tests.

Every handler keeps the session store and the room store in agreement:
a connection is a member of a room exactly when its session lists the room,
and a room exists exactly while it has members.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from .room_store import SYSTEM_AUTHOR, Message, Room
from .schemas import (
    MESSAGE,
    ROOM_HISTORY,
    ROOM_LIST,
    ROOM_MEMBERS,
    Broadcast,
    Disconnect,
    Event,
    GetRoomList,
    Identify,
    Join,
    Leave,
    SendMessage,
    create_message_data,
    create_room_history,
    create_room_list,
    create_room_members,
)
from .state import CoordinatorState
from .utils.validation import (
    ValidationLimits,
    clean_text,
    validate_message_content,
    validate_name,
)

logger = logging.getLogger(__name__)

JOIN_NOTICE = "{name} has joined the room!"
LEAVE_NOTICE = "{name} has left the room."


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CoordinationEngine:
    """
    Applies client events to the session and room stores.

    Attributes:
        state: The CoordinatorState this engine owns
        limits: Optional length limits for names and messages
        check_invariants: Verify store consistency after every event
    """

    def __init__(
        self,
        state: Optional[CoordinatorState] = None,
        clock: Optional[Callable[[], datetime]] = None,
        limits: Optional[ValidationLimits] = None,
        check_invariants: bool = False,
    ):
        """
        Initialize the engine.

        Args:
            state: Existing state to operate on (a fresh one by default)
            clock: Returns the current timezone-aware time
            limits: Length limits; no limits by default
            check_invariants: Raise InvariantViolation after any event that
                leaves the stores inconsistent
        """
        self.state = state if state is not None else CoordinatorState()
        self.limits = limits or ValidationLimits()
        self.check_invariants = check_invariants
        self._clock = clock or utc_now
        self._handlers = {
            Identify: self.handle_identify,
            Join: self.handle_join,
            Leave: self.handle_leave,
            SendMessage: self.handle_send_message,
            GetRoomList: self.handle_get_room_list,
            Disconnect: self.handle_disconnect,
        }

    @property
    def sessions(self):
        return self.state.sessions

    @property
    def rooms(self):
        return self.state.rooms

    def dispatch(self, connection_id: str, event: Event) -> List[Broadcast]:
        """
        Apply one event from a connection.

        Args:
            connection_id: The connection the event arrived on
            event: The parsed event

        Returns:
            Broadcasts to deliver, in order

        Raises:
            TypeError: If the event is not one of the known variants
        """
        handler = self._handlers.get(type(event))
        if handler is None:
            raise TypeError(f"Unsupported event: {event!r}")

        broadcasts = handler(connection_id, event)

        if self.check_invariants:
            self.state.check_invariants()
        return broadcasts

    # Event handlers

    def handle_identify(
        self, connection_id: str, event: Identify
    ) -> List[Broadcast]:
        display_name = clean_text(event.name)
        valid, error = validate_name(display_name, self.limits.max_name_length)
        if not valid:
            logger.debug(f"Ignoring identify from {connection_id}: {error}")
            return []

        previous_name = self.sessions.display_name(connection_id)
        session = self.sessions.set_identity(connection_id, display_name)
        if session is None:
            return []

        broadcasts = [self._room_list(connection_id)]

        # A rename changes every member list the session appears in
        if previous_name is not None and previous_name != session.display_name:
            for name in sorted(session.rooms):
                broadcasts.append(self._room_members(name))
        return broadcasts

    def handle_join(self, connection_id: str, event: Join) -> List[Broadcast]:
        session = self.sessions.get(connection_id)
        if session is None:
            logger.debug(f"Ignoring join from unidentified {connection_id}")
            return []

        name = clean_text(event.room)
        valid, error = validate_name(name, self.limits.max_name_length)
        if not valid:
            logger.debug(f"Ignoring join from {connection_id}: {error}")
            return []

        room = self.rooms.ensure_room(name)
        broadcasts = []

        if connection_id not in room.members:
            history = list(room.messages)
            now = self._timestamp(room)
            self.rooms.add_member(name, connection_id, now)
            self.sessions.record_join(connection_id, name)

            notice = Message(
                author=SYSTEM_AUTHOR,
                text=JOIN_NOTICE.format(name=session.display_name),
                timestamp=now,
                room=name,
            )
            self.rooms.append(name, notice)
            logger.info(f"{session.display_name} joined room '{name}'")

            # History goes out first so the notice lands after it
            broadcasts.append(
                Broadcast(
                    event=ROOM_HISTORY,
                    payload=create_room_history(name, history),
                    recipients=(connection_id,),
                )
            )
            broadcasts.append(self._room_message(notice))
        else:
            logger.debug(
                f"{session.display_name} is already in room '{name}'"
            )

        broadcasts.append(self._room_list(connection_id))
        broadcasts.append(self._room_members(name))
        return broadcasts

    def handle_leave(self, connection_id: str, event: Leave) -> List[Broadcast]:
        session = self.sessions.get(connection_id)
        name = clean_text(event.room)
        if session is None or not self.rooms.is_member(name, connection_id):
            logger.debug(
                f"Ignoring leave of '{name}' from {connection_id}: "
                f"not a member"
            )
            return []

        broadcasts = self._depart(connection_id, session.display_name, name)
        self.sessions.record_leave(connection_id, name)
        broadcasts.append(self._room_list(connection_id))
        return broadcasts

    def handle_send_message(
        self, connection_id: str, event: SendMessage
    ) -> List[Broadcast]:
        session = self.sessions.get(connection_id)
        name = clean_text(event.room)
        if session is None or not self.rooms.is_member(name, connection_id):
            logger.debug(
                f"Ignoring message to '{name}' from {connection_id}: "
                f"not a member"
            )
            return []

        valid, error = validate_message_content(
            event.text, self.limits.max_message_length
        )
        if not valid:
            logger.debug(f"Ignoring message from {connection_id}: {error}")
            return []

        room = self.rooms.ensure_room(name)
        message = Message(
            author=session.display_name,
            text=event.text,
            timestamp=self._timestamp(room),
            room=name,
        )
        self.rooms.append(name, message)
        logger.debug(
            f"Message in '{name}' from {session.display_name}: "
            f"{event.text}"
        )
        return [self._room_message(message)]

    def handle_get_room_list(
        self, connection_id: str, event: GetRoomList
    ) -> List[Broadcast]:
        return [self._room_list(connection_id)]

    def handle_disconnect(
        self, connection_id: str, event: Disconnect
    ) -> List[Broadcast]:
        display_name = self.sessions.display_name(connection_id)
        former_rooms = self.sessions.remove_session(connection_id)
        if display_name is None:
            return []

        logger.info(
            f"{display_name} disconnected from {len(former_rooms)} room(s)"
        )
        broadcasts = []
        for name in sorted(former_rooms):
            broadcasts.extend(self._depart(connection_id, display_name, name))
        return broadcasts

    # Helpers

    def _depart(
        self, connection_id: str, display_name: str, name: str
    ) -> List[Broadcast]:
        """
        Remove a connection from a room and notify whoever is left.

        The leave notice is appended while the room still exists; the room
        is deleted afterwards if it became empty. The caller updates the
        session.
        """
        room = self.rooms.get(name)
        if room is None or connection_id not in room.members:
            return []

        notice = Message(
            author=SYSTEM_AUTHOR,
            text=LEAVE_NOTICE.format(name=display_name),
            timestamp=self._timestamp(room),
            room=name,
        )
        self.rooms.append(name, notice)
        deleted = self.rooms.remove_member(name, connection_id)
        logger.info(f"{display_name} left room '{name}'")

        if deleted:
            return []
        return [self._room_message(notice), self._room_members(name)]

    def _timestamp(self, room: Optional[Room]) -> datetime:
        """Current time, never earlier than the room's latest message."""
        now = self._clock()
        last = room.last_message if room is not None else None
        if last is not None and now < last.timestamp:
            return last.timestamp
        return now

    def _member_names(self, name: str) -> List[str]:
        names = []
        for connection_id in self.rooms.snapshot(name).members:
            display_name = self.sessions.display_name(connection_id)
            if display_name is not None:
                names.append(display_name)
        return names

    def _room_message(self, message: Message) -> Broadcast:
        return Broadcast(
            event=MESSAGE,
            payload=create_message_data(message),
            recipients=tuple(self.rooms.snapshot(message.room).members),
            room=message.room,
        )

    def _room_members(self, name: str) -> Broadcast:
        return Broadcast(
            event=ROOM_MEMBERS,
            payload=create_room_members(name, self._member_names(name)),
            recipients=tuple(self.rooms.snapshot(name).members),
            room=name,
        )

    def _room_list(self, connection_id: str) -> Broadcast:
        names = sorted(self.sessions.rooms_of(connection_id))
        return Broadcast(
            event=ROOM_LIST,
            payload=create_room_list(self.rooms.summaries(names)),
            recipients=(connection_id,),
        )
