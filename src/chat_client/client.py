"""
Chat Client with Room Tracking

This module provides a ChatClient class that extends ClientService with a
receive loop. Incoming events update a RoomTracker and are passed on to
optional callbacks for a presentation layer.

Usage:
    client = ChatClient("ws://localhost:5001")
    await client.connect()
    await client.identify("alice")
    await client.join("general")
    await client.receive_messages()
"""

import json
import logging
from typing import Callable, Optional

import websockets

from .room_tracker import RoomTracker
from .schemas import ChatMessage, RoomHistory, RoomList, RoomMembers
from .service import ClientService

logger = logging.getLogger(__name__)


class ChatClient(ClientService):
    """
    Chat client that keeps per-room state.

    Attributes:
        tracker: Client-side state of the joined rooms
        on_message: Called with each ChatMessage
        on_history: Called with each RoomHistory
        on_room_list: Called with each RoomList
        on_members: Called with each RoomMembers
    """

    def __init__(
        self,
        server_url: str,
        websocket_factory: Optional[Callable] = None,
    ):
        super().__init__(server_url, websocket_factory)

        self.tracker = RoomTracker()
        self.on_message: Optional[Callable[[ChatMessage], None]] = None
        self.on_history: Optional[Callable[[RoomHistory], None]] = None
        self.on_room_list: Optional[Callable[[RoomList], None]] = None
        self.on_members: Optional[Callable[[RoomMembers], None]] = None

        self._handlers = {
            ChatMessage.EVENT_TYPE: self._handle_message,
            RoomHistory.EVENT_TYPE: self._handle_history,
            RoomList.EVENT_TYPE: self._handle_room_list,
            RoomMembers.EVENT_TYPE: self._handle_members,
        }

    async def leave(self, room: str) -> None:
        await super().leave(room)
        self.tracker.forget_room(room)

    async def receive_messages(self) -> None:
        """
        Receive and process events until the connection closes.

        Raises:
            ConnectionError: If not connected
        """
        if not self.is_connected:
            raise ConnectionError("Not connected to a chat server")

        logger.info("Starting message receive loop")

        try:
            async for frame in self.websocket:
                self.process_frame(frame)
        except websockets.exceptions.ConnectionClosed:
            logger.warning("Connection closed by server")
        finally:
            self._connected = False

    def process_frame(self, frame: str) -> None:
        """
        Process a single frame pushed by the server.

        Frames that cannot be parsed or have an unknown type are logged and
        skipped.
        """
        try:
            data = json.loads(frame)
        except json.JSONDecodeError as e:
            logger.error("Failed to parse frame JSON: %s", e)
            return

        if not isinstance(data, dict):
            logger.error("Ignoring non-object frame")
            return

        event_type = data.get("type")
        handler = self._handlers.get(event_type)
        if handler is None:
            logger.debug("Unhandled event type: %s", event_type)
            return

        try:
            handler(data.get("data", {}))
        except (KeyError, TypeError) as e:
            logger.error("Malformed %s event: %s", event_type, e)

    def _handle_message(self, data) -> None:
        message = ChatMessage.from_dict(data)
        self.tracker.apply_message(message)
        if self.on_message:
            self.on_message(message)

    def _handle_history(self, data) -> None:
        history = RoomHistory.from_dict(data)
        self.tracker.apply_history(history)
        logger.info(
            "Received %d messages of history for room %s",
            len(history.messages),
            history.room,
        )
        if self.on_history:
            self.on_history(history)

    def _handle_room_list(self, data) -> None:
        room_list = RoomList.from_dict(data)
        self.tracker.apply_room_list(room_list)
        if self.on_room_list:
            self.on_room_list(room_list)

    def _handle_members(self, data) -> None:
        members = RoomMembers.from_dict(data)
        self.tracker.apply_members(members)
        if self.on_members:
            self.on_members(members)
