"""
Client Service for the Chat Server

This module provides the client service class that handles communication
with the chat server over a WebSocket connection: connecting, declaring a
display name, joining and leaving rooms, and sending messages.

Architecture:
    - Uses WebSocket for real-time bidirectional communication
    - Supports dependency injection for the network layer (for testability)
    - Requests are fire-and-forget; the server's answers arrive as pushed
      events and are handled by ChatClient's receive loop
"""

import logging
from typing import Callable, Optional

import websockets

from .schemas import (
    BaseRequest,
    GetRoomListRequest,
    IdentifyRequest,
    JoinRequest,
    LeaveRequest,
    SendMessageRequest,
)

logger = logging.getLogger(__name__)


class ClientService:
    """
    Client service for talking to the chat server.

    Attributes:
        server_url: WebSocket URL of the server (e.g., ws://localhost:5001)
        websocket: Active WebSocket connection (None if not connected)
        username: Display name last declared with identify()
    """

    def __init__(
        self,
        server_url: str,
        websocket_factory: Optional[Callable] = None,
    ):
        """
        Initialize the client service.

        Args:
            server_url: WebSocket URL of the chat server
            websocket_factory: Optional coroutine factory for creating
                WebSocket connections (for dependency injection/testing)
        """
        self.server_url = server_url
        self.websocket = None
        self.username: Optional[str] = None
        self._websocket_factory = websocket_factory or websockets.connect
        self._connected = False

        logger.info(f"ClientService initialized for server: {server_url}")

    async def connect(self) -> None:
        """
        Establish the WebSocket connection.

        Raises:
            ConnectionError: If connection fails
        """
        try:
            logger.info(f"Connecting to {self.server_url}...")
            self.websocket = await self._websocket_factory(self.server_url)
            self._connected = True
            logger.info("Successfully connected to chat server")
        except (OSError, websockets.exceptions.WebSocketException) as e:
            logger.error(f"Failed to connect to server: {e}")
            raise ConnectionError(
                f"Could not connect to {self.server_url}: {e}"
            ) from e

    async def disconnect(self) -> None:
        """Close the WebSocket connection."""
        if self.websocket:
            await self.websocket.close()
            self.websocket = None
            self._connected = False
            logger.info("Disconnected from chat server")

    @property
    def is_connected(self) -> bool:
        """Check if currently connected to the server."""
        return self._connected and self.websocket is not None

    async def _send(self, request: BaseRequest) -> None:
        if not self.is_connected:
            raise ConnectionError("Not connected to a chat server")
        await self.websocket.send(request.to_json())

    async def identify(self, name: str) -> None:
        """
        Declare this connection's display name.

        Args:
            name: The display name

        Raises:
            ValueError: If the name is empty
            ConnectionError: If not connected
        """
        name = name.strip()
        if not name:
            raise ValueError("Display name cannot be empty")

        await self._send(IdentifyRequest(name))
        self.username = name
        logger.info(f"Identified as {name}")

    async def join(self, room: str) -> None:
        """
        Join a room. The server answers with roomHistory, roomList and
        roomMembers events.

        Raises:
            ValueError: If the room name is empty
            ConnectionError: If not connected
        """
        room = room.strip()
        if not room:
            raise ValueError("Room name cannot be empty")

        logger.info(f"Joining room '{room}'")
        await self._send(JoinRequest(room))

    async def leave(self, room: str) -> None:
        """Leave a room."""
        logger.info(f"Leaving room '{room}'")
        await self._send(LeaveRequest(room))

    async def send_message(self, room: str, text: str) -> None:
        """
        Send a message to a room.

        Raises:
            ValueError: If the text is empty
            ConnectionError: If not connected
        """
        if not text.strip():
            raise ValueError("Message text cannot be empty")

        logger.debug(f"Sending message to room '{room}'")
        await self._send(SendMessageRequest(room, text))

    async def request_room_list(self) -> None:
        """Ask the server for a roomList event."""
        await self._send(GetRoomListRequest())
