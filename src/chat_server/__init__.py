"""
Chat Server Package

This package provides the chat server: the session and room stores, the
coordination engine that keeps them consistent, and the WebSocket server
that connects clients to it.
"""

from .session_store import Session, SessionStore
from .room_store import (
    SYSTEM_AUTHOR,
    Message,
    Room,
    RoomStore,
    RoomSummary,
    RoomView,
)
from .state import CoordinatorState, InvariantViolation
from .engine import CoordinationEngine
from .websocket_server import ClientConnection, WebSocketServer

__all__ = [
    "Session",
    "SessionStore",
    "SYSTEM_AUTHOR",
    "Message",
    "Room",
    "RoomStore",
    "RoomSummary",
    "RoomView",
    "CoordinatorState",
    "InvariantViolation",
    "CoordinationEngine",
    "ClientConnection",
    "WebSocketServer",
]
