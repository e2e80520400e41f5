"""
Client Package

This package provides the client-side functionality for the chat server:
the ClientService for sending requests, the ChatClient receive loop, and
the RoomTracker holding per-room state for a presentation layer.
"""

from .service import ClientService
from .room_tracker import RoomTracker, TrackedRoom
from .client import ChatClient
from .schemas import (
    # Base classes
    BaseRequest,
    BaseEvent,
    # Requests
    IdentifyRequest,
    JoinRequest,
    LeaveRequest,
    SendMessageRequest,
    GetRoomListRequest,
    # Events
    SYSTEM_AUTHOR,
    ChatMessage,
    RoomHistory,
    RoomListEntry,
    RoomList,
    RoomMembers,
)

__all__ = [
    "ClientService",
    "RoomTracker",
    "TrackedRoom",
    "ChatClient",
    "BaseRequest",
    "BaseEvent",
    "IdentifyRequest",
    "JoinRequest",
    "LeaveRequest",
    "SendMessageRequest",
    "GetRoomListRequest",
    "SYSTEM_AUTHOR",
    "ChatMessage",
    "RoomHistory",
    "RoomListEntry",
    "RoomList",
    "RoomMembers",
]
