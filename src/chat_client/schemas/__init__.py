"""
Client Schema Package

This package contains the request and event schemas used by the client.
Schemas are organized by direction:
    - requests: Frames the client sends
    - events: Frames the server pushes
"""

from .base import BaseRequest, BaseEvent
from .requests import (
    IdentifyRequest,
    JoinRequest,
    LeaveRequest,
    SendMessageRequest,
    GetRoomListRequest,
)
from .events import (
    SYSTEM_AUTHOR,
    ChatMessage,
    RoomHistory,
    RoomListEntry,
    RoomList,
    RoomMembers,
)

__all__ = [
    # Base classes
    "BaseRequest",
    "BaseEvent",
    # Requests
    "IdentifyRequest",
    "JoinRequest",
    "LeaveRequest",
    "SendMessageRequest",
    "GetRoomListRequest",
    # Events
    "SYSTEM_AUTHOR",
    "ChatMessage",
    "RoomHistory",
    "RoomListEntry",
    "RoomList",
    "RoomMembers",
]
