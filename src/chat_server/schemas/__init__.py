"""
Schemas for the Chat Server

This module contains the inbound event variants clients send and the
outbound event structures the server broadcasts.
"""

from .inbound import (
    IDENTIFY,
    JOIN,
    LEAVE,
    SEND_MESSAGE,
    GET_ROOM_LIST,
    MalformedFrame,
    Identify,
    Join,
    Leave,
    SendMessage,
    GetRoomList,
    Disconnect,
    Event,
    parse_event,
)
from .outbound import (
    MESSAGE,
    ROOM_HISTORY,
    ROOM_LIST,
    ROOM_MEMBERS,
    Broadcast,
    format_timestamp,
    create_message_data,
    create_room_history,
    create_room_list,
    create_room_members,
)

__all__ = [
    "IDENTIFY",
    "JOIN",
    "LEAVE",
    "SEND_MESSAGE",
    "GET_ROOM_LIST",
    "MalformedFrame",
    "Identify",
    "Join",
    "Leave",
    "SendMessage",
    "GetRoomList",
    "Disconnect",
    "Event",
    "parse_event",
    "MESSAGE",
    "ROOM_HISTORY",
    "ROOM_LIST",
    "ROOM_MEMBERS",
    "Broadcast",
    "format_timestamp",
    "create_message_data",
    "create_room_history",
    "create_room_list",
    "create_room_members",
]
