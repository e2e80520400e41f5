"""
Inbound Event Definitions

Contains the closed set of events a client can send to the server, and the
parser that turns a raw JSON frame into one of them.

Frames look like:
    {"type": "join", "data": {"room": "general"}}
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Union

from ..utils.validation import clean_text

IDENTIFY = "identify"
JOIN = "join"
LEAVE = "leave"
SEND_MESSAGE = "sendMessage"
GET_ROOM_LIST = "getRoomList"


class MalformedFrame(ValueError):
    """Raised when an inbound frame cannot be turned into an event."""


@dataclass(frozen=True)
class Identify:
    """Client declares its display name."""

    name: str


@dataclass(frozen=True)
class Join:
    """Client asks to join a room, creating it if needed."""

    room: str


@dataclass(frozen=True)
class Leave:
    """Client asks to leave a room."""

    room: str


@dataclass(frozen=True)
class SendMessage:
    """Client posts a text message to a room it belongs to."""

    room: str
    text: str


@dataclass(frozen=True)
class GetRoomList:
    """Client asks for the summary of the rooms it has joined."""


@dataclass(frozen=True)
class Disconnect:
    """The transport reports that the connection has gone away."""


Event = Union[Identify, Join, Leave, SendMessage, GetRoomList, Disconnect]


def _identify(data: Dict[str, Any]) -> Identify:
    return Identify(name=clean_text(data.get("name")))


def _join(data: Dict[str, Any]) -> Join:
    return Join(room=clean_text(data.get("room")))


def _leave(data: Dict[str, Any]) -> Leave:
    return Leave(room=clean_text(data.get("room")))


def _send_message(data: Dict[str, Any]) -> SendMessage:
    # Room names are trimmed, message text is kept verbatim
    text = data.get("text")
    return SendMessage(
        room=clean_text(data.get("room")),
        text=text if isinstance(text, str) else "",
    )


def _get_room_list(data: Dict[str, Any]) -> GetRoomList:
    return GetRoomList()


_PARSERS = {
    IDENTIFY: _identify,
    JOIN: _join,
    LEAVE: _leave,
    SEND_MESSAGE: _send_message,
    GET_ROOM_LIST: _get_room_list,
}


def parse_event(frame: Union[str, bytes, Dict[str, Any]]) -> Event:
    """
    Parse an inbound frame into an event.

    Args:
        frame: Raw JSON text (or an already decoded dict)

    Returns:
        The event variant for the frame's type

    Raises:
        MalformedFrame: If the frame is not JSON, not an object, or names
            an unknown event type
    """
    if isinstance(frame, (str, bytes)):
        try:
            frame = json.loads(frame)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MalformedFrame(f"Invalid JSON: {e}") from e

    if not isinstance(frame, dict):
        raise MalformedFrame("Frame must be a JSON object")

    event_type = frame.get("type")
    parser = _PARSERS.get(event_type)
    if parser is None:
        raise MalformedFrame(f"Unknown event type: {event_type}")

    data = frame.get("data")
    if not isinstance(data, dict):
        data = {}

    return parser(data)
