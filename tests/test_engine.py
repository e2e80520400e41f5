"""
Tests for the Coordination Engine

Tests for every event handler, the membership and room-lifecycle
invariants, and the end-to-end alice/bob scenario, driven directly through
dispatch() without a transport.
"""

import random
from datetime import datetime, timedelta, timezone

import pytest

from chat_server import CoordinationEngine, CoordinatorState, InvariantViolation
from chat_server.room_store import SYSTEM_AUTHOR
from chat_server.schemas import (
    Disconnect,
    GetRoomList,
    Identify,
    Join,
    Leave,
    SendMessage,
)
from chat_server.utils import ValidationLimits

T0 = datetime(2025, 1, 1, tzinfo=timezone.utc)


class FakeClock:
    """Clock advancing one second per reading, or replaying given times."""

    def __init__(self, times=None):
        self._times = list(times) if times else None
        self._now = T0

    def __call__(self):
        if self._times:
            return self._times.pop(0)
        self._now += timedelta(seconds=1)
        return self._now


def received(broadcasts, connection_id, event=None):
    """Payloads delivered to one connection, optionally of one type."""
    return [
        b.payload
        for b in broadcasts
        if connection_id in b.recipients and (event is None or b.event == event)
    ]


def event_types(broadcasts, connection_id):
    return [b.event for b in broadcasts if connection_id in b.recipients]


@pytest.fixture
def engine():
    return CoordinationEngine(clock=FakeClock(), check_invariants=True)


def identify(engine, cid, name):
    return engine.dispatch(cid, Identify(name=name))


def join(engine, cid, room):
    return engine.dispatch(cid, Join(room=room))


def leave(engine, cid, room):
    return engine.dispatch(cid, Leave(room=room))


def send(engine, cid, room, text):
    return engine.dispatch(cid, SendMessage(room=room, text=text))


def disconnect(engine, cid):
    return engine.dispatch(cid, Disconnect())


# identify


def test_identify_sends_empty_room_list(engine):
    broadcasts = identify(engine, "c1", "alice")

    assert len(broadcasts) == 1
    assert broadcasts[0].event == "roomList"
    assert broadcasts[0].recipients == ("c1",)
    assert broadcasts[0].payload == {"rooms": []}
    assert engine.sessions.display_name("c1") == "alice"


def test_identify_blank_name_is_ignored(engine):
    assert identify(engine, "c1", "   ") == []
    assert "c1" not in engine.sessions


def test_identify_respects_name_limit():
    engine = CoordinationEngine(limits=ValidationLimits(max_name_length=3))
    assert identify(engine, "c1", "alice") == []
    assert identify(engine, "c1", "bob") != []


def test_identify_limit_applies_to_trimmed_name():
    engine = CoordinationEngine(limits=ValidationLimits(max_name_length=3))

    assert identify(engine, "c1", "  bob  ") != []
    assert engine.sessions.display_name("c1") == "bob"


def test_rename_updates_member_lists(engine):
    identify(engine, "c1", "alice")
    identify(engine, "c2", "bob")
    join(engine, "c1", "general")
    join(engine, "c2", "general")

    broadcasts = identify(engine, "c1", "alicia")

    members = received(broadcasts, "c2", "roomMembers")
    assert members == [{"room": "general", "members": ["alicia", "bob"]}]
    assert engine.sessions.rooms_of("c1") == {"general"}


# join


def test_join_before_identify_is_ignored(engine):
    assert join(engine, "c1", "general") == []
    assert "general" not in engine.rooms


def test_join_blank_room_is_ignored(engine):
    identify(engine, "c1", "alice")
    assert join(engine, "c1", "  ") == []
    assert len(engine.rooms) == 0


def test_room_names_are_trimmed(engine):
    identify(engine, "c1", "alice")
    identify(engine, "c2", "bob")
    join(engine, "c1", "general")

    broadcasts = join(engine, "c2", " general ")

    assert engine.rooms.names() == ["general"]
    assert received(broadcasts, "c2", "roomMembers") == [
        {"room": "general", "members": ["alice", "bob"]}
    ]

    messages = received(send(engine, "c2", "general  ", "hi"), "c1", "message")
    assert messages[0]["room"] == "general"

    leave(engine, "c2", "  general")
    assert engine.sessions.rooms_of("c2") == set()
    assert engine.rooms.get("general").member_count == 1


def test_first_join_creates_room(engine):
    identify(engine, "c1", "alice")

    broadcasts = join(engine, "c1", "general")

    assert event_types(broadcasts, "c1") == [
        "roomHistory",
        "message",
        "roomList",
        "roomMembers",
    ]
    assert received(broadcasts, "c1", "roomHistory") == [
        {"room": "general", "messages": []}
    ]
    notice = received(broadcasts, "c1", "message")[0]
    assert notice["author"] == SYSTEM_AUTHOR
    assert notice["text"] == "alice has joined the room!"
    assert notice["room"] == "general"
    assert received(broadcasts, "c1", "roomList") == [
        {
            "rooms": [
                {"name": "general", "memberCount": 1, "lastMessage": notice}
            ]
        }
    ]
    assert received(broadcasts, "c1", "roomMembers") == [
        {"room": "general", "members": ["alice"]}
    ]
    assert engine.rooms.get("general").member_count == 1
    assert engine.sessions.rooms_of("c1") == {"general"}


def test_second_join_notifies_existing_members(engine):
    identify(engine, "c1", "alice")
    identify(engine, "c2", "bob")
    join(engine, "c1", "general")

    broadcasts = join(engine, "c2", "general")

    # Existing member sees the notice and the new member list
    assert event_types(broadcasts, "c1") == ["message", "roomMembers"]
    assert received(broadcasts, "c1", "message")[0]["text"] == (
        "bob has joined the room!"
    )
    assert received(broadcasts, "c1", "roomMembers") == [
        {"room": "general", "members": ["alice", "bob"]}
    ]

    # Joiner gets the history from before its own notice
    history = received(broadcasts, "c2", "roomHistory")[0]
    assert [m["text"] for m in history["messages"]] == [
        "alice has joined the room!"
    ]


def test_join_is_idempotent(engine):
    identify(engine, "c1", "alice")
    join(engine, "c1", "general")

    broadcasts = join(engine, "c1", "general")

    assert event_types(broadcasts, "c1") == ["roomList", "roomMembers"]
    room = engine.rooms.get("general")
    assert room.member_count == 1
    notices = [m for m in room.messages if m.text == "alice has joined the room!"]
    assert len(notices) == 1


def test_join_multiple_rooms(engine):
    identify(engine, "c1", "alice")
    join(engine, "c1", "b")

    broadcasts = join(engine, "c1", "a")

    room_list = received(broadcasts, "c1", "roomList")[0]
    assert [r["name"] for r in room_list["rooms"]] == ["a", "b"]
    assert engine.sessions.rooms_of("c1") == {"a", "b"}


# leave


def test_leave_notifies_remaining_members(engine):
    identify(engine, "c1", "alice")
    identify(engine, "c2", "bob")
    join(engine, "c1", "general")
    join(engine, "c2", "general")

    broadcasts = leave(engine, "c2", "general")

    assert event_types(broadcasts, "c1") == ["message", "roomMembers"]
    notice = received(broadcasts, "c1", "message")[0]
    assert notice["author"] == SYSTEM_AUTHOR
    assert notice["text"] == "bob has left the room."
    assert received(broadcasts, "c1", "roomMembers") == [
        {"room": "general", "members": ["alice"]}
    ]

    assert event_types(broadcasts, "c2") == ["roomList"]
    assert received(broadcasts, "c2", "roomList") == [{"rooms": []}]
    assert engine.sessions.rooms_of("c2") == set()
    assert not engine.rooms.is_member("general", "c2")


def test_leave_notice_is_kept_in_history(engine):
    identify(engine, "c1", "alice")
    identify(engine, "c2", "bob")
    join(engine, "c1", "general")
    join(engine, "c2", "general")
    leave(engine, "c2", "general")

    texts = [m.text for m in engine.rooms.get("general").messages]
    assert texts[-1] == "bob has left the room."


def test_last_leave_deletes_room(engine):
    identify(engine, "c1", "alice")
    join(engine, "c1", "general")
    send(engine, "c1", "general", "hello")

    broadcasts = leave(engine, "c1", "general")

    assert "general" not in engine.rooms
    assert event_types(broadcasts, "c1") == ["roomList"]


def test_rejoin_after_deletion_starts_fresh(engine):
    identify(engine, "c1", "alice")
    join(engine, "c1", "general")
    send(engine, "c1", "general", "hello")
    leave(engine, "c1", "general")

    broadcasts = join(engine, "c1", "general")

    assert received(broadcasts, "c1", "roomHistory") == [
        {"room": "general", "messages": []}
    ]
    assert len(engine.rooms.get("general").messages) == 1


def test_leave_room_not_joined_is_ignored(engine):
    identify(engine, "c1", "alice")
    identify(engine, "c2", "bob")
    join(engine, "c1", "general")

    assert leave(engine, "c2", "general") == []
    assert leave(engine, "c2", "nowhere") == []
    assert leave(engine, "ghost", "general") == []
    assert engine.rooms.get("general").member_count == 1


# sendMessage


def test_send_message_reaches_all_members(engine):
    identify(engine, "c1", "alice")
    identify(engine, "c2", "bob")
    join(engine, "c1", "general")
    join(engine, "c2", "general")

    broadcasts = send(engine, "c1", "general", "hi")

    assert len(broadcasts) == 1
    broadcast = broadcasts[0]
    assert broadcast.event == "message"
    assert broadcast.room == "general"
    assert set(broadcast.recipients) == {"c1", "c2"}
    assert broadcast.payload["author"] == "alice"
    assert broadcast.payload["text"] == "hi"
    assert broadcast.payload["room"] == "general"


def test_send_message_not_member_is_ignored(engine):
    identify(engine, "c1", "alice")
    identify(engine, "c2", "bob")
    join(engine, "c1", "general")

    assert send(engine, "c2", "general", "let me in") == []
    assert send(engine, "c2", "nowhere", "hello?") == []
    assert "nowhere" not in engine.rooms
    assert len(engine.rooms.get("general").messages) == 1


def test_send_message_before_identify_is_ignored(engine):
    assert send(engine, "c1", "general", "hi") == []


@pytest.mark.parametrize("text", ["", "   ", "\n"])
def test_send_blank_message_is_ignored(engine, text):
    identify(engine, "c1", "alice")
    join(engine, "c1", "general")

    assert send(engine, "c1", "general", text) == []
    assert len(engine.rooms.get("general").messages) == 1


def test_send_message_length_limit():
    engine = CoordinationEngine(limits=ValidationLimits(max_message_length=5))
    identify(engine, "c1", "alice")
    join(engine, "c1", "general")

    assert send(engine, "c1", "general", "too long") == []
    assert send(engine, "c1", "general", "short") != []


def test_history_is_complete_and_ordered(engine):
    identify(engine, "c1", "alice")
    join(engine, "c1", "general")
    for i in range(5):
        send(engine, "c1", "general", f"message {i}")

    identify(engine, "c2", "bob")
    broadcasts = join(engine, "c2", "general")

    history = received(broadcasts, "c2", "roomHistory")[0]["messages"]
    user_texts = [m["text"] for m in history if m["author"] == "alice"]
    assert user_texts == [f"message {i}" for i in range(5)]
    timestamps = [m["timestamp"] for m in history]
    assert timestamps == sorted(timestamps)


def test_timestamps_never_go_backwards():
    times = [
        T0 + timedelta(seconds=10),
        T0 + timedelta(seconds=5),
        T0 + timedelta(seconds=20),
    ]
    engine = CoordinationEngine(clock=FakeClock(times), check_invariants=True)
    identify(engine, "c1", "alice")
    join(engine, "c1", "general")
    send(engine, "c1", "general", "clock went back")
    send(engine, "c1", "general", "clock recovered")

    stamps = [m.timestamp for m in engine.rooms.get("general").messages]
    assert stamps == [times[0], times[0], times[2]]


# getRoomList


def test_get_room_list(engine):
    identify(engine, "c1", "alice")
    identify(engine, "c2", "bob")
    join(engine, "c1", "a")
    join(engine, "c2", "a")
    join(engine, "c1", "b")
    send(engine, "c2", "a", "latest")

    broadcasts = engine.dispatch("c1", GetRoomList())

    assert len(broadcasts) == 1
    rooms = broadcasts[0].payload["rooms"]
    assert [(r["name"], r["memberCount"]) for r in rooms] == [("a", 2), ("b", 1)]
    assert rooms[0]["lastMessage"]["text"] == "latest"
    assert rooms[1]["lastMessage"]["text"] == "alice has joined the room!"


def test_get_room_list_before_identify_is_empty(engine):
    broadcasts = engine.dispatch("c1", GetRoomList())
    assert received(broadcasts, "c1", "roomList") == [{"rooms": []}]


# disconnect


def test_disconnect_leaves_every_room(engine):
    identify(engine, "c1", "alice")
    identify(engine, "c2", "bob")
    for room in ["A", "B"]:
        join(engine, "c1", room)
        join(engine, "c2", room)

    broadcasts = disconnect(engine, "c2")

    notices = received(broadcasts, "c1", "message")
    assert sorted((n["room"], n["text"]) for n in notices) == [
        ("A", "bob has left the room."),
        ("B", "bob has left the room."),
    ]
    assert received(broadcasts, "c2") == []
    for room in ["A", "B"]:
        assert not engine.rooms.is_member(room, "c2")
        assert engine.rooms.get(room).member_count == 1
    assert "c2" not in engine.sessions


def test_disconnect_removes_emptied_rooms(engine):
    identify(engine, "c1", "alice")
    join(engine, "c1", "A")
    join(engine, "c1", "B")

    broadcasts = disconnect(engine, "c1")

    assert broadcasts == []
    assert "A" not in engine.rooms
    assert "B" not in engine.rooms
    assert len(engine.sessions) == 0


def test_disconnect_unidentified_connection(engine):
    assert disconnect(engine, "ghost") == []


# dispatch and invariants


def test_unknown_event_type_raises(engine):
    with pytest.raises(TypeError):
        engine.dispatch("c1", object())


def test_check_invariants_detects_one_sided_membership():
    state = CoordinatorState()
    state.sessions.set_identity("c1", "alice")
    state.sessions.record_join("c1", "general")

    with pytest.raises(InvariantViolation):
        state.check_invariants()


def test_check_invariants_detects_empty_room():
    state = CoordinatorState()
    state.rooms.ensure_room("general")

    with pytest.raises(InvariantViolation):
        state.check_invariants()


def test_engines_do_not_share_state():
    first = CoordinationEngine()
    second = CoordinationEngine()
    identify(first, "c1", "alice")
    join(first, "c1", "general")

    assert "general" not in second.rooms
    assert "c1" not in second.sessions


def assert_membership_symmetry(engine, connection_ids, room_names):
    for cid in connection_ids:
        for room in room_names:
            in_room = engine.rooms.is_member(room, cid)
            in_session = room in engine.sessions.rooms_of(cid)
            assert in_room == in_session, (cid, room)
    for room in engine.rooms.names():
        assert engine.rooms.get(room).member_count > 0


@pytest.mark.parametrize("seed", range(5))
def test_random_event_sequences_keep_invariants(seed):
    rng = random.Random(seed)
    engine = CoordinationEngine(clock=FakeClock(), check_invariants=True)
    connection_ids = [f"c{i}" for i in range(4)]
    room_names = ["a", "b", "c"]

    for _ in range(300):
        cid = rng.choice(connection_ids)
        room = rng.choice(room_names)
        event = rng.choice(
            [
                Identify(name=f"user-{cid}"),
                Join(room=room),
                Join(room=room),
                Leave(room=room),
                SendMessage(room=room, text="hello"),
                GetRoomList(),
                Disconnect(),
            ]
        )
        engine.dispatch(cid, event)
        assert_membership_symmetry(engine, connection_ids, room_names)


# End-to-end scenario


def test_alice_and_bob_scenario(engine):
    identify(engine, "X", "alice")
    broadcasts = join(engine, "X", "general")
    assert received(broadcasts, "X", "roomHistory") == [
        {"room": "general", "messages": []}
    ]
    assert engine.rooms.get("general").member_count == 1
    notice = received(broadcasts, "X", "message")[0]
    assert (notice["author"], notice["text"], notice["room"]) == (
        "admin",
        "alice has joined the room!",
        "general",
    )

    identify(engine, "Y", "bob")
    broadcasts = join(engine, "Y", "general")
    assert engine.rooms.get("general").member_count == 2
    for cid in ["X", "Y"]:
        texts = [m["text"] for m in received(broadcasts, cid, "message")]
        assert texts == ["bob has joined the room!"]

    broadcasts = send(engine, "X", "general", "hi")
    for cid in ["X", "Y"]:
        message = received(broadcasts, cid, "message")[0]
        assert (message["author"], message["text"], message["room"]) == (
            "alice",
            "hi",
            "general",
        )

    broadcasts = disconnect(engine, "Y")
    assert [m["text"] for m in received(broadcasts, "X", "message")] == [
        "bob has left the room."
    ]
    members = received(broadcasts, "X", "roomMembers")[0]["members"]
    assert members == ["alice"]
    assert "general" in engine.rooms

    leave(engine, "X", "general")
    assert "general" not in engine.rooms
