import pytest
import pytest_asyncio
from channels.layers import get_channel_layer
from channels.routing import URLRouter
from channels.testing import WebsocketCommunicator

from videocall.consumers import room_group
from videocall.notifications import send_to_user
from videocall.registry import RoomRegistry
from videocall.routing import build_websocket_urlpatterns

pytestmark = pytest.mark.asyncio


@pytest_asyncio.fixture(autouse=True)
async def fresh_channel_layer():
    layer = get_channel_layer()
    await layer.flush()
    yield
    await layer.flush()


@pytest.fixture
def registry():
    return RoomRegistry()


@pytest.fixture
def app(registry):
    return URLRouter(build_websocket_urlpatterns(registry))


async def open_socket(app):
    communicator = WebsocketCommunicator(app, "/ws/videocall/")
    connected, _ = await communicator.connect()
    assert connected
    ready = await communicator.receive_json_from()
    assert ready["event"] == "connection:ready"
    return communicator, ready["data"]["connectionId"]


async def join(communicator, room_id, user_id, user_name, role="patient"):
    await communicator.send_json_to({
        "event": "room:join",
        "data" : {"roomId": room_id, "userId": user_id, "userName": user_name, "role": role},
    })
    state = await communicator.receive_json_from()
    assert state["event"] == "room:state"
    return state["data"]


async def pair(app, room_id="appointment-1"):
    """Doctor and patient in the same room, with the join announcement consumed."""
    doctor, doctor_conn = await open_socket(app)
    await join(doctor, room_id, "d1", "Dr. Smith", role="doctor")
    patient, patient_conn = await open_socket(app)
    await join(patient, room_id, "p1", "Alice")
    joined = await doctor.receive_json_from()
    assert joined["event"] == "user:joined"
    return (doctor, doctor_conn), (patient, patient_conn)


# =============================================================================
# CONNECTION & ROOM MEMBERSHIP
# =============================================================================

async def test_connection_gets_an_id(app, registry):
    communicator, connection_id = await open_socket(app)
    assert len(connection_id) == 12
    assert registry.channel_for(connection_id) is not None
    await communicator.disconnect()
    assert registry.channel_for(connection_id) is None


async def test_join_returns_existing_participants_and_announces_newcomer(app, registry):
    doctor, doctor_conn = await open_socket(app)
    first_state = await join(doctor, "appointment-1", "d1", "Dr. Smith", role="doctor")
    assert first_state == {"participants": [], "messages": []}

    patient, patient_conn = await open_socket(app)
    state = await join(patient, "appointment-1", "p1", "Alice")
    assert state["participants"] == [
        {"userId": "d1", "userName": "Dr. Smith", "role": "doctor", "connectionId": doctor_conn},
    ]

    joined = await doctor.receive_json_from()
    assert joined == {
        "event": "user:joined",
        "data" : {"userId": "p1", "userName": "Alice", "role": "patient", "connectionId": patient_conn},
    }
    assert await patient.receive_nothing()
    assert registry.stats()["participants"] == 2

    await doctor.disconnect()
    await patient.disconnect()


async def test_explicit_leave_notifies_the_rest(app, registry):
    (doctor, _), (patient, patient_conn) = await pair(app)

    await patient.send_json_to({"event": "room:leave", "data": {"roomId": "appointment-1", "userId": "p1"}})
    left = await doctor.receive_json_from()
    assert left == {"event": "user:left", "data": {"connectionId": patient_conn, "userId": "p1"}}
    assert len(registry.get_room("appointment-1").participants) == 1

    # No longer in the room's group.
    await doctor.send_json_to({
        "event": "chat:message",
        "data" : {"roomId": "appointment-1", "message": "still there?", "userName": "Dr. Smith"},
    })
    assert (await doctor.receive_json_from())["event"] == "chat:message"
    assert await patient.receive_nothing()

    await doctor.disconnect()
    await patient.disconnect()


async def test_disconnect_leaves_rooms_and_closes_empty_ones(app, registry):
    (doctor, doctor_conn), (patient, patient_conn) = await pair(app)

    await patient.disconnect()
    left = await doctor.receive_json_from()
    assert left == {"event": "user:left", "data": {"connectionId": patient_conn, "userId": "p1"}}
    assert registry.rooms_for_connection(patient_conn) == []

    await doctor.disconnect()
    assert registry.get_room("appointment-1") is None
    assert registry.stats() == {"connections": 0, "identified_users": 0, "active_rooms": 0, "participants": 0}


# =============================================================================
# SIGNALLING
# =============================================================================

async def test_offer_and_answer_are_relayed_untouched(app):
    (doctor, doctor_conn), (patient, patient_conn) = await pair(app)
    offer = {"type": "offer", "sdp": "v=0\r\no=- 46117 2 IN IP4 127.0.0.1\r\n"}

    await doctor.send_json_to({
        "event": "call:initiate",
        "data" : {"to": patient_conn, "signal": offer, "from": doctor_conn},
    })
    incoming = await patient.receive_json_from()
    assert incoming == {"event": "call:incoming", "data": {"signal": offer, "from": doctor_conn}}

    answer = {"type": "answer", "sdp": "v=0\r\n"}
    await patient.send_json_to({"event": "call:accept", "data": {"to": doctor_conn, "signal": answer}})
    accepted = await doctor.receive_json_from()
    assert accepted == {"event": "call:accepted", "data": {"signal": answer}}

    await doctor.disconnect()
    await patient.disconnect()


async def test_signal_to_unknown_connection_is_reported_back(app):
    communicator, _ = await open_socket(app)
    await communicator.send_json_to({"event": "call:initiate", "data": {"to": "deadbeef0000", "signal": {}}})
    reply = await communicator.receive_json_from()
    assert reply == {"event": "call:unreachable", "data": {"to": "deadbeef0000"}}
    await communicator.disconnect()


# =============================================================================
# CHAT
# =============================================================================

async def test_chat_reaches_everyone_in_order_and_is_replayed_to_latecomers(app):
    (doctor, _), (patient, _) = await pair(app)

    for text in ("hello", "how are you feeling?"):
        await doctor.send_json_to({
            "event": "chat:message",
            "data" : {"roomId": "appointment-1", "message": text, "userName": "Dr. Smith", "timestamp": text},
        })

    for communicator in (doctor, patient):
        received = [await communicator.receive_json_from() for _ in range(2)]
        assert [m["data"]["message"] for m in received] == ["hello", "how are you feeling?"]
        assert received[0] == {
            "event": "chat:message",
            "data" : {"userName": "Dr. Smith", "message": "hello", "timestamp": "hello"},
        }

    nurse, _ = await open_socket(app)
    state = await join(nurse, "appointment-1", "n1", "Nurse Joy", role="nurse")
    assert [m["message"] for m in state["messages"]] == ["hello", "how are you feeling?"]
    assert len(state["participants"]) == 2

    for communicator in (doctor, patient, nurse):
        await communicator.disconnect()


class GroupCheckingRegistry(RoomRegistry):
    """Notes whether the joiner already receives room broadcasts when the snapshot is taken."""

    def __init__(self):
        super().__init__()
        self.in_group_at_snapshot = []

    def add_participant(self, room_id, participant):
        members = get_channel_layer().groups.get(room_group(room_id), {})
        self.in_group_at_snapshot.append(self.channel_for(participant.connection_id) in members)
        return super().add_participant(room_id, participant)


async def test_joiner_subscribes_before_the_chat_snapshot():
    registry = GroupCheckingRegistry()
    app = URLRouter(build_websocket_urlpatterns(registry))

    (doctor, _), (patient, _) = await pair(app)
    assert registry.in_group_at_snapshot == [True, True]

    # A message sent right after the join is either in the snapshot or delivered live, never lost.
    await doctor.send_json_to({"event": "chat:message", "data": {"roomId": "appointment-1", "message": "hi"}})
    assert (await patient.receive_json_from())["data"]["message"] == "hi"

    for communicator in (doctor, patient):
        await communicator.disconnect()


async def test_chat_fills_in_missing_timestamp(app):
    communicator, _ = await open_socket(app)
    await join(communicator, "room-ts", "u1", "Alice")
    await communicator.send_json_to({"event": "chat:message", "data": {"roomId": "room-ts", "message": "hi"}})
    message = await communicator.receive_json_from()
    assert message["data"]["timestamp"]
    assert message["data"]["userName"] == "Alice"
    await communicator.disconnect()


async def test_chat_for_a_room_nobody_is_in_is_dropped(app, registry):
    communicator, _ = await open_socket(app)
    await communicator.send_json_to({"event": "chat:message", "data": {"roomId": "empty-room", "message": "hi"}})
    assert await communicator.receive_nothing()
    assert registry.get_room("empty-room") is None
    await communicator.disconnect()


async def test_rooms_do_not_leak_into_each_other(app):
    first, _ = await open_socket(app)
    await join(first, "room-a", "u1", "Alice")
    second, _ = await open_socket(app)
    await join(second, "room-b", "u2", "Bob")

    await first.send_json_to({"event": "chat:message", "data": {"roomId": "room-a", "message": "private"}})
    await first.send_json_to({"event": "call:mute", "data": {"roomId": "room-a", "isMuted": True}})
    assert (await first.receive_json_from())["event"] == "chat:message"
    assert await second.receive_nothing()

    await first.disconnect()
    await second.disconnect()


# =============================================================================
# CALL CONTROLS
# =============================================================================

@pytest.mark.parametrize("event, data, expected_event, expected_extra", [
    ("call:mute",         {"isMuted": True},      "user:muted",         {"isMuted": True}),
    ("call:video-toggle", {"isVideoOff": True},   "user:video-toggled", {"isVideoOff": True}),
    ("screen:start",      {"userName": "Alice"},  "screen:started",     {"userName": "Alice"}),
    ("screen:stop",       {},                     "screen:stopped",     {}),
])
async def test_media_state_goes_to_everyone_but_the_sender(app, event, data, expected_event, expected_extra):
    (doctor, _), (patient, patient_conn) = await pair(app)

    await patient.send_json_to({"event": event, "data": {"roomId": "appointment-1", **data}})
    received = await doctor.receive_json_from()
    assert received == {"event": expected_event, "data": {"connectionId": patient_conn, **expected_extra}}
    assert await patient.receive_nothing()

    await doctor.disconnect()
    await patient.disconnect()


async def test_recording_is_announced_to_the_whole_room(app):
    (doctor, _), (patient, _) = await pair(app)

    await doctor.send_json_to({"event": "recording:start", "data": {"roomId": "appointment-1", "userName": "Dr. Smith"}})
    for communicator in (doctor, patient):
        assert await communicator.receive_json_from() == {
            "event": "recording:started", "data": {"userName": "Dr. Smith"},
        }

    await doctor.send_json_to({"event": "recording:stop", "data": {"roomId": "appointment-1"}})
    for communicator in (doctor, patient):
        assert await communicator.receive_json_from() == {"event": "recording:stopped", "data": {}}

    await doctor.disconnect()
    await patient.disconnect()


# =============================================================================
# BAD INPUT
# =============================================================================

async def test_malformed_frames_are_dropped_without_closing_the_socket(app, registry):
    communicator, _ = await open_socket(app)

    await communicator.send_to(text_data="{not json")
    await communicator.send_to(bytes_data=b"\x00\x01")
    await communicator.send_json_to(["event", "room:join"])
    await communicator.send_json_to({"event": "no:such-event", "data": {}})
    await communicator.send_json_to({"event": "room:join", "data": "oops"})
    await communicator.send_json_to({"event": "room:join", "data": {"userId": "u1"}})
    await communicator.send_json_to({"event": "room:join", "data": {"roomId": "bad room!", "userId": "u1"}})
    await communicator.send_json_to({"event": "call:initiate", "data": {"signal": {}}})
    assert await communicator.receive_nothing()
    assert registry.stats()["active_rooms"] == 0

    state = await join(communicator, "appointment-7", "u1", "Alice")
    assert state == {"participants": [], "messages": []}
    await communicator.disconnect()


# =============================================================================
# PER-USER NOTIFICATIONS
# =============================================================================

async def test_notification_reaches_every_socket_of_the_user(app, registry):
    first_tab, first_conn = await open_socket(app)
    second_tab, _ = await open_socket(app)
    stranger, _ = await open_socket(app)
    for communicator, user_id in ((first_tab, "42"), (second_tab, "42"), (stranger, "7")):
        await communicator.send_json_to({"event": "user:join", "data": {"userId": user_id, "userName": "x"}})

    # user:join sends nothing back; make sure both were processed before notifying.
    await first_tab.receive_nothing()
    assert len(registry.connections_for_user("42")) == 2
    assert registry.user_for(first_conn) == "42"

    assert await send_to_user(42, "appointment:updated", {"appointmentId": 3, "status": "confirmed"})
    for communicator in (first_tab, second_tab):
        assert await communicator.receive_json_from() == {
            "event": "appointment:updated", "data": {"appointmentId": 3, "status": "confirmed"},
        }
    assert await stranger.receive_nothing()

    for communicator in (first_tab, second_tab, stranger):
        await communicator.disconnect()


async def test_notification_for_unusable_user_id_is_refused():
    assert await send_to_user("not a valid id", "appointment:updated", {}) is False
