"""
videocall/consumers.py

SignalingConsumer - WebRTC signalling, in-room chat and call-control relay.

One instance per WebSocket. Frames are JSON in both directions:

    { "event": "<name>", "data": { ... } }

Client → server events (see EVENT_HANDLERS):
    user:join          { userId, userName, role }
    room:join          { roomId, userId, userName, role }
    room:leave         { roomId, userId }
    call:initiate      { to, signal, from }
    call:accept        { to, signal }
    chat:message       { roomId, message, userName, timestamp }
    screen:start       { roomId, userName }        screen:stop       { roomId }
    call:mute          { roomId, isMuted }         call:video-toggle { roomId, isVideoOff }
    recording:start    { roomId, userName }        recording:stop    { roomId }

Server → client events:
    connection:ready   { connectionId }                       on accept
    room:state         { participants, messages }             to the joiner
    user:joined        { userId, userName, role, connectionId }
    user:left          { connectionId, userId }
    call:incoming      { signal, from }     call:accepted { signal }
    call:unreachable   { to }                                 target socket is gone
    chat:message       { userName, message, timestamp }
    screen:started / screen:stopped / user:muted / user:video-toggled
    recording:started / recording:stopped

SDP offers/answers and ICE candidates are forwarded untouched. A malformed
frame is logged and dropped; it never closes the socket.
"""

import json
import logging
import re
import uuid
from datetime import datetime, timezone

from channels.generic.websocket import AsyncWebsocketConsumer

from .registry import ChatMessage, Participant

logger = logging.getLogger(__name__)

# Room and user ids end up in channel-layer group names.
_GROUP_SAFE_ID = re.compile(r"^[A-Za-z0-9_.\-]{1,80}$")


def room_group(room_id):
    return f"videocall.room.{room_id}"


def user_group(user_id):
    return f"videocall.user.{user_id}"


def is_group_safe(value):
    return bool(_GROUP_SAFE_ID.match(value or ""))


class ProtocolNoise(ValueError):
    """Inbound frame that cannot be acted on."""


class SignalingConsumer(AsyncWebsocketConsumer):

    EVENT_HANDLERS = {
        "user:join"        : "on_user_join",
        "room:join"        : "on_room_join",
        "room:leave"       : "on_room_leave",
        "call:initiate"    : "on_call_initiate",
        "call:accept"      : "on_call_accept",
        "chat:message"     : "on_chat_message",
        "screen:start"     : "on_screen_start",
        "screen:stop"      : "on_screen_stop",
        "call:mute"        : "on_call_mute",
        "call:video-toggle": "on_video_toggle",
        "recording:start"  : "on_recording_start",
        "recording:stop"   : "on_recording_stop",
    }

    def __init__(self, *args, registry=None, **kwargs):
        super().__init__(*args, **kwargs)
        if registry is None:
            raise ValueError("SignalingConsumer needs a RoomRegistry (as_asgi(registry=...))")
        self.registry = registry

    # ── lifecycle ────────────────────────────────────────────────────────────

    async def connect(self):
        self.connection_id = uuid.uuid4().hex[:12]
        self.user_id       = None
        self.user_name     = None
        self.role          = None
        self.room_ids      = set()
        self.user_groups   = set()

        self.registry.register_connection(self.connection_id, self.channel_name)
        await self.accept()
        await self.emit("connection:ready", {"connectionId": self.connection_id})
        logger.info("✅ [Call] connection=%s accepted", self.connection_id)

    async def disconnect(self, close_code):
        for room_id in self.registry.rooms_for_connection(self.connection_id):
            await self._leave_room(room_id)

        for room_id in list(self.room_ids):
            await self.channel_layer.group_discard(room_group(room_id), self.channel_name)
        self.room_ids.clear()

        for group in self.user_groups:
            await self.channel_layer.group_discard(group, self.channel_name)
        self.user_groups.clear()

        self.registry.drop_connection(self.connection_id)
        logger.info(
            "❌ [Call] connection=%s user=%s disconnected  code=%s",
            self.connection_id, self.user_id, close_code,
        )

    async def receive(self, text_data=None, bytes_data=None):
        if text_data is None:
            logger.warning("⚠️  [Call] connection=%s sent a binary frame, dropped", self.connection_id)
            return

        try:
            frame = json.loads(text_data)
        except json.JSONDecodeError:
            logger.warning("⚠️  [Call] connection=%s sent invalid JSON, dropped", self.connection_id)
            return

        event = frame.get("event") if isinstance(frame, dict) else None
        data  = frame.get("data") if isinstance(frame, dict) else None
        if data is None:
            data = {}

        handler_name = self.EVENT_HANDLERS.get(event)
        if handler_name is None or not isinstance(data, dict):
            logger.warning("⚠️  [Call] connection=%s unknown or malformed event %r, dropped",
                           self.connection_id, event)
            return

        try:
            await getattr(self, handler_name)(data)
        except ProtocolNoise as exc:
            logger.warning("⚠️  [Call] connection=%s %s dropped: %s", self.connection_id, event, exc)
        except Exception:
            logger.exception("❌ [Call] connection=%s %s handler failed", self.connection_id, event)

    # ── identity / membership ────────────────────────────────────────────────

    async def on_user_join(self, data):
        user_id = self._require(data, "userId")

        for group in self.user_groups:
            await self.channel_layer.group_discard(group, self.channel_name)
        self.user_groups.clear()

        self.user_id   = user_id
        self.user_name = data.get("userName") or self.user_name
        self.role      = data.get("role") or self.role
        self.registry.identify(self.connection_id, user_id)

        if is_group_safe(user_id):
            group = user_group(user_id)
            await self.channel_layer.group_add(group, self.channel_name)
            self.user_groups.add(group)

        logger.info("👤 [Call] %s (%s) bound to connection=%s", self.user_name, self.role, self.connection_id)

    async def on_room_join(self, data):
        room_id = self._room_id(data)
        user_id = str(data.get("userId") or self.user_id or "")
        if not user_id:
            raise ProtocolNoise("room:join without userId")

        # In the group before the snapshot, so no chat can fall between the two.
        await self.channel_layer.group_add(room_group(room_id), self.channel_name)
        self.room_ids.add(room_id)

        participant = Participant(
            user_id=user_id,
            user_name=data.get("userName") or self.user_name or "Participant",
            role=data.get("role") or self.role or "participant",
            connection_id=self.connection_id,
        )
        self.user_id   = self.user_id or user_id
        self.user_name = self.user_name or participant.user_name

        room = self.registry.add_participant(room_id, participant)
        others   = [p.to_wire() for p in room.participants if p.connection_id != self.connection_id]
        messages = [m.to_wire() for m in room.messages]

        await self._broadcast(room_id, "user:joined", participant.to_wire(), exclude_self=True)
        await self.emit("room:state", {"participants": others, "messages": messages})
        logger.info(
            "📋 [Call] %s (%s) joined room=%s  participants=%d",
            participant.user_name, participant.role, room_id, len(room.participants),
        )

    async def on_room_leave(self, data):
        room_id = self._room_id(data)
        await self._leave_room(room_id, data.get("userId"))

    async def _leave_room(self, room_id, user_id=None):
        participant = self.registry.remove_participant(room_id, self.connection_id)

        await self.channel_layer.group_discard(room_group(room_id), self.channel_name)
        self.room_ids.discard(room_id)

        if participant is None:
            return

        await self._broadcast(
            room_id, "user:left",
            {"connectionId": self.connection_id, "userId": user_id or participant.user_id},
            exclude_self=True,
        )
        if self.registry.get_room(room_id) is None:
            logger.info("🚪 [Call] room=%s closed", room_id)

    # ── WebRTC signalling (point to point) ───────────────────────────────────

    async def on_call_initiate(self, data):
        to = self._require(data, "to")
        await self._send_to_connection(
            to, "call:incoming",
            {"signal": data.get("signal"), "from": data.get("from", self.connection_id)},
        )

    async def on_call_accept(self, data):
        to = self._require(data, "to")
        await self._send_to_connection(to, "call:accepted", {"signal": data.get("signal")})

    # ── chat ─────────────────────────────────────────────────────────────────

    async def on_chat_message(self, data):
        room_id = self._room_id(data)
        if "message" not in data:
            raise ProtocolNoise("chat:message without message")

        chat = ChatMessage(
            user_name=data.get("userName") or self.user_name,
            message=data["message"],
            timestamp=data.get("timestamp") or datetime.now(timezone.utc).isoformat(),
        )
        if not self.registry.append_message(room_id, chat):
            logger.info("💬 [Call] chat for closed room=%s dropped", room_id)
            return
        await self._broadcast(room_id, "chat:message", chat.to_wire())

    # ── call controls ────────────────────────────────────────────────────────

    async def on_screen_start(self, data):
        await self._broadcast(
            self._room_id(data), "screen:started",
            {"userName": data.get("userName") or self.user_name, "connectionId": self.connection_id},
            exclude_self=True,
        )

    async def on_screen_stop(self, data):
        await self._broadcast(
            self._room_id(data), "screen:stopped",
            {"connectionId": self.connection_id},
            exclude_self=True,
        )

    async def on_call_mute(self, data):
        await self._broadcast(
            self._room_id(data), "user:muted",
            {"connectionId": self.connection_id, "isMuted": bool(data.get("isMuted"))},
            exclude_self=True,
        )

    async def on_video_toggle(self, data):
        await self._broadcast(
            self._room_id(data), "user:video-toggled",
            {"connectionId": self.connection_id, "isVideoOff": bool(data.get("isVideoOff"))},
            exclude_self=True,
        )

    async def on_recording_start(self, data):
        await self._broadcast(
            self._room_id(data), "recording:started",
            {"userName": data.get("userName") or self.user_name},
        )

    async def on_recording_stop(self, data):
        await self._broadcast(self._room_id(data), "recording:stopped", {})

    # ── channel layer plumbing ───────────────────────────────────────────────

    async def relay_message(self, event):
        if event.get("exclude") and self.channel_name == event["exclude"]:
            return
        await self.emit(event["event"], event["data"])

    async def emit(self, event, data):
        await self.send(text_data=json.dumps({"event": event, "data": data}))

    async def _broadcast(self, room_id, event, data, exclude_self=False):
        await self.channel_layer.group_send(
            room_group(room_id),
            {
                "type"   : "relay.message",
                "event"  : event,
                "data"   : data,
                "exclude": self.channel_name if exclude_self else None,
            },
        )

    async def _send_to_connection(self, connection_id, event, data):
        target = self.registry.channel_for(str(connection_id))
        if target is None:
            logger.info("📭 [Call] %s from connection=%s to unknown connection=%s",
                        event, self.connection_id, connection_id)
            await self.emit("call:unreachable", {"to": connection_id})
            return
        await self.channel_layer.send(
            target,
            {"type": "relay.message", "event": event, "data": data, "exclude": None},
        )

    # ── validation ───────────────────────────────────────────────────────────

    @staticmethod
    def _require(data, key):
        value = data.get(key)
        if value is None or value == "":
            raise ProtocolNoise(f"missing {key}")
        return str(value)

    def _room_id(self, data):
        room_id = self._require(data, "roomId")
        if not is_group_safe(room_id):
            raise ProtocolNoise(f"invalid roomId {room_id!r}")
        return room_id
