"""
videocall/registry.py

In-memory state behind the signaling consumer:

  rooms        { room_id: Room }                 - who is in which call + chat so far
  connections  { connection_id: Connection }     - live sockets, and the user each is bound to

Rooms are created on the first join and dropped the moment their last
participant leaves; nothing here is persisted. All mutation happens between
awaits on the event loop, so one registry must not be shared across threads.
"""

from collections import OrderedDict
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional


@dataclass
class Participant:
    user_id: str
    user_name: str
    role: str
    connection_id: str

    def to_wire(self):
        return {
            "userId"      : self.user_id,
            "userName"    : self.user_name,
            "role"        : self.role,
            "connectionId": self.connection_id,
        }


@dataclass
class ChatMessage:
    user_name: str
    message: str
    timestamp: object = None

    def to_wire(self):
        return {"userName": self.user_name, "message": self.message, "timestamp": self.timestamp}


@dataclass
class Room:
    room_id: str
    participants: List[Participant] = field(default_factory=list)
    messages: List[ChatMessage] = field(default_factory=list)
    start_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class Connection:
    connection_id: str
    channel_name: str
    user_id: Optional[str] = None


class RoomRegistry:

    def __init__(self, max_messages: Optional[int] = None):
        self.max_messages = max_messages
        self.rooms: Dict[str, Room] = OrderedDict()
        self.connections: Dict[str, Connection] = {}

    # ── rooms ────────────────────────────────────────────────────────────────

    def ensure_room(self, room_id: str) -> Room:
        room = self.rooms.get(room_id)
        if room is None:
            room = self.rooms[room_id] = Room(room_id=room_id)
        return room

    def get_room(self, room_id: str) -> Optional[Room]:
        return self.rooms.get(room_id)

    def add_participant(self, room_id: str, participant: Participant) -> Room:
        # Same user in two tabs = two participants, one per connection.
        room = self.ensure_room(room_id)
        room.participants.append(participant)
        return room

    def remove_participant(self, room_id: str, connection_id: str) -> Optional[Participant]:
        """
        Drop every entry on `connection_id`. Returns the first one, or None if
        the connection was not in the room. An emptied room is deleted
        together with its chat.
        """
        room = self.rooms.get(room_id)
        if room is None:
            return None

        matches = [p for p in room.participants if p.connection_id == connection_id]
        room.participants = [p for p in room.participants if p.connection_id != connection_id]

        if not room.participants:
            del self.rooms[room_id]
        return matches[0] if matches else None

    def append_message(self, room_id: str, message: ChatMessage) -> bool:
        """Best effort: a message for a room that is already gone is dropped."""
        room = self.rooms.get(room_id)
        if room is None:
            return False
        room.messages.append(message)
        if self.max_messages and len(room.messages) > self.max_messages:
            del room.messages[: len(room.messages) - self.max_messages]
        return True

    def rooms_for_connection(self, connection_id: str) -> List[str]:
        return [
            room_id for room_id, room in self.rooms.items()
            if any(p.connection_id == connection_id for p in room.participants)
        ]

    # ── connections ──────────────────────────────────────────────────────────

    def register_connection(self, connection_id: str, channel_name: str) -> Connection:
        connection = self.connections[connection_id] = Connection(connection_id, channel_name)
        return connection

    def identify(self, connection_id: str, user_id: str) -> None:
        connection = self.connections.get(connection_id)
        if connection is not None:
            connection.user_id = user_id

    def channel_for(self, connection_id: str) -> Optional[str]:
        connection = self.connections.get(connection_id)
        return connection.channel_name if connection else None

    def user_for(self, connection_id: str) -> Optional[str]:
        connection = self.connections.get(connection_id)
        return connection.user_id if connection else None

    def connections_for_user(self, user_id: str) -> List[str]:
        return [c.connection_id for c in self.connections.values() if c.user_id == user_id]

    def drop_connection(self, connection_id: str) -> None:
        self.connections.pop(connection_id, None)

    # ── reporting ────────────────────────────────────────────────────────────

    def stats(self):
        return {
            "connections"      : len(self.connections),
            "identified_users" : len({c.user_id for c in self.connections.values() if c.user_id}),
            "active_rooms"     : len(self.rooms),
            "participants"     : sum(len(r.participants) for r in self.rooms.values()),
        }

    def snapshot(self, room_id: str):
        room = self.rooms.get(room_id)
        if room is None:
            return None
        return {
            "room_id"     : room.room_id,
            "start_time"  : room.start_time.isoformat(),
            "participants": [asdict(p) for p in room.participants],
            "message_count": len(room.messages),
        }
