# videocall/routing.py

from django.conf import settings
from django.urls import re_path

from . import consumers
from .registry import RoomRegistry

# Rooms for this process. Handed to every consumer instance; nothing else mutates it.
registry = RoomRegistry(max_messages=getattr(settings, "VIDEOCALL_MAX_CHAT_MESSAGES", None))


def build_websocket_urlpatterns(room_registry):
    return [
        # ── WebRTC signalling + chat for consultation rooms ───────────────────
        re_path(r"ws/videocall/$", consumers.SignalingConsumer.as_asgi(registry=room_registry)),
    ]


websocket_urlpatterns = build_websocket_urlpatterns(registry)
