# videocall/views.py

from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.permissions import IsAdmin

from .routing import registry


class HealthView(APIView):
    """GET /api/videocall/health/ - live connection and room counts for this process."""
    permission_classes = [AllowAny]

    def get(self, request):
        return Response({"status": "healthy", **registry.stats()})


class RoomDetailView(APIView):
    """GET /api/videocall/rooms/<room_id>/ - who is in a live room (admin only)."""
    permission_classes = [IsAdmin]

    def get(self, request, room_id):
        snapshot = registry.snapshot(room_id)
        if snapshot is None:
            return Response({"error": "Room not active"}, status=status.HTTP_404_NOT_FOUND)
        return Response(snapshot)
