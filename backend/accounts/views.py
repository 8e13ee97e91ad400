# accounts/views.py

import logging

from django.contrib.auth import authenticate
from django.db import transaction
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.tokens import RefreshToken

from .models import role_of
from .serializers import ProfileUpdateSerializer, RegisterSerializer, UserSerializer

logger = logging.getLogger(__name__)


def _token_payload(user):
    refresh = RefreshToken.for_user(user)
    return {
        "access"   : str(refresh.access_token),
        "refresh"  : str(refresh),
        "role"     : role_of(user),
        "user_id"  : user.id,
        "username" : user.username,
        "full_name": user.get_full_name(),
    }


class LoginView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        username = request.data.get("username")
        password = request.data.get("password")
        user = authenticate(username=username, password=password)
        if user is None:
            logger.info("🔒 [Auth] rejected login for %s", username)
            return Response({"error": "Invalid credentials"}, status=status.HTTP_401_UNAUTHORIZED)
        return Response(_token_payload(user))


class RegisterView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({"error": serializer.errors}, status=status.HTTP_400_BAD_REQUEST)
        user = serializer.save()
        logger.info("✅ [Auth] registered patient %s", user.username)
        return Response(_token_payload(user), status=status.HTTP_201_CREATED)


class ProfileView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(UserSerializer(request.user).data)

    def put(self, request):
        serializer = ProfileUpdateSerializer(request.user, data=request.data, partial=True)
        if not serializer.is_valid():
            return Response({"error": serializer.errors}, status=status.HTTP_400_BAD_REQUEST)
        with transaction.atomic():
            user = serializer.save()
        logger.info("👤 [Auth] %s updated their profile", user.username)
        return Response(UserSerializer(user).data)
