# accounts/permissions.py

from rest_framework.permissions import BasePermission

from .models import UserProfile, role_of


class IsDoctor(BasePermission):
    message = "Doctors only"

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and role_of(user) == UserProfile.ROLE_DOCTOR)


class IsAdmin(BasePermission):
    message = "Admin privileges required"

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and role_of(user) == UserProfile.ROLE_ADMIN)
