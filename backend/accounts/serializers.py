# accounts/serializers.py

from django.contrib.auth.models import User
from rest_framework import serializers

from .models import UserProfile


class UserProfileSerializer(serializers.ModelSerializer):
    class Meta:
        model = UserProfile
        fields = ["role", "phone", "date_of_birth", "gender", "blood_group"]


class UserSerializer(serializers.ModelSerializer):
    """Used by /api/auth/profile/."""
    profile = UserProfileSerializer(read_only=True)

    class Meta:
        model = User
        fields = ["id", "username", "first_name", "last_name", "email", "profile"]


class RegisterSerializer(serializers.Serializer):
    """Self-service sign-up. Always creates a patient."""
    username   = serializers.CharField(max_length=150)
    password   = serializers.CharField(write_only=True, min_length=8)
    email      = serializers.EmailField(required=False, allow_blank=True)
    first_name = serializers.CharField(required=False, allow_blank=True, max_length=150)
    last_name  = serializers.CharField(required=False, allow_blank=True, max_length=150)
    phone      = serializers.CharField(required=False, allow_blank=True, max_length=20)

    def validate_username(self, value):
        if User.objects.filter(username=value).exists():
            raise serializers.ValidationError("Username already taken")
        return value

    def create(self, validated_data):
        phone = validated_data.pop("phone", "")
        user = User.objects.create_user(**validated_data)
        UserProfile.objects.create(user=user, role=UserProfile.ROLE_PATIENT, phone=phone)
        return user


class ProfileUpdateSerializer(serializers.Serializer):
    """PUT /api/auth/profile/ - every field optional; role is not editable here."""
    first_name    = serializers.CharField(required=False, allow_blank=True, max_length=150)
    last_name     = serializers.CharField(required=False, allow_blank=True, max_length=150)
    email         = serializers.EmailField(required=False, allow_blank=True)
    password      = serializers.CharField(required=False, write_only=True, min_length=8)
    phone         = serializers.CharField(required=False, allow_blank=True, max_length=20)
    date_of_birth = serializers.DateField(required=False, allow_null=True)
    gender        = serializers.ChoiceField(choices=UserProfile.GENDER_CHOICES, required=False, allow_blank=True)
    blood_group   = serializers.CharField(required=False, allow_blank=True, max_length=5)

    USER_FIELDS    = ("first_name", "last_name", "email")
    PROFILE_FIELDS = ("phone", "date_of_birth", "gender", "blood_group")

    def update(self, user, validated_data):
        for field_name in self.USER_FIELDS:
            if field_name in validated_data:
                setattr(user, field_name, validated_data[field_name])
        if validated_data.get("password"):
            user.set_password(validated_data["password"])
        user.save()

        try:
            profile = user.profile
        except UserProfile.DoesNotExist:
            profile = UserProfile.objects.create(user=user)
        for field_name in self.PROFILE_FIELDS:
            if field_name in validated_data:
                setattr(profile, field_name, validated_data[field_name])
        profile.save()
        return user
