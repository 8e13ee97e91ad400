"""
healthcare_portal/test_settings.py

Base settings with an in-memory SQLite database and channel layer.
"""

from .settings import *  # noqa: F401,F403

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME"  : ":memory:",
    }
}

CHANNEL_LAYERS = {
    "default": {
        "BACKEND": "channels.layers.InMemoryChannelLayer"
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

AVAILABILITY_BLOCKING_LEAVE_STATUSES = ["pending", "approved", "rejected"]
VIDEOCALL_MAX_CHAT_MESSAGES = None
