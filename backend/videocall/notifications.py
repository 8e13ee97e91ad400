# videocall/notifications.py
#
# Push an event to every live socket of one user (all tabs that sent
# `user:join` with that userId). Users with no open socket simply miss it.

import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

from .consumers import is_group_safe, user_group

logger = logging.getLogger(__name__)


async def send_to_user(user_id, event, data):
    user_id = str(user_id)
    channel_layer = get_channel_layer()
    if channel_layer is None or not is_group_safe(user_id):
        return False

    await channel_layer.group_send(
        user_group(user_id),
        {"type": "relay.message", "event": event, "data": data, "exclude": None},
    )
    logger.info("🔔 [Notify] %s → user=%s", event, user_id)
    return True


def notify_user(user_id, event, data):
    """Sync entry point for views and signals."""
    return async_to_sync(send_to_user)(user_id, event, data)
