from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

from .consumers import UPDATES_GROUP


def publish(event: dict) -> bool:
    """Send ``event`` to every dashboard subscribed to the updates feed."""
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return False
    async_to_sync(channel_layer.group_send)(UPDATES_GROUP, event)
    return True
