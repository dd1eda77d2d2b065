"""Best-effort WebSocket push of inbox events to hospital dashboards."""
import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.conf import settings
from django.db import transaction

logger = logging.getLogger(__name__)


def hospital_group(hospital_id: str) -> str:
    return f"hospital.{hospital_id}"


class ChannelsPublisher:
    """Sends ``notification.new`` events to the ``hospital.<id>`` group.

    Events go out only after the surrounding transaction commits so a
    dashboard never sees a notification that was rolled back.
    """

    def publish(self, hospital_id: str, event: dict) -> None:
        transaction.on_commit(lambda: self._send(hospital_id, event))

    def _send(self, hospital_id: str, event: dict) -> None:
        channel_layer = get_channel_layer()
        if channel_layer is None:
            return
        try:
            async_to_sync(channel_layer.group_send)(hospital_group(hospital_id), {"type": "notification.new", **event})
        except Exception:
            logger.exception("realtime push to hospital %s failed", hospital_id)


def default_publisher():
    if settings.MATCHING.get('REALTIME_ENABLED', True):
        return ChannelsPublisher()
    return None
