import json
from channels.generic.websocket import AsyncWebsocketConsumer

from coordination.services.realtime import hospital_group


class HospitalNotificationsConsumer(AsyncWebsocketConsumer):
    """Pushes new inbox entries to dashboards of the caller's hospital."""

    async def connect(self):
        user = self.scope.get("user")
        hospital_id = getattr(user, "hospital_id", None) if user is not None else None
        if not (user and user.is_authenticated and hospital_id):
            await self.close(code=4003)
            return
        self.group_name = hospital_group(hospital_id)
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()
        await self.send(json.dumps({"type": "welcome", "hospitalId": hospital_id}))

    async def disconnect(self, close_code):
        if hasattr(self, "group_name"):
            await self.channel_layer.group_discard(self.group_name, self.channel_name)

    async def notification_new(self, event):
        # event: {"type": "notification.new", "id": ..., "notificationType": ..., "title": ..., ...}
        await self.send(json.dumps(event))
