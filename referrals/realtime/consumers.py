import json
from channels.generic.websocket import AsyncWebsocketConsumer

UPDATES_GROUP = "updates"


class UpdatesConsumer(AsyncWebsocketConsumer):
    """Push refresh hints to dashboards; only signed-in users may subscribe."""
    GROUP = UPDATES_GROUP

    async def connect(self):
        user = self.scope.get("user")
        if not (user and user.is_authenticated):
            await self.close()
            return
        await self.channel_layer.group_add(self.GROUP, self.channel_name)
        await self.accept()
        await self.send(json.dumps({"type": "welcome", "message": "connected"}))

    async def disconnect(self, close_code):
        await self.channel_layer.group_discard(self.GROUP, self.channel_name)

    async def pipeline_updated(self, event):
        # event: {"type": "pipeline.updated", "referralId": int, "from": str, "to": str, "ts": "..."}
        await self.send(json.dumps(event))

    async def broadcast_refresh(self, event):
        # event: {"type": "broadcast.refresh", "version": int, "ts": "...", "keys": [...]}
        await self.send(json.dumps(event))
