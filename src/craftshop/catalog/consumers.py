"""WebSocket consumer for the live product stream."""

import json
import logging

from asgiref.sync import async_to_sync
from channels.generic.websocket import WebsocketConsumer
from django.utils import timezone

from .events import PRODUCT_GROUP

logger = logging.getLogger(__name__)


class ProductStreamConsumer(WebsocketConsumer):
    """Pushes product create/update/delete events to storefront clients.

    Connect to /ws/products/. Messages:
    - {"type": "connected"} once on connect
    - {"type": "new_product" | "product_updated" | "product_deleted", "product": {...}}
    - {"type": "heartbeat"} in reply to {"type": "ping"}
    """

    group_name = PRODUCT_GROUP

    def connect(self):
        try:
            async_to_sync(self.channel_layer.group_add)(self.group_name, self.channel_name)
        except Exception:
            logger.exception("Failed to join product stream group")
            self.close()
            return

        self.accept()
        logger.info("Product stream client connected")

        self.send(text_data=json.dumps({
            "type": "connected",
            "message": "Product stream connected",
            "timestamp": timezone.now().isoformat(),
        }))

    def disconnect(self, close_code):
        async_to_sync(self.channel_layer.group_discard)(self.group_name, self.channel_name)
        logger.info("Product stream client disconnected")

    def receive(self, text_data=None, bytes_data=None):
        try:
            data = json.loads(text_data or "")
        except json.JSONDecodeError:
            logger.warning("Invalid JSON in product stream message")
            return

        if isinstance(data, dict) and data.get("type") == "ping":
            self.send(text_data=json.dumps({
                "type": "heartbeat",
                "timestamp": timezone.now().isoformat(),
            }))

    def product_event(self, event):
        """Handle product.event messages from the group."""
        self.send(text_data=json.dumps(event["payload"]))
