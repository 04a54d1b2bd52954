"""Product change broadcasts for the live product stream.

Admin edits call `broadcast_product_event`; the message is delivered to
the `product_updates` channels group once the surrounding transaction
commits, so clients never see a change that was rolled back.
"""

import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import transaction
from django.utils import timezone

from .serializers import product_to_dict

logger = logging.getLogger(__name__)

PRODUCT_GROUP = "product_updates"

NEW_PRODUCT = "new_product"
PRODUCT_UPDATED = "product_updated"
PRODUCT_DELETED = "product_deleted"

EVENT_TYPES = (NEW_PRODUCT, PRODUCT_UPDATED, PRODUCT_DELETED)


def send_product_event(payload) -> bool:
    """Push a prepared payload to the product group. Never raises."""
    try:
        channel_layer = get_channel_layer()
        if not channel_layer:
            logger.warning("No channel layer configured, skipping product broadcast")
            return False

        async_to_sync(channel_layer.group_send)(
            PRODUCT_GROUP,
            {"type": "product.event", "payload": payload},
        )
    except Exception:
        logger.exception(
            "Failed to broadcast product event",
            extra={"event": payload.get("type")},
        )
        return False

    logger.debug("Product event broadcast", extra={"event": payload.get("type")})
    return True


def broadcast_product_event(event, product):
    """Schedule a product event for delivery after commit.

    The payload is built immediately so deleted products still carry their data.
    """
    if event not in EVENT_TYPES:
        raise ValueError(f"Unknown product event: {event}")

    payload = {
        "type": event,
        "product": product_to_dict(product),
        "timestamp": timezone.now().isoformat(),
    }
    transaction.on_commit(lambda: send_product_event(payload))
    return payload
