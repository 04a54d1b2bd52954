"""Tests for product change broadcasts and the product stream consumer."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from craftshop.catalog.consumers import ProductStreamConsumer
from craftshop.catalog.events import (
    NEW_PRODUCT,
    PRODUCT_GROUP,
    broadcast_product_event,
    send_product_event,
)


@pytest.fixture
def channel_layer():
    layer = MagicMock()
    layer.group_send = AsyncMock()
    with patch("craftshop.catalog.events.get_channel_layer", return_value=layer):
        yield layer


@pytest.mark.django_db
class TestBroadcastProductEvent:
    def test_sent_after_commit(self, channel_layer, product, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            payload = broadcast_product_event(NEW_PRODUCT, product)
            channel_layer.group_send.assert_not_called()

        assert len(callbacks) == 1
        channel_layer.group_send.assert_awaited_once_with(
            PRODUCT_GROUP,
            {"type": "product.event", "payload": payload},
        )
        assert payload["type"] == "new_product"
        assert payload["product"]["sku"] == "MWH-001"

    def test_unknown_event_rejected(self, product):
        with pytest.raises(ValueError):
            broadcast_product_event("product_renamed", product)


class TestSendProductEvent:
    def test_without_channel_layer(self):
        with patch("craftshop.catalog.events.get_channel_layer", return_value=None):
            assert send_product_event({"type": NEW_PRODUCT}) is False

    def test_layer_failure_is_logged_not_raised(self, channel_layer):
        channel_layer.group_send.side_effect = ConnectionError("redis down")

        assert send_product_event({"type": NEW_PRODUCT}) is False


class TestProductStreamConsumer:
    @pytest.fixture
    def consumer(self):
        consumer = ProductStreamConsumer()
        consumer.send = MagicMock()
        return consumer

    def _sent(self, consumer):
        return json.loads(consumer.send.call_args.kwargs["text_data"])

    def test_ping_gets_heartbeat(self, consumer):
        consumer.receive(text_data=json.dumps({"type": "ping"}))

        assert self._sent(consumer)["type"] == "heartbeat"

    def test_other_messages_ignored(self, consumer):
        consumer.receive(text_data=json.dumps({"type": "hello"}))
        consumer.receive(text_data="not json")

        consumer.send.assert_not_called()

    def test_group_event_forwarded(self, consumer):
        consumer.product_event({"type": "product.event", "payload": {"type": "product_deleted", "product": {"id": "1"}}})

        assert self._sent(consumer) == {"type": "product_deleted", "product": {"id": "1"}}
