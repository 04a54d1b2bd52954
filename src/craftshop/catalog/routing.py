"""WebSocket URL routing for the catalog."""

from django.urls import path

from . import consumers

websocket_urlpatterns = [
    path("ws/products/", consumers.ProductStreamConsumer.as_asgi()),
]
