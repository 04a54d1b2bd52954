"""Store domain errors."""


class StoreError(Exception):
    """Base class for store errors."""


class InvalidOrderError(StoreError):
    """Order payload is incomplete or references unusable products."""


class OutOfStockError(StoreError):
    """Requested quantity exceeds available stock."""

    def __init__(self, product_name, available, requested):
        self.product_name = product_name
        self.available = available
        self.requested = requested
        if available == 0:
            message = f"{product_name} is out of stock"
        else:
            message = f"Only {available} units of {product_name} available (requested {requested})"
        super().__init__(message)


class OrderNotCancellableError(StoreError):
    """Order status no longer allows cancellation."""

    def __init__(self, message, status):
        self.status = status
        super().__init__(message)


class NoShippingZoneError(StoreError):
    """No active shipping zone covers the destination."""
