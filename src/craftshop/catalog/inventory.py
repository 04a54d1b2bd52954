"""Stock bookkeeping.

All stock changes go through `adjust_stock`, which locks the product row
and never lets the quantity drop below zero.
"""

import logging
from typing import Iterable, NamedTuple

from django.conf import settings
from django.db import transaction

from .models import Product

logger = logging.getLogger(__name__)


class StockLine(NamedTuple):
    product_id: object
    quantity: int


@transaction.atomic
def adjust_stock(product_id, delta: int) -> int:
    """Change a product's stock by `delta`, floored at 0.

    Returns:
        The new stock quantity.

    Raises:
        Product.DoesNotExist: If the product is gone.
    """
    product = Product.objects.select_for_update().get(pk=product_id)
    previous = product.stock_quantity
    product.stock_quantity = max(0, previous + delta)
    product.save(update_fields=["stock_quantity", "updated_at"])

    logger.info(
        "Stock adjusted",
        extra={
            "product_id": str(product_id),
            "previous": previous,
            "current": product.stock_quantity,
            "delta": delta,
        },
    )
    return product.stock_quantity


@transaction.atomic
def reserve_inventory(items: Iterable[StockLine]) -> None:
    for item in items:
        adjust_stock(item.product_id, -item.quantity)


@transaction.atomic
def release_inventory(items: Iterable[StockLine]) -> None:
    for item in items:
        adjust_stock(item.product_id, item.quantity)


def check_stock_availability(product_id, quantity: int) -> bool:
    stock = (
        Product.objects.filter(pk=product_id)
        .values_list("stock_quantity", flat=True)
        .first()
    )
    return stock is not None and stock >= quantity


def low_stock_products(threshold: int | None = None):
    """Active products with fewer than `threshold` units, lowest stock first."""
    if threshold is None:
        threshold = settings.LOW_STOCK_THRESHOLD
    return Product.objects.active().filter(stock_quantity__lt=threshold).order_by("stock_quantity")
