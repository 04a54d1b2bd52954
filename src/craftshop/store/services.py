"""Order lifecycle services: checkout, cancellation, status changes.

These functions own the invariants around orders (server-side pricing,
stock reservation, which statuses may move where). Views only parse
input and translate exceptions.
"""

import logging
import secrets
import string
import time
import uuid
from datetime import timedelta
from decimal import Decimal
from typing import NamedTuple

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.core.validators import validate_email
from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from craftshop.catalog.inventory import StockLine, release_inventory, reserve_inventory
from craftshop.catalog.models import Product
from craftshop.core.money import round_money

from .cart import CartLine, find_quote, shipping_requirements, summarize_cart
from .emails import StatusEmailResult, send_discount_code_email, send_order_status_email
from .exceptions import InvalidOrderError, OrderNotCancellableError, OutOfStockError
from .models import CartItem, DiscountCode, NewsletterSubscriber, Order, OrderItem
from .shipping import ShippingAddress, TaxCalculator, shipping_from_origin

logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_uppercase

ADDRESS_FIELDS = (
    "first_name",
    "last_name",
    "company",
    "address_line_1",
    "address_line_2",
    "city",
    "state",
    "postal_code",
    "country",
)

REQUIRED_SHIPPING_FIELDS = ("first_name", "last_name", "address_line_1", "city")

CANCEL_BLOCKED_MESSAGES = {
    Order.Status.PROCESSING: (
        "Order is currently being processed and cannot be cancelled. "
        "Please contact customer support."
    ),
    Order.Status.SHIPPED: (
        "Order has been shipped and cannot be cancelled. You may return it after delivery."
    ),
    Order.Status.DELIVERED: (
        "Order has been delivered. You may return it following our return policy."
    ),
    Order.Status.CANCELLED: "Order has already been cancelled.",
}

WELCOME_DISCOUNT_PERCENT = 15
WELCOME_DISCOUNT_DAYS = 30


class CancellationResult(NamedTuple):
    order: Order
    refund_info: dict


class StatusChangeResult(NamedTuple):
    order: Order
    previous_status: str
    email: StatusEmailResult | None


class SubscriptionResult(NamedTuple):
    code: str
    percent_off: int
    expires_at: object
    already_subscribed: bool
    email_sent: bool


def generate_order_number() -> str:
    """ORD-<epoch milliseconds>-<9 random base36 characters>."""
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"ORD-{int(time.time() * 1000)}-{suffix}"


def generate_discount_code(prefix="WELCOME15") -> str:
    suffix = "".join(secrets.choice(_BASE36) for _ in range(6))
    return f"{prefix}-{suffix}"


def _clean(value, max_length=None):
    text = str(value or "").strip()
    return text[:max_length] if max_length else text


def _parse_items(items):
    """Merge requested items into {product uuid: quantity}."""
    if not isinstance(items, list) or not items:
        raise InvalidOrderError("Order must contain at least one item")

    quantities = {}
    for item in items:
        if not isinstance(item, dict):
            raise InvalidOrderError("Each item must be an object")
        try:
            product_id = uuid.UUID(str(item.get("product_id")))
        except ValueError:
            raise InvalidOrderError(f"Invalid product id: {item.get('product_id')}")
        try:
            quantity = int(item.get("quantity", 1))
        except (TypeError, ValueError):
            raise InvalidOrderError("Quantity must be a whole number")
        if quantity < 1:
            raise InvalidOrderError("Quantity must be at least 1")
        quantities[product_id] = quantities.get(product_id, 0) + quantity
    return quantities


def _address_fields(order_data):
    fields = {}
    for prefix in ("shipping", "billing"):
        for field in ADDRESS_FIELDS:
            name = f"{prefix}_{field}"
            fields[name] = _clean(order_data.get(name), Order._meta.get_field(name).max_length)

    missing = [f"shipping_{f}" for f in REQUIRED_SHIPPING_FIELDS if not fields[f"shipping_{f}"]]
    if missing:
        raise InvalidOrderError(f"Missing shipping fields: {', '.join(missing)}")

    fields["shipping_country"] = (fields["shipping_country"] or "PK").upper()
    if len(fields["shipping_country"]) != 2:
        raise InvalidOrderError("shipping_country must be a 2-letter country code")

    if not fields["billing_address_line_1"]:
        for field in ADDRESS_FIELDS:
            fields[f"billing_{field}"] = fields[f"shipping_{field}"]
    fields["billing_country"] = (fields["billing_country"] or fields["shipping_country"]).upper()[:2]
    return fields


def _checkout_totals(lines, destination, method_id):
    """Server-side totals; falls back to the origin rate table when no zone applies.

    Raises:
        InvalidOrderError: `method_id` is not one of the quotes for this cart
    """
    summary = summarize_cart(lines, destination, method_id)
    if method_id and summary.available_shipping_methods:
        if find_quote(summary.available_shipping_methods, method_id) is None:
            raise InvalidOrderError("Selected shipping method is not available for this address")
    subtotal = summary.subtotal
    shipping = summary.shipping_amount
    tax = summary.tax_amount

    if not summary.available_shipping_methods and shipping_requirements(lines)["requires_shipping"]:
        shipping = shipping_from_origin(destination.city_id, subtotal).rate
        tax = TaxCalculator.calculate(lines, destination)

    return subtotal, shipping, tax, round_money(subtotal + shipping + tax)


@transaction.atomic
def create_order(*, user=None, order_data: dict, items: list) -> Order:
    """Create an order from requested product ids and quantities.

    Prices come from the product table; anything price-like in the
    payload is ignored. Stock is reserved and the user's cart cleared.

    Args:
        user: Authenticated user, or None for a guest order
        order_data: Address, contact and notes fields
        items: [{"product_id": ..., "quantity": ...}, ...]

    Returns:
        The created Order

    Raises:
        InvalidOrderError: Missing fields, empty order, unknown or inactive product
        OutOfStockError: Requested quantity exceeds stock
    """
    if not isinstance(order_data, dict):
        raise InvalidOrderError("Order data is required")

    quantities = _parse_items(items)
    address = _address_fields(order_data)

    customer_email = _clean(order_data.get("customer_email")) or (user.email if user else "")
    if not customer_email:
        raise InvalidOrderError("customer_email is required for guest orders")
    try:
        validate_email(customer_email)
    except ValidationError:
        raise InvalidOrderError("Invalid customer email")

    products = {
        p.pk: p
        for p in Product.objects.select_for_update().filter(pk__in=quantities.keys())
    }

    lines = []
    for product_id, quantity in quantities.items():
        product = products.get(product_id)
        if product is None:
            raise InvalidOrderError(f"Product {product_id} not found")
        if not product.is_active:
            raise InvalidOrderError(f"Product {product.name} is no longer available")
        if product.stock_quantity < quantity:
            raise OutOfStockError(product.name, product.stock_quantity, quantity)
        lines.append(CartLine(product, quantity))

    destination = ShippingAddress(
        country=address["shipping_country"],
        state=address["shipping_state"],
        postal_code=address["shipping_postal_code"],
        city=address["shipping_city"],
        city_id=_clean(order_data.get("shipping_city_id")),
    )
    subtotal, shipping, tax, total = _checkout_totals(
        lines, destination, order_data.get("shipping_method_id")
    )

    order = Order.objects.create(
        user=user,
        order_number=generate_order_number(),
        subtotal=subtotal,
        shipping_amount=shipping,
        tax_amount=tax,
        total_amount=total,
        currency=settings.STORE_CURRENCY,
        customer_email=customer_email,
        customer_phone=_clean(order_data.get("customer_phone"), 32) or (user.phone if user else ""),
        notes=_clean(order_data.get("notes")),
        **address,
    )
    OrderItem.objects.bulk_create([
        OrderItem(
            order=order,
            product=line.product,
            product_name=line.product.name,
            product_sku=line.product.sku,
            quantity=line.quantity,
            unit_price=line.unit_price,
            total_price=round_money(line.total_price),
        )
        for line in lines
    ])

    reserve_inventory(StockLine(line.product.pk, line.quantity) for line in lines)

    if user is not None:
        CartItem.objects.filter(user=user).delete()

    logger.info(
        "Order created",
        extra={
            "order_number": order.order_number,
            "user_id": str(user.pk) if user else None,
            "total_amount": str(total),
            "item_count": len(lines),
        },
    )
    return order


def _order_stock_lines(order):
    return [
        StockLine(item.product_id, item.quantity)
        for item in order.items.all()
        if item.product_id
    ]


def refund_info(order) -> dict:
    paid = order.is_paid
    return {
        "will_be_refunded": paid,
        "amount": float(order.total_amount) if paid else 0.0,
        "timeframe": "3-5 business days",
        "method": "Original payment method",
    }


@transaction.atomic
def cancel_order(order, reason="") -> CancellationResult:
    """Cancel a customer's order and release its stock.

    Raises:
        OrderNotCancellableError: Status no longer allows cancellation
    """
    order = Order.objects.select_for_update().get(pk=order.pk)
    if not order.is_cancellable:
        message = CANCEL_BLOCKED_MESSAGES.get(order.status, "Order cannot be cancelled at this time")
        raise OrderNotCancellableError(message, order.status)

    reason = _clean(reason) or "Customer requested cancellation"
    entry = f"Cancelled: {reason}"
    order.notes = f"{order.notes}\n\n{entry}" if order.notes else entry
    order.status = Order.Status.CANCELLED
    order.save(update_fields=["status", "notes", "updated_at"])

    release_inventory(_order_stock_lines(order))

    logger.info(
        "Order cancelled",
        extra={"order_number": order.order_number, "reason": reason},
    )
    return CancellationResult(order=order, refund_info=refund_info(order))


def hours_since_placed(order) -> float:
    elapsed = timezone.now() - order.created_at
    return round(elapsed.total_seconds() / 3600, 1)


def set_order_status(order, status, notify=False) -> StatusChangeResult:
    """Admin status change.

    Moving into `cancelled` releases stock; moving out of it reserves
    stock again. With `notify`, the customer gets the status email.

    Raises:
        InvalidOrderError: Unknown status
    """
    if status not in Order.Status.values:
        raise InvalidOrderError(f"Invalid status: {status}")

    with transaction.atomic():
        order = Order.objects.select_for_update().get(pk=order.pk)
        previous = order.status
        if previous != status:
            order.status = status
            order.save(update_fields=["status", "updated_at"])

            if status == Order.Status.CANCELLED:
                release_inventory(_order_stock_lines(order))
            elif previous == Order.Status.CANCELLED:
                reserve_inventory(_order_stock_lines(order))

            logger.info(
                "Order status changed",
                extra={"order_number": order.order_number, "from": previous, "to": status},
            )

    email = send_order_status_email(order, status) if notify else None
    return StatusChangeResult(order=order, previous_status=previous, email=email)


def subscribe_newsletter(email) -> SubscriptionResult:
    """Record a subscriber and issue a one-time welcome discount code.

    A new code is issued on every call; the subscriber row only once.
    """
    email = email.strip().lower()
    expires_at = timezone.now() + timedelta(days=WELCOME_DISCOUNT_DAYS)
    code = generate_discount_code()

    with transaction.atomic():
        already_subscribed = NewsletterSubscriber.objects.filter(email__iexact=email).exists()
        if not already_subscribed:
            NewsletterSubscriber.objects.create(email=email)

        DiscountCode.objects.create(
            code=code,
            percent_off=Decimal(WELCOME_DISCOUNT_PERCENT),
            email=email,
            usage_limit=1,
            expires_at=expires_at,
            metadata={"origin": "newsletter"},
        )

    email_sent = send_discount_code_email(
        email, code, percent_off=WELCOME_DISCOUNT_PERCENT, valid_days=WELCOME_DISCOUNT_DAYS
    )
    logger.info(
        "Newsletter subscription",
        extra={"already_subscribed": already_subscribed, "code": code, "email_sent": email_sent},
    )
    return SubscriptionResult(
        code=code,
        percent_off=WELCOME_DISCOUNT_PERCENT,
        expires_at=expires_at,
        already_subscribed=already_subscribed,
        email_sent=email_sent,
    )


def _money_label(amount):
    return f"{settings.STORE_CURRENCY} {amount:,.2f}"


def promo_ticker_items():
    threshold = settings.STORE_SHIPPING["NATIONAL"]["free_threshold"]
    return [
        {
            "type": "promo",
            "message": f"Free Shipping on Orders Over {settings.STORE_CURRENCY} {threshold:,}!",
            "icon": "truck",
        },
        {"type": "promo", "message": "New Arrivals: Spring Collection Now Available!", "icon": "sparkles"},
        {"type": "promo", "message": "Each piece is uniquely made by skilled artisans", "icon": "palette"},
    ]


def sales_ticker_items(now=None):
    """Recent sales, today's revenue and store stats for the storefront ticker."""
    now = now or timezone.now()
    today_start = timezone.localtime(now).replace(hour=0, minute=0, second=0, microsecond=0)

    items = []
    recent = (
        Order.objects.filter(created_at__gte=now - timedelta(hours=24))
        .exclude(status=Order.Status.CANCELLED)
        .prefetch_related("items")
        .order_by("-created_at")[:5]
    )
    for order in recent:
        first_item = next(iter(order.items.all()), None)
        product = first_item.product_name if first_item else "an item"
        quantity = f"{first_item.quantity}x " if first_item and first_item.quantity > 1 else ""
        items.append({
            "type": "sale",
            "message": (
                f"{order.shipping_first_name or 'Someone'} from "
                f"{order.shipping_city or 'Pakistan'} just purchased {quantity}{product}!"
            ),
            "icon": "cart",
        })

    revenue = (
        Order.objects.filter(created_at__gte=today_start)
        .exclude(status=Order.Status.CANCELLED)
        .aggregate(total=Sum("total_amount"))["total"]
    )
    if revenue:
        items.append({"type": "stat", "message": f"Today's Revenue: {_money_label(revenue)}", "icon": "cash"})

    week_orders = Order.objects.filter(created_at__gte=now - timedelta(days=7)).count()
    if week_orders:
        items.append({"type": "stat", "message": f"{week_orders} Orders Processed This Week", "icon": "chart"})

    customers = get_user_model().objects.filter(role="customer").count()
    if customers:
        items.append({"type": "stat", "message": f"{customers:,}+ Happy Customers", "icon": "heart"})

    return items + promo_ticker_items()
