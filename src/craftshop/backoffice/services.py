"""Back-office services: dashboard statistics, product payloads, asset storage."""

import logging
import os
import uuid

from django.contrib.auth import get_user_model
from django.core.files.storage import default_storage
from django.db.models import Sum
from django.utils import timezone
from django.utils.text import get_valid_filename, slugify

from craftshop.catalog.images import (
    CATEGORY_IMAGE_MAP,
    IMAGE_EXTENSIONS,
    asset_url,
)
from craftshop.catalog.inventory import low_stock_products
from craftshop.catalog.models import Category, Product
from craftshop.core.money import ZERO, round_money, to_decimal
from craftshop.store.models import Order

logger = logging.getLogger(__name__)

ASSET_PREFIX = "site-assets/"

DASHBOARD_STATUSES = (
    Order.Status.PENDING,
    Order.Status.PROCESSING,
    Order.Status.SHIPPED,
    Order.Status.DELIVERED,
    Order.Status.CANCELLED,
)

NULLABLE_DECIMALS = ("compare_at_price", "weight", "tax_rate", "shipping_weight")
BOOLEAN_FIELDS = ("is_active", "is_featured", "is_taxable", "requires_shipping", "is_fragile", "is_hazardous")
LIST_FIELDS = ("images", "materials", "colors")


class ProductPayloadError(ValueError):
    """A product create/update payload is unusable."""


# Dashboard

def _month_start(dt, months_back=0):
    year, month = dt.year, dt.month - months_back
    while month <= 0:
        month += 12
        year -= 1
    return dt.replace(year=year, month=month, day=1, hour=0, minute=0, second=0, microsecond=0)


def _revenue(orders):
    total = orders.aggregate(total=Sum("total_amount"))["total"]
    return round_money(total or ZERO)


def monthly_revenue(now=None, months=6):
    """Delivered revenue per calendar month, oldest first."""
    now = timezone.localtime(now or timezone.now())
    delivered = Order.objects.filter(status=Order.Status.DELIVERED)

    rows = []
    for back in range(months - 1, -1, -1):
        start = _month_start(now, back)
        end = _month_start(now, back - 1) if back else None
        orders = delivered.filter(created_at__gte=start)
        if end is not None:
            orders = orders.filter(created_at__lt=end)
        rows.append({"month": start.strftime("%b %Y"), "revenue": float(_revenue(orders))})
    return rows


def revenue_growth(now=None) -> float:
    """Percent change of delivered revenue, this month against last. 0 without a baseline."""
    now = timezone.localtime(now or timezone.now())
    this_month = _month_start(now)
    last_month = _month_start(now, 1)
    delivered = Order.objects.filter(status=Order.Status.DELIVERED)

    current = _revenue(delivered.filter(created_at__gte=this_month))
    previous = _revenue(delivered.filter(created_at__gte=last_month, created_at__lt=this_month))
    if previous <= 0:
        return 0.0
    return round(float((current - previous) / previous * 100), 2)


def dashboard_stats(now=None) -> dict:
    User = get_user_model()

    recent_orders = [
        {
            "id": str(order.pk),
            "order_number": order.order_number,
            "total_amount": float(order.total_amount),
            "status": order.status,
            "created_at": order.created_at.isoformat(),
            "customer_name": order.customer_name or (order.user.get_display_name() if order.user else ""),
            "customer_email": order.contact_email,
        }
        for order in Order.objects.select_related("user").order_by("-created_at")[:10]
    ]

    low_stock = [
        {
            "id": str(p.pk),
            "name": p.name,
            "sku": p.sku,
            "stock_quantity": p.stock_quantity,
            "price": float(p.price),
        }
        for p in low_stock_products()[:10]
    ]

    return {
        "totalProducts": Product.objects.count(),
        "totalOrders": Order.objects.count(),
        "totalCustomers": User.objects.count(),
        "totalRevenue": float(_revenue(Order.objects.filter(status=Order.Status.DELIVERED))),
        "recentOrders": recent_orders,
        "lowStockProducts": low_stock,
        "monthlyRevenue": monthly_revenue(now),
        "ordersByStatus": {
            status: Order.objects.filter(status=status).count() for status in DASHBOARD_STATUSES
        },
        "growth": {"revenue": revenue_growth(now), "orders": 0, "customers": 0},
    }


# Product payloads

def _blank(value):
    return value is None or (isinstance(value, str) and value.strip() == "")


def _decimal_field(data, name, required=False):
    value = data.get(name)
    if _blank(value):
        if required:
            raise ProductPayloadError(f"{name} is required")
        return None
    result = to_decimal(value)
    if result is None or result < 0:
        raise ProductPayloadError(f"Invalid {name}")
    return result


def _dimensions(value):
    if not isinstance(value, dict):
        return None
    if not any(value.get(k) for k in ("length", "width", "height")):
        return None
    return value


def _resolve_category(value):
    if _blank(value):
        category = Category.objects.order_by("created_at").first()
        if category is None:
            raise ProductPayloadError("No categories available. Please create a category first.")
        return category

    try:
        category_id = uuid.UUID(str(value).strip())
    except ValueError:
        raise ProductPayloadError("Invalid category ID format")
    category = Category.objects.filter(pk=category_id).first()
    if category is None:
        raise ProductPayloadError("Category not found")
    return category


def product_fields_from_payload(data: dict, partial=False) -> dict:
    """Turn an admin product payload into model field values.

    Blank optional values become null. With `partial`, only keys present
    in the payload are returned; otherwise name, price and sku are required
    and a missing category falls back to the first one.

    Raises:
        ProductPayloadError: Missing or malformed values
    """
    if not partial:
        missing = [f for f in ("name", "price", "sku") if _blank(data.get(f))]
        if missing:
            raise ProductPayloadError("Missing required fields: name, price, sku")

    fields = {}
    for name in ("name", "sku"):
        if name in data:
            if _blank(data[name]):
                raise ProductPayloadError(f"{name} cannot be blank")
            fields[name] = str(data[name]).strip()

    if "description" in data or not partial:
        fields["description"] = "" if _blank(data.get("description")) else str(data["description"]).strip()

    if "price" in data:
        fields["price"] = _decimal_field(data, "price", required=True)
    for name in NULLABLE_DECIMALS:
        if name in data:
            fields[name] = _decimal_field(data, name)

    if "stock_quantity" in data or not partial:
        try:
            fields["stock_quantity"] = max(0, int(data.get("stock_quantity") or 0))
        except (TypeError, ValueError):
            raise ProductPayloadError("Invalid stock_quantity")

    if "category_id" in data or not partial:
        fields["category"] = _resolve_category(data.get("category_id"))

    for name in BOOLEAN_FIELDS:
        if name in data:
            fields[name] = bool(data[name])
    if not partial:
        fields.setdefault("is_active", False)
        fields.setdefault("is_featured", False)

    for name in LIST_FIELDS:
        if name in data or not partial:
            value = data.get(name)
            fields[name] = value if isinstance(value, list) else []

    if "dimensions" in data:
        fields["dimensions"] = _dimensions(data["dimensions"])

    return fields


# Category images

def _stored_asset(slug):
    """Find `site-assets/<slug>.<ext>` in default storage."""
    for ext in IMAGE_EXTENSIONS:
        name = f"{slug}{ext}"
        if default_storage.exists(ASSET_PREFIX + name):
            return name
    return None


def sync_category_images() -> dict:
    """Fill missing or placeholder category images.

    The known name map wins; otherwise an uploaded asset named after the
    category slug is used.
    """
    updates = 0
    results = []
    categories = list(Category.objects.all())
    for category in categories:
        current = (category.image_url or "").strip()
        if current and "placeholder" not in current:
            results.append({"id": str(category.pk), "name": category.name, "chosen": None})
            continue

        filename = CATEGORY_IMAGE_MAP.get(category.name.strip().lower()) or _stored_asset(slugify(category.name))
        chosen = asset_url(filename) if filename else None
        if chosen and chosen != current:
            category.image_url = chosen
            category.save(update_fields=["image_url", "updated_at"])
            updates += 1
        results.append({"id": str(category.pk), "name": category.name, "chosen": chosen})

    logger.info("Category images synced", extra={"updates": updates, "checked": len(categories)})
    return {"ok": True, "updates": updates, "checked": len(categories), "categories": results}


# Asset uploads

def store_asset(upload) -> dict:
    """Save one uploaded image under site-assets/, replacing a same-named file.

    Raises:
        ValueError: Not an image file
    """
    name = get_valid_filename(os.path.basename(upload.name))
    if not name.lower().endswith(IMAGE_EXTENSIONS):
        raise ValueError(f"Unsupported file type: {upload.name}")

    path = ASSET_PREFIX + name
    if default_storage.exists(path):
        default_storage.delete(path)
    saved = default_storage.save(path, upload)
    relative = saved[len(ASSET_PREFIX):] if saved.startswith(ASSET_PREFIX) else saved
    return {"file": upload.name, "path": saved, "publicUrl": asset_url(relative)}

