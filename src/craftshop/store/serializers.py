"""Plain-dict serialization of store objects for the JSON API."""

from craftshop.catalog.images import resolve_product_images
from craftshop.catalog.serializers import product_to_dict

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


def _iso(value):
    return value.isoformat() if value else None


def order_item_to_dict(item):
    return {
        "id": item.pk,
        "product_id": str(item.product_id) if item.product_id else None,
        "product_name": item.product_name,
        "product_sku": item.product_sku,
        "quantity": item.quantity,
        "unit_price": float(item.unit_price),
        "total_price": float(item.total_price),
        "image": (
            resolve_product_images(item.product.images, item.product_sku)[0]
            if item.product_id and item.product
            else resolve_product_images([], item.product_sku)[0]
        ),
    }


def order_to_dict(order, include_items=False):
    data = {
        "id": str(order.pk),
        "user_id": str(order.user_id) if order.user_id else None,
        "order_number": order.order_number,
        "status": order.status,
        "payment_status": order.payment_status,
        "payment_method": order.payment_method,
        "payment_fee": float(order.payment_fee),
        "payment_id": order.payment_id,
        "transaction_id": order.transaction_id,
        "payment_confirmed_at": _iso(order.payment_confirmed_at),
        "subtotal": float(order.subtotal),
        "tax_amount": float(order.tax_amount),
        "shipping_amount": float(order.shipping_amount),
        "total_amount": float(order.total_amount),
        "currency": order.currency,
        "customer_email": order.customer_email,
        "customer_phone": order.customer_phone,
        "notes": order.notes,
        "created_at": _iso(order.created_at),
        "updated_at": _iso(order.updated_at),
    }
    for prefix in ("shipping", "billing"):
        for field in ADDRESS_FIELDS:
            name = f"{prefix}_{field}"
            data[name] = getattr(order, name)
    if include_items:
        data["items"] = [order_item_to_dict(item) for item in order.items.select_related("product")]
    return data


def cart_line_to_dict(line):
    return {
        "product_id": str(line.product.pk),
        "quantity": line.quantity,
        "unit_price": float(line.unit_price),
        "total_price": float(line.total_price),
        "product": product_to_dict(line.product),
    }
