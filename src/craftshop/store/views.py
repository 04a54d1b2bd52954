"""Store API: cart, wishlist, checkout, orders, newsletter and sales ticker."""

import logging

from django.conf import settings
from django.core.cache import cache
from django.core.exceptions import ValidationError
from django.core.validators import validate_email
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from craftshop.catalog.images import resolve_product_images
from craftshop.catalog.models import Product
from craftshop.core.decorators import login_required_json
from craftshop.core.http import InvalidJSON, invalid_json_response, json_error, parse_json

from . import services
from .cart import (
    cart_lines_for_user,
    free_shipping_eligibility,
    shipping_requirements,
    summarize_cart,
    summary_to_dict,
    validate_cart,
)
from .emails import send_order_status_email
from .exceptions import InvalidOrderError, OrderNotCancellableError, OutOfStockError
from .models import CartItem, Order, WishlistItem
from .serializers import cart_line_to_dict, order_to_dict
from .shipping import ShippingAddress

logger = logging.getLogger(__name__)

SALES_TICKER_CACHE_KEY = "store:sales-ticker"
SALES_TICKER_TTL = 60


def _active_product(product_id):
    try:
        return Product.objects.active().get(pk=product_id)
    except (Product.DoesNotExist, ValidationError, ValueError):
        return None


def _parse_quantity(value, minimum=1):
    try:
        quantity = int(value)
    except (TypeError, ValueError):
        return None
    return quantity if quantity >= minimum else None


def _cart_response(user):
    lines = cart_lines_for_user(user)
    summary = summarize_cart(lines)
    return JsonResponse(summary_to_dict(summary, cart_line_to_dict))


@method_decorator(csrf_exempt, name="dispatch")
@method_decorator(login_required_json, name="dispatch")
class CartView(View):
    """GET the cart, POST {"product_id", "quantity"} to add to it."""

    def get(self, request):
        return _cart_response(request.user)

    def post(self, request):
        try:
            data = parse_json(request)
        except InvalidJSON:
            return invalid_json_response()

        product = _active_product(data.get("product_id"))
        if product is None:
            return json_error("Product not found", status=404)

        quantity = _parse_quantity(data.get("quantity", 1))
        if quantity is None:
            return json_error("Quantity must be at least 1")

        item, created = CartItem.objects.get_or_create(
            user=request.user, product=product, defaults={"quantity": 0}
        )
        new_quantity = item.quantity + quantity
        if new_quantity > product.stock_quantity:
            if created:
                item.delete()
            return json_error(str(OutOfStockError(product.name, product.stock_quantity, new_quantity)), status=409)

        item.quantity = new_quantity
        item.save(update_fields=["quantity", "updated_at"])
        return _cart_response(request.user)


@method_decorator(csrf_exempt, name="dispatch")
@method_decorator(login_required_json, name="dispatch")
class CartItemView(View):
    """PATCH {"quantity"} (0 removes) or DELETE one cart line."""

    def patch(self, request, product_id):
        try:
            data = parse_json(request)
        except InvalidJSON:
            return invalid_json_response()

        item = get_object_or_404(CartItem.objects.select_related("product"), user=request.user, product_id=product_id)
        quantity = _parse_quantity(data.get("quantity"), minimum=0)
        if quantity is None:
            return json_error("Quantity must be 0 or more")

        if quantity == 0:
            item.delete()
        elif quantity > item.product.stock_quantity:
            return json_error(
                str(OutOfStockError(item.product.name, item.product.stock_quantity, quantity)),
                status=409,
            )
        else:
            item.quantity = quantity
            item.save(update_fields=["quantity", "updated_at"])
        return _cart_response(request.user)

    def delete(self, request, product_id):
        CartItem.objects.filter(user=request.user, product_id=product_id).delete()
        return _cart_response(request.user)


@method_decorator(csrf_exempt, name="dispatch")
@method_decorator(login_required_json, name="dispatch")
class CartSummaryView(View):
    """Cart totals for a destination.

    POST /api/cart/summary/
    {"destination": {"country": "PK", "state": "", "postal_code": "", "city": ""},
     "shipping_method_id": "3"}
    """

    def post(self, request):
        try:
            data = parse_json(request)
        except InvalidJSON:
            return invalid_json_response()

        destination = None
        raw = data.get("destination")
        if isinstance(raw, dict) and raw.get("country"):
            destination = ShippingAddress(
                country=str(raw["country"]).upper(),
                state=str(raw.get("state") or ""),
                postal_code=str(raw.get("postal_code") or ""),
                city=str(raw.get("city") or ""),
                city_id=str(raw.get("city_id") or ""),
            )

        lines = cart_lines_for_user(request.user)
        summary = summarize_cart(lines, destination, data.get("shipping_method_id"))
        validation = validate_cart(lines)

        payload = summary_to_dict(summary, cart_line_to_dict)
        payload.update({
            "valid": validation.valid,
            "errors": validation.errors,
            "shipping_requirements": shipping_requirements(lines),
            "free_shipping": free_shipping_eligibility(
                summary.subtotal, settings.STORE_SHIPPING["NATIONAL"]["free_threshold"]
            ),
        })
        return JsonResponse(payload)


def _wishlist_entry(item):
    product = item.product
    return {
        "id": item.pk,
        "product_id": str(product.pk),
        "created_at": item.created_at.isoformat(),
        "product": {
            "id": str(product.pk),
            "name": product.name,
            "price": float(product.price),
            "sku": product.sku,
            "images": resolve_product_images(product.images, product.sku),
            "is_active": product.is_active,
            "stock_quantity": product.stock_quantity,
        },
    }


@method_decorator(csrf_exempt, name="dispatch")
class WishlistView(View):
    """GET the wishlist ([] when anonymous), POST {"product_id"} to add."""

    def get(self, request):
        if not request.user.is_authenticated:
            return JsonResponse([], safe=False)
        items = WishlistItem.objects.filter(user=request.user).select_related("product")
        return JsonResponse([_wishlist_entry(item) for item in items], safe=False)

    @method_decorator(login_required_json)
    def post(self, request):
        try:
            data = parse_json(request)
        except InvalidJSON:
            return invalid_json_response()

        product = _active_product(data.get("product_id"))
        if product is None:
            return json_error("Product not found", status=404)

        item, created = WishlistItem.objects.get_or_create(user=request.user, product=product)
        return JsonResponse(
            {"ok": True, "item": _wishlist_entry(item), "created": created},
            status=201 if created else 200,
        )


@method_decorator(csrf_exempt, name="dispatch")
@method_decorator(login_required_json, name="dispatch")
class WishlistItemView(View):
    def delete(self, request, product_id):
        deleted, _ = WishlistItem.objects.filter(user=request.user, product_id=product_id).delete()
        return JsonResponse({"ok": True, "removed": bool(deleted)})


@method_decorator(csrf_exempt, name="dispatch")
class OrderCreateView(View):
    """Place an order (guest or logged in).

    POST /api/public/orders/
    {
        "orderData": {"shipping_first_name": "...", ..., "customer_email": "..."},
        "orderItems": [{"product_id": "...", "quantity": 2}]
    }
    """

    def post(self, request):
        try:
            data = parse_json(request)
        except InvalidJSON:
            return invalid_json_response()

        if not data.get("orderData") or not data.get("orderItems"):
            return json_error("Order data and items are required")

        user = request.user if request.user.is_authenticated else None
        try:
            order = services.create_order(
                user=user,
                order_data=data["orderData"],
                items=data["orderItems"],
            )
        except OutOfStockError as e:
            return json_error(str(e), status=409)
        except InvalidOrderError as e:
            return json_error(str(e))
        except Exception:
            logger.exception("Order creation failed")
            return json_error("Internal server error", status=500)

        send_order_status_email(order, Order.Status.PENDING)
        return JsonResponse({"ok": True, "order": order_to_dict(order, include_items=True)}, status=201)


def public_order_detail(request, order_number):
    """GET /api/public/orders/<order_number>/ - the order number is the lookup token."""
    order = Order.objects.filter(order_number=order_number).first()
    if order is None:
        return json_error("Order not found", status=404)
    return JsonResponse({"ok": True, "order": order_to_dict(order, include_items=True)})


@login_required_json
def account_orders(request):
    orders = Order.objects.filter(user=request.user).order_by("-created_at")
    return JsonResponse({"orders": [order_to_dict(o) for o in orders]})


@login_required_json
def account_order_detail(request, order_id):
    order = Order.objects.filter(pk=order_id, user=request.user).first()
    if order is None:
        return json_error("Order not found", status=404)
    return JsonResponse({"order": order_to_dict(order, include_items=True)})


@method_decorator(csrf_exempt, name="dispatch")
@method_decorator(login_required_json, name="dispatch")
class OrderCancelView(View):
    """GET whether the user's order can be cancelled; POST {"reason"} to cancel it."""

    def get_order(self, request, order_id):
        return Order.objects.filter(pk=order_id, user=request.user).first()

    def get(self, request, order_id):
        order = self.get_order(request, order_id)
        if order is None:
            return json_error("Order not found", status=404)

        can_cancel = order.is_cancellable
        return JsonResponse({
            "ok": True,
            "canCancel": can_cancel,
            "status": order.status,
            "orderNumber": order.order_number,
            "hoursElapsed": services.hours_since_placed(order),
            "cancellationWindow": "Available now" if can_cancel else "No longer available",
            "reason": "Order can be cancelled" if can_cancel else f"Cannot cancel {order.status} orders",
        })

    def post(self, request, order_id):
        order = self.get_order(request, order_id)
        if order is None:
            return json_error("Order not found or access denied", status=404)

        try:
            data = parse_json(request)
        except InvalidJSON:
            data = {}

        try:
            result = services.cancel_order(order, reason=data.get("reason", ""))
        except OrderNotCancellableError as e:
            return JsonResponse(
                {"ok": False, "error": str(e), "status": e.status, "canCancel": False},
                status=400,
            )

        return JsonResponse({
            "ok": True,
            "message": "Order cancelled successfully",
            "order": order_to_dict(result.order),
            "canCancel": False,
            "refundInfo": result.refund_info,
        })


@method_decorator(csrf_exempt, name="dispatch")
class SubscribeView(View):
    """Newsletter signup with a one-time welcome discount.

    POST /api/public/subscribe/
    {"email": "someone@example.com"}
    """

    def post(self, request):
        try:
            data = parse_json(request)
        except InvalidJSON:
            return invalid_json_response()

        email = data.get("email")
        if not isinstance(email, str) or not email.strip():
            return json_error("Valid email is required")
        try:
            validate_email(email.strip())
        except ValidationError:
            return json_error("Valid email is required")

        result = services.subscribe_newsletter(email)
        return JsonResponse({
            "ok": True,
            "code": result.code,
            "percentOff": result.percent_off,
            "expiresAt": result.expires_at.isoformat(),
            "alreadySubscribed": result.already_subscribed,
            "emailSent": result.email_sent,
        })


def sales_ticker(request):
    """GET /api/public/sales-ticker/ - cached for a minute; promo-only on error."""
    items = cache.get(SALES_TICKER_CACHE_KEY)
    if items is not None:
        return JsonResponse(items, safe=False)

    try:
        items = services.sales_ticker_items()
    except Exception:
        logger.exception("Failed to build sales ticker")
        return JsonResponse(services.promo_ticker_items(), safe=False)

    cache.set(SALES_TICKER_CACHE_KEY, items, SALES_TICKER_TTL)
    return JsonResponse(items, safe=False)
