"""Admin JSON API.

Every view requires a store admin, either a logged-in session or an
`Authorization: Bearer <token>` header issued by /api/auth/token/.
"""

import logging
import uuid

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import Count, ProtectedError
from django.http import JsonResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from craftshop.catalog.events import NEW_PRODUCT, PRODUCT_DELETED, PRODUCT_UPDATED, broadcast_product_event
from craftshop.catalog.models import Category, Product
from craftshop.catalog.serializers import category_to_dict, product_to_dict
from craftshop.core.decorators import admin_required
from craftshop.core.http import InvalidJSON, invalid_json_response, json_error, parse_json
from craftshop.core.views import user_to_dict
from craftshop.store.emails import send_order_status_email
from craftshop.store.exceptions import InvalidOrderError
from craftshop.store.models import Order
from craftshop.store.serializers import order_to_dict
from craftshop.store.services import set_order_status

from . import services
from .services import ProductPayloadError

logger = logging.getLogger(__name__)


def _get_or_none(queryset, pk):
    try:
        return queryset.get(pk=uuid.UUID(str(pk)))
    except (queryset.model.DoesNotExist, ValueError):
        return None


def admin_view(cls):
    """csrf_exempt + admin_required on every handler of a class-based view."""
    cls = method_decorator(csrf_exempt, name="dispatch")(cls)
    return method_decorator(admin_required, name="dispatch")(cls)


@csrf_exempt
@require_GET
@admin_required
def dashboard(request):
    try:
        stats = services.dashboard_stats()
    except Exception:
        logger.exception("Failed to build dashboard stats")
        return json_error("Failed to load dashboard statistics", status=500)
    return JsonResponse(stats)


# Products

def _save_product(product, fields):
    """Apply fields and save; duplicate SKUs surface as IntegrityError."""
    for name, value in fields.items():
        setattr(product, name, value)
    with transaction.atomic():
        product.save()
    return product


def _update_product(product, updates):
    try:
        fields = services.product_fields_from_payload(updates, partial=True)
    except ProductPayloadError as e:
        return json_error(str(e))
    try:
        with transaction.atomic():
            _save_product(product, fields)
            broadcast_product_event(PRODUCT_UPDATED, product)
    except IntegrityError:
        return json_error("A product with this SKU already exists", status=409)

    logger.info("Product updated", extra={"product_id": str(product.pk), "fields": sorted(fields)})
    return JsonResponse({"ok": True, "product": product_to_dict(product)})


@admin_view
class ProductsView(View):
    """GET all products, POST to create, PATCH {"productId", "updates"} to edit."""

    def get(self, request):
        products = Product.objects.select_related("category").order_by("-created_at")
        return JsonResponse([product_to_dict(p) for p in products], safe=False)

    def post(self, request):
        try:
            data = parse_json(request)
        except InvalidJSON:
            return invalid_json_response()

        try:
            fields = services.product_fields_from_payload(data)
        except ProductPayloadError as e:
            return json_error(str(e))

        try:
            with transaction.atomic():
                product = _save_product(Product(), fields)
                broadcast_product_event(NEW_PRODUCT, product)
        except IntegrityError:
            return json_error("A product with this SKU already exists", status=409)

        logger.info("Product created", extra={"product_id": str(product.pk), "sku": product.sku})
        return JsonResponse(
            {
                "ok": True,
                "product": product_to_dict(product),
                "message": f'Product "{product.name}" created successfully and is now live!',
            },
            status=201,
        )

    def patch(self, request):
        try:
            data = parse_json(request)
        except InvalidJSON:
            return invalid_json_response()

        updates = data.get("updates")
        if not data.get("productId") or not isinstance(updates, dict):
            return json_error("productId and updates are required")

        product = _get_or_none(Product.objects.all(), data["productId"])
        if product is None:
            return json_error("Product not found", status=404)
        return _update_product(product, updates)


@admin_view
class ProductDetailView(View):
    def get(self, request, product_id):
        product = _get_or_none(Product.objects.all(), product_id)
        if product is None:
            return json_error("Product not found", status=404)
        return JsonResponse(product_to_dict(product))

    def patch(self, request, product_id):
        try:
            data = parse_json(request)
        except InvalidJSON:
            return invalid_json_response()

        product = _get_or_none(Product.objects.all(), product_id)
        if product is None:
            return json_error("Product not found", status=404)
        return _update_product(product, data)

    def delete(self, request, product_id):
        product = _get_or_none(Product.objects.all(), product_id)
        if product is None:
            return json_error("Product not found", status=404)

        with transaction.atomic():
            broadcast_product_event(PRODUCT_DELETED, product)
            product.delete()

        logger.info("Product deleted", extra={"product_id": str(product_id), "sku": product.sku})
        return JsonResponse({"ok": True, "deleted": str(product_id)})


# Categories

CATEGORY_FIELDS = ("name", "description", "image_url")


@admin_view
class CategoriesView(View):
    def get(self, request):
        categories = Category.objects.annotate(product_count=Count("products")).order_by("name")
        return JsonResponse(
            [{**category_to_dict(c), "product_count": c.product_count} for c in categories],
            safe=False,
        )

    def post(self, request):
        try:
            data = parse_json(request)
        except InvalidJSON:
            return invalid_json_response()

        values = {f: str(data.get(f) or "").strip() for f in CATEGORY_FIELDS}
        if not all(values.values()):
            return json_error("Missing required fields: name, description, image_url")

        try:
            with transaction.atomic():
                category = Category.objects.create(**values)
        except IntegrityError:
            return json_error("A category with this name already exists", status=409)

        logger.info("Category created", extra={"category_id": str(category.pk)})
        return JsonResponse({"ok": True, "category": category_to_dict(category)}, status=201)


@admin_view
class CategoryDetailView(View):
    def get(self, request, category_id):
        category = _get_or_none(Category.objects.all(), category_id)
        if category is None:
            return json_error("Category not found", status=404)
        return JsonResponse(category_to_dict(category))

    def patch(self, request, category_id):
        try:
            data = parse_json(request)
        except InvalidJSON:
            return invalid_json_response()

        category = _get_or_none(Category.objects.all(), category_id)
        if category is None:
            return json_error("Category not found", status=404)

        for field in CATEGORY_FIELDS:
            if field in data:
                value = str(data[field] or "").strip()
                if field == "name" and not value:
                    return json_error("name cannot be blank")
                setattr(category, field, value)
        if "slug" in data:
            category.slug = str(data["slug"] or "").strip()

        try:
            with transaction.atomic():
                category.save()
        except IntegrityError:
            return json_error("A category with this name already exists", status=409)
        return JsonResponse({"ok": True, "category": category_to_dict(category)})

    def delete(self, request, category_id):
        category = _get_or_none(Category.objects.all(), category_id)
        if category is None:
            return json_error("Category not found", status=404)

        product_count = category.products.count()
        if product_count:
            return json_error(
                f"Cannot delete category with {product_count} existing product(s)",
                status=409,
                product_count=product_count,
            )
        try:
            category.delete()
        except ProtectedError:
            return json_error("Cannot delete category with existing products", status=409)

        logger.info("Category deleted", extra={"category_id": str(category_id)})
        return JsonResponse({"ok": True, "deleted": str(category_id)})


@csrf_exempt
@require_POST
@admin_required
def sync_category_images(request):
    return JsonResponse(services.sync_category_images())


# Orders

@admin_view
class OrdersView(View):
    """GET orders (optional ?status=), PATCH {"orderId", "status", "notify"}."""

    def get(self, request):
        orders = Order.objects.select_related("user").order_by("-created_at")
        status = request.GET.get("status")
        if status:
            if status not in Order.Status.values:
                return json_error(f"Invalid status: {status}")
            orders = orders.filter(status=status)
        return JsonResponse(
            [{**order_to_dict(o), "customer_name": o.customer_name} for o in orders],
            safe=False,
        )

    def patch(self, request):
        try:
            data = parse_json(request)
        except InvalidJSON:
            return invalid_json_response()

        if not data.get("orderId") or not data.get("status"):
            return json_error("orderId and status are required")

        order = _get_or_none(Order.objects.all(), data["orderId"])
        if order is None:
            return json_error("Order not found", status=404)

        try:
            result = set_order_status(order, data["status"], notify=bool(data.get("notify")))
        except InvalidOrderError as e:
            return json_error(str(e))

        payload = {
            "ok": True,
            "order": order_to_dict(result.order),
            "previous_status": result.previous_status,
        }
        if result.email is not None:
            payload["email"] = {
                "sent": result.email.sent,
                "to": result.email.to,
                "subject": result.email.subject,
                "sent_to_admin": result.email.sent_to_admin,
            }
        return JsonResponse(payload)


@csrf_exempt
@require_GET
@admin_required
def order_detail(request, order_id):
    order = _get_or_none(Order.objects.select_related("user"), order_id)
    if order is None:
        return json_error("Order not found", status=404)
    return JsonResponse({"ok": True, "order": order_to_dict(order, include_items=True)})


@csrf_exempt
@require_POST
@admin_required
def send_status_email(request):
    """POST {"orderId", "status"?} - resend a status email on demand."""
    try:
        data = parse_json(request)
    except InvalidJSON:
        return invalid_json_response()

    if not data.get("orderId"):
        return json_error("orderId is required")
    order = _get_or_none(Order.objects.select_related("user"), data["orderId"])
    if order is None:
        return json_error("Order not found", status=404)

    status = data.get("status") or order.status
    if status not in Order.Status.values:
        return json_error(f"Invalid status: {status}")

    result = send_order_status_email(order, status)
    if not result.sent:
        return json_error("Failed to send email", status=502, sentTo=result.to)
    return JsonResponse({
        "ok": True,
        "message": "Status email sent",
        "sentTo": result.to,
        "subject": result.subject,
        "sentToAdmin": result.sent_to_admin,
    })


# Customers

@csrf_exempt
@require_GET
@admin_required
def customer_list(request):
    User = get_user_model()
    users = User.objects.annotate(order_count=Count("orders")).order_by("-date_joined")
    return JsonResponse(
        [
            {**user_to_dict(u), "order_count": u.order_count, "date_joined": u.date_joined.isoformat()}
            for u in users
        ],
        safe=False,
    )


def _order_row(order):
    return {
        "id": str(order.pk),
        "order_number": order.order_number,
        "status": order.status,
        "total_amount": float(order.total_amount),
        "created_at": order.created_at.isoformat(),
    }


@csrf_exempt
@require_GET
@admin_required
def customer_detail(request, customer_id):
    user = _get_or_none(get_user_model().objects.all(), customer_id)
    if user is None:
        return json_error("Customer not found", status=404)

    orders = user.orders.order_by("-created_at")[:10]
    return JsonResponse({
        "ok": True,
        "customer": {**user_to_dict(user), "date_joined": user.date_joined.isoformat()},
        "orders": [_order_row(o) for o in orders],
    })


@csrf_exempt
@require_GET
@admin_required
def guest_customer(request):
    """GET ?email= - a guest "profile" built from the latest guest order."""
    email = (request.GET.get("email") or "").strip()
    if not email:
        return json_error("email is required")

    orders = Order.objects.filter(user__isnull=True, customer_email__iexact=email).order_by("-created_at")
    latest = orders.first()
    if latest is None:
        return json_error("Guest customer not found", status=404)

    customer = {
        "id": None,
        "email": latest.customer_email,
        "phone": latest.customer_phone,
        "first_name": latest.shipping_first_name,
        "last_name": latest.shipping_last_name,
        "full_name": latest.customer_name or None,
        "role": "guest",
        "created_at": latest.created_at.isoformat(),
    }
    return JsonResponse({"ok": True, "customer": customer, "orders": [_order_row(o) for o in orders[:10]]})


# Assets

@csrf_exempt
@require_POST
@admin_required
def upload_assets(request):
    """Multipart upload of image files into the site-assets area of default storage."""
    files = request.FILES.getlist("files")
    if not files:
        return json_error("No files uploaded")

    uploaded, failed = [], []
    for upload in files:
        try:
            uploaded.append(services.store_asset(upload))
        except ValueError as e:
            failed.append({"file": upload.name, "error": str(e)})
        except OSError as e:
            logger.exception("Asset upload failed", extra={"file": upload.name})
            failed.append({"file": upload.name, "error": str(e)})

    logger.info("Assets uploaded", extra={"uploaded": len(uploaded), "failed": len(failed)})
    return JsonResponse({"ok": not failed, "uploaded": uploaded, "failed": failed})
