"""Public catalog API."""

import uuid

from django.core.exceptions import ValidationError
from django.http import JsonResponse

from .models import Category, Product
from .serializers import category_to_dict, product_to_dict


def _get_or_none(queryset, pk):
    """Fetch by primary key; malformed ids count as missing."""
    try:
        return queryset.get(pk=pk)
    except (queryset.model.DoesNotExist, ValidationError, ValueError):
        return None


def product_list(request):
    """GET /api/public/products/ - active products, newest first."""
    products = Product.objects.active().order_by("-created_at")

    category_id = request.GET.get("category")
    if category_id:
        try:
            products = products.filter(category_id=uuid.UUID(category_id))
        except ValueError:
            return JsonResponse({"ok": False, "error": "Invalid category id"}, status=400)

    return JsonResponse([product_to_dict(p) for p in products], safe=False)


def product_detail(request, product_id):
    product = _get_or_none(Product.objects.active(), product_id)
    if product is None:
        return JsonResponse({"ok": False, "error": "Product not found"}, status=404)
    return JsonResponse(product_to_dict(product))


def featured_products(request):
    products = Product.objects.featured().order_by("-created_at")
    return JsonResponse([product_to_dict(p) for p in products], safe=False)


def category_list(request):
    categories = Category.objects.order_by("name")
    return JsonResponse([category_to_dict(c) for c in categories], safe=False)


def category_products(request, category_id):
    category = _get_or_none(Category.objects.all(), category_id)
    if category is None:
        return JsonResponse({"ok": False, "error": "Category not found"}, status=404)

    products = category.products.filter(is_active=True).order_by("-created_at")
    return JsonResponse({
        "category": category_to_dict(category),
        "products": [product_to_dict(p) for p in products],
    })
