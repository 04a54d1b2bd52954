"""Plain-dict serialization of catalog objects for the JSON API."""

from .images import resolve_category_image, resolve_product_images


def _number(value):
    return float(value) if value is not None else None


def product_to_dict(product, normalize_images=True):
    """Serialize a product. Null `compare_at_price` and `weight` are omitted."""
    data = {
        "id": str(product.pk),
        "name": product.name,
        "description": product.description,
        "price": _number(product.price),
        "sku": product.sku,
        "images": (
            resolve_product_images(product.images, product.sku)
            if normalize_images
            else list(product.images or [])
        ),
        "category_id": str(product.category_id) if product.category_id else None,
        "stock_quantity": product.stock_quantity,
        "is_active": product.is_active,
        "is_featured": product.is_featured,
        "materials": product.materials or [],
        "colors": product.colors or [],
        "dimensions": product.dimensions,
        "tax_rate": _number(product.tax_rate),
        "is_taxable": product.is_taxable,
        "requires_shipping": product.requires_shipping,
        "shipping_weight": _number(product.shipping_weight),
        "is_fragile": product.is_fragile,
        "is_hazardous": product.is_hazardous,
        "created_at": product.created_at.isoformat() if product.created_at else None,
        "updated_at": product.updated_at.isoformat() if product.updated_at else None,
    }
    if product.compare_at_price is not None:
        data["compare_at_price"] = _number(product.compare_at_price)
    if product.weight is not None:
        data["weight"] = _number(product.weight)
    return data


def category_to_dict(category):
    return {
        "id": str(category.pk),
        "name": category.name,
        "slug": category.slug,
        "description": category.description,
        "image_url": resolve_category_image(category.image_url, category.name),
        "created_at": category.created_at.isoformat() if category.created_at else None,
        "updated_at": category.updated_at.isoformat() if category.updated_at else None,
    }
