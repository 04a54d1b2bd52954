"""Image URL normalization for products and categories.

Stored image values are a mix of absolute URLs, bucket-relative file
names and legacy `placeholder.svg` references. Everything the API emits
goes through these functions so clients always get absolute URLs.
"""

import re

from django.conf import settings

_ABSOLUTE_URL = re.compile(r"^https?://", re.IGNORECASE)

# Known catalog SKUs and their files in the site-assets bucket
SKU_IMAGE_MAP = {
    "RWM-001": "rustic-wooden-mirror.png",
    "VBM-002": "vintage-brass-mirror.png",
    "HRC-003": "handwoven-rattan-chair.png",
    "CTL-004": "ceramic-table-lamp.png",
    "MWH-005": "macrame-wall-hanging.png",
    "WCT-006": "live-edge-coffee-table.png",
    "PLF-007": "woven-pendant-light.png",
    "CVS-008": "ceramic-vase-set.png",
    "WSB-009": "woven-storage-basket.png",
    "CWS-010": "copper-wall-sconce.png",
    "ETP-011": "embroidered-throw-pillow.png",
    "RWS-012": "reclaimed-wood-shelf.png",
}

# Lower-cased category name -> file in the site-assets bucket
CATEGORY_IMAGE_MAP = {
    "mirrors": "decorative-mirrors.png",
    "furniture": "handcrafted-furniture.png",
    "lighting": "artisan-lighting.png",
    "decor": "home-decor-accessories.png",
    "textiles": "handwoven-textiles.png",
    "artificial flowers": "flowers.jpg",
}

IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".webp", ".svg")


def asset_base():
    base = settings.ASSET_BASE_URL
    return base if base.endswith("/") else base + "/"


def asset_url(name):
    """Public URL for a file in the site-assets bucket."""
    return asset_base() + str(name).lstrip("/")


def placeholder_url():
    return asset_url("placeholder.jpg")


def is_absolute(url):
    return bool(_ABSOLUTE_URL.match(url or ""))


def _is_placeholder(value):
    return not value or "placeholder.svg" in value


def normalize_image_url(value):
    """Normalize one stored image value to an absolute URL."""
    url = str(value or "").strip()
    if _is_placeholder(url):
        return placeholder_url()
    if not is_absolute(url):
        return asset_url(url)
    return url


def resolve_product_images(images, sku):
    """Normalize a product's image list.

    When nothing usable is stored, fall back to the SKU's known bucket file,
    and failing that to a single placeholder.
    """
    if not isinstance(images, (list, tuple)):
        images = []

    placeholder = placeholder_url()
    resolved = [normalize_image_url(v) for v in images]

    if not resolved or all(u == placeholder for u in resolved):
        filename = SKU_IMAGE_MAP.get(str(sku or ""))
        if filename:
            return [asset_url(filename)]
        if not resolved:
            return [placeholder]
    return resolved


def resolve_category_image(image_url, name):
    """Normalize a category image, falling back to the name map.

    An unknown category with no image stays "".
    """
    url = str(image_url or "").strip()
    if _is_placeholder(url):
        filename = CATEGORY_IMAGE_MAP.get(str(name or "").strip().lower())
        url = asset_url(filename) if filename else ""
    if url and not is_absolute(url):
        url = asset_url(url)
    return url
