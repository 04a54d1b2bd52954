"""Sitemap for the storefront pages served by the frontend."""

from typing import NamedTuple
from urllib.parse import urlsplit

from django.conf import settings
from django.contrib.sitemaps import Sitemap

from .models import Category, Product


class StorefrontSite(NamedTuple):
    domain: str
    name: str


class StorefrontSitemap(Sitemap):
    """Locations are absolute on SITE_URL, not on the API host serving the request."""

    def get_urls(self, page=1, site=None, protocol=None):
        storefront = urlsplit(settings.SITE_URL)
        site = StorefrontSite(domain=storefront.netloc + storefront.path.rstrip("/"), name=settings.STORE_NAME)
        return super().get_urls(page=page, site=site, protocol=storefront.scheme or protocol)


class StaticPageSitemap(StorefrontSitemap):
    changefreq = "weekly"

    pages = {
        "/": 1.0,
        "/products": 0.9,
        "/categories": 0.8,
        "/featured": 0.8,
        "/about": 0.5,
        "/contact": 0.5,
        "/faq": 0.4,
        "/shipping": 0.4,
        "/returns": 0.4,
        "/care": 0.4,
    }

    def items(self):
        return list(self.pages)

    def location(self, item):
        return item

    def priority(self, item):
        return self.pages[item]


class ProductSitemap(StorefrontSitemap):
    changefreq = "weekly"
    priority = 0.7

    def items(self):
        return Product.objects.active().order_by("-updated_at")

    def location(self, product):
        return f"/products/{product.pk}"

    def lastmod(self, product):
        return product.updated_at


class CategorySitemap(StorefrontSitemap):
    changefreq = "weekly"
    priority = 0.6

    def items(self):
        return Category.objects.order_by("name")

    def location(self, category):
        return f"/categories/{category.pk}"

    def lastmod(self, category):
        return category.updated_at


sitemaps = {
    "static": StaticPageSitemap,
    "products": ProductSitemap,
    "categories": CategorySitemap,
}
