"""Catalog app configuration."""

from django.apps import AppConfig


class CatalogConfig(AppConfig):
    """Configuration for the product catalog."""

    name = "craftshop.catalog"
    verbose_name = "Catalog"
    default_auto_field = "django.db.models.BigAutoField"
