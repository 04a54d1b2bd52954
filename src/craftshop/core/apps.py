"""Core app configuration."""

from django.apps import AppConfig


class CoreConfig(AppConfig):
    """Configuration for the core application."""

    name = "craftshop.core"
    verbose_name = "Craftshop Core"
    default_auto_field = "django.db.models.BigAutoField"
