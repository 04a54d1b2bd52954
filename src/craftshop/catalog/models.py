"""Catalog models: categories and products."""

import uuid

from django.db import models
from django.utils.text import slugify


class Category(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=120, unique=True)
    slug = models.SlugField(max_length=140, blank=True)
    description = models.TextField(blank=True, default="")
    image_url = models.CharField(max_length=500, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "categories"

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = slugify(self.name)
        super().save(*args, **kwargs)


class ProductQuerySet(models.QuerySet):
    def active(self):
        return self.filter(is_active=True)

    def featured(self):
        return self.filter(is_active=True, is_featured=True)


class Product(models.Model):
    """A catalog item.

    `images` holds bucket-relative names or absolute URLs; see
    `catalog.images` for how they are resolved for output.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True, default="")
    price = models.DecimalField(max_digits=12, decimal_places=2)
    compare_at_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    sku = models.CharField(max_length=64, unique=True)
    images = models.JSONField(default=list, blank=True)
    category = models.ForeignKey(
        Category,
        on_delete=models.PROTECT,
        related_name="products",
    )
    stock_quantity = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)
    is_featured = models.BooleanField(default=False)

    materials = models.JSONField(default=list, blank=True)
    colors = models.JSONField(default=list, blank=True)
    dimensions = models.JSONField(null=True, blank=True)
    weight = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)

    # Tax
    tax_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Percentage; overrides the destination rate when set",
    )
    is_taxable = models.BooleanField(default=True)

    # Shipping
    requires_shipping = models.BooleanField(default=True)
    shipping_weight = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)
    is_fragile = models.BooleanField(default=False)
    is_hazardous = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ProductQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["is_active", "is_featured"], name="product_active_featured_idx"),
        ]

    def __str__(self):
        return f"{self.name} ({self.sku})"

    @property
    def effective_weight(self):
        """Shipping weight if set, otherwise catalog weight, otherwise 0."""
        if self.shipping_weight is not None:
            return self.shipping_weight
        if self.weight is not None:
            return self.weight
        return 0
