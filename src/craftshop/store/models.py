"""Store models: cart, wishlist, orders, newsletter and shipping rules."""

import uuid

from django.conf import settings
from django.db import models

from craftshop.catalog.models import Product


class CartItem(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="cart_items")
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name="+")
    quantity = models.PositiveIntegerField(default=1)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(fields=["user", "product"], name="unique_cart_item"),
        ]

    def __str__(self):
        return f"{self.quantity} x {self.product_id}"


class WishlistItem(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="wishlist_items")
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name="+")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(fields=["user", "product"], name="unique_wishlist_item"),
        ]


class Order(models.Model):
    """A placed order.

    Guest orders have no user; the order number doubles as the lookup
    token for the public order page.
    """

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        CONFIRMED = "confirmed", "Confirmed"
        PROCESSING = "processing", "Processing"
        SHIPPED = "shipped", "Shipped"
        DELIVERED = "delivered", "Delivered"
        CANCELLED = "cancelled", "Cancelled"
        PAYMENT_FAILED = "payment_failed", "Payment failed"

    class PaymentStatus(models.TextChoices):
        PENDING = "pending", "Pending"
        PAID = "paid", "Paid"
        FAILED = "failed", "Failed"
        REFUNDED = "refunded", "Refunded"

    CANCELLABLE_STATUSES = (Status.PENDING, Status.CONFIRMED, Status.PAYMENT_FAILED)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders",
    )
    order_number = models.CharField(max_length=40, unique=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)

    # Payment
    payment_status = models.CharField(
        max_length=20, choices=PaymentStatus.choices, default=PaymentStatus.PENDING
    )
    payment_method = models.CharField(max_length=32, blank=True, default="")
    payment_fee = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    payment_id = models.CharField(max_length=255, blank=True, default="")
    transaction_id = models.CharField(max_length=255, blank=True, default="")
    payment_confirmed_at = models.DateTimeField(null=True, blank=True)

    # Money
    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    tax_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    shipping_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    currency = models.CharField(max_length=3, default="PKR")

    # Shipping address
    shipping_first_name = models.CharField(max_length=100, blank=True, default="")
    shipping_last_name = models.CharField(max_length=100, blank=True, default="")
    shipping_company = models.CharField(max_length=200, blank=True, default="")
    shipping_address_line_1 = models.CharField(max_length=255, blank=True, default="")
    shipping_address_line_2 = models.CharField(max_length=255, blank=True, default="")
    shipping_city = models.CharField(max_length=100, blank=True, default="")
    shipping_state = models.CharField(max_length=100, blank=True, default="")
    shipping_postal_code = models.CharField(max_length=20, blank=True, default="")
    shipping_country = models.CharField(max_length=2, blank=True, default="PK")

    # Billing address
    billing_first_name = models.CharField(max_length=100, blank=True, default="")
    billing_last_name = models.CharField(max_length=100, blank=True, default="")
    billing_company = models.CharField(max_length=200, blank=True, default="")
    billing_address_line_1 = models.CharField(max_length=255, blank=True, default="")
    billing_address_line_2 = models.CharField(max_length=255, blank=True, default="")
    billing_city = models.CharField(max_length=100, blank=True, default="")
    billing_state = models.CharField(max_length=100, blank=True, default="")
    billing_postal_code = models.CharField(max_length=20, blank=True, default="")
    billing_country = models.CharField(max_length=2, blank=True, default="PK")

    customer_email = models.EmailField(blank=True, default="")
    customer_phone = models.CharField(max_length=32, blank=True, default="")
    notes = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "created_at"], name="order_status_created_idx"),
            models.Index(fields=["customer_email"], name="order_customer_email_idx"),
        ]

    def __str__(self):
        return self.order_number

    @property
    def is_cancellable(self):
        return self.status in self.CANCELLABLE_STATUSES

    @property
    def is_paid(self):
        return self.payment_status == self.PaymentStatus.PAID

    @property
    def customer_name(self):
        return f"{self.shipping_first_name} {self.shipping_last_name}".strip()

    @property
    def contact_email(self):
        """Email to notify: the order's customer email, else the account email."""
        if self.customer_email:
            return self.customer_email
        if self.user_id and self.user:
            return self.user.email
        return ""


class OrderItem(models.Model):
    """Line item with a snapshot of the product at purchase time."""

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey(
        Product,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="order_items",
    )
    product_name = models.CharField(max_length=200)
    product_sku = models.CharField(max_length=64)
    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    total_price = models.DecimalField(max_digits=12, decimal_places=2)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]

    def __str__(self):
        return f"{self.quantity} x {self.product_name}"


class NewsletterSubscriber(models.Model):
    email = models.EmailField(unique=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.email


class DiscountCode(models.Model):
    code = models.CharField(max_length=40, unique=True)
    percent_off = models.DecimalField(max_digits=5, decimal_places=2)
    email = models.EmailField(blank=True, default="")
    usage_limit = models.PositiveIntegerField(default=1)
    used_count = models.PositiveIntegerField(default=0)
    expires_at = models.DateTimeField(null=True, blank=True)
    is_active = models.BooleanField(default=True)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.code


class ShippingZone(models.Model):
    """Destination area, matched by country then optional state/postal prefix."""

    name = models.CharField(max_length=100)
    description = models.TextField(blank=True, default="")
    countries = models.JSONField(default=list)
    states = models.JSONField(default=list, blank=True)
    postal_codes = models.JSONField(default=list, blank=True, help_text="Postal code prefixes")
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["id"]

    def __str__(self):
        return self.name


class ShippingMethod(models.Model):
    class Type(models.TextChoices):
        FIXED = "fixed", "Fixed"
        WEIGHT_BASED = "weight_based", "Weight based"
        ZONE_BASED = "zone_based", "Zone based"
        CARRIER_CALCULATED = "carrier_calculated", "Carrier calculated"
        FREE = "free", "Free"

    name = models.CharField(max_length=100)
    description = models.TextField(blank=True, default="")
    type = models.CharField(max_length=20, choices=Type.choices, default=Type.FIXED)
    base_cost = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    per_weight_cost = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    per_item_cost = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    free_shipping_threshold = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    max_weight = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    zones = models.ManyToManyField(ShippingZone, related_name="methods", blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["id"]

    def __str__(self):
        return self.name
