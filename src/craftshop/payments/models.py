"""Payment transaction and webhook audit models."""

from django.db import models


class PaymentTransaction(models.Model):
    """One provider transaction applied to an order.

    Upserted by provider and transaction id, so repeated notifications for
    the same transaction update a single row.
    """

    class Provider(models.TextChoices):
        STRIPE = "stripe", "Stripe"
        JAZZCASH = "jazzcash", "JazzCash"
        EASYPAISA = "easypaisa", "EasyPaisa"
        COD = "cod", "Cash on delivery"
        BANK_TRANSFER = "bank_transfer", "Bank transfer"

    class Status(models.TextChoices):
        SUCCEEDED = "succeeded", "Succeeded"
        PENDING = "pending", "Pending"
        FAILED = "failed", "Failed"

    order = models.ForeignKey(
        "store.Order",
        on_delete=models.CASCADE,
        related_name="payment_transactions",
    )
    provider = models.CharField(max_length=20, choices=Provider.choices)
    transaction_id = models.CharField(max_length=255)
    amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    currency = models.CharField(max_length=3, default="PKR")
    status = models.CharField(max_length=20, choices=Status.choices)
    response_code = models.CharField(max_length=20, blank=True, default="")
    response_message = models.CharField(max_length=255, blank=True, default="")
    gateway_response = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["provider", "transaction_id"],
                name="unique_provider_transaction",
            ),
        ]

    def __str__(self):
        return f"{self.provider}:{self.transaction_id} ({self.status})"


class WebhookLog(models.Model):
    """Raw inbound webhook payload, kept for audit."""

    provider = models.CharField(max_length=20)
    event_type = models.CharField(max_length=100, blank=True, default="")
    payload = models.JSONField(default=dict, blank=True)
    signature_valid = models.BooleanField(default=False)
    processed = models.BooleanField(default=False)
    error = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.provider} {self.event_type} @ {self.created_at:%Y-%m-%d %H:%M}"
