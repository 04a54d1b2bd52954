from django.contrib import admin

from .models import PaymentTransaction, WebhookLog


@admin.register(PaymentTransaction)
class PaymentTransactionAdmin(admin.ModelAdmin):
    list_display = ["transaction_id", "provider", "order", "amount", "status", "created_at"]
    list_filter = ["provider", "status"]
    search_fields = ["transaction_id", "order__order_number"]
    readonly_fields = ["gateway_response", "created_at", "updated_at"]


@admin.register(WebhookLog)
class WebhookLogAdmin(admin.ModelAdmin):
    list_display = ["provider", "event_type", "signature_valid", "processed", "created_at"]
    list_filter = ["provider", "signature_valid", "processed"]
    readonly_fields = ["payload", "created_at"]
