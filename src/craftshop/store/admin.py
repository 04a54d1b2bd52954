from django.contrib import admin

from .models import (
    CartItem,
    DiscountCode,
    NewsletterSubscriber,
    Order,
    OrderItem,
    ShippingMethod,
    ShippingZone,
    WishlistItem,
)


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ["product", "product_name", "product_sku", "quantity", "unit_price", "total_price"]
    can_delete = False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = [
        "order_number",
        "customer_email",
        "status",
        "payment_status",
        "payment_method",
        "total_amount",
        "created_at",
    ]
    list_filter = ["status", "payment_status", "payment_method"]
    search_fields = ["order_number", "customer_email", "shipping_first_name", "shipping_last_name"]
    readonly_fields = ["order_number", "created_at", "updated_at", "payment_confirmed_at"]
    inlines = [OrderItemInline]


@admin.register(CartItem)
class CartItemAdmin(admin.ModelAdmin):
    list_display = ["user", "product", "quantity", "updated_at"]


@admin.register(WishlistItem)
class WishlistItemAdmin(admin.ModelAdmin):
    list_display = ["user", "product", "created_at"]


@admin.register(NewsletterSubscriber)
class NewsletterSubscriberAdmin(admin.ModelAdmin):
    list_display = ["email", "is_active", "created_at"]
    search_fields = ["email"]


@admin.register(DiscountCode)
class DiscountCodeAdmin(admin.ModelAdmin):
    list_display = ["code", "percent_off", "email", "used_count", "usage_limit", "expires_at", "is_active"]
    list_filter = ["is_active"]
    search_fields = ["code", "email"]


@admin.register(ShippingZone)
class ShippingZoneAdmin(admin.ModelAdmin):
    list_display = ["name", "countries", "is_active"]


@admin.register(ShippingMethod)
class ShippingMethodAdmin(admin.ModelAdmin):
    list_display = ["name", "type", "base_cost", "free_shipping_threshold", "is_active"]
    list_filter = ["type", "is_active"]
    filter_horizontal = ["zones"]
