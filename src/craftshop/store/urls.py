"""Store URLs, mounted under /api/."""

from django.urls import path

from . import views

app_name = "store"

urlpatterns = [
    # Cart
    path("cart/", views.CartView.as_view(), name="cart"),
    path("cart/summary/", views.CartSummaryView.as_view(), name="cart-summary"),
    path("cart/<uuid:product_id>/", views.CartItemView.as_view(), name="cart-item"),

    # Wishlist
    path("public/wishlist/", views.WishlistView.as_view(), name="wishlist"),
    path("public/wishlist/<uuid:product_id>/", views.WishlistItemView.as_view(), name="wishlist-item"),

    # Checkout and order lookup
    path("public/orders/", views.OrderCreateView.as_view(), name="order-create"),
    path("public/orders/<str:order_number>/", views.public_order_detail, name="public-order"),

    # Account orders
    path("account/orders/", views.account_orders, name="account-orders"),
    path("account/orders/<uuid:order_id>/", views.account_order_detail, name="account-order"),
    path("orders/<uuid:order_id>/cancel/", views.OrderCancelView.as_view(), name="order-cancel"),

    # Newsletter and ticker
    path("public/subscribe/", views.SubscribeView.as_view(), name="subscribe"),
    path("public/sales-ticker/", views.sales_ticker, name="sales-ticker"),
]
