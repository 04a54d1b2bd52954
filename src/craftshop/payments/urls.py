"""Payment URLs, mounted under /api/."""

from django.urls import path

from . import views

app_name = "payments"

urlpatterns = [
    path("payments/methods/", views.payment_methods, name="methods"),
    path("orders/<str:order_number>/pay/", views.OrderPayView.as_view(), name="order-pay"),

    # Stripe
    path(
        "payments/stripe/create-payment-intent/",
        views.StripePaymentIntentView.as_view(),
        name="stripe-payment-intent",
    ),
    path("payments/stripe/webhook/", views.stripe_webhook, name="stripe-webhook"),

    # Mobile wallets
    path("payments/jazzcash/callback/", views.JazzCashCallbackView.as_view(), name="jazzcash-callback"),
    path("payments/easypaisa/webhook/", views.EasyPaisaWebhookView.as_view(), name="easypaisa-webhook"),
    path("payments/easypaisa/callback/", views.EasyPaisaCallbackView.as_view(), name="easypaisa-callback"),
]
