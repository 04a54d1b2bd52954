"""Stripe PaymentIntents and webhook verification."""

import logging

import stripe
from django.conf import settings

from .exceptions import InvalidSignatureError, PaymentConfigurationError

logger = logging.getLogger(__name__)

SUCCEEDED_EVENT = "payment_intent.succeeded"
FAILED_EVENT = "payment_intent.payment_failed"


def _api_key():
    if not settings.STRIPE_SECRET_KEY:
        raise PaymentConfigurationError("Stripe is not configured")
    return settings.STRIPE_SECRET_KEY


def to_minor_units(amount) -> int:
    return int(round(amount * 100))


def _shipping_details(order):
    if not order.shipping_address_line_1:
        return None
    return {
        "name": order.customer_name,
        "phone": order.customer_phone or None,
        "address": {
            "line1": order.shipping_address_line_1,
            "line2": order.shipping_address_line_2 or None,
            "city": order.shipping_city,
            "state": order.shipping_state or None,
            "postal_code": order.shipping_postal_code or None,
            "country": order.shipping_country or "PK",
        },
    }


def create_payment_intent(order, amount):
    """Create a PaymentIntent for an order.

    Args:
        order: Order being paid
        amount: Amount to charge in major units (order total plus fee)

    Returns:
        The Stripe PaymentIntent

    Raises:
        PaymentConfigurationError: STRIPE_SECRET_KEY is not set
        stripe.StripeError: The API call failed
    """
    params = {
        "amount": to_minor_units(amount),
        "currency": order.currency.lower(),
        "metadata": {
            "order_id": str(order.pk),
            "order_number": order.order_number,
            "customer_email": order.contact_email,
        },
        "description": f"Payment for Order #{order.order_number}",
        "automatic_payment_methods": {"enabled": True},
    }
    if order.contact_email:
        params["receipt_email"] = order.contact_email
    shipping = _shipping_details(order)
    if shipping:
        params["shipping"] = shipping

    intent = stripe.PaymentIntent.create(
        api_key=_api_key(),
        stripe_version=settings.STRIPE_API_VERSION,
        **params,
    )
    logger.info(
        "Stripe payment intent created",
        extra={"order_number": order.order_number, "payment_intent": intent.id, "amount": params["amount"]},
    )
    return intent


def construct_event(payload, signature):
    """Verify a webhook body against its Stripe-Signature header.

    Raises:
        PaymentConfigurationError: STRIPE_WEBHOOK_SECRET is not set
        InvalidSignatureError: Signature or payload did not verify
    """
    if not settings.STRIPE_WEBHOOK_SECRET:
        raise PaymentConfigurationError("Stripe webhook secret is not configured")
    if not signature:
        raise InvalidSignatureError("Missing Stripe-Signature header")
    try:
        return stripe.Webhook.construct_event(payload, signature, settings.STRIPE_WEBHOOK_SECRET)
    except (ValueError, stripe.SignatureVerificationError) as e:
        raise InvalidSignatureError(str(e)) from e
