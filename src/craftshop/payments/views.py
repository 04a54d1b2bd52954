"""Payment endpoints: method listing, initiation, provider callbacks and webhooks."""

import logging
import uuid
from urllib.parse import urlencode

import stripe
from django.conf import settings
from django.http import HttpResponseRedirect, JsonResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from craftshop.core.http import InvalidField, InvalidJSON, invalid_json_response, json_error, parse_json, text_field
from craftshop.core.money import to_decimal
from craftshop.store.models import Order

from . import gateways, stripe_gateway
from .exceptions import (
    InvalidSignatureError,
    PaymentConfigurationError,
    PaymentError,
    PaymentMethodUnavailableError,
)
from .methods import EASYPAISA, JAZZCASH, STRIPE_CARD, available_payment_methods, validate_pakistani_mobile
from .models import PaymentTransaction, WebhookLog
from .services import apply_payment_outcome, initiate_payment

logger = logging.getLogger(__name__)

SUCCEEDED = PaymentTransaction.Status.SUCCEEDED
PENDING = PaymentTransaction.Status.PENDING
FAILED = PaymentTransaction.Status.FAILED


def _order_by_number(order_number):
    if not order_number:
        return None
    return Order.objects.filter(order_number=str(order_number)).first()


def _order_from_metadata(metadata):
    """Stripe metadata carries both the order id and the order number."""
    order_id = metadata.get("order_id")
    if order_id:
        try:
            order = Order.objects.filter(pk=uuid.UUID(str(order_id))).first()
        except ValueError:
            order = None
        if order is not None:
            return order
    return _order_by_number(metadata.get("order_number"))


def _order_page(order, **params):
    return f"{settings.SITE_URL}/account/orders/{order.pk}?{urlencode(params)}"


def _checkout_page(**params):
    return f"{settings.SITE_URL}/checkout?{urlencode(params)}"


def payment_methods(request):
    """GET /api/payments/methods/?amount=2500"""
    amount = to_decimal(request.GET.get("amount"))
    if amount is None or amount < 0:
        return json_error("Valid amount is required")
    return JsonResponse({"amount": float(amount), "methods": available_payment_methods(amount)})


def _initiation_error(exc):
    if isinstance(exc, PaymentMethodUnavailableError):
        return json_error(str(exc))
    if isinstance(exc, PaymentConfigurationError):
        logger.error("Payment provider not configured: %s", exc)
        return json_error("Payment service is not properly configured. Please contact support.", status=503)
    return json_error(str(exc), status=409)


@method_decorator(csrf_exempt, name="dispatch")
class OrderPayView(View):
    """Choose a payment method for an order and get the provider action.

    POST /api/orders/<order_number>/pay/
    {"method": "jazzcash", "mobile": "03001234567"}
    """

    def post(self, request, order_number):
        try:
            data = parse_json(request)
        except InvalidJSON:
            return invalid_json_response()

        order = _order_by_number(order_number)
        if order is None:
            return json_error("Order not found", status=404)

        try:
            method = text_field(data, "method")
            mobile = text_field(data, "mobile")
        except InvalidField as e:
            return json_error(str(e))

        if not method:
            return json_error("Payment method is required")
        if mobile and method in (JAZZCASH, EASYPAISA) and not validate_pakistani_mobile(mobile):
            return json_error("Invalid mobile number. Use 03XXXXXXXXX or +92XXXXXXXXXX")

        try:
            result = initiate_payment(order, method, mobile=mobile)
        except PaymentError as e:
            return _initiation_error(e)
        except stripe.StripeError as e:
            logger.exception("Stripe payment intent creation failed")
            return json_error(e.user_message or "Payment provider error", status=502)

        return JsonResponse({"ok": True, **result.as_dict()})


@method_decorator(csrf_exempt, name="dispatch")
class StripePaymentIntentView(View):
    """Create a Stripe PaymentIntent for an order.

    POST /api/payments/stripe/create-payment-intent/
    {"orderNumber": "ORD-..."}  or  {"orderId": "<uuid>"}

    The charged amount is the stored order total plus the card fee.
    """

    def post(self, request):
        try:
            data = parse_json(request)
        except InvalidJSON:
            return invalid_json_response()

        order = _order_from_metadata({
            "order_id": data.get("orderId"),
            "order_number": data.get("orderNumber"),
        })
        if order is None:
            return json_error("Order not found", status=404)

        try:
            result = initiate_payment(order, STRIPE_CARD)
        except PaymentError as e:
            return _initiation_error(e)
        except stripe.StripeError as e:
            logger.exception("Stripe payment intent creation failed")
            return json_error(e.user_message or "Failed to create payment intent", status=502)

        return JsonResponse({
            "ok": True,
            "clientSecret": result.action["client_secret"],
            "paymentIntentId": result.action["payment_intent_id"],
            "amount": float(result.amount),
            "fee": float(result.fee),
        })


@csrf_exempt
@require_POST
def stripe_webhook(request):
    """POST /api/payments/stripe/webhook/ - signed by Stripe."""
    try:
        event = stripe_gateway.construct_event(request.body, request.headers.get("Stripe-Signature"))
    except PaymentConfigurationError:
        logger.error("Stripe webhook secret not configured")
        return JsonResponse({"error": "Webhook not configured"}, status=500)
    except InvalidSignatureError as e:
        logger.warning("Stripe webhook signature verification failed: %s", e)
        return JsonResponse({"error": f"Webhook Error: {e}"}, status=400)

    event_type = event["type"]
    if event_type not in (stripe_gateway.SUCCEEDED_EVENT, stripe_gateway.FAILED_EVENT):
        logger.info("Unhandled Stripe event", extra={"event_type": event_type})
        return JsonResponse({"received": True})

    intent = event["data"]["object"]
    order = _order_from_metadata(intent.get("metadata") or {})
    if order is None:
        logger.warning(
            "Stripe webhook for unknown order",
            extra={"event_type": event_type, "payment_intent": intent.get("id")},
        )
        return JsonResponse({"received": True})

    succeeded = event_type == stripe_gateway.SUCCEEDED_EVENT
    minor_amount = intent.get("amount_received") or intent.get("amount")
    error = intent.get("last_payment_error") or {}
    apply_payment_outcome(
        order,
        provider=PaymentTransaction.Provider.STRIPE,
        outcome=SUCCEEDED if succeeded else FAILED,
        transaction_id=intent["id"],
        amount=to_decimal(minor_amount, 0) / 100 if minor_amount else None,
        response_code=error.get("code") or "",
        response_message=error.get("message") or "",
        gateway_response={"event_id": event.get("id"), "type": event_type, "status": intent.get("status")},
    )
    return JsonResponse({"received": True})


@method_decorator(csrf_exempt, name="dispatch")
class JazzCashCallbackView(View):
    """Browser return from JazzCash (form post).

    Applies the outcome, then redirects the customer back to the storefront.
    """

    def get(self, request):
        return JsonResponse({"message": "JazzCash callback endpoint"})

    def post(self, request):
        data = request.POST.dict()
        if not gateways.verify_jazzcash_callback(data):
            logger.warning("JazzCash callback failed verification", extra={"txn_ref": data.get("pp_TxnRefNo")})
            return JsonResponse({"error": "Invalid signature"}, status=400)

        order = _order_by_number(data.get("pp_BillReference"))
        if order is None:
            return JsonResponse({"error": "Order not found"}, status=404)

        code = data.get("pp_ResponseCode", "")
        outcome = gateways.jazzcash_outcome(code)
        amount = to_decimal(data.get("pp_Amount"))
        apply_payment_outcome(
            order,
            provider=PaymentTransaction.Provider.JAZZCASH,
            outcome=outcome,
            transaction_id=data.get("pp_TxnRefNo") or order.order_number,
            amount=amount / 100 if amount is not None else None,
            response_code=code,
            response_message=data.get("pp_ResponseMessage") or gateways.JAZZCASH_RESPONSE_CODES.get(code, ""),
            gateway_response=data,
        )

        if outcome == SUCCEEDED:
            return HttpResponseRedirect(_order_page(order, payment="success"))
        return HttpResponseRedirect(_checkout_page(payment="failed", reason=f"jazzcash_{code}"))


def _log_webhook(provider, data, signature_valid):
    return WebhookLog.objects.create(
        provider=provider,
        event_type=str(data.get("status") or "")[:100],
        payload=data,
        signature_valid=signature_valid,
    )


@method_decorator(csrf_exempt, name="dispatch")
class EasyPaisaWebhookView(View):
    """Server-to-server notification from EasyPaisa (JSON)."""

    def get(self, request):
        return JsonResponse({"message": "EasyPaisa webhook endpoint", "status": "active"})

    def post(self, request):
        try:
            data = parse_json(request)
        except InvalidJSON:
            return invalid_json_response()

        valid = gateways.verify_easypaisa_notification(data)
        log = _log_webhook(EASYPAISA, data, valid)
        if not valid:
            logger.warning("EasyPaisa webhook failed verification", extra={"order_id": data.get("order_id")})
            return JsonResponse({"error": "Invalid webhook signature"}, status=400)

        order = _order_by_number(data.get("order_id"))
        if order is None:
            log.error = "Order not found"
            log.save(update_fields=["error"])
            logger.warning("EasyPaisa webhook for unknown order", extra={"order_id": data.get("order_id")})
            return JsonResponse({"status": "ignored", "message": "Order not found"})

        outcome = gateways.easypaisa_outcome(data.get("status"))
        result = apply_payment_outcome(
            order,
            provider=PaymentTransaction.Provider.EASYPAISA,
            outcome=outcome,
            transaction_id=data.get("transaction_id") or order.order_number,
            amount=to_decimal(data.get("amount")),
            response_message=str(data.get("status") or ""),
            gateway_response=data,
        )
        log.processed = True
        log.save(update_fields=["processed"])

        return JsonResponse({
            "status": "success",
            "message": "Webhook processed successfully",
            "order_id": order.order_number,
            "payment_status": result.order.payment_status,
        })


@method_decorator(csrf_exempt, name="dispatch")
class EasyPaisaCallbackView(View):
    """EasyPaisa return URL (GET) and signed completion callback (POST JSON)."""

    def get(self, request):
        order = _order_by_number(request.GET.get("order_id"))
        status = (request.GET.get("status") or "").upper()

        if status == "SUCCESS" and order is not None:
            params = {"payment": "success"}
            if request.GET.get("transaction_id"):
                params["transaction"] = request.GET["transaction_id"]
            return HttpResponseRedirect(_order_page(order, **params))
        if status == "FAILED":
            return HttpResponseRedirect(_checkout_page(payment="failed", reason="easypaisa_failed"))
        if status == "CANCELLED":
            return HttpResponseRedirect(_checkout_page(payment="cancelled", reason="user_cancelled"))
        return HttpResponseRedirect(f"{settings.SITE_URL}/checkout")

    def post(self, request):
        try:
            data = parse_json(request)
        except InvalidJSON:
            return invalid_json_response()

        if not gateways.verify_easypaisa_notification(data):
            logger.warning("EasyPaisa callback failed verification", extra={"order_id": data.get("order_id")})
            return JsonResponse({"error": "Invalid callback signature"}, status=400)

        order = _order_by_number(data.get("order_id"))
        if order is None:
            return JsonResponse({"error": "Order not found"}, status=404)

        code = str(data.get("response_code") or "")
        outcome = gateways.easypaisa_outcome(data.get("status"), code)
        result = apply_payment_outcome(
            order,
            provider=PaymentTransaction.Provider.EASYPAISA,
            outcome=outcome,
            transaction_id=data.get("transaction_id") or order.order_number,
            amount=to_decimal(data.get("amount")),
            response_code=code,
            response_message=data.get("response_message") or gateways.EASYPAISA_RESPONSE_CODES.get(code, ""),
            gateway_response=data,
        )

        if outcome == SUCCEEDED:
            redirect_url = _order_page(order, payment="success")
        else:
            redirect_url = _checkout_page(payment=outcome, reason=f"easypaisa_{code or outcome}")
        return JsonResponse({
            "success": outcome != FAILED,
            "status": outcome,
            "order_number": order.order_number,
            "payment_status": result.order.payment_status,
            "redirect_url": redirect_url,
        })
