"""Payment initiation and reconciliation.

Provider notifications arrive in any order and may repeat. Every outcome
goes through `apply_payment_outcome`, which only ever moves an order
forward: a paid order is never downgraded, and orders that have shipped
or been delivered keep their status.
"""

import logging
import time
from decimal import Decimal
from typing import NamedTuple

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from craftshop.core.money import round_money
from craftshop.store.models import Order

from . import gateways, stripe_gateway
from .exceptions import PaymentError, PaymentMethodUnavailableError
from .methods import (
    BANK_TRANSFER,
    COD,
    EASYPAISA,
    JAZZCASH,
    STRIPE_CARD,
    calculate_payment_fee,
    get_method,
    payment_instructions,
    validate_payment_amount,
)
from .models import PaymentTransaction

logger = logging.getLogger(__name__)

SUCCEEDED = PaymentTransaction.Status.SUCCEEDED
PENDING = PaymentTransaction.Status.PENDING
FAILED = PaymentTransaction.Status.FAILED

# Statuses a successful payment advances to processing.
ADVANCE_ON_SUCCESS = (Order.Status.PENDING, Order.Status.CONFIRMED, Order.Status.PAYMENT_FAILED)
# Statuses a failed payment moves to payment_failed.
FAIL_ON_FAILURE = (Order.Status.PENDING, Order.Status.CONFIRMED)
PAYABLE_STATUSES = (Order.Status.PENDING, Order.Status.CONFIRMED, Order.Status.PAYMENT_FAILED)


class OutcomeResult(NamedTuple):
    order: Order
    transaction: PaymentTransaction
    changed: bool


class PaymentInitiation(NamedTuple):
    order: Order
    method: str
    fee: Decimal
    amount: Decimal
    action: dict

    def as_dict(self):
        return {
            "method": self.method,
            "fee": float(self.fee),
            "amount": float(self.amount),
            "order_number": self.order.order_number,
            **self.action,
        }


@transaction.atomic
def apply_payment_outcome(
    order,
    *,
    provider,
    outcome,
    transaction_id,
    amount=None,
    response_code="",
    response_message="",
    gateway_response=None,
) -> OutcomeResult:
    """Apply a provider's payment outcome to an order.

    Args:
        order: Order the payment belongs to
        provider: PaymentTransaction.Provider value
        outcome: succeeded, pending or failed
        transaction_id: Provider's transaction reference
        amount: Amount the provider reports, in major units
        gateway_response: Raw provider payload, stored for audit

    Returns:
        OutcomeResult with the refreshed order, the upserted transaction
        row and whether the order itself changed
    """
    if outcome not in PaymentTransaction.Status.values:
        raise ValueError(f"Unknown payment outcome: {outcome}")

    order = Order.objects.select_for_update().get(pk=order.pk)

    txn, _ = PaymentTransaction.objects.update_or_create(
        provider=provider,
        transaction_id=transaction_id,
        defaults={
            "order": order,
            "amount": round_money(amount) if amount is not None else None,
            "currency": order.currency,
            "status": outcome,
            "response_code": response_code or "",
            "response_message": (response_message or "")[:255],
            "gateway_response": gateway_response or {},
        },
    )

    fields = []
    if outcome == SUCCEEDED:
        if not order.is_paid:
            order.payment_status = Order.PaymentStatus.PAID
            order.payment_confirmed_at = timezone.now()
            order.payment_id = transaction_id
            order.transaction_id = transaction_id
            fields += ["payment_status", "payment_confirmed_at", "payment_id", "transaction_id"]
            if order.status in ADVANCE_ON_SUCCESS:
                order.status = Order.Status.PROCESSING
                fields.append("status")
    elif outcome == PENDING:
        if not order.is_paid and order.payment_status != Order.PaymentStatus.PENDING:
            order.payment_status = Order.PaymentStatus.PENDING
            fields.append("payment_status")
    else:
        if not order.is_paid:
            if order.payment_status != Order.PaymentStatus.FAILED:
                order.payment_status = Order.PaymentStatus.FAILED
                fields.append("payment_status")
            if order.status in FAIL_ON_FAILURE:
                order.status = Order.Status.PAYMENT_FAILED
                fields.append("status")

    if fields:
        order.save(update_fields=[*fields, "updated_at"])

    logger.info(
        "Payment outcome applied",
        extra={
            "order_number": order.order_number,
            "provider": provider,
            "outcome": outcome,
            "transaction_id": transaction_id,
            "changed": bool(fields),
            "status": order.status,
            "payment_status": order.payment_status,
        },
    )
    return OutcomeResult(order=order, transaction=txn, changed=bool(fields))


def _reserve_method(order, method):
    """Validate the method for the order and record it with its fee."""
    info = get_method(method)
    if info is None:
        raise PaymentMethodUnavailableError("Invalid payment method selected")

    with transaction.atomic():
        order = Order.objects.select_for_update().get(pk=order.pk)
        if order.is_paid:
            raise PaymentError("Order is already paid")
        if order.status not in PAYABLE_STATUSES:
            raise PaymentError(f"Cannot pay for a {order.status} order")

        check = validate_payment_amount(order.total_amount, info.id)
        if not check.valid:
            raise PaymentMethodUnavailableError(check.error)

        fee = calculate_payment_fee(order.total_amount, info.id)
        order.payment_method = info.id
        order.payment_fee = fee
        order.save(update_fields=["payment_method", "payment_fee", "updated_at"])

    return order, info, fee


def initiate_payment(order, method, mobile="") -> PaymentInitiation:
    """Start paying for an order with the chosen method.

    The amount charged is always the stored order total plus the method's
    fee; nothing amount-like is taken from the client.

    Raises:
        PaymentMethodUnavailableError: Unknown method or amount out of range
        PaymentError: Order is already paid or no longer payable
        PaymentConfigurationError: Provider credentials are missing
    """
    order, info, fee = _reserve_method(order, method)
    amount = round_money(order.total_amount + fee)
    instructions = payment_instructions(info.id, amount)

    if info.id == STRIPE_CARD:
        intent = stripe_gateway.create_payment_intent(order, amount)
        order.payment_id = intent.id
        order.save(update_fields=["payment_id", "updated_at"])
        action = {
            "action": "stripe",
            "client_secret": intent.client_secret,
            "payment_intent_id": intent.id,
        }

    elif info.id in (JAZZCASH, EASYPAISA):
        builder = gateways.build_jazzcash_form if info.id == JAZZCASH else gateways.build_easypaisa_form
        form = builder(order, amount, mobile=mobile)
        apply_payment_outcome(
            order,
            provider=info.provider,
            outcome=PENDING,
            transaction_id=form.transaction_id,
            amount=amount,
            response_message="Redirected to gateway",
        )
        action = {"action": "redirect", "form": form.as_dict(), "instructions": instructions}

    elif info.id == COD:
        if order.status == Order.Status.PENDING:
            order.status = Order.Status.CONFIRMED
            order.save(update_fields=["status", "updated_at"])
        reference = f"cod_{order.order_number}_{int(time.time() * 1000)}"
        action = {
            "action": "none",
            "reference": reference,
            "message": "Order confirmed. Payment will be collected on delivery.",
            "instructions": instructions,
        }

    elif info.id == BANK_TRANSFER:
        action = {
            "action": "bank_transfer",
            "reference": order.order_number,
            "bank_details": settings.STORE_BANK_DETAILS,
            "instructions": instructions,
        }

    logger.info(
        "Payment initiated",
        extra={"order_number": order.order_number, "method": info.id, "amount": str(amount)},
    )
    return PaymentInitiation(order=order, method=info.id, fee=fee, amount=amount, action=action)
