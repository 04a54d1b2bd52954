"""Payment method catalogue: fees, amount limits, mobile numbers, instructions.

Amounts are in the store currency (PKR). Fees are rounded to two places.
"""

import re
import secrets
import string
import time
from decimal import Decimal
from typing import NamedTuple

from craftshop.core.money import ZERO, round_money, to_decimal

STRIPE_CARD = "stripe_card"
JAZZCASH = "jazzcash"
EASYPAISA = "easypaisa"
COD = "cod"
BANK_TRANSFER = "bank_transfer"

_BASE36 = string.digits + string.ascii_uppercase

_MOBILE_WITH_COUNTRY_CODE = re.compile(r"^\+92[0-9]{10}$")
_MOBILE_LOCAL = re.compile(r"^03[0-9]{9}$")


class PaymentMethodInfo(NamedTuple):
    id: str
    provider: str
    name: str
    description: str
    processing_time: str
    min_amount: Decimal
    max_amount: Decimal


class AmountCheck(NamedTuple):
    valid: bool
    error: str = ""


PAYMENT_METHODS = {
    STRIPE_CARD: PaymentMethodInfo(
        id=STRIPE_CARD,
        provider="stripe",
        name="Credit/Debit Card",
        description="Visa, MasterCard, American Express",
        processing_time="Instant",
        min_amount=Decimal("100"),
        max_amount=Decimal("1000000"),
    ),
    JAZZCASH: PaymentMethodInfo(
        id=JAZZCASH,
        provider="jazzcash",
        name="JazzCash",
        description="Pay using your Jazz mobile account",
        processing_time="Instant",
        min_amount=Decimal("50"),
        max_amount=Decimal("500000"),
    ),
    EASYPAISA: PaymentMethodInfo(
        id=EASYPAISA,
        provider="easypaisa",
        name="EasyPaisa",
        description="Pay using your Telenor mobile account",
        processing_time="Instant",
        min_amount=Decimal("50"),
        max_amount=Decimal("300000"),
    ),
    COD: PaymentMethodInfo(
        id=COD,
        provider="cod",
        name="Cash on Delivery",
        description="Pay when you receive your order",
        processing_time="On delivery",
        min_amount=Decimal("100"),
        max_amount=Decimal("50000"),
    ),
    BANK_TRANSFER: PaymentMethodInfo(
        id=BANK_TRANSFER,
        provider="bank_transfer",
        name="Bank Transfer",
        description="Direct transfer to our bank account",
        processing_time="1-2 business days",
        min_amount=Decimal("100"),
        max_amount=Decimal("10000000"),
    ),
}

# Provider names are accepted wherever a method id is.
_PROVIDER_ALIASES = {"stripe": STRIPE_CARD}


def get_method(method) -> PaymentMethodInfo | None:
    method = _PROVIDER_ALIASES.get(method, method)
    return PAYMENT_METHODS.get(method)


def calculate_payment_fee(amount, method) -> Decimal:
    """Fee charged on top of the order total for a payment method.

    Stripe takes 2.9% plus 30, the wallets 2% with a floor of 20, cash on
    delivery a flat 50 and bank transfers a flat 25. Unknown methods are free.
    """
    info = get_method(method)
    if info is None:
        return ZERO

    amount = to_decimal(amount, ZERO)
    if info.id == STRIPE_CARD:
        return round_money(amount * Decimal("0.029") + 30)
    if info.id in (JAZZCASH, EASYPAISA):
        return max(Decimal("20.00"), round_money(amount * Decimal("0.02")))
    if info.id == COD:
        return Decimal("50.00")
    return Decimal("25.00")


def validate_payment_amount(amount, method) -> AmountCheck:
    amount = to_decimal(amount, ZERO)
    if amount <= 0:
        return AmountCheck(False, "Amount must be greater than zero")

    info = get_method(method)
    if info is None:
        return AmountCheck(False, f"Unknown payment method: {method}")
    if amount > info.max_amount:
        return AmountCheck(False, f"Amount exceeds {info.name} limit of PKR {info.max_amount:,}")
    if amount < info.min_amount:
        return AmountCheck(False, f"Minimum amount for {info.name} is PKR {info.min_amount:,}")
    return AmountCheck(True)


def available_payment_methods(amount) -> list[dict]:
    """Every method with its fee for `amount` and whether it can take it."""
    amount = to_decimal(amount, ZERO)
    methods = []
    for info in PAYMENT_METHODS.values():
        check = validate_payment_amount(amount, info.id)
        methods.append({
            "id": info.id,
            "provider": info.provider,
            "name": info.name,
            "description": info.description,
            "processing_time": info.processing_time,
            "fee": float(calculate_payment_fee(amount, info.id)),
            "min_amount": float(info.min_amount),
            "max_amount": float(info.max_amount),
            "available": check.valid,
            "unavailable_reason": check.error or None,
        })
    return methods


def validate_pakistani_mobile(mobile) -> bool:
    """+92XXXXXXXXXX or 03XXXXXXXXX."""
    if not isinstance(mobile, str):
        return False
    return bool(_MOBILE_WITH_COUNTRY_CODE.match(mobile) or _MOBILE_LOCAL.match(mobile))


def format_mobile_for_gateway(mobile, gateway) -> str:
    """Local 11-digit form (03XXXXXXXXX) expected by the wallet gateways."""
    formatted = re.sub(r"\s+", "", mobile or "")
    if formatted.startswith("+92"):
        formatted = "0" + formatted[3:]
    if gateway == JAZZCASH and formatted and not formatted.startswith("0"):
        formatted = "0" + formatted
    return formatted


def generate_transaction_ref(prefix, order_number) -> str:
    """<prefix><epoch ms><6 random base36><last 4 of order number>."""
    random_part = "".join(secrets.choice(_BASE36) for _ in range(6))
    return f"{prefix}{int(time.time() * 1000)}{random_part}{order_number[-4:]}"


def payment_instructions(method, amount) -> list[str]:
    amount_label = f"PKR {to_decimal(amount, ZERO):,.2f}"
    method = _PROVIDER_ALIASES.get(method, method)

    if method == JAZZCASH:
        return [
            "You will be redirected to JazzCash payment page",
            f"Pay {amount_label} using your Jazz mobile account",
            "Enter your Jazz account PIN to complete payment",
            "You will receive SMS confirmation after successful payment",
        ]
    if method == EASYPAISA:
        return [
            "You will be redirected to EasyPaisa payment page",
            f"Pay {amount_label} using your Telenor mobile account",
            "Enter your EasyPaisa PIN to complete payment",
            "Payment confirmation will be sent via SMS",
        ]
    if method == COD:
        return [
            f"Prepare exact amount: {amount_label}",
            "Our delivery agent will collect payment upon delivery",
            "Please have the exact amount ready",
            "Payment receipt will be provided",
        ]
    if method == BANK_TRANSFER:
        return [
            f"Transfer exactly {amount_label} to our bank account",
            "Use your order number as reference",
            "Send a screenshot of the transfer receipt to our support email",
            "Order will be processed after payment verification",
        ]
    return ["Follow the payment instructions to complete your order"]
